"""
Diesel record, norm and fleet report schemas.
"""
from pydantic import BaseModel, Field
import datetime as dt
from typing import Optional, List, Dict
from fleetops.models.trip import Currency
from fleetops.services.diesel_evaluator import PerformanceStatus


class DieselRecordCreate(BaseModel):
    fleet_number: str
    date: dt.date
    driver_name: str
    fuel_station: Optional[str] = None
    km_reading: float = Field(ge=0)
    previous_km_reading: Optional[float] = Field(default=None, ge=0)
    litres_filled: float = Field(ge=0)
    total_cost: float = Field(ge=0)
    currency: Currency = Currency.ZAR
    cost_per_litre: Optional[float] = None
    distance_travelled: Optional[float] = None
    km_per_litre: Optional[float] = None
    trip_id: Optional[str] = None
    probe_reading: Optional[float] = Field(default=None, ge=0)
    probe_verified: bool = False
    notes: Optional[str] = None


class DieselRecordUpdate(BaseModel):
    date: Optional[dt.date] = None
    driver_name: Optional[str] = None
    fuel_station: Optional[str] = None
    km_reading: Optional[float] = Field(default=None, ge=0)
    previous_km_reading: Optional[float] = Field(default=None, ge=0)
    litres_filled: Optional[float] = Field(default=None, ge=0)
    total_cost: Optional[float] = Field(default=None, ge=0)
    currency: Optional[Currency] = None
    probe_reading: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class EvaluatedDieselRecordResponse(BaseModel):
    id: str
    fleet_number: str
    date: Optional[dt.date] = None
    driver_name: Optional[str] = None
    fuel_station: Optional[str] = None
    currency: Currency
    km_reading: float
    previous_km_reading: Optional[float] = None
    litres_filled: float
    total_cost: float
    trip_id: Optional[str] = None
    probe_reading: Optional[float] = None
    probe_verified: bool

    distance_travelled: float
    km_per_litre: float
    cost_per_km: float
    cost_per_litre: float
    expected_km_per_litre: float
    tolerance_percentage: float
    efficiency_variance: float
    is_within_tolerance: bool
    performance_status: PerformanceStatus
    requires_debrief: bool
    has_probe: bool
    probe_discrepancy: Optional[float] = None
    needs_probe_verification: bool

    class Config:
        from_attributes = True


class LinkTripRequest(BaseModel):
    trip_id: str


class ProbeVerificationRequest(BaseModel):
    verified_by: str
    probe_reading: Optional[float] = Field(default=None, ge=0)


class DieselNormUpsert(BaseModel):
    expected_km_per_litre: float = Field(gt=0)
    tolerance_percentage: float = Field(gt=0, le=100)
    updated_by: str


class DieselNormResponse(BaseModel):
    fleet_number: str
    expected_km_per_litre: float
    tolerance_percentage: float
    last_updated: Optional[dt.datetime] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class FleetSummaryResponse(BaseModel):
    total_records: int
    total_litres: float
    total_cost: float
    total_distance: float
    records_requiring_debrief: int
    poor_performance_records: int
    excellent_performance_records: int
    linked_to_trips: int
    records_with_probe: int
    records_needing_probe_verification: int
    records_with_verified_probe: int
    records_by_currency: Dict[str, int]
    cost_by_currency: Dict[str, float]
    average_km_per_litre: float
    average_cost_per_km: float


class FleetBreakdownRow(BaseModel):
    fleet_number: str
    record_count: int
    total_litres: float
    total_distance: float
    total_cost: float
    average_km_per_litre: float
    expected_km_per_litre: float
    debrief_count: int
    poor_count: int


class FleetReportResponse(BaseModel):
    summary: FleetSummaryResponse
    fleet_breakdown: List[FleetBreakdownRow]


class DebriefSummaryResponse(BaseModel):
    total: int
    average_variance: float
    poor: int
    critical: int
    total_cost: float
    total_litres: float


class DebriefReportResponse(BaseModel):
    records: List[EvaluatedDieselRecordResponse]
    summary: DebriefSummaryResponse
