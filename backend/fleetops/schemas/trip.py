"""
Trip and cost entry schemas.
"""
from pydantic import BaseModel, Field
from datetime import datetime, date
from typing import Optional, List, Dict, Any
from fleetops.models.trip import TripStatus, Currency, ClientType, InvestigationStatus
from fleetops.models.edit_record import TripChangeType


class CostEntryCreate(BaseModel):
    amount: float
    category: str
    reference_number: Optional[str] = None
    is_flagged: bool = False
    is_system_generated: bool = False
    investigation_status: Optional[InvestigationStatus] = None
    investigation_notes: Optional[str] = None
    flag_reason: Optional[str] = None
    attachments: Optional[List[Dict[str, Any]]] = None


class CostEntryUpdate(BaseModel):
    amount: Optional[float] = None
    category: Optional[str] = None
    reference_number: Optional[str] = None
    is_flagged: Optional[bool] = None
    investigation_status: Optional[InvestigationStatus] = None
    investigation_notes: Optional[str] = None
    flag_reason: Optional[str] = None
    attachments: Optional[List[Dict[str, Any]]] = None
    edited_by: str = "system"


class CostEntryResponse(BaseModel):
    id: str
    trip_id: str
    amount: float
    category: str
    reference_number: Optional[str] = None
    is_flagged: bool = False
    is_system_generated: bool = False
    investigation_status: Optional[InvestigationStatus] = None
    investigation_notes: Optional[str] = None
    flag_reason: Optional[str] = None
    flagged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    attachments: Optional[List[Dict[str, Any]]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FlagCostRequest(BaseModel):
    flagged_by: str
    reason: Optional[str] = None


class ResolveCostRequest(BaseModel):
    resolved_by: str
    notes: Optional[str] = None


class AdditionalCostCreate(BaseModel):
    cost_type: str
    amount: float
    notes: Optional[str] = None


class AdditionalCostResponse(BaseModel):
    id: str
    trip_id: str
    cost_type: str
    amount: float
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TripCreate(BaseModel):
    driver_name: str
    fleet_number: str
    client_name: str
    route: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    base_revenue: float = Field(default=0, ge=0)
    revenue_currency: Currency = Currency.ZAR
    distance_km: float = Field(default=0, ge=0)
    client_type: ClientType = ClientType.EXTERNAL
    investigation_notes: Optional[str] = None


class TripResponse(BaseModel):
    id: str
    driver_name: str
    fleet_number: str
    client_name: str
    route: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    base_revenue: float = 0
    revenue_currency: Currency
    distance_km: float = 0
    client_type: ClientType
    status: TripStatus
    investigation_notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    created_at: datetime
    costs: List[CostEntryResponse] = []
    additional_costs: List[AdditionalCostResponse] = []

    class Config:
        from_attributes = True


class TripKPIResponse(BaseModel):
    trip_id: str
    total_revenue: float
    total_expenses: float
    net_profit: float
    profit_margin: float
    cost_per_km: float
    currency: Currency


class TripFlagStatus(BaseModel):
    trip_id: str
    status: TripStatus
    flagged_count: int
    unresolved_count: int
    can_complete: bool
    should_auto_complete: bool


class CompleteTripRequest(BaseModel):
    completed_by: str
    auto: bool = False


class FlaggedCostResponse(BaseModel):
    cost: CostEntryResponse
    trip_id: Optional[str] = None
    trip_fleet_number: Optional[str] = None
    trip_route: Optional[str] = None
    trip_driver_name: Optional[str] = None

    class Config:
        from_attributes = True


class TripEditRecordResponse(BaseModel):
    id: str
    trip_id: str
    edited_by: str
    edited_at: datetime
    reason: Optional[str] = None
    field_changed: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    change_type: TripChangeType

    class Config:
        from_attributes = True
