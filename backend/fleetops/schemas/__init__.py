from .trip import (
    TripCreate,
    TripResponse,
    TripKPIResponse,
    TripFlagStatus,
    CostEntryCreate,
    CostEntryUpdate,
    CostEntryResponse,
    FlagCostRequest,
    ResolveCostRequest,
    AdditionalCostCreate,
    AdditionalCostResponse,
    CompleteTripRequest,
    FlaggedCostResponse,
    TripEditRecordResponse,
)
from .diesel import (
    DieselRecordCreate,
    DieselRecordUpdate,
    EvaluatedDieselRecordResponse,
    LinkTripRequest,
    ProbeVerificationRequest,
    DieselNormUpsert,
    DieselNormResponse,
    FleetReportResponse,
    DebriefReportResponse,
)

__all__ = [
    "TripCreate",
    "TripResponse",
    "TripKPIResponse",
    "TripFlagStatus",
    "CostEntryCreate",
    "CostEntryUpdate",
    "CostEntryResponse",
    "FlagCostRequest",
    "ResolveCostRequest",
    "AdditionalCostCreate",
    "AdditionalCostResponse",
    "CompleteTripRequest",
    "FlaggedCostResponse",
    "TripEditRecordResponse",
    "DieselRecordCreate",
    "DieselRecordUpdate",
    "EvaluatedDieselRecordResponse",
    "LinkTripRequest",
    "ProbeVerificationRequest",
    "DieselNormUpsert",
    "DieselNormResponse",
    "FleetReportResponse",
    "DebriefReportResponse",
]
