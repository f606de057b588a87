from .trip import Trip, CostEntry, AdditionalCost, TripStatus, Currency, ClientType, InvestigationStatus
from .diesel import DieselRecord, DieselNorm
from .edit_record import TripEditRecord, CostEditRecord, TripChangeType, CostChangeType

__all__ = [
    "Trip",
    "CostEntry",
    "AdditionalCost",
    "TripStatus",
    "Currency",
    "ClientType",
    "InvestigationStatus",
    "DieselRecord",
    "DieselNorm",
    "TripEditRecord",
    "CostEditRecord",
    "TripChangeType",
    "CostChangeType",
]
