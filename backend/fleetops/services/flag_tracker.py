"""
Flag & investigation tracker - counts over a trip's cost entries.

Only entries with ``is_flagged`` set can be unresolved; the investigation
status of an unflagged entry is ignored.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional

from fleetops.models.trip import InvestigationStatus

# Assumed resolution time for resolved flags missing a timestamp
DEFAULT_RESOLUTION_DAYS = 3.0


def investigation_status_of(cost: Any) -> Optional[InvestigationStatus]:
    value = getattr(cost, "investigation_status", None)
    if value is None or isinstance(value, InvestigationStatus):
        return value
    try:
        return InvestigationStatus(value)
    except ValueError:
        return None


def is_flagged(cost: Any) -> bool:
    return getattr(cost, "is_flagged", None) is True


def is_unresolved(cost: Any) -> bool:
    return is_flagged(cost) and investigation_status_of(cost) is not InvestigationStatus.RESOLVED


def flagged_count(costs: Optional[Iterable[Any]]) -> int:
    return sum(1 for cost in costs or [] if is_flagged(cost))


def unresolved_count(costs: Optional[Iterable[Any]]) -> int:
    return sum(1 for cost in costs or [] if is_unresolved(cost))


def can_complete(costs: Optional[Iterable[Any]]) -> bool:
    return unresolved_count(costs) == 0


@dataclass
class FlaggedCost:
    """A flagged cost entry with the context of the trip it belongs to."""

    cost: Any
    trip_id: Optional[str]
    trip_fleet_number: Optional[str]
    trip_route: Optional[str]
    trip_driver_name: Optional[str]

    @property
    def is_resolved(self) -> bool:
        return not is_unresolved(self.cost)


def collect_flagged_costs(trips: Optional[Iterable[Any]]) -> List[FlaggedCost]:
    """
    Gather flagged costs across trips.

    Pending investigations sort first, then the most recently flagged.
    """
    flagged: List[FlaggedCost] = []
    for trip in trips or []:
        for cost in getattr(trip, "costs", None) or []:
            if is_flagged(cost):
                flagged.append(FlaggedCost(
                    cost=cost,
                    trip_id=getattr(trip, "id", None),
                    trip_fleet_number=getattr(trip, "fleet_number", None),
                    trip_route=getattr(trip, "route", None),
                    trip_driver_name=getattr(trip, "driver_name", None),
                ))

    def _sort_key(item: FlaggedCost):
        pending = investigation_status_of(item.cost) is InvestigationStatus.PENDING
        flagged_at = getattr(item.cost, "flagged_at", None) or getattr(item.cost, "created_at", None)
        timestamp = flagged_at.timestamp() if isinstance(flagged_at, datetime) else 0.0
        return (0 if pending else 1, -timestamp)

    return sorted(flagged, key=_sort_key)


def average_resolution_days(flagged: Iterable[FlaggedCost]) -> float:
    resolved = [item.cost for item in flagged if item.is_resolved]
    if not resolved:
        return 0.0
    total = 0.0
    for cost in resolved:
        flagged_at = getattr(cost, "flagged_at", None)
        resolved_at = getattr(cost, "resolved_at", None)
        if flagged_at and resolved_at:
            total += (resolved_at - flagged_at).total_seconds() / 86400
        else:
            total += DEFAULT_RESOLUTION_DAYS
    return total / len(resolved)
