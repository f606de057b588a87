"""
Trip completion gate - guards the active -> completed transition.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from fleetops.models.trip import TripStatus
from fleetops.services.flag_tracker import can_complete, flagged_count, unresolved_count

logger = logging.getLogger(__name__)

UNRESOLVED_FLAGS_REASON = "Cannot complete trip: unresolved flagged cost entries present"
ALREADY_COMPLETED_REASON = "Trip is already completed"
UNKNOWN_STATUS_REASON = "Cannot complete trip: unknown status '{status}'"


class TripCompletionRejected(Exception):
    """Raised when a trip may not transition to completed."""

    def __init__(self, trip_id: Optional[str], reason: str):
        super().__init__(reason)
        self.trip_id = trip_id
        self.reason = reason


@dataclass
class CompletionResult:
    allowed: bool
    reason: Optional[str] = None
    unresolved_flags: int = 0
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None


def trip_status_of(trip: Any) -> Optional[TripStatus]:
    """Missing status reads as active; an unrecognised one as None."""
    value = getattr(trip, "status", None)
    if value is None:
        return TripStatus.ACTIVE
    if isinstance(value, TripStatus):
        return value
    try:
        return TripStatus(value)
    except ValueError:
        return None


def evaluate_completion(trip: Any) -> CompletionResult:
    """Decide whether the trip may be completed, without touching it."""
    status = trip_status_of(trip)
    if status is None:
        return CompletionResult(
            allowed=False,
            reason=UNKNOWN_STATUS_REASON.format(status=getattr(trip, "status", None)),
        )
    if status is TripStatus.COMPLETED:
        return CompletionResult(allowed=False, reason=ALREADY_COMPLETED_REASON)

    costs = getattr(trip, "costs", None)
    if not can_complete(costs):
        return CompletionResult(
            allowed=False,
            reason=UNRESOLVED_FLAGS_REASON,
            unresolved_flags=unresolved_count(costs),
        )
    return CompletionResult(allowed=True)


def complete_trip(trip: Any, actor: str, now: Optional[datetime] = None) -> CompletionResult:
    """
    Apply the completion transition to ``trip``.

    Raises TripCompletionRejected without mutating the trip when the gate
    is closed.
    """
    trip_id = getattr(trip, "id", None)
    result = evaluate_completion(trip)
    if not result.allowed:
        logger.warning("Completion of trip %s rejected: %s", trip_id, result.reason)
        raise TripCompletionRejected(trip_id, result.reason)

    completed_at = now or datetime.utcnow()
    trip.status = TripStatus.COMPLETED.value
    trip.completed_at = completed_at
    trip.completed_by = actor
    logger.info("Trip %s completed by %s", trip_id, actor)

    result.completed_at = completed_at
    result.completed_by = actor
    return result


def should_auto_complete(trip: Any) -> bool:
    """Advisory: active trip whose flags have all been resolved."""
    costs = getattr(trip, "costs", None)
    return (
        trip_status_of(trip) is TripStatus.ACTIVE
        and flagged_count(costs) > 0
        and unresolved_count(costs) == 0
    )
