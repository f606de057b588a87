"""
Trip service - loads trip snapshots, applies cost-entry mutations and
commits gated completions.
"""
from datetime import datetime
import enum
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session, selectinload

from fleetops.models import (
    Trip,
    CostEntry,
    AdditionalCost,
    TripEditRecord,
    CostEditRecord,
    TripStatus,
    InvestigationStatus,
    TripChangeType,
    CostChangeType,
)
from fleetops.services.completion_gate import (
    TripCompletionRejected,
    complete_trip as apply_completion,
    should_auto_complete,
)
from fleetops.services.flag_tracker import unresolved_count

logger = logging.getLogger(__name__)


def get_trip(db: Session, trip_id: str, for_update: bool = False) -> Trip:
    query = db.query(Trip).options(selectinload(Trip.costs), selectinload(Trip.additional_costs))
    if for_update:
        query = query.with_for_update()
    trip = query.filter(Trip.id == trip_id).first()
    if not trip:
        raise ValueError(f"Trip {trip_id} not found")
    return trip


def get_cost_entry(db: Session, trip_id: str, cost_id: str) -> CostEntry:
    cost = db.query(CostEntry).filter(CostEntry.id == cost_id, CostEntry.trip_id == trip_id).first()
    if not cost:
        raise ValueError(f"Cost entry {cost_id} not found on trip {trip_id}")
    return cost


def list_trips(db: Session) -> List[Trip]:
    return (
        db.query(Trip)
        .options(selectinload(Trip.costs), selectinload(Trip.additional_costs))
        .order_by(Trip.created_at.desc())
        .all()
    )


def create_trip(db: Session, data: Dict[str, Any]) -> Trip:
    trip = Trip(**data)
    trip.status = TripStatus.ACTIVE.value
    db.add(trip)
    db.commit()
    db.refresh(trip)
    logger.info("Trip %s created for fleet %s", trip.id, trip.fleet_number)
    return trip


def _log_cost_change(
    db: Session,
    cost: CostEntry,
    actor: str,
    field_changed: str,
    old_value: Any,
    new_value: Any,
    change_type: CostChangeType,
    reason: Optional[str] = None,
) -> None:
    if isinstance(old_value, enum.Enum):
        old_value = old_value.value
    if isinstance(new_value, enum.Enum):
        new_value = new_value.value
    db.add(CostEditRecord(
        cost_id=cost.id,
        edited_by=actor,
        reason=reason,
        field_changed=field_changed,
        old_value=None if old_value is None else str(old_value),
        new_value=None if new_value is None else str(new_value),
        change_type=change_type.value,
    ))


def _sync_flag_status(db: Session, trip: Trip, actor: str) -> None:
    """Move the trip between active and flagged as its flags change."""
    db.flush()
    db.refresh(trip)
    unresolved = unresolved_count(trip.costs)
    old_status = trip.status
    if unresolved and trip.status == TripStatus.ACTIVE:
        trip.status = TripStatus.FLAGGED.value
    elif not unresolved and trip.status == TripStatus.FLAGGED:
        trip.status = TripStatus.ACTIVE.value
    else:
        return
    db.add(TripEditRecord(
        trip_id=trip.id,
        edited_by=actor,
        field_changed="status",
        old_value=TripStatus(old_status).value,
        new_value=TripStatus(trip.status).value,
        change_type=TripChangeType.STATUS_CHANGE.value,
    ))


def add_cost_entry(db: Session, trip_id: str, data: Dict[str, Any], actor: str = "system") -> CostEntry:
    trip = get_trip(db, trip_id)
    cost = CostEntry(trip_id=trip.id, **data)
    if cost.is_flagged:
        cost.flagged_at = cost.flagged_at or datetime.utcnow()
        cost.investigation_status = cost.investigation_status or InvestigationStatus.PENDING.value
    db.add(cost)
    if cost.is_flagged:
        _sync_flag_status(db, trip, actor)
    db.commit()
    db.refresh(cost)
    return cost


def update_cost_entry(db: Session, trip_id: str, cost_id: str, data: Dict[str, Any], actor: str = "system") -> CostEntry:
    cost = get_cost_entry(db, trip_id, cost_id)
    for key, value in data.items():
        old_value = getattr(cost, key)
        if old_value == value:
            continue
        setattr(cost, key, value)
        _log_cost_change(db, cost, actor, key, old_value, value, CostChangeType.UPDATE)
    if cost.is_flagged and not cost.flagged_at:
        cost.flagged_at = datetime.utcnow()
        cost.investigation_status = cost.investigation_status or InvestigationStatus.PENDING.value
    if cost.investigation_status == InvestigationStatus.RESOLVED and not cost.resolved_at:
        cost.resolved_at = datetime.utcnow()
    _sync_flag_status(db, cost.trip, actor)
    db.commit()
    db.refresh(cost)
    return cost


def delete_cost_entry(db: Session, trip_id: str, cost_id: str, actor: str = "system") -> None:
    cost = get_cost_entry(db, trip_id, cost_id)
    trip = cost.trip
    db.delete(cost)
    _sync_flag_status(db, trip, actor)
    db.commit()


def flag_cost_entry(db: Session, trip_id: str, cost_id: str, actor: str, reason: Optional[str] = None) -> CostEntry:
    cost = get_cost_entry(db, trip_id, cost_id)
    was_flagged = bool(cost.is_flagged)
    cost.is_flagged = True
    cost.flag_reason = reason or cost.flag_reason
    cost.flagged_at = datetime.utcnow()
    cost.resolved_at = None
    cost.investigation_status = InvestigationStatus.PENDING.value
    _log_cost_change(db, cost, actor, "is_flagged", was_flagged, True, CostChangeType.FLAG_STATUS, reason)
    _sync_flag_status(db, cost.trip, actor)
    db.commit()
    db.refresh(cost)
    return cost


def resolve_cost_entry(db: Session, trip_id: str, cost_id: str, actor: str, notes: Optional[str] = None) -> CostEntry:
    cost = get_cost_entry(db, trip_id, cost_id)
    old_status = cost.investigation_status
    cost.investigation_status = InvestigationStatus.RESOLVED.value
    cost.investigation_notes = notes or cost.investigation_notes
    cost.resolved_at = datetime.utcnow()
    _log_cost_change(
        db,
        cost,
        actor,
        "investigation_status",
        InvestigationStatus(old_status).value if old_status else None,
        InvestigationStatus.RESOLVED.value,
        CostChangeType.INVESTIGATION,
        notes,
    )
    _sync_flag_status(db, cost.trip, actor)
    db.commit()
    db.refresh(cost)
    return cost


def add_additional_cost(db: Session, trip_id: str, data: Dict[str, Any]) -> AdditionalCost:
    trip = get_trip(db, trip_id)
    additional = AdditionalCost(trip_id=trip.id, **data)
    db.add(additional)
    db.commit()
    db.refresh(additional)
    return additional


def complete_trip(db: Session, trip_id: str, actor: str, auto: bool = False) -> Trip:
    """
    Complete a trip inside one transaction.

    The row is locked before the gate runs, so the gate sees the snapshot
    that is committed. Raises TripCompletionRejected when flags are open.
    """
    trip = get_trip(db, trip_id, for_update=True)
    old_status = getattr(trip.status, "value", trip.status) or TripStatus.ACTIVE.value
    try:
        apply_completion(trip, actor)
    except TripCompletionRejected:
        db.rollback()
        raise

    change_type = TripChangeType.AUTO_COMPLETION if auto else TripChangeType.COMPLETION
    db.add(TripEditRecord(
        trip_id=trip.id,
        edited_by=actor,
        field_changed="status",
        old_value=old_status,
        new_value=TripStatus.COMPLETED.value,
        change_type=change_type.value,
        reason="All flagged cost entries resolved" if auto else None,
    ))
    db.commit()
    db.refresh(trip)
    return trip


def auto_complete_candidates(db: Session) -> List[Trip]:
    trips = (
        db.query(Trip)
        .options(selectinload(Trip.costs))
        .filter(Trip.status == TripStatus.ACTIVE.value)
        .all()
    )
    return [trip for trip in trips if should_auto_complete(trip)]


def get_trip_history(db: Session, trip_id: str) -> List[TripEditRecord]:
    get_trip(db, trip_id)
    return (
        db.query(TripEditRecord)
        .filter(TripEditRecord.trip_id == trip_id)
        .order_by(TripEditRecord.edited_at)
        .all()
    )
