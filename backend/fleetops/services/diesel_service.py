"""
Diesel service - diesel record and norm persistence feeding the evaluator.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from fleetops.config.fleet_config import FleetConfig
from fleetops.models import DieselRecord, DieselNorm, Trip
from fleetops.services.diesel_evaluator import (
    EvaluatedDieselRecord,
    evaluate_diesel_records,
)
from fleetops.services.fleet_aggregator import (
    DieselFilters,
    debrief_summary,
    filter_records,
    fleet_breakdown,
    summarize_fleet,
)
from fleetops.services.safe_math import to_float, to_optional_float

logger = logging.getLogger(__name__)

# Edits to these fields invalidate any imported km/L or cost/L
RATE_INPUTS = frozenset({"km_reading", "previous_km_reading", "litres_filled", "total_cost"})


def get_diesel_record(db: Session, record_id: str) -> DieselRecord:
    record = db.query(DieselRecord).filter(DieselRecord.id == record_id).first()
    if not record:
        raise ValueError(f"Diesel record {record_id} not found")
    return record


def _require_trip(db: Session, trip_id: str) -> Trip:
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise ValueError(f"Trip {trip_id} not found")
    return trip


def _refresh_stored_derivations(record: DieselRecord, overwrite: bool = True) -> None:
    """
    Recompute stored distance and probe discrepancy.

    With ``overwrite`` false only missing values are filled in, so imported
    figures survive record creation.

    Rates (km/L, cost/L) are never derived here. The columns round to four
    places and the evaluator prefers a stored rate, so only imported rates
    are kept and everything else is computed at full precision on read.
    """
    km_reading = to_optional_float(record.km_reading)
    previous = to_optional_float(record.previous_km_reading)
    litres = to_float(record.litres_filled)

    if km_reading is not None and previous is not None and (overwrite or record.distance_travelled is None):
        record.distance_travelled = km_reading - previous

    probe_reading = to_optional_float(record.probe_reading)
    if probe_reading is not None:
        record.probe_discrepancy = litres - probe_reading
    elif overwrite:
        record.probe_discrepancy = None


def create_diesel_record(db: Session, data: Dict[str, Any]) -> DieselRecord:
    if data.get("trip_id"):
        _require_trip(db, data["trip_id"])
    record = DieselRecord(**data)
    _refresh_stored_derivations(record, overwrite=False)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Diesel record %s created for fleet %s", record.id, record.fleet_number)
    return record


def update_diesel_record(db: Session, record_id: str, data: Dict[str, Any]) -> DieselRecord:
    record = get_diesel_record(db, record_id)
    if data.get("trip_id"):
        _require_trip(db, data["trip_id"])
    if "previous_km_reading" in data or "km_reading" in data:
        # Odometer changes invalidate any imported distance
        record.distance_travelled = None
    if RATE_INPUTS.intersection(data):
        record.km_per_litre = None
        record.cost_per_litre = None
    for key, value in data.items():
        setattr(record, key, value)
    _refresh_stored_derivations(record)
    if "probe_reading" in data:
        record.probe_verified = data["probe_reading"] is not None
    db.commit()
    db.refresh(record)
    return record


def delete_diesel_record(db: Session, record_id: str) -> None:
    record = get_diesel_record(db, record_id)
    db.delete(record)
    db.commit()


def link_to_trip(db: Session, record_id: str, trip_id: str) -> DieselRecord:
    record = get_diesel_record(db, record_id)
    trip = _require_trip(db, trip_id)
    record.trip_id = trip.id
    db.commit()
    db.refresh(record)
    logger.info("Diesel record %s linked to trip %s", record.id, trip.id)
    return record


def verify_probe(
    db: Session,
    record_id: str,
    actor: str,
    probe_reading: Optional[float] = None,
) -> DieselRecord:
    record = get_diesel_record(db, record_id)
    if probe_reading is not None:
        record.probe_reading = probe_reading
    _refresh_stored_derivations(record, overwrite=False)
    record.probe_verified = True
    record.probe_verified_at = datetime.utcnow()
    record.probe_verified_by = actor
    db.commit()
    db.refresh(record)
    return record


def list_norms(db: Session) -> List[DieselNorm]:
    return db.query(DieselNorm).order_by(DieselNorm.fleet_number).all()


def upsert_norm(
    db: Session,
    fleet_number: str,
    expected_km_per_litre: float,
    tolerance_percentage: float,
    updated_by: str,
) -> DieselNorm:
    norm = db.query(DieselNorm).filter(DieselNorm.fleet_number == fleet_number).first()
    if not norm:
        norm = DieselNorm(fleet_number=fleet_number)
        db.add(norm)
    norm.expected_km_per_litre = expected_km_per_litre
    norm.tolerance_percentage = tolerance_percentage
    norm.updated_by = updated_by
    norm.last_updated = datetime.utcnow()
    db.commit()
    db.refresh(norm)
    logger.info("Diesel norm for %s set to %.2f km/L +/- %.1f%% by %s",
                fleet_number, expected_km_per_litre, tolerance_percentage, updated_by)
    return norm


def evaluate_record(db: Session, record: DieselRecord, config: FleetConfig) -> EvaluatedDieselRecord:
    return evaluate_diesel_records([record], list_norms(db), config)[0]


def load_evaluated_records(
    db: Session,
    config: FleetConfig,
    filters: Optional[DieselFilters] = None,
) -> List[EvaluatedDieselRecord]:
    records = db.query(DieselRecord).order_by(DieselRecord.date.desc(), DieselRecord.created_at.desc()).all()
    evaluated = evaluate_diesel_records(records, list_norms(db), config)
    return filter_records(evaluated, filters, config.probe_discrepancy_threshold)


def build_fleet_report(
    db: Session,
    config: FleetConfig,
    filters: Optional[DieselFilters] = None,
) -> Dict[str, Any]:
    records = load_evaluated_records(db, config, filters)
    return {
        "summary": summarize_fleet(records).to_dict(),
        "fleet_breakdown": fleet_breakdown(records),
    }


def build_debrief_report(
    db: Session,
    config: FleetConfig,
    filters: Optional[DieselFilters] = None,
) -> Dict[str, Any]:
    records = [r for r in load_evaluated_records(db, config, filters) if r.requires_debrief]
    return {
        "records": records,
        "summary": debrief_summary(records, config.critical_variance_percentage).to_dict(),
    }
