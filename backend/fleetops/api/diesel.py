"""
Diesel record API endpoints.
"""
import logging
import traceback
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from fleetops.config.fleet_config import FleetConfig, get_fleet_config, normalize_fleet_number
from fleetops.db.database import get_db
from fleetops.schemas.diesel import (
    DieselRecordCreate,
    DieselRecordUpdate,
    EvaluatedDieselRecordResponse,
    LinkTripRequest,
    ProbeVerificationRequest,
    FleetReportResponse,
    DebriefReportResponse,
)
from fleetops.services import diesel_service
from fleetops.services.fleet_aggregator import DieselFilters, ProbeStatusFilter

logger = logging.getLogger(__name__)
router = APIRouter()


def get_diesel_filters(
    fleet_number: Optional[str] = None,
    driver_name: Optional[str] = None,
    record_date: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    currency: Optional[str] = None,
    probe_status: Optional[ProbeStatusFilter] = None,
) -> DieselFilters:
    return DieselFilters(
        fleet_number=normalize_fleet_number(fleet_number) or None,
        driver_name=driver_name,
        date=record_date,
        start_date=start_date,
        end_date=end_date,
        currency=currency,
        probe_status=probe_status,
    )


@router.post("/records", response_model=EvaluatedDieselRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_diesel_record(
    record_data: DieselRecordCreate,
    db: Session = Depends(get_db),
    config: FleetConfig = Depends(get_fleet_config)
):
    """Create a diesel record and return it evaluated against its fleet norm."""
    try:
        data = record_data.model_dump()
        data["fleet_number"] = data["fleet_number"].strip().upper()
        logger.info(f"Creating diesel record: fleet_number={data['fleet_number']}, date={data['date']}")
        record = diesel_service.create_diesel_record(db, data)
        return diesel_service.evaluate_record(db, record, config)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating diesel record: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create diesel record: {str(e)}"
        )


@router.get("/records", response_model=List[EvaluatedDieselRecordResponse])
async def list_diesel_records(
    filters: DieselFilters = Depends(get_diesel_filters),
    db: Session = Depends(get_db),
    config: FleetConfig = Depends(get_fleet_config)
):
    """List evaluated diesel records, newest first."""
    return diesel_service.load_evaluated_records(db, config, filters)


@router.get("/records/{record_id}", response_model=EvaluatedDieselRecordResponse)
async def get_diesel_record(
    record_id: str,
    db: Session = Depends(get_db),
    config: FleetConfig = Depends(get_fleet_config)
):
    try:
        record = diesel_service.get_diesel_record(db, record_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return diesel_service.evaluate_record(db, record, config)


@router.patch("/records/{record_id}", response_model=EvaluatedDieselRecordResponse)
async def update_diesel_record(
    record_id: str,
    record_data: DieselRecordUpdate,
    db: Session = Depends(get_db),
    config: FleetConfig = Depends(get_fleet_config)
):
    """Update a diesel record and return it re-evaluated."""
    try:
        record = diesel_service.update_diesel_record(db, record_id, record_data.model_dump(exclude_unset=True))
        return diesel_service.evaluate_record(db, record, config)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating diesel record {record_id}: {str(e)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update diesel record: {str(e)}"
        )


@router.delete("/records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_diesel_record(
    record_id: str,
    db: Session = Depends(get_db)
):
    try:
        diesel_service.delete_diesel_record(db, record_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/records/{record_id}/link-trip", response_model=EvaluatedDieselRecordResponse)
async def link_diesel_record_to_trip(
    record_id: str,
    request: LinkTripRequest,
    db: Session = Depends(get_db),
    config: FleetConfig = Depends(get_fleet_config)
):
    try:
        record = diesel_service.link_to_trip(db, record_id, request.trip_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return diesel_service.evaluate_record(db, record, config)


@router.post("/records/{record_id}/verify-probe", response_model=EvaluatedDieselRecordResponse)
async def verify_probe_reading(
    record_id: str,
    request: ProbeVerificationRequest,
    db: Session = Depends(get_db),
    config: FleetConfig = Depends(get_fleet_config)
):
    """Mark the probe reading on a record as verified."""
    try:
        record = diesel_service.get_diesel_record(db, record_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if not config.has_probe(record.fleet_number):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Fleet {record.fleet_number} has no fuel probe"
        )
    record = diesel_service.verify_probe(db, record_id, request.verified_by, request.probe_reading)
    return diesel_service.evaluate_record(db, record, config)


@router.get("/summary", response_model=FleetReportResponse)
async def get_fleet_summary(
    filters: DieselFilters = Depends(get_diesel_filters),
    db: Session = Depends(get_db),
    config: FleetConfig = Depends(get_fleet_config)
):
    """Fleet-wide totals plus per-fleet breakdown for the filtered records."""
    return diesel_service.build_fleet_report(db, config, filters)


@router.get("/debriefs", response_model=DebriefReportResponse)
async def get_debriefs(
    filters: DieselFilters = Depends(get_diesel_filters),
    db: Session = Depends(get_db),
    config: FleetConfig = Depends(get_fleet_config)
):
    """Records whose efficiency falls outside tolerance."""
    return diesel_service.build_debrief_report(db, config, filters)
