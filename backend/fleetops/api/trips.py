"""
Trip API endpoints.
"""
import logging
import traceback
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from fleetops.db.database import get_db
from fleetops.schemas.trip import (
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
from fleetops.services import trip_service
from fleetops.services.completion_gate import TripCompletionRejected, evaluate_completion, should_auto_complete
from fleetops.services.flag_tracker import collect_flagged_costs, flagged_count, unresolved_count
from fleetops.services.kpi_calculator import calculate_kpis
from fleetops.services.trip_dashboard import TripFilters, build_dashboard, filter_trips

logger = logging.getLogger(__name__)
router = APIRouter()


def _internal_error(db: Session, action: str, e: Exception) -> HTTPException:
    db.rollback()
    logger.error(f"Error {action}: {str(e)}")
    logger.error(f"Traceback: {traceback.format_exc()}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed {action}: {str(e)}"
    )


def _not_found(e: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    db: Session = Depends(get_db)
):
    """Create a new trip. New trips always start active."""
    try:
        if not trip_data.fleet_number.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Fleet number cannot be empty"
            )
        data = trip_data.model_dump()
        data["fleet_number"] = data["fleet_number"].strip().upper()
        return trip_service.create_trip(db, data)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error(db, "creating trip", e)


@router.get("/", response_model=List[TripResponse])
async def list_trips(
    client: Optional[str] = None,
    driver: Optional[str] = None,
    currency: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """List trips, newest first."""
    filters = TripFilters(
        start_date=start_date,
        end_date=end_date,
        client=client,
        currency=currency,
        driver=driver,
        status=status_filter,
    )
    return filter_trips(trip_service.list_trips(db), filters)


@router.get("/dashboard")
async def get_dashboard(
    client: Optional[str] = None,
    driver: Optional[str] = None,
    currency: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """Trip totals per currency, flag statistics and driver breakdown."""
    filters = TripFilters(
        start_date=start_date,
        end_date=end_date,
        client=client,
        currency=currency,
        driver=driver,
    )
    return build_dashboard(trip_service.list_trips(db), filters)


@router.get("/flagged-costs", response_model=List[FlaggedCostResponse])
async def list_flagged_costs(db: Session = Depends(get_db)):
    """All flagged cost entries, pending investigations first."""
    return [
        FlaggedCostResponse.model_validate(item)
        for item in collect_flagged_costs(trip_service.list_trips(db))
    ]


@router.get("/auto-complete-candidates", response_model=List[TripResponse])
async def list_auto_complete_candidates(db: Session = Depends(get_db)):
    """Active trips whose flagged costs have all been resolved."""
    return trip_service.auto_complete_candidates(db)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: str,
    db: Session = Depends(get_db)
):
    try:
        return trip_service.get_trip(db, trip_id)
    except ValueError as e:
        raise _not_found(e)


@router.get("/{trip_id}/kpis", response_model=TripKPIResponse)
async def get_trip_kpis(
    trip_id: str,
    db: Session = Depends(get_db)
):
    try:
        trip = trip_service.get_trip(db, trip_id)
    except ValueError as e:
        raise _not_found(e)
    return TripKPIResponse(trip_id=trip.id, **calculate_kpis(trip).to_dict())


@router.get("/{trip_id}/flags", response_model=TripFlagStatus)
async def get_trip_flags(
    trip_id: str,
    db: Session = Depends(get_db)
):
    try:
        trip = trip_service.get_trip(db, trip_id)
    except ValueError as e:
        raise _not_found(e)
    return TripFlagStatus(
        trip_id=trip.id,
        status=trip.status,
        flagged_count=flagged_count(trip.costs),
        unresolved_count=unresolved_count(trip.costs),
        can_complete=evaluate_completion(trip).allowed,
        should_auto_complete=should_auto_complete(trip),
    )


@router.post("/{trip_id}/costs", response_model=CostEntryResponse, status_code=status.HTTP_201_CREATED)
async def add_cost_entry(
    trip_id: str,
    cost_data: CostEntryCreate,
    db: Session = Depends(get_db)
):
    try:
        return trip_service.add_cost_entry(db, trip_id, cost_data.model_dump(exclude_none=True))
    except ValueError as e:
        raise _not_found(e)
    except Exception as e:
        raise _internal_error(db, "adding cost entry", e)


@router.patch("/{trip_id}/costs/{cost_id}", response_model=CostEntryResponse)
async def update_cost_entry(
    trip_id: str,
    cost_id: str,
    cost_data: CostEntryUpdate,
    db: Session = Depends(get_db)
):
    data = cost_data.model_dump(exclude_unset=True)
    actor = data.pop("edited_by", cost_data.edited_by)
    try:
        return trip_service.update_cost_entry(db, trip_id, cost_id, data, actor)
    except ValueError as e:
        raise _not_found(e)
    except Exception as e:
        raise _internal_error(db, "updating cost entry", e)


@router.delete("/{trip_id}/costs/{cost_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cost_entry(
    trip_id: str,
    cost_id: str,
    db: Session = Depends(get_db)
):
    try:
        trip_service.delete_cost_entry(db, trip_id, cost_id)
    except ValueError as e:
        raise _not_found(e)
    except Exception as e:
        raise _internal_error(db, "deleting cost entry", e)


@router.post("/{trip_id}/costs/{cost_id}/flag", response_model=CostEntryResponse)
async def flag_cost_entry(
    trip_id: str,
    cost_id: str,
    request: FlagCostRequest,
    db: Session = Depends(get_db)
):
    """Flag a cost entry for investigation."""
    try:
        return trip_service.flag_cost_entry(db, trip_id, cost_id, request.flagged_by, request.reason)
    except ValueError as e:
        raise _not_found(e)
    except Exception as e:
        raise _internal_error(db, "flagging cost entry", e)


@router.post("/{trip_id}/costs/{cost_id}/resolve", response_model=CostEntryResponse)
async def resolve_cost_entry(
    trip_id: str,
    cost_id: str,
    request: ResolveCostRequest,
    db: Session = Depends(get_db)
):
    """Mark the investigation on a flagged cost entry as resolved."""
    try:
        return trip_service.resolve_cost_entry(db, trip_id, cost_id, request.resolved_by, request.notes)
    except ValueError as e:
        raise _not_found(e)
    except Exception as e:
        raise _internal_error(db, "resolving cost entry", e)


@router.post("/{trip_id}/additional-costs", response_model=AdditionalCostResponse, status_code=status.HTTP_201_CREATED)
async def add_additional_cost(
    trip_id: str,
    cost_data: AdditionalCostCreate,
    db: Session = Depends(get_db)
):
    try:
        return trip_service.add_additional_cost(db, trip_id, cost_data.model_dump())
    except ValueError as e:
        raise _not_found(e)
    except Exception as e:
        raise _internal_error(db, "adding additional cost", e)


@router.post("/{trip_id}/complete", response_model=TripResponse)
async def complete_trip(
    trip_id: str,
    request: CompleteTripRequest,
    db: Session = Depends(get_db)
):
    """
    Complete a trip.

    Returns 409 with the rejection reason while flagged cost entries are
    unresolved or when the trip is already completed.
    """
    try:
        return trip_service.complete_trip(db, trip_id, request.completed_by, auto=request.auto)
    except TripCompletionRejected as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.reason)
    except ValueError as e:
        raise _not_found(e)
    except Exception as e:
        raise _internal_error(db, "completing trip", e)


@router.get("/{trip_id}/history", response_model=List[TripEditRecordResponse])
async def get_trip_history(
    trip_id: str,
    db: Session = Depends(get_db)
):
    try:
        return trip_service.get_trip_history(db, trip_id)
    except ValueError as e:
        raise _not_found(e)
