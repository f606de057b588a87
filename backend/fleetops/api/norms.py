"""
Diesel norm API endpoints.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from fleetops.db.database import get_db
from fleetops.schemas.diesel import DieselNormUpsert, DieselNormResponse
from fleetops.services import diesel_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=List[DieselNormResponse])
async def list_norms(db: Session = Depends(get_db)):
    """List configured per-fleet diesel norms."""
    return diesel_service.list_norms(db)


@router.put("/{fleet_number}", response_model=DieselNormResponse)
async def upsert_norm(
    fleet_number: str,
    norm_data: DieselNormUpsert,
    db: Session = Depends(get_db)
):
    """Create or replace the norm for one fleet."""
    fleet_number = fleet_number.strip().upper()
    if not fleet_number:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Fleet number cannot be empty"
        )
    try:
        return diesel_service.upsert_norm(
            db,
            fleet_number,
            norm_data.expected_km_per_litre,
            norm_data.tolerance_percentage,
            norm_data.updated_by,
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving diesel norm for {fleet_number}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save diesel norm: {str(e)}"
        )
