"""
Diesel models - fuel-fill events and per-fleet consumption norms.
"""
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Numeric, Boolean, Text
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from fleetops.db.database import Base
from fleetops.models.trip import Currency, _enum_column


class DieselRecord(Base):
    __tablename__ = "diesel_records"

    id = Column(String, primary_key=True, default=lambda: f"D{uuid.uuid4().hex[:12]}")
    fleet_number = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    driver_name = Column(String, nullable=False)
    fuel_station = Column(String, nullable=True)

    km_reading = Column(Numeric(12, 2), nullable=False)
    previous_km_reading = Column(Numeric(12, 2), nullable=True)
    litres_filled = Column(Numeric(10, 2), nullable=False)
    total_cost = Column(Numeric(12, 2), nullable=False)
    currency = _enum_column(Currency, default=Currency.ZAR.value)

    # Stored derivations; the evaluator recomputes when missing or zero
    cost_per_litre = Column(Numeric(10, 4), nullable=True)
    distance_travelled = Column(Numeric(12, 2), nullable=True)
    km_per_litre = Column(Numeric(10, 4), nullable=True)

    trip_id = Column(String, ForeignKey("trips.id"), nullable=True, index=True)

    # Tank probe reconciliation
    probe_reading = Column(Numeric(10, 2), nullable=True)
    probe_discrepancy = Column(Numeric(10, 2), nullable=True)
    probe_verified = Column(Boolean, default=False)
    probe_verified_at = Column(DateTime, nullable=True)
    probe_verified_by = Column(String, nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    trip = relationship("Trip", back_populates="diesel_records")


class DieselNorm(Base):
    __tablename__ = "diesel_norms"

    fleet_number = Column(String, primary_key=True)
    expected_km_per_litre = Column(Numeric(6, 3), nullable=False)
    tolerance_percentage = Column(Numeric(6, 2), nullable=False)
    last_updated = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    updated_by = Column(String, nullable=True)
