"""
Trip model - one logistics job with its cost entries.
"""
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Numeric, Boolean, Text, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from fleetops.db.database import Base


class TripStatus(str, enum.Enum):
    ACTIVE = "active"
    FLAGGED = "flagged"
    COMPLETED = "completed"


class Currency(str, enum.Enum):
    USD = "USD"
    ZAR = "ZAR"


class ClientType(str, enum.Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class InvestigationStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


def _enum_column(enum_cls, **kwargs):
    return Column(
        SQLEnum(
            enum_cls,
            native_enum=False,
            values_callable=lambda cls: [member.value for member in cls],
            validate_strings=True,
        ),
        **kwargs,
    )


def _new_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"


class Trip(Base):
    __tablename__ = "trips"

    id = Column(String, primary_key=True, default=lambda: _new_id("trip_"))
    driver_name = Column(String, nullable=False)
    fleet_number = Column(String, nullable=False, index=True)
    client_name = Column(String, nullable=False)
    route = Column(String, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    base_revenue = Column(Numeric(12, 2), default=0)
    revenue_currency = _enum_column(Currency, default=Currency.ZAR.value)
    distance_km = Column(Numeric(10, 2), default=0)
    client_type = _enum_column(ClientType, default=ClientType.EXTERNAL.value)
    status = _enum_column(TripStatus, default=TripStatus.ACTIVE.value)
    investigation_notes = Column(Text, nullable=True)

    completed_at = Column(DateTime, nullable=True)
    completed_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    costs = relationship(
        "CostEntry",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="CostEntry.created_at",
    )
    additional_costs = relationship("AdditionalCost", back_populates="trip", cascade="all, delete-orphan")
    edit_records = relationship("TripEditRecord", back_populates="trip", cascade="all, delete-orphan")
    diesel_records = relationship("DieselRecord", back_populates="trip")


class CostEntry(Base):
    __tablename__ = "cost_entries"

    id = Column(String, primary_key=True, default=lambda: _new_id("C"))
    trip_id = Column(String, ForeignKey("trips.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    category = Column(String, nullable=False)  # "Fuel", "Tolls", "Fines", ...
    reference_number = Column(String, nullable=True)

    # Investigation state - only flagged entries can be unresolved
    is_flagged = Column(Boolean, default=False)
    is_system_generated = Column(Boolean, default=False)
    investigation_status = _enum_column(InvestigationStatus, nullable=True)
    investigation_notes = Column(Text, nullable=True)
    flag_reason = Column(String, nullable=True)
    flagged_at = Column(DateTime, nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    attachments = Column(JSON, nullable=True)  # Opaque upload references
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    trip = relationship("Trip", back_populates="costs")
    edit_records = relationship("CostEditRecord", back_populates="cost_entry", cascade="all, delete-orphan")


class AdditionalCost(Base):
    __tablename__ = "additional_costs"

    id = Column(String, primary_key=True, default=lambda: _new_id("AC"))
    trip_id = Column(String, ForeignKey("trips.id"), nullable=False, index=True)
    cost_type = Column(String, nullable=False)  # "demurrage", "clearing_fees", "toll_charges", ...
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    trip = relationship("Trip", back_populates="additional_costs")
