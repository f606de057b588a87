"""
Edit history models - audit trail for trip and cost entry changes.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from fleetops.db.database import Base
from fleetops.models.trip import _enum_column


class TripChangeType(str, enum.Enum):
    UPDATE = "update"
    STATUS_CHANGE = "status_change"
    COMPLETION = "completion"
    AUTO_COMPLETION = "auto_completion"


class CostChangeType(str, enum.Enum):
    UPDATE = "update"
    FLAG_STATUS = "flag_status"
    INVESTIGATION = "investigation"


class TripEditRecord(Base):
    __tablename__ = "trip_edit_records"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    trip_id = Column(String, ForeignKey("trips.id"), nullable=False, index=True)
    edited_by = Column(String, nullable=False)
    edited_at = Column(DateTime, default=datetime.utcnow)
    reason = Column(Text, nullable=True)
    field_changed = Column(String, nullable=False)
    old_value = Column(String, nullable=True)
    new_value = Column(String, nullable=True)
    change_type = _enum_column(TripChangeType, nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="edit_records")


class CostEditRecord(Base):
    __tablename__ = "cost_edit_records"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    cost_id = Column(String, ForeignKey("cost_entries.id"), nullable=False, index=True)
    edited_by = Column(String, nullable=False)
    edited_at = Column(DateTime, default=datetime.utcnow)
    reason = Column(Text, nullable=True)
    field_changed = Column(String, nullable=False)
    old_value = Column(String, nullable=True)
    new_value = Column(String, nullable=True)
    change_type = _enum_column(CostChangeType, nullable=False)

    # Relationships
    cost_entry = relationship("CostEntry", back_populates="edit_records")
