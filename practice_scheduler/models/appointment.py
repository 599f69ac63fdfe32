"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from practice_scheduler.database import Base


class Appointment(Base):
    """Represents a scheduled appointment."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    practitioner_id = Column(Integer, ForeignKey("practitioners.id"), index=True)
    client_id = Column(Integer, ForeignKey("clients.id"))
    session_type_id = Column(Integer, ForeignKey("session_types.id"))
    starts_at = Column(DateTime, nullable=False)
    ends_at = Column(DateTime, nullable=False)
    status = Column(String, default="requested")
    series_id = Column(Integer, ForeignKey("series.id"))
    session_number = Column(Integer)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
