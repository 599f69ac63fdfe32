"""Treatment series model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from practice_scheduler.database import Base


class TreatmentSeries(Base):
    """A planned course of numbered sessions."""
    __tablename__ = "series"

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("clients.id"))
    practitioner_id = Column(Integer, ForeignKey("practitioners.id"), index=True)
    total_sessions = Column(Integer, nullable=False)
    current_session = Column(Integer, default=0)
    status = Column(String, default="active")
    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime)
