"""Time block model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from practice_scheduler.database import Base


class TimeBlock(Base):
    """Represents practitioner-declared unavailable time."""
    __tablename__ = "time_blocks"

    id = Column(Integer, primary_key=True)
    practitioner_id = Column(Integer, ForeignKey("practitioners.id"), index=True)
    title = Column(String)
    starts_at = Column(DateTime, nullable=False)
    ends_at = Column(DateTime, nullable=False)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
