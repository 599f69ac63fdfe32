"""Session type model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from practice_scheduler.database import Base


class SessionType(Base):
    """Represents a bookable service and its duration."""
    __tablename__ = "session_types"

    id = Column(Integer, primary_key=True)
    practitioner_id = Column(Integer, ForeignKey("practitioners.id"), index=True)
    name = Column(String)
    duration_minutes = Column(Integer, nullable=False)
    price_cents = Column(Integer, default=0)
    description = Column(String)
