"""Practitioner model definitions."""

from sqlalchemy import JSON, Column, Integer, String
from practice_scheduler.database import Base


class Practitioner(Base):
    """Owner of a weekly schedule; exactly one per calendar."""
    __tablename__ = "practitioners"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    full_name = Column(String)
    business_name = Column(String)
    timezone = Column(String, default="UTC")
    schedule_config = Column(JSON)  # serialized WeeklyAvailability
