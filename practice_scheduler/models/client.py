"""Client model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from practice_scheduler.database import Base


class Client(Base):
    """Represents a person who books appointments with a practitioner."""
    __tablename__ = "clients"
    __table_args__ = (UniqueConstraint("practitioner_id", "email", name="uq_clients_practitioner_email"),)

    id = Column(Integer, primary_key=True)
    practitioner_id = Column(Integer, ForeignKey("practitioners.id"), index=True)
    first_name = Column(String)
    last_name = Column(String)
    email = Column(String, index=True)
    phone = Column(String)
