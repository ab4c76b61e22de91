"""Service catalog model definitions."""

from sqlalchemy import Column, Integer, Numeric, String
from fitness_backend.database import Base


class Service(Base):
    """A bookable service such as yoga, pilates or personal training."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    name = Column(String(100))
    duration_minutes = Column(Integer, nullable=False)
    fee = Column(Numeric(10, 2), nullable=False)
    description = Column(String(500))
