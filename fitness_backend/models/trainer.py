"""Trainer model definitions."""

from dataclasses import dataclass
from datetime import datetime, time

from sqlalchemy import Column, Integer, String, Time
from fitness_backend.database import Base


@dataclass(frozen=True)
class WorkingHours:
    """Daily time-of-day window a trainer accepts bookings in."""

    start: time
    end: time

    def contains(self, moment: time) -> bool:
        return self.start <= moment <= self.end

    def covers(self, start_time: datetime, end_time: datetime) -> bool:
        # A window is a single-day range, so intervals spilling past midnight never fit.
        if end_time.date() != start_time.date():
            return False
        return self.contains(start_time.time()) and self.contains(end_time.time())

    def describe(self) -> str:
        return f"{self.start:%H:%M} - {self.end:%H:%M}"


class Trainer(Base):
    """Represents a trainer working at the fitness center."""
    __tablename__ = "trainers"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(50))
    last_name = Column(String(50))
    specialties = Column(String(200))
    phone = Column(String(20))
    email = Column(String(100))
    work_start = Column(Time, nullable=True)
    work_end = Column(Time, nullable=True)

    @property
    def working_hours(self) -> WorkingHours | None:
        if self.work_start is None or self.work_end is None:
            return None
        return WorkingHours(start=self.work_start, end=self.work_end)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
