"""Appointment model definitions."""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship
from fitness_backend.database import Base


class AppointmentStatus(str, enum.Enum):
    """Booking lifecycle states, stored with their Turkish display labels."""

    PENDING = "Beklemede"
    APPROVED = "Onaylandı"
    REJECTED = "Reddedildi"
    CANCELLED = "İptal Edildi"

    @classmethod
    def parse(cls, value: str) -> "AppointmentStatus":
        normalized = (value or "").strip()
        if normalized in _STATUS_ALIASES:
            return _STATUS_ALIASES[normalized]
        lowered = normalized.lower()
        for status in cls:
            if lowered in {status.name.lower(), status.value.lower()}:
                return status
        raise ValueError(f"Unknown appointment status: {value!r}")


_STATUS_ALIASES = {
    "Onaylı": AppointmentStatus.APPROVED,
}

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.APPROVED, AppointmentStatus.REJECTED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.APPROVED: frozenset({AppointmentStatus.CANCELLED}),
    AppointmentStatus.REJECTED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Appointment(Base):
    """Represents a member's booking with a trainer for a service."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    fee = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(
            AppointmentStatus,
            name="appointment_status",
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    created_at = Column(DateTime, default=utc_now)

    member = relationship("Member")
    trainer = relationship("Trainer")
    service = relationship("Service")
