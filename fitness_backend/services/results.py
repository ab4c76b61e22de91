"""Result types returned by the scheduler."""

import enum
from dataclasses import dataclass, field

from fitness_backend.models.appointment import Appointment


class Outcome(str, enum.Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    OUT_OF_HOURS = "out_of_hours"
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class SchedulingResult:
    """Outcome of a scheduler operation.

    Business-rule failures are reported through ``outcome`` and ``reason``
    instead of being raised; callers turn them into user-facing messages.
    """

    outcome: Outcome
    appointment: Appointment | None = None
    appointments: list[Appointment] = field(default_factory=list)
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @classmethod
    def success(cls, appointment: Appointment | None = None, appointments: list[Appointment] | None = None):
        return cls(Outcome.SUCCESS, appointment=appointment, appointments=appointments or [])

    @classmethod
    def conflict(cls, reason: str):
        return cls(Outcome.CONFLICT, reason=reason)

    @classmethod
    def out_of_hours(cls, reason: str):
        return cls(Outcome.OUT_OF_HOURS, reason=reason)

    @classmethod
    def invalid(cls, reason: str):
        return cls(Outcome.INVALID_REQUEST, reason=reason)

    @classmethod
    def not_found(cls, reason: str):
        return cls(Outcome.NOT_FOUND, reason=reason)


class StorageFailure(Exception):
    """The appointment store could not be read or written."""

    def __init__(self, operation: str):
        super().__init__(f"Appointment store failure during {operation}.")
        self.operation = operation
