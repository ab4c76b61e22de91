"""Appointment booking engine.

Owns every appointment state change: creation with validation, conflict
detection against a trainer's other bookings, cancellation, approval and
rejection. Business-rule failures come back as ``SchedulingResult`` values;
only ``StorageFailure`` is raised.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone
from threading import Lock

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fitness_backend.models.appointment import Appointment, AppointmentStatus, can_transition, utc_now
from fitness_backend.models.trainer import Trainer
from fitness_backend.services import directory
from fitness_backend.services.results import SchedulingResult, StorageFailure

logger = logging.getLogger(__name__)

_trainer_locks: dict[int, Lock] = {}
_trainer_locks_guard = Lock()


def trainer_booking_lock(trainer_id: int) -> Lock:
    """Return the process-wide lock serializing bookings for one trainer.

    Callers must only ask for trainers that exist; the map is never pruned.
    """
    with _trainer_locks_guard:
        return _trainer_locks.setdefault(trainer_id, Lock())


@contextmanager
def storage_boundary(db: Session, operation: str):
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Appointment store failure during %s.', operation)
        raise StorageFailure(operation) from exc


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    day_start = datetime.combine(day, time.min)
    return day_start, day_start + timedelta(days=1)


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def has_conflicting_appointment(
    db: Session,
    trainer_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_appointment_id: int | None = None,
) -> bool:
    """Half-open overlap test against the trainer's non-cancelled appointments."""
    with storage_boundary(db, 'conflict check'):
        query = db.query(Appointment.id).filter(
            Appointment.trainer_id == trainer_id,
            Appointment.status != AppointmentStatus.CANCELLED,
            Appointment.start_time < end_time,
            Appointment.end_time > start_time,
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        conflict = query.first() is not None

    if conflict:
        logger.warning(
            'Trainer %s already has an appointment between %s and %s.',
            trainer_id,
            start_time,
            end_time,
        )

    return conflict


def create_appointment(
    db: Session,
    *,
    member_id: int,
    trainer_id: int,
    service_id: int,
    start_time: datetime,
    now: datetime | None = None,
) -> SchedulingResult:
    current_time = to_utc_naive(now) if now is not None else utc_now()
    start_time = to_utc_naive(start_time)

    if start_time < current_time:
        logger.info('Refused past appointment request for trainer %s at %s.', trainer_id, start_time)
        return SchedulingResult.invalid('Appointments cannot be booked in the past.')

    with storage_boundary(db, 'appointment creation'):
        result = _resolve_parties(db, member_id, trainer_id)

    if result is None:
        # Conflict check and insert run under one per-trainer lock.
        with trainer_booking_lock(trainer_id), storage_boundary(db, 'appointment creation'):
            result = _create_locked(db, member_id, trainer_id, service_id, start_time, current_time)
            if not result.ok:
                db.rollback()

    if result.ok:
        appointment = result.appointment
        logger.info(
            'Appointment %s created for member %s with trainer %s (%s - %s).',
            appointment.id,
            member_id,
            trainer_id,
            appointment.start_time,
            appointment.end_time,
        )
    else:
        logger.info('Appointment request for trainer %s refused: %s', trainer_id, result.reason)

    return result


def _resolve_parties(db: Session, member_id: int, trainer_id: int) -> SchedulingResult | None:
    if directory.get_member(db, member_id) is None:
        return SchedulingResult.not_found(f'Member {member_id} not found.')

    if directory.get_trainer(db, trainer_id) is None:
        return SchedulingResult.not_found(f'Trainer {trainer_id} not found.')

    return None


def _create_locked(
    db: Session,
    member_id: int,
    trainer_id: int,
    service_id: int,
    start_time: datetime,
    current_time: datetime,
) -> SchedulingResult:
    trainer = directory.get_trainer(db, trainer_id, for_update=True)
    if trainer is None:
        return SchedulingResult.not_found(f'Trainer {trainer_id} not found.')

    service = directory.get_service(db, service_id)
    if service is None:
        return SchedulingResult.not_found(f'Service {service_id} not found.')

    end_time = start_time + timedelta(minutes=service.duration_minutes)
    if end_time <= start_time:
        return SchedulingResult.invalid('Appointment start must be before its end.')

    if has_conflicting_appointment(db, trainer_id, start_time, end_time):
        return SchedulingResult.conflict(
            'The trainer already has an appointment in this time range. Please choose another time.'
        )

    working_hours = trainer.working_hours
    if working_hours is not None and not working_hours.covers(start_time, end_time):
        return SchedulingResult.out_of_hours(f'The trainer works between {working_hours.describe()}.')

    appointment = Appointment(
        member_id=member_id,
        trainer_id=trainer_id,
        service_id=service_id,
        start_time=start_time,
        end_time=end_time,
        fee=service.fee,
        status=AppointmentStatus.PENDING,
        created_at=current_time,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)

    return SchedulingResult.success(appointment)


def is_trainer_available(db: Session, trainer_id: int, instant: datetime) -> bool:
    """Coarse whole-day availability check.

    True when ``instant`` falls inside the trainer's working hours and the
    trainer has no non-cancelled appointment starting on the same date. It is
    looser than the interval test used when booking and guarantees nothing
    about a specific slot.
    """
    instant = to_utc_naive(instant)

    with storage_boundary(db, 'availability check'):
        trainer = directory.get_trainer(db, trainer_id)
        if trainer is None:
            return False

        working_hours = trainer.working_hours
        if working_hours is not None and not working_hours.contains(instant.time()):
            return False

        day_start, day_end = _day_bounds(instant.date())
        booked = db.query(Appointment.id).filter(
            Appointment.trainer_id == trainer_id,
            Appointment.status != AppointmentStatus.CANCELLED,
            Appointment.start_time >= day_start,
            Appointment.start_time < day_end,
        ).first()

    return booked is None


def list_available_trainers(db: Session, day: date) -> list[Trainer]:
    day_start, day_end = _day_bounds(_as_date(day))

    with storage_boundary(db, 'available trainer listing'):
        busy_trainer_ids = select(Appointment.trainer_id).where(
            Appointment.status != AppointmentStatus.CANCELLED,
            Appointment.start_time >= day_start,
            Appointment.start_time < day_end,
        )
        trainers = db.query(Trainer).filter(
            Trainer.id.not_in(busy_trainer_ids),
        ).order_by(Trainer.first_name.asc()).all()

    logger.info('%s trainers available on %s.', len(trainers), day_start.date())
    return trainers


def _change_status(db: Session, appointment_id: int, target: AppointmentStatus, operation: str) -> SchedulingResult:
    with storage_boundary(db, operation):
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()

        if appointment is None:
            logger.warning('Appointment %s not found.', appointment_id)
            return SchedulingResult.not_found(f'Appointment {appointment_id} not found.')

        current = appointment.status
        if current == target:
            return SchedulingResult.success(appointment)

        if not can_transition(current, target):
            logger.warning(
                'Refused to move appointment %s from %s to %s.',
                appointment_id,
                current.value,
                target.value,
            )
            return SchedulingResult.invalid(
                f'An appointment that is {current.value} cannot become {target.value}.'
            )

        appointment.status = target
        db.commit()
        db.refresh(appointment)

    logger.info('Appointment %s is now %s.', appointment_id, target.value)
    return SchedulingResult.success(appointment)


def cancel_appointment(db: Session, appointment_id: int) -> SchedulingResult:
    """Cancel a pending or approved appointment. Re-cancelling is a no-op."""
    return _change_status(db, appointment_id, AppointmentStatus.CANCELLED, 'appointment cancellation')


def approve_appointment(db: Session, appointment_id: int) -> SchedulingResult:
    # Overlaps are not re-checked on approval.
    return _change_status(db, appointment_id, AppointmentStatus.APPROVED, 'appointment approval')


def reject_appointment(db: Session, appointment_id: int) -> SchedulingResult:
    return _change_status(db, appointment_id, AppointmentStatus.REJECTED, 'appointment rejection')


def get_appointment(db: Session, appointment_id: int) -> Appointment | None:
    with storage_boundary(db, 'appointment lookup'):
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()


def _bounded(query, start: datetime | None, end: datetime | None):
    if start is not None:
        query = query.filter(Appointment.start_time >= to_utc_naive(start))
    if end is not None:
        query = query.filter(Appointment.end_time <= to_utc_naive(end))
    return query


def list_by_member(
    db: Session,
    member_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Appointment]:
    with storage_boundary(db, 'member appointment listing'):
        query = _bounded(db.query(Appointment).filter(Appointment.member_id == member_id), start, end)
        appointments = query.order_by(Appointment.start_time.asc()).all()

    logger.info('Fetched %s appointments for member %s.', len(appointments), member_id)
    return appointments


def list_by_trainer(
    db: Session,
    trainer_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Appointment]:
    with storage_boundary(db, 'trainer appointment listing'):
        query = _bounded(db.query(Appointment).filter(Appointment.trainer_id == trainer_id), start, end)
        appointments = query.order_by(Appointment.start_time.asc()).all()

    logger.info('Fetched %s appointments for trainer %s.', len(appointments), trainer_id)
    return appointments


def list_by_status(db: Session, status: AppointmentStatus) -> list[Appointment]:
    with storage_boundary(db, 'status appointment listing'):
        return db.query(Appointment).filter(
            Appointment.status == status,
        ).order_by(Appointment.start_time.asc()).all()


def list_by_date_range(db: Session, start_date: date | datetime, end_date: date | datetime) -> SchedulingResult:
    """Appointments whose start date falls within ``[start_date, end_date]``."""
    first_day = _as_date(start_date)
    last_day = _as_date(end_date)

    if first_day > last_day:
        return SchedulingResult.invalid('The start date must not be after the end date.')

    range_start, _ = _day_bounds(first_day)
    _, range_end = _day_bounds(last_day)

    with storage_boundary(db, 'date range appointment listing'):
        appointments = db.query(Appointment).filter(
            Appointment.start_time >= range_start,
            Appointment.start_time < range_end,
        ).order_by(Appointment.start_time.asc()).all()

    logger.info('Fetched %s appointments between %s and %s.', len(appointments), first_day, last_day)
    return SchedulingResult.success(appointments=appointments)


def list_appointments(
    db: Session,
    start: datetime | None = None,
    end: datetime | None = None,
    status: AppointmentStatus | None = None,
) -> list[Appointment]:
    """Administrator overview, newest appointments first."""
    with storage_boundary(db, 'appointment listing'):
        query = _bounded(db.query(Appointment), start, end)
        if status is not None:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.start_time.desc()).all()
