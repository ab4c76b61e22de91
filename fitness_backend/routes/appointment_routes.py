import logging
from datetime import date, datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fitness_backend.auth.dependencies import get_current_member, get_current_user, require_admin
from fitness_backend.database import get_db
from fitness_backend.models.appointment import Appointment, AppointmentStatus
from fitness_backend.models.member import Member
from fitness_backend.models.user import User
from fitness_backend.routes.common import database_unavailable, ensure_database_ready, raise_for_outcome
from fitness_backend.services import directory, scheduler
from fitness_backend.services.results import StorageFailure

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

NOT_SPECIFIED = 'Not specified'


class CreateAppointmentRequest(BaseModel):
    trainer_id: int
    service_id: int
    start_time: datetime

    @field_validator('trainer_id', 'service_id')
    @classmethod
    def validate_reference(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('A trainer and a service must be selected.')
        return value


class AppointmentResponse(BaseModel):
    id: int
    member_id: int
    member_name: str
    trainer_id: int
    trainer_name: str
    service_id: int
    service_name: str
    start_time: datetime
    end_time: datetime
    fee: Decimal
    status: AppointmentStatus
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class AppointmentRangeResponse(BaseModel):
    start: date
    end: date
    count: int
    appointments: list[AppointmentResponse]


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        member_id=appointment.member_id,
        member_name=appointment.member.full_name if appointment.member else NOT_SPECIFIED,
        trainer_id=appointment.trainer_id,
        trainer_name=appointment.trainer.full_name if appointment.trainer else NOT_SPECIFIED,
        service_id=appointment.service_id,
        service_name=appointment.service.name if appointment.service else NOT_SPECIFIED,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        fee=appointment.fee,
        status=appointment.status,
        created_at=appointment.created_at,
    )


def parse_status(value: str) -> AppointmentStatus:
    try:
        return AppointmentStatus.parse(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid appointment status.',
        ) from exc


def ensure_owner_or_admin(appointment: Appointment, current_user: User, db: Session, action: str) -> None:
    if current_user.is_admin:
        return

    member = directory.get_member_for_user(db, current_user.id)
    if member is None or member.id != appointment.member_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f'Only the member who booked this appointment or an administrator can {action} it.',
        )


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        result = scheduler.create_appointment(
            db,
            member_id=member.id,
            trainer_id=data.trainer_id,
            service_id=data.service_id,
            start_time=data.start_time,
        )
        raise_for_outcome(result)

        return to_appointment_response(result.appointment)
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.get('/mine', response_model=list[AppointmentResponse])
def list_my_appointments(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    member: Member = Depends(get_current_member),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointments = scheduler.list_by_member(db, member.id, start=start, end=end)
        return [to_appointment_response(appointment) for appointment in appointments]
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    appointment_status: str | None = Query(default=None, alias='status'),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    status_filter = parse_status(appointment_status) if appointment_status else None

    ensure_database_ready()

    try:
        appointments = scheduler.list_appointments(db, start=start, end=end, status=status_filter)
        return [to_appointment_response(appointment) for appointment in appointments]
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.get('/status/{appointment_status}', response_model=list[AppointmentResponse])
def list_appointments_by_status(
    appointment_status: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    status_filter = parse_status(appointment_status)

    ensure_database_ready()

    try:
        appointments = scheduler.list_by_status(db, status_filter)
        return [to_appointment_response(appointment) for appointment in appointments]
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.get('/date-range', response_model=AppointmentRangeResponse)
def list_appointments_by_date_range(
    start: date = Query(...),
    end: date = Query(...),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        result = scheduler.list_by_date_range(db, start, end)
        raise_for_outcome(result)

        return AppointmentRangeResponse(
            start=start,
            end=end,
            count=len(result.appointments),
            appointments=[to_appointment_response(appointment) for appointment in result.appointments],
        )
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.get('/member/{member_id}', response_model=list[AppointmentResponse])
def list_member_appointments(
    member_id: int,
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        if directory.get_member(db, member_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Member not found.',
            )

        appointments = scheduler.list_by_member(db, member_id, start=start, end=end)
        return [to_appointment_response(appointment) for appointment in appointments]
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.get('/trainer/{trainer_id}', response_model=list[AppointmentResponse])
def list_trainer_appointments(
    trainer_id: int,
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        if directory.get_trainer(db, trainer_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Trainer not found.',
            )

        appointments = scheduler.list_by_trainer(db, trainer_id, start=start, end=end)
        return [to_appointment_response(appointment) for appointment in appointments]
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = scheduler.get_appointment(db, appointment_id)
        if appointment is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Appointment not found.',
            )

        ensure_owner_or_admin(appointment, current_user, db, 'view')
        return to_appointment_response(appointment)
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = scheduler.get_appointment(db, appointment_id)
        if appointment is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Appointment not found.',
            )

        ensure_owner_or_admin(appointment, current_user, db, 'cancel')

        result = scheduler.cancel_appointment(db, appointment_id)
        raise_for_outcome(result)

        logger.info('Appointment %s cancelled by user %s.', appointment_id, current_user.id)
        return to_appointment_response(result.appointment)
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.post('/{appointment_id}/approve', response_model=AppointmentResponse)
def approve_appointment(
    appointment_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        result = scheduler.approve_appointment(db, appointment_id)
        raise_for_outcome(result)

        logger.info('Appointment %s approved by admin %s.', appointment_id, admin.id)
        return to_appointment_response(result.appointment)
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc


@router.post('/{appointment_id}/reject', response_model=AppointmentResponse)
def reject_appointment(
    appointment_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        result = scheduler.reject_appointment(db, appointment_id)
        raise_for_outcome(result)

        logger.info('Appointment %s rejected by admin %s.', appointment_id, admin.id)
        return to_appointment_response(result.appointment)
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc
