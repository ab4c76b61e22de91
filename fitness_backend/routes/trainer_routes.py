from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fitness_backend.auth.dependencies import get_current_user
from fitness_backend.database import get_db
from fitness_backend.models.trainer import Trainer
from fitness_backend.models.user import User
from fitness_backend.routes.common import database_unavailable, ensure_database_ready
from fitness_backend.services import directory, scheduler
from fitness_backend.services.results import StorageFailure

router = APIRouter(tags=['trainers'])


class TrainerResponse(BaseModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    specialties: str | None = None
    phone: str | None = None
    email: str | None = None
    work_start: time | None = None
    work_end: time | None = None

    class Config:
        from_attributes = True


class AvailableTrainersResponse(BaseModel):
    date: date
    count: int
    trainers: list[TrainerResponse]


class TrainerSearchResponse(BaseModel):
    search_term: str
    count: int
    trainers: list[TrainerResponse]


class TrainerAvailabilityResponse(BaseModel):
    trainer_id: int
    at: datetime
    is_available: bool


def to_trainer_response(trainer: Trainer) -> TrainerResponse:
    return TrainerResponse.model_validate(trainer)


@router.get('/available', response_model=AvailableTrainersResponse)
def list_available_trainers(
    day: date = Query(..., alias='date'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready()

    try:
        trainers = scheduler.list_available_trainers(db, day)
        return AvailableTrainersResponse(
            date=day,
            count=len(trainers),
            trainers=[to_trainer_response(trainer) for trainer in trainers],
        )
    except StorageFailure as exc:
        raise database_unavailable() from exc


@router.get('/search', response_model=TrainerSearchResponse)
def search_trainers(
    specialty: str = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    normalized = specialty.strip()
    if not normalized:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='A specialty is required.',
        )

    try:
        trainers = directory.search_trainers(db, normalized)
        return TrainerSearchResponse(
            search_term=normalized,
            count=len(trainers),
            trainers=[to_trainer_response(trainer) for trainer in trainers],
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{trainer_id}', response_model=TrainerResponse)
def get_trainer(
    trainer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user

    try:
        trainer = directory.get_trainer(db, trainer_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    if trainer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Trainer not found.',
        )

    return to_trainer_response(trainer)


@router.get('/{trainer_id}/availability', response_model=TrainerAvailabilityResponse)
def get_trainer_availability(
    trainer_id: int,
    at: datetime = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready()

    try:
        if directory.get_trainer(db, trainer_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Trainer not found.',
            )

        return TrainerAvailabilityResponse(
            trainer_id=trainer_id,
            at=at,
            is_available=scheduler.is_trainer_available(db, trainer_id, at),
        )
    except (SQLAlchemyError, StorageFailure) as exc:
        raise database_unavailable() from exc
