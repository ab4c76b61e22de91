"""Read-only lookups for the member, trainer and service records the scheduler references."""

from sqlalchemy.orm import Session

from fitness_backend.models.member import Member
from fitness_backend.models.service import Service
from fitness_backend.models.trainer import Trainer


def get_member(db: Session, member_id: int) -> Member | None:
    return db.query(Member).filter(Member.id == member_id).first()


def get_member_for_user(db: Session, user_id: int) -> Member | None:
    return db.query(Member).filter(Member.user_id == user_id).first()


def get_trainer(db: Session, trainer_id: int, *, for_update: bool = False) -> Trainer | None:
    query = db.query(Trainer).filter(Trainer.id == trainer_id)
    if for_update:
        # Row lock on server databases; SQLite ignores FOR UPDATE.
        query = query.with_for_update().populate_existing()
    return query.first()


def get_service(db: Session, service_id: int) -> Service | None:
    return db.query(Service).filter(Service.id == service_id).first()


def search_trainers(db: Session, specialty: str) -> list[Trainer]:
    term = specialty.strip().lower()
    return db.query(Trainer).filter(
        Trainer.specialties.is_not(None),
        Trainer.specialties.ilike(f'%{term}%'),
    ).order_by(Trainer.first_name.asc()).all()
