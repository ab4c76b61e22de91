import os
from datetime import time
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from fitness_backend.database import Base  # noqa: E402
from fitness_backend.models.appointment import Appointment  # noqa: E402
from fitness_backend.models.member import Member  # noqa: E402
from fitness_backend.models.service import Service  # noqa: E402
from fitness_backend.models.trainer import Trainer  # noqa: E402
from fitness_backend.models.user import ADMIN_ROLE, MEMBER_ROLE, User  # noqa: E402

TABLES = [User.__table__, Member.__table__, Trainer.__table__, Service.__table__, Appointment.__table__]


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))


@pytest.fixture
def gym(db):
    admin_user = User(email='admin@fitness.example', role=ADMIN_ROLE)
    member_user = User(email='ayse@fitness.example', role=MEMBER_ROLE)
    other_user = User(email='mehmet@fitness.example', role=MEMBER_ROLE)
    profileless_user = User(email='new@fitness.example', role=MEMBER_ROLE)
    db.add_all([admin_user, member_user, other_user, profileless_user])
    db.flush()

    member = Member(user_id=member_user.id, first_name='Ayse', last_name='Yilmaz', fitness_goal='Strength')
    other_member = Member(user_id=other_user.id, first_name='Mehmet', last_name='Demir')
    trainer = Trainer(first_name='Can', last_name='Kaya', specialties='Fitness, Yoga')
    office_hours_trainer = Trainer(
        first_name='Elif',
        last_name='Sahin',
        specialties='Pilates',
        work_start=time(9, 0),
        work_end=time(18, 0),
    )
    personal_training = Service(name='Personal Training', duration_minutes=60, fee=Decimal('200'))
    stretching = Service(name='Stretching', duration_minutes=30, fee=Decimal('90.50'))
    db.add_all([member, other_member, trainer, office_hours_trainer, personal_training, stretching])
    db.commit()

    return SimpleNamespace(
        admin_user=admin_user,
        member_user=member_user,
        other_user=other_user,
        profileless_user=profileless_user,
        member=member,
        other_member=other_member,
        trainer=trainer,
        office_hours_trainer=office_hours_trainer,
        personal_training=personal_training,
        stretching=stretching,
    )
