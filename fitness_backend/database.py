from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from fitness_backend.core import config


connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False

APPOINTMENT_INDEXES = (
    'CREATE INDEX IF NOT EXISTS idx_appointments_trainer_range ON appointments(trainer_id, start_time, end_time)',
    'CREATE INDEX IF NOT EXISTS idx_appointments_member_start ON appointments(member_id, start_time)',
    'CREATE INDEX IF NOT EXISTS idx_appointments_status_start ON appointments(status, start_time)',
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_appointment_schema() -> None:
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    with _schema_lock:
        if _appointment_schema_checked:
            return

        if 'appointments' not in inspect(engine).get_table_names():
            _appointment_schema_checked = True
            return

        with engine.begin() as connection:
            for statement in APPOINTMENT_INDEXES:
                connection.execute(text(statement))

        _appointment_schema_checked = True
