from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from eclinic.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    echo=config.SQL_ECHO,
    connect_args=_connect_args(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False


def ensure_appointment_schema(bind=None) -> None:
    """Bring an older ``appointments`` table up to date with the current model."""
    global _appointment_schema_checked

    if _appointment_schema_checked:
        return

    bind = bind if bind is not None else engine

    with _schema_lock:
        if _appointment_schema_checked:
            return

        inspector = inspect(bind)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('fasting_required', 'ALTER TABLE appointments ADD COLUMN fasting_required BOOLEAN DEFAULT FALSE'),
            ('additional_prep', "ALTER TABLE appointments ADD COLUMN additional_prep VARCHAR DEFAULT ''"),
            ('created_at', 'ALTER TABLE appointments ADD COLUMN created_at TIMESTAMP'),
        ]

        with bind.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_doctor_status_start '
                     'ON appointments(doctor_id, status, starts_at)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_patient_status_start '
                     'ON appointments(patient_id, status, starts_at)')
            )
            # At most one CONFIRMED appointment per doctor and instant.
            connection.execute(
                text("CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_confirmed_doctor_slot "
                     "ON appointments(doctor_id, starts_at) WHERE status = 'CONFIRMED'")
            )

        _appointment_schema_checked = True
