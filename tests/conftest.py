import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('JWT_SECRET_KEY', 'test-only-signing-key-0123456789abcdef')

from eclinic.core import config  # noqa: E402
from eclinic.database import Base  # noqa: E402
from eclinic.models.appointment import Appointment  # noqa: E402
from eclinic.models.profile import DoctorProfile, PatientProfile  # noqa: E402
from eclinic.models.user import User  # noqa: E402


DOCTOR_SCHEDULE = {
    'Monday': ['09:00', '09:30', '10:00'],
    'Tuesday': ['14:00'],
}


@pytest.fixture(autouse=True)
def scheduling_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'REFERENCE_TIMEZONE', 'Europe/Warsaw')
    monkeypatch.setattr(config, 'BOOKING_HORIZON_DAYS', 7)
    monkeypatch.setattr(config, 'SLOT_STEP_MINUTES', 30)


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    tables = [User.__table__, DoctorProfile.__table__, PatientProfile.__table__, Appointment.__table__]
    Base.metadata.create_all(bind=engine, tables=tables)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(tables)))


@pytest.fixture
def doctor_user(db) -> User:
    user = User(id='doc-1', email='house@clinic.example', role='doctor')
    db.add(user)
    db.add(
        DoctorProfile(
            user_id=user.id,
            first_name='Gregory',
            last_name='House',
            specialisation='Diagnostics',
            availability=True,
            weekly_schedule=DOCTOR_SCHEDULE,
            session_duration_minutes=30,
        )
    )
    db.commit()
    return user


@pytest.fixture
def patient_user(db) -> User:
    user = User(id='pat-1', email='anna@example.com', role='patient')
    db.add(user)
    db.add(PatientProfile(user_id=user.id, first_name='Anna', last_name='Nowak'))
    db.commit()
    return user


@pytest.fixture
def other_patient_user(db) -> User:
    user = User(id='pat-2', email='jan@example.com', role='patient')
    db.add(user)
    db.add(PatientProfile(user_id=user.id, first_name='Jan', last_name='Kowalski'))
    db.commit()
    return user
