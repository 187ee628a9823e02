import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

from eclinic import database


@pytest.fixture
def legacy_engine(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(database, '_appointment_schema_checked', False)
    engine = create_engine('sqlite:///:memory:')
    with engine.begin() as connection:
        connection.execute(text(
            'CREATE TABLE appointments ('
            'id VARCHAR PRIMARY KEY, doctor_id VARCHAR, patient_id VARCHAR, '
            'starts_at TIMESTAMP, status VARCHAR)'
        ))
    yield engine
    engine.dispose()


def test_ensure_appointment_schema_adds_missing_columns_and_indexes(legacy_engine) -> None:
    database.ensure_appointment_schema(bind=legacy_engine)

    inspector = inspect(legacy_engine)
    columns = {column['name'] for column in inspector.get_columns('appointments')}
    indexes = {index['name'] for index in inspector.get_indexes('appointments')}

    assert {'fasting_required', 'additional_prep', 'created_at'} <= columns
    assert 'uq_appointments_confirmed_doctor_slot' in indexes


def test_confirmed_slot_index_allows_cancelled_duplicates(legacy_engine) -> None:
    database.ensure_appointment_schema(bind=legacy_engine)
    insert = text(
        'INSERT INTO appointments (id, doctor_id, patient_id, starts_at, status) '
        "VALUES (:id, 'doc-1', :patient, '2026-01-06 13:00:00', :status)"
    )

    with legacy_engine.begin() as connection:
        connection.execute(insert, {'id': 'a', 'patient': 'pat-1', 'status': 'CANCELLED'})
        connection.execute(insert, {'id': 'b', 'patient': 'pat-2', 'status': 'CONFIRMED'})

    with pytest.raises(IntegrityError) as exception_info:
        with legacy_engine.begin() as connection:
            connection.execute(insert, {'id': 'c', 'patient': 'pat-3', 'status': 'CONFIRMED'})

    assert 'UNIQUE' in str(exception_info.value).upper()


@pytest.mark.parametrize(
    ('database_url', 'expected'),
    [
        ('sqlite:///./eclinic.db', {'check_same_thread': False}),
        ('postgresql+psycopg2://clinic@localhost/clinic', {}),
    ],
)
def test_connect_args_only_relax_thread_check_for_sqlite(database_url, expected) -> None:
    assert database._connect_args(database_url) == expected
