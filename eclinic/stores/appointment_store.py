"""Appointment Store: persisted reservations."""

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from eclinic.core.errors import NotFoundError, SlotUnavailableError, StoreUnavailableError
from eclinic.models.appointment import Appointment, AppointmentStatus
from eclinic.stores.profile_store import DoctorRecord, PatientRecord

logger = logging.getLogger(__name__)

ParticipantField = Literal['doctor_id', 'patient_id']


class AppointmentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    doctor_id: str
    patient_id: str
    doctor_first_name: str = ''
    doctor_last_name: str = ''
    patient_first_name: str = ''
    patient_last_name: str = ''
    starts_at: datetime
    status: AppointmentStatus
    fasting_required: bool = False
    additional_prep: str = ''

    @property
    def patient_name(self) -> str:
        return f'{self.patient_first_name} {self.patient_last_name}'.strip()

    @property
    def doctor_name(self) -> str:
        return f'{self.doctor_first_name} {self.doctor_last_name}'.strip()


class AppointmentStore(Protocol):
    def query_confirmed_appointments(self, doctor_id: str, from_instant: datetime) -> list[AppointmentRecord]: ...

    def create_appointment(
        self,
        doctor: DoctorRecord,
        patient: PatientRecord,
        starts_at: datetime,
        status: AppointmentStatus = AppointmentStatus.CONFIRMED,
        fasting_required: bool = False,
        additional_prep: str = '',
    ) -> AppointmentRecord: ...

    def list_appointments(
        self,
        field: ParticipantField,
        user_id: str,
        statuses: Iterable[AppointmentStatus] | None = None,
        from_instant: datetime | None = None,
    ) -> list[AppointmentRecord]: ...

    def get_appointment(self, appointment_id: str) -> AppointmentRecord: ...

    def update_status(self, appointment_id: str, status: AppointmentStatus) -> AppointmentRecord: ...


def to_storage_instant(value: datetime) -> datetime:
    """Aware datetime -> naive UTC, the form ``starts_at`` is stored in."""
    if value.tzinfo is None:
        raise ValueError('Appointment instants must be timezone-aware.')
    return value.astimezone(timezone.utc).replace(tzinfo=None, second=0, microsecond=0)


def from_storage_instant(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _record(appointment: Appointment) -> AppointmentRecord:
    return AppointmentRecord(
        id=appointment.id,
        doctor_id=appointment.doctor_id,
        patient_id=appointment.patient_id,
        doctor_first_name=appointment.doctor_first_name or '',
        doctor_last_name=appointment.doctor_last_name or '',
        patient_first_name=appointment.patient_first_name or '',
        patient_last_name=appointment.patient_last_name or '',
        starts_at=from_storage_instant(appointment.starts_at),
        status=AppointmentStatus(appointment.status),
        fasting_required=bool(appointment.fasting_required),
        additional_prep=appointment.additional_prep or '',
    )


class SqlAppointmentStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _confirmed_exists(self, doctor_id: str, starts_at: datetime, exclude_id: str | None = None) -> bool:
        query = self.db.query(Appointment.id).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.starts_at == starts_at,
            Appointment.status == AppointmentStatus.CONFIRMED.value,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.first() is not None

    def query_confirmed_appointments(self, doctor_id: str, from_instant: datetime) -> list[AppointmentRecord]:
        return self.list_appointments(
            'doctor_id',
            doctor_id,
            statuses=[AppointmentStatus.CONFIRMED],
            from_instant=from_instant,
        )

    def list_appointments(
        self,
        field: ParticipantField,
        user_id: str,
        statuses: Iterable[AppointmentStatus] | None = None,
        from_instant: datetime | None = None,
    ) -> list[AppointmentRecord]:
        column = getattr(Appointment, field)

        try:
            query = self.db.query(Appointment).filter(column == user_id)
            if statuses is not None:
                query = query.filter(Appointment.status.in_([item.value for item in statuses]))
            if from_instant is not None:
                query = query.filter(Appointment.starts_at >= to_storage_instant(from_instant))

            appointments = query.order_by(Appointment.starts_at.asc()).all()
        except SQLAlchemyError as exc:
            logger.exception('Failed to list appointments for %s=%s', field, user_id)
            raise StoreUnavailableError() from exc

        return [_record(appointment) for appointment in appointments]

    def get_appointment(self, appointment_id: str) -> AppointmentRecord:
        try:
            appointment = self.db.get(Appointment, appointment_id)
        except SQLAlchemyError as exc:
            logger.exception('Failed to load appointment %s', appointment_id)
            raise StoreUnavailableError() from exc

        if appointment is None:
            raise NotFoundError('Appointment not found.')

        return _record(appointment)

    def create_appointment(
        self,
        doctor: DoctorRecord,
        patient: PatientRecord,
        starts_at: datetime,
        status: AppointmentStatus = AppointmentStatus.CONFIRMED,
        fasting_required: bool = False,
        additional_prep: str = '',
    ) -> AppointmentRecord:
        """Insert a new appointment with a fresh id.

        A CONFIRMED appointment is only inserted when the doctor has no other
        CONFIRMED appointment at the same instant; the unique index on
        confirmed slots catches writers that race past the check.
        """
        stored_start = to_storage_instant(starts_at)

        try:
            if status == AppointmentStatus.CONFIRMED and self._confirmed_exists(doctor.id, stored_start):
                raise SlotUnavailableError('This time is already booked.')

            appointment = Appointment(
                id=str(uuid.uuid4()),
                doctor_id=doctor.id,
                patient_id=patient.id,
                doctor_first_name=doctor.first_name,
                doctor_last_name=doctor.last_name,
                patient_first_name=patient.first_name,
                patient_last_name=patient.last_name,
                starts_at=stored_start,
                status=status.value,
                fasting_required=fasting_required,
                additional_prep=additional_prep,
                created_at=datetime.now(timezone.utc).replace(tzinfo=None),
            )
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning('Lost booking race for doctor %s at %s', doctor.id, stored_start)
            raise SlotUnavailableError('This time is already booked.') from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Failed to create appointment for doctor %s', doctor.id)
            raise StoreUnavailableError() from exc

        return _record(appointment)

    def update_status(self, appointment_id: str, status: AppointmentStatus) -> AppointmentRecord:
        try:
            appointment = self.db.get(Appointment, appointment_id)
            if appointment is None:
                raise NotFoundError('Appointment not found.')

            if (
                status == AppointmentStatus.CONFIRMED
                and appointment.status != AppointmentStatus.CONFIRMED.value
                and self._confirmed_exists(appointment.doctor_id, appointment.starts_at, exclude_id=appointment.id)
            ):
                raise SlotUnavailableError('This time has been booked by another patient.')

            appointment.status = status.value
            self.db.commit()
            self.db.refresh(appointment)
        except IntegrityError as exc:
            self.db.rollback()
            raise SlotUnavailableError('This time has been booked by another patient.') from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Failed to update appointment %s', appointment_id)
            raise StoreUnavailableError() from exc

        return _record(appointment)
