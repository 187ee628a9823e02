"""Profile Store: doctor and patient profiles, including the weekly schedule."""

import logging
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eclinic.core.errors import NotFoundError, StoreUnavailableError
from eclinic.models.profile import DoctorProfile, PatientProfile
from eclinic.scheduling.weekly_schedule import WeeklySchedule

logger = logging.getLogger(__name__)


class DoctorRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, arbitrary_types_allowed=True)

    id: str
    first_name: str = ''
    last_name: str = ''
    specialisation: str = ''
    institution_name: str = ''
    experience_years: int = 0
    availability: bool = False
    weekly_schedule: WeeklySchedule = Field(default_factory=WeeklySchedule)
    session_duration_minutes: int | None = None

    @field_validator('weekly_schedule', mode='before')
    @classmethod
    def parse_weekly_schedule(cls, value):
        if isinstance(value, WeeklySchedule):
            return value
        return WeeklySchedule.from_raw(value)


class PatientRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str = ''
    last_name: str = ''


class ProfileStore(Protocol):
    def get_doctor_profile(self, doctor_id: str) -> DoctorRecord: ...

    def get_patient_profile(self, patient_id: str) -> PatientRecord: ...

    def set_doctor_schedule(
        self,
        doctor_id: str,
        weekly_schedule: WeeklySchedule,
        availability: bool,
        session_duration_minutes: int | None = None,
    ) -> None: ...


def _doctor_record(profile: DoctorProfile) -> DoctorRecord:
    return DoctorRecord(
        id=profile.user_id,
        first_name=profile.first_name or '',
        last_name=profile.last_name or '',
        specialisation=profile.specialisation or '',
        institution_name=profile.institution_name or '',
        experience_years=profile.experience_years or 0,
        availability=bool(profile.availability),
        weekly_schedule=profile.weekly_schedule,
        session_duration_minutes=profile.session_duration_minutes,
    )


class SqlProfileStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_doctor_profile(self, doctor_id: str) -> DoctorRecord:
        try:
            profile = self.db.get(DoctorProfile, doctor_id)
        except SQLAlchemyError as exc:
            logger.exception('Failed to load doctor profile %s', doctor_id)
            raise StoreUnavailableError() from exc

        if profile is None:
            raise NotFoundError('Doctor not found.')

        return _doctor_record(profile)

    def get_patient_profile(self, patient_id: str) -> PatientRecord:
        try:
            profile = self.db.get(PatientProfile, patient_id)
        except SQLAlchemyError as exc:
            logger.exception('Failed to load patient profile %s', patient_id)
            raise StoreUnavailableError() from exc

        if profile is None:
            raise NotFoundError('Patient not found.')

        return PatientRecord(
            id=profile.user_id,
            first_name=profile.first_name or '',
            last_name=profile.last_name or '',
        )

    def set_doctor_schedule(
        self,
        doctor_id: str,
        weekly_schedule: WeeklySchedule,
        availability: bool,
        session_duration_minutes: int | None = None,
    ) -> None:
        try:
            profile = self.db.get(DoctorProfile, doctor_id)
            if profile is None:
                raise NotFoundError('Doctor not found.')

            profile.weekly_schedule = weekly_schedule.to_raw()
            profile.availability = availability
            if session_duration_minutes is not None:
                profile.session_duration_minutes = session_duration_minutes

            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Failed to save schedule for doctor %s', doctor_id)
            raise StoreUnavailableError() from exc
