from datetime import date, datetime, time, timezone

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from eclinic.auth.dependencies import get_current_user, get_db, require_role
from eclinic.core import config
from eclinic.core.errors import ClinicError
from eclinic.models.user import User
from eclinic.scheduling.schedule_editor import ScheduleEditRange, schedule_to_ranges
from eclinic.scheduling.weekly_schedule import WEEKDAYS
from eclinic.services.availability import load_available_slots
from eclinic.services.schedule import save_doctor_schedule
from eclinic.stores.appointment_store import SqlAppointmentStore
from eclinic.stores.profile_store import SqlProfileStore

router = APIRouter(tags=['availability'])


class AvailableSlotResponse(BaseModel):
    date: date
    time: time
    start_time: datetime


class DoctorScheduleResponse(BaseModel):
    doctor_id: str
    availability: bool
    session_duration_minutes: int
    weekly_schedule: dict[str, list[str]]
    ranges: dict[str, ScheduleEditRange]


class UpdateScheduleRequest(BaseModel):
    ranges: dict[str, ScheduleEditRange]
    session_duration_minutes: int = config.SLOT_STEP_MINUTES

    @field_validator('ranges')
    @classmethod
    def validate_weekdays(cls, value: dict[str, ScheduleEditRange]) -> dict[str, ScheduleEditRange]:
        unknown = [day for day in value if day not in WEEKDAYS]
        if unknown:
            raise ValueError(f'Unknown weekday: {", ".join(unknown)}.')
        return value

    @field_validator('session_duration_minutes')
    @classmethod
    def validate_session_duration(cls, value: int) -> int:
        if value not in config.SESSION_DURATIONS:
            allowed = ', '.join(str(duration) for duration in config.SESSION_DURATIONS)
            raise ValueError(f'Session duration must be one of {allowed} minutes.')
        return value


def current_time() -> datetime:
    return datetime.now(timezone.utc)


def _schedule_response(doctor_id: str, db: Session) -> DoctorScheduleResponse:
    profile_store = SqlProfileStore(db)
    doctor = profile_store.get_doctor_profile(doctor_id)
    step = doctor.session_duration_minutes or config.SLOT_STEP_MINUTES
    schedule = doctor.weekly_schedule

    return DoctorScheduleResponse(
        doctor_id=doctor_id,
        availability=doctor.availability,
        session_duration_minutes=step,
        weekly_schedule=schedule.to_raw(),
        ranges=schedule_to_ranges(schedule, step),
    )


@router.get('/session-durations', response_model=list[int])
def list_session_durations():
    return list(config.SESSION_DURATIONS)


@router.get('/doctors/{doctor_id}/slots', response_model=list[AvailableSlotResponse])
def list_doctor_slots(
    doctor_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user

    try:
        slots = load_available_slots(
            doctor_id,
            profile_store=SqlProfileStore(db),
            appointment_store=SqlAppointmentStore(db),
            now=current_time(),
        )
    except ClinicError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    return [AvailableSlotResponse(date=slot.date(), time=slot.time(), start_time=slot) for slot in slots]


@router.get('/schedule', response_model=DoctorScheduleResponse)
def get_my_schedule(
    current_user: User = Depends(require_role('doctor')),
    db: Session = Depends(get_db),
):
    try:
        return _schedule_response(current_user.id, db)
    except ClinicError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.put('/schedule', response_model=DoctorScheduleResponse)
def update_my_schedule(
    data: UpdateScheduleRequest,
    current_user: User = Depends(require_role('doctor')),
    db: Session = Depends(get_db),
):
    try:
        save_doctor_schedule(
            current_user.id,
            data.ranges,
            data.session_duration_minutes,
            profile_store=SqlProfileStore(db),
        )
        return _schedule_response(current_user.id, db)
    except ClinicError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
