from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from eclinic.auth.dependencies import get_current_user, get_db, require_role
from eclinic.core.errors import ClinicError
from eclinic.models.appointment import AppointmentStatus
from eclinic.models.user import User
from eclinic.services.appointments import (
    AppointmentFilter,
    change_appointment_status,
    filter_doctor_appointments,
    get_appointment_for_participant,
    list_upcoming_appointments,
)
from eclinic.services.booking import MAX_ADDITIONAL_PREP_LENGTH, book_appointment
from eclinic.stores.appointment_store import AppointmentRecord, SqlAppointmentStore
from eclinic.stores.profile_store import SqlProfileStore

router = APIRouter(tags=['appointments'])


class CreateAppointmentRequest(BaseModel):
    doctor_id: str
    start_time: datetime
    fasting_required: bool = False
    additional_prep: str = ''

    @field_validator('doctor_id')
    @classmethod
    def validate_doctor_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Doctor is required.')
        return normalized

    @field_validator('additional_prep')
    @classmethod
    def validate_additional_prep(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) > MAX_ADDITIONAL_PREP_LENGTH:
            raise ValueError(f'Additional preparation must be {MAX_ADDITIONAL_PREP_LENGTH} characters or fewer.')
        return normalized


class UpdateAppointmentStatusRequest(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    id: str
    doctor_id: str
    patient_id: str
    doctor_first_name: str
    doctor_last_name: str
    patient_first_name: str
    patient_last_name: str
    start_time: datetime
    status: AppointmentStatus
    fasting_required: bool
    additional_prep: str


def current_time() -> datetime:
    return datetime.now(timezone.utc)


def to_response(appointment: AppointmentRecord) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        doctor_id=appointment.doctor_id,
        patient_id=appointment.patient_id,
        doctor_first_name=appointment.doctor_first_name,
        doctor_last_name=appointment.doctor_last_name,
        patient_first_name=appointment.patient_first_name,
        patient_last_name=appointment.patient_last_name,
        start_time=appointment.starts_at,
        status=appointment.status,
        fasting_required=appointment.fasting_required,
        additional_prep=appointment.additional_prep,
    )


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(require_role('patient')),
    db: Session = Depends(get_db),
):
    profile_store = SqlProfileStore(db)

    try:
        doctor = profile_store.get_doctor_profile(data.doctor_id)
        appointment = book_appointment(
            data.start_time,
            doctor,
            current_user.id,
            profile_store=profile_store,
            appointment_store=SqlAppointmentStore(db),
            now=current_time(),
            fasting_required=data.fasting_required,
            additional_prep=data.additional_prep,
        )
    except ClinicError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    return to_response(appointment)


@router.get('/upcoming', response_model=list[AppointmentResponse])
def list_my_upcoming_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        appointments = list_upcoming_appointments(
            current_user.id,
            current_user.role,
            SqlAppointmentStore(db),
            now=current_time(),
        )
    except ClinicError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    return [to_response(appointment) for appointment in appointments]


@router.get('/doctor', response_model=list[AppointmentResponse])
def list_doctor_appointments(
    patient_query: str = Query(default=''),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    statuses: list[AppointmentStatus] | None = Query(default=None),
    current_user: User = Depends(require_role('doctor')),
    db: Session = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Start date must not be after end date.',
        )

    appointment_filter = AppointmentFilter(
        patient_query=patient_query,
        start_date=start_date,
        end_date=end_date,
        statuses=set(statuses) if statuses else set(AppointmentStatus),
    )

    try:
        appointments = SqlAppointmentStore(db).list_appointments('doctor_id', current_user.id)
    except ClinicError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    return [to_response(appointment) for appointment in filter_doctor_appointments(appointments, appointment_filter)]


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        appointment = get_appointment_for_participant(appointment_id, current_user.id, SqlAppointmentStore(db))
    except ClinicError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    return to_response(appointment)


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: str,
    data: UpdateAppointmentStatusRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        appointment = change_appointment_status(
            appointment_id,
            data.status,
            current_user.id,
            SqlAppointmentStore(db),
            now=current_time(),
        )
    except ClinicError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    return to_response(appointment)
