"""Listing, filtering and status changes of existing appointments."""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

from eclinic.core import config
from eclinic.core.errors import IllegalStateError, PermissionDeniedError
from eclinic.models.appointment import AppointmentStatus
from eclinic.scheduling.slots import to_utc
from eclinic.stores.appointment_store import AppointmentRecord, AppointmentStore

logger = logging.getLogger(__name__)

PARTICIPANT_FIELDS = {
    'patient': 'patient_id',
    'doctor': 'doctor_id',
}
CANCELLABLE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


class AppointmentFilter(BaseModel):
    patient_query: str = ''
    start_date: date | None = None
    end_date: date | None = None
    statuses: set[AppointmentStatus] = Field(default_factory=lambda: set(AppointmentStatus))


def list_upcoming_appointments(
    user_id: str,
    role: str,
    appointment_store: AppointmentStore,
    now: datetime | None = None,
) -> list[AppointmentRecord]:
    """CONFIRMED appointments from ``now`` on in which the user takes part in ``role``."""
    field = PARTICIPANT_FIELDS.get(role)
    if field is None:
        raise PermissionDeniedError('Only patients and doctors have appointments.')

    return appointment_store.list_appointments(
        field,
        user_id,
        statuses=[AppointmentStatus.CONFIRMED],
        from_instant=now or datetime.now(timezone.utc),
    )


def filter_doctor_appointments(
    appointments: Iterable[AppointmentRecord],
    appointment_filter: AppointmentFilter,
    zone: ZoneInfo | None = None,
) -> list[AppointmentRecord]:
    zone = zone or config.reference_zone()
    query = appointment_filter.patient_query.strip().lower()

    filtered = []
    for appointment in appointments:
        if query and query not in appointment.patient_name.lower():
            continue

        local_date = appointment.starts_at.astimezone(zone).date()
        if appointment_filter.start_date and local_date < appointment_filter.start_date:
            continue
        if appointment_filter.end_date and local_date > appointment_filter.end_date:
            continue

        if appointment.status not in appointment_filter.statuses:
            continue

        filtered.append(appointment)

    return filtered


def get_appointment_for_participant(
    appointment_id: str,
    user_id: str,
    appointment_store: AppointmentStore,
) -> AppointmentRecord:
    appointment = appointment_store.get_appointment(appointment_id)
    if user_id not in (appointment.doctor_id, appointment.patient_id):
        raise PermissionDeniedError('Only the doctor or patient of this appointment can view it.')
    return appointment


def change_appointment_status(
    appointment_id: str,
    new_status: AppointmentStatus,
    actor_id: str,
    appointment_store: AppointmentStore,
    now: datetime | None = None,
) -> AppointmentRecord:
    """Move an appointment to ``new_status``.

    The doctor may set any status; the patient may only cancel, and only before
    the visit starts. Only pending or confirmed appointments can be cancelled.
    """
    appointment = appointment_store.get_appointment(appointment_id)

    is_doctor = actor_id == appointment.doctor_id
    if not is_doctor and actor_id != appointment.patient_id:
        raise PermissionDeniedError('Only the doctor or patient of this appointment can change it.')
    if not is_doctor and new_status != AppointmentStatus.CANCELLED:
        raise PermissionDeniedError('Patients can only cancel their appointments.')

    if appointment.status == new_status:
        return appointment

    if new_status == AppointmentStatus.CANCELLED:
        if appointment.status not in CANCELLABLE_STATUSES:
            raise IllegalStateError(f'A {appointment.status.value.lower()} appointment cannot be cancelled.')
        if not is_doctor and appointment.starts_at <= to_utc(now or datetime.now(timezone.utc)):
            raise IllegalStateError('Appointments that have already started cannot be cancelled.')

    updated = appointment_store.update_status(appointment_id, new_status)
    logger.info('Appointment %s: %s -> %s by %s', appointment_id, appointment.status.value, new_status.value, actor_id)
    return updated
