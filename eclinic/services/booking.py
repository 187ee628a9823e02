"""Booking of one expanded slot for an authenticated patient."""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from eclinic.core import config
from eclinic.core.errors import AuthenticationRequiredError, IllegalStateError, SlotUnavailableError
from eclinic.models.appointment import AppointmentStatus
from eclinic.scheduling.slots import expand_weekly_schedule, to_zone, truncate_to_minute
from eclinic.stores.appointment_store import AppointmentRecord, AppointmentStore
from eclinic.stores.profile_store import DoctorRecord, ProfileStore

logger = logging.getLogger(__name__)

MAX_ADDITIONAL_PREP_LENGTH = 600


def book_appointment(
    slot: datetime,
    doctor: DoctorRecord | None,
    patient_id: str | None,
    profile_store: ProfileStore,
    appointment_store: AppointmentStore,
    now: datetime | None = None,
    fasting_required: bool = False,
    additional_prep: str = '',
    zone: ZoneInfo | None = None,
    horizon_days: int | None = None,
) -> AppointmentRecord:
    """Persist a CONFIRMED appointment for ``slot`` with ``doctor``.

    The slot must still be offered by the doctor's weekly schedule. The write
    is conditional on the slot being free, so a concurrent booking of the same
    slot raises ``SlotUnavailableError`` instead of creating a duplicate.
    """
    if not patient_id:
        raise AuthenticationRequiredError('You must be signed in to book an appointment.')

    if doctor is None:
        logger.error('Booking attempted for patient %s before doctor data was loaded', patient_id)
        raise IllegalStateError('Doctor data is not loaded yet.')

    zone = zone or config.reference_zone()
    now = to_zone(now or datetime.now(timezone.utc), zone)
    local_slot = truncate_to_minute(to_zone(slot, zone))
    utc_slot = local_slot.astimezone(timezone.utc)

    if utc_slot <= now.astimezone(timezone.utc):
        raise SlotUnavailableError('Appointments must be scheduled in the future.')

    offered = expand_weekly_schedule(doctor.weekly_schedule, now, zone=zone, horizon_days=horizon_days)
    if utc_slot not in {offer.astimezone(timezone.utc) for offer in offered}:
        raise SlotUnavailableError('The doctor does not offer this time.')

    patient = profile_store.get_patient_profile(patient_id)

    appointment = appointment_store.create_appointment(
        doctor,
        patient,
        utc_slot,
        status=AppointmentStatus.CONFIRMED,
        fasting_required=fasting_required,
        additional_prep=additional_prep.strip(),
    )

    logger.info('Booked appointment %s: doctor %s, patient %s at %s', appointment.id, doctor.id, patient_id, local_slot)
    return appointment
