"""Bookable slots for a doctor: expansion of the weekly schedule minus confirmed bookings."""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from eclinic.core import config
from eclinic.scheduling.slots import expand_weekly_schedule, filter_booked_slots, to_zone
from eclinic.stores.appointment_store import AppointmentStore
from eclinic.stores.profile_store import ProfileStore

logger = logging.getLogger(__name__)


def load_available_slots(
    doctor_id: str,
    profile_store: ProfileStore,
    appointment_store: AppointmentStore,
    now: datetime | None = None,
    zone: ZoneInfo | None = None,
    horizon_days: int | None = None,
) -> list[datetime]:
    """Return the doctor's open slots, ascending, in the reference timezone.

    Reads the schedule first and the confirmed appointments second. A failing
    appointment query propagates instead of returning unfiltered slots.
    """
    zone = zone or config.reference_zone()
    now = to_zone(now or datetime.now(timezone.utc), zone)

    doctor = profile_store.get_doctor_profile(doctor_id)
    candidates = expand_weekly_schedule(doctor.weekly_schedule, now, zone=zone, horizon_days=horizon_days)
    if not candidates:
        return []

    booked = appointment_store.query_confirmed_appointments(doctor_id, now)
    available = filter_booked_slots(candidates, (appointment.starts_at for appointment in booked), zone=zone)

    logger.debug(
        'Doctor %s: %d candidate slots, %d booked, %d available',
        doctor_id,
        len(candidates),
        len(booked),
        len(available),
    )
    return available
