"""Saving a doctor's weekly schedule."""

import logging
from collections.abc import Mapping

from eclinic.scheduling.schedule_editor import ScheduleEditRange, build_weekly_schedule
from eclinic.scheduling.weekly_schedule import WeeklySchedule
from eclinic.stores.profile_store import ProfileStore

logger = logging.getLogger(__name__)


def save_doctor_schedule(
    doctor_id: str,
    ranges: Mapping[str, ScheduleEditRange],
    step_minutes: int,
    profile_store: ProfileStore,
) -> WeeklySchedule:
    """Replace the doctor's schedule with the discretized ``ranges``.

    The previous schedule is overwritten, not merged. The doctor is marked
    available exactly when at least one day has slots.
    """
    schedule = build_weekly_schedule(ranges, step_minutes)
    availability = not schedule.is_empty()

    profile_store.set_doctor_schedule(doctor_id, schedule, availability, session_duration_minutes=step_minutes)

    logger.info('Saved schedule for doctor %s (%d days, available=%s)', doctor_id, len(schedule), availability)
    return schedule
