"""Expansion of a weekly schedule into concrete bookable slots."""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from eclinic.core import config
from eclinic.core.errors import MalformedScheduleEntryError
from eclinic.scheduling.weekly_schedule import WeeklySchedule, parse_time_of_day, weekday_name

logger = logging.getLogger(__name__)


def to_zone(value: datetime, zone: ZoneInfo) -> datetime:
    """Express ``value`` in ``zone``; naive values are taken as wall time in ``zone``.

    Wall times skipped by a DST change are moved to the instant they denote,
    so 02:30 on a spring-forward night comes back as 03:30.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone).astimezone(timezone.utc)
    return value.astimezone(zone)


def to_utc(value: datetime, zone: ZoneInfo | None = None) -> datetime:
    return to_zone(value, zone or config.reference_zone()).astimezone(timezone.utc)


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def expand_weekly_schedule(
    schedule: WeeklySchedule,
    now: datetime,
    zone: ZoneInfo | None = None,
    horizon_days: int | None = None,
) -> list[datetime]:
    """Return the future slots offered by ``schedule`` over the next ``horizon_days`` days.

    Day 0 is today in ``zone``; the last day included is ``horizon_days - 1``.
    Slots at or before ``now`` are dropped. Entries that are not valid ``HH:mm``
    strings are skipped and logged; the rest of the day is still expanded.
    Duplicate times within a day produce a single slot.
    """
    zone = zone or config.reference_zone()
    horizon_days = config.BOOKING_HORIZON_DAYS if horizon_days is None else horizon_days
    local_now = to_zone(now, zone)
    utc_now = local_now.astimezone(timezone.utc)
    today = local_now.date()

    slots: set[datetime] = set()
    for offset in range(horizon_days):
        slot_date = today + timedelta(days=offset)
        day = weekday_name(slot_date.weekday())

        for entry in schedule.times_for(day):
            try:
                slot_time = parse_time_of_day(entry)
            except MalformedScheduleEntryError:
                logger.warning('Skipping malformed schedule entry %r on %s', entry, day)
                continue

            candidate = to_zone(datetime.combine(slot_date, slot_time), zone)
            if candidate.astimezone(timezone.utc) > utc_now:
                slots.add(candidate)

    return sorted(slots)


def filter_booked_slots(
    candidates: Iterable[datetime],
    booked_instants: Iterable[datetime],
    zone: ZoneInfo | None = None,
) -> list[datetime]:
    """Drop every candidate whose minute matches a booked instant.

    Matching is done on UTC instants; naive values are read as wall time in ``zone``.
    """
    zone = zone or config.reference_zone()
    booked = {truncate_to_minute(to_utc(instant, zone)) for instant in booked_instants}

    return sorted(
        slot for slot in candidates
        if truncate_to_minute(to_utc(slot, zone)) not in booked
    )
