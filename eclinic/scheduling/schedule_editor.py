"""Turn per-day working hours into the discretized weekly schedule."""

import logging
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta

from pydantic import BaseModel, field_validator

from eclinic.core import config
from eclinic.core.errors import MalformedScheduleEntryError
from eclinic.scheduling.weekly_schedule import (
    WEEKDAYS,
    WeeklySchedule,
    format_time_of_day,
    parse_time_of_day,
)

logger = logging.getLogger(__name__)


class ScheduleEditRange(BaseModel):
    start: time | None = None
    end: time | None = None

    @field_validator('start', 'end')
    @classmethod
    def drop_seconds(cls, value: time | None) -> time | None:
        if value is None:
            return None
        return value.replace(second=0, microsecond=0)

    def is_valid(self) -> bool:
        return self.start is not None and self.end is not None and self.start < self.end


def discretize_range(start: time, end: time, step_minutes: int | None = None) -> list[str]:
    """Return ``HH:mm`` strings from ``start`` every ``step_minutes``, stopping before ``end``."""
    step_minutes = config.SLOT_STEP_MINUTES if step_minutes is None else step_minutes
    if step_minutes <= 0:
        raise ValueError('Slot step must be a positive number of minutes.')

    # Anchor on an arbitrary date so the loop cannot wrap past midnight.
    anchor = date(2000, 1, 1)
    current = datetime.combine(anchor, start)
    stop = datetime.combine(anchor, end)
    step = timedelta(minutes=step_minutes)

    slots: list[str] = []
    while current < stop:
        slots.append(format_time_of_day(current.time()))
        current += step
    return slots


def build_weekly_schedule(
    ranges: Mapping[str, ScheduleEditRange],
    step_minutes: int | None = None,
) -> WeeklySchedule:
    """Discretize every valid day range; days without a valid range are left out."""
    days: dict[str, list[str]] = {}

    for day in WEEKDAYS:
        edit_range = ranges.get(day)
        if edit_range is None or (edit_range.start is None and edit_range.end is None):
            continue

        if not edit_range.is_valid():
            logger.warning(
                'Ignoring %s availability %s-%s: start must be before end',
                day,
                edit_range.start,
                edit_range.end,
            )
            continue

        days[day] = discretize_range(edit_range.start, edit_range.end, step_minutes)

    unknown_days = set(ranges) - set(WEEKDAYS)
    if unknown_days:
        logger.warning('Ignoring unknown weekday names: %s', ', '.join(sorted(unknown_days)))

    return WeeklySchedule(days)


def schedule_to_ranges(
    schedule: WeeklySchedule,
    step_minutes: int | None = None,
) -> dict[str, ScheduleEditRange]:
    """Recover one editable range per weekday from a stored schedule.

    The range runs from the first listed slot to one step after the last one,
    so saving it again with the same step reproduces a contiguous schedule.
    """
    step_minutes = config.SLOT_STEP_MINUTES if step_minutes is None else step_minutes
    ranges: dict[str, ScheduleEditRange] = {}

    for day in WEEKDAYS:
        parsed: list[time] = []
        for entry in schedule.times_for(day):
            try:
                parsed.append(parse_time_of_day(entry))
            except MalformedScheduleEntryError:
                logger.warning('Skipping malformed schedule entry %r on %s', entry, day)

        if not parsed:
            ranges[day] = ScheduleEditRange()
            continue

        anchor = date(2000, 1, 1)
        end = datetime.combine(anchor, max(parsed)) + timedelta(minutes=step_minutes)
        if end.date() != anchor:
            end = datetime.combine(anchor, time(23, 59))
        ranges[day] = ScheduleEditRange(start=min(parsed), end=end.time())

    return ranges
