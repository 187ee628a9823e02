import logging
from datetime import time

import pytest

from eclinic.scheduling.schedule_editor import (
    ScheduleEditRange,
    build_weekly_schedule,
    discretize_range,
    schedule_to_ranges,
)
from eclinic.scheduling.weekly_schedule import WEEKDAYS, WeeklySchedule


def test_discretize_range_is_end_exclusive() -> None:
    assert discretize_range(time(9, 0), time(10, 30), 30) == ['09:00', '09:30', '10:00']


def test_discretize_range_keeps_partial_last_step() -> None:
    assert discretize_range(time(9, 0), time(10, 10), 20) == ['09:00', '09:20', '09:40', '10:00']


@pytest.mark.parametrize(
    ('start', 'end'),
    [
        (time(10, 0), time(10, 0)),
        (time(11, 0), time(10, 0)),
    ],
)
def test_discretize_range_without_room_is_empty(start: time, end: time) -> None:
    assert discretize_range(start, end, 30) == []


def test_discretize_range_stops_before_midnight() -> None:
    assert discretize_range(time(23, 0), time(23, 59), 30) == ['23:00', '23:30']


def test_discretize_range_uses_configured_step_by_default() -> None:
    assert discretize_range(time(9, 0), time(10, 0)) == ['09:00', '09:30']


def test_discretize_range_rejects_non_positive_step() -> None:
    with pytest.raises(ValueError):
        discretize_range(time(9, 0), time(10, 0), 0)


def test_build_weekly_schedule_omits_days_without_valid_range(caplog) -> None:
    ranges = {
        'Monday': ScheduleEditRange(start=time(9, 0), end=time(10, 30)),
        'Tuesday': ScheduleEditRange(start=time(10, 0), end=time(10, 0)),
        'Wednesday': ScheduleEditRange(start=time(12, 0), end=time(8, 0)),
        'Thursday': ScheduleEditRange(start=time(12, 0)),
        'Friday': ScheduleEditRange(),
    }

    with caplog.at_level(logging.WARNING, logger='eclinic.scheduling.schedule_editor'):
        schedule = build_weekly_schedule(ranges, 30)

    assert schedule == {'Monday': ['09:00', '09:30', '10:00']}
    assert len(caplog.records) == 3


def test_build_weekly_schedule_ignores_unknown_day_names(caplog) -> None:
    ranges = {'Funday': ScheduleEditRange(start=time(9, 0), end=time(10, 0))}

    with caplog.at_level(logging.WARNING, logger='eclinic.scheduling.schedule_editor'):
        schedule = build_weekly_schedule(ranges, 30)

    assert schedule.is_empty()
    assert 'Funday' in caplog.text


def test_edit_range_drops_seconds() -> None:
    edit_range = ScheduleEditRange(start=time(9, 0, 30), end=time(10, 0, 59))

    assert edit_range.start == time(9, 0)
    assert edit_range.end == time(10, 0)
    assert edit_range.is_valid()


def test_schedule_to_ranges_prefills_every_weekday() -> None:
    schedule = WeeklySchedule({'Monday': ['09:00', '09:30', '10:00'], 'Saturday': ['23:30']})

    ranges = schedule_to_ranges(schedule, 60)

    assert set(ranges) == set(WEEKDAYS)
    assert ranges['Monday'] == ScheduleEditRange(start=time(9, 0), end=time(11, 0))
    assert ranges['Saturday'] == ScheduleEditRange(start=time(23, 30), end=time(23, 59))
    assert ranges['Tuesday'] == ScheduleEditRange()


def test_schedule_to_ranges_then_build_reproduces_contiguous_schedule() -> None:
    schedule = WeeklySchedule({'Monday': ['09:00', '09:30', '10:00'], 'Friday': ['14:00']})

    assert build_weekly_schedule(schedule_to_ranges(schedule, 30), 30) == schedule
