"""A doctor's recurring weekly availability."""

import re
from collections.abc import Mapping
from datetime import time
from types import MappingProxyType

from eclinic.core.errors import MalformedScheduleEntryError

WEEKDAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')

TIME_OF_DAY_FORMAT = '%H:%M'
_TIME_OF_DAY_PATTERN = re.compile(r'^(\d{2}):(\d{2})$')


def parse_time_of_day(value: str) -> time:
    """Parse a 24-hour ``HH:mm`` string."""
    match = _TIME_OF_DAY_PATTERN.match(value) if isinstance(value, str) else None
    if match is None:
        raise MalformedScheduleEntryError(f'Invalid time of day {value!r}; expected HH:mm.')

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise MalformedScheduleEntryError(f'Invalid time of day {value!r}; expected HH:mm.')

    return time(hour, minute)


def format_time_of_day(value: time) -> str:
    return value.strftime(TIME_OF_DAY_FORMAT)


def weekday_name(weekday_index: int) -> str:
    """Map ``date.weekday()`` (Monday == 0) to its schedule key."""
    return WEEKDAYS[weekday_index]


class WeeklySchedule(Mapping):
    """Immutable mapping of weekday name to ordered ``HH:mm`` strings.

    Time strings are not validated here; the slot expander parses them and
    skips the ones it cannot read.
    """

    __slots__ = ('_days',)

    def __init__(self, days: Mapping[str, list[str] | tuple[str, ...]] | None = None) -> None:
        self._days = MappingProxyType({day: tuple(times) for day, times in (days or {}).items()})

    @classmethod
    def from_raw(cls, raw) -> 'WeeklySchedule':
        """Build from a stored JSON value, dropping keys and entries that are not strings."""
        if not isinstance(raw, Mapping):
            return cls()

        days = {}
        for day, times in raw.items():
            if not isinstance(day, str) or not isinstance(times, (list, tuple)):
                continue
            days[day] = tuple(entry for entry in times if isinstance(entry, str))
        return cls(days)

    def to_raw(self) -> dict[str, list[str]]:
        return {day: list(times) for day, times in self._days.items()}

    def times_for(self, day: str) -> tuple[str, ...]:
        return self._days.get(day, ())

    def is_empty(self) -> bool:
        return not any(self._days.values())

    def __getitem__(self, day: str) -> tuple[str, ...]:
        return self._days[day]

    def __iter__(self):
        return iter(self._days)

    def __len__(self) -> int:
        return len(self._days)

    def __eq__(self, other) -> bool:
        if isinstance(other, WeeklySchedule):
            return dict(self._days) == dict(other._days)
        if isinstance(other, Mapping):
            return dict(self._days) == {day: tuple(times) for day, times in other.items()}
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._days.items()))

    def __copy__(self) -> 'WeeklySchedule':
        return self

    def __deepcopy__(self, memo) -> 'WeeklySchedule':
        return self

    def __reduce__(self):
        return (WeeklySchedule, (self.to_raw(),))

    def __repr__(self) -> str:
        return f'WeeklySchedule({dict(self._days)!r})'
