"""
Trigger definitions: the engine-side trigger variants.

Each variant knows its schedule and can compute the first fire time after
a given instant. Engines use that to fill in next_fire_time when a trigger
is stored without one.

Usage:
    trigger = CronTriggerDefinition(
        key=TriggerKey("nightly", "reports"),
        job_key=JobKey("report", "reports"),
        start_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        expression="0 2 * * *",
    )
    nxt = trigger.fire_time_after(datetime.now(timezone.utc))
"""

from __future__ import annotations

import calendar
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from schedview.engine.base import JobKey, TriggerKey

REPEAT_INDEFINITELY = -1

_TICK = timedelta(microseconds=1)


class IntervalUnit(str, Enum):
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


_FIXED_UNITS = {
    IntervalUnit.SECOND: timedelta(seconds=1),
    IntervalUnit.MINUTE: timedelta(minutes=1),
    IntervalUnit.HOUR: timedelta(hours=1),
    IntervalUnit.DAY: timedelta(days=1),
    IntervalUnit.WEEK: timedelta(weeks=1),
}


@dataclass(frozen=True, kw_only=True)
class TriggerDefinition(ABC):
    """A trigger as the engine stores it."""

    key: TriggerKey
    job_key: JobKey
    start_time: datetime
    end_time: datetime | None = None
    next_fire_time: datetime | None = None
    previous_fire_time: datetime | None = None
    description: str | None = None

    @abstractmethod
    def _next_after(self, after: datetime) -> datetime | None:
        """First scheduled time strictly after `after`, ignoring end_time."""
        ...

    def fire_time_after(self, after: datetime) -> datetime | None:
        """
        Return the first fire time strictly after `after`.

        Never earlier than start_time. Returns None once the schedule is
        exhausted or would fire past end_time.
        """
        if after < self.start_time:
            after = self.start_time - _TICK
        nxt = self._next_after(after)
        if nxt is None or (self.end_time is not None and nxt > self.end_time):
            return None
        return nxt


@dataclass(frozen=True, kw_only=True)
class SimpleTriggerDefinition(TriggerDefinition):
    """
    Fires at start_time, then every repeat_interval.

    repeat_count is the number of repeats after the first firing;
    REPEAT_INDEFINITELY (-1) never runs out.
    """

    repeat_interval: timedelta = timedelta(0)
    repeat_count: int = 0

    def __post_init__(self) -> None:
        if self.repeat_interval < timedelta(0):
            raise ValueError("repeat_interval must not be negative")
        if self.repeat_count < REPEAT_INDEFINITELY:
            raise ValueError("repeat_count must be >= -1")

    def _next_after(self, after: datetime) -> datetime | None:
        if after < self.start_time:
            return self.start_time
        if not self.repeat_interval:
            return None
        n = (after - self.start_time) // self.repeat_interval + 1
        if self.repeat_count != REPEAT_INDEFINITELY and n > self.repeat_count:
            return None
        return self.start_time + n * self.repeat_interval


@dataclass(frozen=True, kw_only=True)
class CronTriggerDefinition(TriggerDefinition):
    """
    Fires on a cron schedule.

    expression: standard 5-field cron string, e.g. "0 9 * * 1-5"

    Requires the `croniter` package.
    """

    expression: str

    def __post_init__(self) -> None:
        from croniter import croniter

        if not croniter.is_valid(self.expression):
            raise ValueError(f"Invalid cron expression: {self.expression!r}")

    def _next_after(self, after: datetime) -> datetime | None:
        from croniter import croniter

        return croniter(self.expression, after).get_next(datetime)


@dataclass(frozen=True, kw_only=True)
class CalendarIntervalTriggerDefinition(TriggerDefinition):
    """
    Fires every N calendar units from start_time.

    Month and year steps follow the calendar, clamping to the last day of
    shorter months (Jan 31 + 1 month = Feb 28/29).
    """

    repeat_interval: int = 1
    repeat_interval_unit: IntervalUnit = IntervalUnit.DAY

    def __post_init__(self) -> None:
        if self.repeat_interval < 1:
            raise ValueError("repeat_interval must be at least 1")

    def _next_after(self, after: datetime) -> datetime | None:
        if after < self.start_time:
            return self.start_time
        unit = _FIXED_UNITS.get(self.repeat_interval_unit)
        if unit is not None:
            step = unit * self.repeat_interval
            return self.start_time + ((after - self.start_time) // step + 1) * step

        months = self.repeat_interval
        if self.repeat_interval_unit == IntervalUnit.YEAR:
            months *= 12
        elapsed = (after.year - self.start_time.year) * 12 + after.month - self.start_time.month
        n = max(elapsed // months, 0)
        while True:
            candidate = _add_months(self.start_time, n * months)
            if candidate > after:
                return candidate
            n += 1


@dataclass(frozen=True, kw_only=True)
class DailyTimeIntervalTriggerDefinition(TriggerDefinition):
    """
    Fires every N seconds/minutes/hours inside a daily time window,
    on selected weekdays (0 = Monday ... 6 = Sunday).
    """

    start_time_of_day: time = time(0, 0)
    end_time_of_day: time = time(23, 59, 59)
    repeat_interval: int = 1
    repeat_interval_unit: IntervalUnit = IntervalUnit.MINUTE
    days_of_week: frozenset[int] = frozenset(range(7))

    def __post_init__(self) -> None:
        if self.repeat_interval < 1:
            raise ValueError("repeat_interval must be at least 1")
        if self.repeat_interval_unit not in (
            IntervalUnit.SECOND,
            IntervalUnit.MINUTE,
            IntervalUnit.HOUR,
        ):
            raise ValueError("Daily time interval unit must be second, minute or hour")
        if not self.days_of_week or not self.days_of_week <= frozenset(range(7)):
            raise ValueError("days_of_week must be a non-empty subset of 0..6")

    def _next_after(self, after: datetime) -> datetime | None:
        step = _FIXED_UNITS[self.repeat_interval_unit] * self.repeat_interval
        day = after.date()
        for offset in range(8):
            current = day + timedelta(days=offset)
            if current.weekday() not in self.days_of_week:
                continue
            window_start = self._on(current, self.start_time_of_day, after)
            window_end = self._on(current, self.end_time_of_day, after)
            if after < window_start:
                candidate = window_start
            else:
                candidate = window_start + ((after - window_start) // step + 1) * step
            if candidate <= window_end:
                return candidate
        return None

    @staticmethod
    def _on(day: date, at: time, like: datetime) -> datetime:
        return datetime.combine(day, at, tzinfo=like.tzinfo)


def _add_months(moment: datetime, months: int) -> datetime:
    total = moment.month - 1 + months
    year = moment.year + total // 12
    month = total % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))
