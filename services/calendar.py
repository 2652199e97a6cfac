"""Challenge calendar: civil-day and week bucketing in the challenge time zone."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import Config
from core.exceptions import ConfigurationError


class ChallengeCalendar:
    """Maps wall-clock instants and log dates onto challenge days and weeks.

    Week 1 covers days 0-6 from ``start``, week 2 days 7-13 and so on; the
    index is clamped to ``[1, weeks]`` so dates before the start count as
    week 1 and the trailing days of a 31-day challenge fold into the last week.

    Args:
        start: First day of the challenge
        days: Challenge length in days
        weeks: Number of weekly prize periods
        timezone: IANA zone that decides which civil day "today" is
        clock: Optional callable returning an aware ``datetime``; tests pin it
    """

    def __init__(
        self,
        start: date,
        days: int = 31,
        weeks: int = 4,
        timezone: str = "America/Denver",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if days < 1 or weeks < 1:
            raise ConfigurationError(
                f"Challenge needs at least one day and one week (got {days} days, {weeks} weeks)"
            )
        try:
            tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown challenge time zone: {timezone!r}") from e
        self.start = start
        self.days = days
        self.weeks = weeks
        self.tz = tz
        self._clock = clock

    @classmethod
    def from_config(cls, config: Config) -> "ChallengeCalendar":
        return cls(
            start=config.challenge_start,
            days=config.challenge_days,
            weeks=config.challenge_weeks,
            timezone=config.timezone,
        )

    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock().astimezone(self.tz)
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def week_of(self, day: date) -> int:
        index = (day - self.start).days // 7 + 1
        return max(1, min(index, self.weeks))

    def current_week(self) -> int:
        return self.week_of(self.today())

    def previous_week(self) -> Optional[int]:
        week = self.current_week()
        return week - 1 if week > 1 else None

    def week_bounds(self, week: int) -> Tuple[date, date]:
        if week < 1 or week > self.weeks:
            raise ValueError(f"week must be between 1 and {self.weeks}")
        first = self.start + timedelta(days=(week - 1) * 7)
        return first, first + timedelta(days=6)

    def challenge_bounds(self) -> Tuple[date, date]:
        return self.start, self.start + timedelta(days=self.days - 1)

    def contains(self, day: date) -> bool:
        first, last = self.challenge_bounds()
        return first <= day <= last

    def days_left_in_week(self) -> int:
        _, last = self.week_bounds(self.current_week())
        return max(0, (last - self.today()).days)

    def is_monday(self) -> bool:
        return self.today().weekday() == 0
