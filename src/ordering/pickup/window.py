"""Pickup window: when a buyer may collect an order.

A pickup time is acceptable when it falls between now and the booking
horizon (seven days by default) and its local time of day is within the
kitchen hours, 08:00 to 20:00 inclusive. Times are compared to the
minute, so anything within 20:00 is accepted and 20:01 is not.

Naive timestamps are read as local wall-clock time in ``PICKUP_TIMEZONE``;
aware timestamps are converted to that zone before the time-of-day check.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from ordering.settings import OrderingSettings, get_settings
from ordering.utils.clock import as_utc, parse_timestamp, utcnow


@dataclass(frozen=True)
class PickupWindow:
    earliest: datetime
    latest: datetime
    daily_start: time = time(8, 0)
    daily_end: time = time(20, 0)
    timezone: str = "UTC"

    @classmethod
    def starting_at(cls, now: datetime | None = None, settings: OrderingSettings | None = None) -> "PickupWindow":
        settings = settings or get_settings()
        earliest = as_utc(now) if now is not None else utcnow()
        return cls(
            earliest=earliest,
            latest=earliest + timedelta(days=settings.pickup_horizon_days),
            daily_start=settings.pickup_day_start,
            daily_end=settings.pickup_day_end,
            timezone=settings.pickup_timezone,
        )

    def localize(self, candidate: datetime) -> datetime:
        zone = ZoneInfo(self.timezone)
        if candidate.tzinfo is None:
            return candidate.replace(tzinfo=zone)
        return candidate.astimezone(zone)

    def contains(self, candidate: datetime | str | None) -> bool:
        parsed = parse_timestamp(candidate)
        if parsed is None:
            return False

        local = self.localize(parsed)
        instant = as_utc(local)
        if instant < self.earliest or instant > self.latest:
            return False

        time_of_day = local.timetz().replace(second=0, microsecond=0, tzinfo=None)
        return self.daily_start <= time_of_day <= self.daily_end


class PickupScheduler:
    """Validates requested pickup times against a window anchored at "now"."""

    def __init__(self, clock: Callable[[], datetime] = utcnow, settings: OrderingSettings | None = None) -> None:
        self.clock = clock
        self.settings = settings

    def window(self) -> PickupWindow:
        return PickupWindow.starting_at(self.clock(), self.settings)

    def validate(self, candidate: datetime | str | None) -> bool:
        return self.window().contains(candidate)

    def normalize(self, candidate: datetime | str) -> datetime:
        """Return the candidate as an aware UTC datetime. Call after ``validate``."""
        return as_utc(self.window().localize(parse_timestamp(candidate)))
