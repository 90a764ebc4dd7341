"""Interval policies deciding how long a worker sleeps between ticks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol


class IntervalPolicy(Protocol):
    def next_interval(self, now: datetime | None = None) -> float:
        ...


@dataclass(frozen=True, slots=True)
class FixedInterval:
    seconds: float

    def next_interval(self, now: datetime | None = None) -> float:
        return float(self.seconds)


@dataclass(frozen=True, slots=True)
class BusinessHoursInterval:
    """Poll faster inside a UTC business window and slower outside it.

    ``start_hour`` is inclusive and ``end_hour`` exclusive, so the default
    window covers 08:00:00 through 19:59:59 UTC.
    """

    business_seconds: float = 300
    off_hours_seconds: float = 900
    start_hour: int = 8
    end_hour: int = 20

    def __post_init__(self) -> None:
        if not (0 <= self.start_hour <= 23 and 0 <= self.end_hour <= 24):
            raise ValueError("Business hours must fall within 0-24")
        if self.business_seconds <= 0 or self.off_hours_seconds <= 0:
            raise ValueError("Intervals must be positive")

    def in_business_hours(self, now: datetime | None = None) -> bool:
        current = now or datetime.now(timezone.utc)
        if current.tzinfo is not None:
            current = current.astimezone(timezone.utc)
        hour = current.hour
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        # window wraps past midnight
        return hour >= self.start_hour or hour < self.end_hour

    def next_interval(self, now: datetime | None = None) -> float:
        if self.in_business_hours(now):
            return float(self.business_seconds)
        return float(self.off_hours_seconds)

    @classmethod
    def from_settings(cls, settings) -> "BusinessHoursInterval":
        return cls(
            business_seconds=settings.adaptive_business_interval_seconds,
            off_hours_seconds=settings.adaptive_off_hours_interval_seconds,
            start_hour=settings.business_hours_start_utc,
            end_hour=settings.business_hours_end_utc,
        )


__all__ = ["BusinessHoursInterval", "FixedInterval", "IntervalPolicy"]
