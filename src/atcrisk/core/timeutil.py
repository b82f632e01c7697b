from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ms(time: datetime) -> int:
    return (time - EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=int(ms))


def duration_ms(duration: timedelta) -> int:
    return duration // timedelta(milliseconds=1)


def require_aware(time: datetime) -> None:
    if time.tzinfo is None or time.utcoffset() is None:
        raise ValueError(f"{time} is a naive datetime, times must be timezone-aware")


def floor_to_ms(time: datetime) -> datetime:
    """Drop the sub-millisecond part of `time`."""
    return time - timedelta(microseconds=time.microsecond % 1000)


@dataclass(frozen=True)
class TimeWindow:
    """
    Closed interval of time: [start, end]
    """

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"TimeWindow end ({self.end}) is before start ({self.start})")

    def contains(self, time: datetime) -> bool:
        return self.start <= time <= self.end

    def duration(self) -> timedelta:
        return self.end - self.start

    def overlap_with(self, other: "TimeWindow") -> Optional["TimeWindow"]:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end < start:
            return None
        return TimeWindow(start, end)

    def fraction_of_range(self, time: datetime) -> float:
        """
        0.0 at start, 1.0 at end (not restricted to that range)
        """
        span = self.duration()
        if span == timedelta(0):
            return 0.0
        return (time - self.start) / span

    def stepped_iteration(self, step: timedelta) -> List[datetime]:
        """
        start, start + step, ... and always the end itself.
        """
        if step <= timedelta(0):
            raise ValueError("The time step must be positive")

        times = []
        cur = self.start
        while cur < self.end:
            times.append(cur)
            cur = cur + step
        times.append(self.end)
        return times
