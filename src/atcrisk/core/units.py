from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta

# unit converters
FEET_PER_NM = 6076.12
MS_PER_HOUR = 3_600_000.0
MS_PER_MINUTE = 60_000.0


@dataclass(frozen=True, order=True)
class Distance:
    """
    A non-directional length. Stored in nautical miles, readable in feet.
    """

    nm: float

    @staticmethod
    def of_nautical_miles(value: float) -> "Distance":
        return Distance(float(value))

    @staticmethod
    def of_feet(value: float) -> "Distance":
        return Distance(float(value) / FEET_PER_NM)

    @staticmethod
    def zero() -> "Distance":
        return Distance(0.0)

    def in_nautical_miles(self) -> float:
        return self.nm

    def in_feet(self) -> float:
        return self.nm * FEET_PER_NM

    def __add__(self, other: "Distance") -> "Distance":
        return Distance(self.nm + other.nm)

    def __sub__(self, other: "Distance") -> "Distance":
        return Distance(self.nm - other.nm)

    def __mul__(self, factor: float) -> "Distance":
        return Distance(self.nm * float(factor))

    __rmul__ = __mul__

    def __abs__(self) -> "Distance":
        return Distance(abs(self.nm))

    def is_negative(self) -> bool:
        return self.nm < 0.0

    def __str__(self) -> str:
        return f"{self.nm:.3f}NM"


@dataclass(frozen=True, order=True)
class Speed:
    """
    A signed rate of change in Distance. Stored in knots.

    Closure rates use this type: positive means the separation is shrinking.
    """

    knots: float

    @staticmethod
    def of_knots(value: float) -> "Speed":
        return Speed(float(value))

    @staticmethod
    def of_feet_per_minute(value: float) -> "Speed":
        return Speed(float(value) * 60.0 / FEET_PER_NM)

    @staticmethod
    def of_feet_per_second(value: float) -> "Speed":
        return Speed(float(value) * 3600.0 / FEET_PER_NM)

    @staticmethod
    def between(distance: Distance, duration: timedelta) -> "Speed":
        """The Speed needed to cover `distance` in `duration`."""
        hours = duration.total_seconds() / 3600.0
        if hours == 0.0:
            raise ValueError("Cannot compute a Speed over a zero Duration")
        return Speed(distance.in_nautical_miles() / hours)

    def in_knots(self) -> float:
        return self.knots

    def in_feet_per_minute(self) -> float:
        return self.knots * FEET_PER_NM / 60.0

    def in_feet_per_second(self) -> float:
        return self.knots * FEET_PER_NM / 3600.0

    def is_positive(self) -> bool:
        return self.knots > 0.0

    def times(self, duration: timedelta) -> Distance:
        """Distance travelled at this speed over `duration` (can be negative)."""
        return Distance(self.knots * duration.total_seconds() / 3600.0)

    def time_to_travel(self, distance: Distance) -> timedelta:
        if self.knots == 0.0:
            raise ValueError("A zero Speed never covers a Distance")
        hours = distance.in_nautical_miles() / self.knots
        return timedelta(milliseconds=int(hours * MS_PER_HOUR))

    def __neg__(self) -> "Speed":
        return Speed(-self.knots)

    def __str__(self) -> str:
        return f"{self.knots:.3f}kn"


def mod_degrees(value: float) -> float:
    out = math.fmod(value, 360.0)
    return out + 360.0 if out < 0.0 else out


def signed_angle_difference(course_a: float, course_b: float) -> float:
    """
    Signed angle to turn from course_b to course_a, in (-180, 180].
    """
    delta = mod_degrees(course_a - course_b)
    return delta - 360.0 if delta > 180.0 else delta


def angle_difference(course_a: float, course_b: float) -> float:
    """Absolute angle between two courses (degrees, 0 to 180)."""
    return abs(signed_angle_difference(course_a, course_b))


def interpolate_course(c1: float, c2: float, fraction: float) -> float:
    """
    Move `fraction` of the way from c1 to c2 along the shorter arc.
    """
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"The fraction: {fraction} is not in range")
    return mod_degrees(c1 + signed_angle_difference(c2, c1) * fraction)
