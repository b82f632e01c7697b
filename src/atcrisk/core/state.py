from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime

import numpy as np

from atcrisk.core.position import LatLong
from atcrisk.core.units import Distance, Speed


@dataclass(frozen=True)
class AircraftState:
    """
    Instantaneous state of one aircraft, as reported (or interpolated) by a Track.
    """

    time: datetime
    position: LatLong
    altitude: Distance
    speed: Speed  # ground speed
    course: float  # degrees clockwise from north

    def velocity_knots(self) -> np.ndarray:
        """[east_kts, north_kts]"""
        course_rad = math.radians(self.course)
        kts = self.speed.in_knots()
        return np.array([kts * math.sin(course_rad), kts * math.cos(course_rad)], dtype=float)

    def at_time(self, time: datetime) -> "AircraftState":
        return replace(self, time=time)
