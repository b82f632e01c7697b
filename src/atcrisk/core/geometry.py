"""
Instantaneous separation measures between two simultaneous aircraft states,
plus the straight-line closest point of approach (CPA) projection.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta

import numpy as np

from atcrisk.core.position import LatLong
from atcrisk.core.state import AircraftState
from atcrisk.core.units import Distance, MS_PER_HOUR, Speed, angle_difference

# Below this lateral distance (NM) the direction between the aircraft is undefined
COINCIDENT_POSITION_NM = 0.001


@dataclass(frozen=True)
class ClosestPointOfApproach:
    """
    Time until the closest point of approach and the lateral distance at that moment.
    """

    time_until_cpa: timedelta
    distance_at_cpa: Distance


@dataclass(frozen=True)
class PointPair:
    point1: AircraftState
    point2: AircraftState

    def altitude_delta(self) -> Distance:
        return abs(self.point1.altitude - self.point2.altitude)

    def lateral_distance(self) -> Distance:
        return self.point1.position.distance_to(self.point2.position)

    def speed_delta(self) -> Speed:
        return Speed.of_knots(abs(self.point1.speed.in_knots() - self.point2.speed.in_knots()))

    def magnitude_of_velocity_delta(self) -> Speed:
        dv = self.point1.velocity_knots() - self.point2.velocity_knots()
        return Speed.of_knots(float(np.linalg.norm(dv)))

    def course_delta(self) -> float:
        """Absolute course difference in degrees (0 to 180)."""
        return angle_difference(self.point1.course, self.point2.course)

    def horizontal_closure(self) -> Speed:
        """
        Rate at which the lateral distance is shrinking (positive = converging).

        d(t) = |dp + dv*t|, where dp = p2 - p1 and dv = v2 - v1, so
        d'(0) = (dp . dv) / |dp| and the closure rate is -d'(0).

        Returns zero when the aircraft are (nearly) on top of each other.
        """
        dp = self._vector_between_points_nm()
        dp_magnitude = float(np.linalg.norm(dp))

        if dp_magnitude < COINCIDENT_POSITION_NM:
            return Speed.of_knots(0.0)

        dv = self.point2.velocity_knots() - self.point1.velocity_knots()
        return Speed.of_knots(-float(np.dot(dp, dv)) / dp_magnitude)

    def are_within(self, altitude_req: Distance, lateral_req: Distance) -> bool:
        # altitude is cheaper, check it first
        return self.altitude_delta() <= altitude_req and self.lateral_distance() <= lateral_req

    def avg_position(self) -> LatLong:
        return self.point1.position.average(self.point2.position)

    def avg_altitude(self) -> Distance:
        return Distance.of_feet(0.5 * (self.point1.altitude.in_feet() + self.point2.altitude.in_feet()))

    def closest_point_of_approach(self) -> ClosestPointOfApproach:
        """
        Project both aircraft along straight lines and find when (and how close)
        they pass. The Earth's curvature is ignored.

        A CPA in the past (or an undefined one, e.g. zero relative velocity) is
        reported as "now" at the current lateral distance.
        """
        if self.point1.time != self.point2.time:
            raise ValueError(
                "A CPA can only be computed for points at the same instant: "
                f"{self.point1.time} != {self.point2.time}"
            )

        dp = self._vector_between_points_nm()
        dv = self.point2.velocity_knots() - self.point1.velocity_knots()

        # negative when the aircraft are already diverging
        dv_squared = float(np.dot(dv, dv))
        t_hours = -float(np.dot(dp, dv)) / dv_squared if dv_squared > 0.0 else math.nan

        if not math.isfinite(t_hours) or t_hours <= 0.0:
            return ClosestPointOfApproach(timedelta(0), self.lateral_distance())

        dp_at_cpa = dp + dv * t_hours

        return ClosestPointOfApproach(
            time_until_cpa=timedelta(milliseconds=int(t_hours * MS_PER_HOUR)),
            distance_at_cpa=Distance.of_nautical_miles(float(np.linalg.norm(dp_at_cpa))),
        )

    def _vector_between_points_nm(self) -> np.ndarray:
        return self.point1.position.vector_to_nm(self.point2.position)
