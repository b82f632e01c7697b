from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from atcrisk.core.units import Distance, mod_degrees

NM_PER_DEGREE_LAT = 60.0


def wrap_longitude(value: float) -> float:
    """Map any longitude (or longitude difference) into [-180, 180)."""
    return ((value + 180.0) % 360.0) - 180.0


@dataclass(frozen=True)
class LatLong:
    """
    A geographic position (degrees).

    Encounter geometry is done in a local flat-earth projection centred on the
    mean latitude of the two positions involved. Longitude differences always
    take the shorter way around, so pairs straddling the antimeridian stay close.
    """

    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    def vector_to_nm(self, other: "LatLong") -> np.ndarray:
        """
        [east_nm, north_nm] displacement from self to other
        """
        mean_lat = 0.5 * (self.latitude + other.latitude)
        dlon = wrap_longitude(other.longitude - self.longitude)
        dx = dlon * NM_PER_DEGREE_LAT * math.cos(math.radians(mean_lat))
        dy = (other.latitude - self.latitude) * NM_PER_DEGREE_LAT
        return np.array([dx, dy], dtype=float)

    def distance_to(self, other: "LatLong") -> Distance:
        return Distance.of_nautical_miles(float(np.linalg.norm(self.vector_to_nm(other))))

    def course_to(self, other: "LatLong") -> float:
        """Degrees clockwise from north."""
        dx, dy = self.vector_to_nm(other)
        return mod_degrees(math.degrees(math.atan2(dx, dy)))

    def offset_nm(self, east_nm: float, north_nm: float) -> "LatLong":
        lat = self.latitude + north_nm / NM_PER_DEGREE_LAT
        lon = self.longitude + east_nm / (NM_PER_DEGREE_LAT * math.cos(math.radians(self.latitude)))
        return LatLong(lat, wrap_longitude(lon))

    def interpolate(self, other: "LatLong", fraction: float) -> "LatLong":
        """Move `fraction` of the way to `other`, crossing the antimeridian if that is shorter."""
        dlon = wrap_longitude(other.longitude - self.longitude)
        return LatLong(
            self.latitude + (other.latitude - self.latitude) * fraction,
            wrap_longitude(self.longitude + dlon * fraction),
        )

    def average(self, other: "LatLong") -> "LatLong":
        return self.interpolate(other, 0.5)
