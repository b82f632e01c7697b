"""
Single-instant risk score for a TrackPair.

Scores are inverted: LOWER means MORE dangerous, and zero is the theoretical
worst case (no time, lateral, or vertical separation left at the CPA).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from atcrisk.core.geometry import PointPair
from atcrisk.core.timeutil import TimeWindow, duration_ms
from atcrisk.core.track import Track, TrackPair
from atcrisk.core.units import Distance, Speed

logger = logging.getLogger(__name__)

LEVEL_FLIGHT_REQUIREMENT = timedelta(seconds=30)
LEVEL_FLIGHT_ALTITUDE_RANGE = Distance.of_feet(100)

HIGH_ALTITUDE_THRESHOLD = Distance.of_feet(18_000)

# Altitude delta (ft) at which the vertical non-convergence penalty reaches 2.0
VERTICAL_PENALTY_SCALE_FT = 700.0

# About a fast walking pace
LATERAL_CLOSURE_FLOOR_KTS = 3.0


@dataclass(frozen=True)
class CoefficientSet:
    """Converts separation measurements into score units."""

    horizontal_coef: float
    vertical_coef: float
    time_coef: float
    non_converging_penalty: float


ABOVE_18000_FT = CoefficientSet(
    horizontal_coef=1.0 / 0.25,  # 0.25 NM = 1 score unit
    vertical_coef=1.0 / 250.0,  # 250 ft = 1 score unit
    time_coef=1.0 / 30_000.0,  # 30 s = 1 score unit
    non_converging_penalty=4.0,
)

BELOW_18000_FT = CoefficientSet(
    horizontal_coef=1.0 / 0.25,
    vertical_coef=1.0 / 150.0,
    time_coef=1.0 / 30_000.0,
    non_converging_penalty=4.0,
)


def is_established_at_altitude(track: Track, query_time: datetime, duration: timedelta) -> bool:
    """
    True when the track has at least two raw points in the window that ends at
    `query_time` and all of them lie within a 100 ft altitude band.
    """
    recent = track.subset(TimeWindow(query_time - duration, query_time))
    if len(recent) < 2:
        return False

    altitudes = [s.altitude for s in recent]
    return max(altitudes) - min(altitudes) <= LEVEL_FLIGHT_ALTITUDE_RANGE


def format_duration(duration: timedelta) -> str:
    """
    "1m 5.123 sec" or "6.789 sec". Durations over an hour use str(timedelta).
    """
    if duration > timedelta(hours=1):
        return str(duration)
    total_ms = duration_ms(duration)
    minutes, rem_ms = divmod(total_ms, 60_000)
    seconds, ms = divmod(rem_ms, 1000)
    prefix = f"{minutes}m " if minutes > 0 else ""
    return f"{prefix}{seconds}.{ms:03d} sec"


class SeparationPrediction:
    """
    Predicts, at one instant, when the two aircraft will be closest laterally,
    how close they will be, and what their vertical separation will be then.
    Those predictions are then folded into a single score.
    """

    def __init__(self, track_pair: TrackPair, time: datetime):
        self.track_pair = track_pair
        self.time = time
        self.points: PointPair = track_pair.interpolated_points_at(time)

        cpa = self.points.closest_point_of_approach()
        self.time_until_cpa: timedelta = cpa.time_until_cpa
        self.lateral_distance_at_cpa: Distance = cpa.distance_at_cpa

        sep_info = track_pair.separation_info()
        # extrapolation along the observed closure rate, the CPA can lie past the series end
        self.vertical_separation_at_cpa: Distance = sep_info.predicted_vertical_separation(time, self.time_until_cpa)
        self.vertical_closure_rate: Speed = sep_info.vertical_closure_rate_at(time)
        self.lateral_closure_rate: Speed = sep_info.horizontal_closure_rate_at(time)

        self.score = self._compute_score(self.coefficients())

    def coefficients(self) -> CoefficientSet:
        return ABOVE_18000_FT if self.points.avg_altitude() > HIGH_ALTITUDE_THRESHOLD else BELOW_18000_FT

    def _compute_score(self, coefs: CoefficientSet) -> float:
        time_score = coefs.time_coef * duration_ms(self.time_until_cpa)
        horizontal_score = coefs.horizontal_coef * self.lateral_distance_at_cpa.in_nautical_miles()
        vertical_score = coefs.vertical_coef * self.vertical_separation_at_cpa.in_feet()

        # grows faster than a plain 2-D hypot as either axis closes
        score = time_score ** 2 + (horizontal_score ** 2.5 + vertical_score ** 2.5) ** 0.5

        score *= self.vertical_penalty()
        score *= self.lateral_penalty(coefs)

        logger.debug(
            "score: %.3f\t%s\t%s\t%.2fNM\t%.0fft",
            score,
            self.time.isoformat(),
            format_duration(self.time_until_cpa),
            self.lateral_distance_at_cpa.in_nautical_miles(),
            self.vertical_separation_at_cpa.in_feet(),
        )
        return score

    def vertical_penalty(self) -> float:
        """Multiplier >= 1 applied when the aircraft are not converging vertically."""
        if self.tracks_are_both_level() or self.tracks_are_diverging_vertically():
            return 1.0 + (self.points.altitude_delta().in_feet() / VERTICAL_PENALTY_SCALE_FT) ** 2.5
        return 1.0

    def lateral_penalty(self, coefs: CoefficientSet) -> float:
        """Multiplier >= 1 applied when the aircraft are barely closing (or opening) laterally."""
        if self.lateral_closure_rate.in_knots() <= LATERAL_CLOSURE_FLOOR_KTS:
            return 1.0 + coefs.horizontal_coef * self.points.lateral_distance().in_nautical_miles()
        return 1.0

    def tracks_are_both_level(self) -> bool:
        return (
            is_established_at_altitude(self.track_pair.track1, self.time, LEVEL_FLIGHT_REQUIREMENT)
            and is_established_at_altitude(self.track_pair.track2, self.time, LEVEL_FLIGHT_REQUIREMENT)
        )

    def tracks_are_diverging_vertically(self) -> bool:
        return self.vertical_closure_rate.in_feet_per_second() < 0.0
