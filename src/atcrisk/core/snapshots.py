"""
Snapshots: instantaneous views of the geometry between two aircraft at a few
analytically important moments of an encounter.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timedelta
from typing import Iterator, Optional

from atcrisk.core.analysis import ScoredInstant, TrackPairAnalysis
from atcrisk.core.separation import LATERAL, VERTICAL, SeparationTimeSeries
from atcrisk.core.timeutil import duration_ms, to_epoch_ms
from atcrisk.core.track import TrackPair
from atcrisk.core.units import Distance, Speed

VERTICAL_LIMIT_1K_FT = Distance.of_feet(1000)
LATERAL_LIMIT_3_NM = Distance.of_nautical_miles(3.0)
LATERAL_LIMIT_5_NM = Distance.of_nautical_miles(5.0)


@dataclass(frozen=True)
class Snapshot:
    time: datetime
    score: float
    true_lateral_separation: Distance
    true_vertical_separation: Distance
    course_angle_delta: float
    vertical_closure_rate: Speed
    lateral_closure_rate: Speed

    # only reported on the "at event" snapshot
    est_time_to_cpa: Optional[timedelta] = None
    est_lateral_at_cpa: Optional[Distance] = None
    est_vertical_at_cpa: Optional[Distance] = None

    @property
    def angle_delta_degrees(self) -> int:
        return int(self.course_angle_delta)

    def has_cpa_estimate(self) -> bool:
        return self.est_time_to_cpa is not None

    def as_record(self) -> dict:
        """Flatten to plain numbers (ft, NM, ft/min, kt, ms)."""
        return {
            "timestamp": self.time.isoformat(),
            "epoch_ms": to_epoch_ms(self.time),
            "score": self.score,
            "true_vertical_ft": self.true_vertical_separation.in_feet(),
            "true_lateral_nm": self.true_lateral_separation.in_nautical_miles(),
            "angle_delta": self.angle_delta_degrees,
            "vert_closure_rate_fpm": self.vertical_closure_rate.in_feet_per_minute(),
            "lateral_closure_rate_kt": self.lateral_closure_rate.in_knots(),
            "est_time_to_cpa_ms": None if self.est_time_to_cpa is None else duration_ms(self.est_time_to_cpa),
            "est_vertical_at_cpa_ft": None if self.est_vertical_at_cpa is None else self.est_vertical_at_cpa.in_feet(),
            "est_lateral_at_cpa_nm": None if self.est_lateral_at_cpa is None else self.est_lateral_at_cpa.in_nautical_miles(),
        }


def extract_snapshot(pair: TrackPair, time: datetime, score: float) -> Optional[Snapshot]:
    # data for at least one aircraft is missing
    if not pair.overlap_contains(time):
        return None

    points = pair.interpolated_points_at(time)
    sep_info = pair.separation_info()

    return Snapshot(
        time=time,
        score=score,
        true_lateral_separation=points.lateral_distance(),
        true_vertical_separation=points.altitude_delta(),
        course_angle_delta=points.course_delta(),
        vertical_closure_rate=sep_info.vertical_closure_rate_at(time),
        lateral_closure_rate=points.horizontal_closure(),
    )


def extract_snapshot_with_cpa(pair: TrackPair, scored: ScoredInstant) -> Optional[Snapshot]:
    time = scored.time
    if not pair.overlap_contains(time):
        return None

    points = pair.interpolated_points_at(time)
    sep_info = pair.separation_info()
    cpa = points.closest_point_of_approach()

    return Snapshot(
        time=time,
        score=scored.score,
        true_lateral_separation=points.lateral_distance(),
        true_vertical_separation=points.altitude_delta(),
        course_angle_delta=points.course_delta(),
        vertical_closure_rate=sep_info.vertical_closure_rate_at(time),
        lateral_closure_rate=points.horizontal_closure(),
        est_time_to_cpa=cpa.time_until_cpa,
        est_lateral_at_cpa=cpa.distance_at_cpa,
        est_vertical_at_cpa=sep_info.predicted_vertical_separation(time, cpa.time_until_cpa),
    )


@dataclass(frozen=True)
class KeyMoments:
    """The six named snapshots of an encounter (any of them may be None)."""

    at_event: Optional[Snapshot]
    at_estimated_cpa: Optional[Snapshot]
    at_closest_lateral: Optional[Snapshot]
    at_closest_lateral_with_1k_vert: Optional[Snapshot]
    at_closest_vertical_with_3nm: Optional[Snapshot]
    at_closest_vertical_with_5nm: Optional[Snapshot]

    def __iter__(self) -> Iterator[Optional[Snapshot]]:
        return (getattr(self, f.name) for f in fields(self))

    def named(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def time_of_closest(
    sep_info: SeparationTimeSeries,
    minimize: str,
    constraint: Optional[str] = None,
    limit: Optional[Distance] = None,
) -> Optional[datetime]:
    sample = sep_info.closest_sample(minimize, constraint, limit)
    return None if sample is None else sample.time


def snapshot_at(tpa: TrackPairAnalysis, time: Optional[datetime]) -> Optional[Snapshot]:
    # a snapshot needs a score, so borrow the one nearest in time
    scored = tpa.closest_scored_moment(time)
    if scored is None:
        return None
    return extract_snapshot(tpa.source_pair, scored.time, scored.score)


def extract_key_moments(tpa: TrackPairAnalysis) -> KeyMoments:
    pair = tpa.source_pair
    sep_info = pair.separation_info()
    event_time = tpa.riskiest_moment.time

    cpa = pair.interpolated_points_at(event_time).closest_point_of_approach()

    return KeyMoments(
        at_event=extract_snapshot_with_cpa(pair, tpa.riskiest_moment),
        at_estimated_cpa=snapshot_at(tpa, event_time + cpa.time_until_cpa),
        at_closest_lateral=snapshot_at(tpa, time_of_closest(sep_info, LATERAL)),
        at_closest_lateral_with_1k_vert=snapshot_at(
            tpa, time_of_closest(sep_info, LATERAL, VERTICAL, VERTICAL_LIMIT_1K_FT)
        ),
        at_closest_vertical_with_3nm=snapshot_at(
            tpa, time_of_closest(sep_info, VERTICAL, LATERAL, LATERAL_LIMIT_3_NM)
        ),
        at_closest_vertical_with_5nm=snapshot_at(
            tpa, time_of_closest(sep_info, VERTICAL, LATERAL, LATERAL_LIMIT_5_NM)
        ),
    )
