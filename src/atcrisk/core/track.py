from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Iterator, List, Optional, Sequence

import numpy as np
import pandas as pd

from atcrisk.core.geometry import PointPair
from atcrisk.core.position import LatLong
from atcrisk.core.separation import SeparationTimeSeries
from atcrisk.core.state import AircraftState
from atcrisk.core.timeutil import TimeWindow, floor_to_ms, from_epoch_ms, require_aware, to_epoch_ms
from atcrisk.core.units import Distance, Speed, interpolate_course

logger = logging.getLogger(__name__)

TRACK_FRAME_COLUMNS = ["epoch_ms", "lat", "lon", "alt_ft", "speed_kts", "course_deg"]


def _lerp(start: float, end: float, fraction: float) -> float:
    return start + (end - start) * fraction


def interpolate_states(s1: AircraftState, s2: AircraftState, time: datetime) -> AircraftState:
    """
    Linear interpolation between two chronologically ordered states.
    No extrapolation: `time` must lie in [s1.time, s2.time].
    """
    if s2.time < s1.time:
        raise ValueError("The input states must be in chronological order")
    window = TimeWindow(s1.time, s2.time)
    if not window.contains(time):
        raise ValueError(f"{time} is outside {window}")

    if time == s1.time:
        return s1
    if time == s2.time:
        return s2

    frac = window.fraction_of_range(time)
    return AircraftState(
        time=time,
        position=s1.position.interpolate(s2.position, frac),
        altitude=Distance.of_feet(_lerp(s1.altitude.in_feet(), s2.altitude.in_feet(), frac)),
        speed=Speed.of_knots(_lerp(s1.speed.in_knots(), s2.speed.in_knots(), frac)),
        course=interpolate_course(s1.course, s2.course, frac),
    )


class Track:
    """
    The time-ordered surveillance history of one aircraft.

    Acts as the point source for encounter analysis: any instant inside the
    track's time window can be turned into an (interpolated) AircraftState.
    State times must be timezone-aware and are floored to the millisecond.
    """

    def __init__(self, track_id: str, states: Sequence[AircraftState]):
        if len(states) == 0:
            raise ValueError(f"Track {track_id} has no states")

        for s in states:
            require_aware(s.time)

        self.track_id = track_id
        # the analysis works at millisecond resolution
        self._states = tuple(s if s.time == floor_to_ms(s.time) else s.at_time(floor_to_ms(s.time)) for s in states)
        self._times_ms = np.asarray([to_epoch_ms(s.time) for s in self._states], dtype=np.int64)

        if np.any(np.diff(self._times_ms) <= 0):
            raise ValueError(f"Track {track_id} states are not in strictly increasing time order")

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[AircraftState]:
        return iter(self._states)

    def __repr__(self) -> str:
        return f"Track({self.track_id!r}, n={len(self)}, window={self.time_window()})"

    def states(self) -> List[AircraftState]:
        return list(self._states)

    def time_window(self) -> TimeWindow:
        return TimeWindow(self._states[0].time, self._states[-1].time)

    def interpolated_state(self, time: datetime) -> Optional[AircraftState]:
        if not self.time_window().contains(time):
            return None

        ms = to_epoch_ms(time)
        idx = int(np.searchsorted(self._times_ms, ms, side="left"))
        if self._times_ms[idx] == ms:
            return self._states[idx]

        return interpolate_states(self._states[idx - 1], self._states[idx], time)

    def subset(self, window: TimeWindow) -> List[AircraftState]:
        """Raw states inside the closed window."""
        lo = int(np.searchsorted(self._times_ms, to_epoch_ms(window.start), side="left"))
        hi = int(np.searchsorted(self._times_ms, to_epoch_ms(window.end), side="right"))
        return list(self._states[lo:hi])

    @staticmethod
    def from_frame(track_id: str, df: pd.DataFrame) -> "Track":
        """
        Build a Track from a frame with TRACK_FRAME_COLUMNS (any row order).
        """
        missing = [c for c in TRACK_FRAME_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Missing {missing} in df")

        df = df.sort_values("epoch_ms")
        states = [
            AircraftState(
                time=from_epoch_ms(int(row.epoch_ms)),
                position=LatLong(float(row.lat), float(row.lon)),
                altitude=Distance.of_feet(float(row.alt_ft)),
                speed=Speed.of_knots(float(row.speed_kts)),
                course=float(row.course_deg),
            )
            for row in df.itertuples(index=False)
        ]
        return Track(track_id, states)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "epoch_ms": self._times_ms,
            "lat": [s.position.latitude for s in self._states],
            "lon": [s.position.longitude for s in self._states],
            "alt_ft": [s.altitude.in_feet() for s in self._states],
            "speed_kts": [s.speed.in_knots() for s in self._states],
            "course_deg": [s.course for s in self._states],
        })


class TrackPair:
    """
    Exactly two Tracks, plus the (lazily computed, then immutable)
    SeparationTimeSeries describing their interaction.
    """

    def __init__(self, track1: Track, track2: Track):
        if track1 is None or track2 is None:
            raise ValueError("A TrackPair needs two tracks")
        self.track1 = track1
        self.track2 = track2
        self._sep_info: Optional[SeparationTimeSeries] = None
        self._sep_lock = threading.Lock()

    @staticmethod
    def of(track1: Track, track2: Track) -> "TrackPair":
        return TrackPair(track1, track2)

    def time_overlap(self) -> Optional[TimeWindow]:
        return self.track1.time_window().overlap_with(self.track2.time_window())

    def overlap_in_time(self) -> bool:
        return self.time_overlap() is not None

    def overlap_contains(self, time: datetime) -> bool:
        overlap = self.time_overlap()
        return overlap is not None and overlap.contains(time)

    def times_in_overlap(self, time_step: timedelta) -> List[datetime]:
        overlap = self.time_overlap()
        return overlap.stepped_iteration(time_step) if overlap is not None else []

    def interpolated_points_at(self, time: datetime) -> PointPair:
        overlap = self.time_overlap()
        if overlap is None:
            raise ValueError("The tracks do not overlap in time")
        if not overlap.contains(time):
            raise ValueError(f"{time} is outside the track overlap {overlap}")

        return PointPair(
            self.track1.interpolated_state(time),
            self.track2.interpolated_state(time),
        )

    # ------------------------------------------------------------------
    # separation time series (computed at most once)
    # ------------------------------------------------------------------

    def separation_info(self) -> SeparationTimeSeries:
        """
        The SeparationTimeSeries of this pair. Uses the dynamic time step
        unless a methodology was chosen explicitly beforehand.
        """
        sep_info = self._sep_info
        if sep_info is not None:
            return sep_info

        with self._sep_lock:
            if self._sep_info is None:
                self._sep_info = SeparationTimeSeries.dynamic_time_step(self)
            return self._sep_info

    def separation_time_series_is_missing(self) -> bool:
        return self._sep_info is None

    def compute_separation_time_series(self, methodology: Callable[["TrackPair"], SeparationTimeSeries]) -> None:
        with self._sep_lock:
            if self._sep_info is not None:
                raise RuntimeError("The SeparationTimeSeries cannot be set twice")
            series = methodology(self)
            self._sep_info = series

    def compute_dynamic_separation_time_series(self) -> None:
        self.compute_separation_time_series(SeparationTimeSeries.dynamic_time_step)

    def compute_fixed_time_step_separation_time_series(self, time_step: timedelta) -> None:
        self.compute_separation_time_series(lambda pair: SeparationTimeSeries.fixed_time_step(pair, time_step))

    # ------------------------------------------------------------------
    # proximity checks
    # ------------------------------------------------------------------

    def come_within(self, lateral: Distance, vertical: Optional[Distance] = None) -> bool:
        """True if any sample of the separation series is this close."""
        for sample in self.separation_info().samples():
            if sample.horizontal <= lateral and (vertical is None or sample.vertical <= vertical):
                return True
        return False

    def separate_by(self, lateral: Distance) -> bool:
        """
        True if the tracks are ever more than `lateral` apart (2 second scan).
        """
        if not self.overlap_in_time():
            raise ValueError("Value not defined because the tracks do not overlap in time")

        for time in self.times_in_overlap(timedelta(seconds=2)):
            if self.interpolated_points_at(time).lateral_distance() > lateral:
                return True
        return False
