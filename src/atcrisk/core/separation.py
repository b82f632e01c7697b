"""
How far apart two aircraft are (laterally and vertically) across the time
overlap of a TrackPair, and how quickly that separation is changing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from atcrisk.core.timeutil import TimeWindow, from_epoch_ms, to_epoch_ms
from atcrisk.core.units import Distance, Speed

if TYPE_CHECKING:
    from atcrisk.core.track import TrackPair

logger = logging.getLogger(__name__)

DEFAULT_TIME_STEP = timedelta(seconds=5)

# (lateral distance upper bound in NM, time step) -- checked in order
DYNAMIC_STEP_TABLE: Tuple[Tuple[float, timedelta], ...] = (
    (15.0, timedelta(milliseconds=2_500)),
    (30.0, timedelta(milliseconds=5_000)),
    (50.0, timedelta(milliseconds=10_000)),
)
FAR_APART_TIME_STEP = timedelta(milliseconds=20_000)

LATERAL = "lateral"
VERTICAL = "vertical"


def dynamic_time_step(horizontal: Distance) -> timedelta:
    """Smaller steps when the aircraft are closer together."""
    for bound_nm, step in DYNAMIC_STEP_TABLE:
        if horizontal.in_nautical_miles() < bound_nm:
            return step
    return FAR_APART_TIME_STEP


@dataclass(frozen=True)
class SeparationSample:
    time: datetime
    horizontal: Distance
    vertical: Distance


class SeparationTimeSeries:
    """
    Lateral and vertical separation sampled at strictly increasing times.

    Queries between samples are linearly interpolated. Closure rates are finite
    differences of adjacent samples (positive = separation shrinking).
    Instances are immutable once built.
    """

    def __init__(
        self,
        times: Sequence[datetime],
        vertical: Sequence[Distance],
        horizontal: Sequence[Distance],
    ):
        if len(times) < 2:
            raise ValueError(f"A SeparationTimeSeries needs at least 2 samples, got {len(times)}")
        if not (len(times) == len(vertical) == len(horizontal)):
            raise ValueError("times, vertical, and horizontal must be the same length")

        times_ms = np.asarray([to_epoch_ms(t) for t in times], dtype=np.int64)
        if np.any(np.diff(times_ms) <= 0):
            raise ValueError("Sample times must be strictly increasing")

        self._times_ms = times_ms
        self._vertical_ft = np.asarray([d.in_feet() for d in vertical], dtype=float)
        self._horizontal_nm = np.asarray([d.in_nautical_miles() for d in horizontal], dtype=float)
        for arr in (self._times_ms, self._vertical_ft, self._horizontal_nm):
            arr.setflags(write=False)

        self._time_window = TimeWindow(from_epoch_ms(times_ms[0]), from_epoch_ms(times_ms[-1]))

        # set by fixed_time_step, None for any other sampling
        self.fixed_step: Optional[timedelta] = None

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    @staticmethod
    def from_samples(samples: Sequence[SeparationSample]) -> "SeparationTimeSeries":
        return SeparationTimeSeries(
            [s.time for s in samples],
            [s.vertical for s in samples],
            [s.horizontal for s in samples],
        )

    @staticmethod
    def fixed_time_step(pair: "TrackPair", time_step: timedelta = DEFAULT_TIME_STEP) -> "SeparationTimeSeries":
        """Sample every `time_step` across the overlap, including both ends."""
        if time_step <= timedelta(0):
            raise ValueError("The time step must be positive")
        if time_step % timedelta(milliseconds=1):
            raise ValueError(f"The time step must be a whole number of milliseconds, got {time_step}")
        if not pair.overlap_in_time():
            raise ValueError("The tracks must overlap in time")

        samples = [_sample(pair, t) for t in pair.times_in_overlap(time_step)]
        logger.debug("fixed step series: %d samples at %s", len(samples), time_step)
        series = SeparationTimeSeries.from_samples(samples)
        series.fixed_step = time_step
        return series

    @staticmethod
    def dynamic_time_step(pair: "TrackPair") -> "SeparationTimeSeries":
        """
        Walk the overlap with a step that shrinks as the aircraft get closer
        (see DYNAMIC_STEP_TABLE). The overlap's end is always the last sample.
        """
        overlap = pair.time_overlap()
        if overlap is None:
            raise ValueError("The tracks must overlap in time")

        samples: List[SeparationSample] = []
        cur = overlap.start
        while cur < overlap.end:
            sample = _sample(pair, cur)
            samples.append(sample)
            cur = cur + dynamic_time_step(sample.horizontal)

        if not samples or samples[-1].time != overlap.end:
            samples.append(_sample(pair, overlap.end))

        logger.debug("dynamic step series: %d samples over %s", len(samples), overlap.duration())
        return SeparationTimeSeries.from_samples(samples)

    # ------------------------------------------------------------------
    # basic accessors
    # ------------------------------------------------------------------

    def time_window(self) -> TimeWindow:
        return self._time_window

    def __len__(self) -> int:
        return len(self._times_ms)

    def __iter__(self) -> Iterator[datetime]:
        return iter(self.times())

    def times(self) -> List[datetime]:
        return [from_epoch_ms(ms) for ms in self._times_ms]

    def samples(self) -> List[SeparationSample]:
        return [self._sample_at_index(i) for i in range(len(self))]

    def _sample_at_index(self, i: int) -> SeparationSample:
        return SeparationSample(
            time=from_epoch_ms(self._times_ms[i]),
            horizontal=Distance.of_nautical_miles(float(self._horizontal_nm[i])),
            vertical=Distance.of_feet(float(self._vertical_ft[i])),
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "epoch_ms": self._times_ms,
            "horizontal_nm": self._horizontal_nm,
            "vertical_ft": self._vertical_ft,
        })

    # ------------------------------------------------------------------
    # separation
    # ------------------------------------------------------------------

    def horizontal_separation_at(self, time: datetime) -> Distance:
        return Distance.of_nautical_miles(self._separation_at(self._horizontal_nm, time))

    def vertical_separation_at(self, time: datetime) -> Distance:
        return Distance.of_feet(self._separation_at(self._vertical_ft, time))

    def _check_in_window(self, time: datetime) -> None:
        if not self._time_window.contains(time):
            raise ValueError(f"{time} is outside the series time window {self._time_window}")

    def _separation_at(self, values: np.ndarray, time: datetime) -> float:
        self._check_in_window(time)
        ms = to_epoch_ms(time)
        idx = int(np.searchsorted(self._times_ms, ms, side="left"))

        # exact hit
        if self._times_ms[idx] == ms:
            return float(values[idx])

        t0, t1 = self._times_ms[idx - 1], self._times_ms[idx]
        frac = (ms - t0) / (t1 - t0)
        return float(values[idx - 1] + (values[idx] - values[idx - 1]) * frac)

    # ------------------------------------------------------------------
    # closure rates
    # ------------------------------------------------------------------

    def horizontal_closure_rate_at(self, time: datetime) -> Speed:
        return Speed.of_knots(self._closure_rate_per_ms(self._horizontal_nm, time) * 3_600_000.0)

    def vertical_closure_rate_at(self, time: datetime) -> Speed:
        return Speed.of_feet_per_second(self._closure_rate_per_ms(self._vertical_ft, time) * 1000.0)

    def _closure_rate_per_ms(self, values: np.ndarray, time: datetime) -> float:
        self._check_in_window(time)
        ms = to_epoch_ms(time)
        # index of the sample at (or just before) this time
        idx = int(np.searchsorted(self._times_ms, ms, side="right")) - 1

        # the last sample has no "next" sample, reuse the final interval
        if idx == len(self._times_ms) - 1:
            idx -= 1

        delta = values[idx] - values[idx + 1]
        elapsed = self._times_ms[idx + 1] - self._times_ms[idx]
        return float(delta / elapsed)

    # ------------------------------------------------------------------
    # extrapolation
    # ------------------------------------------------------------------

    def time_until_horizontal_closure(self, time: datetime) -> Optional[timedelta]:
        return self._time_until_closure(self.horizontal_separation_at(time), self.horizontal_closure_rate_at(time))

    def time_until_vertical_closure(self, time: datetime) -> Optional[timedelta]:
        return self._time_until_closure(self.vertical_separation_at(time), self.vertical_closure_rate_at(time))

    @staticmethod
    def _time_until_closure(separation: Distance, closure_rate: Speed) -> Optional[timedelta]:
        # not shrinking -> no answer
        if not closure_rate.is_positive():
            return None
        return closure_rate.time_to_travel(separation)

    def predicted_horizontal_separation(self, time: datetime, lookahead: timedelta) -> Distance:
        return self._predicted(self.horizontal_separation_at, self.horizontal_closure_rate_at, time, lookahead)

    def predicted_vertical_separation(self, time: datetime, lookahead: timedelta) -> Distance:
        return self._predicted(self.vertical_separation_at, self.vertical_closure_rate_at, time, lookahead)

    @staticmethod
    def _predicted(
        separation_at: Callable[[datetime], Distance],
        closure_rate_at: Callable[[datetime], Speed],
        time: datetime,
        lookahead: timedelta,
    ) -> Distance:
        """
        Extrapolate along the local closure rate. Overshooting zero means the
        aircraft passed each other, so the result is reflected back to positive.
        """
        if lookahead < timedelta(0):
            raise ValueError("The lookahead cannot be negative")
        closed = closure_rate_at(time).times(lookahead)
        return abs(separation_at(time) - closed)

    def vertical_dist_at_horizontal_closure_time(self, time: datetime) -> Optional[Distance]:
        until = self.time_until_horizontal_closure(time)
        if until is None:
            return None
        return self.predicted_vertical_separation(time, until)

    def horizontal_dist_at_vertical_closure_time(self, time: datetime) -> Optional[Distance]:
        until = self.time_until_vertical_closure(time)
        if until is None:
            return None
        return self.predicted_horizontal_separation(time, until)

    # ------------------------------------------------------------------
    # extrema
    # ------------------------------------------------------------------

    def minimum_horizontal_separation(self) -> Tuple[Distance, datetime]:
        i = int(np.argmin(self._horizontal_nm))
        sample = self._sample_at_index(i)
        return sample.horizontal, sample.time

    def closest_sample(
        self,
        minimize: str,
        constraint: Optional[str] = None,
        limit: Optional[Distance] = None,
    ) -> Optional[SeparationSample]:
        """
        The sample minimizing one axis ("lateral" or "vertical"), optionally
        among samples whose other axis is at or below `limit`.

        The earliest sample wins ties. Returns None when no sample qualifies.
        """
        values = self._axis(minimize)

        if constraint is None:
            mask = np.ones(len(values), dtype=bool)
        else:
            if limit is None:
                raise ValueError("A constraint axis needs a limit")
            bound = limit.in_nautical_miles() if constraint == LATERAL else limit.in_feet()
            mask = self._axis(constraint) <= bound

        if not mask.any():
            return None

        candidates = np.where(mask, values, np.inf)
        return self._sample_at_index(int(np.argmin(candidates)))

    def _axis(self, name: str) -> np.ndarray:
        if name == LATERAL:
            return self._horizontal_nm
        if name == VERTICAL:
            return self._vertical_ft
        raise ValueError(f"Unknown separation axis: {name}")


def _sample(pair: "TrackPair", time: datetime) -> SeparationSample:
    points = pair.interpolated_points_at(time)
    return SeparationSample(time, points.lateral_distance(), points.altitude_delta())
