"""
Scores every sample of a TrackPair's SeparationTimeSeries and picks the
riskiest (lowest smoothed score) moment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from atcrisk.core.scoring import SeparationPrediction
from atcrisk.core.timeutil import TimeWindow, duration_ms, from_epoch_ms, to_epoch_ms
from atcrisk.core.track import TrackPair
from atcrisk.core.units import Distance

logger = logging.getLogger(__name__)

MOVING_SUM_WINDOW = 4


@dataclass(frozen=True, order=True)
class ScoredInstant:
    """
    A moment in time with a risk score. Sorting puts the riskiest (lowest
    score, then earliest) first.
    """

    score: float
    time: datetime


def moving_sums(scores: Sequence[float]) -> np.ndarray:
    """
    Trailing 4-term sum. Near the start the first score is reused instead of
    shrinking the window: out[1] = s[1] + 3 * s[0].
    """
    scores = np.asarray(scores, dtype=float)
    out = np.zeros_like(scores)
    idx = np.arange(len(scores))
    for lag in range(MOVING_SUM_WINDOW):
        out += scores[np.maximum(0, idx - lag)]
    return out


class EncounterAnalysis:
    """
    Parallel, per-sample arrays describing one encounter: the true separation
    at each sample, the CPA estimates made at that sample, and its raw score.
    """

    def __init__(
        self,
        times_ms: np.ndarray,
        true_lateral_nm: np.ndarray,
        true_vertical_ft: np.ndarray,
        est_time_to_cpa_ms: np.ndarray,
        est_lateral_at_cpa_nm: np.ndarray,
        est_vertical_at_cpa_ft: np.ndarray,
        scores: np.ndarray,
    ):
        lengths = {len(a) for a in (
            times_ms, true_lateral_nm, true_vertical_ft, est_time_to_cpa_ms,
            est_lateral_at_cpa_nm, est_vertical_at_cpa_ft, scores,
        )}
        if len(lengths) != 1:
            raise ValueError("Must be equally sized arrays")
        if len(times_ms) == 0:
            raise ValueError("An EncounterAnalysis needs at least one sample")

        self.times_ms = np.asarray(times_ms, dtype=np.int64)
        self.true_lateral_nm = np.asarray(true_lateral_nm, dtype=float)
        self.true_vertical_ft = np.asarray(true_vertical_ft, dtype=float)
        self.est_time_to_cpa_ms = np.asarray(est_time_to_cpa_ms, dtype=np.int64)
        self.est_lateral_at_cpa_nm = np.asarray(est_lateral_at_cpa_nm, dtype=float)
        self.est_vertical_at_cpa_ft = np.asarray(est_vertical_at_cpa_ft, dtype=float)
        self.scores = np.asarray(scores, dtype=float)

    @staticmethod
    def of(track_pair: TrackPair) -> "EncounterAnalysis":
        sep_info = track_pair.separation_info()
        predictions = [SeparationPrediction(track_pair, t) for t in sep_info.times()]

        return EncounterAnalysis(
            times_ms=np.array([to_epoch_ms(p.time) for p in predictions], dtype=np.int64),
            true_lateral_nm=np.array([sep_info.horizontal_separation_at(p.time).in_nautical_miles() for p in predictions]),
            true_vertical_ft=np.array([sep_info.vertical_separation_at(p.time).in_feet() for p in predictions]),
            est_time_to_cpa_ms=np.array([duration_ms(p.time_until_cpa) for p in predictions], dtype=np.int64),
            est_lateral_at_cpa_nm=np.array([p.lateral_distance_at_cpa.in_nautical_miles() for p in predictions]),
            est_vertical_at_cpa_ft=np.array([p.vertical_separation_at_cpa.in_feet() for p in predictions]),
            scores=np.array([p.score for p in predictions]),
        )

    def __len__(self) -> int:
        return len(self.times_ms)

    def times(self) -> List[datetime]:
        return [from_epoch_ms(ms) for ms in self.times_ms]

    def time_window(self) -> TimeWindow:
        return TimeWindow(from_epoch_ms(self.times_ms[0]), from_epoch_ms(self.times_ms[-1]))

    def est_time_to_cpa(self) -> Dict[datetime, timedelta]:
        return {from_epoch_ms(t): timedelta(milliseconds=int(v)) for t, v in zip(self.times_ms, self.est_time_to_cpa_ms)}

    def est_lateral_at_cpa(self) -> Dict[datetime, Distance]:
        return {from_epoch_ms(t): Distance.of_nautical_miles(v) for t, v in zip(self.times_ms, self.est_lateral_at_cpa_nm)}

    def est_vertical_at_cpa(self) -> Dict[datetime, Distance]:
        return {from_epoch_ms(t): Distance.of_feet(v) for t, v in zip(self.times_ms, self.est_vertical_at_cpa_ft)}

    def moving_sums(self) -> List[ScoredInstant]:
        smoothed = moving_sums(self.scores)
        return [ScoredInstant(float(s), from_epoch_ms(t)) for s, t in zip(smoothed, self.times_ms)]

    def truncate(self, lateral_radius: Distance) -> "EncounterAnalysis":
        """
        Keep only the span from the first to the last sample within the
        lateral radius. When no sample is that close the full record is kept.
        """
        within = np.flatnonzero(self.true_lateral_nm <= lateral_radius.in_nautical_miles())
        if len(within) == 0:
            return self

        keep = slice(int(within[0]), int(within[-1]) + 1)
        return EncounterAnalysis(
            self.times_ms[keep],
            self.true_lateral_nm[keep],
            self.true_vertical_ft[keep],
            self.est_time_to_cpa_ms[keep],
            self.est_lateral_at_cpa_nm[keep],
            self.est_vertical_at_cpa_ft[keep],
            self.scores[keep],
        )

    def to_frame(self) -> pd.DataFrame:
        """The per-sample "dynamics" table."""
        return pd.DataFrame({
            "epoch_ms": self.times_ms,
            "true_lateral_nm": self.true_lateral_nm,
            "true_vertical_ft": self.true_vertical_ft,
            "est_time_to_cpa_ms": self.est_time_to_cpa_ms,
            "est_lateral_at_cpa_nm": self.est_lateral_at_cpa_nm,
            "est_vertical_at_cpa_ft": self.est_vertical_at_cpa_ft,
            "score": self.scores,
        })


class TrackPairAnalysis:
    """
    Given a TrackPair: compute the raw score series, its moving sums, and the
    riskiest moment, and make key points on that timeline queryable.
    """

    def __init__(self, pair: TrackPair):
        if not pair.overlap_in_time():
            raise ValueError("Tracks in TrackPair must overlap in time")

        self.source_pair = pair
        self.analysis = EncounterAnalysis.of(pair)
        self.moving_sums = self.analysis.moving_sums()
        self.riskiest_moment = min(self.moving_sums)

        logger.debug(
            "riskiest moment %s (score %.3f) from %d samples",
            self.riskiest_moment.time.isoformat(),
            self.riskiest_moment.score,
            len(self.moving_sums),
        )

    def closest_scored_moment(self, query_time: Optional[datetime]) -> Optional[ScoredInstant]:
        """
        The smoothed ScoredInstant nearest in time to `query_time`; the earlier
        one wins a tie. None when the time is missing or outside the overlap.
        """
        if query_time is None or not self.source_pair.overlap_contains(query_time):
            return None

        target = to_epoch_ms(query_time)
        deltas = np.abs(self.analysis.times_ms - target)
        return self.moving_sums[int(np.argmin(deltas))]


def cherry_pick_score(pair: TrackPair, time: datetime) -> float:
    """
    The smoothed score at the first timeline instant at or after `time`.
    Runs the full analysis to get there.
    """
    if not pair.overlap_in_time():
        raise ValueError("Tracks in TrackPair must overlap in time")
    if not pair.overlap_contains(time):
        raise ValueError("Specified time value is not within the tracks time overlap")

    tpa = TrackPairAnalysis(pair)
    for scored in tpa.moving_sums:
        if scored.time >= time:
            return scored.score
    # the overlap end is always the last timeline instant
    return tpa.moving_sums[-1].score
