from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from atcrisk.core.analysis import EncounterAnalysis, ScoredInstant, TrackPairAnalysis
from atcrisk.core.config import FIXED, AnalysisConfig
from atcrisk.core.snapshots import KeyMoments, extract_key_moments
from atcrisk.core.track import TrackPair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncounterReport:
    timeline: List[ScoredInstant]
    riskiest_moment: ScoredInstant
    key_moments: KeyMoments
    analysis: EncounterAnalysis
    dynamics: Optional[pd.DataFrame] = None


def analyze_track_pair(pair: TrackPair, config: Optional[AnalysisConfig] = None) -> EncounterReport:
    """
    Score a TrackPair end to end: separation series, smoothed risk timeline,
    riskiest moment, and the key-moment snapshots.
    """
    config = config or AnalysisConfig()

    if not pair.overlap_in_time():
        raise ValueError(f"Tracks {pair.track1.track_id} and {pair.track2.track_id} do not overlap in time")

    if pair.separation_time_series_is_missing():
        if config.time_step_mode == FIXED:
            pair.compute_fixed_time_step_separation_time_series(config.fixed_time_step)
    else:
        # the series is set at most once, an earlier one wins
        existing_step = pair.separation_info().fixed_step
        wanted_step = config.fixed_time_step if config.time_step_mode == FIXED else None
        if existing_step != wanted_step:
            logger.warning(
                "%s vs %s: keeping the existing separation series (%s), the configured %s sampling is ignored",
                pair.track1.track_id,
                pair.track2.track_id,
                "dynamic" if existing_step is None else f"fixed {existing_step}",
                config.time_step_mode if wanted_step is None else f"fixed {wanted_step}",
            )

    tpa = TrackPairAnalysis(pair)
    key_moments = extract_key_moments(tpa)

    dynamics = None
    if config.publish_dynamics:
        dynamics = tpa.analysis.truncate(config.dynamics_inclusion_radius).to_frame()

    logger.info(
        "%s vs %s: riskiest score %.3f at %s",
        pair.track1.track_id,
        pair.track2.track_id,
        tpa.riskiest_moment.score,
        tpa.riskiest_moment.time.isoformat(),
    )

    return EncounterReport(
        timeline=tpa.moving_sums,
        riskiest_moment=tpa.riskiest_moment,
        key_moments=key_moments,
        analysis=tpa.analysis,
        dynamics=dynamics,
    )
