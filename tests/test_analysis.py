from datetime import timedelta

import numpy as np
import pytest

from atcrisk.core.analysis import (
    EncounterAnalysis,
    ScoredInstant,
    TrackPairAnalysis,
    cherry_pick_score,
    moving_sums,
)
from atcrisk.core.track import Track, TrackPair
from atcrisk.core.units import Distance


def test_moving_sums_of_constant():
    out = moving_sums([2.0] * 6)
    assert np.allclose(out[3:], 8.0)
    assert (out[:3] >= 2.0).all()


def test_moving_sums_reuse_first_score():
    assert list(moving_sums([1.0, 2.0, 3.0, 4.0, 5.0])) == [4.0, 5.0, 7.0, 10.0, 14.0]


def test_scored_instant_ordering(start):
    early = ScoredInstant(1.0, start)
    late = ScoredInstant(1.0, start + timedelta(seconds=1))
    worse = ScoredInstant(0.5, start + timedelta(seconds=2))

    assert min([late, early]) == early
    assert min([early, late, worse]) == worse


def test_encounter_analysis_requires_equal_lengths():
    with pytest.raises(ValueError):
        EncounterAnalysis(
            np.array([0, 1]), np.zeros(2), np.zeros(2), np.zeros(2), np.zeros(2), np.zeros(2), np.zeros(3)
        )


def test_riskiest_moment_is_next_to_closest_lateral(offset_pass_pair):
    tpa = TrackPairAnalysis(offset_pass_pair)
    times = [s.time for s in tpa.moving_sums]

    _, closest_time = offset_pass_pair.separation_info().minimum_horizontal_separation()
    assert abs(times.index(tpa.riskiest_moment.time) - times.index(closest_time)) <= 1
    assert tpa.riskiest_moment == min(tpa.moving_sums)


def test_analysis_arrays_match_series(offset_pass_pair):
    tpa = TrackPairAnalysis(offset_pass_pair)
    series = offset_pass_pair.separation_info()

    assert len(tpa.analysis) == len(series)
    assert tpa.analysis.time_window() == series.time_window()
    assert np.isclose(tpa.analysis.true_lateral_nm.min(), series.minimum_horizontal_separation()[0].in_nautical_miles())
    assert (tpa.analysis.est_time_to_cpa_ms >= 0).all()


def test_closest_scored_moment(offset_pass_pair, start):
    tpa = TrackPairAnalysis(offset_pass_pair)

    assert tpa.closest_scored_moment(None) is None
    assert tpa.closest_scored_moment(start - timedelta(seconds=1)) is None

    assert tpa.closest_scored_moment(start + timedelta(seconds=149)).time == start + timedelta(seconds=150)
    # halfway between two samples, the earlier one wins
    assert tpa.closest_scored_moment(start + timedelta(seconds=148.75)).time == start + timedelta(seconds=147.5)


def test_analysis_needs_overlap(disjoint_pair):
    with pytest.raises(ValueError):
        TrackPairAnalysis(disjoint_pair)


def test_truncate_keeps_in_radius_span(offset_pass_pair):
    analysis = TrackPairAnalysis(offset_pass_pair).analysis
    radius = Distance.of_nautical_miles(15.0)
    cut = analysis.truncate(radius)

    assert len(cut) < len(analysis)
    assert cut.true_lateral_nm[0] <= 15.0
    assert cut.true_lateral_nm[-1] <= 15.0

    first = int(np.flatnonzero(analysis.times_ms == cut.times_ms[0])[0])
    assert analysis.true_lateral_nm[first - 1] > 15.0


def test_truncate_without_samples_in_radius_keeps_everything(offset_pass_pair):
    analysis = TrackPairAnalysis(offset_pass_pair).analysis
    assert len(analysis.truncate(Distance.of_nautical_miles(0.5))) == len(analysis)


def test_dynamics_frame(offset_pass_pair):
    df = TrackPairAnalysis(offset_pass_pair).analysis.to_frame()
    assert list(df.columns) == [
        "epoch_ms",
        "true_lateral_nm",
        "true_vertical_ft",
        "est_time_to_cpa_ms",
        "est_lateral_at_cpa_nm",
        "est_vertical_at_cpa_ft",
        "score",
    ]


def test_cherry_pick_score(offset_pass_pair, start, disjoint_pair):
    tpa = TrackPairAnalysis(offset_pass_pair)
    at_pass = next(s for s in tpa.moving_sums if s.time == start + timedelta(seconds=150))

    assert cherry_pick_score(offset_pass_pair, start + timedelta(seconds=148)) == pytest.approx(at_pass.score)

    with pytest.raises(ValueError):
        cherry_pick_score(offset_pass_pair, start + timedelta(seconds=400))
    with pytest.raises(ValueError):
        cherry_pick_score(disjoint_pair, start)


def test_sub_millisecond_track_start(offset_pass_pair):
    track2 = offset_pass_pair.track2
    states = track2.states()
    shifted = [states[0].at_time(states[0].time + timedelta(microseconds=500))] + states[1:]
    pair = TrackPair(offset_pass_pair.track1, Track(track2.track_id, shifted))

    tpa = TrackPairAnalysis(pair)
    assert tpa.moving_sums[0].time == pair.time_overlap().start
