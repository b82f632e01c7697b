from datetime import timedelta

import numpy as np
import pytest

from atcrisk.core.geometry import PointPair
from atcrisk.sim.dynamics import fly, step_state
from atcrisk.sim.encounter_generators import make_offset_pass
from atcrisk.sim.noise_models import apply_observation_noise
from atcrisk.sim.simulate import pair_from_frame, pair_to_frame, simulate_pair
from conftest import make_state


def test_step_state_moves_along_course():
    s0 = make_state(0, speed_kts=360.0, course=90.0, alt_ft=10000.0)
    s1 = step_state(s0, 10.0, vz_fpm=600.0)

    # 360 kt for 10 s is 1 NM east
    assert np.allclose(s0.position.vector_to_nm(s1.position), [1.0, 0.0])
    assert np.isclose(s1.altitude.in_feet(), 10100.0)
    assert s1.time - s0.time == timedelta(seconds=10)
    assert s1.course == 90.0


def test_fly_records_every_step():
    track = fly(make_state(0), duration_s=300.0, dt_s=60.0, track_id="A")
    assert len(track) == 6
    assert track.time_window().duration() == timedelta(seconds=300)

    with pytest.raises(ValueError):
        fly(make_state(0), duration_s=10.0, dt_s=0.0, track_id="A")


def test_offset_pass_geometry(start):
    a, b = make_offset_pass(miss_distance_nm=2.0, time_to_cpa_s=120.0, speed_kts=300.0, start=start)
    cpa = PointPair(a, b).closest_point_of_approach()

    assert cpa.time_until_cpa.total_seconds() == pytest.approx(120.0, abs=0.01)
    assert cpa.distance_at_cpa.in_nautical_miles() == pytest.approx(2.0, abs=1e-3)


def test_simulate_pair(offset_pass_pair):
    assert offset_pass_pair.track1.track_id == "A"
    assert offset_pass_pair.track2.track_id == "B"
    assert len(offset_pass_pair.track1) == len(offset_pass_pair.track2) == 6


def test_noise_is_reproducible(offset_pass_pair):
    track = offset_pass_pair.track1
    n1 = apply_observation_noise(track, seed=7).to_frame()
    n2 = apply_observation_noise(track, seed=7).to_frame()
    assert n1.equals(n2)


def test_noise_keeps_the_time_window(offset_pass_pair):
    track = offset_pass_pair.track1
    dropped = apply_observation_noise(track, drop_prob=1.0, seed=0)
    assert len(dropped) == 2
    assert dropped.time_window() == track.time_window()


def test_zero_noise_changes_nothing(offset_pass_pair):
    track = offset_pass_pair.track1
    clean = apply_observation_noise(track, sigma_xy_nm=0.0, sigma_alt_ft=0.0, drop_prob=0.0, seed=0)
    assert np.allclose(clean.to_frame().values, track.to_frame().values)


def test_pair_frame_round_trip(offset_pass_pair):
    df = pair_to_frame(offset_pass_pair)
    assert len(df) == 6
    assert {"a_lat", "b_lat", "a_id", "b_id"} <= set(df.columns)

    rebuilt = pair_from_frame(df)
    assert rebuilt.track2.track_id == "B"
    assert rebuilt.time_overlap() == offset_pass_pair.time_overlap()


def test_pair_from_frame_needs_both_tracks(offset_pass_pair):
    df = pair_to_frame(offset_pass_pair).drop(columns=["b_alt_ft"])
    with pytest.raises(ValueError):
        pair_from_frame(df)
