from datetime import timedelta

import numpy as np
import pytest

from atcrisk.core.track import Track, TrackPair
from atcrisk.core.units import Distance
from conftest import make_state


def test_track_requires_increasing_times():
    with pytest.raises(ValueError):
        Track("T", [make_state(10), make_state(0)])
    with pytest.raises(ValueError):
        Track("T", [make_state(0), make_state(0)])
    with pytest.raises(ValueError):
        Track("T", [])


def test_interpolated_state_is_linear(short_track, start):
    mid = short_track.interpolated_state(start + timedelta(seconds=5))
    assert np.isclose(mid.altitude.in_feet(), 10050.0)
    assert np.isclose(mid.position.longitude, 0.0055)
    assert mid.time == start + timedelta(seconds=5)


def test_interpolated_state_returns_stored_points(short_track, start):
    assert short_track.interpolated_state(start) is short_track.states()[0]
    assert short_track.interpolated_state(start + timedelta(seconds=10)) is short_track.states()[1]
    assert short_track.interpolated_state(start + timedelta(seconds=11)) is None


def test_track_frame_round_trip(short_track):
    df = short_track.to_frame()
    rebuilt = Track.from_frame("T1", df.iloc[::-1])
    assert len(rebuilt) == 2
    assert np.isclose(rebuilt.states()[1].altitude.in_feet(), 10100.0)
    assert rebuilt.states()[0].time == short_track.states()[0].time


def test_time_overlap(offset_pass_pair, disjoint_pair, start):
    overlap = offset_pass_pair.time_overlap()
    assert overlap.start == start
    assert overlap.end == start + timedelta(seconds=300)

    assert not disjoint_pair.overlap_in_time()
    with pytest.raises(ValueError):
        disjoint_pair.interpolated_points_at(start)


def test_interpolated_points_outside_overlap(offset_pass_pair, start):
    with pytest.raises(ValueError):
        offset_pass_pair.interpolated_points_at(start + timedelta(seconds=301))


def test_separation_info_is_cached(offset_pass_pair):
    assert offset_pass_pair.separation_time_series_is_missing()
    first = offset_pass_pair.separation_info()
    assert offset_pass_pair.separation_info() is first
    assert not offset_pass_pair.separation_time_series_is_missing()


def test_separation_series_cannot_be_set_twice(offset_pass_pair):
    offset_pass_pair.compute_fixed_time_step_separation_time_series(timedelta(seconds=5))
    assert len(offset_pass_pair.separation_info()) == 61

    with pytest.raises(RuntimeError):
        offset_pass_pair.compute_dynamic_separation_time_series()


def test_come_within_and_separate_by(offset_pass_pair):
    assert offset_pass_pair.come_within(Distance.of_nautical_miles(1.5))
    assert not offset_pass_pair.come_within(Distance.of_nautical_miles(0.5))
    assert offset_pass_pair.come_within(Distance.of_nautical_miles(1.5), Distance.of_feet(100))

    assert offset_pass_pair.separate_by(Distance.of_nautical_miles(15.0))
    assert not offset_pass_pair.separate_by(Distance.of_nautical_miles(25.0))


def test_pair_requires_two_tracks(short_track):
    with pytest.raises(ValueError):
        TrackPair(short_track, None)


def test_track_rejects_naive_times():
    naive = make_state(0)
    naive = naive.at_time(naive.time.replace(tzinfo=None))
    with pytest.raises(ValueError):
        Track("T", [naive, make_state(10)])


def test_track_floors_times_to_the_millisecond(start):
    shifted = make_state(0).at_time(start + timedelta(microseconds=500))
    track = Track("T", [shifted, make_state(10)])

    assert track.states()[0].time == start
    assert track.time_window().start == start


def test_interpolation_across_the_antimeridian(start):
    west = make_state(0, lon=179.99, course=90.0)
    east = make_state(60, lon=-179.99, course=90.0)
    track = Track("X", [west, east])

    mid = track.interpolated_state(start + timedelta(seconds=30))
    assert abs(mid.position.longitude) == pytest.approx(180.0)
    assert np.isclose(west.position.distance_to(mid.position).in_nautical_miles(), 0.6, atol=1e-6)
