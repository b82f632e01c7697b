from datetime import datetime, timedelta

import numpy as np
import pytest

from atcrisk.core.position import LatLong
from atcrisk.core.timeutil import TimeWindow, floor_to_ms, from_epoch_ms, require_aware, to_epoch_ms


def test_epoch_ms_round_trip(start):
    assert from_epoch_ms(to_epoch_ms(start)) == start


def test_window_rejects_backwards_range(start):
    with pytest.raises(ValueError):
        TimeWindow(start, start - timedelta(seconds=1))


def test_overlap(start):
    w1 = TimeWindow(start, start + timedelta(seconds=10))
    w2 = TimeWindow(start + timedelta(seconds=5), start + timedelta(seconds=20))
    w3 = TimeWindow(start + timedelta(seconds=30), start + timedelta(seconds=40))

    assert w1.overlap_with(w2) == TimeWindow(start + timedelta(seconds=5), start + timedelta(seconds=10))
    assert w1.overlap_with(w3) is None


def test_stepped_iteration_always_ends_on_end(start):
    window = TimeWindow(start, start + timedelta(seconds=10))
    times = window.stepped_iteration(timedelta(seconds=3))
    assert [(t - start).total_seconds() for t in times] == [0, 3, 6, 9, 10]

    exact = window.stepped_iteration(timedelta(seconds=5))
    assert [(t - start).total_seconds() for t in exact] == [0, 5, 10]

    with pytest.raises(ValueError):
        window.stepped_iteration(timedelta(0))


def test_lat_long_flat_earth_vector():
    origin = LatLong(0.0, 0.0)
    east = origin.offset_nm(3.0, 0.0)
    north = origin.offset_nm(0.0, 4.0)

    assert np.allclose(origin.vector_to_nm(east), [3.0, 0.0])
    assert np.isclose(east.distance_to(north).in_nautical_miles(), 5.0)
    assert origin.course_to(east) == pytest.approx(90.0)
    assert origin.course_to(north) == pytest.approx(0.0)


def test_lat_long_validates_range():
    with pytest.raises(ValueError):
        LatLong(91.0, 0.0)


def test_lat_long_across_the_antimeridian():
    west = LatLong(0.0, 179.99)
    east = LatLong(0.0, -179.99)

    assert np.isclose(west.distance_to(east).in_nautical_miles(), 1.2, atol=1e-6)
    assert west.course_to(east) == pytest.approx(90.0)
    assert np.isclose(west.average(east).distance_to(west).in_nautical_miles(), 0.6, atol=1e-6)

    moved = west.offset_nm(3.0, 0.0)
    assert -180.0 <= moved.longitude < 180.0
    assert np.isclose(west.distance_to(moved).in_nautical_miles(), 3.0, atol=1e-6)


def test_naive_and_sub_millisecond_times():
    with pytest.raises(ValueError):
        require_aware(datetime(2024, 1, 1, 12, 0, 0))
    assert floor_to_ms(datetime(2024, 1, 1, 12, 0, 0, 1500)) == datetime(2024, 1, 1, 12, 0, 0, 1000)
