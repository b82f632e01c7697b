from datetime import timedelta

import numpy as np
import pytest

from atcrisk.core.geometry import PointPair
from atcrisk.core.units import Distance
from atcrisk.sim.encounter_generators import make_crossing, make_head_on, make_parallel
from conftest import make_state


def test_collision_course_cpa():
    a, b = make_head_on(separation_nm=20.0, speed_kts=360.0)
    cpa = PointPair(a, b).closest_point_of_approach()

    # 20 NM at a 720 kt closure rate
    assert cpa.time_until_cpa.total_seconds() == pytest.approx(100.0, abs=0.01)
    assert cpa.distance_at_cpa.in_nautical_miles() == pytest.approx(0.0, abs=1e-6)


def test_crossing_cpa_is_at_the_origin():
    a, b = make_crossing(start_offset_nm=10.0, speed_kts=360.0)
    cpa = PointPair(a, b).closest_point_of_approach()

    assert cpa.time_until_cpa.total_seconds() == pytest.approx(100.0, abs=0.01)
    assert cpa.distance_at_cpa.in_nautical_miles() == pytest.approx(0.0, abs=1e-3)


def test_parallel_flight_has_no_closure():
    a, b = make_parallel(lateral_offset_nm=3.0, speed_kts=300.0, course_deg=90.0)
    pair = PointPair(a, b)
    cpa = pair.closest_point_of_approach()

    assert cpa.time_until_cpa == timedelta(0)
    assert np.isclose(cpa.distance_at_cpa.in_nautical_miles(), 3.0)
    assert pair.horizontal_closure().in_knots() == pytest.approx(0.0, abs=1e-9)


def test_diverging_aircraft_report_cpa_now():
    a, b = make_head_on(separation_nm=20.0, speed_kts=360.0)
    # swap courses so they fly apart
    away_a = make_state(0, lon=a.position.longitude, course=270.0, speed_kts=360.0)
    away_b = make_state(0, lon=b.position.longitude, course=90.0, speed_kts=360.0)
    pair = PointPair(away_a, away_b)
    cpa = pair.closest_point_of_approach()

    assert cpa.time_until_cpa == timedelta(0)
    assert np.isclose(cpa.distance_at_cpa.in_nautical_miles(), pair.lateral_distance().in_nautical_miles())
    assert pair.horizontal_closure().in_knots() == pytest.approx(-720.0)


def test_head_on_closure_and_course_delta():
    a, b = make_head_on(separation_nm=20.0, speed_kts=360.0)
    pair = PointPair(a, b)
    assert pair.horizontal_closure().in_knots() == pytest.approx(720.0)
    assert pair.course_delta() == pytest.approx(180.0)
    assert pair.speed_delta().in_knots() == 0.0
    assert pair.magnitude_of_velocity_delta().in_knots() == pytest.approx(720.0)


def test_coincident_points_have_zero_closure():
    a = make_state(0, course=90.0)
    b = make_state(0, course=0.0)
    assert PointPair(a, b).horizontal_closure().in_knots() == 0.0


def test_cpa_requires_simultaneous_points():
    with pytest.raises(ValueError):
        PointPair(make_state(0), make_state(1)).closest_point_of_approach()


def test_are_within():
    a = make_state(0, alt_ft=30000.0)
    b = make_state(0, lat=1.0 / 60.0, alt_ft=30500.0)
    pair = PointPair(a, b)

    assert pair.are_within(Distance.of_feet(1000), Distance.of_nautical_miles(1.5))
    assert not pair.are_within(Distance.of_feet(400), Distance.of_nautical_miles(1.5))
    assert not pair.are_within(Distance.of_feet(1000), Distance.of_nautical_miles(0.5))
