from datetime import datetime, timedelta, timezone

import pytest

from atcrisk.core.position import LatLong
from atcrisk.core.state import AircraftState
from atcrisk.core.track import Track, TrackPair
from atcrisk.core.units import Distance, Speed
from atcrisk.sim.encounter_generators import make_offset_pass
from atcrisk.sim.simulate import simulate_pair

START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_state(seconds, lat=0.0, lon=0.0, alt_ft=30000.0, speed_kts=240.0, course=90.0):
    return AircraftState(
        time=START + timedelta(seconds=seconds),
        position=LatLong(lat, lon),
        altitude=Distance.of_feet(alt_ft),
        speed=Speed.of_knots(speed_kts),
        course=course,
    )


def make_offset_pass_pair():
    """
    6 points per track, 60 s apart. The aircraft pass 1 NM apart, nose to
    nose, 150 s after START.
    """
    a, b = make_offset_pass(miss_distance_nm=1.0, time_to_cpa_s=150.0, speed_kts=240.0, start=START)
    return simulate_pair(a, b, dt_s=60.0, horizon_s=300.0)


@pytest.fixture
def start():
    return START


@pytest.fixture
def offset_pass_pair():
    return make_offset_pass_pair()


@pytest.fixture
def short_track():
    # climbing 600 ft/min while flying east
    return Track("T1", [make_state(0, alt_ft=10000.0), make_state(10, alt_ft=10100.0, lon=0.011)])


@pytest.fixture
def disjoint_pair():
    early = Track("E", [make_state(0), make_state(10)])
    late = Track("L", [make_state(20), make_state(30)])
    return TrackPair(early, late)
