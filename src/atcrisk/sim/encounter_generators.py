from __future__ import annotations

import math
from datetime import datetime, timezone

from atcrisk.core.position import LatLong
from atcrisk.core.state import AircraftState
from atcrisk.core.units import Distance, Speed

DEFAULT_ORIGIN = LatLong(0.0, 0.0)
DEFAULT_START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _state(origin: LatLong, east_nm: float, north_nm: float, alt_ft: float,
           speed_kts: float, course_deg: float, start: datetime) -> AircraftState:
    return AircraftState(
        time=start,
        position=origin.offset_nm(east_nm, north_nm),
        altitude=Distance.of_feet(alt_ft),
        speed=Speed.of_knots(speed_kts),
        course=course_deg,
    )


def make_head_on(
    separation_nm: float = 20.0,
    speed_kts: float = 360.0,
    alt_ft: float = 30000.0,
    origin: LatLong = DEFAULT_ORIGIN,
    start: datetime = DEFAULT_START,
):
    """
    Returns two aircraft states flying directly toward each other along an east-west line
    Aircraft A starts at the origin heading east (90 deg)
    Aircraft B starts separation_nm east of A heading west (270 deg)
    """
    a = _state(origin, 0.0, 0.0, alt_ft, speed_kts, 90.0, start)
    b = _state(origin, separation_nm, 0.0, alt_ft, speed_kts, 270.0, start)
    return a, b


def make_crossing(
    start_offset_nm: float = 10.0,
    speed_kts: float = 360.0,
    alt_ft_a: float = 30000.0,
    alt_ft_b: float = 30000.0,
    b_extra_offset_nm: float = 0.0,
    origin: LatLong = DEFAULT_ORIGIN,
    start: datetime = DEFAULT_START,
):
    """
    Two aircraft crossing at the origin:
    - Aircraft A starts start_offset_nm west of the origin heading east (90 deg)
    - Aircraft B starts (start_offset_nm + b_extra_offset_nm) south of the origin heading north (0 deg)

    b_extra_offset_nm > 0 makes B start farther away (arrives later).
    """
    a = _state(origin, -start_offset_nm, 0.0, alt_ft_a, speed_kts, 90.0, start)
    b = _state(origin, 0.0, -(start_offset_nm + b_extra_offset_nm), alt_ft_b, speed_kts, 0.0, start)
    return a, b


def make_parallel(
    lateral_offset_nm: float = 3.0,
    speed_kts: float = 300.0,
    course_deg: float = 90.0,
    alt_ft_a: float = 30000.0,
    alt_ft_b: float = 30000.0,
    origin: LatLong = DEFAULT_ORIGIN,
    start: datetime = DEFAULT_START,
):
    """
    Two aircraft side by side on the same course and speed, lateral_offset_nm apart
    (B is offset to the left of A's course).
    """
    course_rad = math.radians(course_deg)
    # unit vector 90 deg to the left of the course
    left_east = -math.cos(course_rad)
    left_north = math.sin(course_rad)

    a = _state(origin, 0.0, 0.0, alt_ft_a, speed_kts, course_deg, start)
    b = _state(
        origin,
        lateral_offset_nm * left_east,
        lateral_offset_nm * left_north,
        alt_ft_b,
        speed_kts,
        course_deg,
        start,
    )
    return a, b


def make_offset_pass(
    miss_distance_nm: float = 1.0,
    time_to_cpa_s: float = 150.0,
    speed_kts: float = 240.0,
    alt_ft_a: float = 30000.0,
    alt_ft_b: float = 30000.0,
    origin: LatLong = DEFAULT_ORIGIN,
    start: datetime = DEFAULT_START,
):
    """
    Opposite-direction pass: A flies east along the origin's parallel and B
    flies west miss_distance_nm to the north. They are abeam of each other
    (the CPA) time_to_cpa_s seconds after `start`.
    """
    half_gap_nm = speed_kts * time_to_cpa_s / 3600.0

    a = _state(origin, -half_gap_nm, 0.0, alt_ft_a, speed_kts, 90.0, start)
    b = _state(origin, half_gap_nm, miss_distance_nm, alt_ft_b, speed_kts, 270.0, start)
    return a, b
