# note that a minimal straight-line flight model only needs:
# position (lat/long), altitude, ground speed, course
# and an optional vertical speed (feet per minute) supplied per step

from __future__ import annotations

import math
from datetime import timedelta

from atcrisk.core.state import AircraftState
from atcrisk.core.track import Track
from atcrisk.core.units import Distance

# unit converters
kts_to_nm_per_s = 1 / 3600  # knots = nautical miles / hour
fpm_to_ft_per_s = 1 / 60  # feet / minute


def step_state(state: AircraftState, dt_s: float, vz_fpm: float = 0.0) -> AircraftState:
    """
    Advance one aircraft along its course for dt_s seconds.

    :param state: current state (course is degrees clockwise from north)
    :param dt_s: seconds to fly
    :param vz_fpm: vertical speed, + means climbing
    :return: the state dt_s seconds later (same speed and course)
    """
    course_rad = math.radians(state.course)

    dist_nm = state.speed.in_knots() * kts_to_nm_per_s * dt_s
    east_nm = dist_nm * math.sin(course_rad)
    north_nm = dist_nm * math.cos(course_rad)

    dalt_ft = vz_fpm * fpm_to_ft_per_s * dt_s

    return AircraftState(
        time=state.time + timedelta(seconds=dt_s),
        position=state.position.offset_nm(east_nm, north_nm),
        altitude=Distance.of_feet(state.altitude.in_feet() + dalt_ft),
        speed=state.speed,
        course=state.course,
    )


def fly(
    state: AircraftState,
    duration_s: float,
    dt_s: float,
    track_id: str,
    vz_fpm: float = 0.0,
) -> Track:
    """
    Record a Track by stepping `state` forward every dt_s seconds for
    duration_s seconds (the starting state is the first point).
    """
    if dt_s <= 0:
        raise ValueError("dt_s must be positive")

    steps = int(round(duration_s / dt_s))
    states = [state]
    for _ in range(steps):
        states.append(step_state(states[-1], dt_s, vz_fpm=vz_fpm))
    return Track(track_id, states)
