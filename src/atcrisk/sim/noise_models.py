from __future__ import annotations

import numpy as np

from atcrisk.core.state import AircraftState
from atcrisk.core.track import Track
from atcrisk.core.units import Distance


def apply_observation_noise(
    track: Track,
    sigma_xy_nm: float = 0.05,
    sigma_alt_ft: float = 50.0,
    drop_prob: float = 0.1,
    seed: int | None = None,
) -> Track:
    """
    apply sensor-like noise to a simulated track.
    - Gaussian noise on east/north position (NM)
    - Gaussian noise on altitude (ft)
    - Randomly drop points (the first and last point are always kept so the
      track keeps its time window)

    returns:
        noisy_track: Track
    """
    rng = np.random.default_rng(seed)
    states = track.states()

    noisy_states = []
    for i, s in enumerate(states):
        is_endpoint = i == 0 or i == len(states) - 1

        # randomly drop observation
        if not is_endpoint and rng.random() < drop_prob:
            continue

        east, north = rng.normal(0.0, sigma_xy_nm, size=2)
        noisy_states.append(
            AircraftState(
                time=s.time,
                position=s.position.offset_nm(float(east), float(north)),
                altitude=Distance.of_feet(s.altitude.in_feet() + float(rng.normal(0.0, sigma_alt_ft))),
                speed=s.speed,
                course=s.course,
            )
        )

    return Track(track.track_id, noisy_states)
