from __future__ import annotations

import pandas as pd

from atcrisk.core.track import TRACK_FRAME_COLUMNS, Track, TrackPair
from atcrisk.sim.dynamics import fly


def simulate_pair(
    state0,
    state1,
    dt_s: float,
    horizon_s: float,
    vz_fpm_a: float = 0.0,
    vz_fpm_b: float = 0.0,
    ids: tuple[str, str] = ("A", "B"),
) -> TrackPair:
    """
    Fly two aircraft forward in time and record both trajectories.

    Returns:
        a TrackPair whose tracks each have one point every dt_s seconds
        from t=0 to t=horizon_s (inclusive)
    """
    track_a = fly(state0, horizon_s, dt_s, ids[0], vz_fpm=vz_fpm_a)
    track_b = fly(state1, horizon_s, dt_s, ids[1], vz_fpm=vz_fpm_b)
    return TrackPair(track_a, track_b)


def pair_to_frame(pair: TrackPair) -> pd.DataFrame:
    """
    Wide layout: one row per timestamp, "a_" columns for track1 and "b_"
    columns for track2. Timestamps present in only one track leave NaNs.
    """
    a = pair.track1.to_frame().set_index("epoch_ms").add_prefix("a_")
    b = pair.track2.to_frame().set_index("epoch_ms").add_prefix("b_")
    out = a.join(b, how="outer").reset_index()
    out["a_id"] = pair.track1.track_id
    out["b_id"] = pair.track2.track_id
    return out


def pair_from_frame(df: pd.DataFrame) -> TrackPair:
    """Inverse of pair_to_frame."""
    tracks = []
    for prefix in ("a_", "b_"):
        cols = {f"{prefix}{c}": c for c in TRACK_FRAME_COLUMNS if c != "epoch_ms"}
        missing = [c for c in cols if c not in df.columns]
        if missing:
            raise ValueError(f"Missing {missing} in df")

        g = df[["epoch_ms", *cols]].rename(columns=cols).dropna()
        id_col = f"{prefix}id"
        track_id = str(df[id_col].iloc[0]) if id_col in df.columns else prefix.rstrip("_").upper()
        tracks.append(Track.from_frame(track_id, g))

    return TrackPair(tracks[0], tracks[1])
