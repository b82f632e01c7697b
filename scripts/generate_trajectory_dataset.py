import argparse
from pathlib import Path

import pandas as pd

from atcrisk.core.track import TrackPair
from atcrisk.paths import DataPaths, repo_root_from_file
from atcrisk.sim.encounter_generators import make_crossing, make_head_on, make_offset_pass
from atcrisk.sim.noise_models import apply_observation_noise
from atcrisk.sim.simulate import pair_to_frame, simulate_pair


def main():
    paths = DataPaths.from_repo_root(repo_root_from_file(__file__))

    ap = argparse.ArgumentParser()
    ap.add_argument("--out", type=str, default=str(paths.trajectories_csv))
    ap.add_argument("--dt", type=float, default=4.0, help="seconds between surveillance points")
    ap.add_argument("--horizon", type=float, default=300.0)
    ap.add_argument("--noise", action="store_true", help="apply observation noise to every track")
    ap.add_argument("--seed", type=int, default=0)
    args = ap.parse_args()

    frames = []
    scenario_id = 0

    def add(a, b, encounter_type, **params):
        nonlocal scenario_id
        pair = simulate_pair(a, b, dt_s=args.dt, horizon_s=args.horizon)
        if args.noise:
            pair = TrackPair(
                apply_observation_noise(pair.track1, seed=args.seed + 2 * scenario_id),
                apply_observation_noise(pair.track2, seed=args.seed + 2 * scenario_id + 1),
            )

        df = pair_to_frame(pair)
        df["scenario_id"] = scenario_id
        df["encounter_type"] = encounter_type
        for k, v in params.items():
            df[k] = v
        frames.append(df)
        scenario_id += 1

    # group 1: head-on scenarios with different starting separations
    for sep_nm in [10.0, 15.0, 20.0, 25.0]:
        a, b = make_head_on(separation_nm=sep_nm, speed_kts=360.0, alt_ft=30000.0)
        add(a, b, "head_on", sep_nm=sep_nm)

    # group 2: crossing scenarios with different timing offsets
    for extra_offset in [0.0, 2.0, 4.0, 6.0, 8.0, 10.0]:
        a, b = make_crossing(start_offset_nm=10.0, speed_kts=360.0, b_extra_offset_nm=extra_offset)
        add(a, b, "crossing", b_extra_offset_nm=extra_offset)

    # group 3: opposite direction passes with 1000 ft of vertical separation
    for miss_nm in [0.5, 1.0, 3.0, 5.0]:
        a, b = make_offset_pass(miss_distance_nm=miss_nm, alt_ft_a=30000.0, alt_ft_b=31000.0)
        add(a, b, "offset_pass", miss_nm=miss_nm)

    traj_df = pd.concat(frames, ignore_index=True)

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    traj_df.to_csv(out_path, index=False)

    print("Wrote:", out_path, "rows:", len(traj_df), "scenarios:", scenario_id)
    print("Example row:", traj_df.iloc[0].to_dict())


if __name__ == "__main__":
    main()
