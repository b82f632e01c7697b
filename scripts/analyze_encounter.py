from __future__ import annotations

import argparse
import logging
from datetime import timedelta
from pathlib import Path

import pandas as pd

from atcrisk.core.config import DYNAMIC, FIXED, AnalysisConfig
from atcrisk.core.engine import analyze_track_pair
from atcrisk.core.scoring import format_duration
from atcrisk.core.units import Distance
from atcrisk.paths import DataPaths, repo_root_from_file
from atcrisk.sim.simulate import pair_from_frame


def main():
    paths = DataPaths.from_repo_root(repo_root_from_file(__file__))

    ap = argparse.ArgumentParser()
    ap.add_argument("--traj", type=str, default=str(paths.trajectories_csv))
    ap.add_argument("--scenario", type=int, default=None, help="scenario_id; if omitted, analyze every scenario")
    ap.add_argument("--mode", choices=[DYNAMIC, FIXED], default=DYNAMIC, help="separation time series sampling")
    ap.add_argument("--step", type=float, default=5.0, help="seconds between samples in fixed mode")
    ap.add_argument("--dynamics", action="store_true", help="also write the per-sample dynamics table")
    ap.add_argument("--radius", type=float, default=15.0, help="NM radius the dynamics table is cut to")
    ap.add_argument("--snapshots_out", type=str, default=str(paths.snapshots_csv))
    ap.add_argument("--dynamics_out", type=str, default=str(paths.dynamics_csv))
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = AnalysisConfig(
        time_step_mode=args.mode,
        fixed_time_step=timedelta(seconds=args.step),
        publish_dynamics=args.dynamics,
        dynamics_inclusion_radius=Distance.of_nautical_miles(args.radius),
    )

    traj = pd.read_csv(args.traj)
    if args.scenario is not None:
        traj = traj[traj["scenario_id"] == args.scenario]
        if traj.empty:
            raise SystemExit(f"scenario_id {args.scenario} not found in {args.traj}")

    snapshot_rows = []
    dynamics_frames = []

    for sid, g in traj.groupby("scenario_id", sort=True):
        report = analyze_track_pair(pair_from_frame(g), config)
        riskiest = report.riskiest_moment

        print(f"\n=== Scenario {sid} ({g['encounter_type'].iloc[0]}) ===")
        print(f"Riskiest moment: {riskiest.time.isoformat()} | score: {riskiest.score:.3f}")

        event = report.key_moments.at_event
        if event is not None and event.has_cpa_estimate():
            print(
                f"Estimated CPA in {format_duration(event.est_time_to_cpa)} | "
                f"lateral: {event.est_lateral_at_cpa} | vertical: {event.est_vertical_at_cpa.in_feet():.0f}ft"
            )

        for name, snap in report.key_moments.named().items():
            if snap is None:
                print(f"  {name:<32} -")
                continue
            print(
                f"  {name:<32} {snap.time.isoformat()} | "
                f"lateral: {snap.true_lateral_separation} | "
                f"vertical: {snap.true_vertical_separation.in_feet():.0f}ft | "
                f"score: {snap.score:.3f}"
            )
            snapshot_rows.append({"scenario_id": sid, "moment": name, **snap.as_record()})

        if report.dynamics is not None:
            dyn = report.dynamics.copy()
            dyn.insert(0, "scenario_id", sid)
            dynamics_frames.append(dyn)

    snapshots_path = Path(args.snapshots_out)
    snapshots_path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(snapshot_rows).to_csv(snapshots_path, index=False)
    print("\nWrote:", snapshots_path, "rows:", len(snapshot_rows))

    if dynamics_frames:
        dynamics_path = Path(args.dynamics_out)
        dynamics_df = pd.concat(dynamics_frames, ignore_index=True)
        dynamics_df.to_csv(dynamics_path, index=False)
        print("Wrote:", dynamics_path, "rows:", len(dynamics_df))


if __name__ == "__main__":
    main()
