from pathlib import Path

import pandas as pd

from atcrisk.core.engine import analyze_track_pair
from atcrisk.core.units import Distance
from atcrisk.paths import DataPaths, repo_root_from_file
from atcrisk.sim.encounter_generators import make_crossing
from atcrisk.sim.simulate import simulate_pair

CONFLICT_LATERAL = Distance.of_nautical_miles(5.0)
CONFLICT_VERTICAL = Distance.of_feet(1000)


def main():
    rows = []  # store scenario results here

    for extra_offset in range(0, 21, 2):  # 0, 2, 4, ...
        a, b = make_crossing(
            start_offset_nm=10.0,
            speed_kts=360.0,
            alt_ft_a=30000.0,
            alt_ft_b=30000.0,
            b_extra_offset_nm=float(extra_offset),
        )
        pair = simulate_pair(a, b, dt_s=4.0, horizon_s=300.0)
        report = analyze_track_pair(pair)

        min_lateral, _ = pair.separation_info().minimum_horizontal_separation()
        conflict = pair.come_within(CONFLICT_LATERAL, CONFLICT_VERTICAL)

        rows.append({
            "b_extra_offset_nm": float(extra_offset),
            "conflict": bool(conflict),
            "min_lateral_nm": min_lateral.in_nautical_miles(),
            "riskiest_score": report.riskiest_moment.score,
            "riskiest_time": report.riskiest_moment.time.isoformat(),
        })

        print(
            f"B extra offset: {extra_offset:>2} NM | "
            f"Conflict: {conflict} | min lateral: {min_lateral} | "
            f"riskiest score: {report.riskiest_moment.score:.3f}"
        )

    df = pd.DataFrame(rows)
    conflicts = int(df["conflict"].sum())

    print("\nSummary:")
    print("Total scenarios:", len(df))
    print("Conflicts:", conflicts)
    print("Non-conflicts:", len(df) - conflicts)

    out_path = DataPaths.from_repo_root(repo_root_from_file(__file__)).summary_csv
    out_path.parent.mkdir(parents=True, exist_ok=True)  # creates ./data if missing
    df.to_csv(out_path, index=False)

    print("\nWrote CSV to:", out_path)


if __name__ == "__main__":
    main()
