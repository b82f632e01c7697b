from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DataPaths:
    repo_root: Path
    data_dir: Path
    trajectories_csv: Path
    dynamics_csv: Path
    snapshots_csv: Path
    summary_csv: Path
    reports_dir: Path

    @staticmethod
    def from_repo_root(repo_root: Path) -> "DataPaths":
        repo_root = repo_root.resolve()
        data = repo_root / "data"
        return DataPaths(
            repo_root=repo_root,
            data_dir=data,
            trajectories_csv=data / "trajectories.csv",
            dynamics_csv=data / "dynamics.csv",
            snapshots_csv=data / "snapshots.csv",
            summary_csv=data / "encounter_summary.csv",
            reports_dir=repo_root / "reports",
        )


def repo_root_from_file(file: str | Path) -> Path:
    """
    Works when this file is at: <repo>/src/atcrisk/paths.py
    and is imported by scripts under <repo>/scripts
    """
    p = Path(file).resolve()
    # paths.py -> atcrisk -> src -> repo_root
    return p.parents[2]
