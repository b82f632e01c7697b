from pathlib import Path

from atcrisk.paths import DataPaths, repo_root_from_file


def test_repo_root_from_package_file():
    root = repo_root_from_file(Path("/repo/src/atcrisk/paths.py"))
    assert root == Path("/repo")


def test_data_paths_layout(tmp_path):
    paths = DataPaths.from_repo_root(tmp_path)
    assert paths.data_dir == tmp_path.resolve() / "data"
    assert paths.trajectories_csv.name == "trajectories.csv"
    assert paths.dynamics_csv.parent == paths.data_dir
    assert paths.reports_dir == tmp_path.resolve() / "reports"
