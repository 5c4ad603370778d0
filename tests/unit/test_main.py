import numpy as np
import pandas as pd

from config import REMOVED_STEP_COL, ROW_ID_COL
from main import run_analysis


def test_run_analysis_end_to_end(tmp_path, synthetic_obs):
    raw = synthetic_obs.drop(columns=[ROW_ID_COL])
    raw.loc[17, "mai"] = np.nan
    csv_path = tmp_path / "leafn.csv"
    raw.to_csv(csv_path, index=False)
    report_dir = tmp_path / "report"
    plot_dir = tmp_path / "plots"

    path = run_analysis(
        data_url=str(csv_path),
        report_dir=str(report_dir),
        plot_dir=str(plot_dir),
        use_cache=False,
        params={"n_trees": 10},
    )

    doc = open(path, encoding="utf-8").read()
    # 3 per-fold tables, 2 cluster compositions, 1 comparison
    assert doc.count("<table") == 6
    # climate space, cv metrics, 2 cluster density panels
    assert doc.count("data:image/png;base64,") == 4
    assert doc.count("cdn.plot.ly") == 1
    assert doc.count("Cluster composition") == 2
    assert "missing_values: 1" in doc
    assert "n_trees=10" in doc

    for name in ("random", "spatial", "environmental"):
        folds = pd.read_csv(report_dir / f"cv_{name}_folds.csv")
        assert folds["fold"].tolist() == [1, 2, 3, 4, 5]
        assert folds["n_test"].sum() == len(raw) - 1

    excluded = pd.read_csv(report_dir / "excluded_observations.csv")
    assert excluded[ROW_ID_COL].tolist() == [17]
    assert excluded[REMOVED_STEP_COL].tolist() == ["missing_values"]

    assert (plot_dir / "observation_map.html").exists()
    assert (plot_dir / "geo_cluster_map.html").exists()
    assert (plot_dir / "env_cluster_densities.png").exists()
