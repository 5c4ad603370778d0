#!/usr/bin/env python3
"""
main.py — leaf N cross-validation study controller
----------------------------------------------------------------
• Loads the global leaf N table and keeps the most frequent species
• Builds random / spatial / environmental folds
• Evaluates a random forest on every fold
• Renders maps, cluster densities and metric tables into an HTML report
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import traceback
from pathlib import Path

# Force headless plotting
os.environ.setdefault("MPLBACKEND", "Agg")

import config as cfg  # noqa: E402
from clustering import cluster_summary  # noqa: E402
from cv_strategies import EnvironmentalFolds, RandomFolds, SpatialFolds  # noqa: E402
from data_cleaning import RemovedRowsTracker, data_cleaning  # noqa: E402
from data_loading import load_data  # noqa: E402
from model_training import run_cv, summarize_cv  # noqa: E402
from plotting import (  # noqa: E402
    close_all,
    plot_climate_space,
    plot_cluster_densities,
    plot_cluster_map,
    plot_cv_metrics,
    plot_observation_map,
)
from report import ReportContext, build_report  # noqa: E402
from utils import create_directories  # noqa: E402

CLUSTER_COLS = {"spatial": "geo_cluster", "environmental": "env_cluster"}


def _setup_logging(level: str, log_dir: str) -> None:
    os.makedirs(log_dir, exist_ok=True)
    console_handler = logging.StreamHandler(stream=sys.stdout)
    file_handler = logging.FileHandler(os.path.join(log_dir, "main.log"), encoding="utf-8")
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s: %(message)s",
        handlers=[file_handler, console_handler],
        force=True,
    )


def run_analysis(
    *,
    data_url: str,
    report_dir: str,
    plot_dir: str,
    use_cache: bool = True,
    params: dict | None = None,
) -> str:
    """Run the whole study and return the report path.

    Figures go to ``plot_dir``; the report, its tables and the excluded-rows
    CSV go to ``report_dir``. ``params`` overrides the random forest settings.
    """
    raw = load_data(data_url, use_cache=use_cache)
    tracker = RemovedRowsTracker(Path(report_dir) / "excluded_observations.csv")
    cleaned = data_cleaning(raw, top_n=cfg.TOP_N_SPECIES, tracker=tracker)
    tracker.flush()
    df = cleaned.data

    strategies = [RandomFolds(), SpatialFolds(), EnvironmentalFolds()]
    results = {}
    summaries = {}
    for strategy in strategies:
        logging.info("🔁 Running %s CV", strategy.name)
        labels = strategy.assign(df)
        if strategy.name in CLUSTER_COLS:
            col = CLUSTER_COLS[strategy.name]
            df[col] = labels
            summaries[strategy.name] = cluster_summary(df, col)
        folds = strategy.split_from_labels(df, labels)
        results[strategy.name] = run_cv(df, folds, params=params)
        logging.info("%s CV per-fold metrics:\n%s", strategy.name, results[strategy.name].to_string(index=False))

    summary = summarize_cv(results)
    logging.info("CV summary:\n%s", summary.to_string(index=False))

    plotly_figs = {
        "observation_map": plot_observation_map(df, cleaned.excluded, plot_dir),
        "spatial_map": plot_cluster_map(df, CLUSTER_COLS["spatial"], "Geographic clusters", plot_dir),
        "environmental_map": plot_cluster_map(
            df, CLUSTER_COLS["environmental"], "Environmental clusters", plot_dir
        ),
    }
    mpl_figs = {
        "environmental_climate": plot_climate_space(df, CLUSTER_COLS["environmental"], plot_dir),
        "cv_metrics": plot_cv_metrics(results, plot_dir),
    }
    for name, col in CLUSTER_COLS.items():
        mpl_figs[f"{name}_densities"] = plot_cluster_densities(df, col, summaries[name], plot_dir)

    excluded_by_step = {}
    if not cleaned.excluded.empty:
        excluded_by_step = cleaned.excluded[cfg.REMOVED_STEP_COL].value_counts().to_dict()

    ctx = ReportContext(
        n_raw=len(raw),
        n_included=len(df),
        n_species=df[cfg.SPECIES_COL].nunique(),
        excluded_by_step=excluded_by_step,
        cv_results=results,
        summary=summary,
        cluster_summaries=summaries,
        plotly_figs=plotly_figs,
        mpl_figs=mpl_figs,
        data_source=data_url,
        rf_params={**cfg.RF_PARAMS, **(params or {})},
    )
    path = build_report(ctx, report_dir, cfg.REPORT_NAME)
    close_all()
    return path


def main(*, loglevel: str, data_url: str, report_dir: str, plot_dir: str, use_cache: bool) -> None:
    _setup_logging(loglevel, report_dir)
    create_directories([report_dir, plot_dir, cfg.CACHE_DIR])
    logging.info("🚚 Loading leaf N data from %s", data_url)
    try:
        path = run_analysis(
            data_url=data_url,
            report_dir=report_dir,
            plot_dir=plot_dir,
            use_cache=use_cache,
        )
    except Exception:
        logging.error("Analysis aborted:\n%s", traceback.format_exc())
        raise
    logging.info("🏁 Report ready: %s", path)


# ────────────────────────── CLI ────────────────────────── #
if __name__ == "__main__":
    cli_parser = argparse.ArgumentParser(description="Leaf N random vs spatial vs environmental CV")
    cli_parser.add_argument("--log-level", default="INFO", help="DEBUG | INFO | WARNING | ERROR")
    cli_parser.add_argument("--data-url", default=cfg.DATA_URL, help="CSV URL or path (default: Tian et al. leaf N)")
    cli_parser.add_argument("--report-dir", default=cfg.REPORT_DIR, help="Output directory for the HTML report, metric CSVs, excluded rows and main.log")
    cli_parser.add_argument("--plot-dir", default=cfg.PLOT_DIR, help="Output directory for standalone PNG/HTML figures")
    cli_parser.add_argument("--no-cache", action="store_true", help="Re-download the CSV instead of using the joblib cache")
    args = cli_parser.parse_args()
    main(
        loglevel=args.log_level,
        data_url=args.data_url,
        report_dir=args.report_dir,
        plot_dir=args.plot_dir,
        use_cache=not args.no_cache,
    )
