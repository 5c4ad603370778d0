# report.py

from __future__ import annotations

import html
import logging
import os
from dataclasses import dataclass, field
from typing import Dict

import pandas as pd

from config import PREDICTORS, RF_PARAMS, TOP_N_SPECIES
from utils import encode_plot_to_base64, save_dataframe_csv

STRATEGY_TITLES = {
    "random": "Random cross-validation",
    "spatial": "Spatial cross-validation",
    "environmental": "Environmental cross-validation",
}

_CSS = """
body { font-family: Helvetica, Arial, sans-serif; max-width: 1100px; margin: 2em auto; color: #222; }
h1 { border-bottom: 2px solid #444; }
table.metrics { border-collapse: collapse; margin: 1em 0; }
table.metrics th, table.metrics td { border: 1px solid #ccc; padding: 4px 10px; text-align: right; }
table.metrics th { background: #f3f3f3; }
img { max-width: 100%; }
p.note { color: #555; font-size: 0.9em; }
"""


@dataclass
class ReportContext:
    n_raw: int
    n_included: int
    n_species: int
    excluded_by_step: Dict[str, int]
    cv_results: Dict[str, pd.DataFrame]
    summary: pd.DataFrame
    cluster_summaries: Dict[str, pd.DataFrame] = field(default_factory=dict)
    plotly_figs: Dict[str, object] = field(default_factory=dict)
    mpl_figs: Dict[str, object] = field(default_factory=dict)
    data_source: str = ""
    rf_params: Dict[str, object] = field(default_factory=lambda: dict(RF_PARAMS))


def _table(df: pd.DataFrame, float_fmt: str = "{:.3f}") -> str:
    return df.to_html(
        index=False,
        classes="metrics",
        border=0,
        float_format=lambda v: float_fmt.format(v),
    )


def _img(fig) -> str:
    return f'<img src="data:image/png;base64,{encode_plot_to_base64(fig)}"/>'


def _plotly_div(fig, include_js: bool) -> str:
    return fig.to_html(full_html=False, include_plotlyjs="cdn" if include_js else False)


def interpretation(summary: pd.DataFrame) -> str:
    """Descriptive comparison of mean fold metrics across strategies."""
    by = summary.set_index("strategy")
    parts = []
    for name in by.index:
        row = by.loc[name]
        parts.append(
            f"{STRATEGY_TITLES.get(name, name)} gives a mean R² of {row['mean_rsq']:.2f} "
            f"(sd {row['sd_rsq']:.2f}) and a mean RMSE of {row['mean_rmse']:.2f} "
            f"(sd {row['sd_rmse']:.2f})."
        )
    if "random" in by.index:
        base = by.loc["random", "mean_rsq"]
        for name in ("spatial", "environmental"):
            if name in by.index:
                diff = by.loc[name, "mean_rsq"] - base
                word = "lower" if diff < 0 else "higher"
                parts.append(
                    f"The {name} folds score {abs(diff):.2f} {word} in mean R² than random folds. "
                    f"Because their test folds cover geographic or climatic regions absent "
                    f"from training, this gap reflects extrapolation rather than "
                    f"in-distribution accuracy; the spread across folds is part of the result."
                )
    parts.append(
        "Comparisons are descriptive: no significance test is applied and cluster "
        "sizes are unbalanced, so single folds can dominate the mean."
    )
    return "".join(f"<p>{html.escape(p)}</p>" for p in parts)


def render_report(ctx: ReportContext) -> str:
    plotly_js_loaded = False

    def plotly_div(fig):
        # plotly.js is loaded once, by the first figure
        nonlocal plotly_js_loaded
        div = _plotly_div(fig, include_js=not plotly_js_loaded)
        plotly_js_loaded = True
        return div

    out = [
        "<!DOCTYPE html>",
        "<html><head><meta charset='utf-8'>",
        "<title>Leaf N: random vs spatial vs environmental CV</title>",
        f"<style>{_CSS}</style></head><body>",
        "<h1>Leaf nitrogen: how cross-validation design changes apparent accuracy</h1>",
        "<h2>Data</h2>",
        f"<p>Source: <code>{html.escape(ctx.data_source)}</code>. "
        f"{ctx.n_raw} observations loaded; {ctx.n_included} kept after restricting to the "
        f"{TOP_N_SPECIES} most frequent species ({ctx.n_species} species) and dropping "
        f"incomplete rows.</p>",
    ]
    if ctx.excluded_by_step:
        items = "".join(
            f"<li>{html.escape(step)}: {n}</li>" for step, n in ctx.excluded_by_step.items()
        )
        out.append(f"<ul>{items}</ul>")
    if "observation_map" in ctx.plotly_figs:
        out.append(plotly_div(ctx.plotly_figs["observation_map"]))
    out.append(
        "<p class='note'>Restricting to the most frequent species changes the spatial "
        "coverage of the training data; excluded points are shown in red.</p>"
    )

    params = ", ".join(f"{k}={v}" for k, v in ctx.rf_params.items())
    out.append("<h2>Model</h2>")
    out.append(
        f"<p>Random forest on {', '.join(PREDICTORS)} ({html.escape(params)}). "
        "Each fold is scored on its held-out rows with R² (coefficient of "
        "determination) and RMSE.</p>"
    )

    for name, res in ctx.cv_results.items():
        out.append(f"<h2>{STRATEGY_TITLES.get(name, name)}</h2>")
        if f"{name}_map" in ctx.plotly_figs:
            out.append(plotly_div(ctx.plotly_figs[f"{name}_map"]))
        if f"{name}_climate" in ctx.mpl_figs:
            out.append(_img(ctx.mpl_figs[f"{name}_climate"]))
        out.append(_table(res))
        if name in ctx.cluster_summaries:
            out.append("<h3>Cluster composition</h3>")
            out.append(_table(ctx.cluster_summaries[name], "{:.2f}"))
        if f"{name}_densities" in ctx.mpl_figs:
            out.append(_img(ctx.mpl_figs[f"{name}_densities"]))

    out.append("<h2>Comparison</h2>")
    out.append(_table(ctx.summary))
    if "cv_metrics" in ctx.mpl_figs:
        out.append(_img(ctx.mpl_figs["cv_metrics"]))
    out.append("<h2>Interpretation</h2>")
    out.append(interpretation(ctx.summary))
    out.append("</body></html>")
    return "\n".join(out)


def build_report(ctx: ReportContext, report_dir: str, filename: str) -> str:
    """Write the HTML report and per-fold metric tables; return the report path."""
    os.makedirs(report_dir, exist_ok=True)
    doc = render_report(ctx)
    path = os.path.join(report_dir, filename)
    with open(path, "w", encoding="utf-8") as f:
        f.write(doc)
    for name, res in ctx.cv_results.items():
        save_dataframe_csv(res, report_dir, f"cv_{name}_folds.csv")
    save_dataframe_csv(ctx.summary, report_dir, "cv_summary.csv")
    logging.info(f"Report written => {path}")
    return path
