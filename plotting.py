# plotting.py

import logging
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
import plotly.express as px
import plotly.graph_objects as go

from config import CLIMATE_COLS, LAT_COL, LON_COL, REMOVED_STEP_COL, TARGET_COL
from utils import save_plot, save_plotly_fig

###############################################################################
# (A) World maps (Plotly)
###############################################################################


def _geo_layout(fig, title):
    fig.update_geos(
        projection_type="natural earth",
        showcoastlines=True,
        coastlinecolor="gray",
        showland=True,
        landcolor="rgb(243, 243, 243)",
        showcountries=False,
    )
    fig.update_layout(
        title=title,
        template="plotly_white",
        legend=dict(yanchor="bottom", y=0.01, xanchor="left", x=0.01),
        margin=dict(l=10, r=10, t=50, b=10),
    )
    return fig


def plot_observation_map(included: pd.DataFrame, excluded: pd.DataFrame, plot_dir=None):
    """World map of observations kept for modelling vs removed during cleaning."""
    fig = go.Figure()
    if excluded is not None and not excluded.empty and LON_COL in excluded.columns:
        steps = excluded[REMOVED_STEP_COL] if REMOVED_STEP_COL in excluded.columns else None
        fig.add_trace(go.Scattergeo(
            lon=excluded[LON_COL],
            lat=excluded[LAT_COL],
            mode="markers",
            marker=dict(size=3, color="crimson", opacity=0.5),
            name=f"Excluded (n={len(excluded)})",
            text=steps,
        ))
    fig.add_trace(go.Scattergeo(
        lon=included[LON_COL],
        lat=included[LAT_COL],
        mode="markers",
        marker=dict(size=3, color="royalblue", opacity=0.6),
        name=f"Included (n={len(included)})",
    ))
    _geo_layout(fig, "Leaf N observations")
    if plot_dir:
        save_plotly_fig(fig, "observation_map", plot_dir)
    return fig


def plot_cluster_map(df: pd.DataFrame, cluster_col: str, title: str, plot_dir=None):
    """World map of observations colored by cluster label."""
    tmp = df[[LON_COL, LAT_COL, cluster_col]].copy()
    tmp[cluster_col] = tmp[cluster_col].astype(int).astype(str)
    fig = px.scatter_geo(
        tmp.sort_values(cluster_col),
        lon=LON_COL,
        lat=LAT_COL,
        color=cluster_col,
        color_discrete_sequence=px.colors.qualitative.Set1,
        opacity=0.6,
    )
    fig.update_traces(marker=dict(size=3))
    _geo_layout(fig, title)
    if plot_dir:
        save_plotly_fig(fig, f"{cluster_col}_map", plot_dir)
    return fig


###############################################################################
# (B) Static figures (Matplotlib / Seaborn)
###############################################################################


def plot_cluster_densities(df: pd.DataFrame, cluster_col: str, summary: pd.DataFrame, plot_dir=None):
    """
    Density of leaf N per cluster, one panel per cluster, annotated with the
    sample count, the mean and the number of species in that cluster.
    """
    clusters = summary["cluster"].tolist()
    fig, axes = plt.subplots(1, len(clusters), figsize=(4 * len(clusters), 3.6), sharex=True, sharey=True)
    axes = np.atleast_1d(axes)
    palette = sns.color_palette("Set1", n_colors=len(clusters))
    props = dict(boxstyle='round', facecolor='wheat', alpha=0.5)

    for ax, color, (_, row) in zip(axes, palette, summary.iterrows()):
        values = df.loc[df[cluster_col] == row["cluster"], TARGET_COL]
        if len(values) > 1 and values.nunique() > 1:
            sns.kdeplot(x=values, fill=True, color=color, ax=ax, warn_singular=False)
        else:
            ax.hist(values, color=color, alpha=0.6)
        ax.axvline(row["mean_leafN"], color="k", linestyle="--", lw=1)
        textstr = (
            f"n={int(row['n'])}\n"
            f"mean={row['mean_leafN']:.2f}\n"
            f"species={int(row['n_species'])}"
        )
        ax.text(0.95, 0.95, textstr, transform=ax.transAxes, fontsize=10,
                verticalalignment='top', horizontalalignment='right', bbox=props)
        ax.set_title(f"Cluster {int(row['cluster'])}", fontsize=12)
        ax.set_xlabel("Leaf N (mg/g)")
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    if plot_dir:
        save_plot(fig, f"{cluster_col}_densities", plot_dir)
    return fig


def plot_climate_space(df: pd.DataFrame, cluster_col: str, plot_dir=None):
    """Observations in (temperature, precipitation) space, colored by cluster."""
    mat_col, map_col = CLIMATE_COLS
    fig, ax = plt.subplots(figsize=(8, 6))
    sns.scatterplot(
        data=df.assign(**{cluster_col: df[cluster_col].astype(str)}).sort_values(cluster_col),
        x=mat_col, y=map_col, hue=cluster_col,
        palette="Set1", s=8, alpha=0.5, linewidth=0, ax=ax,
    )
    ax.set_xlabel("Mean annual temperature (°C)", fontsize=12)
    ax.set_ylabel("Mean annual precipitation (mm)", fontsize=12)
    ax.set_title("Environmental clusters in climate space", fontsize=14)
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    if plot_dir:
        save_plot(fig, f"{cluster_col}_climate_space", plot_dir)
    return fig


def plot_cv_metrics(results: dict, plot_dir=None):
    """Per-fold R² and RMSE, grouped by CV strategy."""
    frames = [res.assign(strategy=name) for name, res in results.items()]
    long_df = pd.concat(frames, ignore_index=True)

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))
    sns.barplot(data=long_df, x="strategy", y="rsq", hue="fold", palette="viridis", ax=ax1)
    ax1.axhline(0, color="k", lw=0.8)
    ax1.set_ylabel("R²", fontsize=12)
    ax1.set_xlabel("")
    ax1.set_title("Held-out R² per fold", fontsize=14)

    sns.barplot(data=long_df, x="strategy", y="rmse", hue="fold", palette="viridis", ax=ax2)
    ax2.set_ylabel("RMSE (mg/g)", fontsize=12)
    ax2.set_xlabel("")
    ax2.set_title("Held-out RMSE per fold", fontsize=14)

    plt.tight_layout()
    if plot_dir:
        save_plot(fig, "cv_metrics", plot_dir)
    logging.info("CV metrics plot created for strategies: %s", list(results))
    return fig


def close_all():
    plt.close("all")


__all__ = [
    "plot_observation_map",
    "plot_cluster_map",
    "plot_cluster_densities",
    "plot_climate_space",
    "plot_cv_metrics",
    "close_all",
]
