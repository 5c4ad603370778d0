# clustering.py

import logging
from typing import List

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans
from sklearn.preprocessing import StandardScaler

from config import (
    CLIMATE_COLS,
    CLUSTER_SEED,
    KMEANS_N_INIT,
    LAT_COL,
    LON_COL,
    N_CLUSTERS,
    SPECIES_COL,
    TARGET_COL,
)


def standardize(df: pd.DataFrame, cols: List[str]) -> pd.DataFrame:
    """Scale each column independently to zero mean / unit variance."""
    missing = set(cols) - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns for standardization: {missing}")
    scaled = StandardScaler().fit_transform(df[cols].astype(float).to_numpy())
    return pd.DataFrame(scaled, columns=cols, index=df.index)


def kmeans_labels(X, k: int = N_CLUSTERS, seed: int = CLUSTER_SEED) -> np.ndarray:
    """Cluster rows of ``X`` with k-means. Returns labels 1..k.

    Raises ValueError unless all k clusters are non-empty.
    """
    X = np.asarray(X, dtype=float)
    if X.ndim != 2:
        raise ValueError("Expected a 2-D feature matrix for k-means.")
    if X.shape[0] < k:
        raise ValueError(f"Need at least {k} rows to form {k} clusters, got {X.shape[0]}.")
    model = KMeans(n_clusters=k, n_init=KMEANS_N_INIT, random_state=seed)
    labels = model.fit_predict(X) + 1
    n_found = len(np.unique(labels))
    if n_found != k:
        raise ValueError(f"k-means produced {n_found} non-empty clusters, expected {k}.")
    return labels


def geo_clusters(df: pd.DataFrame, k: int = N_CLUSTERS, seed: int = CLUSTER_SEED) -> np.ndarray:
    """k-means on raw (longitude, latitude) degrees."""
    labels = kmeans_labels(df[[LON_COL, LAT_COL]].to_numpy(), k=k, seed=seed)
    logging.info("Geographic cluster sizes: %s", _sizes(labels))
    return labels


def env_clusters(df: pd.DataFrame, k: int = N_CLUSTERS, seed: int = CLUSTER_SEED) -> np.ndarray:
    """k-means on standardized mean annual temperature and precipitation."""
    scaled = standardize(df, CLIMATE_COLS)
    labels = kmeans_labels(scaled.to_numpy(), k=k, seed=seed)
    logging.info("Environmental cluster sizes: %s", _sizes(labels))
    return labels


def _sizes(labels: np.ndarray) -> dict:
    uniq, counts = np.unique(labels, return_counts=True)
    return {int(u): int(c) for u, c in zip(uniq, counts)}


def cluster_summary(df: pd.DataFrame, cluster_col: str) -> pd.DataFrame:
    """Per-cluster sample count, leaf N moments, species count and climate means."""
    grp = df.groupby(cluster_col)
    out = pd.DataFrame({
        "n": grp.size(),
        "mean_leafN": grp[TARGET_COL].mean(),
        "sd_leafN": grp[TARGET_COL].std(),
        "n_species": grp[SPECIES_COL].nunique(),
        "lon": grp[LON_COL].mean(),
        "lat": grp[LAT_COL].mean(),
        "mat": grp[CLIMATE_COLS[0]].mean(),
        "map": grp[CLIMATE_COLS[1]].mean(),
    })
    return out.reset_index().rename(columns={cluster_col: "cluster"})
