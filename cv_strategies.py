"""Cross-validation partitioning strategies.

Every strategy assigns each observation to one of ``k`` groups and turns the
groups into ``k`` folds: group ``i`` is the test set of fold ``i`` and all
other rows are its training set. Fold indices are positional indices into the
cleaned observation table.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold

from clustering import env_clusters, geo_clusters
from config import CLUSTER_SEED, MODEL_SEED, N_FOLDS

Fold = Tuple[np.ndarray, np.ndarray]


def folds_from_labels(labels) -> List[Fold]:
    """One fold per distinct label, in sorted label order."""
    labels = np.asarray(labels)
    positions = np.arange(len(labels))
    folds: list[Fold] = []
    for lbl in np.unique(labels):
        test_mask = labels == lbl
        folds.append((positions[~test_mask], positions[test_mask]))
    return folds


def check_partition(folds: List[Fold], n_rows: int) -> None:
    """Raise ValueError unless the test sets partition ``range(n_rows)``
    and every train set is the complement of its test set."""
    all_rows = np.arange(n_rows)
    seen = np.zeros(n_rows, dtype=int)
    for i, (train_idx, test_idx) in enumerate(folds, start=1):
        train_idx = np.asarray(train_idx, dtype=int)
        test_idx = np.asarray(test_idx, dtype=int)
        if len(test_idx) == 0:
            raise ValueError(f"Fold {i} has an empty test set.")
        for idx in (train_idx, test_idx):
            if idx.size and (idx.min() < 0 or idx.max() >= n_rows):
                raise ValueError(f"Fold {i}: index out of range for {n_rows} rows.")
        if np.intersect1d(train_idx, test_idx).size:
            raise ValueError(f"Fold {i}: train and test sets overlap.")
        if not np.array_equal(np.sort(train_idx), np.setdiff1d(all_rows, test_idx)):
            raise ValueError(f"Fold {i}: train set is not the complement of the test set.")
        seen[test_idx] += 1
    if not np.all(seen == 1):
        raise ValueError("Test sets do not cover every row exactly once.")


class FoldStrategy(ABC):
    """Common interface: ``assign`` labels rows, ``split`` builds the folds."""

    name = "base"

    def __init__(self, k: int = N_FOLDS, seed: int | None = None):
        self.k = k
        self.seed = seed

    @abstractmethod
    def assign(self, df: pd.DataFrame) -> np.ndarray:
        """Return a fold label in 1..k for every row of ``df``."""

    def split(self, df: pd.DataFrame) -> List[Fold]:
        return self.split_from_labels(df, self.assign(df))

    def split_from_labels(self, df: pd.DataFrame, labels) -> List[Fold]:
        """Build and check folds from labels already produced by ``assign``."""
        folds = folds_from_labels(labels)
        if len(folds) != self.k:
            raise ValueError(f"{self.name} CV produced {len(folds)} folds, expected {self.k}.")
        check_partition(folds, len(df))
        logging.info(
            "%s CV test sizes: %s", self.name, [int(len(te)) for _, te in folds]
        )
        return folds

    def __repr__(self) -> str:
        return f"{type(self).__name__}(k={self.k}, seed={self.seed})"


class RandomFolds(FoldStrategy):
    """Uniform random assignment into k near-equal folds."""

    name = "random"

    def __init__(self, k: int = N_FOLDS, seed: int = MODEL_SEED):
        super().__init__(k, seed)

    def assign(self, df):
        labels = np.zeros(len(df), dtype=int)
        kf = KFold(n_splits=self.k, shuffle=True, random_state=self.seed)
        for i, (_, test_idx) in enumerate(kf.split(np.arange(len(df))), start=1):
            labels[test_idx] = i
        return labels


class SpatialFolds(FoldStrategy):
    """Folds are k-means clusters in (longitude, latitude)."""

    name = "spatial"

    def __init__(self, k: int = N_FOLDS, seed: int = CLUSTER_SEED):
        super().__init__(k, seed)

    def assign(self, df):
        return geo_clusters(df, k=self.k, seed=self.seed)


class EnvironmentalFolds(FoldStrategy):
    """Folds are k-means clusters in standardized (temperature, precipitation)."""

    name = "environmental"

    def __init__(self, k: int = N_FOLDS, seed: int = CLUSTER_SEED):
        super().__init__(k, seed)

    def assign(self, df):
        return env_clusters(df, k=self.k, seed=self.seed)


STRATEGIES = {
    RandomFolds.name: RandomFolds,
    SpatialFolds.name: SpatialFolds,
    EnvironmentalFolds.name: EnvironmentalFolds,
}


def make_strategy(name: str, **kwargs) -> FoldStrategy:
    try:
        cls = STRATEGIES[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown CV strategy '{name}'. Choose from {sorted(STRATEGIES)}.") from None
    return cls(**kwargs)
