#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
model_training.py — random-forest fold evaluator for the leaf N CV study

• One routine (`evaluate_fold`) fits a RandomForestRegressor on the training
  rows of a fold and scores it on the held-out rows (R², RMSE)
• `run_cv` applies it to every fold produced by a partitioning strategy
• `summarize_cv` aggregates per-fold tables into a descriptive comparison

Species is one-hot encoded with ``handle_unknown="ignore"``: a species level
seen only in a test fold encodes as all zeros instead of failing.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, List, Tuple

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestRegressor
from sklearn.metrics import mean_squared_error, r2_score
from sklearn.preprocessing import OneHotEncoder

from config import (
    CATEGORICAL_PREDICTORS,
    PREDICTORS,
    RF_PARAMS,
    TARGET_COL,
)

# ────────────────────────── Data containers ────────────────────────── #


@dataclass(frozen=True)
class FoldMetrics:
    fold: int
    rsq: float
    rmse: float
    n_train: int
    n_test: int


# ────────────────────────── Model construction ────────────────────────── #


def build_preprocessor(numeric_cols: List[str], categorical_cols: List[str]) -> ColumnTransformer:
    transformers: list = []
    if numeric_cols:
        transformers.append(("num", "passthrough", numeric_cols))
    if categorical_cols:
        transformers.append(
            ("cat", OneHotEncoder(handle_unknown="ignore", sparse_output=False), categorical_cols)
        )
    return ColumnTransformer(transformers, remainder="drop", sparse_threshold=0.0)


def build_model(n_features: int, params: dict | None = None) -> RandomForestRegressor:
    """RandomForestRegressor configured from ranger-style parameters.

    ``mtry`` is capped at the number of encoded features.
    """
    p = {**RF_PARAMS, **(params or {})}
    return RandomForestRegressor(
        n_estimators=int(p["n_trees"]),
        max_features=max(1, min(int(p["mtry"]), n_features)),
        min_samples_leaf=int(p["min_node_size"]),
        criterion=p["criterion"],
        random_state=p["seed"],
        n_jobs=p.get("n_jobs", 1),
    )


def _split_predictors(predictors: List[str], df: pd.DataFrame) -> Tuple[List[str], List[str]]:
    categorical = [c for c in predictors if c in CATEGORICAL_PREDICTORS
                   or not pd.api.types.is_numeric_dtype(df[c])]
    numeric = [c for c in predictors if c not in categorical]
    return numeric, categorical


# ────────────────────────── Fold evaluation ────────────────────────── #


def evaluate_fold(
    df: pd.DataFrame,
    train_idx: Iterable[int],
    test_idx: Iterable[int],
    predictors: List[str] | None = None,
    target: str = TARGET_COL,
    params: dict | None = None,
    fold: int = 1,
) -> FoldMetrics:
    """Fit on ``df.iloc[train_idx]``, predict ``df.iloc[test_idx]``, return R²/RMSE.

    R² is the coefficient of determination, so it is at most 1 and negative
    when predictions are worse than the test-set mean. The fitted model is
    not kept.
    """
    predictors = list(predictors or PREDICTORS)
    train_idx = np.asarray(list(train_idx), dtype=int)
    test_idx = np.asarray(list(test_idx), dtype=int)

    if train_idx.size == 0:
        raise ValueError(f"Fold {fold}: training set is empty.")
    if test_idx.size == 0:
        raise ValueError(f"Fold {fold}: test set is empty.")
    if np.intersect1d(train_idx, test_idx).size:
        raise ValueError(f"Fold {fold}: train and test sets overlap.")
    missing = [c for c in predictors + [target] if c not in df.columns]
    if missing:
        raise ValueError(f"Fold {fold}: columns missing from data: {missing}")

    used = df.iloc[np.concatenate([train_idx, test_idx])][predictors + [target]]
    if used.isna().any().any():
        bad = used.columns[used.isna().any()].tolist()
        raise ValueError(f"Fold {fold}: missing values in {bad}; drop incomplete rows first.")

    train = df.iloc[train_idx]
    test = df.iloc[test_idx]
    numeric, categorical = _split_predictors(predictors, df)

    preproc = build_preprocessor(numeric, categorical)
    X_train = preproc.fit_transform(train[predictors])
    X_test = preproc.transform(test[predictors])
    y_train = train[target].to_numpy(dtype=float)
    y_test = test[target].to_numpy(dtype=float)

    model = build_model(X_train.shape[1], params)
    model.fit(X_train, y_train)
    y_pred = model.predict(X_test)

    rsq = float(r2_score(y_test, y_pred))
    rmse = float(np.sqrt(mean_squared_error(y_test, y_pred)))
    logging.info(
        "Fold %d: n_train=%d n_test=%d R²=%.3f RMSE=%.3f",
        fold, len(train_idx), len(test_idx), rsq, rmse,
    )
    return FoldMetrics(fold=fold, rsq=rsq, rmse=rmse, n_train=len(train_idx), n_test=len(test_idx))


def run_cv(
    df: pd.DataFrame,
    folds: List[Tuple[np.ndarray, np.ndarray]],
    predictors: List[str] | None = None,
    target: str = TARGET_COL,
    params: dict | None = None,
) -> pd.DataFrame:
    """Evaluate every fold in order; one row per fold."""
    records = [
        asdict(evaluate_fold(df, tr, te, predictors, target, params, fold=i))
        for i, (tr, te) in enumerate(folds, start=1)
    ]
    return pd.DataFrame.from_records(records, columns=["fold", "rsq", "rmse", "n_train", "n_test"])


def summarize_cv(results: dict[str, pd.DataFrame]) -> pd.DataFrame:
    """Mean and standard deviation of R² and RMSE across folds, per strategy."""
    rows = []
    for name, res in results.items():
        rows.append({
            "strategy": name,
            "folds": int(len(res)),
            "mean_rsq": float(res["rsq"].mean()),
            "sd_rsq": float(res["rsq"].std()),
            "mean_rmse": float(res["rmse"].mean()),
            "sd_rmse": float(res["rmse"].std()),
        })
    return pd.DataFrame(rows)


__all__ = [
    "FoldMetrics",
    "build_preprocessor",
    "build_model",
    "evaluate_fold",
    "run_cv",
    "summarize_cv",
]
