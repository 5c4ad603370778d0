# data_cleaning.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import pandas as pd

from config import (
    ALIAS_MAP,
    PREDICTORS,
    REMOVED_STEP_COL,
    ROW_ID_COL,
    SPECIES_COL,
    TOP_N_SPECIES,
    USED_COLS,
)


class RemovedRowsTracker:
    """Collect rows dropped by each cleaning step, tagged with the step name."""

    def __init__(self, output_path: Path | None = None):
        self.output_path = Path(output_path) if output_path else None
        self._records: list[pd.DataFrame] = []

    def track(self, before_df: pd.DataFrame, after_df: pd.DataFrame, step: str) -> None:
        if ROW_ID_COL not in before_df.columns:
            return
        after_ids = set(after_df[ROW_ID_COL].astype(int))
        removed = before_df[~before_df[ROW_ID_COL].isin(after_ids)].copy()
        if removed.empty:
            return
        removed[REMOVED_STEP_COL] = step
        logging.info("%s removed %d rows", step, len(removed))
        self._records.append(removed)

    def removed(self) -> pd.DataFrame:
        if not self._records:
            return pd.DataFrame(columns=[REMOVED_STEP_COL, ROW_ID_COL])
        out_df = pd.concat(self._records, ignore_index=True)
        ordered_cols = [REMOVED_STEP_COL] + [c for c in out_df.columns if c != REMOVED_STEP_COL]
        return out_df[ordered_cols]

    def flush(self) -> None:
        if self.output_path is None or not self._records:
            return
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.removed().to_csv(self.output_path, index=False)


@dataclass
class CleanedData:
    data: pd.DataFrame
    excluded: pd.DataFrame
    species: List[str] = field(default_factory=list)


def normalize_columns(df: pd.DataFrame, alias_map: dict[str, str] = ALIAS_MAP) -> pd.DataFrame:
    """Rename alias columns to canonical names and merge duplicate information."""
    work = df.copy()
    for alias_lower, canonical in alias_map.items():
        matching = [col for col in work.columns if str(col).lower() == alias_lower]
        for col in matching:
            if col == canonical:
                continue
            if canonical in work.columns:
                work[canonical] = work[canonical].combine_first(work[col])
                work.drop(columns=[col], inplace=True)
            else:
                work.rename(columns={col: canonical}, inplace=True)
    return work


def select_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Keep target, coordinates, predictors and the row id."""
    missing = [c for c in USED_COLS if c not in df.columns]
    if missing:
        raise ValueError(f"Required columns missing from dataset: {', '.join(missing)}")
    keep = USED_COLS + ([ROW_ID_COL] if ROW_ID_COL in df.columns else [])
    return df[keep].copy()


def top_species(df: pd.DataFrame, n: int = TOP_N_SPECIES) -> list[str]:
    """Return the ``n`` most frequent species (ties broken by name)."""
    counts = (
        df[SPECIES_COL]
        .dropna()
        .value_counts()
        .rename("count")
        .rename_axis(SPECIES_COL)
        .reset_index()
        .sort_values(["count", SPECIES_COL], ascending=[False, True])
    )
    return counts[SPECIES_COL].head(n).tolist()


def filter_species(df: pd.DataFrame, species: list[str]) -> pd.DataFrame:
    return df[df[SPECIES_COL].isin(species)].copy()


def drop_incomplete(df: pd.DataFrame, cols: list[str] | None = None) -> pd.DataFrame:
    """Drop rows with a missing value in any modelling column."""
    cols = cols or USED_COLS
    return df.dropna(subset=cols).copy()


def data_cleaning(
    data: pd.DataFrame,
    top_n: int = TOP_N_SPECIES,
    tracker: RemovedRowsTracker | None = None,
) -> CleanedData:
    """
    Prepare the observation table for clustering and CV:
      - Canonicalize column names and keep the used columns.
      - Keep only the ``top_n`` most frequent species (counted on the full table).
      - Drop rows with missing target, coordinates or predictors.

    The returned table has a fresh RangeIndex so fold indices are positional.
    Removed rows are returned separately, tagged with the step that dropped them.
    """
    logging.info("Starting data cleaning...")
    tracker = tracker or RemovedRowsTracker()

    data = normalize_columns(data)
    data = select_columns(data)
    if ROW_ID_COL not in data.columns:
        data[ROW_ID_COL] = range(len(data))

    species = top_species(data, top_n)
    logging.info("Keeping %d most frequent species", len(species))
    before = data
    data = filter_species(data, species)
    tracker.track(before, data, "species_filter")

    before = data
    data = drop_incomplete(data)
    tracker.track(before, data, "missing_values")

    data[SPECIES_COL] = data[SPECIES_COL].astype(str)
    data = data.reset_index(drop=True)
    logging.info(
        "Data cleaning complete: %d rows, %d species, predictors=%s",
        len(data), data[SPECIES_COL].nunique(), PREDICTORS,
    )
    return CleanedData(data=data, excluded=tracker.removed(), species=species)
