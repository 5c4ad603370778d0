# data_loading.py

import logging

import numpy as np
import pandas as pd
from joblib import Memory

from config import CACHE_DIR, ROW_ID_COL

memory = Memory(CACHE_DIR, verbose=0)


def _read_csv(source):
    return pd.read_csv(source, low_memory=False)


_read_csv_cached = memory.cache(_read_csv)


def load_data(source, use_cache=True):
    """Load the leaf N table from a URL or local path.

    Each row gets a ``__row_id`` so rows can be traced through filtering.
    Failures are logged and re-raised; there is no fallback dataset.
    """
    try:
        data = _read_csv_cached(source) if use_cache else _read_csv(source)
    except Exception as e:
        logging.error(f"Error loading data from {source}: {e}")
        raise
    data = data.copy()
    data[ROW_ID_COL] = np.arange(len(data), dtype=int)
    logging.info(f"Data loaded successfully from {source}: {data.shape[0]} rows")
    logging.info(f"Columns in loaded data: {data.columns.tolist()}")
    return data
