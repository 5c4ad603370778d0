import numpy as np
import pandas as pd
import pytest

from config import ROW_ID_COL

# Five well separated pairs of sites
_TOY_SITES = [
    (-100.0, 40.0), (-99.0, 41.0),
    (10.0, 50.0), (11.0, 50.5),
    (120.0, -30.0), (121.0, -31.0),
    (-60.0, -10.0), (-61.0, -11.0),
    (30.0, 0.0), (31.0, 1.0),
]


@pytest.fixture
def toy_obs() -> pd.DataFrame:
    lon, lat = zip(*_TOY_SITES)
    df = pd.DataFrame({
        "leafN": [18.2, 19.5, 22.1, 21.7, 15.3, 16.0, 24.8, 23.9, 20.4, 19.9],
        "lon": lon,
        "lat": lat,
        "elv": [1500, 1450, 300, 320, 800, 780, 120, 140, 1100, 1050],
        "mat": [8.0, 7.5, 9.1, 9.4, 17.2, 17.8, 25.1, 24.6, 21.0, 21.3],
        "map": [600, 640, 800, 780, 450, 430, 2200, 2300, 1200, 1150],
        "ndep": [1.2, 1.1, 2.5, 2.4, 0.4, 0.5, 0.9, 0.8, 1.5, 1.6],
        "mai": [180, 175, 120, 125, 210, 215, 190, 195, 230, 228],
        "Species": ["Pinus a", "Pinus a", "Fagus s", "Quercus r", "Eucalyptus g",
                    "Eucalyptus g", "Inga e", "Inga e", "Acacia t", "Pinus a"],
    })
    df[ROW_ID_COL] = np.arange(len(df))
    return df


@pytest.fixture
def synthetic_obs() -> pd.DataFrame:
    rng = np.random.default_rng(0)
    n = 300
    mat = rng.uniform(-5, 28, n)
    map_ = rng.uniform(200, 3000, n)
    df = pd.DataFrame({
        "lon": rng.uniform(-170, 170, n),
        "lat": rng.uniform(-50, 70, n),
        "elv": rng.uniform(0, 3000, n),
        "mat": mat,
        "map": map_,
        "ndep": rng.uniform(0, 3, n),
        "mai": rng.uniform(100, 250, n),
        "Species": rng.choice([f"sp{i}" for i in range(8)], n),
    })
    df["leafN"] = 15 + 0.3 * mat - 0.002 * map_ + rng.normal(0, 1, n)
    df[ROW_ID_COL] = np.arange(n)
    return df
