"""Project configuration (single source of truth).

Default paths, column names and modelling knobs used by the loader, the CV
strategies and the report. A few knobs can be overridden through the
environment so the analysis can be pointed at a local copy of the data.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

DATA_DIR = os.path.join(BASE_DIR, "data")
CACHE_DIR = os.path.join(BASE_DIR, "cache")
PLOT_DIR = os.path.join(BASE_DIR, "plots")
REPORT_DIR = os.path.join(BASE_DIR, "report")
REPORT_NAME = "leafn_cv_report.html"

# Global leaf N compilation (Tian et al.) as used in the upscaling exercise
DATA_URL = os.getenv(
    "LEAFN_DATA_URL",
    "https://raw.githubusercontent.com/stineb/leafnp_data/main/data/leafnp_tian_et_al.csv",
)

# -------------------- Columns -------------------- #
TARGET_COL = "leafN"
LON_COL = "lon"
LAT_COL = "lat"
SPECIES_COL = "Species"
ROW_ID_COL = "__row_id"
REMOVED_STEP_COL = "__removed_step"

# elevation, mean annual temperature, mean annual precipitation,
# nitrogen deposition, mean annual irradiance
NUMERIC_PREDICTORS = ["elv", "mat", "map", "ndep", "mai"]
CATEGORICAL_PREDICTORS = [SPECIES_COL]
PREDICTORS = NUMERIC_PREDICTORS + CATEGORICAL_PREDICTORS
CLIMATE_COLS = ["mat", "map"]

USED_COLS = [TARGET_COL, LON_COL, LAT_COL] + PREDICTORS

# Header variants seen in copies of the dataset -> canonical names
ALIAS_MAP = {
    "leafn": TARGET_COL,
    "leaf_n": TARGET_COL,
    "longitude": LON_COL,
    "long": LON_COL,
    "latitude": LAT_COL,
    "elevation": "elv",
    "species": SPECIES_COL,
}

# -------------------- Analysis knobs -------------------- #
TOP_N_SPECIES = int(os.getenv("LEAFN_TOP_N_SPECIES", "50"))
N_FOLDS = 5
N_CLUSTERS = 5
CLUSTER_SEED = 100
MODEL_SEED = 42
KMEANS_N_INIT = 10

# Random forest (ranger-style names kept for readability in the report)
N_TREES = int(os.getenv("LEAFN_N_TREES", "500"))
MTRY = 3
MIN_NODE_SIZE = 12
SPLIT_CRITERION = "squared_error"  # variance reduction
N_JOBS = int(os.getenv("LEAFN_N_JOBS", "1"))

RF_PARAMS = {
    "n_trees": N_TREES,
    "mtry": MTRY,
    "min_node_size": MIN_NODE_SIZE,
    "criterion": SPLIT_CRITERION,
    "seed": MODEL_SEED,
    "n_jobs": N_JOBS,
}

EXTRA_DIRS = [
    DATA_DIR,
    CACHE_DIR,
    PLOT_DIR,
    REPORT_DIR,
]
