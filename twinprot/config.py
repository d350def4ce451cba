"""
Configuration constants for the twin proteomics pipeline.
"""

from pathlib import Path

# =============================================================================
# COLUMNS
# =============================================================================

PROTEIN = "protein"
FEATURE = "feature"
RUN = "run"
PAIR = "pair"
ZYGOSITY = "zygosity"
SUBJECT = "subject"
VISIT = "visit"
INTENSITY_H = "intensity_h"   # heavy, labelled reference
INTENSITY_L = "intensity_l"   # light, endogenous

REQUIRED_COLUMNS = [
    PROTEIN, FEATURE, RUN, PAIR, ZYGOSITY, SUBJECT, VISIT, INTENSITY_H, INTENSITY_L,
]

# Constant within a run
RUN_ANNOTATION_COLUMNS = [RUN, PAIR, ZYGOSITY, SUBJECT, VISIT]

ID_COLUMNS = [PROTEIN, FEATURE, RUN, PAIR, ZYGOSITY, SUBJECT]
INTENSITY_COLUMNS = [INTENSITY_H, INTENSITY_L]

LOG2_COLUMN = "log2inty"
NORM_COLUMN = "log2inty_norm"
RATIO_COLUMN = "log2ratio"

ZYGOSITY_LEVELS = ("MZ", "DZ")
VISIT_LEVELS = (1, 2)

# =============================================================================
# PATHS
# =============================================================================

DATA_DIR = Path("data/raw")
PROCESSED_DIR = Path("data/processed")
DIA_FILE = "twin_dia.csv"
SRM_FILE = "twin_srm.csv"

# =============================================================================
# ANALYSIS
# =============================================================================

SUMMARY_METHOD = "logsum"          # "logsum", "mean" or "median"
MEDIAN_METHOD = "groupby"          # "loop", "apply" or "groupby"
CORRECTION_METHOD = "fdr"          # "fdr" or "bonferroni"
CORRELATION_METHOD = "pearson"     # "pearson", "spearman" or "kendall"
ALPHA = 0.05
MIN_GROUP_SIZE = 2                 # per group, for t-tests
MIN_LM_ROWS = 3
MIN_COR_PAIRS = 3
