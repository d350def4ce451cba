"""
twinprot.core
-------------
Core reusable modules for the twin proteomics project.

Modules
-------
data_utils
    Snapshot loading, zygosity subsets, run annotation and log transform.
norm_utils
    Median per group, constant normalization, heavy/light ratios and
    protein summarization.
reshape_utils
    Long/wide reshaping and DIA/SRM joins.
stats_utils
    Linear models, t-tests, correlation tests and p-value correction.
corr_utils
    Protein correlation matrix and hierarchical protein ordering.
log_utils
    Logging setup for the pipeline scripts.
"""

from .data_utils import (
    add_log2_intensity,
    create_subsets,
    get_proteins,
    load_twin_data,
    run_annotation,
)
from .norm_utils import equalize_medians, reference_normalize, run_medians, summarize_proteins
from .reshape_utils import annotate_runs, join_dia_srm, to_long, to_wide
from .stats_utils import (
    cor_by_protein,
    cor_test,
    correct_pvalues,
    fit_lm,
    fit_lm_by_protein,
    run_ttests,
    ttest_paired,
    ttest_two_groups,
)
from .corr_utils import corr_matrix, hierarchical_feature_order
from .log_utils import setup_logging

__all__ = [
    "add_log2_intensity",
    "create_subsets",
    "get_proteins",
    "load_twin_data",
    "run_annotation",
    "equalize_medians",
    "reference_normalize",
    "run_medians",
    "summarize_proteins",
    "annotate_runs",
    "join_dia_srm",
    "to_long",
    "to_wide",
    "cor_by_protein",
    "cor_test",
    "correct_pvalues",
    "fit_lm",
    "fit_lm_by_protein",
    "run_ttests",
    "ttest_paired",
    "ttest_two_groups",
    "corr_matrix",
    "hierarchical_feature_order",
    "setup_logging",
]
