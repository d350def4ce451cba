"""
corr_utils.py
-------------
Protein-protein correlation across runs and hierarchical ordering of
proteins by co-abundance.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import linkage, leaves_list
from scipy.spatial.distance import squareform


def corr_matrix(wide: pd.DataFrame) -> pd.DataFrame:
    """Compute a protein x protein Pearson correlation matrix across runs.

    Missing values are imputed per protein with that protein's median
    before computing correlations.

    Parameters
    ----------
    wide : pd.DataFrame
        Protein x run matrix (as returned by
        :func:`~twinprot.core.reshape_utils.to_wide`).

    Returns
    -------
    pd.DataFrame
        Square correlation matrix indexed by protein on both axes.
    """
    mat = wide.T.copy().astype(float)
    mat = mat.apply(lambda col: col.fillna(col.median()), axis=0)
    corr = mat.corr()
    corr.index.name = None
    corr.columns.name = None
    return corr


def hierarchical_feature_order(corr_df: pd.DataFrame) -> list[str]:
    """Return proteins re-ordered by hierarchical clustering (average linkage).

    Uses correlation distance ``1 - r``, so co-abundant proteins end up
    next to each other.  Undefined correlations count as ``r = 0``.
    """
    features = list(corr_df.columns)
    if len(features) < 2:
        return features

    C = np.nan_to_num(corr_df.to_numpy(), nan=0.0)
    D = 1.0 - C
    D = (D + D.T) / 2.0
    np.fill_diagonal(D, 0.0)
    Z = linkage(squareform(D, checks=False), method="average")
    return [features[i] for i in leaves_list(Z)]
