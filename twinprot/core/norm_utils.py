"""
norm_utils.py
-------------
Run-level normalization and protein-level summarization.

Everything here follows split-apply-combine: partition the long table by a
key (run, or protein x run), apply a summary per partition, recombine.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from .. import config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Median per group
# ---------------------------------------------------------------------------

def _nanmedian(values) -> float:
    values = np.asarray(values, dtype=float)
    values = values[~np.isnan(values)]
    if len(values) == 0:
        return np.nan
    return float(np.median(values))


def run_medians(
    df: pd.DataFrame,
    value: str = config.LOG2_COLUMN,
    by: str | list[str] = config.RUN,
    method: str = config.MEDIAN_METHOD,
) -> pd.Series:
    """Median of *value* per group, ignoring NaN.

    Parameters
    ----------
    df : pd.DataFrame
        Long table.
    value : str, optional
        Column to summarise.  Defaults to ``"log2inty"``.
    by : str or list[str], optional
        Grouping column(s).  Defaults to ``"run"``.
    method : str, optional
        ``"loop"`` iterates over the unique keys explicitly, ``"apply"``
        applies a median function to each partition of the value Series,
        ``"groupby"`` uses the built-in grouped aggregation.  All three give
        the same result.

    Returns
    -------
    pd.Series
        Medians indexed by group key (a MultiIndex for several columns),
        sorted by key.  All-NaN groups give NaN.
    """
    keys = [by] if isinstance(by, str) else list(by)

    if method == "loop":
        index, medians = [], []
        for key, part in df.groupby(keys, sort=True):
            index.append(key[0] if len(keys) == 1 else key)
            medians.append(_nanmedian(part[value]))
        if len(keys) == 1:
            idx = pd.Index(index, name=keys[0])
        else:
            idx = pd.MultiIndex.from_tuples(index, names=keys)
        result = pd.Series(medians, index=idx, dtype=float)
    elif method == "apply":
        grouper = df[keys[0]] if len(keys) == 1 else [df[k] for k in keys]
        result = df[value].groupby(grouper, sort=True).apply(_nanmedian).astype(float)
    elif method == "groupby":
        result = df.groupby(keys, sort=True)[value].median().astype(float)
    else:
        raise ValueError("Invalid method specified. Choose from 'loop', 'apply', 'groupby'.")

    result.name = value
    return result


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def equalize_medians(
    df: pd.DataFrame,
    value: str = config.LOG2_COLUMN,
    by: str = config.RUN,
    out: str = config.NORM_COLUMN,
    method: str = config.MEDIAN_METHOD,
) -> pd.DataFrame:
    """Constant normalization: shift every run to the median of run medians.

    ``out = value - median(run) + median(median(run) over runs)``.  Runs
    whose median is NaN keep NaN values.
    """
    medians = run_medians(df, value=value, by=by, method=method)
    global_median = float(np.nanmedian(medians.values)) if medians.notna().any() else np.nan
    logger.info(
        "Equalizing medians of %s over %d %s group(s); global median %.4f",
        value, len(medians), by, global_median,
    )

    n_nan_runs = int(medians.isna().sum())
    if n_nan_runs:
        logger.warning("%d %s group(s) have no finite %s; left as NaN.", n_nan_runs, by, value)

    df = df.copy()
    df[out] = df[value] - df[by].map(medians) + global_median
    return df


def reference_normalize(
    df: pd.DataFrame,
    light: str = config.INTENSITY_L,
    heavy: str = config.INTENSITY_H,
    out: str = config.RATIO_COLUMN,
) -> pd.DataFrame:
    """Log2 ratio of endogenous (light) to labelled reference (heavy) intensity."""
    light_v = df[light].astype(float)
    heavy_v = df[heavy].astype(float)
    valid = (light_v > 0) & (heavy_v > 0)
    n_invalid = int((~valid).sum())
    if n_invalid:
        logger.warning("%d row(s) without a positive %s/%s pair get NaN.", n_invalid, light, heavy)

    df = df.copy()
    df[out] = np.log2(light_v.where(valid)) - np.log2(heavy_v.where(valid))
    return df


# ---------------------------------------------------------------------------
# Protein summarization
# ---------------------------------------------------------------------------

def _logsum(values: pd.Series) -> float:
    values = values.dropna()
    if len(values) == 0:
        return np.nan
    return float(np.log2(np.sum(np.power(2.0, values.to_numpy(dtype=float)))))


def summarize_proteins(
    df: pd.DataFrame,
    value: str = config.NORM_COLUMN,
    method: str = config.SUMMARY_METHOD,
    out: str = config.LOG2_COLUMN,
) -> pd.DataFrame:
    """Collapse features to one value per (protein, run).

    Parameters
    ----------
    df : pd.DataFrame
        Feature-level long table.
    value : str, optional
        Log-scale column to summarise.  Defaults to ``"log2inty_norm"``.
    method : str, optional
        ``"logsum"`` gives ``log2(sum(2 ** value))``; ``"mean"`` and
        ``"median"`` summarise the log values directly.
    out : str, optional
        Name of the summary column.  Defaults to ``"log2inty"``.

    Returns
    -------
    pd.DataFrame
        Columns ``protein``, ``run``, *out* and ``n_features`` (features with
        a non-missing value).  Groups without any such feature get NaN.
    """
    funcs = {
        "logsum": _logsum,
        "mean": "mean",
        "median": "median",
    }
    if method not in funcs:
        raise ValueError("Invalid method specified. Choose from 'logsum', 'mean', 'median'.")

    grouped = df.groupby([config.PROTEIN, config.RUN], sort=True)[value]
    summary = grouped.agg(funcs[method]).astype(float).rename(out).to_frame()
    summary["n_features"] = grouped.count().astype(int)
    summary = summary.reset_index()

    n_empty = int((summary["n_features"] == 0).sum())
    if n_empty:
        logger.warning("%d protein/run group(s) have no quantified feature.", n_empty)
    logger.info(
        "Summarized %d feature rows into %d protein/run values (%s)",
        len(df), len(summary), method,
    )
    return summary
