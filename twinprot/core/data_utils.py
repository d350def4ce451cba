"""
data_utils.py
-------------
Loading and subsetting utilities for the twin proteomics tables.

Both ``twin_dia`` and ``twin_srm`` are long tables with one row per
(feature, run).  Run-level annotation (pair, zygosity, subject, visit) is
repeated on every row of a run, so it can be recovered with
:func:`run_annotation` and joined back onto any run-level summary.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NamedTuple

import numpy as np
import pandas as pd

from .. import config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_twin_data(path: Path | str) -> pd.DataFrame:
    """Load a ``twin_dia`` / ``twin_srm`` snapshot.

    Parameters
    ----------
    path : Path or str
        CSV file, or a pandas pickle when the suffix is ``.pkl``/``.pickle``.

    Returns
    -------
    pd.DataFrame
        Table with identifier columns as ``str``, ``visit`` as ``int`` and
        intensities as ``float`` (unparsable values become NaN).

    Raises
    ------
    ValueError
        If any of the required columns is missing.
    """
    path = Path(path)
    logger.info("Loading %s", path)
    if path.suffix in (".pkl", ".pickle"):
        df = pd.read_pickle(path)
    else:
        df = pd.read_csv(path)
    logger.info("Loaded %d rows, %d columns", *df.shape)
    return coerce_twin_table(df)


def coerce_twin_table(df: pd.DataFrame) -> pd.DataFrame:
    """Validate required columns, drop rows without identifiers and normalise dtypes."""
    missing = [c for c in config.REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required column(s): {', '.join(missing)}")

    n_before = len(df)
    df = df.dropna(subset=config.ID_COLUMNS + [config.VISIT]).copy()
    n_dropped = n_before - len(df)
    if n_dropped:
        logger.warning(
            "Dropped %d row(s) with missing identifier or %s values.", n_dropped, config.VISIT
        )

    for col in config.ID_COLUMNS:
        df[col] = df[col].astype(str)
    df[config.VISIT] = pd.to_numeric(df[config.VISIT], errors="raise").astype(int)

    for col in config.INTENSITY_COLUMNS:
        before = df[col].isna().sum()
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
        n_coerced = int(df[col].isna().sum() - before)
        if n_coerced:
            logger.warning("%d non-numeric value(s) in %s set to NaN.", n_coerced, col)
    return df


# ---------------------------------------------------------------------------
# Subsets
# ---------------------------------------------------------------------------

class Subsets(NamedTuple):
    """Container returned by :func:`create_subsets`."""
    mz: pd.DataFrame
    dz: pd.DataFrame


def create_subsets(df: pd.DataFrame) -> Subsets:
    """Split a twin table into monozygotic and dizygotic cohorts.

    Rows with any other zygosity label belong to neither subset.
    """
    mz_level, dz_level = config.ZYGOSITY_LEVELS
    mz = df[df[config.ZYGOSITY] == mz_level].copy()
    dz = df[df[config.ZYGOSITY] == dz_level].copy()
    n_other = len(df) - len(mz) - len(dz)
    if n_other:
        logger.warning("%d row(s) with zygosity other than %s/%s.", n_other, mz_level, dz_level)
    return Subsets(mz=mz, dz=dz)


def get_proteins(df: pd.DataFrame) -> list[str]:
    """Return the sorted unique protein identifiers in *df*.

    Raises
    ------
    AssertionError
        If the table holds no protein.
    """
    proteins = sorted(df[config.PROTEIN].dropna().unique().tolist())
    assert len(proteins) > 0, (
        f"No values in column '{config.PROTEIN}'. "
        "Check that the correct dataframe is passed."
    )
    return proteins


def run_annotation(df: pd.DataFrame) -> pd.DataFrame:
    """Return the distinct run-level annotation, one row per run.

    Raises
    ------
    ValueError
        If a run carries more than one combination of pair, zygosity,
        subject and visit.
    """
    annot = (
        df[config.RUN_ANNOTATION_COLUMNS]
        .drop_duplicates()
        .sort_values(config.RUN)
        .reset_index(drop=True)
    )
    dup = annot[config.RUN].duplicated(keep=False)
    if dup.any():
        runs = sorted(annot.loc[dup, config.RUN].unique())
        raise ValueError(f"Conflicting annotation for run(s): {', '.join(runs)}")
    return annot


# ---------------------------------------------------------------------------
# Log transform
# ---------------------------------------------------------------------------

def add_log2_intensity(
    df: pd.DataFrame,
    column: str = config.INTENSITY_L,
    out: str = config.LOG2_COLUMN,
) -> pd.DataFrame:
    """Add ``log2(column)`` as *out*; zero, negative and missing become NaN."""
    values = df[column].astype(float)
    valid = values > 0
    n_invalid = int((~valid).sum())
    if n_invalid:
        logger.warning(
            "%d row(s) with missing or non-positive %s get NaN in %s.",
            n_invalid, column, out,
        )
    df = df.copy()
    df[out] = np.log2(values.where(valid))
    return df
