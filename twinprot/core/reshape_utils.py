"""
reshape_utils.py
----------------
Long/wide reshaping and joins between protein summaries and run annotation.
"""

from __future__ import annotations

import logging

import pandas as pd

from .. import config

logger = logging.getLogger(__name__)

JOIN_TYPES = ("inner", "left", "right", "outer")


# ---------------------------------------------------------------------------
# Reshaping
# ---------------------------------------------------------------------------

def to_wide(
    df: pd.DataFrame,
    index: str = config.PROTEIN,
    columns: str = config.RUN,
    values: str = config.LOG2_COLUMN,
) -> pd.DataFrame:
    """Pivot a long summary into an *index* x *columns* matrix.

    Raises
    ------
    ValueError
        If an (index, columns) pair occurs more than once.
    """
    dup = df.duplicated(subset=[index, columns], keep=False)
    if dup.any():
        raise ValueError(
            f"{int(dup.sum())} row(s) share an ({index}, {columns}) pair; "
            "summarize before reshaping."
        )
    wide = df.pivot(index=index, columns=columns, values=values)
    wide.columns.name = columns
    return wide.sort_index().sort_index(axis=1)


def to_long(
    wide: pd.DataFrame,
    index: str = config.PROTEIN,
    columns: str = config.RUN,
    values: str = config.LOG2_COLUMN,
    dropna: bool = True,
) -> pd.DataFrame:
    """Melt an *index* x *columns* matrix back into a long table."""
    long = (
        wide.rename_axis(index=index, columns=columns)
        .reset_index()
        .melt(id_vars=index, var_name=columns, value_name=values)
    )
    long.columns.name = None
    if dropna:
        long = long.dropna(subset=[values])
    return long.sort_values([index, columns]).reset_index(drop=True)


# ---------------------------------------------------------------------------
# Joins
# ---------------------------------------------------------------------------

def annotate_runs(summary: pd.DataFrame, annotation: pd.DataFrame) -> pd.DataFrame:
    """Left-join run annotation (pair, zygosity, subject, visit) onto *summary*."""
    merged = summary.merge(annotation, on=config.RUN, how="left", validate="many_to_one")

    unmatched = sorted(set(summary[config.RUN]) - set(annotation[config.RUN]))
    if unmatched:
        logger.warning(
            "%d run(s) without annotation: %s", len(unmatched), ", ".join(map(str, unmatched))
        )
    return merged


def join_dia_srm(
    dia: pd.DataFrame,
    srm: pd.DataFrame,
    on: tuple[str, ...] = (config.PROTEIN, config.RUN),
    how: str = "inner",
) -> pd.DataFrame:
    """Join DIA and SRM protein summaries; shared value columns get ``_dia`` / ``_srm``.

    Parameters
    ----------
    dia, srm : pd.DataFrame
        Protein summaries, e.g. from
        :func:`~twinprot.core.norm_utils.summarize_proteins`.
    on : tuple[str, ...], optional
        Join keys.  Defaults to ``("protein", "run")``.
    how : str, optional
        ``"inner"`` (default), ``"left"``, ``"right"`` or ``"outer"``.

    Returns
    -------
    pd.DataFrame
        Joined table sorted by the keys.
    """
    if how not in JOIN_TYPES:
        raise ValueError(f"Invalid join type '{how}'. Choose from {', '.join(JOIN_TYPES)}.")
    keys = list(on)

    dia_keys = set(map(tuple, dia[keys].drop_duplicates().to_numpy()))
    srm_keys = set(map(tuple, srm[keys].drop_duplicates().to_numpy()))
    only_dia = len(dia_keys - srm_keys)
    only_srm = len(srm_keys - dia_keys)
    if only_dia or only_srm:
        logger.warning(
            "Key mismatch on %s: %d only in DIA, %d only in SRM (%s join).",
            "/".join(keys), only_dia, only_srm, how,
        )

    joined = dia.merge(srm, on=keys, how=how, suffixes=("_dia", "_srm"))
    logger.info("Joined DIA (%d) and SRM (%d) rows into %d rows", len(dia), len(srm), len(joined))
    return joined.sort_values(keys).reset_index(drop=True)
