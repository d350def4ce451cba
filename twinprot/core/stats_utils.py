"""
stats_utils.py
--------------
Linear models, t-tests, correlation tests and multiple-testing correction for
protein-level twin data.

Single-test functions return small result containers; the ``*_by_protein`` and
``run_ttests`` helpers return tidy DataFrames with one row per protein.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from scipy import stats
from statsmodels.stats.multitest import multipletests

from .. import config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Linear models
# ---------------------------------------------------------------------------

class LmResult(NamedTuple):
    """Container returned by :func:`fit_lm`."""
    coefficients: pd.DataFrame
    r_squared: float
    n_obs: int
    model: object


def fit_lm(df: pd.DataFrame, formula: str) -> LmResult:
    """Fit an ordinary least squares model from an R-style *formula*.

    Rows with NaN in any model variable are dropped.

    Raises
    ------
    ValueError
        If fewer than three complete rows remain.
    """
    too_few = f"Need at least {config.MIN_LM_ROWS} complete rows to fit '{formula}'"
    if len(df) < config.MIN_LM_ROWS:
        raise ValueError(f"{too_few}, got {len(df)}.")
    try:
        ols_model = smf.ols(formula, data=df, missing="drop")
    except ValueError as exc:
        # statsmodels fails on an empty design once NaN rows are dropped
        raise ValueError(f"{too_few}, got 0.") from exc
    n_rows = int(ols_model.nobs)
    if n_rows < config.MIN_LM_ROWS:
        raise ValueError(f"{too_few}, got {n_rows}.")

    model = ols_model.fit()
    coefficients = pd.DataFrame({
        "estimate": model.params,
        "std_error": model.bse,
        "t": model.tvalues,
        "pval": model.pvalues,
    })
    return LmResult(
        coefficients=coefficients,
        r_squared=float(model.rsquared),
        n_obs=int(model.nobs),
        model=model,
    )


def fit_lm_by_protein(df: pd.DataFrame, formula: str) -> pd.DataFrame:
    """Fit *formula* separately for each protein.

    Returns one row per fitted protein with ``intercept``, ``slope`` (first
    non-intercept coefficient), ``slope_pval``, ``r_squared`` and ``n``.
    Proteins with too few complete rows are skipped.
    """
    rows = []
    for prot, part in df.groupby(config.PROTEIN, sort=True):
        try:
            res = fit_lm(part, formula)
        except ValueError:
            logger.debug("Skipping %s: too few rows for lm", prot)
            continue
        coef = res.coefficients
        slope_term = next((t for t in coef.index if t != "Intercept"), None)
        rows.append({
            "Protein": prot,
            "intercept": coef.loc["Intercept", "estimate"] if "Intercept" in coef.index else np.nan,
            "slope": coef.loc[slope_term, "estimate"] if slope_term else np.nan,
            "slope_pval": coef.loc[slope_term, "pval"] if slope_term else np.nan,
            "r_squared": res.r_squared,
            "n": res.n_obs,
        })

    results = pd.DataFrame(
        rows, columns=["Protein", "intercept", "slope", "slope_pval", "r_squared", "n"]
    )
    logger.info("Fitted '%s' for %d protein(s)", formula, len(results))
    return results


# ---------------------------------------------------------------------------
# t-tests
# ---------------------------------------------------------------------------

class TTestResult(NamedTuple):
    """Container returned by :func:`ttest_two_groups` and :func:`ttest_paired`."""
    statistic: float
    pvalue: float
    df: float
    mean_diff: float
    n_a: int
    n_b: int
    levels: tuple


def _two_levels(df: pd.DataFrame, group: str, levels) -> tuple:
    if levels is None:
        levels = tuple(sorted(df[group].dropna().unique().tolist()))
    else:
        levels = tuple(levels)
    if len(levels) != 2:
        raise ValueError(f"Column '{group}' must have exactly two levels, got {list(levels)}.")
    return levels


def ttest_two_groups(
    df: pd.DataFrame,
    value: str,
    group: str,
    levels=None,
    equal_var: bool = False,
) -> TTestResult:
    """Two-sample t-test of *value* between the two levels of *group*.

    Welch's test by default; Student's pooled-variance test with
    ``equal_var=True``.  ``mean_diff`` is ``mean(levels[0]) - mean(levels[1])``.
    """
    level_a, level_b = _two_levels(df, group, levels)
    a = pd.to_numeric(df.loc[df[group] == level_a, value], errors="coerce").dropna()
    b = pd.to_numeric(df.loc[df[group] == level_b, value], errors="coerce").dropna()
    if len(a) < config.MIN_GROUP_SIZE or len(b) < config.MIN_GROUP_SIZE:
        raise ValueError(
            f"Need at least {config.MIN_GROUP_SIZE} values per group; "
            f"got {len(a)} ({level_a}) and {len(b)} ({level_b})."
        )

    t = stats.ttest_ind(a.values, b.values, equal_var=equal_var)
    return TTestResult(
        statistic=float(t.statistic),
        pvalue=float(t.pvalue),
        df=float(t.df),
        mean_diff=float(a.mean() - b.mean()),
        n_a=len(a),
        n_b=len(b),
        levels=(level_a, level_b),
    )


def ttest_paired(
    df: pd.DataFrame,
    value: str,
    pair_by: str = config.SUBJECT,
    condition: str = config.VISIT,
    levels=config.VISIT_LEVELS,
) -> TTestResult:
    """Paired t-test of *value* between two *condition* levels within *pair_by*.

    Values are averaged per (pair_by, condition) first.  Units missing either
    level are skipped with a warning.
    """
    level_a, level_b = _two_levels(df, condition, levels)
    sub = df[df[condition].isin([level_a, level_b])]
    wide = sub.pivot_table(index=pair_by, columns=condition, values=value, aggfunc="mean")
    for level in (level_a, level_b):
        if level not in wide.columns:
            wide[level] = np.nan
    complete = wide[[level_a, level_b]].dropna()

    n_skipped = len(wide) - len(complete)
    if n_skipped:
        logger.warning("%d %s(s) lack a value at both %s levels; skipped.", n_skipped, pair_by, condition)
    if len(complete) < config.MIN_GROUP_SIZE:
        raise ValueError(
            f"Need at least {config.MIN_GROUP_SIZE} complete pairs, got {len(complete)}."
        )

    t = stats.ttest_rel(complete[level_a].values, complete[level_b].values)
    return TTestResult(
        statistic=float(t.statistic),
        pvalue=float(t.pvalue),
        df=float(len(complete) - 1),
        mean_diff=float((complete[level_a] - complete[level_b]).mean()),
        n_a=len(complete),
        n_b=len(complete),
        levels=(level_a, level_b),
    )


def run_ttests(
    df: pd.DataFrame,
    value: str = config.LOG2_COLUMN,
    group: str = config.ZYGOSITY,
    levels=config.ZYGOSITY_LEVELS,
    equal_var: bool = False,
) -> pd.DataFrame:
    """Per-protein two-sample t-tests between the two levels of *group*.

    Proteins with fewer than two values in either group, or with a
    non-finite p-value, are skipped.

    Returns
    -------
    pd.DataFrame
        Columns ``Protein``, ``MeanDiff``, ``pval``, ``n_a``, ``n_b``.
    """
    levels = _two_levels(df, group, levels)
    logger.info(
        "Running t-tests on %s: %s vs %s", value, levels[0], levels[1]
    )

    rows = []
    for prot, part in df.groupby(config.PROTEIN, sort=True):
        try:
            res = ttest_two_groups(part, value, group, levels=levels, equal_var=equal_var)
        except ValueError:
            continue

        if np.isfinite(res.pvalue):
            rows.append({
                "Protein": prot,
                "MeanDiff": res.mean_diff,
                "pval": res.pvalue,
                "n_a": res.n_a,
                "n_b": res.n_b,
            })

    results = pd.DataFrame(rows, columns=["Protein", "MeanDiff", "pval", "n_a", "n_b"])
    logger.info("Proteins tested: %d", len(results))
    return results


def correct_pvalues(
    results: pd.DataFrame,
    method: str = config.CORRECTION_METHOD,
    alpha: float = config.ALPHA,
    pval_column: str = "pval",
) -> pd.DataFrame:
    """
    Apply multiple testing correction and sort by adjusted p-value.
    method: 'fdr' → Benjamini-Hochberg; 'bonferroni' → Bonferroni.
    """
    method_map = {"fdr": "fdr_bh", "bonferroni": "bonferroni"}
    mt_method = method_map.get(method.lower())
    if mt_method is None:
        raise ValueError('method must be "fdr" or "bonferroni"')

    results = results.copy()
    if len(results) == 0:
        results["ADJ_P"] = pd.Series(dtype=float)
        return results

    _, adj_p, _, _ = multipletests(results[pval_column].values, method=mt_method)
    results["ADJ_P"] = adj_p
    results = results.sort_values(["ADJ_P", pval_column], ascending=True).reset_index(drop=True)

    n_sig = int((results["ADJ_P"] < alpha).sum())
    logger.info(
        "Correction: %s | alpha=%.3f | significant: %d / %d",
        mt_method, alpha, n_sig, len(results),
    )
    return results


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------

class CorResult(NamedTuple):
    """Container returned by :func:`cor_test`."""
    estimate: float
    pvalue: float
    n: int
    method: str
    conf_int: tuple[float, float]


def cor_test(x, y, method: str = config.CORRELATION_METHOD) -> CorResult:
    """Test for association between paired samples *x* and *y*.

    Pairs with a NaN on either side are dropped.  ``conf_int`` is the 95%
    Fisher-transform interval for Pearson (needs n > 3) and ``(nan, nan)``
    otherwise.
    """
    tests = {
        "pearson": stats.pearsonr,
        "spearman": stats.spearmanr,
        "kendall": stats.kendalltau,
    }
    if method not in tests:
        raise ValueError("Invalid method specified. Choose from 'pearson', 'spearman', 'kendall'.")

    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"x and y must have the same length, got {len(x)} and {len(y)}.")
    keep = ~(np.isnan(x) | np.isnan(y))
    x, y = x[keep], y[keep]
    n = len(x)
    if n < config.MIN_COR_PAIRS:
        raise ValueError(f"Need at least {config.MIN_COR_PAIRS} complete pairs, got {n}.")

    estimate, pvalue = tests[method](x, y)
    estimate, pvalue = float(estimate), float(pvalue)

    conf_int = (np.nan, np.nan)
    if method == "pearson" and n > 3 and abs(estimate) < 1:
        z = np.arctanh(estimate)
        half = stats.norm.ppf(0.975) / np.sqrt(n - 3)
        conf_int = (float(np.tanh(z - half)), float(np.tanh(z + half)))

    return CorResult(estimate=estimate, pvalue=pvalue, n=n, method=method, conf_int=conf_int)


def cor_by_protein(
    joined: pd.DataFrame,
    x: str = f"{config.LOG2_COLUMN}_dia",
    y: str = f"{config.LOG2_COLUMN}_srm",
    method: str = config.CORRELATION_METHOD,
    correction: str = config.CORRECTION_METHOD,
    alpha: float = config.ALPHA,
) -> pd.DataFrame:
    """Per-protein correlation of *x* and *y* with multiple-testing correction.

    Proteins with too few complete pairs or an undefined estimate (constant
    input) are skipped.
    """
    rows = []
    for prot, part in joined.groupby(config.PROTEIN, sort=True):
        try:
            res = cor_test(part[x], part[y], method=method)
        except ValueError:
            continue
        if not np.isfinite(res.pvalue):
            continue
        rows.append({
            "Protein": prot,
            "estimate": res.estimate,
            "pval": res.pvalue,
            "n": res.n,
        })

    results = pd.DataFrame(rows, columns=["Protein", "estimate", "pval", "n"])
    logger.info("Correlation (%s) computed for %d protein(s)", method, len(results))
    return correct_pvalues(results, method=correction, alpha=alpha)
