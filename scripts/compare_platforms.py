"""
DIA vs SRM agreement analysis.

Joins the protein summaries from preprocess.py on (protein, run) and reports:
  1. Global linear model  log2inty_srm ~ log2inty_dia
  2. Global correlation test
  3. Per-protein correlation (with multiple testing correction) and
     per-protein linear fits
  4. Protein co-abundance ordering from the DIA protein x run matrix

Outputs (when --save-results):
  results/<results-subdir>/joined_dia_srm.csv
  results/<results-subdir>/lm_coefficients.csv
  results/<results-subdir>/lm_by_protein.csv
  results/<results-subdir>/cor_by_protein.csv
  results/<results-subdir>/protein_order.csv
"""

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

import argparse
import logging
import time

import pandas as pd

from twinprot import config
from twinprot.core.corr_utils import corr_matrix, hierarchical_feature_order
from twinprot.core.log_utils import setup_logging
from twinprot.core.reshape_utils import join_dia_srm, to_wide
from twinprot.core.stats_utils import cor_by_protein, cor_test, fit_lm, fit_lm_by_protein

X_COL = f"{config.LOG2_COLUMN}_dia"
Y_COL = f"{config.LOG2_COLUMN}_srm"
FORMULA = f"{Y_COL} ~ {X_COL}"


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

def load_summaries(
    dia_path: Path,
    srm_path: Path,
    logger: logging.Logger,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Load DIA and SRM protein summaries, keeping only the join keys and values."""
    keep = [config.PROTEIN, config.RUN, config.LOG2_COLUMN]
    dia = pd.read_csv(dia_path, dtype={config.RUN: str, config.PROTEIN: str})[keep]
    srm = pd.read_csv(srm_path, dtype={config.RUN: str, config.PROTEIN: str})[keep]
    logger.info("DIA summary: %d rows | SRM summary: %d rows", len(dia), len(srm))
    return dia, srm


def global_agreement(
    joined: pd.DataFrame,
    method: str,
    logger: logging.Logger,
) -> pd.DataFrame:
    """Fit the global lm and correlation test; return the lm coefficient table."""
    lm = fit_lm(joined, FORMULA)
    logger.info(
        "lm(%s): n=%d  R^2=%.4f\n%s",
        FORMULA, lm.n_obs, lm.r_squared, lm.coefficients.to_string(),
    )

    cor = cor_test(joined[X_COL], joined[Y_COL], method=method)
    logger.info(
        "cor.test (%s): estimate=%.4f  p=%.3g  n=%d  95%% CI=(%.4f, %.4f)",
        cor.method, cor.estimate, cor.pvalue, cor.n, *cor.conf_int,
    )
    return lm.coefficients.rename_axis("term").reset_index()


def protein_order(dia: pd.DataFrame, logger: logging.Logger) -> pd.DataFrame:
    """Order DIA proteins by hierarchical clustering of their run profiles."""
    wide = to_wide(dia)
    order = hierarchical_feature_order(corr_matrix(wide))
    logger.info("Protein order (%d proteins): %s", len(order), ", ".join(order[:20]))
    return pd.DataFrame({"order": range(1, len(order) + 1), "protein": order})


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    start = time.time()

    parser = argparse.ArgumentParser(
        description="Compare DIA and SRM protein abundances."
    )
    parser.add_argument(
        "--dia-path",
        type=Path,
        default=config.PROCESSED_DIR / "dia_protein.csv",
        help="DIA protein summary CSV (default: data/processed/dia_protein.csv).",
    )
    parser.add_argument(
        "--srm-path",
        type=Path,
        default=config.PROCESSED_DIR / "srm_protein.csv",
        help="SRM protein summary CSV (default: data/processed/srm_protein.csv).",
    )
    parser.add_argument(
        "--join",
        type=str,
        choices=["inner", "left", "right", "outer"],
        default="inner",
        help="Join type on (protein, run) (default: inner).",
    )
    parser.add_argument(
        "--cor-method",
        type=str,
        choices=["pearson", "spearman", "kendall"],
        default=config.CORRELATION_METHOD,
        help="Correlation method (default: pearson).",
    )
    parser.add_argument(
        "--correction-method",
        type=str,
        choices=["fdr", "bonferroni"],
        default=config.CORRECTION_METHOD,
        help="Multiple testing correction for per-protein correlations (default: fdr).",
    )
    parser.add_argument(
        "--alpha",
        type=float,
        default=config.ALPHA,
        help="Significance threshold for adjusted p-values (default: 0.05).",
    )
    parser.add_argument(
        "--results-subdir",
        type=str,
        default="compare",
        help="Subdirectory under results/ for output files (default: compare).",
    )
    parser.add_argument(
        "--save-results",
        action="store_true",
        help="Save outputs to disk and log to file; otherwise log to terminal only.",
    )
    parser.add_argument(
        "--log-subdir",
        type=str,
        default="compare",
        help="Subdirectory under logs/ for log files (default: compare).",
    )
    args = parser.parse_args()

    logger = setup_logging(args.save_results, args.log_subdir, "compare_platforms")

    logger.info("Starting compare_platforms.py")
    logger.info(
        "Args: dia_path=%s  srm_path=%s  join=%s  cor=%s  correction=%s  save_results=%s",
        args.dia_path, args.srm_path, args.join, args.cor_method,
        args.correction_method, args.save_results,
    )

    dia, srm = load_summaries(args.dia_path, args.srm_path, logger)
    joined = join_dia_srm(dia, srm, how=args.join)

    coefficients = global_agreement(joined, args.cor_method, logger)

    lm_by_protein = fit_lm_by_protein(joined, FORMULA)
    cor_results = cor_by_protein(
        joined, X_COL, Y_COL,
        method=args.cor_method, correction=args.correction_method, alpha=args.alpha,
    )
    logger.info("Per-protein correlation:\n%s", cor_results.head(10).to_string(index=False))

    order = protein_order(dia, logger)

    if args.save_results:
        results_dir = Path("results") / args.results_subdir
        results_dir.mkdir(parents=True, exist_ok=True)

        outputs = {
            "joined_dia_srm.csv": joined,
            "lm_coefficients.csv": coefficients,
            "lm_by_protein.csv": lm_by_protein,
            "cor_by_protein.csv": cor_results,
            "protein_order.csv": order,
        }
        for name, table in outputs.items():
            table.to_csv(results_dir / name, index=False)
            logger.info("Saved %s  (%d rows)", name, len(table))

    logger.info("Finished in %.2f s", time.time() - start)


if __name__ == "__main__":
    main()
