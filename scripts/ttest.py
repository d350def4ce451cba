"""
T-test pipeline for twin protein summaries.

Operates on dia_protein.csv or srm_protein.csv (produced by preprocess.py).
Performs:
  1. Data loading
  2. Per-protein t-tests between the two levels of a grouping column
     (MZ vs DZ by default), or paired visit-1 vs visit-2 tests per subject
  3. Multiple testing correction (FDR or Bonferroni)

Outputs (when --save-results):
  results/<results-subdir>/results_ttest.csv
  results/<results-subdir>/selected_proteins_k{K}.csv
"""

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

import argparse
import logging
import time

import numpy as np
import pandas as pd

from twinprot import config
from twinprot.core.log_utils import setup_logging
from twinprot.core.stats_utils import correct_pvalues, run_ttests, ttest_paired


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

def load_data(data_path: Path, logger: logging.Logger) -> pd.DataFrame:
    """Load a protein-level summary table."""
    logger.info("Loading data from %s", data_path)
    data = pd.read_csv(data_path)
    logger.info("Data shape: %s", data.shape)
    return data


def run_paired_ttests(data: pd.DataFrame, logger: logging.Logger) -> pd.DataFrame:
    """Paired visit-1 vs visit-2 t-test per protein, pairing on subject."""
    rows = []
    for prot, part in data.groupby(config.PROTEIN, sort=True):
        try:
            res = ttest_paired(part, config.LOG2_COLUMN)
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
    logger.info("Proteins tested (paired): %d", len(results))
    return results


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    start = time.time()

    parser = argparse.ArgumentParser(
        description="Run per-protein t-tests on a twin protein summary."
    )
    parser.add_argument(
        "--data-path",
        type=Path,
        default=config.PROCESSED_DIR / "dia_protein.csv",
        help="Path to the protein summary CSV (default: data/processed/dia_protein.csv).",
    )
    parser.add_argument(
        "--design",
        type=str,
        choices=["zygosity", "visit"],
        default="zygosity",
        help="zygosity: MZ vs DZ two-sample tests; visit: paired visit 1 vs 2 (default: zygosity).",
    )
    parser.add_argument(
        "--equal-var",
        action="store_true",
        help="Use Student's pooled-variance test instead of Welch's.",
    )
    parser.add_argument(
        "--results-subdir",
        type=str,
        default="ttest",
        help="Subdirectory under results/ for output files (default: ttest).",
    )
    parser.add_argument(
        "--save-results",
        action="store_true",
        help="Save outputs to disk and log to file; otherwise log to terminal only.",
    )
    parser.add_argument(
        "--log-subdir",
        type=str,
        default="ttest",
        help="Subdirectory under logs/ for log files (default: ttest).",
    )
    parser.add_argument(
        "--correction-method",
        type=str,
        choices=["fdr", "bonferroni"],
        default=config.CORRECTION_METHOD,
        help="Multiple testing correction method (default: fdr).",
    )
    parser.add_argument(
        "--alpha",
        type=float,
        default=config.ALPHA,
        help="Significance threshold for adjusted p-values (default: 0.05).",
    )
    parser.add_argument(
        "--k",
        type=int,
        default=10,
        help="Number of top proteins to save as selected proteins (default: 10).",
    )
    args = parser.parse_args()

    logger = setup_logging(args.save_results, args.log_subdir, "ttest")

    logger.info("Starting ttest.py")
    logger.info(
        "Args: data_path=%s  design=%s  correction=%s  alpha=%s  k=%s  save_results=%s",
        args.data_path, args.design, args.correction_method,
        args.alpha, args.k, args.save_results,
    )

    # Step 1: Load
    data = load_data(args.data_path, logger)

    # Step 2: T-tests
    if args.design == "zygosity":
        results = run_ttests(data, equal_var=args.equal_var)
    else:
        results = run_paired_ttests(data, logger)

    # Step 3: Multiple testing correction
    results = correct_pvalues(results, args.correction_method, args.alpha)
    logger.info("Top 10 results:\n%s", results.head(10).to_string(index=False))

    if args.save_results:
        results_dir = Path("results") / args.results_subdir
        results_dir.mkdir(parents=True, exist_ok=True)

        ttest_out = results_dir / "results_ttest.csv"
        results.to_csv(ttest_out, index=False)
        logger.info("Saved t-test results to: %s", ttest_out)

        top_k = results.head(args.k)[["Protein"]].rename(columns={"Protein": "protein"})
        proteins_out = results_dir / f"selected_proteins_k{args.k}.csv"
        top_k.to_csv(proteins_out, index=False)
        logger.info("Saved top-%d proteins to: %s", args.k, proteins_out)

    logger.info("Finished in %.2f s", time.time() - start)


if __name__ == "__main__":
    main()
