"""Data preprocessing script.

This script loads the twin_dia and twin_srm snapshots from data/raw/ and
turns feature-level intensities into protein-level abundances:

  DIA:  log2(intensity_l) → equalize run medians → log-sum per protein/run
  SRM:  log2(intensity_l / intensity_h) → log-sum per protein/run
        (or the DIA route with --srm-normalization median)

Outputs written to data/processed/:
  - dia_protein.csv      : protein x run summary for DIA
  - srm_protein.csv      : protein x run summary for SRM
  - run_annotation.csv   : pair / zygosity / subject / visit per run
  - preprocess_info.json : settings and row counts
"""

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

import argparse
import json
import logging
import time

import pandas as pd

from twinprot import config
from twinprot.core.data_utils import add_log2_intensity, load_twin_data, run_annotation
from twinprot.core.log_utils import setup_logging
from twinprot.core.norm_utils import equalize_medians, reference_normalize, summarize_proteins
from twinprot.core.reshape_utils import annotate_runs


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

def process_dia(
    dia: pd.DataFrame,
    summary_method: str,
    median_method: str,
    logger: logging.Logger,
) -> pd.DataFrame:
    """Log transform, equalize run medians and summarize DIA features."""
    logger.info("DIA: %d feature rows, %d runs", len(dia), dia[config.RUN].nunique())
    dia = add_log2_intensity(dia)
    dia = equalize_medians(dia, method=median_method)
    return summarize_proteins(dia, value=config.NORM_COLUMN, method=summary_method)


def process_srm(
    srm: pd.DataFrame,
    normalization: str,
    summary_method: str,
    median_method: str,
    logger: logging.Logger,
) -> pd.DataFrame:
    """Normalize SRM features against heavy standards or run medians, then summarize."""
    logger.info(
        "SRM: %d feature rows, %d runs, normalization=%s",
        len(srm), srm[config.RUN].nunique(), normalization,
    )
    if normalization == "ratio":
        srm = reference_normalize(srm)
        value = config.RATIO_COLUMN
    elif normalization == "median":
        srm = add_log2_intensity(srm)
        srm = equalize_medians(srm, method=median_method)
        value = config.NORM_COLUMN
    else:
        raise ValueError('normalization must be "ratio" or "median"')
    return summarize_proteins(srm, value=value, method=summary_method)


def save_outputs(
    dia_summary: pd.DataFrame,
    srm_summary: pd.DataFrame,
    annotation: pd.DataFrame,
    processed_dir: Path,
    info: dict,
    logger: logging.Logger,
) -> None:
    """Save protein summaries, run annotation and preprocess_info.json."""
    processed_dir.mkdir(parents=True, exist_ok=True)

    dia_summary.to_csv(processed_dir / "dia_protein.csv", index=False)
    logger.info("Saved dia_protein.csv  (%d rows)", len(dia_summary))

    srm_summary.to_csv(processed_dir / "srm_protein.csv", index=False)
    logger.info("Saved srm_protein.csv  (%d rows)", len(srm_summary))

    annotation.to_csv(processed_dir / "run_annotation.csv", index=False)
    logger.info("Saved run_annotation.csv  (%d runs)", len(annotation))

    with open(processed_dir / "preprocess_info.json", "w") as f:
        json.dump(info, f, indent=2)
    logger.info("Saved preprocess_info.json  %s", info)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    start = time.time()

    parser = argparse.ArgumentParser(
        description="Normalize and summarize twin DIA / SRM data to protein level."
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=config.DATA_DIR,
        help=f"Directory holding the raw snapshots (default: {config.DATA_DIR}).",
    )
    parser.add_argument(
        "--dia-file",
        type=str,
        default=config.DIA_FILE,
        help=f"DIA snapshot file name (default: {config.DIA_FILE}).",
    )
    parser.add_argument(
        "--srm-file",
        type=str,
        default=config.SRM_FILE,
        help=f"SRM snapshot file name (default: {config.SRM_FILE}).",
    )
    parser.add_argument(
        "--processed-dir",
        type=Path,
        default=config.PROCESSED_DIR,
        help=f"Directory for processed output files (default: {config.PROCESSED_DIR}).",
    )
    parser.add_argument(
        "--summary-method",
        type=str,
        choices=["logsum", "mean", "median"],
        default=config.SUMMARY_METHOD,
        help=f"Feature-to-protein summarization (default: {config.SUMMARY_METHOD}).",
    )
    parser.add_argument(
        "--median-method",
        type=str,
        choices=["loop", "apply", "groupby"],
        default=config.MEDIAN_METHOD,
        help=f"How run medians are computed (default: {config.MEDIAN_METHOD}).",
    )
    parser.add_argument(
        "--srm-normalization",
        type=str,
        choices=["ratio", "median"],
        default="ratio",
        help="SRM normalization: light/heavy ratio or equalized medians (default: ratio).",
    )
    args = parser.parse_args()

    logger = setup_logging(False, "preprocess", "preprocess")

    logger.info("Starting preprocess.py")
    logger.info(
        "Args: data_dir=%s  processed_dir=%s  summary=%s  median=%s  srm_norm=%s",
        args.data_dir, args.processed_dir, args.summary_method,
        args.median_method, args.srm_normalization,
    )

    dia = load_twin_data(args.data_dir / args.dia_file)
    srm = load_twin_data(args.data_dir / args.srm_file)

    annotation = run_annotation(pd.concat([dia, srm], ignore_index=True))

    dia_summary = process_dia(dia, args.summary_method, args.median_method, logger)
    srm_summary = process_srm(
        srm, args.srm_normalization, args.summary_method, args.median_method, logger
    )

    info = {
        "summary_method": args.summary_method,
        "median_method": args.median_method,
        "srm_normalization": args.srm_normalization,
        "n_dia_rows": len(dia),
        "n_srm_rows": len(srm),
        "n_dia_proteins": int(dia_summary[config.PROTEIN].nunique()),
        "n_srm_proteins": int(srm_summary[config.PROTEIN].nunique()),
        "n_runs": len(annotation),
    }
    save_outputs(
        annotate_runs(dia_summary, annotation),
        annotate_runs(srm_summary, annotation),
        annotation,
        args.processed_dir,
        info,
        logger,
    )

    logger.info("Finished in %.2f s", time.time() - start)


if __name__ == "__main__":
    main()
