"""Shared fixtures: a small synthetic twin_dia / twin_srm pair.

Four subjects in two twin pairs (one MZ, one DZ), each measured at two
visits, give eight runs R001..R008.  Three proteins carry two features each.
Log2 light intensity is protein level + feature offset + run shift + noise,
so run medians differ by a known shift before normalization.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

SUBJECTS = [
    # subject, pair, zygosity
    ("S1", "1", "MZ"),
    ("S2", "1", "MZ"),
    ("S3", "2", "DZ"),
    ("S4", "2", "DZ"),
]
PROTEIN_LEVELS = {"P1": 12.0, "P2": 15.0, "P3": 18.0}
FEATURE_OFFSETS = (0.0, 1.0)
RUN_SHIFTS = [0.0, 0.5, -0.5, 1.0, -1.0, 0.25, -0.25, 0.75]


def make_twin_table(seed: int = 0, mz_effect: float = 0.0) -> pd.DataFrame:
    rng = np.random.RandomState(seed)
    rows = []
    run_idx = 0
    for visit in (1, 2):
        for subject, pair, zygosity in SUBJECTS:
            run = f"R{run_idx + 1:03d}"
            shift = RUN_SHIFTS[run_idx]
            run_idx += 1
            for protein, level in PROTEIN_LEVELS.items():
                for k, offset in enumerate(FEATURE_OFFSETS):
                    effect = mz_effect if zygosity == "MZ" else 0.0
                    log2_l = level + offset + shift + effect + rng.normal(0, 0.05)
                    log2_h = level + offset + shift + rng.normal(0, 0.05)
                    rows.append({
                        "protein": protein,
                        "feature": f"{protein}_F{k + 1}",
                        "run": run,
                        "pair": pair,
                        "zygosity": zygosity,
                        "subject": subject,
                        "visit": visit,
                        "intensity_h": 2.0 ** log2_h,
                        "intensity_l": 2.0 ** log2_l,
                    })
    return pd.DataFrame(rows)


@pytest.fixture
def twin_dia() -> pd.DataFrame:
    return make_twin_table(seed=0)


@pytest.fixture
def twin_srm() -> pd.DataFrame:
    return make_twin_table(seed=1)


@pytest.fixture
def protein_summary() -> pd.DataFrame:
    """Protein x run summary with annotation, MZ shifted up by 2 log2 units."""
    df = make_twin_table(seed=2, mz_effect=2.0)
    df["log2inty"] = np.log2(df["intensity_l"])
    summary = (
        df.groupby(["protein", "run", "pair", "zygosity", "subject", "visit"], as_index=False)
        ["log2inty"].mean()
    )
    return summary
