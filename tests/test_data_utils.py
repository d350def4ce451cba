from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest

from twinprot.core.data_utils import (
    add_log2_intensity,
    create_subsets,
    get_proteins,
    load_twin_data,
    run_annotation,
)


def test_load_csv_restores_dtypes(tmp_path, twin_dia):
    path = tmp_path / "twin_dia.csv"
    twin_dia.to_csv(path, index=False)

    df = load_twin_data(path)
    assert df.shape == twin_dia.shape
    assert df["pair"].iloc[0] == "1"
    assert df["visit"].dtype.kind == "i"
    assert df["intensity_l"].dtype == float


def test_load_pickle(tmp_path, twin_srm):
    path = tmp_path / "twin_srm.pkl"
    twin_srm.to_pickle(path)
    df = load_twin_data(path)
    assert len(df) == len(twin_srm)


def test_load_missing_column_raises(tmp_path, twin_dia):
    path = tmp_path / "bad.csv"
    twin_dia.drop(columns=["zygosity", "visit"]).to_csv(path, index=False)
    with pytest.raises(ValueError, match="zygosity, visit"):
        load_twin_data(path)


def test_load_coerces_bad_intensity(tmp_path, twin_dia, caplog):
    df = twin_dia.astype({"intensity_l": object})
    df.loc[0, "intensity_l"] = "bad"
    path = tmp_path / "twin_dia.csv"
    df.to_csv(path, index=False)

    with caplog.at_level(logging.WARNING, logger="twinprot"):
        loaded = load_twin_data(path)
    assert np.isnan(loaded.loc[0, "intensity_l"])
    assert "non-numeric" in caplog.text


def test_create_subsets_by_zygosity(twin_dia):
    subsets = create_subsets(twin_dia)
    assert set(subsets.mz["zygosity"]) == {"MZ"}
    assert set(subsets.dz["zygosity"]) == {"DZ"}
    assert len(subsets.mz) + len(subsets.dz) == len(twin_dia)


def test_get_proteins_sorted_unique(twin_dia):
    assert get_proteins(twin_dia) == ["P1", "P2", "P3"]


def test_get_proteins_empty_asserts(twin_dia):
    with pytest.raises(AssertionError):
        get_proteins(twin_dia.iloc[0:0])


def test_run_annotation_one_row_per_run(twin_dia):
    annot = run_annotation(twin_dia)
    assert list(annot.columns) == ["run", "pair", "zygosity", "subject", "visit"]
    assert len(annot) == 8
    assert annot["run"].is_unique
    r1 = annot.set_index("run").loc["R001"]
    assert (r1["subject"], r1["zygosity"], r1["visit"]) == ("S1", "MZ", 1)


def test_run_annotation_conflict_raises(twin_dia):
    df = twin_dia.copy()
    df.loc[0, "visit"] = 2
    with pytest.raises(ValueError, match="R001"):
        run_annotation(df)


def test_add_log2_intensity_invalid_values_become_nan():
    df = pd.DataFrame({"intensity_l": [8.0, 0.0, -1.0, np.nan, 1.0]})
    out = add_log2_intensity(df)

    assert out["log2inty"].iloc[0] == pytest.approx(3.0)
    assert out["log2inty"].iloc[4] == pytest.approx(0.0)
    assert out["log2inty"].iloc[1:4].isna().all()
    assert not np.isinf(out["log2inty"]).any()
    assert "log2inty" not in df.columns


def test_load_drops_rows_missing_identifier_or_visit(tmp_path, twin_dia, caplog):
    df = twin_dia.astype({"visit": float})
    df.loc[0, "protein"] = np.nan
    df.loc[1, "visit"] = np.nan
    path = tmp_path / "twin_dia.csv"
    df.to_csv(path, index=False)

    with caplog.at_level(logging.WARNING, logger="twinprot"):
        loaded = load_twin_data(path)

    assert len(loaded) == len(twin_dia) - 2
    assert get_proteins(loaded) == ["P1", "P2", "P3"]
    assert "nan" not in set(loaded["protein"])
    assert loaded["visit"].dtype.kind == "i"
    assert "Dropped 2 row(s)" in caplog.text


def test_create_subsets_warns_on_other_zygosity(twin_dia, caplog):
    df = twin_dia.copy()
    df.loc[:2, "zygosity"] = "UN"

    with caplog.at_level(logging.WARNING, logger="twinprot"):
        subsets = create_subsets(df)

    assert len(subsets.mz) + len(subsets.dz) == len(df) - 3
    assert "3 row(s) with zygosity other than MZ/DZ" in caplog.text
