"""End-to-end runs of the scripts/ pipelines on the synthetic twin tables."""

from __future__ import annotations

import importlib.util
import json
import logging
import sys
from pathlib import Path

import pandas as pd
import pytest

SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"


def _load_script(name: str):
    spec = importlib.util.spec_from_file_location(f"_script_{name}", SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _run(module, argv, monkeypatch):
    monkeypatch.setattr(sys, "argv", [module.__file__, *argv])
    try:
        module.main()
    finally:
        for name in ("preprocess", "ttest", "compare_platforms", "twinprot"):
            logger = logging.getLogger(name)
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)


@pytest.fixture
def processed(tmp_path, monkeypatch, twin_dia, twin_srm):
    raw = tmp_path / "raw"
    raw.mkdir()
    twin_dia.to_csv(raw / "twin_dia.csv", index=False)
    twin_srm.to_csv(raw / "twin_srm.csv", index=False)
    out = tmp_path / "processed"

    monkeypatch.chdir(tmp_path)
    _run(
        _load_script("preprocess"),
        ["--data-dir", str(raw), "--processed-dir", str(out)],
        monkeypatch,
    )
    return out


def test_preprocess_outputs(processed):
    dia = pd.read_csv(processed / "dia_protein.csv")
    srm = pd.read_csv(processed / "srm_protein.csv")
    annot = pd.read_csv(processed / "run_annotation.csv")
    info = json.loads((processed / "preprocess_info.json").read_text())

    assert len(dia) == len(srm) == 24
    assert {"protein", "run", "log2inty", "n_features", "zygosity", "visit"} <= set(dia.columns)
    assert len(annot) == 8
    assert info["n_runs"] == 8
    assert info["srm_normalization"] == "ratio"
    # heavy standards track the light signal, so SRM ratios sit near log2(2)
    assert srm["log2inty"].between(0.5, 1.5).all()


def test_ttest_script_saves_results(processed, tmp_path, monkeypatch):
    _run(
        _load_script("ttest"),
        ["--data-path", str(processed / "dia_protein.csv"), "--save-results", "--k", "2"],
        monkeypatch,
    )
    results = pd.read_csv(tmp_path / "results" / "ttest" / "results_ttest.csv")
    top = pd.read_csv(tmp_path / "results" / "ttest" / "selected_proteins_k2.csv")
    assert set(results["Protein"]) == {"P1", "P2", "P3"}
    assert "ADJ_P" in results.columns
    assert list(top.columns) == ["protein"]
    assert len(top) == 2


def test_compare_platforms_saves_results(processed, tmp_path, monkeypatch):
    _run(
        _load_script("compare_platforms"),
        [
            "--dia-path", str(processed / "dia_protein.csv"),
            "--srm-path", str(processed / "srm_protein.csv"),
            "--save-results",
        ],
        monkeypatch,
    )
    results_dir = tmp_path / "results" / "compare"
    joined = pd.read_csv(results_dir / "joined_dia_srm.csv")
    coef = pd.read_csv(results_dir / "lm_coefficients.csv")
    order = pd.read_csv(results_dir / "protein_order.csv")

    assert len(joined) == 24
    assert list(coef["term"]) == ["Intercept", "log2inty_dia"]
    assert sorted(order["protein"]) == ["P1", "P2", "P3"]
    assert (results_dir / "cor_by_protein.csv").exists()
    assert (results_dir / "lm_by_protein.csv").exists()


def test_preprocess_srm_median_normalization(tmp_path, monkeypatch, twin_dia, twin_srm):
    raw = tmp_path / "raw"
    raw.mkdir()
    twin_dia.to_csv(raw / "twin_dia.csv", index=False)
    twin_srm.to_csv(raw / "twin_srm.csv", index=False)
    out = tmp_path / "processed"

    monkeypatch.chdir(tmp_path)
    _run(
        _load_script("preprocess"),
        ["--data-dir", str(raw), "--processed-dir", str(out), "--srm-normalization", "median"],
        monkeypatch,
    )

    srm = pd.read_csv(out / "srm_protein.csv")
    info = json.loads((out / "preprocess_info.json").read_text())
    assert info["srm_normalization"] == "median"
    assert {"protein", "run", "log2inty", "n_features", "zygosity", "visit"} <= set(srm.columns)
    assert len(srm) == 24
    assert (srm["n_features"] == 2).all()
    # log-sum of intensities, not ratios
    assert (srm["log2inty"] > 10).all()


def test_ttest_script_paired_visit_design(processed, tmp_path, monkeypatch):
    _run(
        _load_script("ttest"),
        [
            "--data-path", str(processed / "dia_protein.csv"),
            "--design", "visit",
            "--save-results",
            "--results-subdir", "ttest_visit",
        ],
        monkeypatch,
    )
    results = pd.read_csv(tmp_path / "results" / "ttest_visit" / "results_ttest.csv")
    assert list(results.columns) == ["Protein", "MeanDiff", "pval", "n_a", "n_b", "ADJ_P"]
    assert set(results["Protein"]) == {"P1", "P2", "P3"}
    assert (results["n_a"] == results["n_b"]).all()
    assert (results["n_a"] == 4).all()
