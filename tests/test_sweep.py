import numpy as np
import pandas as pd
import pytest
import torch

from PvlLASSO import PvlLASSOClassifier, InputContractError, compute_prevalence
from PvlLASSO._tuning import _TuningSweep, TUNING_COLUMNS, PVL_SUMMARY_COLUMNS

PARAMS = PvlLASSOClassifier(control="control").get_params()
LOG_LAMBDAS = np.linspace(np.log(1e-4), np.log(5e-2), 6)


def _sweep(microbiome, **kwargs):
    X, X_raw, labels = microbiome
    sweep = _TuningSweep(PvlLASSOClassifier, PARAMS, **kwargs)
    table, pvl_summary = sweep.run(X, labels, LOG_LAMBDAS, compute_prevalence(X_raw))
    return sweep, table, pvl_summary


def test_sweep_tables(microbiome):
    sweep, table, pvl_summary = _sweep(microbiome)

    assert list(table.columns) == TUNING_COLUMNS
    assert list(pvl_summary.columns) == PVL_SUMMARY_COLUMNS
    assert len(table) == len(LOG_LAMBDAS)
    assert table["lambda"].is_monotonic_increasing
    np.testing.assert_allclose(table["log_lambda"], LOG_LAMBDAS)
    np.testing.assert_allclose(table["loss"], table["test_loss"])
    assert table["n_selected"].iloc[0] >= table["n_selected"].iloc[-1]
    assert table["converged"].all()

    assert len(sweep.train_indices_) == 8
    assert len(sweep.test_indices_) == 2

    assert len(pvl_summary) == 5 * len(LOG_LAMBDAS)
    counts = pvl_summary.groupby("log_lambda")["n_features"].sum().to_numpy()
    np.testing.assert_array_equal(counts, table["n_selected"].to_numpy())


def test_same_seed_reproduces_partition_and_losses(microbiome):
    first, first_table, first_pvl = _sweep(microbiome, random_state=3)
    second, second_table, second_pvl = _sweep(microbiome, random_state=3)

    np.testing.assert_array_equal(first.train_indices_, second.train_indices_)
    np.testing.assert_array_equal(first.test_indices_, second.test_indices_)
    pd.testing.assert_frame_equal(first_table, second_table)
    pd.testing.assert_frame_equal(first_pvl, second_pvl)


def test_stratified_partition_keeps_both_classes(microbiome):
    _, _, labels = microbiome
    sweep, _, _ = _sweep(microbiome)
    assert set(labels[sweep.test_indices_]) == {"CRC", "control"}


def test_full_training_split_has_no_test_partition(microbiome):
    sweep, table, _ = _sweep(microbiome, split_ratio=1.0)
    assert sweep.test_indices_.size == 0
    assert table["test_loss"].isna().all()
    np.testing.assert_allclose(table["loss"], table["train_loss"])


def test_parallel_sweep_matches_sequential(microbiome):
    threads = torch.get_num_threads()
    torch.set_num_threads(1)
    try:
        _, sequential, seq_pvl = _sweep(microbiome, n_workers=1)
        _, parallel, par_pvl = _sweep(microbiome, n_workers=2)
    finally:
        torch.set_num_threads(threads)

    pd.testing.assert_frame_equal(sequential, parallel, check_exact=False, rtol=1e-9)
    pd.testing.assert_frame_equal(seq_pvl, par_pvl, check_exact=False, rtol=1e-9)


def test_class_too_small_to_stratify(microbiome):
    X, X_raw, _ = microbiome
    labels = np.array(["CRC"] * 9 + ["control"])
    sweep = _TuningSweep(PvlLASSOClassifier, PARAMS)
    with pytest.raises(InputContractError):
        sweep.run(X, labels, LOG_LAMBDAS, compute_prevalence(X_raw))
    assert sweep.records_ is None


def test_lambda_range_must_increase(microbiome):
    X, X_raw, labels = microbiome
    sweep = _TuningSweep(PvlLASSOClassifier, PARAMS)
    with pytest.raises(InputContractError):
        sweep.run(X, labels, LOG_LAMBDAS[::-1], compute_prevalence(X_raw))


def test_invalid_sweep_configuration():
    with pytest.raises(ValueError):
        _TuningSweep(PvlLASSOClassifier, PARAMS, split_ratio=0.0)
    with pytest.raises(ValueError):
        _TuningSweep(PvlLASSOClassifier, PARAMS, n_workers=0)


def test_tables_round_trip_through_tsv(microbiome, tmp_path):
    _, table, pvl_summary = _sweep(microbiome, output_dir=str(tmp_path))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["pvl_summary.tsv", "tuning_result.tsv"]
    loaded = pd.read_csv(tmp_path / "tuning_result.tsv", sep="\t")
    pd.testing.assert_frame_equal(loaded, table, check_dtype=False)
    loaded_pvl = pd.read_csv(tmp_path / "pvl_summary.tsv", sep="\t")
    pd.testing.assert_frame_equal(loaded_pvl, pvl_summary, check_dtype=False)
