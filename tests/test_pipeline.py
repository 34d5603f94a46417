import numpy as np
import pandas as pd
import pytest

from PvlLASSO import (
    PvlLASSOClassifier,
    scan_lambda_range,
    tuning_sweep,
    lambda_decision,
    make_estimator,
    InputContractError,
)

ESTIMATOR_PARAMS = dict(control="control")


def test_scan_sweep_decide_fit(microbiome, tmp_path):
    X, X_raw, labels = microbiome

    log_lambdas = scan_lambda_range(X, X_raw, labels, task="binary", step=30, **ESTIMATOR_PARAMS)
    assert len(log_lambdas) == 30
    assert np.all(np.diff(log_lambdas) > 0)
    assert np.log(1e-10) <= log_lambdas[0]
    assert log_lambdas[-1] <= np.log(1e-1)

    table, pvl_summary = tuning_sweep(
        X, X_raw, labels, log_lambdas, task="binary",
        split_ratio=0.8, n_workers=1, random_state=0,
        output_dir=str(tmp_path), **ESTIMATOR_PARAMS
    )
    assert len(table) == 30
    assert table["n_selected"].iloc[-1] <= table["n_selected"].iloc[0]
    assert table["converged"].all()
    assert (tmp_path / "tuning_result.tsv").exists()
    assert (tmp_path / "pvl_summary.tsv").exists()

    decision = lambda_decision(table, pvl_summary)
    assert log_lambdas[0] < decision.optimal_log_lambda <= log_lambdas[-1]
    assert decision.optimal_log_lambda in set(table["log_lambda"])

    model = make_estimator("binary", lambda_opt=decision.optimal_lambda, **ESTIMATOR_PARAMS)
    model.fit(X, labels, X_raw=X_raw)
    assert model.converged_
    assert 0 < len(model.selected_features_) < 100
    assert model.feature_table_["selected"].sum() == len(model.selected_features_)

    automatic = PvlLASSOClassifier(**ESTIMATOR_PARAMS).fit(X, labels, X_raw=X_raw)
    assert automatic.lambda_opt_ == pytest.approx(decision.optimal_lambda)
    np.testing.assert_allclose(automatic.lambda_range_, log_lambdas)
    pd.testing.assert_frame_equal(automatic.tuning_table_, table)
    np.testing.assert_array_equal(automatic.coef_, model.coef_)

    fig = automatic.plot_tuning()
    assert len(fig.axes) == 3


def test_standardized_counts_bracket_inside_default_bounds(microbiome):
    _, X_raw, labels = microbiome
    std = X_raw.std(ddof=0)
    Z = (X_raw - X_raw.mean()) / std.where(std > 0, 1.0)

    log_lambdas = scan_lambda_range(Z, X_raw, labels, task="binary", **ESTIMATOR_PARAMS)
    assert len(log_lambdas) == 30
    assert np.all(np.diff(log_lambdas) > 0)
    assert np.log(1e-10) <= log_lambdas[0]
    assert log_lambdas[-1] <= np.log(10.0)

    table, pvl_summary = tuning_sweep(Z, X_raw, labels, log_lambdas, task="binary", **ESTIMATOR_PARAMS)
    assert table["converged"].all()

    decision = lambda_decision(table, pvl_summary)
    model = make_estimator("binary", lambda_opt=decision.optimal_lambda, **ESTIMATOR_PARAMS)
    model.fit(Z, labels, X_raw=X_raw)
    assert model.converged_
    assert 0 < len(model.selected_features_) < 100


def test_malformed_labels_fail_before_any_fit(microbiome):
    X, X_raw, labels = microbiome
    with pytest.raises(InputContractError):
        scan_lambda_range(X, X_raw, labels[:9], task="binary")
    with pytest.raises(InputContractError):
        tuning_sweep(X, X_raw, labels[:9], np.linspace(-8, -3, 5), task="binary")


def test_sweep_rejects_mismatched_raw_counts(microbiome):
    X, X_raw, labels = microbiome
    with pytest.raises(InputContractError):
        tuning_sweep(X, X_raw.iloc[:9], labels, np.linspace(-8, -3, 5), task="binary")
