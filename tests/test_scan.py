import numpy as np
import pytest

from PvlLASSO import (
    PvlLASSOClassifier,
    PvlLASSORegressor,
    BoundaryDetectionError,
    compute_prevalence,
)
from PvlLASSO._tuning import _ScanRange
from PvlLASSO._tuning._records import _fit_at

PARAMS = PvlLASSOClassifier(control="control").get_params()


def test_step_must_be_at_least_two():
    with pytest.raises(ValueError):
        _ScanRange(PvlLASSOClassifier, PARAMS, step=1)


def test_search_bounds_must_be_ordered():
    with pytest.raises(ValueError):
        _ScanRange(PvlLASSOClassifier, PARAMS, search_bounds=(1e-1, 1e-10))


def test_scan_brackets_both_boundaries(microbiome):
    X, X_raw, labels = microbiome
    scan = _ScanRange(PvlLASSOClassifier, PARAMS, step=30)
    log_lambdas = scan.scan(X, labels, compute_prevalence(X_raw))

    assert log_lambdas.shape == (30,)
    assert np.all(np.diff(log_lambdas) > 0)
    assert np.exp(log_lambdas[0]) == pytest.approx(scan.lower_)
    assert np.exp(log_lambdas[-1]) == pytest.approx(scan.upper_)

    assert scan.n_full_ > 0
    assert scan.n_selected_[scan.lower_] == scan.n_full_
    assert scan.n_selected_[scan.upper_] == 0
    assert 1e-10 <= scan.lower_ < scan.upper_ <= 1e-1

    filtering = [lam for lam, n in scan.n_selected_.items() if n < scan.n_full_]
    assert min(filtering) > scan.lower_


def test_full_feature_set_selected_up_to_lower_boundary(microbiome):
    X, X_raw, labels = microbiome
    prevalence = compute_prevalence(X_raw)
    scan = _ScanRange(PvlLASSOClassifier, PARAMS, step=30)
    scan.scan(X, labels, prevalence)

    for lambda_ in np.geomspace(scan.search_bounds[0], scan.lower_, 4):
        estimator = _fit_at(PvlLASSOClassifier, PARAMS, lambda_, X, labels, prevalence)
        assert len(estimator.selected_features_indices_) == scan.n_full_


def test_scan_fails_when_upper_bound_is_too_small(microbiome):
    X, X_raw, labels = microbiome
    scan = _ScanRange(PvlLASSOClassifier, PARAMS, search_bounds=(1e-10, 1e-8))
    with pytest.raises(BoundaryDetectionError):
        scan.scan(X, labels, compute_prevalence(X_raw))


def test_scan_fails_when_nothing_is_selected_without_penalty(hadamard_design):
    X, _ = hadamard_design
    params = PvlLASSORegressor(max_iter=50).get_params()
    scan = _ScanRange(PvlLASSORegressor, params)
    with pytest.raises(BoundaryDetectionError):
        scan.scan(X, np.full(X.shape[0], 2.0), np.ones(X.shape[1]))
