import numpy as np
import pandas as pd
import pytest
from sklearn.exceptions import ConvergenceWarning

from PvlLASSO import (
    PvlLASSOClassifier,
    PvlLASSORegressor,
    PvlLASSOCox,
    make_estimator,
    InputContractError,
)

pytestmark = pytest.mark.filterwarnings("ignore::sklearn.exceptions.ConvergenceWarning")


def test_binary_classifier_fixed_lambda(microbiome):
    X, X_raw, labels = microbiome
    model = PvlLASSOClassifier(control="control", lambda_opt=1e-3, max_iter=300)
    model.fit(X, labels, X_raw=X_raw)

    assert list(model.classes_) == ["control", "CRC"]
    assert model.coef_.shape == (100,)
    assert isinstance(model.intercept_, float)
    assert set(model.predict(X)) <= {"control", "CRC"}

    proba = model.predict_proba(X)
    assert proba.shape == (10, 2)
    np.testing.assert_allclose(proba.sum(axis=1), 1.0)

    table = model.feature_table_
    assert table.index.name == "feature"
    assert list(table.columns) == ["coefficient", "prevalence", "selected"]
    assert table.index[0] == "taxon_0"
    assert table["selected"].sum() == len(model.selected_features_)
    assert model.selected_features_ == list(table.index[table["selected"]])
    assert set(model.get_feature_importance()) == set(model.selected_features_)
    assert len(model.loss_history_) == model.n_iter_
    assert model.lambda_opt_ == pytest.approx(1e-3)


def test_default_settings_converge(microbiome):
    X, X_raw, labels = microbiome
    model = PvlLASSOClassifier(control="control", lambda_opt=2.4e-4).fit(X, labels, X_raw=X_raw)

    assert model.converged_
    assert model.n_iter_ < model.max_iter
    assert 0 < len(model.selected_features_) < 100


def test_classifier_accepts_precomputed_prevalence(microbiome):
    X, X_raw, labels = microbiome
    from PvlLASSO import compute_prevalence

    a = PvlLASSOClassifier(control="control", lambda_opt=1e-3, max_iter=50).fit(X, labels, X_raw=X_raw)
    b = PvlLASSOClassifier(control="control", lambda_opt=1e-3, max_iter=50).fit(
        X, labels, prevalence=compute_prevalence(X_raw)
    )
    np.testing.assert_array_equal(a.coef_, b.coef_)


def test_malformed_labels_are_rejected(microbiome):
    X, X_raw, labels = microbiome
    model = PvlLASSOClassifier(lambda_opt=1e-3)
    with pytest.raises(InputContractError):
        model.fit(X, labels[:9], X_raw=X_raw)
    assert model._linear is None


def test_label_cardinality_must_match_task(microbiome):
    X, X_raw, labels = microbiome
    three = np.array(["a", "b", "c", "a", "b", "c", "a", "b", "c", "a"])

    with pytest.raises(InputContractError):
        PvlLASSOClassifier(task="binary", lambda_opt=1e-3).fit(X, three, X_raw=X_raw)
    with pytest.raises(InputContractError):
        PvlLASSOClassifier(task="multiclass", lambda_opt=1e-3).fit(X, labels, X_raw=X_raw)
    with pytest.raises(InputContractError):
        PvlLASSOClassifier(lambda_opt=1e-3).fit(X, np.repeat("a", 10), X_raw=X_raw)
    with pytest.raises(InputContractError):
        PvlLASSOClassifier(control="healthy", lambda_opt=1e-3).fit(X, labels, X_raw=X_raw)


def test_prevalence_source_is_required(microbiome):
    X, X_raw, labels = microbiome
    with pytest.raises(InputContractError):
        PvlLASSOClassifier(lambda_opt=1e-3).fit(X, labels)
    with pytest.raises(InputContractError):
        PvlLASSOClassifier(lambda_opt=1e-3).fit(X, labels, X_raw=X_raw.iloc[:, :50])


def test_zero_prevalence_feature_is_rejected(microbiome):
    X, X_raw, labels = microbiome
    X_raw = X_raw.copy()
    X_raw["taxon_7"] = 0
    with pytest.raises(InputContractError, match="taxon_7"):
        PvlLASSOClassifier(lambda_opt=1e-3).fit(X, labels, X_raw=X_raw)


def test_multiclass_one_vs_rest(microbiome):
    X, X_raw, _ = microbiome
    labels = np.array(["a", "a", "a", "b", "b", "b", "c", "c", "c", "c"])
    model = PvlLASSOClassifier(task="multiclass", lambda_opt=1e-3, max_iter=200)
    model.fit(X, labels, X_raw=X_raw)

    assert model.coef_.shape == (3, 100)
    assert model.intercept_.shape == (3,)
    assert {"coef_a", "coef_b", "coef_c"} <= set(model.feature_table_.columns)

    proba = model.predict_proba(X)
    np.testing.assert_allclose(proba.sum(axis=1), 1.0)
    assert "accuracy" in model.score(X, labels)


def test_cox_model(survival_data):
    X, X_raw, survival = survival_data
    model = PvlLASSOCox(lambda_opt=1e-3, max_iter=500).fit(X, survival, X_raw=X_raw)

    assert model.intercept_ is None
    assert model.predict(X).shape == (40,)
    scores = model.score(X, survival)
    assert 0.5 < scores["C-index"] <= 1.0
    assert scores["neg_partial_log_likelihood"] == pytest.approx(model.evaluate_loss(X, survival))

    transposed = PvlLASSOCox(lambda_opt=1e-3, max_iter=500).fit(X, survival.T, X_raw=X_raw)
    np.testing.assert_allclose(transposed.coef_, model.coef_)


def test_cox_needs_an_event(survival_data):
    X, X_raw, survival = survival_data
    censored = survival.copy()
    censored[:, 1] = 0
    with pytest.raises(InputContractError):
        PvlLASSOCox(lambda_opt=1e-3).fit(X, censored, X_raw=X_raw)


def test_regressor_scores(hadamard_design):
    X, y = hadamard_design
    model = PvlLASSORegressor(lambda_opt=0.01, max_iter=2000).fit(X, y, prevalence=np.ones(7))
    scores = model.score(X, y)
    assert set(scores) == {"MSE", "MAE", "R2"}
    assert scores["R2"] > 0.9
    assert model.evaluate_loss(X, y) == pytest.approx(scores["MSE"])


@pytest.mark.filterwarnings("default::sklearn.exceptions.ConvergenceWarning")
def test_non_converged_fit_warns(hadamard_design):
    X, y = hadamard_design
    model = PvlLASSORegressor(lambda_opt=0.01, max_iter=1)
    with pytest.warns(ConvergenceWarning):
        model.fit(X, y, prevalence=np.ones(7))
    assert model.converged_ is False
    assert model.n_iter_ == 1


def test_get_params_rebuilds_an_equivalent_estimator():
    model = PvlLASSOClassifier(task="multiclass", lambda_opt=0.5, max_iter=10, step=12, cp=0.05)
    params = model.get_params()
    assert params["task"] == "multiclass"
    assert params["step"] == 12
    assert type(model)(**params).get_params() == params


def test_make_estimator_tasks():
    assert isinstance(make_estimator("binary"), PvlLASSOClassifier)
    assert make_estimator("multiclass").task == "multiclass"
    assert isinstance(make_estimator("regression"), PvlLASSORegressor)
    assert isinstance(make_estimator("time-to-event"), PvlLASSOCox)
    assert isinstance(make_estimator("cox"), PvlLASSOCox)
    with pytest.raises(ValueError):
        make_estimator("ranking")


def test_invalid_configuration():
    with pytest.raises(ValueError):
        PvlLASSORegressor(lambda_opt=-1.0)
    with pytest.raises(ValueError):
        PvlLASSORegressor(convergence="gradient")
    with pytest.raises(ValueError):
        PvlLASSORegressor(alpha=1.5)


def test_plot_coefficients(hadamard_design):
    X, y = hadamard_design
    model = PvlLASSORegressor(lambda_opt=0.1, max_iter=500).fit(X, y, prevalence=np.ones(7))
    ax = model.plot_coefficients()
    assert len(ax.get_yticklabels()) == len(model.selected_features_)
    with pytest.raises(ValueError):
        model.plot_tuning()
