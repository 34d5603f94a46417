import numpy as np
import pytest
import torch

from PvlLASSO import PvlLASSOClassifier, PvlLASSORegressor, InputContractError, compute_prevalence
from PvlLASSO._utils import PrevalenceL1Penalty, check_prevalence
from PvlLASSO._training import _ProximalRMSprop, _ConvergenceChecker


def test_penalty_value_weights_by_inverse_prevalence():
    penalty = PrevalenceL1Penalty(lambda_=0.1, prevalence=[0.5, 1.0])
    W = torch.tensor([[1.0, -2.0]], dtype=torch.float64)
    assert penalty.value(W).item() == pytest.approx(0.1 * (1.0 / 0.5 + 2.0 / 1.0))


def test_penalty_value_is_averaged_over_outputs():
    penalty = PrevalenceL1Penalty(lambda_=1.0, prevalence=[0.5, 1.0])
    W = torch.tensor([[1.0, 0.0], [0.0, 1.0]], dtype=torch.float64)
    assert penalty.value(W).item() == pytest.approx((2.0 + 1.0) / 2)


def test_proximal_soft_thresholds_with_prevalence():
    penalty = PrevalenceL1Penalty(lambda_=1.0, prevalence=[1.0, 0.5, 1.0])
    x = torch.tensor([[0.3, -0.05, -0.4]], dtype=torch.float64)
    out = penalty.proximal(x, lr=0.1)
    np.testing.assert_allclose(out.numpy(), [[0.2, 0.0, -0.3]], atol=1e-12)
    assert out[0, 1].item() == 0.0


def test_proximal_is_identity_without_lambda():
    penalty = PrevalenceL1Penalty(lambda_=0.0, prevalence=[0.2, 0.4])
    x = torch.tensor([[0.01, -0.02]], dtype=torch.float64)
    assert torch.equal(penalty.proximal(x, lr=1.0), x)


def test_optimizer_keeps_weak_coordinates_at_zero():
    # Gradient of 0.5 * ||w - c||^2 at w = 0 is -c; only |c_j| > lambda / p_j may move.
    w = torch.nn.Parameter(torch.zeros(1, 2, dtype=torch.float64))
    c = torch.tensor([[1.0, 0.1]], dtype=torch.float64)
    penalty = PrevalenceL1Penalty(lambda_=0.2, prevalence=[1.0, 1.0])
    optimizer = _ProximalRMSprop([{'params': [w], 'penalty': penalty}], lr=0.01)

    def closure(backward=False):
        optimizer.zero_grad()
        loss = 0.5 * ((w - c) ** 2).sum()
        total = loss + penalty.value(w)
        if backward:
            loss.backward()
        return total.detach(), loss.detach()

    for _ in range(200):
        optimizer.step(closure)

    assert w[0, 0].item() > 0
    assert w[0, 1].item() == 0.0


@pytest.mark.filterwarnings("ignore::sklearn.exceptions.ConvergenceWarning")
@pytest.mark.parametrize(
    "prevalence_value, expected",
    [(0.5, [1.0, 0.0, 0.0]), (1.0, [1.5, 0.5, 0.0])]
)
def test_orthogonal_design_matches_soft_threshold(hadamard_design, prevalence_value, expected):
    # With X^T X = n I the MSE solution is w_j = S(c_j, lambda / (2 p_j)).
    X, y = hadamard_design
    model = PvlLASSORegressor(lambda_opt=1.0, max_iter=5000, tol=1e-12)
    model.fit(X, y, prevalence=np.full(X.shape[1], prevalence_value))

    np.testing.assert_allclose(model.coef_[:3], expected, atol=0.05)
    np.testing.assert_array_equal(model.coef_[3:], 0.0)
    assert model.intercept_ == pytest.approx(0.0, abs=0.05)


@pytest.mark.filterwarnings("ignore::sklearn.exceptions.ConvergenceWarning")
def test_large_lambda_keeps_every_weight_at_zero(hadamard_design):
    X, y = hadamard_design
    model = PvlLASSORegressor(lambda_opt=100.0, max_iter=200)
    model.fit(X, y + 3.0, prevalence=np.ones(X.shape[1]))

    assert np.all(model.coef_ == 0.0)
    assert model.selected_features_ == []
    assert model.intercept_ == pytest.approx(3.0, abs=1e-6)


def test_higher_prevalence_never_shrinks_more(microbiome):
    X, X_raw, labels = microbiome
    base = compute_prevalence(X_raw)

    magnitudes = []
    for p0 in [0.1, 0.3, 0.6, 1.0]:
        prevalence = base.copy()
        prevalence[0] = p0
        model = PvlLASSOClassifier(control="control", lambda_opt=2e-3)
        model.fit(X, labels, prevalence=prevalence)
        assert model.converged_
        magnitudes.append(abs(model.coef_[0]))

    assert np.all(np.diff(magnitudes) > -0.05)
    assert magnitudes[-1] > magnitudes[0]


def test_loss_change_is_absolute_below_one():
    def check(current, previous):
        return _ConvergenceChecker.check_convergence(
            torch.tensor(current, dtype=torch.float64),
            torch.tensor(previous, dtype=torch.float64),
            1e-6
        )

    assert check(1e-7, 2e-7)
    assert not check(0.5, 0.5001)
    assert not check(1000.5, 1000.0)
    assert check(1000.0005, 1000.0)


def test_compute_prevalence():
    counts = np.array([[0, 3, 1], [1, 0, 2], [2, 5, 0], [0, 0, 4]])
    np.testing.assert_allclose(compute_prevalence(counts), [0.5, 0.5, 0.75])


def test_compute_prevalence_rejects_negative_counts():
    with pytest.raises(InputContractError):
        compute_prevalence(np.array([[1, -1], [2, 3]]))


def test_zero_prevalence_lists_feature_ids():
    with pytest.raises(InputContractError, match="taxon_b"):
        check_prevalence([0.5, 0.0], 2, ["taxon_a", "taxon_b"])

