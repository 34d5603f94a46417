import numpy as np
import pandas as pd
import pytest

from PvlLASSO import lambda_decision, DecisionError

X = np.linspace(-10.0, -2.0, 30)


def _table(loss):
    return pd.DataFrame({
        "log_lambda": X,
        "lambda": np.exp(X),
        "loss": loss,
        "n_selected": np.linspace(50, 0, len(X)).round().astype(int),
        "converged": True,
    })


def test_hinge_curve_breaks_at_the_hinge():
    loss = np.where(X < -6.0, 1.0, 1.0 + 0.5 * (X + 6.0))
    result = lambda_decision(_table(loss))

    assert result.optimal_log_lambda == pytest.approx(X[X > -6.0][0])
    assert result.optimal_lambda == pytest.approx(np.exp(result.optimal_log_lambda))
    assert list(result.breakpoints.columns) == ["log_lambda", "lambda", "depth", "gain"]
    np.testing.assert_allclose(result.fitted, loss, atol=1e-9)


def test_step_curve_with_constant_segments():
    loss = np.where(X < -4.0, 0.4, 0.7)
    result = lambda_decision(_table(loss), segment="constant")
    assert result.optimal_log_lambda == pytest.approx(X[X > -4.0][0])


def test_first_breakpoint_is_chosen():
    loss = np.select([X < -7.0, X < -4.0], [1.0, 2.0], 3.0)
    result = lambda_decision(_table(loss), segment="constant", max_depth=2)
    assert len(result.breakpoints) == 2
    assert result.optimal_log_lambda == pytest.approx(X[X > -7.0][0])


@pytest.mark.parametrize("loss", [np.full(30, 0.69), 0.3 * X + 4.0])
def test_flat_or_linear_curve_has_no_breakpoint(loss):
    with pytest.raises(DecisionError):
        lambda_decision(_table(loss))


def test_cp_above_one_rejects_every_split():
    loss = np.where(X < -6.0, 1.0, 1.0 + 0.5 * (X + 6.0))
    with pytest.raises(DecisionError):
        lambda_decision(_table(loss), cp=1.5)


def test_non_finite_loss():
    loss = np.where(X < -6.0, 1.0, 2.0)
    loss[4] = np.nan
    with pytest.raises(DecisionError):
        lambda_decision(_table(loss))


def test_too_few_points_for_two_buckets():
    table = _table(np.where(X < -6.0, 1.0, 2.0)).iloc[:5]
    with pytest.raises(DecisionError):
        lambda_decision(table, min_bucket=3)


def test_rows_must_be_sorted():
    table = _table(np.where(X < -6.0, 1.0, 2.0)).iloc[::-1]
    with pytest.raises(ValueError):
        lambda_decision(table)


def test_decision_plot():
    loss = np.where(X < -6.0, 1.0, 1.0 + 0.5 * (X + 6.0))
    pvl_summary = pd.DataFrame({
        "log_lambda": np.repeat(X, 2),
        "lambda": np.exp(np.repeat(X, 2)),
        "bucket": ["(0.0, 0.1]", "(0.1, 0.25]"] * len(X),
        "n_features": 1,
        "fraction": 0.5,
    })
    fig = lambda_decision(_table(loss), pvl_summary).plot()
    assert len(fig.axes) == 3
