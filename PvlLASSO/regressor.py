"""PvlLASSO regressor for prevalence-weighted feature selection.

This module provides the PvlLASSORegressor, a sparse least-squares model
whose L1 penalty is weighted by the inverse prevalence of each feature.
"""

import matplotlib.pyplot as plt
from typing import Optional

from ._base import _BasePvlLASSOModel
from ._tasks import _RegressionTaskMixin


class PvlLASSORegressor(_BasePvlLASSOModel, _RegressionTaskMixin):
    """Sparse linear regressor with prevalence-weighted LASSO selection.

    The fit minimizes the mean squared error plus
    ``lambda * sum_j |w_j| / p_j``.

    Parameters
    ----------
    lambda_opt : float, optional
        Regularization strength. If None, selected automatically.
    **kwargs
        Optimizer and lambda selection settings of
        :class:`_BasePvlLASSOModel`.

    Attributes
    ----------
    coef_ : ndarray of shape (n_features,)
        Coefficients.
    intercept_ : float
        Intercept.
    selected_features_ : list
        Names of features selected by the model.
    lambda_opt_ : float
        Lambda of the final fit.

    Examples
    --------
    >>> from PvlLASSO import PvlLASSORegressor
    >>> model = PvlLASSORegressor(lambda_opt=0.01)
    >>> model.fit(X_scaled, y, X_raw=counts)
    >>> model.score(X_scaled, y)

    See Also
    --------
    PvlLASSOClassifier : For classification tasks
    PvlLASSOCox : For survival analysis tasks
    """

    def __init__(self, lambda_opt: Optional[float] = None, **kwargs):
        """Initialize the PvlLASSO regressor."""
        _BasePvlLASSOModel.__init__(self, lambda_opt=lambda_opt, **kwargs)
        _RegressionTaskMixin.__init__(self)

    def plot_actual_vs_predicted(self, X, y, ax=None, **plot_kwargs):
        """Scatter the targets against the predictions.

        Returns
        -------
        matplotlib.axes.Axes
        """
        if ax is None:
            fig, ax = plt.subplots()

        target = self._as_response(y)
        pred = self.predict(X)
        ax.scatter(pred, target, alpha=0.7, **plot_kwargs)
        limits = [min(pred.min(), target.min()), max(pred.max(), target.max())]
        ax.plot(limits, limits, 'r--', linewidth=1)
        ax.set_xlabel("Predicted")
        ax.set_ylabel("Actual")
        ax.set_title("Actual vs predicted")
        return ax

    def __repr__(self) -> str:
        """Return string representation of the regressor."""
        return f"PvlLASSORegressor(lambda_opt={self.lambda_opt})"
