"""PvlLASSO Cox model for prevalence-weighted feature selection.

This module provides the PvlLASSOCox, a sparse proportional-hazards model
whose L1 penalty is weighted by the inverse prevalence of each feature.
"""

from typing import Optional

from ._base import _BasePvlLASSOModel
from ._tasks import _CoxTaskMixin


class PvlLASSOCox(_BasePvlLASSOModel, _CoxTaskMixin):
    """Sparse Cox proportional-hazards model with prevalence-weighted selection.

    The fit minimizes the negative Breslow partial log-likelihood divided by
    the number of samples plus ``lambda * sum_j |w_j| / p_j``. The baseline
    hazard is absorbed by the partial likelihood, so the model has no
    intercept.

    Parameters
    ----------
    lambda_opt : float, optional
        Regularization strength. If None, selected automatically; the tuning
        split is stratified on the event indicator.
    **kwargs
        Optimizer and lambda selection settings of
        :class:`_BasePvlLASSOModel`.

    Attributes
    ----------
    coef_ : ndarray of shape (n_features,)
        Log hazard ratios.
    selected_features_ : list
        Names of features selected by the model.
    lambda_opt_ : float
        Lambda of the final fit.

    Examples
    --------
    >>> from PvlLASSO import PvlLASSOCox
    >>> model = PvlLASSOCox(lambda_opt=0.005)
    >>> model.fit(X_scaled, np.column_stack([durations, events]), X_raw=counts)
    >>> model.score(X_scaled, survival)["C-index"]

    Notes
    -----
    ``y`` holds the columns (durations, events); a (2, n_samples) array is
    transposed. ``predict`` returns log relative risks.

    See Also
    --------
    PvlLASSOClassifier : For classification tasks
    PvlLASSORegressor : For regression tasks
    """

    def __init__(self, lambda_opt: Optional[float] = None, **kwargs):
        """Initialize the PvlLASSO Cox model."""
        _BasePvlLASSOModel.__init__(self, lambda_opt=lambda_opt, **kwargs)
        _CoxTaskMixin.__init__(self)

    def __repr__(self) -> str:
        """Return string representation of the Cox model."""
        return f"PvlLASSOCox(lambda_opt={self.lambda_opt})"
