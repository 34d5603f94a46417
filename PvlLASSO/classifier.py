"""PvlLASSO classifier for prevalence-weighted feature selection.

This module provides the PvlLASSOClassifier, a sparse logistic model whose
L1 penalty is weighted by the inverse prevalence of each feature.
"""

import torch
import numpy as np
from typing import Any, Optional

from ._base import _BasePvlLASSOModel
from ._tasks import _ClassificationTaskMixin


class PvlLASSOClassifier(_BasePvlLASSOModel, _ClassificationTaskMixin):
    """Sparse logistic classifier with prevalence-weighted LASSO selection.

    Binary tasks fit one logistic output for the non-control level. Multiclass
    tasks fit one logistic output per class (one-vs-rest); every class has its
    own coefficients and the penalty is averaged over classes. A feature is
    selected when any of its coefficients is nonzero.

    Parameters
    ----------
    task : {'binary', 'multiclass'}, default='binary'
        Binary needs exactly two label levels, multiclass at least three.
    control : label, optional
        Reference level of a binary task. Defaults to the first level in
        sorted order.
    lambda_opt : float, optional
        Regularization strength. If None, selected automatically.
    **kwargs
        Optimizer and lambda selection settings of
        :class:`_BasePvlLASSOModel` (``max_iter``, ``tol``, ``step``,
        ``split_ratio``, ...).

    Attributes
    ----------
    classes_ : ndarray
        Label levels, control level first.
    coef_ : ndarray
        Coefficients of shape (n_features,) for binary tasks and
        (n_classes, n_features) for multiclass.
    intercept_ : float or ndarray
        Intercept(s).
    selected_features_ : list
        Names of features selected by the model.
    feature_table_ : DataFrame
        Coefficients, prevalence and selection outcome per feature.
    lambda_opt_ : float
        Lambda of the final fit.

    Examples
    --------
    >>> from PvlLASSO import PvlLASSOClassifier
    >>> model = PvlLASSOClassifier(task='binary', control='healthy')
    >>> model.fit(X_scaled, labels, X_raw=counts)
    >>> print(f"Selected features: {model.selected_features_}")

    See Also
    --------
    PvlLASSORegressor : For regression tasks
    PvlLASSOCox : For survival analysis tasks
    """

    def __init__(
        self,
        task: str = 'binary',
        control: Optional[Any] = None,
        lambda_opt: Optional[float] = None,
        **kwargs
    ) -> None:
        """Initialize the PvlLASSO classifier."""
        # Initialize base model
        _BasePvlLASSOModel.__init__(self, lambda_opt=lambda_opt, **kwargs)

        # Initialize task-specific functionality
        _ClassificationTaskMixin.__init__(self, task=task, control=control)

    def predict_proba(self, X) -> np.ndarray:
        """Class probabilities.

        Binary probabilities come from the logistic output. Multiclass
        probabilities are the one-vs-rest probabilities normalized to sum
        to one.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Input features.

        Returns
        -------
        ndarray of shape (n_samples, n_classes)
            Columns follow ``classes_``.
        """
        self._check_is_fitted()
        with torch.no_grad():
            outputs = self._linear(self.preprocess_data(X, fit=False))
        return self._probabilities(outputs)

    def __repr__(self) -> str:
        """Return string representation of the classifier."""
        return (
            f"PvlLASSOClassifier("
            f"task='{self.task}', "
            f"control={self.control!r}, "
            f"lambda_opt={self.lambda_opt})"
        )
