"""
Feature selection mixin for PvlLASSO models.

This module provides the _FeatureSelectionMixin class that turns the fitted
sparse weights into selected features, coefficient tables and importance
scores.
"""

import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional, Union


class _FeatureSelectionMixin:
    """Mixin class providing feature selection functionality.

    A feature is selected when the absolute value of any of its fitted
    coefficients exceeds ``selection_threshold``. The proximal step yields
    exact zeros, so the default threshold of 0 selects the nonzero
    coefficients.

    Parameters
    ----------
    selection_threshold : float, default=0.0
        Coefficients with absolute value at or below this threshold count
        as dropped.

    Attributes
    ----------
    feature_names_in_ : list
        Names of input features.
    prevalence_ : ndarray
        Prevalence of each input feature used by the penalty.
    selected_features_indices_ : list
        Indices of selected features after training.

    Notes
    -----
    This is an internal mixin class and should not be used directly.
    Use the public PvlLASSO classes instead.
    """

    def __init__(self, selection_threshold: float = 0.0):
        """Initialize the feature selection mixin."""
        if selection_threshold < 0:
            raise ValueError("Selection threshold must be non-negative.")

        self.selection_threshold = selection_threshold

        # Initialize state
        self.feature_names_in_ = None
        self.prevalence_ = None

    @property
    def selection_mask_(self) -> np.ndarray:
        """Boolean mask of selected features, shape (n_features,)."""
        if getattr(self, '_linear', None) is None:
            raise ValueError("Model not trained yet.")

        weights = self._linear.weight.detach().cpu().numpy()
        return (np.abs(weights) > self.selection_threshold).any(axis=0)

    @property
    def selected_features_indices_(self) -> List[int]:
        """Get indices of selected features after training."""
        return np.flatnonzero(self.selection_mask_).tolist()

    @property
    def selected_features_(self) -> List[str]:
        """Get names of selected features after training.

        Returns
        -------
        list of str
            List of selected feature names.
        """
        if self.feature_names_in_ is None:
            raise ValueError("Feature names not available.")

        return [self.feature_names_in_[i] for i in self.selected_features_indices_]

    @property
    def coef_(self) -> np.ndarray:
        """Get the fitted coefficients.

        Returns
        -------
        ndarray
            Shape (n_features,) for single-output tasks and
            (n_classes, n_features) for one-vs-rest multiclass.
        """
        if getattr(self, '_linear', None) is None:
            raise ValueError("Model has not been initialized yet.")

        weights = self._linear.weight.detach().cpu().numpy()
        if weights.shape[0] == 1:
            return weights[0].copy()
        return weights.copy()

    @property
    def intercept_(self) -> Optional[Union[float, np.ndarray]]:
        """Get the fitted intercept(s), or None for models without bias."""
        if getattr(self, '_linear', None) is None:
            raise ValueError("Model has not been initialized yet.")

        if self._linear.bias is None:
            return None

        bias = self._linear.bias.detach().cpu().numpy()
        if bias.shape[0] == 1:
            return float(bias[0])
        return bias.copy()

    @property
    def feature_table_(self) -> pd.DataFrame:
        """Per-feature coefficients, prevalence and selection outcome.

        Returns
        -------
        DataFrame
            Indexed by feature id. Holds a ``coefficient`` column (or one
            ``coef_<class>`` column per class for multiclass models), the
            ``prevalence`` used by the penalty and the boolean ``selected``.
        """
        coefs = self.coef_
        table = pd.DataFrame(index=pd.Index(self.feature_names_in_, name='feature'))

        if coefs.ndim == 1:
            table['coefficient'] = coefs
        else:
            labels = getattr(self, 'classes_', range(coefs.shape[0]))
            for label, row in zip(labels, coefs):
                table[f'coef_{label}'] = row

        table['prevalence'] = self.prevalence_
        table['selected'] = self.selection_mask_
        return table

    def _count_selected(self) -> int:
        """Number of features currently selected."""
        return int(self.selection_mask_.sum())

    def _extract_feature_names(self, X: Union[np.ndarray, Any]) -> List[str]:
        """Extract feature names from input data.

        If no names are available, generates default names based on the
        number of features.

        Parameters
        ----------
        X : array-like
            Input data (numpy array, pandas DataFrame, etc.).

        Returns
        -------
        list of str
            List of feature names.
        """
        # Try pandas DataFrame first
        if hasattr(X, 'columns'):
            default_labels = list(range(X.shape[1]))
            cols = list(X.columns)
            if cols != default_labels:
                return [str(c) for c in cols]

        # Try structured numpy array
        if isinstance(X, np.ndarray) and X.dtype.names is not None:
            return list(X.dtype.names)

        # Default to string indices
        return [f"feature_{i}" for i in range(np.shape(X)[1])]

    def get_feature_importance(self) -> Dict[str, float]:
        """Get feature importance scores of the selected features.

        The score is the absolute coefficient, or the L2 norm of a feature's
        coefficients across classes for multiclass models.

        Returns
        -------
        dict
            Dictionary mapping selected feature names to importance scores,
            sorted by decreasing importance.
        """
        coefs = self.coef_
        scores = np.abs(coefs) if coefs.ndim == 1 else np.linalg.norm(coefs, axis=0)

        importance = {
            self.feature_names_in_[i]: float(scores[i])
            for i in self.selected_features_indices_
        }
        return dict(sorted(importance.items(), key=lambda item: item[1], reverse=True))
