"""Regression task mixin for prevalence-weighted feature selection.

This module provides the regression-specific implementation of the task mixin
interface for the PvlLASSO framework.
"""

import torch
import numpy as np
from numpy import ndarray
from typing import Dict, Optional, Tuple, Union

from ._base import _BaseTaskMixin
from .._utils import _MSELoss, InputContractError


class _RegressionTaskMixin(_BaseTaskMixin):
    """Mixin class for regression tasks.

    This class provides implementations for preprocessing data, defining
    a regression-specific loss criterion, scoring predictions, and
    formatting outputs.

    Attributes
    ----------
    _loss : _MSELoss
        Regression loss function.
    """

    def __init__(self) -> None:
        """Initialize the regression task mixin."""
        super().__init__()
        self._output_dim = 1
        self._loss = _MSELoss(reduction='mean')

    @staticmethod
    def _as_response(target) -> ndarray:
        target = np.asarray(target, dtype=np.float64)
        if target.ndim == 2:
            if target.shape[1] == 1:
                target = target.reshape(-1)
            else:
                raise InputContractError(
                    f"Target should be of shape (n,) or (n, 1). Got: {target.shape}"
                )
        if target.ndim != 1:
            raise InputContractError(
                f"Target should be of shape (n,) or (n, 1). Got: {target.shape}"
            )
        if not np.all(np.isfinite(target)):
            raise InputContractError("Regression target contains non-finite values.")
        return target

    def preprocess_data(
        self,
        X: ndarray,
        target: Optional[ndarray] = None,
        fit: bool = True
    ) -> Union[torch.Tensor, Tuple[torch.Tensor, torch.Tensor]]:
        """Convert features and response to tensors.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Input features.
        target : ndarray of shape (n_samples,) or (n_samples, 1), optional
            Regression target values.
        fit : bool, default=True
            Unused; regression targets need no encoding.

        Returns
        -------
        torch.Tensor or tuple of torch.Tensor
            If target is None, returns the feature tensor.
            If target is provided, returns tuple of (features, target).
        """
        X_tensor = self._as_design_tensor(X)
        if target is None:
            return X_tensor

        target = self._as_response(target)
        if target.shape[0] != X_tensor.shape[0]:
            raise InputContractError(
                f"Got {target.shape[0]} target values for {X_tensor.shape[0]} samples."
            )

        return X_tensor, torch.from_numpy(np.ascontiguousarray(target))

    def criterion(self, outputs: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
        """Compute the mean squared error."""
        return self._loss(outputs, targets)

    def initial_bias(self, targets: torch.Tensor) -> torch.Tensor:
        return targets.mean().reshape(1)

    def score(self, X: ndarray, target: ndarray) -> Dict[str, float]:
        """Compute regression metrics.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Input features.
        target : ndarray of shape (n_samples,) or (n_samples, 1)
            Regression target values.

        Returns
        -------
        dict
            Dictionary containing MSE, MAE, and R2 metrics.
        """
        target = self._as_response(target)

        pred = self.predict(X)
        mse = np.mean((target - pred) ** 2)
        mae = np.mean(np.abs(target - pred))
        target_variance = np.sum((target - np.mean(target)) ** 2)
        if target_variance == 0:
            r2 = float('nan')
        else:
            r2 = 1 - (np.sum((target - pred) ** 2) / target_variance)

        return {
            "MSE": float(mse),
            "MAE": float(mae),
            "R2": float(r2)
        }

    def format_predictions(self, raw_outputs: torch.Tensor) -> ndarray:
        """Format the linear predictor to predictions of shape (n_samples,)."""
        return raw_outputs.detach().reshape(-1).cpu().numpy()
