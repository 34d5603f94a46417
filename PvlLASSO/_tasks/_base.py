"""Base task mixin for prevalence-weighted feature selection.

This module provides the abstract base class for task-specific mixins
in the PvlLASSO framework.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple, Union
import numpy as np
import torch

from .._utils import InputContractError


class _BaseTaskMixin(ABC):
    """Abstract base class for task-specific functionality.

    This mixin defines the interface that all task-specific implementations
    must follow. It provides the contract for preprocessing data, defining
    loss criteria, initializing the intercept, scoring predictions, and
    formatting outputs.

    Attributes
    ----------
    _has_bias : bool
        Whether the linear predictor of the task carries an intercept.

    Notes
    -----
    This is an internal class and should not be used directly by end users.
    """

    _has_bias = True

    @staticmethod
    def _as_design_tensor(X: Union[np.ndarray, Any]) -> torch.Tensor:
        """Convert a design matrix to a float64 tensor of shape (n, d)."""
        try:
            X = np.asarray(X, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InputContractError(f"Design matrix must be numeric: {exc}") from exc

        if X.ndim != 2:
            raise InputContractError(
                f"Design matrix must be 2-D (n_samples, n_features). Got shape: {X.shape}"
            )
        if X.shape[0] == 0 or X.shape[1] == 0:
            raise InputContractError("Design matrix is empty.")
        if not np.all(np.isfinite(X)):
            raise InputContractError("Design matrix contains non-finite values.")

        return torch.from_numpy(np.ascontiguousarray(X))

    @abstractmethod
    def preprocess_data(
        self,
        X: np.ndarray,
        target: Optional[np.ndarray] = None,
        fit: bool = True
    ) -> Union[torch.Tensor, Tuple[torch.Tensor, torch.Tensor]]:
        """Convert input data and target to tensors for the specific task.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Input features, already scaled by the caller.
        target : ndarray, optional
            Target values. Shape depends on the specific task.
        fit : bool, default=True
            Whether to learn the target encoding (class levels) from
            ``target``. When False the encoding learned at fit time is reused.

        Returns
        -------
        torch.Tensor or tuple of torch.Tensor
            If target is None, returns the feature tensor.
            If target is provided, returns tuple of (features, target).

        Raises
        ------
        InputContractError
            If the data do not match the task.
        """
        ...

    @abstractmethod
    def criterion(self, outputs: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
        """Define the smooth loss of the task.

        Parameters
        ----------
        outputs : torch.Tensor of shape (n_samples, output_dim)
            Linear predictor.
        targets : torch.Tensor
            Encoded targets returned by ``preprocess_data``.

        Returns
        -------
        torch.Tensor
            Computed loss value as scalar tensor.
        """
        ...

    def initial_bias(self, targets: torch.Tensor) -> Optional[torch.Tensor]:
        """Intercept-only optimum used to initialize the bias."""
        return None

    def split_strata(self, target: np.ndarray) -> Optional[np.ndarray]:
        """Labels used to stratify a train/test split, or None."""
        return None

    def target_rows(self, target: Any) -> np.ndarray:
        """Target as an array whose first axis indexes samples."""
        return np.asarray(target)

    @abstractmethod
    def score(self, X: np.ndarray, target: np.ndarray) -> Dict[str, float]:
        """Compute evaluation metrics for the task.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Input features.
        target : ndarray
            Ground truth target values. Shape depends on the specific task.

        Returns
        -------
        dict
            Dictionary of evaluation metrics and their values.
        """
        ...

    @abstractmethod
    def format_predictions(self, raw_outputs: torch.Tensor) -> np.ndarray:
        """Format the linear predictor into user-friendly predictions.

        Parameters
        ----------
        raw_outputs : torch.Tensor of shape (n_samples, output_dim)
            Linear predictor.

        Returns
        -------
        ndarray
            Formatted predictions in the expected format for the task.
        """
        ...
