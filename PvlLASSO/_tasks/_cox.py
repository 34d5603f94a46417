"""Proportional-hazards task mixin for prevalence-weighted feature selection.

This module provides the survival-specific implementation of the task mixin
interface for the PvlLASSO framework.
"""

import torch
import numpy as np
from numpy import ndarray
from typing import Dict, Optional, Tuple, Union

from ._base import _BaseTaskMixin
from .._utils import (
    _CoxPartialLikelihoodLoss,
    InputContractError,
    split_survival_target,
    concordance_index,
)


class _CoxTaskMixin(_BaseTaskMixin):
    """Mixin class for Cox regression tasks.

    The linear predictor is the log relative risk. The baseline hazard is
    absorbed by the partial likelihood, so the model has no intercept.

    Attributes
    ----------
    _loss : _CoxPartialLikelihoodLoss
        Negative Breslow partial log-likelihood divided by the sample count.
    """

    _has_bias = False

    def __init__(self) -> None:
        """Initialize the Cox task mixin."""
        super().__init__()
        self._output_dim = 1
        self._loss = _CoxPartialLikelihoodLoss(reduction='mean')

    def preprocess_data(
        self,
        X: ndarray,
        target: Optional[ndarray] = None,
        fit: bool = True
    ) -> Union[torch.Tensor, Tuple[torch.Tensor, torch.Tensor]]:
        """Convert features and survival data to tensors.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Input features.
        target : ndarray of shape (n_samples, 2), optional
            Columns (durations, events). A (2, n_samples) array is
            transposed.
        fit : bool, default=True
            Whether the target is used to fit; fitting needs at least one
            observed event.

        Returns
        -------
        torch.Tensor or tuple of torch.Tensor
            Features, plus a (n_samples, 2) target tensor.
        """
        X_tensor = self._as_design_tensor(X)
        if target is None:
            return X_tensor

        durations, events = split_survival_target(target)
        if durations.shape[0] != X_tensor.shape[0]:
            raise InputContractError(
                f"Got {durations.shape[0]} survival records for {X_tensor.shape[0]} samples."
            )
        if fit and events.sum() == 0:
            raise InputContractError("Survival target has no observed event.")

        return X_tensor, torch.from_numpy(np.column_stack([durations, events]))

    def criterion(self, outputs: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
        """Compute the negative partial log-likelihood divided by n."""
        return self._loss(outputs, targets)

    def target_rows(self, target) -> ndarray:
        return np.column_stack(split_survival_target(target))

    def split_strata(self, target: ndarray) -> ndarray:
        """Stratify on the event indicator."""
        _, events = split_survival_target(target)
        return events.astype(int)

    def score(self, X: ndarray, target: ndarray) -> Dict[str, float]:
        """Compute Cox regression evaluation metrics.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Input features.
        target : ndarray of shape (n_samples, 2)
            Survival data where first column is survival times and second
            column is event indicators.

        Returns
        -------
        dict
            Dictionary containing concordance index and negative partial
            log-likelihood.
        """
        times, events = split_survival_target(target)
        pred = self.predict(X)

        return {
            "C-index": concordance_index(times, events, pred),
            "neg_partial_log_likelihood": self.evaluate_loss(X, target)
        }

    def format_predictions(self, raw_outputs: torch.Tensor) -> ndarray:
        """Format the linear predictor to log relative risk scores."""
        return raw_outputs.detach().reshape(-1).cpu().numpy()
