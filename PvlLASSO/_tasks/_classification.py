"""Classification task mixin for prevalence-weighted feature selection.

This module provides the classification-specific implementation of the task
mixin interface for the PvlLASSO framework. Binary tasks use one logistic
output; multiclass tasks use one logistic output per class (one-vs-rest).
"""

import torch
import numpy as np
from numpy import ndarray
from typing import Any, Dict, Optional, Tuple, Union

from ._base import _BaseTaskMixin
from .._utils import _BinaryCrossEntropyLoss, InputContractError

_LOGIT_EPS = 1e-6


class _ClassificationTaskMixin(_BaseTaskMixin):
    """Mixin class for classification tasks.

    Parameters
    ----------
    task : {'binary', 'multiclass'}, default='binary'
        Binary tasks need exactly two label levels, multiclass tasks at
        least three.
    control : label, optional
        Reference level of a binary task. Defaults to the first level in
        sorted order.

    Attributes
    ----------
    classes_ : ndarray
        Label levels seen during fit, control level first.
    _loss : _BinaryCrossEntropyLoss
        Classification loss function.
    """

    def __init__(self, task: str = 'binary', control: Optional[Any] = None) -> None:
        """Initialize the classification task mixin."""
        if task not in ('binary', 'multiclass'):
            raise ValueError(f"Task must be 'binary' or 'multiclass', got {task!r}")

        super().__init__()
        self.task = task
        self.control = control
        self.classes_: Optional[ndarray] = None
        self._output_dim = 1 if task == 'binary' else None
        self._loss = _BinaryCrossEntropyLoss(reduction='mean')

    @staticmethod
    def _as_labels(target: Any) -> ndarray:
        labels = np.asarray(target)
        if labels.ndim == 2 and labels.shape[1] == 1:
            labels = labels.reshape(-1)
        if labels.ndim != 1:
            raise InputContractError(
                f"Target should be of shape (n,) or (n, 1). Got: {labels.shape}"
            )
        return labels

    def _fit_levels(self, labels: ndarray) -> ndarray:
        levels = np.unique(labels)

        if len(levels) < 2:
            raise InputContractError(
                f"Classification needs at least two label levels, got {len(levels)}."
            )
        if self.task == 'binary' and len(levels) != 2:
            raise InputContractError(
                f"Binary task needs exactly two label levels, got {len(levels)}: "
                f"{levels.tolist()}. Use task='multiclass' instead."
            )
        if self.task == 'multiclass' and len(levels) < 3:
            raise InputContractError(
                "Multiclass task needs at least three label levels. "
                "Use task='binary' for two levels."
            )

        if self.control is not None:
            if self.control not in levels:
                raise InputContractError(
                    f"Control level {self.control!r} is not among the labels {levels.tolist()}."
                )
            levels = np.concatenate([
                levels[levels == self.control],
                levels[levels != self.control]
            ])

        return levels

    def _encode(self, labels: ndarray) -> torch.Tensor:
        unknown = ~np.isin(labels, self.classes_)
        if unknown.any():
            raise InputContractError(
                f"Labels not seen during fit: {np.unique(labels[unknown]).tolist()}"
            )

        if self.task == 'binary':
            return torch.from_numpy((labels == self.classes_[1]).astype(np.float64))

        one_hot = (labels[:, None] == self.classes_[None, :]).astype(np.float64)
        return torch.from_numpy(one_hot)

    def preprocess_data(
        self,
        X: ndarray,
        target: Optional[ndarray] = None,
        fit: bool = True
    ) -> Union[torch.Tensor, Tuple[torch.Tensor, torch.Tensor]]:
        """Convert features and labels to tensors.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Input features.
        target : ndarray of shape (n_samples,) or (n_samples, 1), optional
            Class labels.
        fit : bool, default=True
            Whether to learn the label levels from ``target``.

        Returns
        -------
        torch.Tensor or tuple of torch.Tensor
            Features, plus 0/1 targets of shape (n_samples,) for binary tasks
            or one-hot targets of shape (n_samples, n_classes) for multiclass.
        """
        X_tensor = self._as_design_tensor(X)
        if target is None:
            return X_tensor

        labels = self._as_labels(target)
        if labels.shape[0] != X_tensor.shape[0]:
            raise InputContractError(
                f"Got {labels.shape[0]} labels for {X_tensor.shape[0]} samples."
            )

        if fit:
            self.classes_ = self._fit_levels(labels)
            self._output_dim = 1 if self.task == 'binary' else len(self.classes_)
        elif self.classes_ is None:
            raise ValueError("Model must be fitted before encoding labels.")

        return X_tensor, self._encode(labels)

    def criterion(self, outputs: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
        """Mean binary cross-entropy, averaged over classes for one-vs-rest."""
        return self._loss(outputs, targets)

    def initial_bias(self, targets: torch.Tensor) -> torch.Tensor:
        """Logit of the class frequencies."""
        frequency = targets.mean(dim=0).clamp(_LOGIT_EPS, 1 - _LOGIT_EPS)
        return torch.logit(frequency).reshape(-1)

    def split_strata(self, target: ndarray) -> ndarray:
        return self._as_labels(target)

    def _probabilities(self, raw_outputs: torch.Tensor) -> ndarray:
        probs = torch.sigmoid(raw_outputs.detach().clamp(-50, 50)).cpu().numpy()
        if self.task == 'binary':
            p = probs.reshape(-1)
            return np.column_stack([1 - p, p])
        return probs / probs.sum(axis=1, keepdims=True)

    def score(self, X: ndarray, target: ndarray) -> Dict[str, float]:
        """Compute classification accuracy.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Input features.
        target : ndarray of shape (n_samples,) or (n_samples, 1)
            True labels.

        Returns
        -------
        dict
            Dictionary containing accuracy score.
        """
        labels = self._as_labels(target)
        pred = self.predict(X)
        return {"accuracy": float((pred == labels).mean())}

    def format_predictions(self, raw_outputs: torch.Tensor) -> ndarray:
        """Format the linear predictor to class labels.

        Parameters
        ----------
        raw_outputs : torch.Tensor of shape (n_samples, output_dim)
            Logits.

        Returns
        -------
        ndarray of shape (n_samples,)
            Predicted labels.
        """
        return self.classes_[self._probabilities(raw_outputs).argmax(axis=1)]
