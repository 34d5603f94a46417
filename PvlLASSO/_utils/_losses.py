"""
Loss functions for PvlLASSO models.

This module contains the smooth part of each task objective. The penalty is
added separately by the trainer so that the optimizer can apply its proximal
step to it.
"""

import torch
import torch.nn as nn
import torch.nn.functional as F

# Linear predictors are clamped to this range before any exponential.
_MAX_LOGIT = 50.0


def _clamp_logits(input: torch.Tensor) -> torch.Tensor:
    return input.clamp(-_MAX_LOGIT, _MAX_LOGIT)


class _BaseLoss(nn.Module):
    """Base class for PvlLASSO loss functions."""

    def __init__(self, reduction: str = 'mean'):
        """Initialize base loss function."""
        super().__init__()

        if reduction not in ['mean', 'sum']:
            raise ValueError(f"Invalid reduction: {reduction}. Must be 'mean' or 'sum'.")

        self.reduction = reduction


class _MSELoss(_BaseLoss):
    """
    Mean squared error loss for regression tasks.

    Parameters
    ----------
    reduction : str, default='mean'
        Reduction method ('mean' or 'sum').

    Examples
    --------
    >>> loss_fn = _MSELoss()
    >>> predictions = torch.randn(32, 1)
    >>> targets = torch.randn(32)
    >>> loss = loss_fn(predictions, targets)
    """

    def __init__(self, reduction: str = 'mean'):
        """Initialize MSE loss function."""
        super().__init__(reduction)
        self.mse_loss = nn.MSELoss(reduction=reduction)

    def forward(self, input: torch.Tensor, target: torch.Tensor) -> torch.Tensor:
        """
        Compute the mean squared error.

        Parameters
        ----------
        input : torch.Tensor
            Predicted values of shape (batch_size,) or (batch_size, 1).
        target : torch.Tensor
            True values of shape (batch_size,).

        Returns
        -------
        torch.Tensor
            Squared error loss.
        """
        if input.dim() == 2 and input.shape[1] == 1:
            input = input.squeeze(1)
        return self.mse_loss(input, target)


class _BinaryCrossEntropyLoss(_BaseLoss):
    """
    Binary cross-entropy on logits, for binary and one-vs-rest tasks.

    With a target of shape (batch_size, n_classes) holding one-hot rows, the
    mean reduction equals the average over classes of each class's mean
    binary cross-entropy, which is the one-vs-rest multiclass objective.

    Parameters
    ----------
    reduction : str, default='mean'
        Reduction method ('mean' or 'sum').

    Examples
    --------
    >>> loss_fn = _BinaryCrossEntropyLoss()
    >>> logits = torch.randn(32, 1)
    >>> targets = torch.randint(0, 2, (32,)).float()
    >>> loss = loss_fn(logits, targets)
    """

    def forward(self, input: torch.Tensor, target: torch.Tensor) -> torch.Tensor:
        """
        Compute the binary cross-entropy.

        Parameters
        ----------
        input : torch.Tensor
            Logits of shape (batch_size, 1) or (batch_size, n_classes).
        target : torch.Tensor
            Labels in {0, 1} of shape (batch_size,) or (batch_size, n_classes).

        Returns
        -------
        torch.Tensor
            Cross-entropy loss.
        """
        if target.dim() == 1 and input.dim() == 2 and input.shape[1] == 1:
            input = input.squeeze(1)
        return F.binary_cross_entropy_with_logits(
            _clamp_logits(input), target, reduction=self.reduction
        )


class _CoxPartialLikelihoodLoss(_BaseLoss):
    """
    Negative Cox partial log-likelihood with Breslow handling of ties.

    The baseline hazard cancels out of the partial likelihood, so only the
    relative risk ``exp(input)`` enters the loss.

    Parameters
    ----------
    reduction : str, default='mean'
        'mean' divides the negative log-likelihood by the number of samples.

    Examples
    --------
    >>> loss_fn = _CoxPartialLikelihoodLoss()
    >>> predictions = torch.randn(32)  # Risk scores
    >>> targets = torch.stack([torch.rand(32), torch.ones(32)], dim=1)  # [times, events]
    >>> loss = loss_fn(predictions, targets)
    """

    @staticmethod
    def _risk_sets(target: torch.Tensor):
        """Sort samples by descending time and locate the end of each tie group."""
        times = target[:, 0]
        sort_idx = torch.argsort(-times, stable=True)
        times = times[sort_idx]
        events = target[:, 1][sort_idx]

        _, counts = torch.unique_consecutive(times, return_counts=True)
        ends = counts.cumsum(0)
        group = torch.repeat_interleave(torch.arange(len(counts), device=times.device), counts)
        events_per_group = torch.zeros(len(counts), dtype=events.dtype, device=times.device)
        events_per_group.index_add_(0, group, events)
        return sort_idx, events, ends, events_per_group

    def forward(self, input: torch.Tensor, target: torch.Tensor) -> torch.Tensor:
        """
        Compute the negative partial log-likelihood.

        Parameters
        ----------
        input : torch.Tensor
            Predicted log-risk scores of shape (batch_size,) or (batch_size, 1).
        target : torch.Tensor
            Target data of shape (batch_size, 2) with [times, events].

        Returns
        -------
        torch.Tensor
            Negative partial log-likelihood.
        """
        if input.dim() == 2 and input.shape[1] == 1:
            input = input.squeeze(1)

        sort_idx, events, ends, events_per_group = self._risk_sets(target)
        input = _clamp_logits(input)[sort_idx]

        # Samples sorted by descending time: the risk set of a tie group is
        # every sample up to the end of that group.
        log_cum = torch.logcumsumexp(input, dim=0)
        loss = - (input * events).sum() + (log_cum[ends - 1] * events_per_group).sum()

        if self.reduction == 'mean':
            return loss / len(input)
        return loss
