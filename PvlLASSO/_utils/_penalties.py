import torch
import numpy as np


class BasePenalty:
    """
    Base class for penalties used in optimization.
    Subclasses should implement the `value` and `proximal` methods.
    """
    def __init__(self, **kwargs):
        """Initialize penalty with default parameters."""
        self.params = kwargs.copy()

    def value(self, parameter, **kwargs):
        raise NotImplementedError("Subclasses must implement this method.")

    def proximal(self, parameter, **kwargs):
        raise NotImplementedError("Subclasses must implement this method.")

    def __str__(self):
        return self.__class__.__name__

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class PrevalenceL1Penalty(BasePenalty):
    """
    L1 penalty weighted by the inverse of feature prevalence.

    For a weight matrix W of shape (n_outputs, n_features) the penalty is::

        lambda_ / n_outputs * sum_{l, j} |W_lj| / p_j

    Rare features (small p_j) pay more for the same coefficient, so they need
    a stronger signal to survive. With a single output this is the plain
    ``lambda_ * sum_j |w_j| / p_j``; with several one-vs-rest outputs each
    class carries its own penalty and the terms are averaged like the losses.

    Parameters
    ----------
    lambda_ : float, default=0.0
        Regularization strength.
    prevalence : array-like of shape (n_features,), optional
        Per-feature prevalence in (0, 1]. If None, every feature has
        prevalence 1 (unweighted LASSO).
    """
    def __init__(self, lambda_=0.0, prevalence=None):
        """Initialize the prevalence-weighted L1 penalty."""
        if lambda_ < 0:
            raise ValueError("Lambda must be non-negative.")
        super().__init__(lambda_=float(lambda_))
        self._prevalence = None
        if prevalence is not None:
            self.set_prevalence(prevalence)

    def set_prevalence(self, prevalence):
        """Set the per-feature prevalence used to weight the penalty."""
        prevalence = torch.as_tensor(np.asarray(prevalence), dtype=torch.float64)
        if (prevalence <= 0).any() or (prevalence > 1).any():
            raise ValueError("Prevalence values must lie in (0, 1].")
        self._prevalence = prevalence

    def _weights(self, parameter):
        if self._prevalence is None:
            return torch.ones(parameter.shape[-1], dtype=parameter.dtype, device=parameter.device)
        return self._prevalence.to(dtype=parameter.dtype, device=parameter.device).reciprocal()

    @staticmethod
    def _n_outputs(parameter):
        return parameter.shape[0] if parameter.dim() == 2 else 1

    def value(self, parameter, **kwargs):
        lambda_ = kwargs.get('lambda_', self.params.get('lambda_', 0))
        weighted = parameter.abs() * self._weights(parameter)
        return lambda_ * weighted.sum() / self._n_outputs(parameter)

    def proximal(self, parameter, **kwargs):
        """Soft-threshold ``parameter`` coordinatewise.

        ``lr`` may be a scalar or a tensor broadcastable to ``parameter``;
        adaptive optimizers pass their per-coordinate step sizes so the
        threshold is ``lr * lambda_ / (p_j * n_outputs)``.
        """
        lambda_ = kwargs.get('lambda_', self.params.get('lambda_', 0))
        lr = kwargs.get('lr', 0.01)

        if lambda_ == 0:
            return parameter

        threshold = lr * lambda_ * self._weights(parameter) / self._n_outputs(parameter)
        return torch.sign(parameter) * torch.relu(parameter.abs() - threshold)

    def __str__(self):
        return "Prevalence-weighted L1 Penalty"

    def __repr__(self):
        return f"PrevalenceL1Penalty(lambda_={self.params.get('lambda_', 0.0)})"
