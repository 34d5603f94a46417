"""
Optimizer specification for PvlLASSO models.

This module defines the _OptimizerSpec class which holds the configuration
of the proximal RMSprop loop used by every fit.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class _OptimizerSpec:
    """
    Specification of a single penalized fit.

    Parameters
    ----------
    max_iter : int, default=10000
        Maximum number of optimizer iterations.
    tol : float, default=1e-6
        Convergence tolerance, applied to the criterion chosen by
        ``convergence``.
    learning_rate : float, default=0.01
        RMSprop learning rate.
    alpha : float, default=0.99
        Smoothing constant of the running average of squared gradients.
    epsilon : float, default=1e-8
        Term added to the RMSprop denominator for numerical stability.
    convergence : {'loss', 'weights'}, default='loss'
        'loss' stops when the change of the penalized objective, relative to
        ``max(|previous objective|, 1)``, falls below ``tol``. 'weights'
        stops when the relative change of the parameter vector (weights and
        bias) falls below ``tol``.

    Examples
    --------
    >>> spec = _OptimizerSpec(max_iter=500, tol=1e-5, convergence='weights')
    """

    max_iter: int = 10000
    tol: float = 1e-6
    learning_rate: float = 0.01
    alpha: float = 0.99
    epsilon: float = 1e-8
    convergence: str = 'loss'

    def __post_init__(self):
        """Validate the specification after initialization."""
        if int(self.max_iter) != self.max_iter or self.max_iter <= 0:
            raise ValueError("Maximum iterations must be a positive integer.")

        if self.tol <= 0:
            raise ValueError("Tolerance must be positive.")

        if self.learning_rate <= 0:
            raise ValueError(f"Invalid learning rate: {self.learning_rate}")

        if not 0.0 < self.alpha < 1.0:
            raise ValueError(f"Invalid smoothing constant alpha: {self.alpha}")

        if self.epsilon <= 0:
            raise ValueError(f"Invalid epsilon: {self.epsilon}")

        if self.convergence not in ('loss', 'weights'):
            raise ValueError(
                f"Convergence criterion must be 'loss' or 'weights', got {self.convergence}"
            )

    def __str__(self) -> str:
        return (
            f"_OptimizerSpec("
            f"max_iter={self.max_iter}, "
            f"tol={self.tol}, "
            f"lr={self.learning_rate}, "
            f"alpha={self.alpha}, "
            f"eps={self.epsilon}, "
            f"convergence='{self.convergence}')"
        )
