"""
Training callbacks for PvlLASSO models.

This module provides callback functions for monitoring and controlling
the training process.
"""

import torch
from typing import Optional


class _ConvergenceChecker:
    """
    Utility class for checking training convergence.

    Two criteria are available: the relative change of the loss between
    iterations, and the relative change of the parameter vector. Loss
    changes are taken relative to ``max(|previous_loss|, 1)``, so an objective
    already below 1 must also stop moving in absolute terms.
    """

    @staticmethod
    def check_convergence(
        current_loss: torch.Tensor,
        previous_loss: torch.Tensor,
        relative_tolerance: float
    ) -> bool:
        """
        Check if training has converged based on relative loss change.

        The change is ``|current - previous| / max(|previous|, 1)``.

        Parameters
        ----------
        current_loss : torch.Tensor
            Current iteration loss value.
        previous_loss : torch.Tensor
            Previous iteration loss value.
        relative_tolerance : float
            Relative tolerance for convergence.

        Returns
        -------
        bool
            True if converged, False otherwise.
        """
        if torch.isinf(previous_loss) or torch.isnan(previous_loss):
            return False

        if torch.isinf(current_loss) or torch.isnan(current_loss):
            return False

        if torch.abs(current_loss) < 1e-12:
            return True

        scale = torch.clamp(torch.abs(previous_loss), min=1.0)
        relative_change = torch.abs(current_loss - previous_loss) / scale
        return bool(relative_change < relative_tolerance)

    @staticmethod
    def check_weight_convergence(
        current_params: torch.Tensor,
        previous_params: torch.Tensor,
        relative_tolerance: float
    ) -> bool:
        """
        Check if training has converged based on relative parameter change.

        Parameters
        ----------
        current_params : torch.Tensor
            Flattened parameters after the current iteration.
        previous_params : torch.Tensor
            Flattened parameters after the previous iteration.
        relative_tolerance : float
            Relative tolerance for convergence.

        Returns
        -------
        bool
            True if ``||current - previous|| / max(||previous||, 1e-12)`` is
            below the tolerance.
        """
        if not torch.isfinite(current_params).all():
            return False

        change = torch.linalg.norm(current_params - previous_params)
        scale = torch.clamp(torch.linalg.norm(previous_params), min=1e-12)
        return bool(change / scale < relative_tolerance)


class _LoggingCallback:
    """
    Callback for logging training progress.

    This callback prints training metrics at specified intervals
    to monitor the training process.

    Parameters
    ----------
    logging_interval : int
        Number of iterations between log messages.

    Examples
    --------
    >>> logger = _LoggingCallback(logging_interval=10)
    >>> logger.log(iteration=50, loss=torch.tensor(0.123), bare_loss=torch.tensor(0.098), verbose=True)
    """

    def __init__(self, logging_interval: int = 100):
        """Initialize the logging callback."""
        if logging_interval <= 0:
            raise ValueError("Logging interval must be positive.")

        self.logging_interval = logging_interval

    def log(
        self,
        iteration: int,
        loss: torch.Tensor,
        bare_loss: torch.Tensor,
        verbose: bool,
        n_features: Optional[int] = None
    ) -> None:
        """
        Log training progress.

        Parameters
        ----------
        iteration : int
            Current iteration number.
        loss : torch.Tensor
            Total loss including regularization.
        bare_loss : torch.Tensor
            Loss without regularization.
        verbose : bool
            Whether to actually print the log.
        n_features : int, optional
            Number of selected features (if available).
        """
        if not verbose:
            return

        if iteration % self.logging_interval == 0:
            msg = f"  Iter {iteration:5d}: Loss = {loss.item():.6f}, Bare Loss = {bare_loss.item():.6f}"

            if n_features is not None:
                msg += f", Features = {n_features}"

            print(msg)

    def log_stage(self, stage_name: str, stage_info: str = "") -> None:
        """
        Log the start of a new stage (fit, scan, sweep, decision).

        Parameters
        ----------
        stage_name : str
            Name of the stage.
        stage_info : str
            Additional information about the stage.
        """
        print(f"\n=== {stage_name} ===")
        if stage_info:
            print(f"\t{stage_info}")

    def log_convergence(self, iteration: int, tolerance: float) -> None:
        """
        Log convergence information.

        Parameters
        ----------
        iteration : int
            Iteration at which convergence was achieved.
        tolerance : float
            Tolerance used for convergence check.
        """
        print(f"\tConverged at iteration {iteration} (tolerance: {tolerance:.2e})")

    def log_early_stopping(self, iteration: int, reason: str) -> None:
        """
        Log early stopping information.

        Parameters
        ----------
        iteration : int
            Iteration at which training was stopped.
        reason : str
            Reason for early stopping.
        """
        print(f"\tStopped at iteration {iteration}: {reason}")
