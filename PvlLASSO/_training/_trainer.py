"""
Penalized trainer for PvlLASSO models.

This module provides the _PenalizedTrainer class that runs the proximal
RMSprop loop of a single fit at a fixed lambda.
"""

import torch
from typing import Any, Dict
from ._optimizer import _ProximalRMSprop
from ._callbacks import _ConvergenceChecker, _LoggingCallback
from .._utils import _OptimizerSpec


class _PenalizedTrainer:
    """
    Trainer for one penalized fit.

    The penalized weights are updated by a proximal RMSprop step, the bias by
    a plain RMSprop step. The learning rate is halved whenever the penalized
    objective has not improved for five iterations. Iterations are strictly
    sequential; the loop stops when the convergence criterion of ``spec`` is
    met or after ``spec.max_iter`` iterations. Reaching the iteration cap is
    reported through the ``converged`` entry of the history, not raised.

    Parameters
    ----------
    model : object
        The PvlLASSO model to train. Must expose ``_linear`` (the linear
        predictor), ``penalty_`` and ``criterion``.
    spec : _OptimizerSpec
        Optimizer configuration.
    verbose : bool, default=False
        Whether to print training progress.
    logging_interval : int, default=100
        Number of iterations between progress updates.

    Examples
    --------
    >>> trainer = _PenalizedTrainer(model, _OptimizerSpec(max_iter=500), verbose=True)
    >>> history = trainer.train(X_tensor, y_tensor)
    """

    def __init__(
        self,
        model: Any,
        spec: _OptimizerSpec,
        verbose: bool = False,
        logging_interval: int = 100,
    ):
        """Initialize the penalized trainer."""
        self.model = model
        self.spec = spec

        self.verbose = verbose
        self.logger = _LoggingCallback(logging_interval)
        self.convergence_checker = _ConvergenceChecker()

    def _flat_parameters(self) -> torch.Tensor:
        return torch.cat([p.detach().reshape(-1) for p in self.model._linear.parameters()])

    def train(self, X: torch.Tensor, y: torch.Tensor) -> Dict[str, Any]:
        """
        Run the optimization loop.

        Parameters
        ----------
        X : torch.Tensor
            Input features tensor of shape (n_samples, n_features).
        y : torch.Tensor
            Target tensor; shape depends on the task.

        Returns
        -------
        dict
            ``n_iter``, ``loss_history`` (penalized objective per iteration),
            ``final_loss``, ``bare_loss`` and ``converged``.
        """
        linear = self.model._linear
        penalty = self.model.penalty_
        spec = self.spec

        param_groups = [{'params': [linear.weight], 'penalty': penalty}]
        if linear.bias is not None:
            param_groups.append({'params': [linear.bias]})

        optimizer = _ProximalRMSprop(
            param_groups,
            lr=spec.learning_rate,
            alpha=spec.alpha,
            eps=spec.epsilon
        )

        scheduler = torch.optim.lr_scheduler.ReduceLROnPlateau(
            optimizer, mode='min', patience=5, factor=0.5, min_lr=1e-10
        )

        def closure(backward: bool = False) -> tuple:
            """Closure returning (total_loss, bare_loss)."""
            optimizer.zero_grad()

            predictions = linear(X)
            bare_loss = self.model.criterion(predictions, y)
            total_loss = bare_loss + penalty.value(linear.weight)

            if backward:
                bare_loss.backward()

            return total_loss.detach(), bare_loss.detach()

        if self.verbose:
            self.logger.log_stage(
                "Penalized fit",
                f"Proximal RMSprop, lambda={penalty.params['lambda_']:.4g}, {spec}"
            )

        last_loss = torch.tensor(float("inf"), dtype=X.dtype)
        last_params = self._flat_parameters()
        loss_history = []
        converged = False

        iteration = 0
        for iteration in range(1, spec.max_iter + 1):
            total_loss, bare_loss = optimizer.step(closure)
            loss_history.append(total_loss.item())

            if spec.convergence == 'loss':
                done = self.convergence_checker.check_convergence(total_loss, last_loss, spec.tol)
            else:
                current_params = self._flat_parameters()
                done = self.convergence_checker.check_weight_convergence(
                    current_params, last_params, spec.tol
                )
                last_params = current_params

            if done:
                converged = True
                if self.verbose:
                    self.logger.log_convergence(iteration, spec.tol)
                break

            if self.verbose:
                self.logger.log(
                    iteration,
                    total_loss,
                    bare_loss,
                    self.verbose,
                    n_features=self.model._count_selected()
                )

            scheduler.step(total_loss)
            last_loss = total_loss

        if not converged and self.verbose:
            self.logger.log_early_stopping(iteration, "Maximum iterations reached")

        with torch.no_grad():
            final_total, final_bare = closure(backward=False)

        return {
            "n_iter": iteration,
            "loss_history": loss_history,
            "final_loss": final_total.item(),
            "bare_loss": final_bare.item(),
            "converged": converged,
        }
