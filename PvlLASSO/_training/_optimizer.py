import torch
from torch.optim.optimizer import Optimizer
from typing import Callable, Any, Dict, Tuple


class _IdentityPenalty:
      """Identity proximal operator - no regularization."""
      def proximal(self, parameter, lr, lambda_=None):
          return parameter


class _ProximalRMSprop(Optimizer):
      """
      RMSprop with a proximal step for a non-smooth penalty.

      Solves:
          minimize F(x) = f(x) + g(x)
      where f is smooth and g is handled via a proximal operator.

      Each step scales the gradient of f coordinatewise by the running
      root mean square of past gradients, then applies the proximal operator
      of g in the same metric, i.e. with the per-coordinate step size
      ``lr / (sqrt(v) + eps)``. For an L1 penalty this is soft-thresholding,
      which produces exact zeros.

      Supports multiple parameter groups with different proximal operators.
      If no penalty is provided for a group, uses identity (plain RMSprop).
      """

      def __init__(
          self,
          params,
          penalty=None,
          lr: float = 0.01,
          alpha: float = 0.99,
          eps: float = 1e-8
      ):
          if lr <= 0.0:
              raise ValueError(f"Invalid learning rate: {lr}")
          if not (0.0 < alpha < 1.0):
              raise ValueError(f"Invalid smoothing constant: {alpha}")
          if eps <= 0.0:
              raise ValueError(f"Invalid epsilon: {eps}")

          # Default penalty (identity) if none provided
          if penalty is None:
              penalty = _IdentityPenalty()

          defaults = dict(
              penalty=penalty,
              lr=lr,
              alpha=alpha,
              eps=eps
          )
          super().__init__(params, defaults)

          # Initialize each group and set default penalty if needed
          for group in self.param_groups:
              if 'penalty' not in group or group['penalty'] is None:
                  group['penalty'] = _IdentityPenalty()
              elif not hasattr(group['penalty'], 'proximal'):
                  raise ValueError("Penalty function must implement a 'proximal' method")

      def step(self, closure: Callable[..., Tuple[torch.Tensor, torch.Tensor]]) -> Tuple[torch.Tensor, torch.Tensor]:
          """
          Perform one proximal RMSprop step.

          closure should:
          - When called with backward=True: compute gradients of the smooth
            part and return (total_loss, smooth_loss)

          Returns the losses evaluated at the point the gradient was taken,
          so a step costs a single forward and backward pass.
          """
          if closure is None:
              raise ValueError("Proximal RMSprop requires a closure that returns loss and calls backward()")

          total_loss, smooth_loss = closure(backward=True)
          for group in self.param_groups:
              self._step_group(group)
          return total_loss, smooth_loss

      @torch.no_grad()
      def _step_group(self, group: Dict[str, Any]) -> None:
          """Perform the step for a single parameter group."""
          lr = group["lr"]
          alpha = group["alpha"]
          eps = group["eps"]
          penalty = group["penalty"]

          for p in group["params"]:
              if p.grad is None:
                  continue
              grad = p.grad

              state = self.state[p]
              if len(state) == 0:
                  state["step"] = 0
                  state["square_avg"] = torch.zeros_like(p)

              square_avg = state["square_avg"]
              square_avg.mul_(alpha).addcmul_(grad, grad, value=1 - alpha)
              state["step"] += 1

              step_size = lr / square_avg.sqrt().add_(eps)
              tentative = p - step_size * grad
              p.copy_(penalty.proximal(tentative, lr=step_size))

      def __repr__(self):
          return (f"ProximalRMSprop(lr={self.defaults['lr']}, "
                  f"alpha={self.defaults['alpha']}, "
                  f"eps={self.defaults['eps']})")
