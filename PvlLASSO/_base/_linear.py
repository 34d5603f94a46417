"""
Linear predictor for PvlLASSO models.

This module provides the _LinearPredictor class, the only trainable module
of a PvlLASSO model.
"""

import torch
import torch.nn as nn
from typing import Optional, Sequence, Union


class _LinearPredictor(nn.Module):
    """Linear predictor ``X @ W.T + b`` with zero-initialized weights.

    Weights start at exactly zero so that a lambda above the upper scan
    boundary keeps every coefficient at zero. The bias starts at zero and is
    usually moved to the intercept-only optimum by the task before training.

    Parameters
    ----------
    input_dim : int
        Number of input features.
    output_dim : int, default=1
        Number of outputs (one per class for one-vs-rest classification).
    bias : bool, default=True
        Whether to include an unpenalized intercept.
    dtype : torch.dtype, default=torch.float64
        Parameter dtype.

    Attributes
    ----------
    weight : nn.Parameter
        Coefficient matrix of shape (output_dim, input_dim).
    bias : nn.Parameter or None
        Intercepts of shape (output_dim,).

    Examples
    --------
    >>> predictor = _LinearPredictor(input_dim=20, output_dim=1)
    >>> output = predictor(torch.randn(32, 20, dtype=torch.float64))
    """

    def __init__(
        self,
        input_dim: int,
        output_dim: int = 1,
        bias: bool = True,
        dtype: torch.dtype = torch.float64
    ):
        """Initialize the linear predictor."""
        super().__init__()

        if input_dim <= 0:
            raise ValueError("Input dimension must be positive.")
        if output_dim <= 0:
            raise ValueError("Output dimension must be positive.")

        self.input_dim = input_dim
        self.output_dim = output_dim

        self.weight = nn.Parameter(torch.zeros(output_dim, input_dim, dtype=dtype))
        if bias:
            self.bias = nn.Parameter(torch.zeros(output_dim, dtype=dtype))
        else:
            self.register_parameter('bias', None)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Compute the linear predictor of shape (batch_size, output_dim)."""
        output = x @ self.weight.T
        if self.bias is not None:
            output = output + self.bias
        return output

    @torch.no_grad()
    def initialize_bias(self, values: Optional[Union[torch.Tensor, Sequence[float]]]) -> None:
        """Set the intercepts, typically to the intercept-only optimum."""
        if self.bias is None or values is None:
            return
        self.bias.copy_(torch.as_tensor(values, dtype=self.bias.dtype).reshape(self.output_dim))

    def extra_repr(self) -> str:
        return f"input_dim={self.input_dim}, output_dim={self.output_dim}, bias={self.bias is not None}"
