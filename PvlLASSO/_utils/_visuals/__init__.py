"""Internal visualization utilities for prevalence-weighted feature selection.

This package contains plotting functions for the tuning sweep, the lambda
decision and fitted coefficients. These are not part of the public API.
"""

from ._coef_plots import plot_lollipop
from ._tuning_plots import (
    _plot_loss_curve,
    _plot_selection_curve,
    _plot_prevalence_distribution,
)
