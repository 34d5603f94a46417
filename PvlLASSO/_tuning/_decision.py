"""
Inflection-point lambda decision.

This module provides the _InflectionDecision class that fits a greedy
change-point tree to the loss curve of a tuning sweep and picks the first
breakpoint as the optimal lambda.
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .._utils import DecisionError
from .._utils._visuals import (
    _plot_loss_curve,
    _plot_selection_curve,
    _plot_prevalence_distribution,
)

# Relative tolerances for the degenerate-curve check and split ties
_FLAT_RTOL = 1e-10
_TIE_RTOL = 1e-9


def _segment_fit(x: np.ndarray, y: np.ndarray, segment: str) -> np.ndarray:
    """Least-squares fit of one segment, evaluated at ``x``."""
    y_mean = y.mean()
    if segment == 'constant' or len(x) < 2:
        return np.full_like(y, y_mean)

    x_centered = x - x.mean()
    sxx = np.dot(x_centered, x_centered)
    if sxx == 0:
        return np.full_like(y, y_mean)
    slope = np.dot(x_centered, y - y_mean) / sxx
    return y_mean + slope * x_centered


def _segment_sse(x: np.ndarray, y: np.ndarray, segment: str) -> float:
    residuals = y - _segment_fit(x, y, segment)
    return float(np.dot(residuals, residuals))


@dataclass
class _Split:
    index: int
    depth: int
    gain: float


@dataclass
class _DecisionResult:
    """Outcome of the inflection-point decision.

    Attributes
    ----------
    optimal_log_lambda : float
        Log-lambda of the first breakpoint.
    optimal_lambda : float
        ``exp(optimal_log_lambda)``.
    breakpoints : DataFrame
        Every kept split (``log_lambda``, ``lambda``, ``depth``, ``gain``),
        sorted by log-lambda.
    fitted : ndarray
        Piecewise segment fit evaluated at each row of ``table``.
    table : DataFrame
        The tuning table the decision was made on.
    pvl_summary : DataFrame or None
        The prevalence summary of the same sweep.
    """

    optimal_log_lambda: float
    optimal_lambda: float
    breakpoints: pd.DataFrame
    fitted: np.ndarray
    table: pd.DataFrame
    pvl_summary: Optional[pd.DataFrame] = None

    def plot(self, figsize: Tuple[float, float] = (15, 4)):
        """Plot the loss curve, the selection curve and the prevalence mix.

        Returns
        -------
        matplotlib.figure.Figure
        """
        n_panels = 3 if self.pvl_summary is not None else 2
        fig, axes = plt.subplots(1, n_panels, figsize=figsize)

        _plot_loss_curve(
            self.table,
            fitted=self.fitted,
            optimal_log_lambda=self.optimal_log_lambda,
            breakpoints=self.breakpoints['log_lambda'],
            ax=axes[0]
        )
        _plot_selection_curve(self.table, self.optimal_log_lambda, ax=axes[1])
        if self.pvl_summary is not None:
            _plot_prevalence_distribution(self.pvl_summary, self.optimal_log_lambda, ax=axes[2])

        fig.tight_layout()
        return fig


class _InflectionDecision:
    """
    Greedy change-point tree over the loss curve.

    A node covering points ``[lo, hi)`` is split at the index that minimizes
    the summed SSE of the two sides, each side holding at least
    ``min_bucket`` points. A split is kept when it reduces the SSE by at
    least ``cp`` times the SSE of the whole curve. The breakpoint of a split
    is the first point on its right; the optimal lambda is the smallest
    breakpoint.

    Parameters
    ----------
    max_depth : int, default=2
        Maximum depth of the tree.
    min_bucket : int, default=3
        Minimum number of points on each side of a split.
    cp : float, default=0.01
        Minimum relative SSE reduction of a split.
    segment : {'linear', 'constant'}, default='linear'
        Model fitted to each segment: a least-squares line, or the segment
        mean as in a regression tree.

    Examples
    --------
    >>> result = _InflectionDecision(max_depth=2).decide(tuning_table, pvl_summary)
    >>> result.optimal_lambda
    """

    def __init__(
        self,
        max_depth: int = 2,
        min_bucket: int = 3,
        cp: float = 0.01,
        segment: str = 'linear'
    ):
        """Initialize the decision."""
        if int(max_depth) != max_depth or max_depth < 1:
            raise ValueError(f"Maximum depth must be a positive integer, got {max_depth}")
        if int(min_bucket) != min_bucket or min_bucket < 1:
            raise ValueError(f"Minimum bucket must be a positive integer, got {min_bucket}")
        if cp < 0:
            raise ValueError(f"Complexity parameter must be non-negative, got {cp}")
        if segment not in ('linear', 'constant'):
            raise ValueError(f"Segment must be 'linear' or 'constant', got {segment!r}")

        self.max_depth = int(max_depth)
        self.min_bucket = int(min_bucket)
        self.cp = cp
        self.segment = segment

    def _best_split(self, x: np.ndarray, y: np.ndarray, lo: int, hi: int, tie_tol: float):
        best_index, best_sse = None, np.inf
        for k in range(lo + self.min_bucket, hi - self.min_bucket + 1):
            sse = (
                _segment_sse(x[lo:k], y[lo:k], self.segment)
                + _segment_sse(x[k:hi], y[k:hi], self.segment)
            )
            if sse < best_sse - tie_tol:
                best_index, best_sse = k, sse
        return best_index, best_sse

    def _grow(
        self,
        x: np.ndarray,
        y: np.ndarray,
        lo: int,
        hi: int,
        depth: int,
        root_sse: float,
        splits: List[_Split]
    ) -> None:
        if depth > self.max_depth or hi - lo < 2 * self.min_bucket:
            return

        node_sse = _segment_sse(x[lo:hi], y[lo:hi], self.segment)
        index, children_sse = self._best_split(x, y, lo, hi, _TIE_RTOL * root_sse)
        if index is None:
            return

        gain = node_sse - children_sse
        if gain <= 0 or gain < self.cp * root_sse:
            return

        splits.append(_Split(index=index, depth=depth, gain=gain))
        self._grow(x, y, lo, index, depth + 1, root_sse, splits)
        self._grow(x, y, index, hi, depth + 1, root_sse, splits)

    def decide(
        self,
        tuning_table: pd.DataFrame,
        pvl_summary: Optional[pd.DataFrame] = None,
        metric: str = 'loss'
    ) -> _DecisionResult:
        """
        Choose the optimal lambda from a tuning table.

        Parameters
        ----------
        tuning_table : DataFrame
            Sweep results with ``log_lambda`` and ``metric`` columns, sorted
            by ascending lambda.
        pvl_summary : DataFrame, optional
            Prevalence summary of the same sweep, kept for plotting.
        metric : str, default='loss'
            Column used as the loss curve.

        Returns
        -------
        _DecisionResult

        Raises
        ------
        ValueError
            If the rows are not sorted by strictly increasing lambda.
        DecisionError
            If the losses are not finite or the curve has no breakpoint.
        """
        x = tuning_table['log_lambda'].to_numpy(dtype=np.float64)
        y = tuning_table[metric].to_numpy(dtype=np.float64)

        if np.any(np.diff(x) <= 0):
            raise ValueError("Tuning table must be sorted by strictly increasing lambda.")
        if not np.all(np.isfinite(y)):
            raise DecisionError(f"Tuning table has non-finite values in '{metric}'.")
        if len(x) < 2 * self.min_bucket:
            raise DecisionError(
                f"{len(x)} lambdas cannot hold two buckets of at least {self.min_bucket}."
            )

        root_sse = _segment_sse(x, y, self.segment)
        scale = max(float(np.dot(y, y)), np.finfo(float).tiny)
        if root_sse <= _FLAT_RTOL * scale:
            shape = "flat" if self.segment == 'constant' else "flat or linear"
            raise DecisionError(f"Loss curve is {shape}; no breakpoint to detect.")

        splits: List[_Split] = []
        self._grow(x, y, 0, len(x), 1, root_sse, splits)
        if not splits:
            raise DecisionError(
                f"No split reduces the SSE by at least cp={self.cp} of the total; "
                "the loss curve has no breakpoint."
            )

        splits.sort(key=lambda split: split.index)
        breakpoints = pd.DataFrame({
            'log_lambda': [x[split.index] for split in splits],
            'lambda': [np.exp(x[split.index]) for split in splits],
            'depth': [split.depth for split in splits],
            'gain': [split.gain for split in splits],
        })

        edges = [0] + [split.index for split in splits] + [len(x)]
        fitted = np.concatenate([
            _segment_fit(x[lo:hi], y[lo:hi], self.segment)
            for lo, hi in zip(edges[:-1], edges[1:])
        ])

        optimal_log_lambda = float(breakpoints['log_lambda'].iloc[0])
        return _DecisionResult(
            optimal_log_lambda=optimal_log_lambda,
            optimal_lambda=float(np.exp(optimal_log_lambda)),
            breakpoints=breakpoints,
            fitted=fitted,
            table=tuning_table,
            pvl_summary=pvl_summary
        )
