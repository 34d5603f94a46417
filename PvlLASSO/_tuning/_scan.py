"""
Lambda range scan.

This module provides the _ScanRange class that locates the interval of
lambdas over which the prevalence-weighted LASSO goes from keeping every
feature to dropping all of them.
"""

import math
import numpy as np
from typing import Any, Callable, Dict, Tuple

from ._records import _fit_at
from .._utils import BoundaryDetectionError
from .._training import _LoggingCallback


class _ScanRange:
    """
    Scan for the lower and upper lambda boundaries.

    The lower boundary marks where the model starts selecting fewer features
    than the unregularized fit ("lasso starts filtering"); the upper boundary
    is the smallest lambda at which it selects none ("lasso drops all
    features"). Both are bracketed on a geometric grid with one point per
    decade, then narrowed by bisection in log space. The lower boundary is
    the left end of its final bracket, so the full feature set is still
    selected there; the upper boundary is the right end of its bracket.

    Parameters
    ----------
    estimator_cls : type
        Estimator class to fit.
    params : dict
        Constructor parameters of the estimator (``lambda_opt`` is
        overridden at every fit).
    step : int, default=30
        Number of log-lambdas returned.
    search_bounds : tuple of float, default=(1e-10, 10.0)
        Interval searched for both boundaries.
    n_bisections : int, default=12
        Bisections applied to each bracket.
    verbose : bool, default=False
        Whether to print the boundaries found.

    Attributes
    ----------
    n_full_ : int
        Features selected at lambda = 0.
    lower_, upper_ : float
        The boundaries found.
    n_selected_ : dict
        Number of selected features for every lambda fitted during the scan.

    Examples
    --------
    >>> scan = _ScanRange(PvlLASSOClassifier, params, step=30)
    >>> log_lambdas = scan.scan(X_scaled, y, prevalence)
    """

    def __init__(
        self,
        estimator_cls: type,
        params: Dict[str, Any],
        step: int = 30,
        search_bounds: Tuple[float, float] = (1e-10, 10.0),
        n_bisections: int = 12,
        verbose: bool = False
    ):
        """Initialize the lambda range scan."""
        if int(step) != step or step < 2:
            raise ValueError(f"Step must be an integer of at least 2, got {step}")

        low, high = search_bounds
        if not 0 < low < high or not math.isfinite(high):
            raise ValueError(
                f"Search bounds must satisfy 0 < lower < upper, got {search_bounds}"
            )

        if int(n_bisections) != n_bisections or n_bisections < 0:
            raise ValueError("Number of bisections must be a non-negative integer.")

        self.estimator_cls = estimator_cls
        self.params = params
        self.step = int(step)
        self.search_bounds = (float(low), float(high))
        self.n_bisections = int(n_bisections)
        self.verbose = verbose
        self.logger = _LoggingCallback()

        self.n_full_ = None
        self.lower_ = None
        self.upper_ = None
        self.n_selected_ = {}

    def _count(self, lambda_: float) -> int:
        """Selected features at ``lambda_``; fits are cached per lambda."""
        if lambda_ not in self.n_selected_:
            estimator = _fit_at(
                self.estimator_cls, self.params, lambda_, self._X, self._y, self._prevalence
            )
            self.n_selected_[lambda_] = len(estimator.selected_features_indices_)
        return self.n_selected_[lambda_]

    def _grid(self) -> np.ndarray:
        log_low, log_high = np.log(self.search_bounds)
        n_grid = int(math.ceil((log_high - log_low) / math.log(10))) + 1
        return np.exp(np.linspace(log_low, log_high, n_grid))

    def _boundary(
        self,
        predicate: Callable[[int], bool],
        name: str,
        last_failing: bool = False
    ) -> float:
        """Bracket the smallest lambda satisfying ``predicate``.

        The selection count is assumed non-increasing in lambda, so the
        predicate holds on a right-unbounded interval. Returns the right end
        of the final bracket, or its left end (the largest lambda found where
        the predicate fails) if ``last_failing``.
        """
        grid = self._grid()

        if predicate(self._count(grid[0])):
            raise BoundaryDetectionError(
                f"{name} boundary lies below the lower search bound "
                f"{self.search_bounds[0]:.3g}; decrease search_bounds[0]."
            )

        hit = None
        for index, lambda_ in enumerate(grid[1:], start=1):
            if predicate(self._count(lambda_)):
                hit = index
                break

        if hit is None:
            raise BoundaryDetectionError(
                f"{name} boundary not reached at the upper search bound "
                f"{self.search_bounds[1]:.3g}; increase search_bounds[1]."
            )

        low, high = grid[hit - 1], grid[hit]
        for _ in range(self.n_bisections):
            middle = float(np.exp(0.5 * (np.log(low) + np.log(high))))
            if predicate(self._count(middle)):
                high = middle
            else:
                low = middle

        return float(low) if last_failing else float(high)

    def scan(
        self,
        X: np.ndarray,
        y: np.ndarray,
        prevalence: np.ndarray
    ) -> np.ndarray:
        """
        Compute the scanned range of log-lambdas.

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            Scaled features.
        y : ndarray
            Targets.
        prevalence : ndarray of shape (n_features,)
            Feature prevalence.

        Returns
        -------
        ndarray of shape (step,)
            Strictly increasing log-lambdas from the lower to the upper
            boundary.

        Raises
        ------
        BoundaryDetectionError
            If the unregularized fit selects nothing, a boundary cannot be
            bracketed inside the search bounds, or the boundaries coincide.
        """
        self._X, self._y, self._prevalence = X, y, prevalence
        self.n_selected_ = {}

        try:
            self.n_full_ = self._count(0.0)
            if self.n_full_ == 0:
                raise BoundaryDetectionError(
                    "The unregularized fit selects no feature; no lambda range to scan."
                )

            self.lower_ = self._boundary(
                lambda n: n < self.n_full_, "Lower", last_failing=True
            )
            self.upper_ = self._boundary(lambda n: n == 0, "Upper")
        finally:
            self._X = self._y = self._prevalence = None

        if self.upper_ <= self.lower_:
            raise BoundaryDetectionError(
                f"Upper boundary {self.upper_:.3g} does not exceed lower boundary "
                f"{self.lower_:.3g}."
            )

        if self.verbose:
            self.logger.log_stage(
                "Lambda scan",
                f"{len(self.n_selected_)} fits, {self.n_full_} features at lambda=0, "
                f"range [{self.lower_:.4g}, {self.upper_:.4g}]"
            )

        return np.linspace(np.log(self.lower_), np.log(self.upper_), self.step)
