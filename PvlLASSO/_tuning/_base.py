"""
Automatic lambda selection.

This module provides the _LambdaTuner class that chains the lambda scan,
the tuning sweep and the inflection-point decision for an estimator.
"""

import numpy as np
from typing import Any

from ._scan import _ScanRange
from ._sweep import _TuningSweep
from ._decision import _InflectionDecision, _DecisionResult
from .._training import _LoggingCallback


class _LambdaTuner:
    """
    Select the regularization strength of an estimator.

    The estimator's own settings drive every stage: ``step``,
    ``search_bounds`` and ``n_bisections`` for the scan; ``split_ratio``,
    ``n_workers``, ``random_state`` and ``output_dir`` for the sweep;
    ``max_depth``, ``min_bucket``, ``cp`` and ``segment`` for the decision.
    Every fit runs on a fresh copy built from ``estimator.get_params()``.

    Parameters
    ----------
    estimator : _BasePvlLASSOModel
        The estimator to tune. It is not modified.
    verbose : bool, default=False
        Whether to print the stages.

    Attributes
    ----------
    lambda_range_ : ndarray
        Scanned log-lambdas.
    scan_ : _ScanRange
        The finished scan.
    sweep_ : _TuningSweep
        The finished sweep.
    """

    def __init__(self, estimator: Any, verbose: bool = False):
        """Initialize the tuner."""
        self.estimator = estimator
        self.verbose = verbose
        self.logger = _LoggingCallback()

        self.lambda_range_ = None
        self.scan_ = None
        self.sweep_ = None

    def tune(self, X: Any, y: Any, prevalence: np.ndarray) -> _DecisionResult:
        """
        Run scan, sweep and decision.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Scaled features.
        y : array-like
            Targets.
        prevalence : ndarray of shape (n_features,)
            Feature prevalence.

        Returns
        -------
        _DecisionResult
            The decision, including the tuning tables.
        """
        estimator = self.estimator
        estimator_cls = type(estimator)
        params = estimator.get_params()

        self.scan_ = _ScanRange(
            estimator_cls,
            params,
            step=estimator.step,
            search_bounds=estimator.search_bounds,
            n_bisections=estimator.n_bisections,
            verbose=self.verbose
        )
        self.lambda_range_ = self.scan_.scan(X, y, prevalence)

        self.sweep_ = _TuningSweep(
            estimator_cls,
            params,
            split_ratio=estimator.split_ratio,
            n_workers=estimator.n_workers,
            random_state=estimator.random_state,
            output_dir=estimator.output_dir,
            verbose=self.verbose
        )
        table, pvl_summary = self.sweep_.run(X, y, self.lambda_range_, prevalence)

        decision = _InflectionDecision(
            max_depth=estimator.max_depth,
            min_bucket=estimator.min_bucket,
            cp=estimator.cp,
            segment=estimator.segment
        ).decide(table, pvl_summary)

        if self.verbose:
            self.logger.log_stage(
                "Lambda decision",
                f"{len(decision.breakpoints)} breakpoint(s), optimal lambda = "
                f"{decision.optimal_lambda:.4g} (log = {decision.optimal_log_lambda:.3f})"
            )

        return decision
