"""Functional interface to prevalence-weighted feature selection.

This module exposes each stage of automatic lambda selection as a function,
so a caller can run the scan, the sweep and the decision separately, inspect
or persist the intermediate tables, and fit the final model at the chosen
lambda.

Examples
--------
>>> log_lambdas = scan_lambda_range(X_scaled, X_raw, labels, task='binary')
>>> table, pvl_summary = tuning_sweep(X_scaled, X_raw, labels, log_lambdas,
...                                   task='binary', n_workers=4)
>>> decision = lambda_decision(table, pvl_summary)
>>> model = make_estimator('binary', lambda_opt=decision.optimal_lambda)
>>> model.fit(X_scaled, labels, X_raw=X_raw)
"""

import numpy as np
import pandas as pd
from typing import Any, Optional, Tuple

from .classifier import PvlLASSOClassifier
from .regressor import PvlLASSORegressor
from .cox import PvlLASSOCox
from ._tuning import _ScanRange, _TuningSweep, _InflectionDecision, _DecisionResult

_TASK_ALIASES = {
    'binary': 'binary',
    'multiclass': 'multiclass',
    'regression': 'regression',
    'time-to-event': 'time-to-event',
    'survival': 'time-to-event',
    'cox': 'time-to-event',
}


def make_estimator(task: str, **params):
    """
    Build the estimator of a task.

    Parameters
    ----------
    task : {'binary', 'multiclass', 'regression', 'time-to-event'}
        Task selector; 'survival' and 'cox' are aliases of 'time-to-event'.
    **params
        Estimator parameters (``lambda_opt``, ``max_iter``, ``control``, ...).

    Returns
    -------
    PvlLASSOClassifier, PvlLASSORegressor or PvlLASSOCox
    """
    if task not in _TASK_ALIASES:
        raise ValueError(
            f"Unknown task {task!r}. Expected one of {sorted(_TASK_ALIASES)}."
        )

    task = _TASK_ALIASES[task]
    if task in ('binary', 'multiclass'):
        return PvlLASSOClassifier(task=task, **params)
    if task == 'regression':
        return PvlLASSORegressor(**params)
    return PvlLASSOCox(**params)


def _prepare(task: str, X_scaled: Any, X_raw: Any, y: Any, params: dict):
    """Validate the inputs on a fresh estimator and compute prevalence."""
    estimator = make_estimator(task, **params)
    _, _, prevalence = estimator._validate_fit_inputs(X_scaled, y, X_raw=X_raw)
    return estimator, prevalence


def scan_lambda_range(
    X_scaled: Any,
    X_raw: Any,
    y: Any,
    task: str = 'binary',
    step: int = 30,
    search_bounds: Tuple[float, float] = (1e-10, 10.0),
    n_bisections: int = 12,
    verbose: bool = False,
    **estimator_params
) -> np.ndarray:
    """
    Find the range of log-lambdas worth sweeping.

    Parameters
    ----------
    X_scaled : array-like of shape (n_samples, n_features)
        Scaled features.
    X_raw : array-like of shape (n_samples, n_features)
        Raw non-negative counts; only their prevalence is used.
    y : array-like
        Targets of the task.
    task : str, default='binary'
        Task selector, see :func:`make_estimator`.
    step : int, default=30
        Number of log-lambdas returned (at least 2).
    search_bounds : tuple of float, default=(1e-10, 10.0)
        Interval searched for the boundaries.
    n_bisections : int, default=12
        Bisections narrowing each boundary.
    verbose : bool, default=False
        Whether to print the boundaries.
    **estimator_params
        Estimator parameters used for every fit.

    Returns
    -------
    ndarray of shape (step,)
        Evenly spaced, strictly increasing log-lambdas from the lambda where
        selection starts to drop features to the lambda where it drops all.

    Raises
    ------
    InputContractError
        If the inputs are malformed.
    BoundaryDetectionError
        If a boundary cannot be bracketed inside ``search_bounds``.
    """
    estimator, prevalence = _prepare(task, X_scaled, X_raw, y, estimator_params)
    scan = _ScanRange(
        type(estimator),
        estimator.get_params(),
        step=step,
        search_bounds=search_bounds,
        n_bisections=n_bisections,
        verbose=verbose
    )
    return scan.scan(X_scaled, y, prevalence)


def tuning_sweep(
    X_scaled: Any,
    X_raw: Any,
    y: Any,
    lambda_range: Any,
    task: str = 'binary',
    split_ratio: float = 0.8,
    n_workers: int = 1,
    random_state: Optional[int] = 0,
    output_dir: Optional[str] = None,
    verbose: bool = False,
    **estimator_params
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Fit and evaluate the estimator at every lambda of a range.

    Parameters
    ----------
    X_scaled : array-like of shape (n_samples, n_features)
        Scaled features.
    X_raw : array-like of shape (n_samples, n_features)
        Raw non-negative counts; prevalence is computed once from all rows.
    y : array-like
        Targets of the task.
    lambda_range : array-like
        Strictly increasing log-lambdas, typically from
        :func:`scan_lambda_range`.
    task : str, default='binary'
        Task selector, see :func:`make_estimator`.
    split_ratio : float, default=0.8
        Training fraction; 1.0 evaluates on the training samples.
    n_workers : int, default=1
        Worker processes.
    random_state : int, default=0
        Seed of the train/test partition.
    output_dir : str, optional
        Directory receiving ``tuning_result.tsv`` and ``pvl_summary.tsv``.
    verbose : bool, default=False
        Whether to print one line per lambda.
    **estimator_params
        Estimator parameters used for every fit.

    Returns
    -------
    tuning_table : DataFrame
        One row per lambda, sorted by ascending lambda.
    pvl_summary : DataFrame
        One row per lambda and prevalence bucket.
    """
    estimator, prevalence = _prepare(task, X_scaled, X_raw, y, estimator_params)
    sweep = _TuningSweep(
        type(estimator),
        estimator.get_params(),
        split_ratio=split_ratio,
        n_workers=n_workers,
        random_state=random_state,
        output_dir=output_dir,
        verbose=verbose
    )
    return sweep.run(X_scaled, y, lambda_range, prevalence)


def lambda_decision(
    tuning_table: pd.DataFrame,
    pvl_summary: Optional[pd.DataFrame] = None,
    max_depth: int = 2,
    min_bucket: int = 3,
    cp: float = 0.01,
    segment: str = 'linear'
) -> _DecisionResult:
    """
    Pick the lambda at the first breakpoint of the loss curve.

    Parameters
    ----------
    tuning_table : DataFrame
        Output of :func:`tuning_sweep`, sorted by ascending lambda.
    pvl_summary : DataFrame, optional
        Prevalence summary of the same sweep, used for plotting.
    max_depth : int, default=2
        Depth of the change-point tree.
    min_bucket : int, default=3
        Minimum number of lambdas on each side of a split.
    cp : float, default=0.01
        Minimum relative SSE reduction of a split.
    segment : {'linear', 'constant'}, default='linear'
        Model fitted to each segment.

    Returns
    -------
    _DecisionResult
        ``optimal_lambda``, ``optimal_log_lambda``, the breakpoints, the
        segmented fit and a ``plot()`` method.

    Raises
    ------
    DecisionError
        If the curve has no breakpoint.
    """
    decision = _InflectionDecision(
        max_depth=max_depth,
        min_bucket=min_bucket,
        cp=cp,
        segment=segment
    )
    return decision.decide(tuning_table, pvl_summary)
