"""Survival data utilities for the proportional-hazards task.

This module parses (durations, events) targets and computes Harrell's
concordance index for fitted risk scores.
"""

import numpy as np
from numpy import ndarray
from typing import Tuple

from ._exceptions import InputContractError


def split_survival_target(target) -> Tuple[ndarray, ndarray]:
    """
    Split a survival target into durations and event indicators.

    Parameters
    ----------
    target : array-like of shape (n_samples, 2) or (2, n_samples)
        Columns are (durations, events). A (2, n) array is transposed.

    Returns
    -------
    tuple of ndarray
        ``(durations, events)``, both of shape (n_samples,).

    Raises
    ------
    InputContractError
        If the target does not have two columns, durations are negative or
        non-finite, or events are not 0/1.
    """
    target = np.asarray(target, dtype=np.float64)
    if target.ndim != 2:
        raise InputContractError(
            "Target should be a 2D array with columns (durations, events). "
            f"Got shape: {target.shape}"
        )

    if target.shape[0] == 2 and target.shape[1] != 2:
        target = target.T

    if target.shape[1] != 2:
        raise InputContractError(
            "Target must have exactly two columns: (durations, events). "
            f"Got shape: {target.shape}"
        )

    durations, events = target[:, 0], target[:, 1]
    if not np.all(np.isfinite(durations)) or (durations < 0).any():
        raise InputContractError("Durations must be finite and non-negative.")
    if not np.isin(events, (0.0, 1.0)).all():
        raise InputContractError("Event indicators must be 0 (censored) or 1 (event).")

    return durations, events


def concordance_index(
    times: ndarray,
    events: ndarray,
    predictions: ndarray
) -> float:
    """
    Compute Harrell's concordance index (C-index) for survival data.

    A pair (i, j) is comparable when sample i has an observed event before
    time j, or at the same time as a censored sample j. The pair is
    concordant when sample i has the higher predicted risk.

    Parameters
    ----------
    times : ndarray
        Survival times of shape (n_samples,).
    events : ndarray
        Event indicators of shape (n_samples,), 1 for event and 0 for
        censoring.
    predictions : ndarray
        Risk scores of shape (n_samples,). Higher means shorter survival.

    Returns
    -------
    float
        Fraction of comparable pairs that are concordant, ties in the
        predictions counting one half. 0.0 when no pair is comparable.
    """
    times = np.asarray(times, dtype=np.float64)
    events = np.asarray(events).astype(bool)
    predictions = np.asarray(predictions, dtype=np.float64)

    event_idx = np.flatnonzero(events)
    t_i = times[event_idx][:, None]
    t_j = times[None, :]

    comparable = (t_i < t_j) | ((t_i == t_j) & ~events[None, :])
    comparable[np.arange(event_idx.size), event_idx] = False

    n_comparable = comparable.sum()
    if n_comparable == 0:
        return 0.0

    p_i = predictions[event_idx][:, None]
    p_j = predictions[None, :]
    score = np.where(p_i > p_j, 1.0, 0.0) + np.where(p_i == p_j, 0.5, 0.0)

    return float(score[comparable].sum() / n_comparable)
