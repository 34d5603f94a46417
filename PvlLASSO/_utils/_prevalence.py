"""Feature prevalence utilities.

Prevalence is the fraction of samples in which a feature has a nonzero raw
count. It weights the L1 penalty, so it must be strictly positive for every
feature that enters a fit.
"""

import numpy as np
from typing import Any, List, Optional, Sequence, Union

from ._exceptions import InputContractError


def compute_prevalence(X_raw: Union[np.ndarray, Any]) -> np.ndarray:
    """
    Compute per-feature prevalence from a raw count matrix.

    Parameters
    ----------
    X_raw : array-like of shape (n_samples, n_features)
        Non-negative raw counts. Pandas DataFrames are accepted.

    Returns
    -------
    ndarray of shape (n_features,)
        Fraction of samples with a nonzero count for each feature.

    Raises
    ------
    InputContractError
        If the matrix is not 2-D, is empty, or holds negative or
        non-finite values.

    Examples
    --------
    >>> compute_prevalence(np.array([[0, 3], [1, 0], [2, 5]]))
    array([0.66666667, 0.66666667])
    """
    counts = np.asarray(X_raw, dtype=np.float64)
    if counts.ndim != 2:
        raise InputContractError(
            f"Raw count matrix must be 2-D (n_samples, n_features). Got shape: {counts.shape}"
        )
    if counts.shape[0] == 0 or counts.shape[1] == 0:
        raise InputContractError("Raw count matrix is empty.")
    if not np.all(np.isfinite(counts)):
        raise InputContractError("Raw count matrix contains non-finite values.")
    if (counts < 0).any():
        raise InputContractError("Raw count matrix contains negative counts.")

    return (counts > 0).mean(axis=0)


def check_prevalence(
    prevalence: Union[np.ndarray, Sequence[float]],
    n_features: int,
    feature_names: Optional[List[str]] = None
) -> np.ndarray:
    """
    Validate a prevalence vector against the design matrix.

    Parameters
    ----------
    prevalence : array-like of shape (n_features,)
        Per-feature prevalence values.
    n_features : int
        Number of columns of the design matrix.
    feature_names : list of str, optional
        Feature identifiers used in error messages.

    Returns
    -------
    ndarray of shape (n_features,)
        The prevalence vector as float64.

    Raises
    ------
    InputContractError
        If the length does not match or any value lies outside (0, 1].
    """
    prevalence = np.asarray(prevalence, dtype=np.float64).reshape(-1)
    if prevalence.shape[0] != n_features:
        raise InputContractError(
            f"Prevalence has {prevalence.shape[0]} entries but the design matrix "
            f"has {n_features} features."
        )
    if not np.all(np.isfinite(prevalence)):
        raise InputContractError("Prevalence contains non-finite values.")

    zero = np.flatnonzero(prevalence <= 0)
    if zero.size:
        names = feature_names or [f"feature_{i}" for i in range(n_features)]
        shown = ", ".join(str(names[i]) for i in zero[:10])
        more = f" (and {zero.size - 10} more)" if zero.size > 10 else ""
        raise InputContractError(
            f"{zero.size} feature(s) have zero prevalence and must be removed "
            f"before fitting: {shown}{more}"
        )
    if (prevalence > 1).any():
        raise InputContractError("Prevalence values must not exceed 1.")

    return prevalence
