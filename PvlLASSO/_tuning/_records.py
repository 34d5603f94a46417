"""
Per-lambda fit records and the tables built from them.

Every tuning job fits one estimator at one lambda and returns an immutable
_LambdaRecord. Records are only combined once all jobs are done.
"""

import os
import warnings
import numpy as np
import pandas as pd
from dataclasses import dataclass
from sklearn.exceptions import ConvergenceWarning
from typing import Any, Dict, Iterable, Sequence, Tuple

# Upper edges of the prevalence buckets; the first bucket is (0, 0.1]
PVL_BUCKET_EDGES = (0.0, 0.1, 0.25, 0.5, 0.75, 1.0)

TUNING_COLUMNS = [
    'log_lambda', 'lambda', 'loss', 'train_loss', 'test_loss',
    'n_selected', 'converged', 'n_iter',
    'pvl_min', 'pvl_median', 'pvl_mean', 'pvl_max'
]
PVL_SUMMARY_COLUMNS = ['log_lambda', 'lambda', 'bucket', 'n_features', 'fraction']


def _fit_at(
    estimator_cls: type,
    params: Dict[str, Any],
    lambda_: float,
    X: np.ndarray,
    y: np.ndarray,
    prevalence: np.ndarray
):
    """Fit a fresh estimator at a fixed lambda.

    Non-convergence is recorded on the estimator (``converged_``) instead of
    being reported as a warning.
    """
    estimator = estimator_cls(**{**params, 'lambda_opt': float(lambda_)})
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', ConvergenceWarning)
        estimator.fit(X, y, prevalence=prevalence)
    return estimator


@dataclass(frozen=True)
class _LambdaRecord:
    """Outcome of one fit of a tuning sweep.

    Attributes
    ----------
    log_lambda : float
        Natural log of the lambda of the fit.
    lambda_ : float
        The lambda of the fit.
    loss : float
        Unpenalized loss on the evaluation partition (test if any, else train).
    train_loss, test_loss : float
        Unpenalized loss on each partition; ``test_loss`` is NaN without a
        test partition.
    n_selected : int
        Number of selected features.
    converged : bool
        Whether the fit met its convergence criterion.
    n_iter : int
        Number of optimizer iterations.
    selected_prevalence : tuple of float
        Prevalence of every selected feature.
    """

    log_lambda: float
    lambda_: float
    loss: float
    train_loss: float
    test_loss: float
    n_selected: int
    converged: bool
    n_iter: int
    selected_prevalence: Tuple[float, ...] = ()

    def to_row(self) -> Dict[str, Any]:
        pvl = np.asarray(self.selected_prevalence, dtype=np.float64)
        has_pvl = pvl.size > 0
        return {
            'log_lambda': self.log_lambda,
            'lambda': self.lambda_,
            'loss': self.loss,
            'train_loss': self.train_loss,
            'test_loss': self.test_loss,
            'n_selected': self.n_selected,
            'converged': self.converged,
            'n_iter': self.n_iter,
            'pvl_min': pvl.min() if has_pvl else np.nan,
            'pvl_median': np.median(pvl) if has_pvl else np.nan,
            'pvl_mean': pvl.mean() if has_pvl else np.nan,
            'pvl_max': pvl.max() if has_pvl else np.nan,
        }

    def pvl_rows(self, edges: Sequence[float] = PVL_BUCKET_EDGES) -> list:
        """One row per prevalence bucket with the count of selected features."""
        buckets = pd.cut(pd.Series(self.selected_prevalence, dtype=np.float64), bins=list(edges))
        counts = buckets.value_counts(sort=False)
        return [
            {
                'log_lambda': self.log_lambda,
                'lambda': self.lambda_,
                'bucket': str(bucket),
                'n_features': int(count),
                'fraction': count / self.n_selected if self.n_selected else 0.0,
            }
            for bucket, count in counts.items()
        ]


def _records_to_tables(
    records: Iterable[_LambdaRecord],
    edges: Sequence[float] = PVL_BUCKET_EDGES
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Build the tuning table and the prevalence summary, sorted by lambda."""
    records = sorted(records, key=lambda record: record.lambda_)

    table = pd.DataFrame([record.to_row() for record in records], columns=TUNING_COLUMNS)
    pvl_summary = pd.DataFrame(
        [row for record in records for row in record.pvl_rows(edges)],
        columns=PVL_SUMMARY_COLUMNS
    )
    return table, pvl_summary


def _write_tables(
    table: pd.DataFrame,
    pvl_summary: pd.DataFrame,
    output_dir: str
) -> Tuple[str, str]:
    """Write both tables as tab-delimited files.

    Each file is written under a temporary name and then moved into place,
    so an interrupted write never leaves a truncated table behind.
    """
    os.makedirs(output_dir, exist_ok=True)

    paths = []
    for frame, name in ((table, 'tuning_result.tsv'), (pvl_summary, 'pvl_summary.tsv')):
        path = os.path.join(output_dir, name)
        frame.to_csv(path + '.tmp', sep='\t', index=False)
        os.replace(path + '.tmp', path)
        paths.append(path)

    return paths[0], paths[1]
