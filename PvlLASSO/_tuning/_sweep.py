"""
Tuning sweep over a lambda range.

This module provides the _TuningSweep class that fits the estimator at every
lambda of a range on one training split and measures the held-out loss.
Lambdas are independent jobs and may run in worker processes.
"""

import numpy as np
import pandas as pd
import torch
from multiprocessing import Pool
from sklearn.model_selection import train_test_split
from typing import Any, Dict, Optional, Tuple

from ._records import _LambdaRecord, _fit_at, _records_to_tables, _write_tables
from .._utils import InputContractError, check_prevalence
from .._training import _LoggingCallback


# Read-only data installed in each worker process
_payload = None


def _init_worker(payload):
    global _payload
    _payload = payload
    torch.set_num_threads(1)


def _worker_job(log_lambda):
    return _evaluate_lambda(_payload, log_lambda)


def _evaluate_lambda(payload: Dict[str, Any], log_lambda: float) -> _LambdaRecord:
    """Fit at one lambda and evaluate on both partitions."""
    lambda_ = float(np.exp(log_lambda))
    estimator = _fit_at(
        payload['estimator_cls'],
        payload['params'],
        lambda_,
        payload['X_train'],
        payload['y_train'],
        payload['prevalence']
    )

    train_loss = estimator.evaluate_loss(payload['X_train'], payload['y_train'])
    if payload['X_test'] is not None:
        test_loss = estimator.evaluate_loss(payload['X_test'], payload['y_test'])
        loss = test_loss
    else:
        test_loss = float('nan')
        loss = train_loss

    selected = estimator.selected_features_indices_
    return _LambdaRecord(
        log_lambda=float(log_lambda),
        lambda_=lambda_,
        loss=loss,
        train_loss=train_loss,
        test_loss=test_loss,
        n_selected=len(selected),
        converged=bool(estimator.converged_),
        n_iter=int(estimator.n_iter_),
        selected_prevalence=tuple(payload['prevalence'][selected].tolist())
    )


class _TuningSweep:
    """
    Fit and evaluate the estimator at every lambda of a range.

    One train/test partition is drawn for the whole sweep, stratified on the
    class labels for classification and on the event indicator for survival
    data, so results are comparable across lambdas and reproducible for a
    given ``random_state``.

    Parameters
    ----------
    estimator_cls : type
        Estimator class to fit.
    params : dict
        Constructor parameters of the estimator.
    split_ratio : float, default=0.8
        Fraction of samples in the training partition. 1.0 trains and
        evaluates on all samples.
    n_workers : int, default=1
        Number of worker processes. 1 runs every fit in this process.
    random_state : int, default=0
        Seed of the partition.
    output_dir : str, optional
        If given, both tables are written there as tab-delimited files once
        the sweep is complete.
    verbose : bool, default=False
        Whether to print one line per lambda.

    Attributes
    ----------
    train_indices_, test_indices_ : ndarray
        Sample indices of each partition (``test_indices_`` is empty when
        ``split_ratio == 1``).
    records_ : list of _LambdaRecord
        Sweep results sorted by lambda.
    """

    def __init__(
        self,
        estimator_cls: type,
        params: Dict[str, Any],
        split_ratio: float = 0.8,
        n_workers: int = 1,
        random_state: Optional[int] = 0,
        output_dir: Optional[str] = None,
        verbose: bool = False
    ):
        """Initialize the tuning sweep."""
        if not 0 < split_ratio <= 1:
            raise ValueError(f"Split ratio must lie in (0, 1], got {split_ratio}")
        if int(n_workers) != n_workers or n_workers < 1:
            raise ValueError(f"Number of workers must be a positive integer, got {n_workers}")

        self.estimator_cls = estimator_cls
        self.params = params
        self.split_ratio = split_ratio
        self.n_workers = int(n_workers)
        self.random_state = random_state
        self.output_dir = output_dir
        self.verbose = verbose
        self.logger = _LoggingCallback()

        self.train_indices_ = None
        self.test_indices_ = None
        self.records_ = None

    @staticmethod
    def _check_lambda_range(lambda_range) -> np.ndarray:
        log_lambdas = np.asarray(lambda_range, dtype=np.float64)
        if log_lambdas.ndim != 1 or log_lambdas.size == 0:
            raise InputContractError("Lambda range must be a non-empty 1-D sequence of log-lambdas.")
        if not np.all(np.isfinite(log_lambdas)):
            raise InputContractError("Lambda range contains non-finite values.")
        if np.any(np.diff(log_lambdas) <= 0):
            raise InputContractError("Lambda range must be strictly increasing.")
        return log_lambdas

    def _split(self, estimator, y: np.ndarray, n_samples: int) -> Tuple[np.ndarray, np.ndarray]:
        indices = np.arange(n_samples)
        if self.split_ratio == 1:
            return indices, np.array([], dtype=int)

        strata = estimator.split_strata(y)
        if strata is not None:
            levels, counts = np.unique(strata, return_counts=True)
            small = levels[counts < 2]
            if small.size:
                raise InputContractError(
                    f"Strata {small.tolist()} have fewer than 2 samples; "
                    "cannot stratify the train/test split."
                )

        try:
            train, test = train_test_split(
                indices,
                train_size=self.split_ratio,
                random_state=self.random_state,
                shuffle=True,
                stratify=strata
            )
        except ValueError as exc:
            raise InputContractError(f"Cannot split the samples: {exc}") from exc

        return np.sort(train), np.sort(test)

    def run(
        self,
        X: np.ndarray,
        y: np.ndarray,
        lambda_range,
        prevalence: np.ndarray
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """
        Run the sweep.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Scaled features.
        y : array-like
            Targets.
        lambda_range : array-like
            Strictly increasing log-lambdas.
        prevalence : ndarray of shape (n_features,)
            Feature prevalence computed once from all samples.

        Returns
        -------
        tuning_table : DataFrame
            One row per lambda, sorted by ascending lambda.
        pvl_summary : DataFrame
            One row per lambda and prevalence bucket.

        Raises
        ------
        InputContractError
            If the data, the prevalence or the lambda range are invalid.
            Raised before any fit.
        """
        log_lambdas = self._check_lambda_range(lambda_range)

        # Validate everything up front on a throwaway estimator
        estimator = self.estimator_cls(**self.params)
        X_tensor, _ = estimator.preprocess_data(X, y, fit=True)
        prevalence = check_prevalence(
            prevalence, X_tensor.shape[1], estimator._extract_feature_names(X)
        )

        X = X_tensor.numpy()
        y = estimator.target_rows(y)
        self.train_indices_, self.test_indices_ = self._split(estimator, y, X.shape[0])
        has_test = self.test_indices_.size > 0

        payload = {
            'estimator_cls': self.estimator_cls,
            'params': self.params,
            'X_train': X[self.train_indices_],
            'y_train': y[self.train_indices_],
            'X_test': X[self.test_indices_] if has_test else None,
            'y_test': y[self.test_indices_] if has_test else None,
            'prevalence': prevalence,
        }

        if self.verbose:
            self.logger.log_stage(
                "Tuning sweep",
                f"{len(log_lambdas)} lambdas, {len(self.train_indices_)} train / "
                f"{len(self.test_indices_)} test samples, {self.n_workers} worker(s)"
            )

        if self.n_workers == 1:
            records = []
            for log_lambda in log_lambdas:
                records.append(_evaluate_lambda(payload, log_lambda))
                self._log_record(records[-1])
        else:
            records = []
            with Pool(
                processes=self.n_workers,
                initializer=_init_worker,
                initargs=(payload,)
            ) as pool:
                for record in pool.imap_unordered(_worker_job, log_lambdas):
                    records.append(record)
                    self._log_record(record)

        self.records_ = sorted(records, key=lambda record: record.lambda_)
        table, pvl_summary = _records_to_tables(self.records_)

        if self.output_dir is not None:
            _write_tables(table, pvl_summary, self.output_dir)

        return table, pvl_summary

    def _log_record(self, record: _LambdaRecord) -> None:
        if not self.verbose:
            return
        flag = "" if record.converged else " (not converged)"
        print(
            f"  log(lambda) = {record.log_lambda:8.3f}: loss = {record.loss:.6f}, "
            f"features = {record.n_selected}{flag}"
        )
