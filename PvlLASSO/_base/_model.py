"""
Base PvlLASSO model implementation.

This module contains the core _BasePvlLASSOModel class that provides the
fundamental functionality for prevalence-weighted sparse linear models:
input validation, a penalized fit at a fixed lambda, automatic lambda
selection, prediction and reporting.
"""

import inspect
import warnings
import torch
import numpy as np
from sklearn.exceptions import ConvergenceWarning
from typing import Any, Dict, Optional, Tuple, Union

from ._linear import _LinearPredictor
from ._feature_selection import _FeatureSelectionMixin
from .._training import _PenalizedTrainer
from .._utils import (
    _OptimizerSpec,
    PrevalenceL1Penalty,
    InputContractError,
    compute_prevalence,
    check_prevalence,
)
from .._utils._visuals import plot_lollipop


class _BasePvlLASSOModel(_FeatureSelectionMixin):
    """Base class for prevalence-weighted LASSO models.

    The model is linear in the features. Its weights minimize the smooth task
    loss plus ``lambda * sum_j |w_j| / p_j`` where ``p_j`` is the prevalence
    of feature j, so rare features need a stronger signal to be selected.

    Parameters
    ----------
    lambda_opt : float, optional
        Regularization strength. If None, it is selected automatically by a
        lambda scan, a tuning sweep and an inflection-point decision.
    max_iter : int, default=10000
        Maximum number of proximal RMSprop iterations per fit.
    tol : float, default=1e-6
        Convergence tolerance.
    learning_rate : float, default=0.01
        RMSprop learning rate.
    alpha : float, default=0.99
        RMSprop smoothing constant.
    epsilon : float, default=1e-8
        RMSprop stability term.
    convergence : {'loss', 'weights'}, default='loss'
        Convergence criterion of each fit.
    selection_threshold : float, default=0.0
        Coefficients with absolute value at or below this count as dropped.
    step : int, default=30
        Number of lambdas in the automatically scanned range.
    search_bounds : tuple of float, default=(1e-10, 10.0)
        Interval searched for the lambda range boundaries.
    n_bisections : int, default=12
        Log-space bisections used to narrow each boundary.
    split_ratio : float, default=0.8
        Training fraction of the tuning sweep split. 1.0 disables the test
        partition.
    n_workers : int, default=1
        Worker processes of the tuning sweep.
    random_state : int, default=0
        Seed of the tuning sweep split.
    max_depth : int, default=2
        Depth of the change-point tree.
    min_bucket : int, default=3
        Minimum number of lambdas on each side of a split.
    cp : float, default=0.01
        Minimum SSE reduction of a split, relative to the root SSE.
    segment : {'linear', 'constant'}, default='linear'
        Segment model of the change-point tree.
    output_dir : str, optional
        Directory receiving the tuning tables as tab-delimited files.

    Attributes
    ----------
    _linear : _LinearPredictor
        The fitted linear predictor.
    penalty_ : PrevalenceL1Penalty
        Penalty of the last fit.
    lambda_opt_ : float
        Lambda used for the final fit.
    loss_history_ : list of float
        Penalized objective at every iteration of the final fit.
    converged_ : bool
        Whether the final fit met the convergence criterion.
    n_iter_ : int
        Number of iterations of the final fit.
    lambda_range_, tuning_table_, pvl_summary_, decision_
        Results of automatic lambda selection (None for a fixed lambda).

    Notes
    -----
    This is an internal class - use the public estimators instead.
    """

    def __init__(
        self,
        lambda_opt: Optional[float] = None,
        max_iter: int = 10000,
        tol: float = 1e-6,
        learning_rate: float = 0.01,
        alpha: float = 0.99,
        epsilon: float = 1e-8,
        convergence: str = 'loss',
        selection_threshold: float = 0.0,
        step: int = 30,
        search_bounds: Tuple[float, float] = (1e-10, 10.0),
        n_bisections: int = 12,
        split_ratio: float = 0.8,
        n_workers: int = 1,
        random_state: Optional[int] = 0,
        max_depth: int = 2,
        min_bucket: int = 3,
        cp: float = 0.01,
        segment: str = 'linear',
        output_dir: Optional[str] = None
    ):
        """Initialize the base PvlLASSO model."""
        if lambda_opt is not None and not lambda_opt >= 0:
            raise ValueError(f"Lambda must be non-negative, got {lambda_opt}")

        super().__init__(selection_threshold=selection_threshold)

        self.lambda_opt = lambda_opt

        self.max_iter = max_iter
        self.tol = tol
        self.learning_rate = learning_rate
        self.alpha = alpha
        self.epsilon = epsilon
        self.convergence = convergence
        self.optimizer_spec = _OptimizerSpec(
            max_iter=max_iter,
            tol=tol,
            learning_rate=learning_rate,
            alpha=alpha,
            epsilon=epsilon,
            convergence=convergence
        )

        # Lambda selection settings
        self.step = step
        self.search_bounds = search_bounds
        self.n_bisections = n_bisections
        self.split_ratio = split_ratio
        self.n_workers = n_workers
        self.random_state = random_state
        self.max_depth = max_depth
        self.min_bucket = min_bucket
        self.cp = cp
        self.segment = segment
        self.output_dir = output_dir

        # Training state
        self._linear = None
        self.penalty_ = None
        self.lambda_opt_ = None
        self.loss_history_ = None
        self.converged_ = None
        self.n_iter_ = None
        self.lambda_range_ = None
        self.tuning_table_ = None
        self.pvl_summary_ = None
        self.decision_ = None
        self._is_fitted = False

    def get_params(self) -> Dict[str, Any]:
        """Get the constructor parameters of this estimator.

        Returns
        -------
        dict
            Parameter names mapped to their values; ``type(self)(**params)``
            rebuilds an unfitted copy.
        """
        names = []
        for cls in type(self).__mro__:
            if not issubclass(cls, _BasePvlLASSOModel) or '__init__' not in vars(cls):
                continue
            for name, parameter in inspect.signature(cls.__init__).parameters.items():
                if name == 'self' or parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
                    continue
                if name not in names:
                    names.append(name)

        return {name: getattr(self, name) for name in names}

    def _validate_fit_inputs(
        self,
        X: Union[np.ndarray, Any],
        y: Union[np.ndarray, Any],
        X_raw: Optional[Union[np.ndarray, Any]] = None,
        prevalence: Optional[np.ndarray] = None
    ) -> Tuple[torch.Tensor, torch.Tensor, np.ndarray]:
        """Check the data contract and return tensors and prevalence.

        Raises
        ------
        InputContractError
            If any input is malformed. Nothing has been optimized yet.
        """
        self.feature_names_in_ = self._extract_feature_names(X)
        X_tensor, y_tensor = self.preprocess_data(X, y, fit=True)

        if X_raw is None and prevalence is None:
            raise InputContractError("Either X_raw or prevalence must be provided.")

        if X_raw is not None:
            raw_shape = np.shape(X_raw)
            if tuple(raw_shape) != tuple(X_tensor.shape):
                raise InputContractError(
                    f"X_raw has shape {raw_shape} but X has shape {tuple(X_tensor.shape)}."
                )
            prevalence = compute_prevalence(X_raw)

        prevalence = check_prevalence(prevalence, X_tensor.shape[1], self.feature_names_in_)
        return X_tensor, y_tensor, prevalence

    def _setup_model(self, input_dim: int) -> None:
        """Build a fresh linear predictor with zero weights."""
        self._linear = _LinearPredictor(
            input_dim=input_dim,
            output_dim=self._output_dim,
            bias=self._has_bias
        )

    def _fit_fixed_lambda(
        self,
        X_tensor: torch.Tensor,
        y_tensor: torch.Tensor,
        prevalence: np.ndarray,
        lambda_: float,
        verbose: bool = False,
        logging_interval: int = 100
    ) -> Dict[str, Any]:
        """Run one penalized fit from zero weights at ``lambda_``."""
        self.prevalence_ = prevalence
        self.penalty_ = PrevalenceL1Penalty(lambda_=lambda_, prevalence=prevalence)

        self._setup_model(X_tensor.shape[1])
        self._linear.initialize_bias(self.initial_bias(y_tensor))

        trainer = _PenalizedTrainer(
            model=self,
            spec=self.optimizer_spec,
            verbose=verbose,
            logging_interval=logging_interval
        )
        history = trainer.train(X_tensor, y_tensor)

        self.lambda_opt_ = float(lambda_)
        self.loss_history_ = history['loss_history']
        self.converged_ = history['converged']
        self.n_iter_ = history['n_iter']
        return history

    def fit(
        self,
        X: Union[np.ndarray, Any],
        y: Union[np.ndarray, Any],
        X_raw: Optional[Union[np.ndarray, Any]] = None,
        prevalence: Optional[np.ndarray] = None,
        verbose: bool = False,
        logging_interval: int = 100
    ) -> '_BasePvlLASSOModel':
        """Fit the prevalence-weighted LASSO model.

        When ``lambda_opt`` is None the regularization strength is selected
        first: the lambda range is scanned on all samples, every lambda of
        the range is fitted on a training split and evaluated on the held-out
        split, and the first breakpoint of the loss curve is chosen. The
        final fit then uses all samples.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Scaled features. Pandas column labels become feature ids.
        y : array-like
            Targets; shape depends on the task.
        X_raw : array-like of shape (n_samples, n_features), optional
            Raw non-negative counts used to compute feature prevalence.
        prevalence : array-like of shape (n_features,), optional
            Precomputed prevalence; used when X_raw is None.
        verbose : bool, default=False
            Whether to print training progress.
        logging_interval : int, default=100
            Frequency of progress updates during training.

        Returns
        -------
        self
            The fitted estimator.

        Raises
        ------
        InputContractError
            If the inputs violate the data contract.
        BoundaryDetectionError
            If automatic selection cannot bracket the lambda range.
        DecisionError
            If automatic selection finds no breakpoint.

        Examples
        --------
        >>> model.fit(X_scaled, y, X_raw=counts, verbose=True)
        >>> print(f"Selected {len(model.selected_features_)} features")
        """
        X_tensor, y_tensor, prevalence = self._validate_fit_inputs(X, y, X_raw, prevalence)

        lambda_ = self.lambda_opt
        if lambda_ is None:
            from .._tuning import _LambdaTuner

            tuner = _LambdaTuner(self, verbose=verbose)
            decision = tuner.tune(X, y, prevalence)

            self.lambda_range_ = tuner.lambda_range_
            self.tuning_table_ = decision.table
            self.pvl_summary_ = decision.pvl_summary
            self.decision_ = decision
            lambda_ = decision.optimal_lambda

        self._fit_fixed_lambda(
            X_tensor,
            y_tensor,
            prevalence,
            lambda_,
            verbose=verbose,
            logging_interval=logging_interval
        )

        if not self.converged_:
            warnings.warn(
                f"Fit at lambda={lambda_:.4g} did not converge within "
                f"{self.optimizer_spec.max_iter} iterations. Consider increasing "
                "max_iter or tol.",
                ConvergenceWarning
            )

        self._is_fitted = True
        return self

    def _check_is_fitted(self) -> None:
        if not self._is_fitted:
            raise ValueError("Model must be fitted before making predictions.")

    def decision_function(self, X: Union[np.ndarray, Any]) -> np.ndarray:
        """Linear predictor ``X @ coef_.T + intercept_``.

        Returns
        -------
        ndarray of shape (n_samples,) or (n_samples, n_classes)
        """
        self._check_is_fitted()
        with torch.no_grad():
            outputs = self._linear(self.preprocess_data(X, fit=False))
        outputs = outputs.cpu().numpy()
        return outputs[:, 0] if outputs.shape[1] == 1 else outputs

    def predict(self, X: Union[np.ndarray, Any]) -> np.ndarray:
        """Make predictions using the trained model.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Input features. Can be numpy array or pandas DataFrame.

        Returns
        -------
        ndarray of shape (n_samples,)
            Predicted values, labels or risk scores depending on the task.
        """
        self._check_is_fitted()
        with torch.no_grad():
            outputs = self._linear(self.preprocess_data(X, fit=False))
        return self.format_predictions(outputs)

    def evaluate_loss(self, X: Union[np.ndarray, Any], y: Union[np.ndarray, Any]) -> float:
        """Unpenalized task loss at the fitted weights.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Input features.
        y : array-like
            Targets; shape depends on the task.

        Returns
        -------
        float
            Mean loss over the samples.
        """
        self._check_is_fitted()
        X_tensor, y_tensor = self.preprocess_data(X, y, fit=False)
        with torch.no_grad():
            return float(self.criterion(self._linear(X_tensor), y_tensor))

    def summary(self) -> None:
        """
        Print a summary of the fit and the selected features.

        This method provides an overview of:
        - Regularization strength and how it was chosen
        - Optimization outcome
        - Selected features and their names
        """
        print("### PvlLASSO Model Summary ###\n")
        if not self._is_fitted:
            print("Model not fitted yet.")
            return

        print("=== Fit Summary ===")
        source = "fixed" if self.decision_ is None else "inflection point"
        print(f"  - Lambda ({source}): {self.lambda_opt_:.6g}")
        print(f"  - Iterations: {self.n_iter_} (converged: {self.converged_})")
        print(f"  - Final penalized loss: {self.loss_history_[-1]:.6f}")

        n_selected = len(self.selected_features_)
        print(f"\n=== Feature Selection Summary ===")
        print(f"  - Input features: {len(self.feature_names_in_)}")
        print(f"  - Selected features: {n_selected}")
        print(f"  - Selection ratio: {n_selected/len(self.feature_names_in_):.2%}")
        if n_selected:
            selected_pvl = self.prevalence_[self.selected_features_indices_]
            print(f"  - Prevalence of selected features: "
                  f"min {selected_pvl.min():.3f}, median {np.median(selected_pvl):.3f}")

        if 0 < n_selected <= 10:
            print(f"  - Selected feature names: {self.selected_features_}")

    def plot_coefficients(
        self,
        sorted_by_magnitude: bool = True,
        class_index: int = 0,
        figsize: Tuple[float, float] = (8, 6),
        save_path: Optional[str] = None
    ):
        """Lollipop chart of the selected coefficients.

        Parameters
        ----------
        sorted_by_magnitude : bool, default=True
            Sort the features by absolute coefficient.
        class_index : int, default=0
            Row of ``coef_`` plotted for multiclass models.
        figsize : tuple, default=(8, 6)
            Size of the figure.
        save_path : str, optional
            Path to save the plot.

        Returns
        -------
        matplotlib.axes.Axes
        """
        self._check_is_fitted()
        indices = self.selected_features_indices_
        if not indices:
            raise ValueError("No features selected; nothing to plot.")

        coefs = self.coef_
        if coefs.ndim == 2:
            coefs = coefs[class_index]

        return plot_lollipop(
            coefs[indices],
            [self.feature_names_in_[i] for i in indices],
            sorted_by_magnitude=sorted_by_magnitude,
            figsize=figsize,
            save_path=save_path
        )

    def plot_tuning(self, figsize: Tuple[float, float] = (15, 4)):
        """Plot the automatic lambda selection (loss curve, selection, prevalence).

        Returns
        -------
        matplotlib.figure.Figure
        """
        if self.decision_ is None:
            raise ValueError("No tuning results: the model was fitted with a fixed lambda.")
        return self.decision_.plot(figsize=figsize)
