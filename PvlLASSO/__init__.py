"""
PvlLASSO: Prevalence-Weighted LASSO Feature Selection

PvlLASSO selects features of sparse, high-dimensional count data (such as
microbiome or gene-family abundances) with a LASSO penalty weighted by the
inverse prevalence of each feature: rare features need a stronger signal to
be selected. The regularization strength is chosen at the first inflection
point of the held-out loss along a scanned lambda range.

Key Features:
- Binary, multiclass (one-vs-rest), regression and Cox proportional-hazards
  tasks
- Proximal RMSprop optimization producing exact zeros
- Automatic lambda range scan, parallel tuning sweep and change-point
  decision
- Tab-delimited tuning tables and diagnostic plots

Examples:
    >>> from PvlLASSO import PvlLASSOClassifier
    >>> model = PvlLASSOClassifier(task='binary')
    >>> model.fit(X_scaled, labels, X_raw=counts)
    >>> print(f"Selected {len(model.selected_features_)} features")
    >>> model.feature_table_.query("selected")
"""

# Main estimators - public API
from .classifier import PvlLASSOClassifier
from .regressor import PvlLASSORegressor
from .cox import PvlLASSOCox
from .pipeline import make_estimator, scan_lambda_range, tuning_sweep, lambda_decision
from ._utils import (
    InputContractError,
    BoundaryDetectionError,
    DecisionError,
    compute_prevalence,
)

__version__ = "0.1.0"

__all__ = [
    'PvlLASSOClassifier',
    'PvlLASSORegressor',
    'PvlLASSOCox',
    'make_estimator',
    'scan_lambda_range',
    'tuning_sweep',
    'lambda_decision',
    'compute_prevalence',
    'InputContractError',
    'BoundaryDetectionError',
    'DecisionError',
]
