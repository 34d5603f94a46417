"""
Private utility classes and functions for PvlLASSO.

This module contains internal utilities used by PvlLASSO models.
"""

from ._exceptions import InputContractError, BoundaryDetectionError, DecisionError
from ._losses import _MSELoss, _BinaryCrossEntropyLoss, _CoxPartialLikelihoodLoss
from ._penalties import BasePenalty, PrevalenceL1Penalty
from ._prevalence import compute_prevalence, check_prevalence
from ._optimizer_spec import _OptimizerSpec
from ._cox_utils import split_survival_target, concordance_index

__all__ = [
    'InputContractError',
    'BoundaryDetectionError',
    'DecisionError',
    '_MSELoss',
    '_BinaryCrossEntropyLoss',
    '_CoxPartialLikelihoodLoss',
    'BasePenalty',
    'PrevalenceL1Penalty',
    'compute_prevalence',
    'check_prevalence',
    '_OptimizerSpec',
    'split_survival_target',
    'concordance_index',
]
