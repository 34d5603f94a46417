"""
Private task-specific mixins for PvlLASSO models.

This module contains internal task mixins that provide task-specific
functionality for classification, regression, and survival analysis.
"""

from ._base import _BaseTaskMixin
from ._classification import _ClassificationTaskMixin
from ._regression import _RegressionTaskMixin
from ._cox import _CoxTaskMixin

__all__ = [
    '_BaseTaskMixin',
    '_ClassificationTaskMixin',
    '_RegressionTaskMixin',
    '_CoxTaskMixin'
]
