"""
Private base classes for PvlLASSO models.

This module contains the core internal classes that implement the fundamental
functionality of PvlLASSO models. These classes are not intended for direct
use by end users.
"""

from ._model import _BasePvlLASSOModel
from ._linear import _LinearPredictor
from ._feature_selection import _FeatureSelectionMixin

__all__ = [
    '_BasePvlLASSOModel',
    '_LinearPredictor',
    '_FeatureSelectionMixin'
]
