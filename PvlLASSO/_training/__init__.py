"""
Private training utilities for PvlLASSO models.

This module contains internal training components: the proximal RMSprop
optimizer, the trainer and its callbacks.
"""

from ._trainer import _PenalizedTrainer
from ._optimizer import _ProximalRMSprop
from ._callbacks import _ConvergenceChecker, _LoggingCallback

__all__ = [
    '_PenalizedTrainer',
    '_ProximalRMSprop',
    '_ConvergenceChecker',
    '_LoggingCallback'
]
