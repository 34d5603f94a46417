"""
Private lambda selection components for PvlLASSO models.

This module contains the lambda range scan, the tuning sweep, the
inflection-point decision and the tuner chaining them.
"""

from ._records import _LambdaRecord, PVL_BUCKET_EDGES, TUNING_COLUMNS, PVL_SUMMARY_COLUMNS
from ._scan import _ScanRange
from ._sweep import _TuningSweep
from ._decision import _InflectionDecision, _DecisionResult
from ._base import _LambdaTuner

__all__ = [
    '_LambdaRecord',
    'PVL_BUCKET_EDGES',
    'TUNING_COLUMNS',
    'PVL_SUMMARY_COLUMNS',
    '_ScanRange',
    '_TuningSweep',
    '_InflectionDecision',
    '_DecisionResult',
    '_LambdaTuner'
]
