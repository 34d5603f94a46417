"""
Exceptions raised by PvlLASSO.

Input problems are detected before any optimization runs. Search and
decision failures propagate to the caller instead of falling back to a
default lambda.
"""


class InputContractError(ValueError):
    """Inputs violate the data contract of a fit, scan or sweep.

    Raised for label/sample count mismatches, malformed matrices,
    zero-prevalence features and label sets that do not match the task.
    """


class BoundaryDetectionError(RuntimeError):
    """The lambda scan could not bracket a boundary inside its search bounds."""


class DecisionError(RuntimeError):
    """The loss curve has no detectable breakpoint."""
