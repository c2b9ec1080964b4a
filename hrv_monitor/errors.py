"""
Error taxonomy for the HRV monitor.

All errors are recoverable: the pipeline keeps processing later frames
after any of them.  Callers that only care about "something went wrong"
can catch :class:`HrvMonitorError`.
"""

from __future__ import annotations


class HrvMonitorError(Exception):
    """Base class for all monitor errors."""


class InputError(HrvMonitorError, ValueError):
    """A frame is malformed (wrong shape, missing or non-monotonic timestamp)."""


class InsufficientDataError(HrvMonitorError):
    """Not enough samples, events or intervals for the requested computation."""


class ComputationError(HrvMonitorError, ArithmeticError):
    """A metric is undefined for the given data (e.g. division by zero)."""
