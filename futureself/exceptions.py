"""
Custom exceptions for the Future Self simulator.

The engine itself never fails on well-formed input; these types cover the
cases that must surface to a host instead of being papered over.
"""


class FutureSelfError(Exception):
    """Base exception for all simulator errors."""
    pass


class InvalidInputError(FutureSelfError, ValueError):
    """
    Raised when a decision, profile, or settings payload has the wrong shape.

    Wraps the underlying pydantic validation error so hosts can report which
    field was rejected. Out-of-range metrics and missing required fields land
    here rather than being clamped or defaulted.
    """
    pass


class SimulationUnavailable(FutureSelfError):
    """Raised by hosts when a simulation does not finish within its time limit."""
    pass


class SimulationIncomplete(FutureSelfError):
    """Raised when a simulation cannot produce one scenario for every archetype."""
    pass
