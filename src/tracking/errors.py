from __future__ import annotations


class WakeStopError(Exception):
    """Base class for errors raised by the tracking engine."""


class PreconditionError(WakeStopError):
    """Raised when an operation is invoked before its inputs are available.

    The message is phrased as an instruction for the traveler, e.g.
    "set a destination first".
    """


class InvalidInput(WakeStopError, ValueError):
    """Raised for malformed coordinates, timestamps or alert times."""


__all__ = ["WakeStopError", "PreconditionError", "InvalidInput"]
