"""Exception types raised by the live stream engine."""

from __future__ import annotations


class SimdromeError(Exception):
    """Base class for all engine errors."""


class TransportError(SimdromeError):
    """The live stream could not be opened or broke mid-read.

    Fatal to the current session; surfaced once, never retried here.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GeodeticProjectionError(SimdromeError):
    """Cartesian position has no geodetic solution (zero vector, NaN, no convergence)."""


class SessionStateError(SimdromeError):
    """Requested a transition the session state machine does not allow."""


class CatalogError(SimdromeError):
    """Historical catalog could not be fetched or parsed."""
