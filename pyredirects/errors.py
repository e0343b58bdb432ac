"""Exception hierarchy shared by the filter, the stores and the workflows."""
from __future__ import annotations

__all__ = [
    "RedirectFilterError",
    "MalformedFilterError",
    "InvalidParametersError",
    "StoreUnavailableError",
]


class RedirectFilterError(Exception):
    """Base class for every error raised by *pyredirects*."""


class MalformedFilterError(RedirectFilterError, ValueError):
    """A serialized filter record is missing fields or holds invalid values."""


class InvalidParametersError(RedirectFilterError, ValueError):
    """Filter construction was requested with out-of-range parameters."""


class StoreUnavailableError(RedirectFilterError):
    """The snapshot store could not be read from or written to."""
