from __future__ import annotations


class GrepNavError(Exception):
    """Base class for grepnav failures."""


class InvalidInput(GrepNavError, ValueError):
    """Raised for unusable arguments: empty pattern, bad config, bad offset."""


class IoFailure(GrepNavError, OSError):
    """Raised when the byte source cannot be opened or read.

    The underlying ``OSError`` is chained as ``__cause__``.
    """
