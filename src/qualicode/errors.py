"""Error taxonomy for qualicode.

All failures are recoverable session-level outcomes. Callers can catch
:class:`QualicodeError` for everything, or the specific subclasses below.
"""

from __future__ import annotations


class QualicodeError(Exception):
    """Base class for all qualicode errors."""


class NotFound(QualicodeError, LookupError):
    """A referenced text, code or selection substring does not exist."""


class ValidationError(QualicodeError, ValueError):
    """A span or code invariant was violated."""


class InvalidTransition(ValidationError):
    """A coding session operation was called in a state that does not allow it."""


class StoreUnavailable(QualicodeError):
    """The underlying persistence layer could not be reached."""


__all__ = [
    "QualicodeError",
    "NotFound",
    "ValidationError",
    "InvalidTransition",
    "StoreUnavailable",
]
