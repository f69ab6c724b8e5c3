"""qualicode: span annotation engine for qualitative text coding."""

from .config import QualicodeConfig
from .errors import InvalidTransition, NotFound, QualicodeError, StoreUnavailable, ValidationError
from .models import Code, Fragment, ReviewEntry, Selection, Span, Text
from .render import coalesce, render
from .resolver import find_occurrences, resolve, resolve_range
from .review import ReviewAggregator
from .session import CodingSession, Phase, SessionState
from .spans import SpanStore

__version__ = "0.1.0"

__all__ = [
    "QualicodeConfig",
    "QualicodeError",
    "NotFound",
    "ValidationError",
    "InvalidTransition",
    "StoreUnavailable",
    "Text",
    "Code",
    "Span",
    "Selection",
    "Fragment",
    "ReviewEntry",
    "render",
    "coalesce",
    "resolve",
    "resolve_range",
    "find_occurrences",
    "SpanStore",
    "CodingSession",
    "SessionState",
    "Phase",
    "ReviewAggregator",
    "Project",
    "MemoryBackend",
    "SqlBackend",
    "get_backend",
    "list_backends",
    "register_backend",
]

# Store backends pull in SQLAlchemy; load them on first access
_STORE_NAMES = {
    "Project",
    "MemoryBackend",
    "SqlBackend",
    "get_backend",
    "list_backends",
    "register_backend",
}


def __getattr__(name: str):
    if name in _STORE_NAMES:
        import sys

        from .project import Project
        from .stores import (
            MemoryBackend,
            SqlBackend,
            get_backend,
            list_backends,
            register_backend,
        )

        mod = sys.modules[__name__]
        for n, v in {
            "Project": Project,
            "MemoryBackend": MemoryBackend,
            "SqlBackend": SqlBackend,
            "get_backend": get_backend,
            "list_backends": list_backends,
            "register_backend": register_backend,
        }.items():
            setattr(mod, n, v)
        return getattr(mod, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
