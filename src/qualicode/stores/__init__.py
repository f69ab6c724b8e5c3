"""Persistence backends for texts, codes and coded segments.

Each backend implements all three store interfaces over one persistence
layer and is registered under the name used by the ``store.backend``
setting (``memory`` or ``sql`` out of the box). A project opened from
config looks its backend up here, so an extra backend, say one writing to
a remote annotation service, only needs ``@register_backend``.
"""

from .base import CodeStore, SegmentStore, StoreBackend, TextStore

_REGISTRY: dict[str, type[StoreBackend]] = {}


def register_backend(cls: type[StoreBackend]) -> type[StoreBackend]:
    """Make ``cls`` selectable as ``store.backend: <cls.name()>``.

    Registering a second class under an existing name replaces the first.
    """
    _REGISTRY[cls.name()] = cls
    return cls


def get_backend(name: str) -> type[StoreBackend]:
    """Return the backend class configured as ``name``.

    Raises:
        ValueError: If no backend is registered under ``name``.
    """
    if name not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise ValueError(f"Unknown store backend {name!r}. Available backends: {available}")
    return _REGISTRY[name]


def list_backends() -> list[str]:
    """Names accepted by the ``store.backend`` setting."""
    return sorted(_REGISTRY)


from .memory import MemoryBackend  # noqa: E402
from .sql import SqlBackend  # noqa: E402

register_backend(MemoryBackend)
register_backend(SqlBackend)

__all__ = [
    "TextStore",
    "CodeStore",
    "SegmentStore",
    "StoreBackend",
    "register_backend",
    "get_backend",
    "list_backends",
    "MemoryBackend",
    "SqlBackend",
]
