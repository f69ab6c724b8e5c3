"""Wires a store backend to the span store, sessions and review."""

from __future__ import annotations

from .config import QualicodeConfig
from .log import get_logger
from .models import Code, Fragment
from .render import render
from .review import ReviewAggregator
from .session import CodingSession
from .spans import SpanStore
from .stores import get_backend
from .stores.base import StoreBackend

logger = get_logger(__name__)


class Project:
    """Entry point for a UI shell or the CLI.

    Pipeline:
        1. Pick a store backend (``memory`` or ``sql``) from config
        2. Wrap its segment store in a validating :class:`SpanStore`
        3. Hand out :class:`CodingSession` objects for annotation
        4. Expose rendering and review over everything stored
    """

    def __init__(self, backend: StoreBackend, default_color: str = "#3498db") -> None:
        self.backend = backend
        self.default_color = default_color
        self.spans = SpanStore(backend, backend, backend)
        self.review = ReviewAggregator(backend, backend, backend)

    @classmethod
    def from_config(
        cls, config: QualicodeConfig | None = None, database_url: str | None = None
    ) -> Project:
        """Build a project from resolved settings.

        ``database_url`` overrides the configured URL and selects the SQL backend.
        """
        config = config or QualicodeConfig()
        if database_url is not None:
            backend_name, url = "sql", database_url
        else:
            backend_name, url = config.backend, config.database_url

        backend_cls = get_backend(backend_name)
        backend = backend_cls(url) if backend_name == "sql" else backend_cls()
        logger.debug("opened %s backend", backend_name)
        return cls(backend, default_color=config.default_color)

    def session(self) -> CodingSession:
        return CodingSession(self.backend, self.spans)

    def create_code(self, name: str, description: str = "", color: str | None = None) -> Code:
        code = self.backend.create_code(name, description, color or self.default_color)
        logger.info("created code %r", name)
        return code

    def list_codes(self) -> list[Code]:
        return self.backend.list_codes()

    def find_code(self, name: str) -> Code | None:
        return self.backend.find_code(name)

    def render_text(self, text_id: int) -> list[Fragment]:
        text = self.backend.get_text(text_id)
        return render(text.content, self.spans.list_by_text(text_id))

    def close(self) -> None:
        self.backend.close()

    def __enter__(self) -> Project:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
