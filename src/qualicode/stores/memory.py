"""In-process backend keeping texts, codes and segments in lists."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timezone

from ..errors import NotFound, ValidationError
from ..log import get_logger
from ..models import Code, Span, Text
from .base import StoreBackend, check_code, check_text

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryBackend(StoreBackend):
    """Dict-backed stores with auto-incrementing integer ids.

    Args:
        clock: Returns the creation timestamp for new records. Tests pass
            a fixed clock to exercise ordering ties.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._texts: dict[int, Text] = {}
        self._codes: dict[int, Code] = {}
        self._segments: list[Span] = []

    @classmethod
    def name(cls) -> str:
        return "memory"

    # -- texts -------------------------------------------------------------

    def create_text(self, title: str, content: str) -> int:
        check_text(title, content)
        with self._lock:
            text_id = len(self._texts) + 1
            self._texts[text_id] = Text(
                id=text_id, title=title, content=content, created_at=self._clock()
            )
        logger.debug("stored text %d (%d chars)", text_id, len(content))
        return text_id

    def get_text(self, text_id: int) -> Text:
        try:
            return self._texts[text_id]
        except KeyError:
            raise NotFound(f"text {text_id} does not exist") from None

    # -- codes -------------------------------------------------------------

    def create_code(self, name: str, description: str, color: str) -> Code:
        check_code(name, color)
        with self._lock:
            if any(c.name == name for c in self._codes.values()):
                raise ValidationError(f"code {name!r} already exists")
            code_id = len(self._codes) + 1
            code = Code(
                id=code_id,
                name=name,
                description=description,
                color=color,
                created_at=self._clock(),
            )
            self._codes[code_id] = code
        logger.debug("stored code %d %r", code_id, name)
        return code

    def get_code(self, code_id: int) -> Code:
        try:
            return self._codes[code_id]
        except KeyError:
            raise NotFound(f"code {code_id} does not exist") from None

    def list_codes(self) -> list[Code]:
        return list(self._codes.values())

    # -- segments ----------------------------------------------------------

    def create_segment(
        self, text_id: int, code_id: int, selected_text: str, start: int, end: int
    ) -> Span:
        with self._lock:
            span = Span(
                id=len(self._segments) + 1,
                text_id=text_id,
                code_id=code_id,
                selected_text=selected_text,
                start=start,
                end=end,
                created_at=self._clock(),
            )
            self._segments.append(span)
        logger.debug("stored segment %d on text %d [%d, %d)", span.id, text_id, start, end)
        return span

    def list_segments(self) -> list[Span]:
        return list(self._segments)

    def list_segments_by_text(self, text_id: int) -> list[Span]:
        return [s for s in self._segments if s.text_id == text_id]
