"""Validated creation and listing of coded spans."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ValidationError
from .log import get_logger
from .models import Span

if TYPE_CHECKING:
    from .stores.base import CodeStore, SegmentStore, TextStore

logger = get_logger(__name__)


class SpanStore:
    """Enforces span invariants in front of a segment store.

    A span is accepted only if its text and code exist, its offsets lie
    within the text, and ``selected_text`` is exactly ``content[start:end]``.
    The stored copy of the selected text lets later readers detect offset
    drift.
    """

    def __init__(self, texts: TextStore, codes: CodeStore, segments: SegmentStore) -> None:
        self._texts = texts
        self._codes = codes
        self._segments = segments

    def create(self, text_id: int, code_id: int, selected_text: str, start: int, end: int) -> Span:
        """Validate and persist a span.

        Raises:
            NotFound: If the text or code does not exist.
            ValidationError: If the offsets or selected text are inconsistent.
            StoreUnavailable: If the backend cannot be reached.
        """
        text = self._texts.get_text(text_id)
        self._codes.get_code(code_id)

        length = len(text.content)
        if not selected_text:
            raise ValidationError("selected text must not be empty")
        if start > end:
            raise ValidationError(f"start {start} is after end {end}")
        if start < 0 or end > length:
            raise ValidationError(f"range [{start}, {end}) is outside text of length {length}")
        if text.content[start:end] != selected_text:
            raise ValidationError(
                f"selected text does not match text {text_id} at [{start}, {end})"
            )

        span = self._segments.create_segment(text_id, code_id, selected_text, start, end)
        logger.debug("coded text %d [%d, %d) with code %d", text_id, start, end, code_id)
        return span

    def list_by_text(self, text_id: int) -> list[Span]:
        """Spans of one text ordered by start, then creation order."""
        spans = self._segments.list_segments_by_text(text_id)
        # list.sort is stable and the backend returns insertion order
        spans.sort(key=lambda s: s.start)
        return spans

    def list_all(self) -> list[Span]:
        """All spans in insertion order."""
        return self._segments.list_segments()
