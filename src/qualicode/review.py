"""Flat and grouped listings of coded segments."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .models import ReviewEntry

if TYPE_CHECKING:
    from .stores.base import CodeStore, SegmentStore, TextStore


class ReviewAggregator:
    """Joins stored spans with their text and code for review.

    Entries are ordered newest first; spans created at the same instant
    are ordered by id descending, i.e. reverse insertion order.
    """

    def __init__(self, texts: TextStore, codes: CodeStore, segments: SegmentStore) -> None:
        self._texts = texts
        self._codes = codes
        self._segments = segments

    def list(self) -> list[ReviewEntry]:
        codes = {c.id: c for c in self._codes.list_codes()}
        titles: dict[int, str] = {}
        entries: list[ReviewEntry] = []
        for span in self._segments.list_segments():
            if span.text_id not in titles:
                titles[span.text_id] = self._texts.get_text(span.text_id).title
            code = codes.get(span.code_id) or self._codes.get_code(span.code_id)
            entries.append(
                ReviewEntry(
                    text_title=titles[span.text_id],
                    code_name=code.name,
                    selected_text=span.selected_text,
                    created_at=span.created_at,
                    span_id=span.id,
                    text_id=span.text_id,
                    code_id=span.code_id,
                    start=span.start,
                    end=span.end,
                )
            )
        entries.sort(key=lambda e: (e.created_at, e.span_id), reverse=True)
        return entries

    def group_by_code(self) -> dict[str, list[ReviewEntry]]:
        """Entries keyed by code name; every code appears, even unused ones."""
        groups: dict[str, list[ReviewEntry]] = {c.name: [] for c in self._codes.list_codes()}
        for entry in self.list():
            groups.setdefault(entry.code_name, []).append(entry)
        return groups

    def group_by_text(self) -> dict[int, list[ReviewEntry]]:
        """Entries keyed by text id, texts in order of their newest span."""
        groups: dict[int, list[ReviewEntry]] = {}
        for entry in self.list():
            groups.setdefault(entry.text_id, []).append(entry)
        return groups

    def code_frequencies(self) -> dict[str, int]:
        """Number of spans per code name."""
        return {name: len(entries) for name, entries in self.group_by_code().items()}

    def coverage(self, text_id: int) -> float:
        """Fraction of the text's characters covered by at least one span.

        Raises:
            NotFound: If the text does not exist.
        """
        text = self._texts.get_text(text_id)
        length = len(text.content)
        if length == 0:
            return 0.0
        mask = np.zeros(length, dtype=bool)
        for span in self._segments.list_segments_by_text(text_id):
            mask[span.start : span.end] = True
        return float(mask.mean())
