"""Selection to offset resolution.

Browsers report a selection as the selected string only. ``resolve``
recovers character offsets by searching the source text for that string.
When the same string occurs more than once the first occurrence wins,
which can attribute a selection to the wrong position. Callers that know
the exact range (e.g. from a DOM ``Range``) should use ``resolve_range``.
"""

from __future__ import annotations

from .errors import NotFound, ValidationError
from .models import Selection


def resolve(source_text: str, raw_selection: str) -> Selection:
    """Locate ``raw_selection`` in ``source_text``.

    Returns:
        Selection at the lowest start offset where the string occurs.

    Raises:
        NotFound: If the selection is empty or is not a substring of the text
            (e.g. it spans decorations or was line-broken differently).
    """
    if not raw_selection:
        raise NotFound("selection is empty")

    start = source_text.find(raw_selection)
    if start < 0:
        raise NotFound(f"selection {_preview(raw_selection)!r} does not occur in the text")

    return Selection(start=start, end=start + len(raw_selection), text=raw_selection)


def resolve_range(source_text: str, start: int, end: int) -> Selection:
    """Build a selection from exact offsets supplied by the caller.

    Raises:
        ValidationError: If the range is empty or falls outside the text.
    """
    if not 0 <= start <= end <= len(source_text):
        raise ValidationError(
            f"range [{start}, {end}) is outside text of length {len(source_text)}"
        )
    if start == end:
        raise ValidationError("selection is empty")
    return Selection(start=start, end=end, text=source_text[start:end])


def find_occurrences(source_text: str, raw_selection: str) -> list[int]:
    """Return every start offset of ``raw_selection``, including overlapping ones."""
    if not raw_selection:
        return []

    positions: list[int] = []
    pos = source_text.find(raw_selection)
    while pos >= 0:
        positions.append(pos)
        pos = source_text.find(raw_selection, pos + 1)
    return positions


def _preview(text: str, limit: int = 40) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


__all__ = ["resolve", "resolve_range", "find_occurrences"]
