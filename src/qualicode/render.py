"""Overlap-aware fragment rendering.

Splits a text at every span boundary and labels each piece with the codes
of all spans covering it. Overlapping, nested, identical and adjacent spans
all fall out of the same rule, so presentation layers never need to redo
the span arithmetic. Multi-code fragments keep the full code set.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Sequence

import numpy as np

from .errors import ValidationError
from .models import Fragment, Span


def render(content: str, spans: Sequence[Span]) -> list[Fragment]:
    """Cut ``content`` into fragments at every span boundary.

    Boundaries are ``0``, ``len(content)`` and every span's start and end,
    deduplicated and sorted. One fragment is produced per adjacent pair
    ``[b_i, b_i+1)``; its ``code_ids`` are the codes of every span with
    ``start <= b_i`` and ``end >= b_i+1``. Joining fragment texts in order
    yields ``content``.

    The code sets come from a single sweep over the sorted boundaries, so
    cost grows with the number of spans and boundaries, not their product.

    Raises:
        ValidationError: If a span lies outside the text or has ``start > end``.
    """
    length = len(content)
    for span in spans:
        if not 0 <= span.start <= span.end <= length:
            raise ValidationError(
                f"span {span.id} [{span.start}, {span.end}) is outside text of length {length}"
            )

    if length == 0:
        return []

    starts = np.fromiter((s.start for s in spans), dtype=np.int64, count=len(spans))
    ends = np.fromiter((s.end for s in spans), dtype=np.int64, count=len(spans))
    boundaries = np.unique(np.concatenate(([0, length], starts, ends)))

    # Span i covers fragments first[i] .. last[i] - 1; zero-length spans cover none
    first = np.searchsorted(boundaries, starts).tolist()
    last = np.searchsorted(boundaries, ends).tolist()
    opening: dict[int, list[int]] = defaultdict(list)
    closing: dict[int, list[int]] = defaultdict(list)
    for span, a, b in zip(spans, first, last):
        if a < b:
            opening[a].append(span.code_id)
            closing[b].append(span.code_id)

    bounds = boundaries.tolist()
    active: Counter[int] = Counter()
    fragments: list[Fragment] = []
    for j in range(len(bounds) - 1):
        for code_id in closing.get(j, ()):
            active[code_id] -= 1
            if not active[code_id]:
                del active[code_id]
        active.update(opening.get(j, ()))
        left, right = bounds[j], bounds[j + 1]
        fragments.append(
            Fragment(
                text=content[left:right],
                start=left,
                end=right,
                code_ids=frozenset(active),
            )
        )
    return fragments


def coalesce(fragments: Sequence[Fragment]) -> list[Fragment]:
    """Merge neighbouring fragments that carry the same code set.

    The result contains maximal runs: no two consecutive fragments share
    an identical ``code_ids``.
    """
    merged: list[Fragment] = []
    for frag in fragments:
        if merged and merged[-1].code_ids == frag.code_ids and merged[-1].end == frag.start:
            last = merged[-1]
            merged[-1] = Fragment(
                text=last.text + frag.text,
                start=last.start,
                end=frag.end,
                code_ids=last.code_ids,
            )
        else:
            merged.append(frag)
    return merged


__all__ = ["render", "coalesce"]
