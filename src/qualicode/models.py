"""Data model for texts, codes, coded spans and their derived views."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Text:
    """A source document. Content never changes once stored."""

    id: int
    title: str
    content: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Code:
    """A named, colored label definition."""

    id: int
    name: str
    description: str
    color: str
    """Display hint as ``#RRGGBB``."""

    created_at: datetime


@dataclass(frozen=True, slots=True)
class Span:
    """A coded segment: one code applied to ``content[start:end]`` of one text."""

    id: int
    text_id: int
    code_id: int
    selected_text: str
    """Copy of ``content[start:end]`` kept as an integrity check."""

    start: int
    end: int
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Selection:
    """A resolved, offset-addressed selection within a text."""

    start: int
    end: int
    text: str


@dataclass(frozen=True, slots=True)
class Fragment:
    """A run of characters sharing the same set of covering codes."""

    text: str
    start: int
    end: int
    code_ids: frozenset[int] = field(default_factory=frozenset)
    """Codes of every span covering this run; empty when unlabeled."""

    @property
    def labeled(self) -> bool:
        return bool(self.code_ids)


@dataclass(frozen=True, slots=True)
class ReviewEntry:
    """One row of the coded-segment listing."""

    text_title: str
    code_name: str
    selected_text: str
    created_at: datetime
    span_id: int
    text_id: int
    code_id: int
    start: int
    end: int


__all__ = ["Text", "Code", "Span", "Selection", "Fragment", "ReviewEntry"]
