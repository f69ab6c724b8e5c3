"""Base classes for text, code and segment stores."""

import re
from abc import ABC, abstractmethod

from ..errors import ValidationError
from ..models import Code, Span, Text

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


class TextStore(ABC):
    """Creates and reads immutable text documents."""

    @abstractmethod
    def create_text(self, title: str, content: str) -> int:
        """Persist a text and return its id."""
        ...

    @abstractmethod
    def get_text(self, text_id: int) -> Text:
        """Return the text with ``text_id``.

        Raises:
            NotFound: If no such text exists.
        """
        ...


class CodeStore(ABC):
    """Creates and reads code definitions. Names are unique."""

    @abstractmethod
    def create_code(self, name: str, description: str, color: str) -> Code:
        """Persist a code.

        Raises:
            ValidationError: If the name is empty or already taken, or the
                color is not ``#RRGGBB``.
        """
        ...

    @abstractmethod
    def get_code(self, code_id: int) -> Code:
        """Return the code with ``code_id``.

        Raises:
            NotFound: If no such code exists.
        """
        ...

    @abstractmethod
    def list_codes(self) -> list[Code]:
        """Return all codes in creation order."""
        ...

    def find_code(self, name: str) -> Code | None:
        """Return the code called ``name``, or None."""
        for code in self.list_codes():
            if code.name == name:
                return code
        return None


class SegmentStore(ABC):
    """Appends and lists coded segments. No validation happens here."""

    @abstractmethod
    def create_segment(
        self, text_id: int, code_id: int, selected_text: str, start: int, end: int
    ) -> Span:
        """Persist a segment and return it with id and timestamp assigned."""
        ...

    @abstractmethod
    def list_segments(self) -> list[Span]:
        """Return all segments in insertion order."""
        ...

    @abstractmethod
    def list_segments_by_text(self, text_id: int) -> list[Span]:
        """Return the segments of one text in insertion order."""
        ...


class StoreBackend(TextStore, CodeStore, SegmentStore):
    """A backend providing all three stores over one persistence layer."""

    @classmethod
    @abstractmethod
    def name(cls) -> str:
        """Return the unique name of this backend."""
        ...

    def close(self) -> None:
        """Release any held resources."""


def check_text(title: str, content: str) -> None:
    """Texts need both a title and non-empty content."""
    if not content:
        raise ValidationError("text content must not be empty")
    if not title or not title.strip():
        raise ValidationError("text title must not be empty")


def check_code(name: str, color: str) -> None:
    if not name or not name.strip():
        raise ValidationError("code name must not be empty")
    if not HEX_COLOR.match(color):
        raise ValidationError(f"code color must be #RRGGBB, got {color!r}")
