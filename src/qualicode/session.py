"""Coding session state machine.

A session walks through three phases::

    EMPTY --load_text--> TEXT_LOADED --select--> SELECTION_ACTIVE
                              ^                        |
                              +--apply_code / clear----+

Session state is an immutable :class:`SessionState` value. Its transition
methods are pure and return a new state; :class:`CodingSession` performs
the store calls and swaps in the new state only once they succeed, so a
failed operation never leaves partial state behind.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from . import resolver
from .errors import InvalidTransition, NotFound
from .log import get_logger
from .models import Fragment, Selection, Span, Text
from .render import render
from .spans import SpanStore

if TYPE_CHECKING:
    from .stores.base import TextStore

logger = get_logger(__name__)


class Phase(Enum):
    EMPTY = "empty"
    TEXT_LOADED = "text_loaded"
    SELECTION_ACTIVE = "selection_active"


@dataclass(frozen=True)
class SessionState:
    """Snapshot of what the analyst is working on."""

    phase: Phase = Phase.EMPTY
    text: Text | None = None
    selection: Selection | None = None

    def loaded(self, text: Text) -> SessionState:
        """Switch to ``text``. Any pending selection is dropped."""
        return SessionState(phase=Phase.TEXT_LOADED, text=text, selection=None)

    def selected(self, selection: Selection) -> SessionState:
        if self.phase is Phase.EMPTY:
            raise InvalidTransition("no text is loaded")
        return replace(self, phase=Phase.SELECTION_ACTIVE, selection=selection)

    def cleared(self) -> SessionState:
        if self.phase is not Phase.SELECTION_ACTIVE:
            raise InvalidTransition("no selection is active")
        return replace(self, phase=Phase.TEXT_LOADED, selection=None)


class CodingSession:
    """Orchestrates load → select → apply code for one analyst.

    Every public operation holds the session lock, so a ``select`` cannot
    interleave with an ``apply_code`` that is still talking to the store.
    """

    def __init__(self, texts: TextStore, spans: SpanStore) -> None:
        self._texts = texts
        self._spans = spans
        self._state = SessionState()
        self._lock = threading.RLock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def text(self) -> Text | None:
        return self._state.text

    @property
    def selection(self) -> Selection | None:
        return self._state.selection

    def load_text(self, title: str, content: str) -> Text:
        """Persist a new text and make it current.

        A pending selection is discarded without being stored.

        Raises:
            ValidationError: If title or content is empty.
            StoreUnavailable: If the text store cannot be reached.
        """
        with self._lock:
            text_id = self._texts.create_text(title, content)
            text = self._texts.get_text(text_id)
            if self._state.selection is not None:
                logger.debug("dropping pending selection on reload")
            self._state = self._state.loaded(text)
            logger.debug("session loaded text %d", text.id)
            return text

    def select(self, raw_selection: str) -> Selection:
        """Resolve a browser-reported selection string against the current text.

        Raises:
            InvalidTransition: If no text is loaded.
            NotFound: If the string does not occur in the text; the session
                state is left unchanged.
        """
        with self._lock:
            text = self._require_text()
            try:
                selection = resolver.resolve(text.content, raw_selection)
            except NotFound:
                logger.warning("rejected selection on text %d", text.id)
                raise
            return self._set_selection(selection)

    def select_range(self, start: int, end: int) -> Selection:
        """Select exact offsets within the current text.

        Raises:
            InvalidTransition: If no text is loaded.
            ValidationError: If the range is empty or out of bounds.
        """
        with self._lock:
            text = self._require_text()
            selection = resolver.resolve_range(text.content, start, end)
            return self._set_selection(selection)

    def apply_code(self, code_id: int) -> Span:
        """Store the active selection under ``code_id`` and clear it.

        On any store error the selection stays active so the caller can
        retry or pick another code.

        Raises:
            InvalidTransition: If no selection is active.
            NotFound, ValidationError, StoreUnavailable: From the span store.
        """
        with self._lock:
            state = self._state
            if state.phase is not Phase.SELECTION_ACTIVE:
                raise InvalidTransition("no selection is active")
            sel = state.selection
            span = self._spans.create(state.text.id, code_id, sel.text, sel.start, sel.end)
            self._state = state.cleared()
            return span

    def clear_selection(self) -> None:
        """Abandon the active selection without storing anything."""
        with self._lock:
            self._state = self._state.cleared()
            logger.debug("selection cleared")

    def render(self) -> list[Fragment]:
        """Fragments of the current text with all of its stored spans."""
        with self._lock:
            text = self._require_text()
            return render(text.content, self._spans.list_by_text(text.id))

    def _require_text(self) -> Text:
        if self._state.text is None:
            raise InvalidTransition("no text is loaded")
        return self._state.text

    def _set_selection(self, selection: Selection) -> Selection:
        self._state = self._state.selected(selection)
        logger.debug("selected [%d, %d)", selection.start, selection.end)
        return selection
