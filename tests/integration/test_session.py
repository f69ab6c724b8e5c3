"""Tests for the CodingSession state machine."""

import threading

import pytest

from qualicode.errors import InvalidTransition, NotFound, StoreUnavailable, ValidationError
from qualicode.session import CodingSession, Phase, SessionState
from qualicode.spans import SpanStore


@pytest.fixture
def session(project):
    return project.session()


@pytest.fixture
def animal(project):
    return project.create_code("animal", "Mentions of animals")


class TestSessionState:
    """The pure transition functions on SessionState."""

    def test_initial_state(self):
        state = SessionState()
        assert state.phase is Phase.EMPTY
        assert state.text is None
        assert state.selection is None

    def test_select_requires_text(self):
        from qualicode.models import Selection

        with pytest.raises(InvalidTransition):
            SessionState().selected(Selection(0, 1, "a"))

    def test_clear_requires_selection(self):
        with pytest.raises(InvalidTransition):
            SessionState().cleared()

    def test_transitions_return_new_state(self, session):
        session.load_text("t", "abc")
        before = session.state
        session.select("b")
        assert before.phase is Phase.TEXT_LOADED
        assert session.state is not before


class TestCodingSession:
    def test_starts_empty(self, session):
        assert session.phase is Phase.EMPTY

    def test_load_text(self, session):
        text = session.load_text("Fox", "The quick fox")
        assert session.phase is Phase.TEXT_LOADED
        assert session.text == text
        assert text.content == "The quick fox"

    def test_load_empty_content_rejected(self, session):
        with pytest.raises(ValidationError):
            session.load_text("Empty", "")
        assert session.phase is Phase.EMPTY

    def test_select(self, session):
        session.load_text("Fox", "The quick fox")
        sel = session.select("quick")
        assert (sel.start, sel.end, sel.text) == (4, 9, "quick")
        assert session.phase is Phase.SELECTION_ACTIVE
        assert session.selection == sel

    def test_select_without_text(self, session):
        with pytest.raises(InvalidTransition):
            session.select("quick")

    def test_failed_select_keeps_state(self, session):
        session.load_text("Fox", "The quick fox")
        session.select("quick")
        before = session.state
        with pytest.raises(NotFound):
            session.select("slow")
        assert session.state == before
        assert session.selection.text == "quick"

    def test_failed_select_from_loaded(self, session):
        session.load_text("Fox", "The quick fox")
        with pytest.raises(NotFound):
            session.select("")
        assert session.phase is Phase.TEXT_LOADED

    def test_reselect_replaces_selection(self, session):
        session.load_text("Fox", "The quick fox")
        session.select("quick")
        sel = session.select("fox")
        assert session.selection == sel
        assert session.phase is Phase.SELECTION_ACTIVE

    def test_select_range(self, session):
        session.load_text("Repeat", "to be or not to be")
        sel = session.select_range(13, 18)
        assert sel.text == "to be"
        assert sel.start == 13

    def test_select_range_invalid(self, session):
        session.load_text("Repeat", "to be")
        with pytest.raises(ValidationError):
            session.select_range(3, 10)
        assert session.phase is Phase.TEXT_LOADED

    def test_apply_code(self, project, session, animal):
        text = session.load_text("Fox", "The quick fox")
        session.select("fox")
        span = session.apply_code(animal.id)
        assert (span.start, span.end, span.selected_text) == (10, 13, "fox")
        assert span.text_id == text.id
        assert session.phase is Phase.TEXT_LOADED
        assert session.selection is None
        assert project.spans.list_by_text(text.id) == [span]

    def test_apply_code_without_selection(self, session, animal):
        session.load_text("Fox", "The quick fox")
        with pytest.raises(InvalidTransition):
            session.apply_code(animal.id)

    def test_apply_unknown_code_keeps_selection(self, project, session):
        session.load_text("Fox", "The quick fox")
        sel = session.select("quick")
        with pytest.raises(NotFound):
            session.apply_code(999)
        assert session.phase is Phase.SELECTION_ACTIVE
        assert session.selection == sel
        assert project.spans.list_all() == []

    def test_retry_after_store_failure(self, project, animal):
        class FlakySpanStore(SpanStore):
            failures = 1

            def create(self, *args):
                if self.failures:
                    self.failures -= 1
                    raise StoreUnavailable("database is down")
                return super().create(*args)

        spans = FlakySpanStore(project.backend, project.backend, project.backend)
        session = CodingSession(project.backend, spans)
        session.load_text("Fox", "The quick fox")
        session.select("quick")
        with pytest.raises(StoreUnavailable):
            session.apply_code(animal.id)
        assert session.phase is Phase.SELECTION_ACTIVE

        span = session.apply_code(animal.id)
        assert span.selected_text == "quick"
        assert session.phase is Phase.TEXT_LOADED

    def test_clear_selection(self, project, session):
        session.load_text("Fox", "The quick fox")
        session.select("quick")
        session.clear_selection()
        assert session.phase is Phase.TEXT_LOADED
        assert session.selection is None
        assert project.spans.list_all() == []

    def test_clear_without_selection(self, session):
        session.load_text("Fox", "The quick fox")
        with pytest.raises(InvalidTransition):
            session.clear_selection()

    def test_reload_discards_selection(self, project, session):
        session.load_text("Fox", "The quick fox")
        session.select("quick")
        text = session.load_text("Dog", "A lazy dog")
        assert session.phase is Phase.TEXT_LOADED
        assert session.selection is None
        assert session.text == text
        assert project.spans.list_all() == []

    def test_render_current_text(self, session, animal):
        session.load_text("Fox", "The quick fox")
        session.select("quick fox")
        session.apply_code(animal.id)
        frags = session.render()
        assert [f.text for f in frags] == ["The ", "quick fox"]
        assert frags[1].code_ids == frozenset({animal.id})

    def test_render_without_text(self, session):
        with pytest.raises(InvalidTransition):
            session.render()


class TestSerialization:
    def test_select_waits_for_pending_apply(self, project, animal):
        """A select issued during apply_code runs only after it finishes."""
        entered = threading.Event()
        release = threading.Event()
        order = []

        class SlowSpanStore(SpanStore):
            def create(self, *args):
                entered.set()
                release.wait(timeout=5)
                span = super().create(*args)
                order.append("applied")
                return span

        spans = SlowSpanStore(project.backend, project.backend, project.backend)
        session = CodingSession(project.backend, spans)
        session.load_text("Fox", "The quick fox")
        session.select("quick")

        applier = threading.Thread(target=session.apply_code, args=(animal.id,))
        applier.start()
        assert entered.wait(timeout=5)

        def do_select():
            session.select("fox")
            order.append("selected")

        selector = threading.Thread(target=do_select)
        selector.start()
        selector.join(timeout=0.2)
        assert selector.is_alive()

        release.set()
        applier.join(timeout=5)
        selector.join(timeout=5)
        assert order == ["applied", "selected"]
        assert session.selection.text == "fox"
