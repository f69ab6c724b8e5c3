"""Tests for ReviewAggregator listings and statistics."""

from datetime import datetime, timedelta, timezone

import pytest

from qualicode.errors import NotFound
from qualicode.project import Project
from qualicode.stores import MemoryBackend


class SteppingClock:
    """Advances one second per call."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def coded_project(project):
    """Two texts, three codes, four spans."""
    session = project.session()
    animal = project.create_code("animal")
    speed = project.create_code("speed", color="#e74c3c")
    project.create_code("unused")

    fox = session.load_text("Fox", "The quick brown fox")
    session.select("quick")
    session.apply_code(speed.id)
    session.select("fox")
    session.apply_code(animal.id)
    session.select("quick brown fox")
    session.apply_code(animal.id)

    dog = session.load_text("Dog", "A lazy dog")
    session.select("dog")
    session.apply_code(animal.id)
    return project, fox, dog


class TestList:
    def test_end_to_end_single_entry(self, project):
        session = project.session()
        session.load_text("Fox", "The quick fox")
        sel = session.select("quick")
        assert (sel.start, sel.end) == (4, 9)
        code = project.create_code("animal")
        span = session.apply_code(code.id)
        assert (span.start, span.end, span.selected_text) == (4, 9, "quick")

        entries = project.review.list()
        assert len(entries) == 1
        assert entries[0].code_name == "animal"
        assert entries[0].selected_text == "quick"
        assert entries[0].text_title == "Fox"
        assert entries[0].created_at == span.created_at

    def test_newest_first(self):
        project = Project(MemoryBackend(clock=SteppingClock()))
        session = project.session()
        code = project.create_code("c")
        session.load_text("t", "one two three")
        for word in ("one", "two", "three"):
            session.select(word)
            session.apply_code(code.id)
        assert [e.selected_text for e in project.review.list()] == ["three", "two", "one"]

    def test_ties_broken_by_id_descending(self, frozen_backend):
        project = Project(frozen_backend)
        session = project.session()
        code = project.create_code("c")
        session.load_text("t", "one two three")
        for word in ("two", "one", "three"):
            session.select(word)
            session.apply_code(code.id)
        entries = project.review.list()
        assert len({e.created_at for e in entries}) == 1
        assert [e.selected_text for e in entries] == ["three", "one", "two"]
        assert [e.span_id for e in entries] == sorted((e.span_id for e in entries), reverse=True)

    def test_empty(self, project):
        assert project.review.list() == []


class TestGrouping:
    def test_group_by_code(self, coded_project):
        project, _, _ = coded_project
        groups = project.review.group_by_code()
        assert list(groups) == ["animal", "speed", "unused"]
        assert [e.selected_text for e in groups["animal"]] == ["dog", "quick brown fox", "fox"]
        assert [e.selected_text for e in groups["speed"]] == ["quick"]
        assert groups["unused"] == []

    def test_group_by_text(self, coded_project):
        project, fox, dog = coded_project
        groups = project.review.group_by_text()
        assert set(groups) == {fox.id, dog.id}
        assert [e.selected_text for e in groups[dog.id]] == ["dog"]
        assert len(groups[fox.id]) == 3
        assert all(e.text_title == "Fox" for e in groups[fox.id])

    def test_code_frequencies(self, coded_project):
        project, _, _ = coded_project
        assert project.review.code_frequencies() == {"animal": 3, "speed": 1, "unused": 0}

    def test_coverage(self, coded_project):
        project, fox, dog = coded_project
        # "quick brown fox" covers 15 of 19 characters
        assert project.review.coverage(fox.id) == pytest.approx(15 / 19)
        assert project.review.coverage(dog.id) == pytest.approx(3 / 10)

    def test_coverage_uncoded_text(self, project):
        text = project.session().load_text("Blank", "nothing coded")
        assert project.review.coverage(text.id) == 0.0

    def test_coverage_missing_text(self, project):
        with pytest.raises(NotFound):
            project.review.coverage(404)
