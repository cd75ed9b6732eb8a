"""Tests for event list filters."""

import pytest

from highlighter.domain.common.value_objects import EventId
from highlighter.domain.events.entities import CreateEvent, DeleteEvent, HighlightEvent, Verb
from highlighter.domain.events.services.event_filters import exclude_cancelled, filter_by_verbs

MATCH = "example.com/"


def _create(event_id: str, date: int = 1) -> CreateEvent:
    return CreateEvent(
        id=EventId(event_id),
        match=MATCH,
        date=date,
        range={"start": 0},
        class_name="yellow",
        text="Hello",
        version=4,
    )


def _delete(event_id: str, create_id: str, date: int = 2) -> DeleteEvent:
    return DeleteEvent(
        id=EventId(event_id),
        match=MATCH,
        date=date,
        corresponding_document_id=EventId(create_id),
    )


def _ids(events: list[HighlightEvent]) -> list[str]:
    return [str(event.id) for event in events]


class TestExcludeCancelled:
    def test_removes_cancelled_create_and_its_delete(self) -> None:
        events: list[HighlightEvent] = [_create("h1"), _create("h2"), _delete("d1", "h1")]

        assert _ids(exclude_cancelled(events)) == ["h2"]

    def test_keeps_everything_without_deletes(self) -> None:
        events: list[HighlightEvent] = [_create("h1"), _create("h2")]

        assert _ids(exclude_cancelled(events)) == ["h1", "h2"]

    def test_delete_for_create_outside_the_list_is_dropped(self) -> None:
        events: list[HighlightEvent] = [_create("h2"), _delete("d1", "h1")]

        assert _ids(exclude_cancelled(events)) == ["h2"]

    def test_does_not_modify_input(self) -> None:
        events: list[HighlightEvent] = [_create("h1"), _delete("d1", "h1")]

        exclude_cancelled(events)

        assert _ids(events) == ["h1", "d1"]


class TestFilterByVerbs:
    @pytest.fixture
    def events(self) -> list[HighlightEvent]:
        return [_create("h1"), _delete("d1", "h1"), _create("h2")]

    def test_single_verb(self, events: list[HighlightEvent]) -> None:
        assert _ids(filter_by_verbs(events, Verb.DELETE)) == ["d1"]

    def test_single_verb_as_string(self, events: list[HighlightEvent]) -> None:
        assert _ids(filter_by_verbs(events, "create")) == ["h1", "h2"]

    def test_verb_collection(self, events: list[HighlightEvent]) -> None:
        assert _ids(filter_by_verbs(events, ["create", Verb.DELETE])) == ["h1", "d1", "h2"]

    def test_empty_collection_keeps_nothing(self, events: list[HighlightEvent]) -> None:
        assert filter_by_verbs(events, []) == []

    def test_unknown_verb_is_rejected(self, events: list[HighlightEvent]) -> None:
        with pytest.raises(ValueError):
            filter_by_verbs(events, "update")
