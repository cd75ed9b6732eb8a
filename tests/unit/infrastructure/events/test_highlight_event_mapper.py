"""Tests for HighlightEventMapper."""

import pytest

from highlighter.domain.common.value_objects import EventId, Revision
from highlighter.domain.events.entities import CreateEvent, DeleteEvent
from highlighter.exceptions import WrongVerbError
from highlighter.infrastructure.events.mappers import HighlightEventMapper


@pytest.fixture
def mapper() -> HighlightEventMapper:
    return HighlightEventMapper()


class TestToDomain:
    def test_create_document(self, mapper: HighlightEventMapper) -> None:
        event = mapper.to_domain(
            {
                "_id": "h1",
                "_rev": "1-abc",
                "verb": "create",
                "match": "example.com/",
                "date": 10,
                "version": 5,
                "range": {"start": 1},
                "className": "yellow",
                "text": "Hello",
                "title": "Example",
            }
        )

        assert isinstance(event, CreateEvent)
        assert event.id == EventId("h1")
        assert event.revision == Revision("1-abc")
        assert event.range == {"start": 1}
        assert event.class_name == "yellow"
        assert event.version == 5
        assert event.title == "Example"

    def test_legacy_version_field(self, mapper: HighlightEventMapper) -> None:
        event = mapper.to_domain(
            {"_id": "h1", "verb": "create", "match": "m", "date": 1, "v": 3, "text": "t"}
        )

        assert isinstance(event, CreateEvent)
        assert event.version == 3

    def test_delete_document(self, mapper: HighlightEventMapper) -> None:
        event = mapper.to_domain(
            {
                "_id": "d1",
                "_rev": "1-def",
                "verb": "delete",
                "match": "example.com/",
                "date": 20,
                "correspondingDocumentId": "h1",
            }
        )

        assert isinstance(event, DeleteEvent)
        assert event.corresponding_document_id == EventId("h1")

    def test_unknown_verb(self, mapper: HighlightEventMapper) -> None:
        with pytest.raises(WrongVerbError) as exc_info:
            mapper.to_domain({"_id": "x", "verb": "update", "match": "m", "date": 1})

        assert exc_info.value.status_code == 422
        assert exc_info.value.actual == "update"


class TestToDocument:
    def test_create_event_wire_shape(self, mapper: HighlightEventMapper) -> None:
        event = CreateEvent(
            id=EventId("h1"),
            match="example.com/",
            date=10,
            range=[1, 2],
            class_name="yellow",
            text="Hello",
            version=4,
        )

        assert mapper.to_document(event) == {
            "_id": "h1",
            "verb": "create",
            "match": "example.com/",
            "date": 10,
            "version": 4,
            "range": [1, 2],
            "className": "yellow",
            "text": "Hello",
        }

    def test_delete_event_without_id(self, mapper: HighlightEventMapper) -> None:
        event = DeleteEvent(
            id=None, match="example.com/", date=20, corresponding_document_id=EventId("h1")
        )

        assert mapper.to_document(event) == {
            "verb": "delete",
            "match": "example.com/",
            "date": 20,
            "correspondingDocumentId": "h1",
        }

    def test_revision_and_title_are_carried(self, mapper: HighlightEventMapper) -> None:
        event = CreateEvent(
            id=EventId("h1"),
            revision=Revision("2-abc"),
            match="m",
            date=1,
            range=None,
            class_name="blue",
            text="t",
            version=4,
            title="Page",
        )

        doc = mapper.to_document(event)

        assert doc["_rev"] == "2-abc"
        assert doc["title"] == "Page"
