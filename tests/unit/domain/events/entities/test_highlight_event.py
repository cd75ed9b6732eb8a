"""Tests for highlight event entities."""

import pytest

from highlighter.domain.common.exceptions import ValidationError
from highlighter.domain.common.value_objects import EventId, Revision
from highlighter.domain.events.entities import CreateEvent, DeleteEvent, Verb


def _create_event(**overrides: object) -> CreateEvent:
    fields: dict[str, object] = {
        "match": "example.com/",
        "range": {"start": "/p[1]", "offset": 3},
        "class_name": "yellow",
        "text": "Hello",
        "version": 4,
        "date": 1000,
    }
    fields.update(overrides)
    return CreateEvent.create(**fields)  # type: ignore[arg-type]


class TestCreateEvent:
    def test_create_generates_unique_ids(self) -> None:
        first = _create_event()
        second = _create_event()

        assert first.id is not None
        assert first.id != second.id
        assert first.revision is None
        assert not first.is_persisted()

    def test_create_defaults_date_to_now(self) -> None:
        event = CreateEvent.create("example.com/", None, "yellow", "Hello", version=4)

        assert event.date > 0

    def test_verb(self) -> None:
        assert _create_event().verb == Verb.CREATE

    def test_empty_match_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _create_event(match="")

    def test_negative_date_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _create_event(date=-1)

    def test_update_metadata_changes_style_and_title(self) -> None:
        event = _create_event(title="Old")

        assert event.update_metadata(class_name="green", title="New")
        assert event.class_name == "green"
        assert event.title == "New"

    def test_update_metadata_with_same_values_is_no_op(self) -> None:
        event = _create_event(title="Page")

        assert not event.update_metadata(class_name="yellow", title="Page")

    def test_update_metadata_never_clears_values(self) -> None:
        event = _create_event(title="Page")

        assert not event.update_metadata(class_name="", title=None)
        assert event.class_name == "yellow"
        assert event.title == "Page"

    def test_update_metadata_partial(self) -> None:
        event = _create_event(title="Page")

        assert event.update_metadata(title="Other")
        assert event.class_name == "yellow"
        assert event.title == "Other"

    def test_identity_equality(self) -> None:
        event = _create_event()
        same = CreateEvent(
            id=event.id,
            revision=Revision("2-abc"),
            match="other.com/",
            date=1,
            range=None,
            class_name="blue",
            text="Other",
            version=5,
        )

        assert event == same
        assert hash(event) == hash(same)


class TestDeleteEvent:
    def test_cancelling_copies_match_and_references_create(self) -> None:
        create = _create_event()

        delete = DeleteEvent.cancelling(create, date=2000)

        assert delete.id is None
        assert delete.match == create.match
        assert delete.date == 2000
        assert delete.corresponding_document_id == create.id
        assert delete.verb == Verb.DELETE

    def test_cancelling_requires_create_id(self) -> None:
        create = CreateEvent(
            id=None,
            match="example.com/",
            date=1,
            range=None,
            class_name="yellow",
            text="Hello",
            version=4,
        )

        with pytest.raises(ValidationError):
            DeleteEvent.cancelling(create)

    def test_persisted_when_id_and_revision_are_known(self) -> None:
        delete = DeleteEvent(
            id=EventId("d1"),
            revision=Revision("1-abc"),
            match="example.com/",
            date=1,
            corresponding_document_id=EventId("h1"),
        )

        assert delete.is_persisted()
