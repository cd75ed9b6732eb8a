"""
Highlight events.

A highlight is never stored as mutable state. Instead the log holds two kinds
of event documents sharing a common envelope (id, revision, match, date):

- CreateEvent: a highlight was made on a page
- DeleteEvent: a previously created highlight was cancelled

A create event is live unless a delete event references its id.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, ClassVar

from highlighter.domain.common.entity import Entity
from highlighter.domain.common.exceptions import ValidationError
from highlighter.domain.common.value_objects import EventId, Revision


class Verb(StrEnum):
    """Kind of a highlight event document."""

    CREATE = "create"
    DELETE = "delete"


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1000)


@dataclass(kw_only=True, eq=False)
class HighlightEvent(Entity[EventId]):
    """Envelope shared by both event kinds."""

    verb: ClassVar[Verb]

    id: EventId | None
    match: str
    date: int
    revision: Revision | None = None

    def __post_init__(self) -> None:
        """Validate envelope invariants."""
        if not self.match:
            raise ValidationError("Event match cannot be empty", field="match")
        if self.date < 0:
            raise ValidationError("Event date cannot be negative", field="date", value=self.date)

    def is_persisted(self) -> bool:
        """Whether the store has issued a revision for this event."""
        return self.id is not None and self.revision is not None


@dataclass(kw_only=True, eq=False)
class CreateEvent(HighlightEvent):
    """
    A highlight was created.

    Business Rules:
    - The id is assigned by the creator, so it can double as a DOM/style id
    - Only class_name and title may change after creation
    """

    verb: ClassVar[Verb] = Verb.CREATE

    range: Any
    class_name: str
    text: str
    version: int
    title: str | None = None

    @classmethod
    def create(
        cls,
        match: str,
        range: Any,  # noqa: A002
        class_name: str,
        text: str,
        *,
        version: int,
        title: str | None = None,
        date: int | None = None,
    ) -> CreateEvent:
        """Build a new, not yet persisted, create event with a fresh unique id."""
        return cls(
            id=EventId.generate(),
            match=match,
            date=now_ms() if date is None else date,
            range=range,
            class_name=class_name,
            text=text,
            version=version,
            title=title,
        )

    def would_change(self, class_name: str | None = None, title: str | None = None) -> bool:
        """Whether applying these values would modify the event."""
        return bool(class_name and class_name != self.class_name) or bool(
            title and title != self.title
        )

    def update_metadata(self, class_name: str | None = None, title: str | None = None) -> bool:
        """
        Update style and page title in place.

        Empty values never clear the stored ones.

        Returns:
            True if anything changed
        """
        if not self.would_change(class_name, title):
            return False

        if class_name:
            self.class_name = class_name
        if title:
            self.title = title
        return True


@dataclass(kw_only=True, eq=False)
class DeleteEvent(HighlightEvent):
    """
    A highlight was deleted.

    The id is assigned by the store; the event never changes once written.
    """

    verb: ClassVar[Verb] = Verb.DELETE

    corresponding_document_id: EventId

    @classmethod
    def cancelling(cls, create_event: CreateEvent, *, date: int | None = None) -> DeleteEvent:
        """Build the delete event that cancels a create event (same match)."""
        if create_event.id is None:
            raise ValidationError("Cannot cancel a create event without id", field="id")
        return cls(
            id=None,
            match=create_event.match,
            date=now_ms() if date is None else date,
            corresponding_document_id=create_event.id,
        )
