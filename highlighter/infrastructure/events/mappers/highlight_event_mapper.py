"""Mapper for event document ↔ Domain conversion."""

from highlighter.application.ports import Document
from highlighter.domain.common.value_objects import EventId, Revision
from highlighter.domain.events.entities import CreateEvent, DeleteEvent, HighlightEvent, Verb
from highlighter.domain.events.services.producer_version import DEFAULT_MAJOR_VERSION
from highlighter.exceptions import WrongVerbError


class HighlightEventMapper:
    """Mapper for event document ↔ Domain conversion."""

    def to_domain(self, doc: Document) -> HighlightEvent:
        """
        Convert a stored document to the event entity of its verb.

        Raises:
            WrongVerbError: If the document carries neither verb
        """
        doc_id = doc["_id"]
        verb = doc.get("verb")
        revision = Revision(doc["_rev"]) if doc.get("_rev") else None

        if verb == Verb.CREATE:
            return CreateEvent(
                id=EventId(doc_id),
                revision=revision,
                match=doc.get("match", ""),
                date=doc.get("date", 0),
                range=doc.get("range"),
                class_name=doc.get("className", ""),
                text=doc.get("text", ""),
                # Older documents store the producer version as "v"
                version=doc.get("version", doc.get("v", DEFAULT_MAJOR_VERSION)),
                title=doc.get("title"),
            )

        if verb == Verb.DELETE:
            return DeleteEvent(
                id=EventId(doc_id),
                revision=revision,
                match=doc.get("match", ""),
                date=doc.get("date", 0),
                corresponding_document_id=EventId(doc.get("correspondingDocumentId", "")),
            )

        raise WrongVerbError(doc_id, expected=f"{Verb.CREATE} or {Verb.DELETE}", actual=verb)

    def to_document(self, event: HighlightEvent) -> Document:
        """Convert an event entity to its wire document."""
        doc: Document = {}
        if event.id is not None:
            doc["_id"] = event.id.value
        if event.revision is not None:
            doc["_rev"] = event.revision.value

        doc.update(verb=str(event.verb), match=event.match, date=event.date)

        if isinstance(event, CreateEvent):
            doc.update(
                version=event.version,
                range=event.range,
                className=event.class_name,
                text=event.text,
            )
            if event.title:
                doc["title"] = event.title
        elif isinstance(event, DeleteEvent):
            doc["correspondingDocumentId"] = event.corresponding_document_id.value

        return doc
