"""Repository for highlight event documents."""

from typing import Any

from highlighter.application.ports import Document, DocumentStoreProtocol, QueryOptions, WriteResult
from highlighter.domain.common.value_objects import EventId, Revision
from highlighter.domain.events.entities import CreateEvent, DeleteEvent, HighlightEvent, Verb
from highlighter.infrastructure.events.mappers.highlight_event_mapper import HighlightEventMapper
from highlighter.infrastructure.store.views import MATCH_DATE_VIEW, SUM_VIEW

# Sorts after every [match, date] key of the match
_HIGH_KEY: dict[str, Any] = {}


class HighlightEventRepository:
    """Repository for highlight event documents, answered from the store's indexes."""

    def __init__(self, store: DocumentStoreProtocol) -> None:
        self.store = store
        self.mapper = HighlightEventMapper()

    async def save(self, event: CreateEvent) -> WriteResult:
        """
        Create or update a create event under its own id.

        The event's revision (if any) must be the current one.

        Raises:
            ConflictError: If the revision is stale
        """
        return await self.store.put(self.mapper.to_document(event))

    async def append_delete(self, event: DeleteEvent) -> WriteResult:
        """Append a delete event under a store-assigned id."""
        return await self.store.post(self.mapper.to_document(event))

    async def find_by_id(
        self, event_id: EventId, revision: Revision | None = None
    ) -> HighlightEvent:
        """
        Fetch an event, at its latest revision unless one is given.

        Raises:
            NotFoundError: If the event (or revision) does not exist
            WrongVerbError: If the document is not a highlight event
        """
        doc = await self.store.get(event_id.value, revision.value if revision else None)
        return self.mapper.to_domain(doc)

    async def find_by_match(
        self, match: str, *, descending: bool = False, limit: int | None = None
    ) -> list[HighlightEvent]:
        """
        Get the events of a page ordered by date.

        Args:
            match: Page match
            descending: Newest first
            limit: Maximum number of events

        Returns:
            Event entities, of both verbs
        """
        docs = await self.find_documents_by_match(match, descending=descending, limit=limit)
        return [self.mapper.to_domain(doc) for doc in docs]

    async def has_delete_for(self, match: str, create_id: EventId) -> bool:
        """Whether a delete event of the page already cancels ``create_id``."""
        return any(
            doc.get("verb") == Verb.DELETE
            and doc.get("correspondingDocumentId") == create_id.value
            for doc in await self.find_documents_by_match(match)
        )

    async def find_documents_by_match(
        self, match: str, *, descending: bool = False, limit: int | None = None
    ) -> list[Document]:
        """Raw documents of a page ordered by date."""
        start_key: list[Any] = [match]
        end_key: list[Any] = [match, _HIGH_KEY]
        if descending:
            start_key, end_key = end_key, start_key

        result = await self.store.query(
            MATCH_DATE_VIEW,
            QueryOptions(
                start_key=start_key,
                end_key=end_key,
                descending=descending,
                limit=limit,
                include_docs=True,
            ),
        )
        return [row.doc for row in result.rows if row.doc is not None]

    async def net_count(self, match: str) -> int:
        """Creates minus deletes for a page. Zero when the page has no events."""
        result = await self.store.query(SUM_VIEW, QueryOptions(key=match))
        if not result.rows:
            return 0
        return int(result.rows[0].value)

    async def match_sums(self) -> dict[str, int]:
        """Creates minus deletes for every page, in match order."""
        result = await self.store.query(SUM_VIEW, QueryOptions(group=True, group_level=1))
        return {row.key: int(row.value) for row in result.rows}

    async def remove_all_for_match(self, match: str) -> list[WriteResult]:
        """
        Physically delete every event of a page in one bulk write.

        Returns:
            Per-document write results (failures included, never raised)
        """
        docs = await self.find_documents_by_match(match)
        if not docs:
            return []

        return await self.store.bulk_write(
            [{"_id": doc["_id"], "_rev": doc["_rev"], "_deleted": True} for doc in docs]
        )
