"""Use case for recording and reading highlight events."""

from collections.abc import Iterable
from typing import Any

import structlog

from highlighter.application.events.protocols import HighlightEventRepositoryProtocol
from highlighter.application.ports import WriteResult
from highlighter.domain.common.value_objects import EventId, Revision
from highlighter.domain.events.entities import CreateEvent, DeleteEvent, HighlightEvent, Verb
from highlighter.domain.events.services import exclude_cancelled, filter_by_verbs, major_version
from highlighter.exceptions import ConflictError, WrongVerbError

logger = structlog.get_logger(__name__)


class HighlightEventUseCase:
    """
    Highlight operations over the event log.

    Highlights are created and cancelled by appending events. Multi-step
    operations take no locks; a concurrent write makes the second writer fail
    with a revision conflict instead of overwriting.
    """

    def __init__(
        self,
        repository: HighlightEventRepositoryProtocol,
        producer_version: str,
    ) -> None:
        """Initialize use case with dependencies."""
        self.repository = repository
        self.producer_version = producer_version

    async def create_highlight(
        self,
        match: str,
        range: Any,  # noqa: A002, ANN401
        class_name: str,
        text: str,
        *,
        title: str | None = None,
        date: int | None = None,
    ) -> WriteResult:
        """
        Record a new highlight.

        Args:
            match: Page match the highlight belongs to
            range: Serializable anchor of the highlighted range
            class_name: Style of the highlight
            text: Highlighted text
            title: Page title
            date: Epoch milliseconds (defaults to now)

        Returns:
            Write result carrying the generated id and its revision
        """
        event = CreateEvent.create(
            match,
            range,
            class_name,
            text,
            version=major_version(self.producer_version),
            title=title,
            date=date,
        )
        result = await self.repository.save(event)

        logger.info("highlight_created", event_id=result.id, match=match)
        return result

    async def update_highlight(
        self,
        event_id: str,
        *,
        class_name: str | None = None,
        title: str | None = None,
        revision: str | None = None,
    ) -> WriteResult:
        """
        Change the style and/or page title of a highlight.

        Empty values leave the stored ones alone. When nothing would change, no
        write happens and the current revision is returned.

        Args:
            event_id: Id of the create event
            class_name: New style
            title: New page title
            revision: Revision the update is based on (defaults to the latest)

        Raises:
            NotFoundError: If the event (or revision) does not exist
            WrongVerbError: If the event is not a create event
            ConflictError: If ``revision`` is not the current revision
        """
        event = await self._get_create_event(event_id, revision)

        if not event.update_metadata(class_name=class_name, title=title):
            assert event.revision is not None
            return WriteResult(ok=True, id=event_id, rev=event.revision.value)

        result = await self.repository.save(event)
        logger.info("highlight_updated", event_id=event_id, rev=result.rev)
        return result

    async def delete_highlight(self, create_id: str, *, date: int | None = None) -> WriteResult:
        """
        Cancel a highlight by appending a delete event for it.

        The create event stays in the store.

        Raises:
            NotFoundError: If the create event does not exist
            WrongVerbError: If ``create_id`` is not a create event
            ConflictError: If the highlight is already deleted
        """
        event = await self._get_create_event(create_id)

        if await self.repository.has_delete_for(event.match, event.id):
            raise ConflictError(create_id, message=f"Highlight {create_id} is already deleted")

        result = await self.repository.append_delete(DeleteEvent.cancelling(event, date=date))

        logger.info("highlight_deleted", event_id=create_id, delete_id=result.id)
        return result

    async def get_event(self, event_id: str, *, revision: str | None = None) -> HighlightEvent:
        """
        Get an event of either verb.

        Raises:
            NotFoundError: If the event (or revision) does not exist
        """
        return await self.repository.find_by_id(
            EventId(event_id), Revision(revision) if revision else None
        )

    async def list_by_match(
        self,
        match: str,
        *,
        descending: bool = False,
        limit: int | None = None,
        verbs: Verb | str | Iterable[Verb | str] | None = None,
        exclude_deleted: bool = False,
    ) -> list[HighlightEvent]:
        """
        List the events of a page by date.

        Args:
            match: Page match
            descending: Newest first
            limit: Maximum number of events fetched
            verbs: Only keep events of these verbs
            exclude_deleted: Drop cancelled create events together with their delete events.
                Only delete events within the fetched events are considered.

        Returns:
            Event entities
        """
        events = await self.repository.find_by_match(match, descending=descending, limit=limit)

        if exclude_deleted:
            events = exclude_cancelled(events)
        if verbs is not None:
            events = filter_by_verbs(events, verbs)
        return events

    async def net_count_for_match(self, match: str) -> int:
        """Live highlights of a page (creates minus deletes)."""
        return await self.repository.net_count(match)

    async def all_match_sums(self) -> dict[str, int]:
        """Creates minus deletes for every page that has events."""
        return await self.repository.match_sums()

    async def remove_all_for_match(self, match: str) -> list[WriteResult]:
        """
        Physically delete every event of a page.

        Returns:
            Per-document write results
        """
        results = await self.repository.remove_all_for_match(match)

        logger.info(
            "match_documents_removed",
            match=match,
            removed=sum(1 for result in results if result.ok),
            failed=sum(1 for result in results if not result.ok),
        )
        return results

    async def _get_create_event(self, event_id: str, revision: str | None = None) -> CreateEvent:
        event = await self.repository.find_by_id(
            EventId(event_id), Revision(revision) if revision else None
        )
        if not isinstance(event, CreateEvent):
            raise WrongVerbError(event_id, expected=str(Verb.CREATE), actual=str(event.verb))
        return event
