"""Tests for highlight event operations."""

import pytest

from highlighter.application.events.use_cases import HighlightEventUseCase
from highlighter.domain.events.entities import CreateEvent, DeleteEvent, Verb
from highlighter.exceptions import ConflictError, NotFoundError, WrongVerbError
from highlighter.infrastructure.events.repositories import HighlightEventRepository
from highlighter.infrastructure.store import DocumentStore

MATCH = "example.com/"


async def _create(
    use_case: HighlightEventUseCase, match: str = MATCH, date: int = 1000, **kwargs: object
) -> str:
    result = await use_case.create_highlight(
        match, {"start": "/p[1]"}, "yellow", "Hello", date=date, **kwargs  # type: ignore[arg-type]
    )
    assert result.ok
    return result.id


class TestCreateHighlight:
    @pytest.mark.asyncio
    async def test_creates_document_with_wire_shape(
        self, event_use_case: HighlightEventUseCase, store: DocumentStore
    ) -> None:
        result = await event_use_case.create_highlight(
            MATCH, {"start": "/p[1]"}, "yellow", "Hello", title="Example", date=1000
        )

        doc = await store.get(result.id)
        assert doc == {
            "_id": result.id,
            "_rev": result.rev,
            "verb": "create",
            "match": MATCH,
            "date": 1000,
            "version": 5,
            "range": {"start": "/p[1]"},
            "className": "yellow",
            "text": "Hello",
            "title": "Example",
        }

    @pytest.mark.asyncio
    async def test_each_highlight_gets_a_new_id(self, event_use_case: HighlightEventUseCase) -> None:
        first = await _create(event_use_case)
        second = await _create(event_use_case)

        assert first != second

    @pytest.mark.asyncio
    async def test_unparsable_producer_version_records_default(
        self, store: DocumentStore, event_use_case: HighlightEventUseCase
    ) -> None:
        event_use_case.producer_version = "dev"

        event_id = await _create(event_use_case)

        assert (await store.get(event_id))["version"] == 4


class TestUpdateHighlight:
    @pytest.mark.asyncio
    async def test_updates_style_and_title(self, event_use_case: HighlightEventUseCase) -> None:
        event_id = await _create(event_use_case, title="Old")

        result = await event_use_case.update_highlight(event_id, class_name="green", title="New")

        assert result.ok
        assert result.rev is not None and result.rev.startswith("2-")
        event = await event_use_case.get_event(event_id)
        assert isinstance(event, CreateEvent)
        assert event.class_name == "green"
        assert event.title == "New"
        assert event.text == "Hello"

    @pytest.mark.asyncio
    async def test_unchanged_values_do_not_write(
        self, event_use_case: HighlightEventUseCase, store: DocumentStore
    ) -> None:
        event_id = await _create(event_use_case, title="Page")
        before = await store.get(event_id)

        result = await event_use_case.update_highlight(event_id, class_name="yellow", title="Page")

        assert result.ok
        assert result.rev == before["_rev"]
        assert (await store.get(event_id))["_rev"] == before["_rev"]

    @pytest.mark.asyncio
    async def test_empty_values_do_not_clear(self, event_use_case: HighlightEventUseCase) -> None:
        event_id = await _create(event_use_case, title="Page")

        result = await event_use_case.update_highlight(event_id, class_name="", title=None)

        assert result.rev is not None and result.rev.startswith("1-")

    @pytest.mark.asyncio
    async def test_stale_revision_conflicts(self) -> None:
        store = DocumentStore("sqlite://", name="history", auto_compaction=False)
        await store.open()
        use_case = HighlightEventUseCase(HighlightEventRepository(store), producer_version="5")
        try:
            event_id = await _create(use_case)
            first_rev = (await store.get(event_id))["_rev"]
            await use_case.update_highlight(event_id, class_name="green")

            with pytest.raises(ConflictError):
                await use_case.update_highlight(event_id, class_name="blue", revision=first_rev)
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_compacted_revision_is_gone(
        self, event_use_case: HighlightEventUseCase, store: DocumentStore
    ) -> None:
        event_id = await _create(event_use_case)
        first_rev = (await store.get(event_id))["_rev"]
        await event_use_case.update_highlight(event_id, class_name="green")

        with pytest.raises(NotFoundError):
            await event_use_case.update_highlight(event_id, class_name="blue", revision=first_rev)

    @pytest.mark.asyncio
    async def test_pinned_current_revision(self, event_use_case: HighlightEventUseCase) -> None:
        event_id = await _create(event_use_case)
        current = (await event_use_case.get_event(event_id)).revision
        assert current is not None

        result = await event_use_case.update_highlight(
            event_id, class_name="green", revision=current.value
        )

        assert result.ok

    @pytest.mark.asyncio
    async def test_delete_event_cannot_be_updated(
        self, event_use_case: HighlightEventUseCase
    ) -> None:
        event_id = await _create(event_use_case)
        delete = await event_use_case.delete_highlight(event_id)

        with pytest.raises(WrongVerbError):
            await event_use_case.update_highlight(delete.id, class_name="green")

    @pytest.mark.asyncio
    async def test_missing_event(self, event_use_case: HighlightEventUseCase) -> None:
        with pytest.raises(NotFoundError):
            await event_use_case.update_highlight("missing", class_name="green")


class TestDeleteHighlight:
    @pytest.mark.asyncio
    async def test_appends_delete_event(
        self, event_use_case: HighlightEventUseCase, store: DocumentStore
    ) -> None:
        event_id = await _create(event_use_case)

        result = await event_use_case.delete_highlight(event_id, date=2000)

        assert result.ok
        assert result.id != event_id
        doc = await store.get(result.id)
        assert doc["verb"] == "delete"
        assert doc["match"] == MATCH
        assert doc["date"] == 2000
        assert doc["correspondingDocumentId"] == event_id
        # the create event stays
        assert (await store.get(event_id))["verb"] == "create"

    @pytest.mark.asyncio
    async def test_second_delete_is_rejected(self, event_use_case: HighlightEventUseCase) -> None:
        event_id = await _create(event_use_case)
        await event_use_case.delete_highlight(event_id)

        with pytest.raises(ConflictError):
            await event_use_case.delete_highlight(event_id)

        assert await event_use_case.net_count_for_match(MATCH) == 0

    @pytest.mark.asyncio
    async def test_deleting_a_delete_event_is_rejected(
        self, event_use_case: HighlightEventUseCase
    ) -> None:
        event_id = await _create(event_use_case)
        delete = await event_use_case.delete_highlight(event_id)

        with pytest.raises(WrongVerbError):
            await event_use_case.delete_highlight(delete.id)

    @pytest.mark.asyncio
    async def test_foreign_documents_on_the_page_are_ignored(
        self, event_use_case: HighlightEventUseCase, store: DocumentStore
    ) -> None:
        event_id = await _create(event_use_case)
        await store.put({"_id": "odd", "verb": "update", "match": MATCH, "date": 5})
        # names the highlight but is not a delete
        await store.put(
            {
                "_id": "note",
                "verb": "note",
                "match": MATCH,
                "date": 6,
                "correspondingDocumentId": event_id,
            }
        )

        result = await event_use_case.delete_highlight(event_id)

        assert result.ok
        with pytest.raises(ConflictError):
            await event_use_case.delete_highlight(event_id)

    @pytest.mark.asyncio
    async def test_missing_event(self, event_use_case: HighlightEventUseCase) -> None:
        with pytest.raises(NotFoundError):
            await event_use_case.delete_highlight("missing")


class TestListByMatch:
    @pytest.mark.asyncio
    async def test_ordered_by_date(self, event_use_case: HighlightEventUseCase) -> None:
        late = await _create(event_use_case, date=3000)
        early = await _create(event_use_case, date=1000)
        await _create(event_use_case, match="other.com/", date=2000)

        events = await event_use_case.list_by_match(MATCH)

        assert [str(event.id) for event in events] == [early, late]

    @pytest.mark.asyncio
    async def test_descending_with_limit(self, event_use_case: HighlightEventUseCase) -> None:
        first = await _create(event_use_case, date=1000)
        second = await _create(event_use_case, date=2000)
        third = await _create(event_use_case, date=3000)

        events = await event_use_case.list_by_match(MATCH, descending=True, limit=2)

        assert [str(event.id) for event in events] == [third, second]
        assert first not in [str(event.id) for event in events]

    @pytest.mark.asyncio
    async def test_exclude_deleted(self, event_use_case: HighlightEventUseCase) -> None:
        cancelled = await _create(event_use_case, date=1000)
        live = await _create(event_use_case, date=2000)
        delete = await event_use_case.delete_highlight(cancelled, date=3000)

        events = await event_use_case.list_by_match(MATCH, exclude_deleted=True)

        ids = [str(event.id) for event in events]
        assert ids == [live]
        assert delete.id not in ids

    @pytest.mark.asyncio
    async def test_verbs_filter(self, event_use_case: HighlightEventUseCase) -> None:
        event_id = await _create(event_use_case, date=1000)
        await _create(event_use_case, date=2000)
        await event_use_case.delete_highlight(event_id, date=3000)

        deletes = await event_use_case.list_by_match(MATCH, verbs=Verb.DELETE)
        creates = await event_use_case.list_by_match(MATCH, verbs=["create"])

        assert [type(event) for event in deletes] == [DeleteEvent]
        assert len(creates) == 2

    @pytest.mark.asyncio
    async def test_exclude_deleted_then_verbs(self, event_use_case: HighlightEventUseCase) -> None:
        event_id = await _create(event_use_case, date=1000)
        await event_use_case.delete_highlight(event_id, date=2000)

        events = await event_use_case.list_by_match(
            MATCH, verbs=Verb.DELETE, exclude_deleted=True
        )

        assert events == []

    @pytest.mark.asyncio
    async def test_unknown_match(self, event_use_case: HighlightEventUseCase) -> None:
        assert await event_use_case.list_by_match("nothing.com/") == []


class TestAggregates:
    @pytest.mark.asyncio
    async def test_net_count_is_creates_minus_deletes(
        self, event_use_case: HighlightEventUseCase
    ) -> None:
        ids = [await _create(event_use_case, date=date) for date in (1, 2, 3)]
        await event_use_case.delete_highlight(ids[0])

        assert await event_use_case.net_count_for_match(MATCH) == 2

    @pytest.mark.asyncio
    async def test_net_count_without_events_is_zero(
        self, event_use_case: HighlightEventUseCase
    ) -> None:
        assert await event_use_case.net_count_for_match("nothing.com/") == 0

    @pytest.mark.asyncio
    async def test_all_match_sums(self, event_use_case: HighlightEventUseCase) -> None:
        await _create(event_use_case, match="b.com/")
        cancelled = await _create(event_use_case, match="a.com/")
        await _create(event_use_case, match="b.com/")
        await event_use_case.delete_highlight(cancelled)

        assert await event_use_case.all_match_sums() == {"a.com/": 0, "b.com/": 2}

    @pytest.mark.asyncio
    async def test_scenario_create_delete(self, event_use_case: HighlightEventUseCase) -> None:
        event_id = await _create(event_use_case)
        assert await event_use_case.net_count_for_match(MATCH) == 1

        await event_use_case.delete_highlight(event_id)

        assert await event_use_case.net_count_for_match(MATCH) == 0


class TestRemoveAllForMatch:
    @pytest.mark.asyncio
    async def test_removes_every_event_of_the_match(
        self, event_use_case: HighlightEventUseCase, store: DocumentStore
    ) -> None:
        event_id = await _create(event_use_case)
        await _create(event_use_case)
        await event_use_case.delete_highlight(event_id)
        other = await _create(event_use_case, match="other.com/")

        results = await event_use_case.remove_all_for_match(MATCH)

        assert len(results) == 3
        assert all(result.ok for result in results)
        assert await event_use_case.list_by_match(MATCH) == []
        assert await event_use_case.all_match_sums() == {"other.com/": 1}
        assert (await store.get(other))["match"] == "other.com/"

    @pytest.mark.asyncio
    async def test_nothing_to_remove(self, event_use_case: HighlightEventUseCase) -> None:
        assert await event_use_case.remove_all_for_match("nothing.com/") == []
