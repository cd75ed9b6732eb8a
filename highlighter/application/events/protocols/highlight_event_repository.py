from typing import Protocol

from highlighter.application.ports import WriteResult
from highlighter.domain.common.value_objects import EventId, Revision
from highlighter.domain.events.entities import CreateEvent, DeleteEvent, HighlightEvent


class HighlightEventRepositoryProtocol(Protocol):
    async def save(self, event: CreateEvent) -> WriteResult: ...

    async def append_delete(self, event: DeleteEvent) -> WriteResult: ...

    async def find_by_id(
        self, event_id: EventId, revision: Revision | None = None
    ) -> HighlightEvent: ...

    async def find_by_match(
        self, match: str, *, descending: bool = False, limit: int | None = None
    ) -> list[HighlightEvent]: ...

    async def has_delete_for(self, match: str, create_id: EventId) -> bool: ...

    async def net_count(self, match: str) -> int: ...

    async def match_sums(self) -> dict[str, int]: ...

    async def remove_all_for_match(self, match: str) -> list[WriteResult]: ...
