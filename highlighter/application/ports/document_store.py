"""
Port for the document store.

Documents are plain JSON-serializable dicts carrying ``_id`` and ``_rev``.
Every write takes the expected revision (on the document or as override) and
returns the newly issued one.
"""

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, TextIO

Document = dict[str, Any]


@dataclass(frozen=True)
class WriteResult:
    """Outcome of writing one document."""

    ok: bool
    id: str
    rev: str | None = None
    error: Literal["conflict", "not_found", "missing_id", "invalid"] | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "id": self.id, "rev": self.rev}
        return {"ok": False, "id": self.id, "error": self.error, "reason": self.reason}


@dataclass(frozen=True)
class QueryOptions:
    """
    Secondary index query options.

    ``key`` selects rows with exactly that key; ``start_key``/``end_key`` select a
    range in index order (swap them when ``descending``). ``reduce`` defaults to
    True for views with a reduce operator.
    """

    key: Any = None
    start_key: Any = None
    end_key: Any = None
    inclusive_end: bool = True
    descending: bool = False
    skip: int = 0
    limit: int | None = None
    include_docs: bool = False
    reduce: bool | None = None
    group: bool = False
    group_level: int | None = None


@dataclass(frozen=True)
class QueryRow:
    key: Any
    value: Any
    id: str | None = None
    doc: Document | None = None

    def to_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {"key": self.key, "value": self.value}
        if self.id is not None:
            row["id"] = self.id
        if self.doc is not None:
            row["doc"] = self.doc
        return row


@dataclass(frozen=True)
class QueryResult:
    rows: list[QueryRow] = field(default_factory=list)
    total_rows: int = 0
    offset: int = 0


@dataclass(frozen=True)
class StoreInfo:
    doc_count: int
    update_seq: int


class DocumentStoreProtocol(Protocol):
    async def open(self) -> object: ...

    async def close(self) -> None: ...

    async def destroy(self) -> None: ...

    async def info(self) -> StoreInfo: ...

    async def put(
        self, doc: Document, *, doc_id: str | None = None, rev: str | None = None
    ) -> WriteResult: ...

    async def post(self, doc: Document) -> WriteResult: ...

    async def bulk_write(
        self, docs: list[Document], *, new_edits: bool = True
    ) -> list[WriteResult]: ...

    async def remove(self, doc_id: str, rev: str) -> WriteResult: ...

    async def get(self, doc_id: str, rev: str | None = None) -> Document: ...

    async def query(self, view_name: str, options: QueryOptions | None = None) -> QueryResult: ...

    async def compact(self) -> None: ...

    async def cleanup_indexes(self) -> None: ...

    async def export_to(self, sink: TextIO) -> int: ...

    async def import_from(self, source: str | TextIO) -> int: ...
