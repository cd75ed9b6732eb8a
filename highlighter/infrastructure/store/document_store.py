"""
Document store facade.

Owns the connection to the storage engine and exposes the generic document
operations as coroutines. The store is constructed once by the owning process
(see ``highlighter.core``), opened explicitly at startup and closed at shutdown.
Engine calls run in worker threads so no operation blocks the event loop.
"""

import asyncio
from collections.abc import Callable, Sequence
from typing import Any, TextIO, TypeVar

import structlog
from sqlalchemy.exc import SQLAlchemyError

from highlighter.application.ports import (
    Document,
    QueryOptions,
    QueryResult,
    StoreInfo,
    WriteResult,
)
from highlighter.exceptions import MissingIdError, StorageUnavailableError
from highlighter.infrastructure.store.engine import SqlDocumentEngine
from highlighter.infrastructure.store.transfer import read_dump, write_dump
from highlighter.infrastructure.store.views import (
    DESIGN_VIEWS,
    ViewSpec,
    install_design_documents,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class DocumentStore:
    """Async access to one document store."""

    def __init__(
        self,
        database_url: str,
        *,
        name: str = "highlighter",
        auto_compaction: bool = True,
        view_specs: Sequence[ViewSpec] = DESIGN_VIEWS,
        scratch_database_url: str = "sqlite://",
        export_batch_size: int = 50,
    ) -> None:
        """
        Initialize the store without connecting.

        Args:
            database_url: SQLAlchemy URL of the store
            name: Store name used in logs
            auto_compaction: Drop superseded revisions on every write
            view_specs: Index specs installed on open (empty for a raw store)
            scratch_database_url: Where import stages incoming content
            export_batch_size: Documents per dump line
        """
        self.database_url = database_url
        self.name = name
        self.auto_compaction = auto_compaction
        self.view_specs = tuple(view_specs)
        self.scratch_database_url = scratch_database_url
        self.export_batch_size = export_batch_size

        self._engine: SqlDocumentEngine | None = None
        self._lifecycle_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    # Lifecycle

    async def open(self) -> SqlDocumentEngine:
        """
        Connect to the store, installing the index specs into an empty store.

        Idempotent; concurrent callers share one connection and one installation.
        """
        if self._engine is not None:
            return self._engine

        async with self._lifecycle_lock:
            if self._engine is not None:
                return self._engine

            engine = await self._run(
                SqlDocumentEngine, self.database_url, auto_compaction=self.auto_compaction
            )
            if self.view_specs:
                try:
                    await self._run(install_design_documents, engine, self.view_specs)
                except Exception:
                    await asyncio.to_thread(engine.close)
                    raise

            if self._engine is not None:
                logger.critical("store_engine_already_established", store=self.name)
                assert self._engine is None, "document store engine established twice"

            self._engine = engine
            logger.info("store_opened", store=self.name)
            return engine

    async def close(self) -> None:
        """Release the connection. No-op if the store is not open."""
        async with self._lifecycle_lock:
            if self._engine is None:
                return
            engine, self._engine = self._engine, None
            await self._run(engine.close)
            logger.info("store_closed", store=self.name)

    async def destroy(self) -> None:
        """Irreversibly delete all stored data. A later open() starts a fresh store."""
        async with self._lifecycle_lock:
            engine = self._engine or await self._run(
                SqlDocumentEngine, self.database_url, auto_compaction=self.auto_compaction
            )
            self._engine = None
            await self._run(engine.destroy)
            logger.info("store_destroyed", store=self.name)

    # Documents

    async def info(self) -> StoreInfo:
        engine = self._require_engine()
        return await self._run(engine.info)

    async def put(
        self, doc: Document, *, doc_id: str | None = None, rev: str | None = None
    ) -> WriteResult:
        """
        Create or update a document.

        Args:
            doc: Document to write; ``_id``/``_rev`` are taken from it unless overridden
            doc_id: Id to write the document under
            rev: Revision the write is based on

        Raises:
            MissingIdError: If no id is resolvable
            ConflictError: If the revision is stale
        """
        engine = self._require_engine()

        target = doc
        if doc_id is not None or rev is not None:
            target = dict(doc)
            if doc_id:
                target["_id"] = doc_id
            if rev:
                target["_rev"] = rev

        if not target.get("_id"):
            raise MissingIdError()
        return await self._run(engine.put, target)

    async def post(self, doc: Document) -> WriteResult:
        """Create a document with a store-assigned id."""
        engine = self._require_engine()
        return await self._run(engine.post, doc)

    async def bulk_write(
        self, docs: list[Document], *, new_edits: bool = True
    ) -> list[WriteResult]:
        """
        Create, update or delete (``_deleted: True``) many documents.

        Each document is written atomically; per-document failures are
        reported in the results.
        """
        engine = self._require_engine()
        return await self._run(engine.bulk_docs, docs, new_edits=new_edits)

    async def remove(self, doc_id: str, rev: str) -> WriteResult:
        """
        Delete one document.

        Raises:
            ConflictError: If ``rev`` is not the current revision
            NotFoundError: If the document does not exist
        """
        engine = self._require_engine()
        return await self._run(engine.remove, doc_id, rev)

    async def get(self, doc_id: str, rev: str | None = None) -> Document:
        """
        Fetch a document; the latest revision unless ``rev`` is given.

        Raises:
            NotFoundError: If the document or revision does not exist
        """
        engine = self._require_engine()
        return await self._run(engine.get, doc_id, rev)

    async def query(self, view_name: str, options: QueryOptions | None = None) -> QueryResult:
        engine = self._require_engine()
        return await self._run(engine.query, view_name, options)

    # Maintenance

    async def compact(self) -> None:
        engine = self._require_engine()
        await self._run(engine.compact)

    async def cleanup_indexes(self) -> None:
        engine = self._require_engine()
        await self._run(engine.view_cleanup)

    # Transfer

    async def export_to(self, sink: TextIO) -> int:
        """
        Dump every document except index definitions to ``sink``.

        Returns:
            Number of documents exported
        """
        engine = self._require_engine()
        docs = await self._run(engine.all_documents, include_design=False)
        info = await self._run(engine.info)
        count = await self._run(
            write_dump,
            sink,
            docs,
            info,
            db_type=engine.dialect_name,
            batch_size=self.export_batch_size,
        )
        logger.info("store_exported", store=self.name, doc_count=count)
        return count

    async def import_from(self, source: str | TextIO) -> int:
        """
        Replace the whole store content with a dump.

        The dump is loaded into a scratch store first; only when that succeeds
        is this store destroyed, re-created and filled from the scratch store.
        The scratch store is destroyed in every case and failures are re-raised.

        Returns:
            Number of documents imported
        """
        scratch = DocumentStore(
            self.scratch_database_url,
            name=f"{self.name}-scratch",
            auto_compaction=False,
            view_specs=(),
        )
        await scratch.open()

        try:
            count = await scratch.load(source)
            await self.destroy()
            await self.open()
            await scratch.replicate_to(self)
        except Exception as e:
            logger.error("store_import_failed", store=self.name, error=str(e))
            await scratch.destroy()
            raise

        await scratch.destroy()
        logger.info("store_imported", store=self.name, doc_count=count)
        return count

    async def load(self, source: str | TextIO) -> int:
        """
        Write the documents of a dump into this store, keeping their revisions.

        Raises:
            ValidationError: If the dump is malformed
            StorageUnavailableError: If any document could not be stored
        """
        engine = self._require_engine()
        return await self._run(self._load_dump, engine, source)

    async def replicate_to(self, target: "DocumentStore") -> int:
        """Copy every document except index definitions into ``target``."""
        engine = self._require_engine()
        docs = await self._run(engine.all_documents, include_design=False)
        results = await target.bulk_write(docs, new_edits=False)
        self._raise_on_failures(results, action="replicate")
        logger.info("store_replicated", source=self.name, target=target.name, doc_count=len(docs))
        return len(docs)

    # Internals

    def _require_engine(self) -> SqlDocumentEngine:
        if self._engine is None:
            raise StorageUnavailableError(f"Document store {self.name} is not open")
        return self._engine

    async def _run(self, func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:  # noqa: ANN401
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("storage_engine_failure", store=self.name, error=str(e))
            raise StorageUnavailableError(f"Storage engine failure: {e}") from e

    @classmethod
    def _load_dump(cls, engine: SqlDocumentEngine, source: str | TextIO) -> int:
        count = 0
        for docs in read_dump(source):
            cls._raise_on_failures(engine.bulk_docs(docs, new_edits=False), action="load")
            count += len(docs)
        return count

    @staticmethod
    def _raise_on_failures(results: list[WriteResult], *, action: str) -> None:
        failures = [result for result in results if not result.ok]
        if failures:
            first = failures[0]
            raise StorageUnavailableError(
                f"Failed to {action} {len(failures)} documents (first: {first.id}: {first.reason})"
            )
