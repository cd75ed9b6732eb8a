"""
Document storage engine on SQLAlchemy.

A synchronous document store with revision tokens, tombstones, and secondary
indexes materialized on every write from the ``_design/`` documents the store
holds. All calls are serialized; the async facade runs them in worker threads.
"""

import copy
import json
import operator
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from uuid import uuid4

import pydantic
import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from highlighter.application.ports import (
    Document,
    QueryOptions,
    QueryResult,
    QueryRow,
    StoreInfo,
    WriteResult,
)
from highlighter.database import Base, build_engine, build_session_factory
from highlighter.exceptions import (
    ConflictError,
    HighlighterError,
    MissingIdError,
    NotFoundError,
    ValidationError,
)
from highlighter.infrastructure.store.models import DocumentRecord, RevisionRecord, ViewRowRecord
from highlighter.infrastructure.store.views import (
    DESIGN_VIEW_PREFIX,
    ViewSpec,
    collate,
    is_design_id,
    key_head,
    reduce_values,
)

logger = structlog.get_logger(__name__)

_DESIGN_PREFIX = f"{DESIGN_VIEW_PREFIX}/"
# Bulk deletes never touch objects already loaded in the session
_BULK = {"synchronize_session": False}

_ERROR_CODES: dict[type[HighlighterError], str] = {
    ConflictError: "conflict",
    NotFoundError: "not_found",
    MissingIdError: "missing_id",
    ValidationError: "invalid",
}


def new_doc_id() -> str:
    return uuid4().hex


def revision_generation(rev: str) -> int:
    """Generation number of a ``<generation>-<hash>`` revision token."""
    try:
        return int(rev.split("-", 1)[0])
    except ValueError:
        return 0


def _new_rev(generation: int) -> str:
    return f"{generation}-{uuid4().hex}"


def _wins(rev: str, other: str) -> bool:
    """Deterministic winner between two revisions of one document."""
    return (revision_generation(rev), rev) > (revision_generation(other), other)


def _to_document(doc_id: str, rev: str, body: dict[str, Any]) -> Document:
    return {"_id": doc_id, "_rev": rev, **copy.deepcopy(body)}


class SqlDocumentEngine:
    """Document store engine persisting to any SQLAlchemy database."""

    def __init__(self, database_url: str, *, auto_compaction: bool = True) -> None:
        """
        Connect and create the store tables if needed.

        Args:
            database_url: SQLAlchemy URL, e.g. ``sqlite:///./highlighter.db``
            auto_compaction: Drop superseded revisions on every write
        """
        self.database_url = database_url
        self.auto_compaction = auto_compaction
        self._engine = build_engine(database_url)
        self._session_factory = build_session_factory(self._engine)
        self._lock = threading.RLock()
        self._views: dict[str, ViewSpec] | None = None

        Base.metadata.create_all(bind=self._engine)

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    # Lifecycle

    def close(self) -> None:
        with self._lock:
            self._engine.dispose()

    def destroy(self) -> None:
        """Drop every table of the store and release the connection."""
        with self._lock:
            Base.metadata.drop_all(bind=self._engine)
            self._engine.dispose()
            self._views = None

    # Reads

    def info(self) -> StoreInfo:
        with self._read() as session:
            doc_count = session.scalar(
                select(func.count())
                .select_from(DocumentRecord)
                .where(DocumentRecord.deleted.is_(False))
            )
            update_seq = session.scalar(select(func.max(DocumentRecord.seq)))
        return StoreInfo(doc_count=doc_count or 0, update_seq=update_seq or 0)

    def get(self, doc_id: str, rev: str | None = None) -> Document:
        """
        Fetch a document, at its current revision unless ``rev`` is given.

        Raises:
            NotFoundError: If the document (or revision) is missing or deleted
        """
        with self._read() as session:
            record = session.get(DocumentRecord, doc_id)
            if record is None:
                raise NotFoundError(doc_id)

            if rev is None or rev == record.rev:
                if record.deleted:
                    raise NotFoundError(doc_id, message=f"Document {doc_id} is deleted")
                return _to_document(record.id, record.rev, record.body)

            revision = session.get(RevisionRecord, (doc_id, rev))
            if revision is None or revision.deleted:
                raise NotFoundError(doc_id, rev=rev)
            return _to_document(doc_id, rev, revision.body)

    def get_current(self, doc_id: str) -> Document | None:
        """Current revision of a live document, or None."""
        try:
            return self.get(doc_id)
        except NotFoundError:
            return None

    def all_documents(self, *, include_design: bool = True) -> list[Document]:
        """Every live document in update order."""
        with self._read() as session:
            stmt = (
                select(DocumentRecord)
                .where(DocumentRecord.deleted.is_(False))
                .order_by(DocumentRecord.seq)
            )
            if not include_design:
                stmt = stmt.where(~DocumentRecord.id.startswith(_DESIGN_PREFIX, autoescape=True))
            return [_to_document(r.id, r.rev, r.body) for r in session.scalars(stmt)]

    # Writes

    def put(self, doc: Document) -> WriteResult:
        """
        Create or update a document identified by its ``_id``.

        Updating requires ``_rev`` to be the current revision. A document with
        ``_deleted`` set is deleted.

        Raises:
            MissingIdError: If the document has no ``_id``
            ConflictError: If ``_rev`` is stale or missing for an existing document
        """
        if not doc.get("_id"):
            raise MissingIdError()
        with self._transaction() as session:
            return self._write(session, doc)

    def post(self, doc: Document) -> WriteResult:
        """Create a document under a new store-assigned id."""
        with self._transaction() as session:
            return self._write(session, {**doc, "_id": new_doc_id()})

    def remove(self, doc_id: str, rev: str) -> WriteResult:
        with self._transaction() as session:
            return self._write(session, {"_id": doc_id, "_rev": rev, "_deleted": True})

    def bulk_docs(self, docs: list[Document], *, new_edits: bool = True) -> list[WriteResult]:
        """
        Write many documents, each in its own transaction.

        Documents without ``_id`` get a new one. Failures are reported per
        document in the results instead of being raised.

        Args:
            docs: Documents to create, update, or delete (``_deleted``)
            new_edits: False to store the supplied revisions as-is (replication)
        """
        results = []
        for doc in docs:
            if new_edits and not doc.get("_id"):
                doc = {**doc, "_id": new_doc_id()}
            try:
                with self._transaction() as session:
                    results.append(self._write(session, doc, new_edits=new_edits))
            except HighlighterError as e:
                results.append(
                    WriteResult(
                        ok=False,
                        id=doc.get("_id") or "",
                        error=_ERROR_CODES.get(type(e), "invalid"),  # type: ignore[arg-type]
                        reason=e.message,
                    )
                )
        return results

    # Queries

    def query(self, view_name: str, options: QueryOptions | None = None) -> QueryResult:
        """
        Query a secondary index.

        Raises:
            NotFoundError: If no design document defines ``view_name``
            ValidationError: If the options do not fit the view
        """
        options = options or QueryOptions()

        with self._read() as session:
            spec = self._load_views(session).get(view_name)
            if spec is None:
                raise NotFoundError(message=f"View {view_name} not found")

            reduce = spec.reduce is not None if options.reduce is None else options.reduce
            self._validate_options(spec, options, reduce=reduce)

            stmt = select(ViewRowRecord).where(ViewRowRecord.view_name == view_name)
            head = self._head_filter(options)
            if head is not None:
                stmt = stmt.where(ViewRowRecord.key_head == head)

            rows = sorted(
                ((r.key, r.value, r.doc_id) for r in session.scalars(stmt)),
                key=lambda row: (collate(row[0]), row[2]),
                reverse=options.descending,
            )
            rows = [row for row in rows if self._in_range(row[0], options)]

            if reduce:
                reduced = self._reduce(spec, rows, options)
                reduced = self._page(reduced, options)
                return QueryResult(rows=reduced, total_rows=len(reduced), offset=0)

            total_rows = session.scalar(
                select(func.count())
                .select_from(ViewRowRecord)
                .where(ViewRowRecord.view_name == view_name)
            )
            page = self._page(rows, options)

            docs: dict[str, Document] = {}
            if options.include_docs and page:
                stmt_docs = select(DocumentRecord).where(
                    DocumentRecord.id.in_({doc_id for _, _, doc_id in page})
                )
                docs = {r.id: _to_document(r.id, r.rev, r.body) for r in session.scalars(stmt_docs)}

            return QueryResult(
                rows=[
                    QueryRow(key=key, value=value, id=doc_id, doc=docs.get(doc_id))
                    for key, value, doc_id in page
                ],
                total_rows=total_rows or 0,
                offset=options.skip,
            )

    # Maintenance

    def view_cleanup(self) -> int:
        """Drop index rows of views that no design document defines any more."""
        with self._transaction() as session:
            self._views = None
            names = list(self._load_views(session))
            result = session.execute(
                delete(ViewRowRecord).where(ViewRowRecord.view_name.not_in(names)),
                execution_options=_BULK,
            )
        removed = result.rowcount or 0
        logger.info("view_cleanup_completed", views=names, rows_removed=removed)
        return removed

    def compact(self) -> int:
        """Drop the bodies of every non-current revision."""
        with self._transaction() as session:
            current = select(DocumentRecord.id).where(
                DocumentRecord.id == RevisionRecord.doc_id,
                DocumentRecord.rev == RevisionRecord.rev,
            )
            result = session.execute(
                delete(RevisionRecord).where(~current.correlate(RevisionRecord).exists()),
                execution_options=_BULK,
            )
        removed = result.rowcount or 0

        if self._engine.dialect.name == "sqlite":
            with self._lock, self._engine.connect() as conn:
                conn.execution_options(isolation_level="AUTOCOMMIT").exec_driver_sql("VACUUM")

        logger.info("store_compacted", revisions_removed=removed)
        return removed

    # Internals

    @contextmanager
    def _read(self) -> Iterator[Session]:
        with self._lock, self._session_factory() as session:
            yield session

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        with self._lock, self._session_factory() as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                # specs may have been loaded from uncommitted design documents
                self._views = None
                raise

    def _write(self, session: Session, doc: Document, *, new_edits: bool = True) -> WriteResult:
        doc_id: str | None = doc.get("_id")
        if not doc_id:
            raise MissingIdError()

        deleted = bool(doc.get("_deleted"))
        body = {} if deleted else {k: v for k, v in doc.items() if not k.startswith("_")}
        try:
            json.dumps(body)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Document {doc_id} is not JSON serializable: {e}") from e

        specs = None
        if is_design_id(doc_id) and not deleted:
            specs = self._design_specs(doc_id, body)

        record = session.get(DocumentRecord, doc_id)

        if new_edits:
            rev = self._next_rev(doc_id, record, doc.get("_rev"), deleted=deleted)
        else:
            rev = doc.get("_rev")
            if not rev:
                raise MissingIdError(f"Replicated document {doc_id} has no revision")
            if session.get(RevisionRecord, (doc_id, rev)) is not None:
                return WriteResult(ok=True, id=doc_id, rev=rev)
            if record is not None and not _wins(rev, record.rev):
                # Keep the losing revision around, the current one stays
                if not self.auto_compaction:
                    session.add(RevisionRecord(doc_id=doc_id, rev=rev, deleted=deleted, body=body))
                return WriteResult(ok=True, id=doc_id, rev=rev)

        seq = (session.scalar(select(func.max(DocumentRecord.seq))) or 0) + 1
        if record is None:
            record = DocumentRecord(id=doc_id, rev=rev, deleted=deleted, seq=seq, body=body)
            session.add(record)
        else:
            record.rev = rev
            record.deleted = deleted
            record.seq = seq
            record.body = body
        session.flush()

        session.add(RevisionRecord(doc_id=doc_id, rev=rev, deleted=deleted, body=body))
        if self.auto_compaction:
            session.execute(
                delete(RevisionRecord).where(
                    RevisionRecord.doc_id == doc_id, RevisionRecord.rev != rev
                ),
                execution_options=_BULK,
            )

        if is_design_id(doc_id):
            self._views = None
            if specs is not None:
                self._rebuild_views(session, specs)
        else:
            self._index_document(session, doc_id, body, deleted=deleted)

        return WriteResult(ok=True, id=doc_id, rev=rev)

    @staticmethod
    def _design_specs(doc_id: str, body: dict[str, Any]) -> list[ViewSpec]:
        try:
            return ViewSpec.from_design_document(body)
        except (pydantic.ValidationError, TypeError) as e:
            raise ValidationError(f"Design document {doc_id} is invalid: {e}") from e

    @staticmethod
    def _next_rev(
        doc_id: str, record: DocumentRecord | None, expected: str | None, *, deleted: bool
    ) -> str:
        if record is None:
            if deleted:
                raise NotFoundError(doc_id)
            if expected:
                raise ConflictError(doc_id)
            return _new_rev(1)

        if record.deleted:
            if deleted:
                raise NotFoundError(doc_id, message=f"Document {doc_id} is deleted")
            # Recreating a deleted document needs no revision
            if expected and expected != record.rev:
                raise ConflictError(doc_id)
            return _new_rev(revision_generation(record.rev) + 1)

        if expected != record.rev:
            raise ConflictError(doc_id)
        return _new_rev(revision_generation(record.rev) + 1)

    def _load_views(self, session: Session) -> dict[str, ViewSpec]:
        if self._views is not None:
            return self._views

        views: dict[str, ViewSpec] = {}
        stmt = select(DocumentRecord).where(
            DocumentRecord.id.startswith(_DESIGN_PREFIX, autoescape=True),
            DocumentRecord.deleted.is_(False),
        )
        for record in session.scalars(stmt):
            try:
                specs = ViewSpec.from_design_document(record.body)
            except (pydantic.ValidationError, TypeError) as e:
                logger.warning("invalid_design_document", doc_id=record.id, error=str(e))
                continue
            views.update((spec.name, spec) for spec in specs)

        self._views = views
        return views

    def _index_document(
        self, session: Session, doc_id: str, body: dict[str, Any], *, deleted: bool
    ) -> None:
        session.execute(
            delete(ViewRowRecord).where(ViewRowRecord.doc_id == doc_id), execution_options=_BULK
        )
        if deleted:
            return
        for spec in self._load_views(session).values():
            self._emit(session, spec, doc_id, body)

    def _rebuild_views(self, session: Session, specs: list[ViewSpec]) -> None:
        names = [spec.name for spec in specs]
        session.execute(
            delete(ViewRowRecord).where(ViewRowRecord.view_name.in_(names)), execution_options=_BULK
        )

        stmt = select(DocumentRecord).where(
            DocumentRecord.deleted.is_(False),
            ~DocumentRecord.id.startswith(_DESIGN_PREFIX, autoescape=True),
        )
        count = 0
        for record in session.scalars(stmt):
            for spec in specs:
                count += self._emit(session, spec, record.id, record.body)
        logger.debug("views_rebuilt", views=names, rows=count)

    @staticmethod
    def _emit(session: Session, spec: ViewSpec, doc_id: str, body: dict[str, Any]) -> int:
        emitted = spec.emit(body)
        if emitted is None:
            return 0
        key, value = emitted
        session.add(
            ViewRowRecord(
                view_name=spec.name,
                doc_id=doc_id,
                key_head=key_head(key),
                key=key,
                value=value,
            )
        )
        return 1

    @staticmethod
    def _validate_options(spec: ViewSpec, options: QueryOptions, *, reduce: bool) -> None:
        if reduce and spec.reduce is None:
            raise ValidationError(f"View {spec.name} has no reduce operator")
        if not reduce and (options.group or options.group_level is not None):
            raise ValidationError("group and group_level require a reduce query")
        if reduce and options.include_docs:
            raise ValidationError("include_docs is invalid for reduce queries")
        if options.skip < 0 or (options.limit is not None and options.limit < 0):
            raise ValidationError("skip and limit must not be negative")

    @staticmethod
    def _head_filter(options: QueryOptions) -> str | None:
        if options.key is not None:
            return key_head(options.key)
        if options.start_key is not None and options.end_key is not None:
            start, end = key_head(options.start_key), key_head(options.end_key)
            if start is not None and start == end:
                return start
        return None

    @staticmethod
    def _in_range(key: Any, options: QueryOptions) -> bool:  # noqa: ANN401
        position = collate(key)
        if options.key is not None:
            return position == collate(options.key)

        # descending queries walk the index backwards, so bounds swap sides
        before_start = operator.gt if options.descending else operator.lt

        if options.start_key is not None:
            if before_start(position, collate(options.start_key)):
                return False

        if options.end_key is not None:
            end = collate(options.end_key)
            if before_start(end, position):
                return False
            if position == end and not options.inclusive_end:
                return False

        return True

    @staticmethod
    def _reduce(
        spec: ViewSpec, rows: list[tuple[Any, Any, str]], options: QueryOptions
    ) -> list[QueryRow]:
        reducer = spec.reduce or "_count"

        if not options.group and options.group_level is None:
            if not rows:
                return []
            return [QueryRow(key=None, value=reduce_values(reducer, [v for _, v, _ in rows]))]

        groups: dict[str, tuple[Any, list[Any]]] = {}
        for key, value, _ in rows:
            group_key = key
            if options.group_level is not None and isinstance(key, list):
                group_key = key[: options.group_level]
            marker = json.dumps(group_key, sort_keys=True)
            groups.setdefault(marker, (group_key, []))[1].append(value)

        return [
            QueryRow(key=group_key, value=reduce_values(reducer, values))
            for group_key, values in groups.values()
        ]

    @staticmethod
    def _page(rows: list[Any], options: QueryOptions) -> list[Any]:
        if options.limit is None:
            return rows[options.skip :]
        return rows[options.skip : options.skip + options.limit]
