"""Database models backing the document store."""

from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from highlighter.database import Base


class DocumentRecord(Base):
    """Current (winning) revision of a document, or its tombstone."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    rev: Mapped[str] = mapped_column(String(64), nullable=False)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Update sequence of the last write to this document
    seq: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    body: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        """String representation of DocumentRecord."""
        return f"<DocumentRecord(id={self.id!r}, rev={self.rev!r}, deleted={self.deleted})>"


class RevisionRecord(Base):
    """Stored body of one document revision. Non-current revisions are removed by compaction."""

    __tablename__ = "document_revisions"

    doc_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True
    )
    rev: Mapped[str] = mapped_column(String(64), primary_key=True)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    body: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)


class ViewRowRecord(Base):
    """One row emitted into a secondary index by a document."""

    __tablename__ = "view_rows"
    __table_args__ = (Index("ix_view_rows_view_head", "view_name", "key_head"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    view_name: Mapped[str] = mapped_column(String(255), nullable=False)
    doc_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    # First string component of the key, narrows key and prefix-range lookups
    key_head: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    key: Mapped[Any] = mapped_column(JSON, nullable=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
