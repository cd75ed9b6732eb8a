from .document_store import (
    Document,
    DocumentStoreProtocol,
    QueryOptions,
    QueryResult,
    QueryRow,
    StoreInfo,
    WriteResult,
)

__all__ = [
    "Document",
    "DocumentStoreProtocol",
    "QueryOptions",
    "QueryResult",
    "QueryRow",
    "StoreInfo",
    "WriteResult",
]
