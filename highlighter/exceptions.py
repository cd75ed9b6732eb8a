"""Custom exception hierarchy for the highlight store."""


class HighlighterError(Exception):
    """Base exception for all highlight store errors."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        """Initialize exception with message and optional status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class MissingIdError(HighlighterError):
    """A write was attempted without a resolvable document id."""

    def __init__(self, message: str = "undefined document id") -> None:
        """Initialize with message and 400 status code."""
        super().__init__(message, status_code=400)


class NotFoundError(HighlighterError):
    """Document (or document revision, or view) not found."""

    def __init__(
        self, doc_id: str | None = None, *, rev: str | None = None, message: str | None = None
    ) -> None:
        """Initialize with document id, optional revision or custom message."""
        self.doc_id = doc_id
        self.rev = rev
        if message:
            super().__init__(message, status_code=404)
        elif rev is not None:
            super().__init__(f"Document {doc_id} at revision {rev} not found", status_code=404)
        elif doc_id is not None:
            super().__init__(f"Document {doc_id} not found", status_code=404)
        else:
            super().__init__("Document not found", status_code=404)


class ConflictError(HighlighterError):
    """Write or remove presented a stale (or missing) revision."""

    def __init__(self, doc_id: str, *, message: str | None = None) -> None:
        """Initialize with document id or custom message."""
        self.doc_id = doc_id
        super().__init__(message or f"Document update conflict for {doc_id}", status_code=409)


class WrongVerbError(HighlighterError):
    """A create-only operation was applied to a document of another verb."""

    def __init__(self, doc_id: str, expected: str, actual: object) -> None:
        """Initialize with the document id and the expected/actual verbs."""
        self.doc_id = doc_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Document {doc_id} has verb {actual!r}, expected {expected!r}", status_code=422
        )


class StorageUnavailableError(HighlighterError):
    """The storage engine failed to open, read or write."""

    def __init__(self, message: str) -> None:
        """Initialize with message and 503 status code."""
        super().__init__(message, status_code=503)


class ValidationError(HighlighterError):
    """Invalid input to a store operation (bad query options, malformed dump)."""

    def __init__(self, message: str) -> None:
        """Initialize with message and 400 status code."""
        super().__init__(message, status_code=400)
