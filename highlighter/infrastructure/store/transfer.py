"""
Store dump format.

Newline-delimited JSON: a header line describing the source store, one line
per batch of documents, and a final line with the source update sequence::

    {"version": "4.0.0", "db_type": "sqlite", "start_time": "...", "db_info": {...}}
    {"docs": [{"_id": "...", "_rev": "1-...", ...}, ...]}
    {"seq": 42}
"""

import json
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from typing import TextIO

from highlighter import __version__
from highlighter.application.ports import Document, StoreInfo
from highlighter.exceptions import ValidationError


def write_dump(
    sink: TextIO,
    docs: list[Document],
    info: StoreInfo,
    *,
    db_type: str,
    batch_size: int = 50,
) -> int:
    """
    Write documents to ``sink`` in dump format.

    Returns:
        Number of documents written
    """
    header = {
        "version": __version__,
        "db_type": db_type,
        "start_time": datetime.now(UTC).isoformat(),
        "db_info": {"doc_count": info.doc_count, "update_seq": info.update_seq},
    }
    sink.write(json.dumps(header) + "\n")

    for start in range(0, len(docs), batch_size):
        sink.write(json.dumps({"docs": docs[start : start + batch_size]}) + "\n")

    sink.write(json.dumps({"seq": info.update_seq}) + "\n")
    return len(docs)


def read_dump(source: str | TextIO) -> Iterator[list[Document]]:
    """
    Parse a dump, yielding its batches of documents.

    Raises:
        ValidationError: If a line is not valid dump content
    """
    lines: Iterable[str] = source.splitlines() if isinstance(source, str) else source

    for number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid dump line {number}: {e.msg}") from e

        if not isinstance(entry, dict):
            raise ValidationError(f"Invalid dump line {number}: expected an object")
        if "docs" not in entry:
            # header and sequence lines
            continue

        docs = entry["docs"]
        if not isinstance(docs, list) or not all(
            isinstance(doc, dict) and doc.get("_id") and doc.get("_rev") for doc in docs
        ):
            raise ValidationError(f"Invalid dump line {number}: documents need _id and _rev")
        yield docs
