"""Sorting of event documents by a resolvable key."""

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

D = TypeVar("D")

SortKey = str | int | float
KeyFunction = Callable[[Any], SortKey | None | Awaitable[SortKey | None]]


def document_date(doc: Any) -> int:  # noqa: ANN401
    """Default sort key: the event date of a raw document or an event entity."""
    if isinstance(doc, Mapping):
        return doc["date"]
    return doc.date


async def sort_documents(docs: Sequence[D], key: KeyFunction = document_date) -> list[D]:
    """
    Sort documents by a key that may need to be resolved asynchronously.

    Keys are resolved concurrently. A document whose key resolution raises, or
    resolves to something that is neither a string nor a number, is unorderable:
    unorderable documents follow all orderable ones, keeping their input order.
    Numbers order before strings when both kinds are present.

    Args:
        docs: Documents to sort (not modified)
        key: Function returning the sort key, or an awaitable resolving to it

    Returns:
        New list with the documents in sorted order
    """
    keys = await asyncio.gather(*(_resolve_key(key, doc) for doc in docs))
    order = sorted(range(len(docs)), key=lambda index: _rank(keys[index]))
    return [docs[index] for index in order]


async def _resolve_key(key: KeyFunction, doc: Any) -> SortKey | None:  # noqa: ANN401
    try:
        value = key(doc)
        if inspect.isawaitable(value):
            value = await value
    except Exception:  # noqa: BLE001
        return None
    return value


def _rank(value: object) -> tuple[Any, ...]:
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        return (1,)
    if isinstance(value, str):
        return (0, 1, value)
    return (0, 0, value)
