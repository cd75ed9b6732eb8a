"""
Secondary index definitions.

Indexes are declared as data: which document fields make up the key, which
fields must be present for a document to be indexed, how the emitted value is
derived and which built-in operator reduces it. The specs are stored in the
store as ``_design/<name>`` documents and evaluated by the storage engine.
Bump a spec's ``version`` when changing it; open() re-installs changed specs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from highlighter.infrastructure.store.engine import SqlDocumentEngine

logger = structlog.get_logger(__name__)

DESIGN_VIEW_PREFIX = "_design"

MATCH_DATE_VIEW = "match_date_view"
SUM_VIEW = "sum_view"


class ValueRule(BaseModel):
    """Emitted value looked up from a document field; unmapped field values emit nothing."""

    model_config = ConfigDict(frozen=True)

    field: str
    mapping: dict[str, int | float]


class ViewSpec(BaseModel):
    """Declarative map (and optional reduce) index specification."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: int = 1
    key: tuple[str, ...]
    require: tuple[str, ...] = ()
    value: ValueRule | None = None
    reduce: Literal["_sum", "_count"] | None = None

    @property
    def design_id(self) -> str:
        return f"{DESIGN_VIEW_PREFIX}/{self.name}"

    def emit(self, doc: Mapping[str, Any]) -> tuple[Any, Any] | None:
        """
        Evaluate the spec against a document body.

        Returns:
            ``(key, value)`` to index, or None if the document emits nothing
        """
        if any(not doc.get(name) for name in self.require):
            return None

        value = None
        if self.value is not None:
            raw = doc.get(self.value.field)
            if not isinstance(raw, str) or raw not in self.value.mapping:
                return None
            value = self.value.mapping[raw]

        if len(self.key) == 1:
            return doc.get(self.key[0]), value
        return [doc.get(name) for name in self.key], value

    def to_design_document(self) -> dict[str, Any]:
        return {
            "_id": self.design_id,
            "version": self.version,
            "views": {
                self.name: self.model_dump(mode="json", exclude={"name", "version"}),
            },
        }

    @classmethod
    def from_design_document(cls, doc: Mapping[str, Any]) -> list[ViewSpec]:
        """
        Parse the view specs of a design document.

        Raises:
            pydantic.ValidationError: If a view does not describe a valid spec
            TypeError: If ``views`` or one of its entries is not an object
        """
        version = doc.get("version", 0)
        views = doc.get("views") or {}
        if not isinstance(views, Mapping) or not all(
            isinstance(body, Mapping) for body in views.values()
        ):
            raise TypeError("views must map view names to objects")
        return [
            cls.model_validate({**body, "name": name, "version": version})
            for name, body in views.items()
        ]


# every event, ordered by page then date: key [match, date], value null
MATCH_DATE_VIEW_SPEC = ViewSpec(
    name=MATCH_DATE_VIEW,
    key=("match", "date"),
    require=("match",),
)

# +1 per create, -1 per delete, summed per match. Zero means nothing is live
SUM_VIEW_SPEC = ViewSpec(
    name=SUM_VIEW,
    key=("match",),
    require=("match",),
    value=ValueRule(field="verb", mapping={"create": 1, "delete": -1}),
    reduce="_sum",
)

DESIGN_VIEWS: tuple[ViewSpec, ...] = (MATCH_DATE_VIEW_SPEC, SUM_VIEW_SPEC)


def is_design_id(doc_id: str) -> bool:
    return doc_id.startswith(f"{DESIGN_VIEW_PREFIX}/")


def collate(value: Any) -> tuple[Any, ...]:  # noqa: ANN401
    """
    Sort key implementing index key collation.

    null < false < true < numbers < strings < arrays < objects. Arrays compare
    element-wise, so ``[m] < [m, 1] < [m, {}]``.
    """
    if value is None:
        return (0,)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, int | float):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    if isinstance(value, list | tuple):
        return (4, tuple(collate(item) for item in value))
    if isinstance(value, Mapping):
        return (5, tuple((name, collate(item)) for name, item in value.items()))
    raise TypeError(f"Cannot collate index key of type {type(value).__name__}")


def key_head(key: Any) -> str | None:  # noqa: ANN401
    """First string component of a key (the key itself for string keys)."""
    if isinstance(key, str):
        return key
    if isinstance(key, list | tuple) and key and isinstance(key[0], str):
        return key[0]
    return None


def reduce_values(operator: str, values: Sequence[Any]) -> int | float:
    if operator == "_count":
        return len(values)
    if operator == "_sum":
        return sum(value for value in values if isinstance(value, int | float))
    raise ValueError(f"Unknown reduce operator {operator!r}")


def install_design_documents(
    engine: SqlDocumentEngine, specs: Sequence[ViewSpec] = DESIGN_VIEWS
) -> list[str]:
    """
    Put the design documents for ``specs`` into a store.

    An empty store gets every design document in one bulk write. Otherwise only
    design documents that are missing or carry a different version are (re)put,
    which rebuilds their indexes.

    Returns:
        Names of the views installed
    """
    info = engine.info()

    if info.doc_count == 0:
        engine.bulk_docs([spec.to_design_document() for spec in specs])
        installed = [spec.name for spec in specs]
        logger.info("design_documents_installed", views=installed, fresh_store=True)
        return installed

    installed = []
    for spec in specs:
        doc = spec.to_design_document()
        current = engine.get_current(spec.design_id)
        if current is not None:
            if current.get("version") == spec.version:
                continue
            doc["_rev"] = current["_rev"]
        engine.put(doc)
        installed.append(spec.name)

    if installed:
        logger.info("design_documents_installed", views=installed, fresh_store=False)
    return installed
