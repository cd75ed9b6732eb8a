"""Document storage: engine, index specs, async facade and dump format."""

from .document_store import DocumentStore
from .views import DESIGN_VIEWS, MATCH_DATE_VIEW, SUM_VIEW, ViewSpec

__all__ = [
    "DESIGN_VIEWS",
    "MATCH_DATE_VIEW",
    "SUM_VIEW",
    "DocumentStore",
    "ViewSpec",
]
