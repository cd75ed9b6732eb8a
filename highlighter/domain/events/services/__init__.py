"""Highlight events domain services."""

from .document_sorter import document_date, sort_documents
from .event_filters import exclude_cancelled, filter_by_verbs
from .match_formatter import decode_uri, format_match
from .producer_version import major_version

__all__ = [
    "decode_uri",
    "document_date",
    "exclude_cancelled",
    "filter_by_verbs",
    "format_match",
    "major_version",
    "sort_documents",
]
