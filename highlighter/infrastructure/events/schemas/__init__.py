"""Highlight events schemas."""

from highlighter.infrastructure.events.schemas.highlight_event_schemas import (
    FormatMatchRequest,
    FormatMatchResponse,
    HighlightCreateRequest,
    HighlightDeleteRequest,
    HighlightEventResponse,
    HighlightEventsResponse,
    HighlightUpdateRequest,
    MatchSumsResponse,
    NetCountResponse,
    WriteResultResponse,
    WriteResultsResponse,
)

__all__ = [
    "FormatMatchRequest",
    "FormatMatchResponse",
    "HighlightCreateRequest",
    "HighlightDeleteRequest",
    "HighlightEventResponse",
    "HighlightEventsResponse",
    "HighlightUpdateRequest",
    "MatchSumsResponse",
    "NetCountResponse",
    "WriteResultResponse",
    "WriteResultsResponse",
]
