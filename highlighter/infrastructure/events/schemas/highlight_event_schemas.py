"""Pydantic schemas for highlight event API request/response validation."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from highlighter.application.ports import WriteResult
from highlighter.domain.events.entities import CreateEvent, DeleteEvent, HighlightEvent


class WriteResultResponse(BaseModel):
    """Outcome of writing one document."""

    ok: bool
    id: str
    rev: str | None = None
    error: str | None = None
    reason: str | None = None

    @classmethod
    def from_result(cls, result: WriteResult) -> "WriteResultResponse":
        return cls(
            ok=result.ok, id=result.id, rev=result.rev, error=result.error, reason=result.reason
        )


class HighlightCreateRequest(BaseModel):
    """Schema for creating a highlight."""

    match: str = Field(..., min_length=1, description="Page match the highlight belongs to")
    range: Any = Field(None, description="Serializable anchor of the highlighted range")
    class_name: str = Field(..., description="Style of the highlight")
    text: str = Field(..., description="Highlighted text")
    title: str | None = Field(None, description="Page title")
    date: int | None = Field(None, ge=0, description="Epoch milliseconds, defaults to now")


class HighlightUpdateRequest(BaseModel):
    """Schema for updating a highlight. Empty values leave the stored ones alone."""

    class_name: str | None = None
    title: str | None = None
    revision: str | None = Field(None, description="Revision the update is based on")


class HighlightDeleteRequest(BaseModel):
    """Schema for cancelling a highlight."""

    date: int | None = Field(None, ge=0, description="Epoch milliseconds, defaults to now")


class HighlightEventResponse(BaseModel):
    """An event of either verb."""

    id: str
    rev: str | None
    verb: Literal["create", "delete"]
    match: str
    date: int
    version: int | None = None
    range: Any = None
    class_name: str | None = None
    text: str | None = None
    title: str | None = None
    corresponding_document_id: str | None = None

    @classmethod
    def from_domain(cls, event: HighlightEvent) -> "HighlightEventResponse":
        fields: dict[str, Any] = {
            "id": str(event.id),
            "rev": str(event.revision) if event.revision else None,
            "verb": str(event.verb),
            "match": event.match,
            "date": event.date,
        }
        if isinstance(event, CreateEvent):
            fields.update(
                version=event.version,
                range=event.range,
                class_name=event.class_name,
                text=event.text,
                title=event.title,
            )
        elif isinstance(event, DeleteEvent):
            fields["corresponding_document_id"] = str(event.corresponding_document_id)
        return cls(**fields)


class HighlightEventsResponse(BaseModel):
    """Events of one page, ordered by date."""

    events: list[HighlightEventResponse]


class NetCountResponse(BaseModel):
    match: str
    count: int


class MatchSumsResponse(BaseModel):
    """Creates minus deletes per page, in match order."""

    sums: dict[str, int]


class WriteResultsResponse(BaseModel):
    results: list[WriteResultResponse]


class FormatMatchRequest(BaseModel):
    """Schema for turning a page URL into its match."""

    url: str = Field(..., min_length=1)
    scheme: bool = True
    query: bool = True
    fragment: bool = False
    decode: bool = True


class FormatMatchResponse(BaseModel):
    match: str
