from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from starlette import status

from highlighter.application.events.use_cases import HighlightEventUseCase
from highlighter.core import container
from highlighter.domain.common.exceptions import DomainError
from highlighter.domain.events.entities import Verb
from highlighter.domain.events.services import format_match
from highlighter.exceptions import HighlighterError
from highlighter.infrastructure.common.di import inject_use_case
from highlighter.infrastructure.events.schemas import (
    FormatMatchRequest,
    FormatMatchResponse,
    HighlightEventResponse,
    HighlightEventsResponse,
    MatchSumsResponse,
    NetCountResponse,
    WriteResultResponse,
    WriteResultsResponse,
)

logger = structlog.get_logger(__name__)

# Matches contain slashes, so they travel as a query parameter
router = APIRouter(prefix="/matches", tags=["matches"])

MatchParam = Annotated[str, Query(min_length=1, description="Page match")]


@router.post(
    "/format",
    response_model=FormatMatchResponse,
    status_code=status.HTTP_200_OK,
)
async def format_page_match(request: FormatMatchRequest) -> FormatMatchResponse:
    """
    Turn a page URL into the match its events are stored under.

    Raises:
        HTTPException: 400 if the URL is not absolute or cannot be decoded
    """
    return FormatMatchResponse(
        match=format_match(
            request.url,
            scheme=request.scheme,
            query=request.query,
            fragment=request.fragment,
            decode=request.decode,
        )
    )


@router.get(
    "/events",
    response_model=HighlightEventsResponse,
    status_code=status.HTTP_200_OK,
)
async def list_events(
    match: MatchParam,
    descending: bool = False,
    limit: Annotated[int | None, Query(ge=0)] = None,
    verbs: Annotated[list[Verb] | None, Query()] = None,
    exclude_deleted: bool = False,
    use_case: HighlightEventUseCase = Depends(
        inject_use_case(container.highlight_event_use_case)
    ),
) -> HighlightEventsResponse:
    """
    List the events of a page ordered by date.

    Args:
        match: Page match
        descending: Newest first
        limit: Maximum number of events fetched
        verbs: Only return events of these verbs
        exclude_deleted: Drop cancelled highlights together with their delete events
        use_case: HighlightEventUseCase injected via dependency container
    """
    try:
        events = await use_case.list_by_match(
            match,
            descending=descending,
            limit=limit,
            verbs=verbs,
            exclude_deleted=exclude_deleted,
        )
        return HighlightEventsResponse(
            events=[HighlightEventResponse.from_domain(event) for event in events]
        )
    except (HighlighterError, DomainError):
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("list_events_failed", match=match, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e


@router.get(
    "/count",
    response_model=NetCountResponse,
    status_code=status.HTTP_200_OK,
)
async def get_net_count(
    match: MatchParam,
    use_case: HighlightEventUseCase = Depends(
        inject_use_case(container.highlight_event_use_case)
    ),
) -> NetCountResponse:
    """Live highlights of a page (creates minus deletes)."""
    try:
        return NetCountResponse(match=match, count=await use_case.net_count_for_match(match))
    except HighlighterError:
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("get_net_count_failed", match=match, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e


@router.get(
    "/sums",
    response_model=MatchSumsResponse,
    status_code=status.HTTP_200_OK,
)
async def get_match_sums(
    use_case: HighlightEventUseCase = Depends(
        inject_use_case(container.highlight_event_use_case)
    ),
) -> MatchSumsResponse:
    """Creates minus deletes for every page that has events."""
    try:
        return MatchSumsResponse(sums=await use_case.all_match_sums())
    except HighlighterError:
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("get_match_sums_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e


@router.delete(
    "/events",
    response_model=WriteResultsResponse,
    status_code=status.HTTP_200_OK,
)
async def remove_events(
    match: MatchParam,
    use_case: HighlightEventUseCase = Depends(
        inject_use_case(container.highlight_event_use_case)
    ),
) -> WriteResultsResponse:
    """
    Physically delete every event of a page.

    Per-document failures are reported in the results.
    """
    try:
        results = await use_case.remove_all_for_match(match)
        return WriteResultsResponse(
            results=[WriteResultResponse.from_result(result) for result in results]
        )
    except HighlighterError:
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("remove_events_failed", match=match, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e
