import structlog
from fastapi import APIRouter, Depends, HTTPException
from starlette import status

from highlighter.application.events.use_cases import HighlightEventUseCase
from highlighter.core import container
from highlighter.domain.common.exceptions import DomainError
from highlighter.exceptions import HighlighterError
from highlighter.infrastructure.common.di import inject_use_case
from highlighter.infrastructure.events.schemas import (
    HighlightCreateRequest,
    HighlightDeleteRequest,
    HighlightEventResponse,
    HighlightUpdateRequest,
    WriteResultResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


@router.post(
    "",
    response_model=WriteResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_highlight(
    request: HighlightCreateRequest,
    use_case: HighlightEventUseCase = Depends(
        inject_use_case(container.highlight_event_use_case)
    ),
) -> WriteResultResponse:
    """
    Record a new highlight as a create event.

    Args:
        request: Page match, anchor, style, text and optional title/date
        use_case: HighlightEventUseCase injected via dependency container

    Returns:
        Write result with the generated event id and its revision
    """
    try:
        result = await use_case.create_highlight(
            request.match,
            request.range,
            request.class_name,
            request.text,
            title=request.title,
            date=request.date,
        )
        return WriteResultResponse.from_result(result)
    except (HighlighterError, DomainError):
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("create_highlight_failed", match=request.match, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e


@router.patch(
    "/{event_id}",
    response_model=WriteResultResponse,
    status_code=status.HTTP_200_OK,
)
async def update_highlight(
    event_id: str,
    request: HighlightUpdateRequest,
    use_case: HighlightEventUseCase = Depends(
        inject_use_case(container.highlight_event_use_case)
    ),
) -> WriteResultResponse:
    """
    Change the style and/or page title of a highlight.

    Returns the current revision without writing when nothing changes.

    Raises:
        HTTPException: 404 if the event is missing, 409 on a stale revision,
            422 if the event is not a create event
    """
    try:
        result = await use_case.update_highlight(
            event_id,
            class_name=request.class_name,
            title=request.title,
            revision=request.revision,
        )
        return WriteResultResponse.from_result(result)
    except (HighlighterError, DomainError):
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("update_highlight_failed", event_id=event_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e


@router.post(
    "/{event_id}/delete",
    response_model=WriteResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def delete_highlight(
    event_id: str,
    request: HighlightDeleteRequest | None = None,
    use_case: HighlightEventUseCase = Depends(
        inject_use_case(container.highlight_event_use_case)
    ),
) -> WriteResultResponse:
    """
    Cancel a highlight by appending a delete event for it.

    The create event is kept; the response describes the new delete event.
    """
    try:
        result = await use_case.delete_highlight(
            event_id, date=request.date if request else None
        )
        return WriteResultResponse.from_result(result)
    except (HighlighterError, DomainError):
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("delete_highlight_failed", event_id=event_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e


@router.get(
    "/{event_id}",
    response_model=HighlightEventResponse,
    status_code=status.HTTP_200_OK,
)
async def get_event(
    event_id: str,
    revision: str | None = None,
    use_case: HighlightEventUseCase = Depends(
        inject_use_case(container.highlight_event_use_case)
    ),
) -> HighlightEventResponse:
    """Get an event of either verb, at its latest revision unless one is given."""
    try:
        event = await use_case.get_event(event_id, revision=revision)
        return HighlightEventResponse.from_domain(event)
    except (HighlighterError, DomainError):
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("get_event_failed", event_id=event_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e
