import io

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from starlette import status

from highlighter.application.events.use_cases import GarbageCollectionUseCase
from highlighter.application.maintenance.use_cases import StoreMaintenanceUseCase
from highlighter.core import container
from highlighter.exceptions import HighlighterError, ValidationError
from highlighter.infrastructure.common.di import inject_use_case
from highlighter.infrastructure.maintenance.schemas import (
    ImportResponse,
    InvariantReportResponse,
    MatchSweepResponse,
    StoreInfoResponse,
    SweepResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/maintenance", tags=["maintenance"])

DUMP_MEDIA_TYPE = "application/x-ndjson"


@router.get("/info", response_model=StoreInfoResponse)
async def get_store_info(
    use_case: StoreMaintenanceUseCase = Depends(
        inject_use_case(container.store_maintenance_use_case)
    ),
) -> StoreInfoResponse:
    info = await use_case.info()
    return StoreInfoResponse(doc_count=info.doc_count, update_seq=info.update_seq)


@router.post("/sweep", response_model=SweepResponse, status_code=status.HTTP_200_OK)
async def sweep_superfluous(
    use_case: GarbageCollectionUseCase = Depends(
        inject_use_case(container.garbage_collection_use_case)
    ),
) -> SweepResponse:
    """
    Purge every page whose highlights have all been cancelled.

    Pages are purged independently; failures are reported per page.
    """
    try:
        sweeps = await use_case.sweep_superfluous()
        return SweepResponse(sweeps=[MatchSweepResponse.from_sweep(sweep) for sweep in sweeps])
    except HighlighterError:
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("sweep_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e


@router.get("/invariants", response_model=InvariantReportResponse)
async def check_invariants(
    use_case: GarbageCollectionUseCase = Depends(
        inject_use_case(container.garbage_collection_use_case)
    ),
) -> InvariantReportResponse:
    """Report negative page sums, doubly cancelled highlights and orphan delete events."""
    report = await use_case.find_invariant_violations()
    return InvariantReportResponse.from_report(report)


@router.post("/compact", status_code=status.HTTP_204_NO_CONTENT)
async def compact_store(
    use_case: StoreMaintenanceUseCase = Depends(
        inject_use_case(container.store_maintenance_use_case)
    ),
) -> None:
    await use_case.compact()


@router.post("/cleanup-indexes", status_code=status.HTTP_204_NO_CONTENT)
async def cleanup_indexes(
    use_case: StoreMaintenanceUseCase = Depends(
        inject_use_case(container.store_maintenance_use_case)
    ),
) -> None:
    await use_case.cleanup_indexes()


@router.get("/export", response_class=PlainTextResponse)
async def export_store(
    use_case: StoreMaintenanceUseCase = Depends(
        inject_use_case(container.store_maintenance_use_case)
    ),
) -> PlainTextResponse:
    """Dump every event document as newline-delimited JSON."""
    sink = io.StringIO()
    await use_case.export_store(sink)
    return PlainTextResponse(sink.getvalue(), media_type=DUMP_MEDIA_TYPE)


@router.post("/import", response_model=ImportResponse)
async def import_store(
    request: Request,
    use_case: StoreMaintenanceUseCase = Depends(
        inject_use_case(container.store_maintenance_use_case)
    ),
) -> ImportResponse:
    """
    Replace the whole store content with a dump.

    Raises:
        HTTPException: 400 if the dump is malformed; the store is left untouched
    """
    try:
        try:
            dump = (await request.body()).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError(f"Dump is not valid UTF-8: {e}") from e
        return ImportResponse(doc_count=await use_case.import_store(dump))
    except HighlighterError:
        # Re-raise custom exceptions - handled by exception handlers
        raise
    except Exception as e:
        logger.error("import_store_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        ) from e
