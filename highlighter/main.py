"""FastAPI application for the highlight store."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from highlighter.config import configure_logging, get_settings
from highlighter.core import container
from highlighter.domain.common.exceptions import DomainError
from highlighter.exceptions import HighlighterError
from highlighter.infrastructure.common.routers import health
from highlighter.infrastructure.events.routers import highlight_events, matches
from highlighter.infrastructure.maintenance.routers import maintenance

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the document store at startup and close it at shutdown."""
    store = container.document_store()
    await store.open()
    logger.info("application_started", store=store.name)

    yield

    await store.close()
    logger.info("application_stopped", store=store.name)


async def highlighter_error_handler(request: Request, exc: HighlighterError) -> JSONResponse:
    """Answer store and use case errors with their status code."""
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Answer domain validation errors as bad requests."""
    return JSONResponse(
        status_code=400, content={"detail": exc.message, "context": exc.details or None}
    )


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.ENVIRONMENT)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(HighlighterError, highlighter_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]

    app.include_router(health.router)
    app.include_router(highlight_events.router, prefix=settings.API_V1_PREFIX)
    app.include_router(matches.router, prefix=settings.API_V1_PREFIX)
    app.include_router(maintenance.router, prefix=settings.API_V1_PREFIX)

    return app


app = create_app()
