"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from dependency_injector import providers
from fastapi.testclient import TestClient

from highlighter.application.events.use_cases import (
    GarbageCollectionUseCase,
    HighlightEventUseCase,
)
from highlighter.core import container
from highlighter.infrastructure.events.repositories import HighlightEventRepository
from highlighter.infrastructure.store import DocumentStore
from highlighter.main import app

# Test database URL (in-memory SQLite, one database per store)
TEST_DATABASE_URL = "sqlite://"

PRODUCER_VERSION = "5.2.1"


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[DocumentStore, None]:
    """Open a fresh in-memory store for each test."""
    document_store = DocumentStore(TEST_DATABASE_URL, name="test")
    await document_store.open()
    try:
        yield document_store
    finally:
        await document_store.close()


@pytest.fixture
def repository(store: DocumentStore) -> HighlightEventRepository:
    return HighlightEventRepository(store)


@pytest.fixture
def event_use_case(repository: HighlightEventRepository) -> HighlightEventUseCase:
    return HighlightEventUseCase(repository, producer_version=PRODUCER_VERSION)


@pytest.fixture
def gc_use_case(event_use_case: HighlightEventUseCase) -> GarbageCollectionUseCase:
    return GarbageCollectionUseCase(event_use_case)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client backed by its own in-memory store."""
    container.document_store.override(
        providers.Object(DocumentStore(TEST_DATABASE_URL, name="test-api"))
    )

    with TestClient(app) as test_client:
        yield test_client

    container.document_store.reset_override()
