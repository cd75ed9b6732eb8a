"""Use case for store maintenance and full-store transfer."""

from typing import TextIO

import structlog

from highlighter.application.ports import DocumentStoreProtocol, StoreInfo

logger = structlog.get_logger(__name__)


class StoreMaintenanceUseCase:
    """Maintenance hooks passed through to the document store."""

    def __init__(self, store: DocumentStoreProtocol) -> None:
        """Initialize use case with dependencies."""
        self.store = store

    async def info(self) -> StoreInfo:
        return await self.store.info()

    async def compact(self) -> None:
        await self.store.compact()

    async def cleanup_indexes(self) -> None:
        await self.store.cleanup_indexes()

    async def export_store(self, sink: TextIO) -> int:
        """
        Write every event document to ``sink`` as a dump.

        Returns:
            Number of documents exported
        """
        return await self.store.export_to(sink)

    async def import_store(self, source: str | TextIO) -> int:
        """
        Replace the store content with a dump.

        The current content stays untouched unless the whole dump loads.

        Returns:
            Number of documents imported

        Raises:
            ValidationError: If the dump is malformed
        """
        count = await self.store.import_from(source)
        logger.info("store_content_replaced", doc_count=count)
        return count
