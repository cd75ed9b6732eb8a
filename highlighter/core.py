from dependency_injector import containers, providers

from highlighter.application.events.use_cases.garbage_collection_use_case import (
    GarbageCollectionUseCase,
)
from highlighter.application.events.use_cases.highlight_event_use_case import (
    HighlightEventUseCase,
)
from highlighter.application.maintenance.use_cases.store_maintenance_use_case import (
    StoreMaintenanceUseCase,
)
from highlighter.config import get_settings
from highlighter.infrastructure.events.repositories import HighlightEventRepository
from highlighter.infrastructure.store import DocumentStore


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    settings = providers.Singleton(get_settings)

    # One store per process, opened and closed by the application lifespan
    document_store = providers.Singleton(
        DocumentStore,
        database_url=settings.provided.DATABASE_URL,
        name=settings.provided.STORE_NAME,
        auto_compaction=settings.provided.STORE_AUTO_COMPACTION,
        scratch_database_url=settings.provided.SCRATCH_DATABASE_URL,
        export_batch_size=settings.provided.EXPORT_BATCH_SIZE,
    )

    # Repositories
    highlight_event_repository = providers.Factory(
        HighlightEventRepository, store=document_store
    )

    # Events module, application use cases
    highlight_event_use_case = providers.Factory(
        HighlightEventUseCase,
        repository=highlight_event_repository,
        producer_version=settings.provided.PRODUCER_VERSION,
    )
    garbage_collection_use_case = providers.Factory(
        GarbageCollectionUseCase,
        highlight_event_use_case=highlight_event_use_case,
    )

    # Maintenance module, application use cases
    store_maintenance_use_case = providers.Factory(
        StoreMaintenanceUseCase,
        store=document_store,
    )


# Initialize container
container = Container()
