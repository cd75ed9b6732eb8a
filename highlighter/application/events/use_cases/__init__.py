from .garbage_collection_use_case import GarbageCollectionUseCase, InvariantReport, MatchSweep
from .highlight_event_use_case import HighlightEventUseCase

__all__ = [
    "GarbageCollectionUseCase",
    "HighlightEventUseCase",
    "InvariantReport",
    "MatchSweep",
]
