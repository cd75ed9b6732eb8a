from .highlight_event_repository import HighlightEventRepositoryProtocol

__all__ = ["HighlightEventRepositoryProtocol"]
