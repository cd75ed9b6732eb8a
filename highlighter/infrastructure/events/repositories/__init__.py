from .highlight_event_repository import HighlightEventRepository

__all__ = ["HighlightEventRepository"]
