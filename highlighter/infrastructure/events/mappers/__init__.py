from .highlight_event_mapper import HighlightEventMapper

__all__ = ["HighlightEventMapper"]
