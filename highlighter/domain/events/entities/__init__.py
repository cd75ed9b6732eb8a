from .highlight_event import CreateEvent, DeleteEvent, HighlightEvent, Verb, now_ms

__all__ = [
    "CreateEvent",
    "DeleteEvent",
    "HighlightEvent",
    "Verb",
    "now_ms",
]
