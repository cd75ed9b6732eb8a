"""Highlight events domain layer."""

from .entities import CreateEvent, DeleteEvent, HighlightEvent, Verb

__all__ = [
    "CreateEvent",
    "DeleteEvent",
    "HighlightEvent",
    "Verb",
]
