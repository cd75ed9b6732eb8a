"""Common value objects shared across all domain modules."""

from .ids import EventId, Revision

__all__ = [
    "EventId",
    "Revision",
]
