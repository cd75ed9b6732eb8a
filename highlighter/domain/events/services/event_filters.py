"""Pure transforms over an already fetched list of events."""

from collections.abc import Iterable

from highlighter.domain.events.entities import DeleteEvent, HighlightEvent, Verb


def exclude_cancelled(events: list[HighlightEvent]) -> list[HighlightEvent]:
    """
    Remove every create event that has a delete event in the list, and that delete event.

    Only delete events present in ``events`` are considered.
    """
    cancelled = set()
    for event in events:
        if isinstance(event, DeleteEvent):
            cancelled.add(event.corresponding_document_id)
            # the delete event no longer refers to anything live
            cancelled.add(event.id)

    return [event for event in events if event.id not in cancelled]


def filter_by_verbs(
    events: list[HighlightEvent], verbs: Verb | str | Iterable[Verb | str]
) -> list[HighlightEvent]:
    """Keep the events whose verb is one of ``verbs`` (a single verb is accepted)."""
    if isinstance(verbs, str):
        verbs = [verbs]
    allowed = {Verb(verb) for verb in verbs}

    return [event for event in events if event.verb in allowed]
