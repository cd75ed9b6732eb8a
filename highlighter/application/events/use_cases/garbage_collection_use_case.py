"""Use case for purging pages whose highlights have all been cancelled."""

import asyncio
from collections import Counter
from dataclasses import dataclass, field

import structlog

from highlighter.application.events.use_cases.highlight_event_use_case import (
    HighlightEventUseCase,
)
from highlighter.application.ports import WriteResult
from highlighter.domain.events.entities import CreateEvent, DeleteEvent

logger = structlog.get_logger(__name__)


@dataclass
class MatchSweep:
    """Outcome of purging one page."""

    match: str
    results: list[WriteResult] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and all(result.ok for result in self.results)


@dataclass
class InvariantReport:
    """Event log states that a well-formed store never reaches."""

    # match -> sum, for sums below zero
    negative_sums: dict[str, int] = field(default_factory=dict)
    # create id -> ids of the delete events referencing it, when more than one
    duplicate_deletes: dict[str, list[str]] = field(default_factory=dict)
    # ids of delete events whose create event is not among the events of their page
    orphan_deletes: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.negative_sums or self.duplicate_deletes or self.orphan_deletes)


class GarbageCollectionUseCase:
    """Removes superfluous documents: every event of a page whose net count is zero."""

    def __init__(self, highlight_event_use_case: HighlightEventUseCase) -> None:
        """Initialize use case with dependencies."""
        self.highlight_event_use_case = highlight_event_use_case

    async def sweep_superfluous(self) -> list[MatchSweep]:
        """
        Purge every page whose creates are all cancelled.

        Pages are purged concurrently and independently: a failure while
        purging one page is reported in its outcome and does not affect the
        others. A highlight created on a page while it is being purged may be
        removed with it.

        Returns:
            One outcome per purged page
        """
        sums = await self.highlight_event_use_case.all_match_sums()
        matches = [match for match, total in sums.items() if total == 0]

        outcomes = await asyncio.gather(
            *(self.highlight_event_use_case.remove_all_for_match(match) for match in matches),
            return_exceptions=True,
        )

        sweeps = []
        for match, outcome in zip(matches, outcomes, strict=True):
            if isinstance(outcome, Exception):
                logger.error("match_sweep_failed", match=match, error=str(outcome))
                sweeps.append(MatchSweep(match=match, error=outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                sweeps.append(MatchSweep(match=match, results=outcome))

        logger.info(
            "superfluous_documents_swept",
            matches=len(sweeps),
            documents=sum(len(sweep.results) for sweep in sweeps),
            failed_matches=[sweep.match for sweep in sweeps if not sweep.ok],
        )
        return sweeps

    async def find_invariant_violations(self) -> InvariantReport:
        """
        Check the event log without modifying it.

        Reports pages with more deletes than creates, creates cancelled more
        than once, and deletes whose create is missing from their page.
        """
        report = InvariantReport()
        sums = await self.highlight_event_use_case.all_match_sums()

        for match, total in sums.items():
            if total < 0:
                report.negative_sums[match] = total

            events = await self.highlight_event_use_case.list_by_match(match)
            create_ids = {event.id for event in events if isinstance(event, CreateEvent)}
            deletes = [event for event in events if isinstance(event, DeleteEvent)]

            references = Counter(event.corresponding_document_id for event in deletes)
            for delete in deletes:
                target = delete.corresponding_document_id
                if target not in create_ids:
                    report.orphan_deletes.append(str(delete.id))
                if references[target] > 1:
                    report.duplicate_deletes.setdefault(str(target), []).append(str(delete.id))

        if not report.is_clean:
            logger.warning(
                "event_log_invariant_violations",
                negative_sums=report.negative_sums,
                duplicate_deletes=report.duplicate_deletes,
                orphan_deletes=report.orphan_deletes,
            )
        return report
