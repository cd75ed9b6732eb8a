"""Pydantic schemas for store maintenance API responses."""

from pydantic import BaseModel

from highlighter.application.events.use_cases import InvariantReport, MatchSweep
from highlighter.infrastructure.events.schemas import WriteResultResponse


class StoreInfoResponse(BaseModel):
    doc_count: int
    update_seq: int


class MatchSweepResponse(BaseModel):
    """Outcome of purging one page."""

    match: str
    ok: bool
    results: list[WriteResultResponse]
    error: str | None = None

    @classmethod
    def from_sweep(cls, sweep: MatchSweep) -> "MatchSweepResponse":
        return cls(
            match=sweep.match,
            ok=sweep.ok,
            results=[WriteResultResponse.from_result(result) for result in sweep.results],
            error=str(sweep.error) if sweep.error else None,
        )


class SweepResponse(BaseModel):
    sweeps: list[MatchSweepResponse]


class InvariantReportResponse(BaseModel):
    """Event log states that a well-formed store never reaches."""

    is_clean: bool
    negative_sums: dict[str, int]
    duplicate_deletes: dict[str, list[str]]
    orphan_deletes: list[str]

    @classmethod
    def from_report(cls, report: InvariantReport) -> "InvariantReportResponse":
        return cls(
            is_clean=report.is_clean,
            negative_sums=report.negative_sums,
            duplicate_deletes=report.duplicate_deletes,
            orphan_deletes=report.orphan_deletes,
        )


class ImportResponse(BaseModel):
    doc_count: int
