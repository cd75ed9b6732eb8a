"""Store maintenance schemas."""

from highlighter.infrastructure.maintenance.schemas.maintenance_schemas import (
    ImportResponse,
    InvariantReportResponse,
    MatchSweepResponse,
    StoreInfoResponse,
    SweepResponse,
)

__all__ = [
    "ImportResponse",
    "InvariantReportResponse",
    "MatchSweepResponse",
    "StoreInfoResponse",
    "SweepResponse",
]
