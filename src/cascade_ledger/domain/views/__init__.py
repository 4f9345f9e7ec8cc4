"""View models for service outputs."""

from cascade_ledger.domain.views.timeline import PositionKey, TimelinePoint, Timeline
from cascade_ledger.domain.views.analytics import AggregatePoint, GroupSummary
from cascade_ledger.domain.views.portfolio import (
    AllocationItem,
    AllocationSnapshot,
    WealthPoint,
    AssetSummary,
    PortfolioSummary,
)
from cascade_ledger.domain.views.reconciliation import ReconciliationReport

__all__ = [
    "PositionKey",
    "TimelinePoint",
    "Timeline",
    "AggregatePoint",
    "GroupSummary",
    "AllocationItem",
    "AllocationSnapshot",
    "WealthPoint",
    "AssetSummary",
    "PortfolioSummary",
    "ReconciliationReport",
]
