"""View models for aggregation outputs."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class AggregatePoint:
    """Sum (flow) or running total (cumulative) of one group in one bucket."""

    period_start: date
    group_key: str
    amount: Decimal


@dataclass(frozen=True)
class GroupSummary:
    """Total and posting count of one group over a range."""

    group_key: str
    total: Decimal
    count: int
