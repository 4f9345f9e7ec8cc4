"""View models for valuation and allocation outputs."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass
class AllocationItem:
    """Single holding in an allocation breakdown."""

    holding: str
    quantity: Decimal
    price: Decimal
    market_value: Decimal
    percentage: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class AllocationSnapshot:
    """
    Allocation breakdown at one sample date.

    Unpriced holdings are listed by name and excluded from the total.
    Holdings with negative value (overdrawn cash, short positions) are
    reported separately and do not take part in percentages. When no
    positive value remains the snapshot is degenerate and has no items.
    """

    as_of: date
    items: list[AllocationItem] = field(default_factory=list)
    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    unpriced: list[str] = field(default_factory=list)
    negative_holdings: list[AllocationItem] = field(default_factory=list)
    is_degenerate: bool = False


@dataclass
class WealthPoint:
    """Market value per holding at one date, for stacked wealth charts."""

    as_of: date
    values: dict[str, Decimal] = field(default_factory=dict)
    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    unpriced: list[str] = field(default_factory=list)


@dataclass
class AssetSummary:
    """Current state of one holding."""

    asset_id: str
    quantity: Decimal
    unit: str
    cost_basis: Decimal
    price: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    unrealized_gain: Optional[Decimal] = None
    is_priced: bool = True
    is_cash: bool = False


@dataclass
class PortfolioSummary:
    """Current holdings with totals over priced holdings."""

    as_of: date
    items: list[AssetSummary] = field(default_factory=list)
    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    total_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    total_gain: Decimal = field(default_factory=lambda: Decimal("0"))
    unpriced: list[str] = field(default_factory=list)
