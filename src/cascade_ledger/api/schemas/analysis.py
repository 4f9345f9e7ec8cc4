"""Pydantic schemas for analysis endpoints."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from cascade_ledger.domain.models import AccountType


class TimelinePointResponse(BaseModel):
    model_config = {"from_attributes": True}

    point_date: date
    value: Decimal


class TimelineResponse(BaseModel):
    """Response schema for one ledger account timeline."""

    account_id: str
    account_type: AccountType
    ledger_account: str
    points: list[TimelinePointResponse]
    first_date: Optional[date] = None
    final_value: Decimal


class AggregatePointResponse(BaseModel):
    model_config = {"from_attributes": True}

    period_start: date
    group_key: str
    amount: Decimal


class AggregateResponse(BaseModel):
    """Response schema for bucketed series."""

    points: list[AggregatePointResponse]
    count: int


class AllocationItemResponse(BaseModel):
    """Response schema for a single allocation item."""

    model_config = {"from_attributes": True}

    holding: str
    quantity: Decimal
    price: Decimal
    market_value: Decimal
    percentage: Optional[Decimal] = None


class AllocationSnapshotResponse(BaseModel):
    """Response schema for allocation at one date."""

    model_config = {"from_attributes": True}

    as_of: date
    items: list[AllocationItemResponse]
    total_value: Decimal
    unpriced: list[str]
    negative_holdings: list[AllocationItemResponse]
    is_degenerate: bool


class AllocationResponse(BaseModel):
    snapshots: list[AllocationSnapshotResponse]


class AssetSummaryResponse(BaseModel):
    """Response schema for one holding in the current summary."""

    model_config = {"from_attributes": True}

    asset_id: str
    quantity: Decimal
    unit: Optional[str] = None
    cost_basis: Decimal
    price: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    unrealized_gain: Optional[Decimal] = None
    is_priced: bool = True
    is_cash: bool = False


class PortfolioSummaryResponse(BaseModel):
    """Response schema for the current summary."""

    model_config = {"from_attributes": True}

    as_of: date
    items: list[AssetSummaryResponse]
    total_value: Decimal
    total_cost: Decimal
    total_gain: Decimal
    unpriced: list[str]
