"""Reconstruction and valuation endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from cascade_ledger.api.deps import get_query_service
from cascade_ledger.api.schemas import (
    TimelinePointResponse,
    TimelineResponse,
    AggregatePointResponse,
    AggregateResponse,
    AllocationSnapshotResponse,
    AllocationResponse,
    PortfolioSummaryResponse,
)
from cascade_ledger.core.timezone import today_eastern
from cascade_ledger.domain.models import (
    AccountType,
    AggregationMode,
    Granularity,
    GroupBy,
)
from cascade_ledger.services import LedgerQueryService, TimeRange

router = APIRouter(prefix="/analysis", tags=["analysis"])


def _split_ids(account_ids: Optional[str]) -> Optional[list[str]]:
    """Comma-separated account IDs; empty means every account."""
    if not account_ids:
        return None
    return [a.strip() for a in account_ids.split(",") if a.strip()]


def _resolve_range(
    start: Optional[date],
    end: Optional[date],
    time_range: Optional[TimeRange],
) -> tuple[Optional[date], Optional[date]]:
    if time_range is not None and start is None and end is None:
        return time_range.resolve(today_eastern())
    return start, end


@router.get("/timeline", response_model=TimelineResponse)
def get_timeline(
    account_id: str = Query(..., description="Owning account ID"),
    ledger_account: str = Query(..., description="Ledger account or asset symbol"),
    account_type: Optional[AccountType] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    queries: LedgerQueryService = Depends(get_query_service),
) -> TimelineResponse:
    """Balance or quantity curve of one ledger account."""
    timeline = queries.timeline(
        account_id, ledger_account, start=start, end=end, account_type=account_type
    )
    return TimelineResponse(
        account_id=timeline.key.account_id,
        account_type=timeline.key.account_type,
        ledger_account=timeline.key.ledger_account,
        points=[TimelinePointResponse.model_validate(p) for p in timeline.points],
        first_date=timeline.first_date,
        final_value=timeline.final_value,
    )


@router.get("/aggregate", response_model=AggregateResponse)
def get_aggregate(
    granularity: Granularity = Query(Granularity.MONTHLY),
    group_by: GroupBy = Query(GroupBy.CATEGORY),
    mode: AggregationMode = Query(AggregationMode.FLOW),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    time_range: Optional[TimeRange] = Query(None, description="Preset used when start/end are empty"),
    account_ids: Optional[str] = Query(None, description="Comma-separated account IDs (all if empty)"),
    account_types: Optional[str] = Query(None, description="Comma-separated account types"),
    queries: LedgerQueryService = Depends(get_query_service),
) -> AggregateResponse:
    """Bucketed flow or cumulative series."""
    start, end = _resolve_range(start, end, time_range)
    types = [AccountType(t.strip().upper()) for t in account_types.split(",")] if account_types else None
    points = queries.aggregate(
        granularity,
        group_by,
        mode=mode,
        start=start,
        end=end,
        account_ids=_split_ids(account_ids),
        account_types=types,
    )
    return AggregateResponse(
        points=[AggregatePointResponse.model_validate(p) for p in points],
        count=len(points),
    )


@router.get("/allocation", response_model=AllocationResponse)
def get_allocation(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    time_range: TimeRange = Query(TimeRange.LAST_6_MONTHS),
    granularity: Granularity = Query(Granularity.MONTHLY),
    account_ids: Optional[str] = Query(None, description="Comma-separated account IDs (all if empty)"),
    queries: LedgerQueryService = Depends(get_query_service),
) -> AllocationResponse:
    """Allocation snapshots at each period start of the range."""
    default_start, default_end = time_range.resolve(today_eastern())
    snapshots = queries.allocation(
        start or default_start,
        end or default_end,
        granularity=granularity,
        account_ids=_split_ids(account_ids),
    )
    return AllocationResponse(
        snapshots=[AllocationSnapshotResponse.model_validate(s) for s in snapshots]
    )


@router.get("/summary", response_model=PortfolioSummaryResponse)
def get_summary(
    as_of: Optional[date] = Query(None, description="Summary date (default: today)"),
    account_ids: Optional[str] = Query(None, description="Comma-separated account IDs (all if empty)"),
    queries: LedgerQueryService = Depends(get_query_service),
) -> PortfolioSummaryResponse:
    """Current holdings with cost basis and unrealized gain."""
    summary = queries.current_summary(_split_ids(account_ids), as_of=as_of)
    return PortfolioSummaryResponse.model_validate(summary)
