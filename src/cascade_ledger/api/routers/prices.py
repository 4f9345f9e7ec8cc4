"""Price ingestion and lookup endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from cascade_ledger.api.deps import get_price_book, get_price_resolver
from cascade_ledger.api.schemas import (
    PriceRecordRequest,
    PriceRecordResponse,
    ResolvedPriceResponse,
)
from cascade_ledger.core.timezone import today_eastern
from cascade_ledger.services import PriceBook, PriceResolver

router = APIRouter(prefix="/prices", tags=["prices"])


@router.post("/", response_model=PriceRecordResponse, status_code=201)
def record_prices(
    data: PriceRecordRequest,
    book: PriceBook = Depends(get_price_book),
) -> PriceRecordResponse:
    """Record price points; a point for an existing (asset, date) replaces it."""
    recorded = book.record(p.to_domain() for p in data.points)
    return PriceRecordResponse(recorded=recorded)


@router.get("/{asset_id}", response_model=ResolvedPriceResponse)
def get_price(
    asset_id: str,
    on: Optional[date] = Query(None, description="As-of date (default: today)"),
    resolver: PriceResolver = Depends(get_price_resolver),
) -> ResolvedPriceResponse:
    """Latest price at or before ``on``; unpriced assets report is_priced=false."""
    resolved = resolver.resolve(asset_id, on or today_eastern())
    return ResolvedPriceResponse.model_validate(resolved)
