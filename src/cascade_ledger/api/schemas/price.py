"""Pydantic schemas for price endpoints."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from cascade_ledger.core.timezone import to_ledger_date
from cascade_ledger.domain.models import PricePoint, PriceSource


class PricePointRequest(BaseModel):
    """One price observation."""

    asset_id: str = Field(..., min_length=1, max_length=20)
    price_date: date
    price: Decimal = Field(..., ge=0)
    source: PriceSource = PriceSource.MANUAL

    @field_validator("asset_id")
    @classmethod
    def uppercase_symbol(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("price_date", mode="before")
    @classmethod
    def ledger_date(cls, v):
        return to_ledger_date(v)

    def to_domain(self) -> PricePoint:
        return PricePoint(
            asset_id=self.asset_id,
            price_date=self.price_date,
            price=self.price,
            source=self.source,
        )


class PriceRecordRequest(BaseModel):
    """Request schema for recording price points."""

    points: list[PricePointRequest] = Field(..., min_length=1)


class PriceRecordResponse(BaseModel):
    recorded: int


class ResolvedPriceResponse(BaseModel):
    """Response schema for an as-of price lookup."""

    model_config = {"from_attributes": True}

    asset_id: str
    price: Decimal
    is_priced: bool
    price_date: Optional[date] = None
    is_cash_equivalent: bool = False
