"""Price domain models."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from cascade_ledger.domain.models.enums import PriceSource


@dataclass(frozen=True)
class PricePoint:
    """Known price of one unit of an asset on a date."""

    asset_id: str
    price_date: date
    price: Decimal
    source: PriceSource = PriceSource.MANUAL


@dataclass(frozen=True)
class ResolvedPrice:
    """
    Result of an as-of price lookup.

    ``is_priced`` is False when no price point exists at or before the
    requested date. A genuine price of zero is priced.
    """

    asset_id: str
    price: Decimal
    is_priced: bool
    price_date: Optional[date] = None
    is_cash_equivalent: bool = False
