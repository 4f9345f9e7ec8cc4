"""Price repository protocol."""

from datetime import date
from typing import Protocol, Optional

from cascade_ledger.domain.models import PricePoint


class PriceRepository(Protocol):
    """Interface for price history data access."""

    def upsert_many(self, points: list[PricePoint]) -> int:
        """Insert or replace points keyed by (asset_id, price_date)."""
        ...

    def list_for_asset(
        self,
        asset_id: str,
        end: Optional[date] = None,
    ) -> list[PricePoint]:
        """Points for one asset ordered by date."""
        ...

    def list_assets(self) -> list[str]:
        """Assets with at least one price point."""
        ...
