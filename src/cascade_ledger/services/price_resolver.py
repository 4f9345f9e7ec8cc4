"""As-of price lookup and price ingestion."""

import logging
from bisect import bisect_right
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from cascade_ledger.core.exceptions import UnpricedAssetError, ValidationError
from cascade_ledger.domain.models import (
    PricePoint,
    PriceSource,
    ResolvedPrice,
    Transaction,
    TransactionType,
)
from cascade_ledger.repositories.protocols import PriceRepository

logger = logging.getLogger(__name__)

ONE = Decimal("1")
ZERO = Decimal("0")
_TRADE_TYPES = (TransactionType.BUY, TransactionType.SELL)


def normalize_symbol(symbol: str) -> str:
    """Normalize asset symbol (strip + upper)."""
    return (symbol or "").strip().upper()


class PriceResolver:
    """
    Strict as-of price lookup.

    Rules, in order:
    1. A configured cash-equivalent symbol (or the cash ledger account) is
       priced at 1.0 without a lookup.
    2. Otherwise the latest price point dated on or before the query date.
    3. Otherwise the asset is unpriced. ``resolve`` reports this with
       ``is_priced=False`` and ``price_as_of`` raises ``UnpricedAssetError``.

    Prices are never interpolated. Each asset's history is read from the
    repository once per resolver instance, so a resolver is meant to live
    for one request or batch.
    """

    def __init__(
        self,
        price_repo: PriceRepository,
        cash_equivalents: Iterable[str] = (),
        cash_ledger_account: Optional[str] = None,
    ):
        self._price_repo = price_repo
        self._cash_equivalents = frozenset(normalize_symbol(s) for s in cash_equivalents)
        self._cash_ledger_account = normalize_symbol(cash_ledger_account) if cash_ledger_account else None
        self._series: dict[str, tuple[list[date], list[PricePoint]]] = {}

    def is_cash_equivalent(self, asset_id: str) -> bool:
        symbol = normalize_symbol(asset_id)
        return symbol in self._cash_equivalents or symbol == self._cash_ledger_account

    def resolve(self, asset_id: str, on: date) -> ResolvedPrice:
        """Resolve the price of ``asset_id`` as of ``on``."""
        symbol = normalize_symbol(asset_id)
        if self.is_cash_equivalent(symbol):
            return ResolvedPrice(
                asset_id=symbol,
                price=ONE,
                is_priced=True,
                price_date=on,
                is_cash_equivalent=True,
            )

        dates, points = self._load(symbol)
        idx = bisect_right(dates, on)
        if idx == 0:
            return ResolvedPrice(asset_id=symbol, price=ZERO, is_priced=False)

        point = points[idx - 1]
        return ResolvedPrice(
            asset_id=symbol,
            price=point.price,
            is_priced=True,
            price_date=point.price_date,
        )

    def price_as_of(self, asset_id: str, on: date) -> Decimal:
        """
        Latest price at or before ``on``.

        Raises:
            UnpricedAssetError: no price point exists at or before ``on``
        """
        resolved = self.resolve(asset_id, on)
        if not resolved.is_priced:
            raise UnpricedAssetError(resolved.asset_id, on)
        return resolved.price

    def latest_price(self, asset_id: str) -> ResolvedPrice:
        """Most recent known price regardless of date."""
        symbol = normalize_symbol(asset_id)
        if self.is_cash_equivalent(symbol):
            return ResolvedPrice(asset_id=symbol, price=ONE, is_priced=True, is_cash_equivalent=True)

        _, points = self._load(symbol)
        if not points:
            return ResolvedPrice(asset_id=symbol, price=ZERO, is_priced=False)
        point = points[-1]
        return ResolvedPrice(
            asset_id=symbol,
            price=point.price,
            is_priced=True,
            price_date=point.price_date,
        )

    def _load(self, symbol: str) -> tuple[list[date], list[PricePoint]]:
        series = self._series.get(symbol)
        if series is None:
            points = self._price_repo.list_for_asset(symbol)
            series = ([p.price_date for p in points], points)
            self._series[symbol] = series
        return series


class PriceBook:
    """Write side of price history: validates and records price points."""

    def __init__(self, price_repo: PriceRepository):
        self._price_repo = price_repo

    def record(self, points: Iterable[PricePoint]) -> int:
        """
        Record price points; a later point for the same asset and date replaces the earlier one.

        Returns:
            Number of points written
        """
        normalized: list[PricePoint] = []
        for point in points:
            symbol = normalize_symbol(point.asset_id)
            if not symbol:
                raise ValidationError("Price point requires an asset id")
            if point.price < ZERO:
                raise ValidationError(f"Negative price for {symbol} on {point.price_date}")
            normalized.append(
                PricePoint(
                    asset_id=symbol,
                    price_date=point.price_date,
                    price=point.price,
                    source=point.source,
                )
            )

        written = self._price_repo.upsert_many(normalized)
        logger.debug("Recorded %d price points", written)
        return written

    def history(self, asset_id: str, end: Optional[date] = None) -> list[PricePoint]:
        return self._price_repo.list_for_asset(normalize_symbol(asset_id), end=end)

    def assets(self) -> list[str]:
        return self._price_repo.list_assets()


def derive_transaction_prices(transactions: Iterable[Transaction]) -> list[PricePoint]:
    """
    Extract implied unit prices from asset postings of buy and sell trades.

    Each asset posting with a quantity yields a ``TRANSACTION`` point at
    ``amount / quantity`` on the transaction date. When several trades in
    the same asset share a date the last one in sequence order wins.
    """
    points: dict[tuple[str, date], PricePoint] = {}
    for txn in sorted(transactions, key=lambda t: (t.txn_date, t.sequence)):
        if txn.txn_type not in _TRADE_TYPES:
            continue
        for posting in txn.postings:
            unit_price = posting.price_per_unit
            if not posting.is_asset or unit_price is None:
                continue
            key = (posting.ledger_account, txn.txn_date)
            points[key] = PricePoint(
                asset_id=posting.ledger_account,
                price_date=txn.txn_date,
                price=unit_price,
                source=PriceSource.TRANSACTION,
            )
    return sorted(points.values(), key=lambda p: (p.asset_id, p.price_date))
