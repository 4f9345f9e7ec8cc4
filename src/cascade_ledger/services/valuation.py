"""Valuation and allocation calculator."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_DOWN, Decimal
from typing import Iterable, Optional

from cascade_ledger.core.exceptions import DegenerateTotalError
from cascade_ledger.domain.models import AccountType, Granularity, Posting
from cascade_ledger.domain.views import (
    AllocationItem,
    AllocationSnapshot,
    AssetSummary,
    PortfolioSummary,
    WealthPoint,
)
from cascade_ledger.services.aggregator import iter_periods
from cascade_ledger.services.price_resolver import PriceResolver
from cascade_ledger.services.timeline_builder import TimelineArena

logger = logging.getLogger(__name__)

HOLDING_TYPES = (AccountType.ASSET, AccountType.CASH)
ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


@dataclass
class _Holdings:
    """Valued holdings at one date."""

    priced: list[AllocationItem] = field(default_factory=list)
    unpriced: list[str] = field(default_factory=list)


def allocation_percentages(items: list[AllocationItem], total: Decimal, on: date) -> None:
    """
    Fill ``percentage`` on each item as ``market_value / total * 100``.

    Values are truncated to cents and the leftover cents go to the items
    with the largest remainders (earlier items first on ties), so the
    rounded percentages add up to the rounded share of the total.

    Raises:
        DegenerateTotalError: total is zero or negative
    """
    if total <= ZERO:
        raise DegenerateTotalError(on, total)
    raw = [item.market_value / total * HUNDRED for item in items]
    floors = [r.quantize(CENT, rounding=ROUND_DOWN) for r in raw]
    target = min(sum(raw, ZERO).quantize(CENT), HUNDRED)
    leftover = int((target - sum(floors, ZERO)) / CENT)
    by_remainder = sorted(range(len(items)), key=lambda i: raw[i] - floors[i], reverse=True)
    for i in by_remainder[:max(leftover, 0)]:
        floors[i] += CENT
    for item, pct in zip(items, floors):
        item.percentage = pct


class ValuationCalculator:
    """
    Combines timelines with as-of prices.

    Positions are summed across owning accounts per holding. A holding is
    skipped when its quantity is dust (cash uses the value threshold) or
    when its market value is dust. Unpriced holdings never contribute to a
    total; they are reported by name instead.
    """

    def __init__(
        self,
        price_resolver: PriceResolver,
        quantity_dust: Decimal = Decimal("0.0001"),
        value_dust: Decimal = Decimal("0.01"),
        first_weekday: int = 0,
    ):
        self._prices = price_resolver
        self._quantity_dust = quantity_dust
        self._value_dust = value_dust
        self._first_weekday = first_weekday

    def sample_dates(self, start: date, end: date, granularity: Granularity) -> list[date]:
        """Walk from the period containing ``start`` one period at a time while <= ``end``."""
        return iter_periods(start, end, granularity, self._first_weekday)

    def allocation_at(
        self,
        arena: TimelineArena,
        dates: Iterable[date],
        account_ids: Optional[Iterable[str]] = None,
    ) -> list[AllocationSnapshot]:
        """
        Allocation breakdown at each date.

        A date whose positive total is zero has no items and is flagged
        degenerate; it never aborts the other dates.
        """
        account_ids = list(account_ids) if account_ids is not None else None
        snapshots = []
        for on in dates:
            holdings = self._holdings_at(arena, on, account_ids)
            positive = [i for i in holdings.priced if i.market_value > ZERO]
            negative = [i for i in holdings.priced if i.market_value < ZERO]
            total = sum((i.market_value for i in positive), ZERO)

            snapshot = AllocationSnapshot(
                as_of=on,
                total_value=total,
                unpriced=holdings.unpriced,
                negative_holdings=negative,
            )
            try:
                allocation_percentages(positive, total, on)
            except DegenerateTotalError as e:
                logger.info("Skipping allocation: %s", e.message)
                snapshot.is_degenerate = True
            else:
                positive.sort(key=lambda i: (-i.market_value, i.holding))
                snapshot.items = positive
            snapshots.append(snapshot)
        return snapshots

    def value_history(
        self,
        arena: TimelineArena,
        dates: Iterable[date],
        account_ids: Optional[Iterable[str]] = None,
    ) -> list[WealthPoint]:
        """Market value per holding at each date; negative values reduce the total."""
        account_ids = list(account_ids) if account_ids is not None else None
        points = []
        for on in dates:
            holdings = self._holdings_at(arena, on, account_ids)
            values = {i.holding: i.market_value for i in holdings.priced}
            points.append(
                WealthPoint(
                    as_of=on,
                    values=values,
                    total_value=sum(values.values(), ZERO),
                    unpriced=holdings.unpriced,
                )
            )
        return points

    def current_summary(
        self,
        arena: TimelineArena,
        postings: Iterable[Posting],
        as_of: date,
        account_ids: Optional[Iterable[str]] = None,
    ) -> PortfolioSummary:
        """
        Holdings as of ``as_of`` with cost basis and unrealized gain.

        Cost basis adds the absolute amount of postings that increase a
        position and subtracts the absolute amount of postings that
        decrease it. Cash is carried at face value with cost equal to the
        balance. Totals cover priced holdings only.
        """
        account_ids = list(account_ids) if account_ids is not None else None
        wanted = set(account_ids) if account_ids is not None else None

        cost_basis: dict[str, Decimal] = defaultdict(lambda: ZERO)
        units: dict[str, str] = {}
        for posting in postings:
            if not posting.is_asset or posting.txn_date > as_of:
                continue
            if wanted is not None and posting.account_id not in wanted:
                continue
            if posting.effect > ZERO:
                cost_basis[posting.ledger_account] += abs(posting.amount)
            else:
                cost_basis[posting.ledger_account] -= abs(posting.amount)
            if posting.quantity_unit:
                units[posting.ledger_account] = posting.quantity_unit

        summary = PortfolioSummary(as_of=as_of)
        for (holding, account_type), quantity in sorted(
            self._positions_at(arena, as_of, account_ids).items()
        ):
            is_cash = account_type == AccountType.CASH
            if self._is_dust_position(quantity, is_cash):
                continue

            if is_cash:
                item = AssetSummary(
                    asset_id=holding,
                    quantity=quantity,
                    unit="USD",
                    cost_basis=quantity,
                    price=Decimal("1"),
                    market_value=quantity,
                    unrealized_gain=ZERO,
                    is_cash=True,
                )
            else:
                resolved = self._prices.resolve(holding, as_of)
                cost = cost_basis.get(holding, ZERO)
                item = AssetSummary(
                    asset_id=holding,
                    quantity=quantity,
                    unit=units.get(holding, "shares"),
                    cost_basis=cost,
                    is_priced=resolved.is_priced,
                )
                if resolved.is_priced:
                    item.price = resolved.price
                    item.market_value = quantity * resolved.price
                    item.unrealized_gain = item.market_value - cost
                else:
                    summary.unpriced.append(holding)

            summary.items.append(item)
            if item.is_priced:
                summary.total_value += item.market_value
                summary.total_cost += item.cost_basis

        summary.total_gain = summary.total_value - summary.total_cost
        summary.items.sort(key=lambda i: (i.market_value is None, -(i.market_value or ZERO), i.asset_id))
        return summary

    def _positions_at(
        self,
        arena: TimelineArena,
        on: date,
        account_ids: Optional[list[str]],
    ) -> dict[tuple[str, AccountType], Decimal]:
        positions: dict[tuple[str, AccountType], Decimal] = defaultdict(lambda: ZERO)
        for key, value in arena.holdings_as_of(on, HOLDING_TYPES, account_ids).items():
            positions[(key.ledger_account, key.account_type)] += value
        return positions

    def _holdings_at(
        self,
        arena: TimelineArena,
        on: date,
        account_ids: Optional[list[str]],
    ) -> _Holdings:
        holdings = _Holdings()
        for (holding, account_type), quantity in sorted(
            self._positions_at(arena, on, account_ids).items()
        ):
            is_cash = account_type == AccountType.CASH
            if self._is_dust_position(quantity, is_cash):
                continue

            if is_cash:
                price = Decimal("1")
            else:
                resolved = self._prices.resolve(holding, on)
                if not resolved.is_priced:
                    holdings.unpriced.append(holding)
                    continue
                price = resolved.price

            value = quantity * price
            if abs(value) < self._value_dust:
                continue
            holdings.priced.append(
                AllocationItem(holding=holding, quantity=quantity, price=price, market_value=value)
            )
        return holdings

    def _is_dust_position(self, quantity: Decimal, is_cash: bool) -> bool:
        threshold = self._value_dust if is_cash else self._quantity_dust
        return abs(quantity) <= threshold
