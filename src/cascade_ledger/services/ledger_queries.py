"""Read-only queries over the journal and price state."""

import logging
from datetime import date
from typing import Iterable, Optional

from cascade_ledger.core.exceptions import ValidationError
from cascade_ledger.core.timezone import today_eastern
from cascade_ledger.domain.models import (
    AccountType,
    AggregationMode,
    Granularity,
    GroupBy,
)
from cascade_ledger.domain.views import (
    AggregatePoint,
    AllocationSnapshot,
    GroupSummary,
    PortfolioSummary,
    Timeline,
    TimelinePoint,
    WealthPoint,
)
from cascade_ledger.services.aggregator import Aggregator
from cascade_ledger.services.journal_store import JournalStore, normalize_ledger_account
from cascade_ledger.services.price_resolver import PriceResolver
from cascade_ledger.services.timeline_builder import TimelineArena, TimelineBuilder
from cascade_ledger.services.valuation import ValuationCalculator

logger = logging.getLogger(__name__)


class LedgerQueryService:
    """
    Query facade used by the API and the app context.

    Every call reads the journal once, builds one timeline arena and hands
    it to the calculators, so results are a pure function of the journal,
    the prices and the arguments. ``account_ids=None`` means every account.
    """

    def __init__(
        self,
        journal_store: JournalStore,
        price_resolver: PriceResolver,
        timeline_builder: Optional[TimelineBuilder] = None,
        aggregator: Optional[Aggregator] = None,
        valuation: Optional[ValuationCalculator] = None,
    ):
        self._journal = journal_store
        self._prices = price_resolver
        self._builder = timeline_builder or TimelineBuilder()
        self._aggregator = aggregator or Aggregator()
        self._valuation = valuation or ValuationCalculator(price_resolver)

    def arena(
        self,
        account_ids: Optional[list[str]] = None,
        end: Optional[date] = None,
    ) -> TimelineArena:
        """Timelines of the selected accounts from postings dated up to ``end``."""
        ids = self._account_ids(account_ids)
        return self._builder.build(self._journal.postings_for_accounts(ids, end=end))

    def timeline(
        self,
        account_id: str,
        ledger_account: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_type: Optional[AccountType] = None,
    ) -> Timeline:
        """
        Balance or quantity curve of one ledger account.

        With ``start`` the curve opens with the value carried into that
        date, so ``value_as_of`` stays correct from ``start`` onward.
        """
        _check_range(start, end)
        self._journal.get_account(account_id)
        if account_type is not None:
            account_type = AccountType(account_type)
            ledger_account = normalize_ledger_account(account_type, ledger_account)
        else:
            ledger_account = ledger_account.strip()

        arena = self._builder.build(self._journal.postings_for(account_id, end=end))
        timeline = arena.timeline(account_id, ledger_account, account_type)
        if start is None or not timeline.points:
            return timeline

        points = [p for p in timeline.points if p.point_date >= start]
        if not points or points[0].point_date > start:
            opening = timeline.value_as_of(start)
            points.insert(0, TimelinePoint(point_date=start, value=opening))
        return Timeline(key=timeline.key, points=points)

    def aggregate(
        self,
        granularity: Granularity,
        group_by: GroupBy,
        mode: AggregationMode = AggregationMode.FLOW,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_ids: Optional[list[str]] = None,
        account_types: Optional[Iterable[AccountType]] = None,
    ) -> list[AggregatePoint]:
        _check_range(start, end)
        ids = self._account_ids(account_ids)
        return self._aggregator.aggregate(
            self._journal.postings_for_accounts(ids, start=start, end=end),
            granularity,
            group_by,
            mode=mode,
            start=start,
            end=end,
            account_types=account_types,
        )

    def group_totals(
        self,
        group_by: GroupBy,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_ids: Optional[list[str]] = None,
        account_types: Optional[Iterable[AccountType]] = None,
    ) -> list[GroupSummary]:
        _check_range(start, end)
        ids = self._account_ids(account_ids)
        return self._aggregator.group_totals(
            self._journal.postings_for_accounts(ids, start=start, end=end),
            group_by,
            start=start,
            end=end,
            account_types=account_types,
        )

    def allocation(
        self,
        start: date,
        end: date,
        granularity: Granularity = Granularity.MONTHLY,
        account_ids: Optional[list[str]] = None,
    ) -> list[AllocationSnapshot]:
        """Allocation snapshots at every period start between ``start`` and ``end``."""
        _check_range(start, end)
        return self.allocation_at(self._valuation.sample_dates(start, end, granularity), account_ids)

    def allocation_at(
        self,
        dates: Iterable[date],
        account_ids: Optional[list[str]] = None,
    ) -> list[AllocationSnapshot]:
        dates = sorted(set(dates))
        if not dates:
            return []
        ids = self._account_ids(account_ids)
        arena = self._builder.build(self._journal.postings_for_accounts(ids, end=dates[-1]))
        return self._valuation.allocation_at(arena, dates, ids)

    def value_history(
        self,
        start: date,
        end: date,
        granularity: Granularity = Granularity.MONTHLY,
        account_ids: Optional[list[str]] = None,
    ) -> list[WealthPoint]:
        _check_range(start, end)
        ids = self._account_ids(account_ids)
        dates = self._valuation.sample_dates(start, end, granularity)
        arena = self._builder.build(self._journal.postings_for_accounts(ids, end=end))
        return self._valuation.value_history(arena, dates, ids)

    def current_summary(
        self,
        account_ids: Optional[list[str]] = None,
        as_of: Optional[date] = None,
    ) -> PortfolioSummary:
        """Holdings with cost basis and gain as of ``as_of`` (default: today)."""
        as_of = as_of or today_eastern()
        ids = self._account_ids(account_ids)
        postings = list(self._journal.postings_for_accounts(ids, end=as_of))
        arena = self._builder.build(postings)
        return self._valuation.current_summary(arena, postings, as_of, ids)

    def _account_ids(self, account_ids: Optional[list[str]]) -> list[str]:
        if account_ids is None:
            return self._journal.all_account_ids()
        for account_id in account_ids:
            self._journal.get_account(account_id)
        return list(account_ids)


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and start > end:
        raise ValidationError(f"start {start.isoformat()} is after end {end.isoformat()}")
