"""Calendar bucketing and grouping of postings."""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from cascade_ledger.core.exceptions import ValidationError
from cascade_ledger.domain.models import (
    AccountType,
    AggregationMode,
    Granularity,
    GroupBy,
    Posting,
)
from cascade_ledger.domain.views import AggregatePoint, GroupSummary

UNCATEGORIZED = "Uncategorized"
CASH_GROUP = "Cash"


def period_start(value: date, granularity: Granularity, first_weekday: int = 0) -> date:
    """
    Start of the calendar bucket containing ``value``.

    ``first_weekday`` follows ``date.weekday()`` numbering (0 = Monday).
    """
    granularity = Granularity(granularity)
    if granularity == Granularity.DAILY:
        return value
    if granularity == Granularity.WEEKLY:
        return value - timedelta(days=(value.weekday() - first_weekday) % 7)
    return value.replace(day=1)


def next_period(value: date, granularity: Granularity) -> date:
    """Start of the bucket following the one that starts at ``value``."""
    granularity = Granularity(granularity)
    if granularity == Granularity.DAILY:
        return value + timedelta(days=1)
    if granularity == Granularity.WEEKLY:
        return value + timedelta(days=7)
    return value.replace(day=1) + relativedelta(months=1)


def iter_periods(start: date, end: date, granularity: Granularity, first_weekday: int = 0) -> list[date]:
    """Bucket starts from the bucket containing ``start`` while <= ``end``."""
    periods = []
    current = period_start(start, granularity, first_weekday)
    while current <= end:
        periods.append(current)
        current = next_period(current, granularity)
    return periods


def group_key(posting: Posting, group_by: GroupBy) -> str:
    """Grouping label of a posting under one dimension."""
    group_by = GroupBy(group_by)
    if group_by == GroupBy.CATEGORY:
        return (posting.category or "").strip() or UNCATEGORIZED
    if group_by == GroupBy.TOP_LEVEL:
        category = (posting.category or "").strip()
        if not category:
            return UNCATEGORIZED
        return category.split(":", 1)[0].strip() or UNCATEGORIZED
    if group_by == GroupBy.TYPE:
        return posting.txn_type.value.replace("_", " ").title()
    return posting.asset_id or CASH_GROUP


class TimeRange(str, Enum):
    """Preset reporting ranges ending today."""

    LAST_7_DAYS = "LAST_7_DAYS"
    LAST_30_DAYS = "LAST_30_DAYS"
    LAST_90_DAYS = "LAST_90_DAYS"
    LAST_6_MONTHS = "LAST_6_MONTHS"
    LAST_YEAR = "LAST_YEAR"
    ALL_TIME = "ALL_TIME"

    def resolve(self, today: date) -> tuple[date, date]:
        """Return the inclusive (start, end) for this preset."""
        offsets = {
            TimeRange.LAST_7_DAYS: relativedelta(days=7),
            TimeRange.LAST_30_DAYS: relativedelta(days=30),
            TimeRange.LAST_90_DAYS: relativedelta(days=90),
            TimeRange.LAST_6_MONTHS: relativedelta(months=6),
            TimeRange.LAST_YEAR: relativedelta(years=1),
            TimeRange.ALL_TIME: relativedelta(years=10),
        }
        return today - offsets[self], today


class Aggregator:
    """
    Buckets postings by calendar period and a grouping dimension.

    Amounts are the signed effect of each posting on its ledger account
    (income credits and expense debits count positive). ``FLOW`` mode
    reports the sum per bucket. ``CUMULATIVE`` mode reports running totals
    per group, carried forward through every bucket from the group's first
    bucket to the end of the range, so the last bucket always equals the
    flow total over the range.
    """

    def __init__(self, first_weekday: int = 0):
        if not 0 <= first_weekday <= 6:
            raise ValidationError(f"first_weekday must be between 0 and 6, got {first_weekday}")
        self._first_weekday = first_weekday

    def period_start(self, value: date, granularity: Granularity) -> date:
        return period_start(value, granularity, self._first_weekday)

    def aggregate(
        self,
        postings: Iterable[Posting],
        granularity: Granularity,
        group_by: GroupBy,
        mode: AggregationMode = AggregationMode.FLOW,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_types: Optional[Iterable[AccountType]] = None,
    ) -> list[AggregatePoint]:
        """Bucket postings into ``(period_start, group_key) -> amount``."""
        granularity = Granularity(granularity)
        mode = AggregationMode(mode)
        selected = self._select(postings, start, end, account_types)

        buckets: dict[tuple[date, str], Decimal] = defaultdict(lambda: Decimal("0"))
        for posting in selected:
            bucket = self.period_start(posting.txn_date, granularity)
            buckets[(bucket, group_key(posting, group_by))] += posting.signed_amount

        if mode == AggregationMode.FLOW:
            return [
                AggregatePoint(period_start=period, group_key=key, amount=amount)
                for (period, key), amount in sorted(buckets.items())
            ]
        return self._cumulative(buckets, granularity, selected, start, end)

    def group_totals(
        self,
        postings: Iterable[Posting],
        group_by: GroupBy,
        start: Optional[date] = None,
        end: Optional[date] = None,
        account_types: Optional[Iterable[AccountType]] = None,
    ) -> list[GroupSummary]:
        """Total and count per group, largest absolute total first."""
        totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        counts: dict[str, int] = defaultdict(int)
        for posting in self._select(postings, start, end, account_types):
            key = group_key(posting, group_by)
            totals[key] += posting.signed_amount
            counts[key] += 1

        summaries = [
            GroupSummary(group_key=key, total=total, count=counts[key])
            for key, total in totals.items()
        ]
        summaries.sort(key=lambda s: (-abs(s.total), s.group_key))
        return summaries

    def _cumulative(
        self,
        buckets: dict[tuple[date, str], Decimal],
        granularity: Granularity,
        selected: list[Posting],
        start: Optional[date],
        end: Optional[date],
    ) -> list[AggregatePoint]:
        if not buckets:
            return []

        first = start or min(p.txn_date for p in selected)
        last = end or max(p.txn_date for p in selected)
        periods = iter_periods(first, last, granularity, self._first_weekday)

        flows: dict[str, dict[date, Decimal]] = defaultdict(dict)
        for (period, key), amount in buckets.items():
            flows[key][period] = amount

        points: list[AggregatePoint] = []
        for key in sorted(flows):
            group_flows = flows[key]
            first_period = min(group_flows)
            running = Decimal("0")
            # Periods are ascending, so the fold is independent of input order
            for period in periods:
                if period < first_period:
                    continue
                running += group_flows.get(period, Decimal("0"))
                points.append(AggregatePoint(period_start=period, group_key=key, amount=running))

        points.sort(key=lambda p: (p.period_start, p.group_key))
        return points

    @staticmethod
    def _select(
        postings: Iterable[Posting],
        start: Optional[date],
        end: Optional[date],
        account_types: Optional[Iterable[AccountType]],
    ) -> list[Posting]:
        wanted = {AccountType(t) for t in account_types} if account_types else None
        selected = []
        for posting in postings:
            if start and posting.txn_date < start:
                continue
            if end and posting.txn_date > end:
                continue
            if wanted is not None and posting.account_type not in wanted:
                continue
            selected.append(posting)
        return selected
