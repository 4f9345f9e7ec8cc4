"""
Unit tests for the granularity and dimension aggregator.

Tests cover:
- Period starts for daily, weekly and monthly buckets
- Configurable first weekday
- Grouping by category, top-level category, transaction type and asset
- Flow vs cumulative mode
- Group totals ordering
- Time range presets
"""

import random
from datetime import date
from decimal import Decimal

import pytest

from cascade_ledger.services import Aggregator, TimeRange
from cascade_ledger.services.aggregator import iter_periods, next_period, period_start
from cascade_ledger.domain.models import (
    AccountType,
    AggregationMode,
    Granularity,
    GroupBy,
)
from cascade_ledger.core.exceptions import ValidationError
from tests.conftest import buy_draft, deposit_draft, expense_draft, income_draft


# =============================================================================
# CALENDAR TESTS
# =============================================================================


class TestPeriods:
    """Tests for calendar bucketing helpers."""

    def test_weekly_monday_and_wednesday_share_monday_bucket(self):
        """
        GIVEN Monday 2024-01-08 and Wednesday 2024-01-10 of one ISO week
        WHEN bucketed weekly with Monday as first weekday
        THEN both land in the 2024-01-08 bucket
        """
        assert period_start(date(2024, 1, 8), Granularity.WEEKLY) == date(2024, 1, 8)
        assert period_start(date(2024, 1, 10), Granularity.WEEKLY) == date(2024, 1, 8)

    def test_weekly_with_sunday_first(self):
        # 2024-01-10 is a Wednesday; the previous Sunday is 2024-01-07
        assert period_start(date(2024, 1, 10), Granularity.WEEKLY, first_weekday=6) == date(2024, 1, 7)
        assert period_start(date(2024, 1, 7), Granularity.WEEKLY, first_weekday=6) == date(2024, 1, 7)

    def test_monthly_truncates_to_first(self):
        assert period_start(date(2024, 2, 29), Granularity.MONTHLY) == date(2024, 2, 1)
        assert next_period(date(2024, 1, 31), Granularity.MONTHLY) == date(2024, 2, 1)

    def test_daily_is_identity(self):
        assert period_start(date(2024, 3, 3), Granularity.DAILY) == date(2024, 3, 3)
        assert next_period(date(2024, 12, 31), Granularity.DAILY) == date(2025, 1, 1)

    def test_iter_periods_starts_at_containing_bucket(self):
        assert iter_periods(date(2024, 1, 15), date(2024, 3, 1), Granularity.MONTHLY) == [
            date(2024, 1, 1),
            date(2024, 2, 1),
            date(2024, 3, 1),
        ]

    def test_invalid_first_weekday_rejected(self):
        with pytest.raises(ValidationError):
            Aggregator(first_weekday=7)


# =============================================================================
# AGGREGATION TESTS
# =============================================================================


@pytest.fixture
def spending_postings(journal_store, sample_account):
    """Expenses and income across January and February 2024."""
    account_id = sample_account.account_id
    journal_store.append(deposit_draft(account_id, date(2024, 1, 2), Decimal("5000")))
    journal_store.append(expense_draft(account_id, date(2024, 1, 8), Decimal("40"), "Food:Groceries"))
    journal_store.append(expense_draft(account_id, date(2024, 1, 10), Decimal("60"), "Food:Dining"))
    journal_store.append(expense_draft(account_id, date(2024, 1, 20), Decimal("100"), "Transport"))
    journal_store.append(expense_draft(account_id, date(2024, 2, 12), Decimal("25"), "Food:Groceries"))
    journal_store.append(income_draft(account_id, date(2024, 2, 15), Decimal("30")))
    return list(journal_store.postings_for(account_id))


class TestAggregate:
    """Tests for bucketed aggregation."""

    def test_weekly_flow_by_category(self, spending_postings):
        """
        GIVEN expenses on Monday Jan 8 and Wednesday Jan 10
        WHEN aggregated weekly by category for expense postings
        THEN both fall in the Jan 8 bucket under their own categories
        """
        points = Aggregator().aggregate(
            spending_postings,
            Granularity.WEEKLY,
            GroupBy.CATEGORY,
            account_types=[AccountType.EXPENSE],
        )

        week = [(p.group_key, p.amount) for p in points if p.period_start == date(2024, 1, 8)]
        assert week == [("Food:Dining", Decimal("60")), ("Food:Groceries", Decimal("40"))]

    def test_top_level_groups_by_prefix(self, spending_postings):
        points = Aggregator().aggregate(
            spending_postings,
            Granularity.MONTHLY,
            GroupBy.TOP_LEVEL,
            account_types=[AccountType.EXPENSE],
        )

        assert [(p.period_start, p.group_key, p.amount) for p in points] == [
            (date(2024, 1, 1), "Food", Decimal("100")),
            (date(2024, 1, 1), "Transport", Decimal("100")),
            (date(2024, 2, 1), "Food", Decimal("25")),
        ]

    def test_income_credits_count_positive(self, spending_postings):
        points = Aggregator().aggregate(
            spending_postings,
            Granularity.MONTHLY,
            GroupBy.CATEGORY,
            account_types=[AccountType.INCOME],
        )

        assert [(p.group_key, p.amount) for p in points] == [("Income:Dividends", Decimal("30"))]

    def test_group_by_type(self, spending_postings):
        points = Aggregator().aggregate(
            spending_postings,
            Granularity.MONTHLY,
            GroupBy.TYPE,
            account_types=[AccountType.EXPENSE],
        )

        assert {p.group_key for p in points} == {"Fee"}

    def test_uncategorized_label(self, journal_store, sample_account):
        journal_store.append(deposit_draft(sample_account.account_id, date(2024, 1, 2), Decimal("10")))

        points = Aggregator().aggregate(
            journal_store.postings_for(sample_account.account_id),
            Granularity.DAILY,
            GroupBy.CATEGORY,
            account_types=[AccountType.CASH],
        )

        assert points[0].group_key == "Uncategorized"

    def test_group_by_asset(self, journal_store, sample_account):
        account_id = sample_account.account_id
        journal_store.append(buy_draft(account_id, date(2024, 1, 10), "ABC", Decimal("10"), Decimal("1000")))

        points = Aggregator().aggregate(
            journal_store.postings_for(account_id),
            Granularity.MONTHLY,
            GroupBy.ASSET,
        )

        assert {(p.group_key, p.amount) for p in points} == {
            ("ABC", Decimal("1000")),
            ("Cash", Decimal("-1000")),
        }

    def test_date_range_is_inclusive(self, spending_postings):
        points = Aggregator().aggregate(
            spending_postings,
            Granularity.DAILY,
            GroupBy.CATEGORY,
            start=date(2024, 1, 10),
            end=date(2024, 1, 20),
            account_types=[AccountType.EXPENSE],
        )

        assert [p.period_start for p in points] == [date(2024, 1, 10), date(2024, 1, 20)]


class TestCumulative:
    """Tests for cumulative mode."""

    def test_last_bucket_equals_flow_total(self, spending_postings):
        """
        GIVEN expense postings over two months
        WHEN aggregated weekly in cumulative mode
        THEN each group's last bucket equals its flow sum over the range
        """
        aggregator = Aggregator()
        kwargs = dict(
            granularity=Granularity.WEEKLY,
            group_by=GroupBy.TOP_LEVEL,
            start=date(2024, 1, 1),
            end=date(2024, 2, 29),
            account_types=[AccountType.EXPENSE],
        )
        flow = aggregator.aggregate(spending_postings, mode=AggregationMode.FLOW, **kwargs)
        cumulative = aggregator.aggregate(spending_postings, mode=AggregationMode.CUMULATIVE, **kwargs)

        last_bucket = max(p.period_start for p in cumulative)
        for group in ("Food", "Transport"):
            flow_sum = sum((p.amount for p in flow if p.group_key == group), Decimal("0"))
            last = [p for p in cumulative if p.group_key == group and p.period_start == last_bucket]
            assert last[0].amount == flow_sum

    def test_running_total_carried_through_empty_buckets(self, spending_postings):
        points = Aggregator().aggregate(
            spending_postings,
            Granularity.MONTHLY,
            GroupBy.TOP_LEVEL,
            mode=AggregationMode.CUMULATIVE,
            start=date(2024, 1, 1),
            end=date(2024, 3, 31),
            account_types=[AccountType.EXPENSE],
        )

        transport = [(p.period_start, p.amount) for p in points if p.group_key == "Transport"]
        assert transport == [
            (date(2024, 1, 1), Decimal("100")),
            (date(2024, 2, 1), Decimal("100")),
            (date(2024, 3, 1), Decimal("100")),
        ]

    def test_cumulative_independent_of_input_order(self, spending_postings):
        shuffled = list(spending_postings)
        random.Random(3).shuffle(shuffled)
        aggregator = Aggregator()

        ordered = aggregator.aggregate(
            spending_postings, Granularity.WEEKLY, GroupBy.CATEGORY, mode=AggregationMode.CUMULATIVE
        )
        unordered = aggregator.aggregate(
            shuffled, Granularity.WEEKLY, GroupBy.CATEGORY, mode=AggregationMode.CUMULATIVE
        )

        assert ordered == unordered

    def test_empty_input(self):
        assert Aggregator().aggregate([], Granularity.DAILY, GroupBy.CATEGORY, mode=AggregationMode.CUMULATIVE) == []


class TestGroupTotals:
    """Tests for breakdown totals."""

    def test_sorted_by_absolute_total(self, spending_postings):
        totals = Aggregator().group_totals(
            spending_postings,
            GroupBy.TOP_LEVEL,
            account_types=[AccountType.EXPENSE],
        )

        assert [(s.group_key, s.total, s.count) for s in totals] == [
            ("Food", Decimal("125"), 3),
            ("Transport", Decimal("100"), 1),
        ]


class TestTimeRange:
    """Tests for preset ranges."""

    def test_last_6_months(self):
        assert TimeRange.LAST_6_MONTHS.resolve(date(2024, 8, 31)) == (date(2024, 2, 29), date(2024, 8, 31))

    def test_all_time_is_ten_years(self):
        assert TimeRange.ALL_TIME.resolve(date(2024, 5, 1)) == (date(2014, 5, 1), date(2024, 5, 1))
