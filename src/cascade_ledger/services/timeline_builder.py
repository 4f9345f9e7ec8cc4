"""Position timeline reconstruction from journal postings."""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, Optional

from cascade_ledger.core.exceptions import ValidationError
from cascade_ledger.domain.models import AccountType, Posting
from cascade_ledger.domain.views import PositionKey, Timeline, TimelinePoint

logger = logging.getLogger(__name__)


def position_key(posting: Posting) -> PositionKey:
    return PositionKey(
        account_id=posting.account_id,
        account_type=posting.account_type,
        ledger_account=posting.ledger_account,
    )


def fold_timeline(key: PositionKey, postings: list[Posting]) -> Timeline:
    """
    Fold one position's postings into a step function.

    Postings are sorted by (date, sequence, line) first, so the result does
    not depend on the order they arrive in. Postings sharing a date
    collapse into a single end-of-date point.
    """
    points: list[TimelinePoint] = []
    running = Decimal("0")
    for posting in sorted(postings, key=lambda p: p.order_key):
        running += posting.effect
        if points and points[-1].point_date == posting.txn_date:
            points[-1] = TimelinePoint(point_date=posting.txn_date, value=running)
        else:
            points.append(TimelinePoint(point_date=posting.txn_date, value=running))
    return Timeline(key=key, points=points)


class TimelineArena:
    """
    Timelines of every (account, ledger account) built from one set of postings.

    Built once per request and shared by every query in it, so no query
    rescans postings per sample date.
    """

    def __init__(self, timelines: dict[PositionKey, Timeline]):
        self._timelines = timelines
        self._by_name: dict[tuple[str, str], list[PositionKey]] = defaultdict(list)
        for key in timelines:
            self._by_name[(key.account_id, key.ledger_account)].append(key)

    def __len__(self) -> int:
        return len(self._timelines)

    def __iter__(self) -> Iterator[Timeline]:
        return iter(self._timelines.values())

    def keys(self, account_types: Optional[Iterable[AccountType]] = None) -> list[PositionKey]:
        """Position keys, optionally restricted to some account classifications."""
        if account_types is None:
            return list(self._timelines)
        wanted = set(account_types)
        return [k for k in self._timelines if k.account_type in wanted]

    def account_ids(self) -> list[str]:
        return sorted({k.account_id for k in self._timelines})

    def get(self, key: PositionKey) -> Timeline:
        return self._timelines.get(key) or Timeline(key=key)

    def timeline(
        self,
        account_id: str,
        ledger_account: str,
        account_type: Optional[AccountType] = None,
    ) -> Timeline:
        """
        Timeline of one ledger account in one owning account.

        An unknown ledger account yields an empty timeline (zero at every
        date). When the same name is used under several classifications
        ``account_type`` must say which one is meant.
        """
        if account_type is not None:
            return self.get(PositionKey(account_id, AccountType(account_type), ledger_account))

        keys = self._by_name.get((account_id, ledger_account), [])
        if not keys:
            return Timeline(key=PositionKey(account_id, AccountType.CASH, ledger_account))
        if len(keys) > 1:
            raise ValidationError(
                f"Ledger account {ledger_account!r} is used with several classifications; "
                "pass account_type"
            )
        return self._timelines[keys[0]]

    def value_as_of(
        self,
        account_id: str,
        ledger_account: str,
        on: date,
        account_type: Optional[AccountType] = None,
    ) -> Decimal:
        return self.timeline(account_id, ledger_account, account_type).value_as_of(on)

    def holdings_as_of(
        self,
        on: date,
        account_types: Iterable[AccountType],
        account_ids: Optional[Iterable[str]] = None,
    ) -> dict[PositionKey, Decimal]:
        """Value of every matching timeline as of ``on``."""
        wanted_accounts = set(account_ids) if account_ids is not None else None
        result: dict[PositionKey, Decimal] = {}
        for key in self.keys(account_types):
            if wanted_accounts is not None and key.account_id not in wanted_accounts:
                continue
            result[key] = self._timelines[key].value_as_of(on)
        return result


class TimelineBuilder:
    """
    Builds a TimelineArena from postings.

    With ``max_workers`` above 1 the per-position folds run on a thread
    pool and are merged afterwards; each fold only reads its own group.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self._max_workers = max_workers

    def build(self, postings: Iterable[Posting]) -> TimelineArena:
        groups: dict[PositionKey, list[Posting]] = defaultdict(list)
        count = 0
        for posting in postings:
            groups[position_key(posting)].append(posting)
            count += 1

        if self._max_workers and self._max_workers > 1 and len(groups) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                folded = list(pool.map(lambda item: fold_timeline(*item), groups.items()))
        else:
            folded = [fold_timeline(key, group) for key, group in groups.items()]

        logger.debug("Built %d timelines from %d postings", len(folded), count)
        return TimelineArena({t.key: t for t in folded})
