"""Timeline views: derived step functions of position over time."""

from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from cascade_ledger.domain.models.enums import AccountType


@dataclass(frozen=True)
class PositionKey:
    """Identity of one reconstructed position."""

    account_id: str
    account_type: AccountType
    ledger_account: str


@dataclass(frozen=True)
class TimelinePoint:
    """End-of-date cumulative value."""

    point_date: date
    value: Decimal


@dataclass
class Timeline:
    """
    Stepwise-constant cumulative position for one (account, ledger account).

    Points are strictly increasing in date. The value before the first
    point is zero.
    """

    key: PositionKey
    points: list[TimelinePoint] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._dates = [p.point_date for p in self.points]

    def value_as_of(self, on: date) -> Decimal:
        """Value of the latest point dated on or before ``on``."""
        idx = bisect_right(self._dates, on)
        if idx == 0:
            return Decimal("0")
        return self.points[idx - 1].value

    @property
    def final_value(self) -> Decimal:
        return self.points[-1].value if self.points else Decimal("0")

    @property
    def first_date(self) -> Optional[date]:
        return self._dates[0] if self._dates else None

    @property
    def last_date(self) -> Optional[date]:
        return self._dates[-1] if self._dates else None

    def __len__(self) -> int:
        return len(self.points)
