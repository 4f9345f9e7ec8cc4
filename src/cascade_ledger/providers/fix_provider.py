"""Fix provider protocol and investigation context."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Protocol

from cascade_ledger.domain.models import (
    AssertedBalance,
    Discrepancy,
    Posting,
    ProposedFix,
)


@dataclass
class InvestigationContext:
    """What a fix provider may look at when explaining a discrepancy."""

    discrepancy: Discrepancy
    computed_balance: Decimal
    window_start: date
    window_end: date
    nearby_postings: list[Posting] = field(default_factory=list)
    nearby_asserted: list[AssertedBalance] = field(default_factory=list)
    is_first_checkpoint: bool = False
    first_posting_date: Optional[date] = None
    batch_id: Optional[str] = None


class FixProvider(Protocol):
    """
    Protocol for collaborators that propose corrective transactions.

    Proposals are candidates only: the reconciliation engine applies one
    only if its confidence is high enough and it verifiably shrinks the
    discrepancy.
    """

    def propose(self, context: InvestigationContext) -> list[ProposedFix]:
        """Return candidate fixes for ``context.discrepancy`` (possibly none)."""
        ...
