"""Reconciliation domain models."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from cascade_ledger.domain.models.enums import (
    AccountType,
    CheckpointStatus,
    DiscrepancySeverity,
    DiscrepancyType,
)
from cascade_ledger.domain.models.journal import TransactionDraft


@dataclass(frozen=True)
class AssertedBalance:
    """Balance reported by an external statement for one ledger account on a date."""

    account_id: str
    ledger_account: str
    as_of: date
    balance: Decimal
    account_type: AccountType = AccountType.CASH
    row_number: Optional[int] = None
    raw_value: Optional[str] = None


@dataclass(frozen=True)
class Checkpoint:
    """Computed balance paired with an asserted balance at the same account and date."""

    account_id: str
    ledger_account: str
    account_type: AccountType
    as_of: date
    computed: Decimal
    asserted: Decimal
    status: CheckpointStatus = CheckpointStatus.UNCHECKED
    row_number: Optional[int] = None

    @property
    def delta(self) -> Decimal:
        """Asserted minus computed."""
        return self.asserted - self.computed

    @property
    def key(self) -> tuple[str, date]:
        return (self.ledger_account, self.as_of)

    def evaluate(self, tolerance: Decimal) -> "Checkpoint":
        """Return a checked copy: MATCHED within tolerance, DISCREPANT otherwise."""
        status = (
            CheckpointStatus.MATCHED
            if abs(self.delta) <= tolerance
            else CheckpointStatus.DISCREPANT
        )
        return replace(self, status=status)

    def with_status(self, status: CheckpointStatus) -> "Checkpoint":
        return replace(self, status=status)


@dataclass(frozen=True)
class Discrepancy:
    """
    Observation of a checkpoint mismatch beyond tolerance.

    Discrepancies are never edited. Resolving one produces a new record
    with ``is_resolved`` set, which is appended to the session history
    next to the original observation.
    """

    discrepancy_id: str
    account_id: str
    ledger_account: str
    account_type: AccountType
    as_of: date
    discrepancy_type: DiscrepancyType
    severity: DiscrepancySeverity
    summary: str
    evidence: str
    expected: Decimal
    actual: Decimal
    iteration: int = 1
    row_number: Optional[int] = None
    resolution_delta: Optional[Decimal] = None
    fix_txn_ids: tuple[str, ...] = ()
    is_resolved: bool = False
    resolved_at: Optional[datetime] = None

    @property
    def delta(self) -> Decimal:
        """Expected (asserted) minus actual (computed)."""
        return self.expected - self.actual

    @property
    def key(self) -> tuple[str, date]:
        return (self.ledger_account, self.as_of)

    def resolve(
        self,
        resolution_delta: Decimal,
        fix_txn_ids: tuple[str, ...],
        resolved_at: datetime,
    ) -> "Discrepancy":
        """Return the resolved state of this discrepancy."""
        return replace(
            self,
            resolution_delta=resolution_delta,
            fix_txn_ids=fix_txn_ids,
            is_resolved=True,
            resolved_at=resolved_at,
        )


@dataclass
class ProposedFix:
    """Candidate correction supplied by a fix provider."""

    description: str
    confidence: Decimal
    transactions: list[TransactionDraft] = field(default_factory=list)
    reasoning: str = ""
    assumptions: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.confidence, Decimal):
            self.confidence = Decimal(str(self.confidence))


@dataclass(frozen=True)
class FixOutcome:
    """What happened to one proposed fix."""

    discrepancy_id: str
    description: str
    confidence: Decimal
    applied: bool
    delta_before: Decimal
    delta_after: Optional[Decimal] = None
    txn_ids: tuple[str, ...] = ()
    reason: str = ""
