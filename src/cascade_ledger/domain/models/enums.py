"""Enumerations for domain models."""

from enum import Enum


class AccountType(str, Enum):
    """Classification of the ledger account a posting hits."""

    ASSET = "ASSET"
    CASH = "CASH"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class PostingSide(str, Enum):
    """Side of a double-entry posting."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

    @property
    def opposite(self) -> "PostingSide":
        return PostingSide.CREDIT if self is PostingSide.DEBIT else PostingSide.DEBIT


class TransactionType(str, Enum):
    """Types of ledger transactions."""

    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    DIVIDEND = "DIVIDEND"
    INTEREST = "INTEREST"
    FEE = "FEE"
    TAX = "TAX"
    TRANSFER = "TRANSFER"
    OPENING_BALANCE = "OPENING_BALANCE"
    ADJUSTMENT = "ADJUSTMENT"
    REVERSAL = "REVERSAL"
    OTHER = "OTHER"


class PriceSource(str, Enum):
    """Where a price point came from."""

    TRANSACTION = "TRANSACTION"
    CSV_IMPORT = "CSV_IMPORT"
    API = "API"
    MANUAL = "MANUAL"


class Granularity(str, Enum):
    """Calendar bucket size for time series."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class AggregationMode(str, Enum):
    """Per-bucket sums (flow) or running totals (cumulative)."""

    FLOW = "FLOW"
    CUMULATIVE = "CUMULATIVE"


class GroupBy(str, Enum):
    """Grouping dimension for aggregation."""

    CATEGORY = "CATEGORY"
    TYPE = "TYPE"
    TOP_LEVEL = "TOP_LEVEL"
    ASSET = "ASSET"


class CheckpointStatus(str, Enum):
    """Reconciliation state of a balance checkpoint."""

    UNCHECKED = "UNCHECKED"
    MATCHED = "MATCHED"
    DISCREPANT = "DISCREPANT"
    RESOLVED = "RESOLVED"


class DiscrepancySeverity(str, Enum):
    """Severity of a discrepancy relative to account scale."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        """Sort key, most severe first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    DiscrepancySeverity.CRITICAL: 0,
    DiscrepancySeverity.HIGH: 1,
    DiscrepancySeverity.MEDIUM: 2,
    DiscrepancySeverity.LOW: 3,
}


class DiscrepancyType(str, Enum):
    """Kind of reconciliation finding."""

    BALANCE_MISMATCH = "BALANCE_MISMATCH"
    MISSING_TRANSACTION = "MISSING_TRANSACTION"


class InvestigationDepth(str, Enum):
    """How far around a checkpoint fix providers look, in days."""

    QUICK = "QUICK"
    BALANCED = "BALANCED"
    THOROUGH = "THOROUGH"

    @property
    def window_days(self) -> int:
        return {"QUICK": 3, "BALANCED": 7, "THOROUGH": 14}[self.value]


class ReconciliationOutcome(str, Enum):
    """Terminal state of a reconciliation session."""

    RECONCILED = "RECONCILED"
    ITERATION_LIMIT_REACHED = "ITERATION_LIMIT_REACHED"
    NO_PROGRESS = "NO_PROGRESS"
    CANCELLED = "CANCELLED"
