"""Domain models package."""

from cascade_ledger.domain.models.enums import (
    AccountType,
    PostingSide,
    TransactionType,
    PriceSource,
    Granularity,
    AggregationMode,
    GroupBy,
    CheckpointStatus,
    DiscrepancySeverity,
    DiscrepancyType,
    InvestigationDepth,
    ReconciliationOutcome,
)
from cascade_ledger.domain.models.account import Account
from cascade_ledger.domain.models.journal import (
    AMOUNT_SCALE,
    QUANTITY_SCALE,
    SIGNED_EFFECT,
    signed_effect,
    position_effect,
    Posting,
    Transaction,
    PostingDraft,
    TransactionDraft,
)
from cascade_ledger.domain.models.price import PricePoint, ResolvedPrice
from cascade_ledger.domain.models.reconciliation import (
    AssertedBalance,
    Checkpoint,
    Discrepancy,
    ProposedFix,
    FixOutcome,
)

__all__ = [
    "AccountType",
    "PostingSide",
    "TransactionType",
    "PriceSource",
    "Granularity",
    "AggregationMode",
    "GroupBy",
    "CheckpointStatus",
    "DiscrepancySeverity",
    "DiscrepancyType",
    "InvestigationDepth",
    "ReconciliationOutcome",
    "Account",
    "AMOUNT_SCALE",
    "QUANTITY_SCALE",
    "SIGNED_EFFECT",
    "signed_effect",
    "position_effect",
    "Posting",
    "Transaction",
    "PostingDraft",
    "TransactionDraft",
    "PricePoint",
    "ResolvedPrice",
    "AssertedBalance",
    "Checkpoint",
    "Discrepancy",
    "ProposedFix",
    "FixOutcome",
]
