"""Service layer - ledger reconstruction and reconciliation."""

from cascade_ledger.services.journal_store import (
    AccountLocks,
    JournalStore,
    normalize_ledger_account,
)
from cascade_ledger.services.price_resolver import (
    PriceBook,
    PriceResolver,
    derive_transaction_prices,
    normalize_symbol,
)
from cascade_ledger.services.timeline_builder import TimelineArena, TimelineBuilder
from cascade_ledger.services.aggregator import Aggregator, TimeRange
from cascade_ledger.services.valuation import ValuationCalculator
from cascade_ledger.services.reconciliation import (
    ReconciliationEngine,
    parse_statement_balance,
)
from cascade_ledger.services.ledger_queries import LedgerQueryService

__all__ = [
    "AccountLocks",
    "JournalStore",
    "normalize_ledger_account",
    "PriceBook",
    "PriceResolver",
    "derive_transaction_prices",
    "normalize_symbol",
    "TimelineArena",
    "TimelineBuilder",
    "Aggregator",
    "TimeRange",
    "ValuationCalculator",
    "ReconciliationEngine",
    "parse_statement_balance",
    "LedgerQueryService",
]
