"""Repository protocol definitions (interfaces)."""

from cascade_ledger.repositories.protocols.account_repo import AccountRepository
from cascade_ledger.repositories.protocols.journal_repo import JournalRepository
from cascade_ledger.repositories.protocols.price_repo import PriceRepository

__all__ = [
    "AccountRepository",
    "JournalRepository",
    "PriceRepository",
]
