"""Repository layer - data access abstractions and implementations."""

from cascade_ledger.repositories.protocols import (
    AccountRepository,
    JournalRepository,
    PriceRepository,
)

__all__ = [
    "AccountRepository",
    "JournalRepository",
    "PriceRepository",
]
