"""Collaborator protocols and built-in providers."""

from cascade_ledger.providers.fix_provider import FixProvider, InvestigationContext
from cascade_ledger.providers.opening_balance_provider import OpeningBalanceFixProvider

__all__ = [
    "FixProvider",
    "InvestigationContext",
    "OpeningBalanceFixProvider",
]
