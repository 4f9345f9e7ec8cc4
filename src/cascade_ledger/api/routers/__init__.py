"""API routers package."""

from cascade_ledger.api.routers.accounts import router as accounts_router
from cascade_ledger.api.routers.journal import router as journal_router
from cascade_ledger.api.routers.prices import router as prices_router
from cascade_ledger.api.routers.analysis import router as analysis_router
from cascade_ledger.api.routers.reconciliation import router as reconciliation_router

__all__ = [
    "accounts_router",
    "journal_router",
    "prices_router",
    "analysis_router",
    "reconciliation_router",
]
