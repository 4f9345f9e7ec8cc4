"""Dependency injection for FastAPI."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from cascade_ledger.config.settings import get_settings
from cascade_ledger.providers import OpeningBalanceFixProvider
from cascade_ledger.repositories.sqlalchemy.database import get_db
from cascade_ledger.repositories.sqlalchemy import (
    SqlAlchemyAccountRepository,
    SqlAlchemyJournalRepository,
    SqlAlchemyPriceRepository,
)
from cascade_ledger.services import (
    AccountLocks,
    Aggregator,
    JournalStore,
    LedgerQueryService,
    PriceBook,
    PriceResolver,
    ReconciliationEngine,
    TimelineBuilder,
    ValuationCalculator,
)


def get_account_repo(db: Session = Depends(get_db)) -> SqlAlchemyAccountRepository:
    """Provide AccountRepository instance."""
    return SqlAlchemyAccountRepository(db)


def get_journal_repo(db: Session = Depends(get_db)) -> SqlAlchemyJournalRepository:
    """Provide JournalRepository instance."""
    return SqlAlchemyJournalRepository(db)


def get_price_repo(db: Session = Depends(get_db)) -> SqlAlchemyPriceRepository:
    """Provide PriceRepository instance."""
    return SqlAlchemyPriceRepository(db)


def get_account_locks(request: Request) -> AccountLocks:
    """Per-account write locks shared by every request of the app."""
    return request.app.state.account_locks


def get_journal_store(
    account_repo: SqlAlchemyAccountRepository = Depends(get_account_repo),
    journal_repo: SqlAlchemyJournalRepository = Depends(get_journal_repo),
    locks: AccountLocks = Depends(get_account_locks),
) -> JournalStore:
    """Provide JournalStore instance."""
    return JournalStore(
        account_repo=account_repo,
        journal_repo=journal_repo,
        locks=locks,
        rounding_epsilon=get_settings().rounding_epsilon,
    )


def get_price_resolver(
    price_repo: SqlAlchemyPriceRepository = Depends(get_price_repo),
) -> PriceResolver:
    """Provide a request-scoped PriceResolver."""
    settings = get_settings()
    return PriceResolver(
        price_repo,
        cash_equivalents=settings.get_cash_equivalents(),
        cash_ledger_account=settings.cash_ledger_account,
    )


def get_price_book(
    price_repo: SqlAlchemyPriceRepository = Depends(get_price_repo),
) -> PriceBook:
    """Provide PriceBook instance."""
    return PriceBook(price_repo)


def get_timeline_builder() -> TimelineBuilder:
    """Provide TimelineBuilder instance."""
    return TimelineBuilder(max_workers=get_settings().timeline_workers)


def get_query_service(
    journal: JournalStore = Depends(get_journal_store),
    prices: PriceResolver = Depends(get_price_resolver),
    builder: TimelineBuilder = Depends(get_timeline_builder),
) -> LedgerQueryService:
    """Provide LedgerQueryService instance."""
    settings = get_settings()
    return LedgerQueryService(
        journal_store=journal,
        price_resolver=prices,
        timeline_builder=builder,
        aggregator=Aggregator(first_weekday=settings.first_weekday),
        valuation=ValuationCalculator(
            prices,
            quantity_dust=settings.quantity_dust,
            value_dust=settings.value_dust,
            first_weekday=settings.first_weekday,
        ),
    )


def get_reconciliation_engine(
    journal: JournalStore = Depends(get_journal_store),
    builder: TimelineBuilder = Depends(get_timeline_builder),
) -> ReconciliationEngine:
    """Provide ReconciliationEngine instance."""
    settings = get_settings()
    return ReconciliationEngine(
        journal_store=journal,
        fix_provider=OpeningBalanceFixProvider(equity_account=settings.opening_balance_account),
        timeline_builder=builder,
        tolerance=settings.balance_tolerance,
        min_fix_confidence=settings.min_fix_confidence,
        severity_thresholds=settings.get_severity_thresholds(),
        max_iterations=settings.reconcile_max_iterations,
    )
