"""Application context for in-process service access.

Provides the ledger services without HTTP, for scripts, notebooks and
embedding applications. Each context owns its engine and session; there
is no process-wide instance.
"""

from typing import Optional

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from cascade_ledger.config.settings import Settings
from cascade_ledger.providers import FixProvider, OpeningBalanceFixProvider
from cascade_ledger.repositories.sqlalchemy import (
    create_ledger_engine,
    create_tables,
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


class AppContext:
    """
    In-process access to the journal, prices, queries and reconciliation.

    Usage:
        with AppContext(Settings(database_url="sqlite:///ledger.db")) as ctx:
            account = ctx.journal.create_account("Brokerage")
            ctx.queries.current_summary([account.account_id])
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        fix_provider: Optional[FixProvider] = None,
    ):
        """
        Initialize application context.

        Args:
            settings: Settings to use. Defaults to ``Settings()`` from the environment.
            fix_provider: Fix strategy for reconciliation. Defaults to the
                opening balance provider.
        """
        self._settings = settings or Settings()
        self._engine: Engine = create_ledger_engine(
            self._settings.get_database_url(),
            self._settings.storage_timeout_seconds,
        )
        create_tables(self._engine)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        self._session: Optional[Session] = None
        self._locks = AccountLocks()
        self._fix_provider = fix_provider or OpeningBalanceFixProvider(
            equity_account=self._settings.opening_balance_account
        )

        self._journal: Optional[JournalStore] = None

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def settings(self) -> Settings:
        return self._settings

    def _get_session(self) -> Session:
        """Get or create database session."""
        if self._session is None:
            self._session = self._session_factory()
        return self._session

    # Service accessors
    @property
    def journal(self) -> JournalStore:
        """Get the JournalStore instance."""
        if self._journal is None:
            session = self._get_session()
            self._journal = JournalStore(
                account_repo=SqlAlchemyAccountRepository(session),
                journal_repo=SqlAlchemyJournalRepository(session),
                locks=self._locks,
                rounding_epsilon=self._settings.rounding_epsilon,
            )
        return self._journal

    @property
    def price_book(self) -> PriceBook:
        return PriceBook(SqlAlchemyPriceRepository(self._get_session()))

    def new_price_resolver(self) -> PriceResolver:
        """
        Fresh resolver over the stored prices.

        A resolver caches each asset's history on first use, so create a
        new one after recording prices.
        """
        return PriceResolver(
            SqlAlchemyPriceRepository(self._get_session()),
            cash_equivalents=self._settings.get_cash_equivalents(),
            cash_ledger_account=self._settings.cash_ledger_account,
        )

    @property
    def queries(self) -> LedgerQueryService:
        """Query facade over the current journal and prices."""
        prices = self.new_price_resolver()
        return LedgerQueryService(
            journal_store=self.journal,
            price_resolver=prices,
            timeline_builder=self._timeline_builder(),
            aggregator=Aggregator(first_weekday=self._settings.first_weekday),
            valuation=ValuationCalculator(
                prices,
                quantity_dust=self._settings.quantity_dust,
                value_dust=self._settings.value_dust,
                first_weekday=self._settings.first_weekday,
            ),
        )

    @property
    def reconciliation(self) -> ReconciliationEngine:
        """Get a ReconciliationEngine wired to this context's journal."""
        return ReconciliationEngine(
            journal_store=self.journal,
            fix_provider=self._fix_provider,
            timeline_builder=self._timeline_builder(),
            tolerance=self._settings.balance_tolerance,
            min_fix_confidence=self._settings.min_fix_confidence,
            severity_thresholds=self._settings.get_severity_thresholds(),
            max_iterations=self._settings.reconcile_max_iterations,
        )

    def _timeline_builder(self) -> TimelineBuilder:
        return TimelineBuilder(max_workers=self._settings.timeline_workers)

    def close(self) -> None:
        """Clean up resources."""
        if self._session:
            self._session.close()
            self._session = None
        self._journal = None
        self._engine.dispose()
