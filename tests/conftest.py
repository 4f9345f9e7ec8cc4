"""
Pytest configuration and fixtures for ledger engine tests.

This module provides:
- In-memory SQLite database fixtures
- In-memory repository doubles for concurrency tests
- Draft builders for common transaction shapes
- Scripted fix providers for reconciliation tests
- Service and repository fixtures
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterator, Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from cascade_ledger.main import app
from cascade_ledger.repositories.sqlalchemy.database import Base, get_db, reset_database
# Import ORM models to register them with Base before creating tables
from cascade_ledger.repositories.sqlalchemy import orm_models  # noqa: F401
from cascade_ledger.repositories.sqlalchemy import (
    SqlAlchemyAccountRepository,
    SqlAlchemyJournalRepository,
    SqlAlchemyPriceRepository,
)
from cascade_ledger.providers import InvestigationContext, OpeningBalanceFixProvider
from cascade_ledger.services import (
    JournalStore,
    PriceBook,
    PriceResolver,
    TimelineBuilder,
    Aggregator,
    ValuationCalculator,
    LedgerQueryService,
    ReconciliationEngine,
)
from cascade_ledger.domain.models import (
    Account,
    AccountType,
    AssertedBalance,
    PostingDraft,
    PostingSide,
    PricePoint,
    PriceSource,
    ProposedFix,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from cascade_ledger.core.timezone import EASTERN_TZ
from cascade_ledger.config.settings import Settings, reset_settings, set_settings


CASH = "Cash USD"
CASH_EQUIVALENTS = ("SPAXX", "VMMXX", "SWVXX")


# =============================================================================
# TIMEZONE HELPERS
# =============================================================================


def eastern_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in US/Eastern timezone."""
    return EASTERN_TZ.localize(datetime(year, month, day, hour, minute, second))


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def account_repo(test_session) -> SqlAlchemyAccountRepository:
    """Provide test AccountRepository."""
    return SqlAlchemyAccountRepository(test_session)


@pytest.fixture
def journal_repo(test_session) -> SqlAlchemyJournalRepository:
    """Provide test JournalRepository."""
    return SqlAlchemyJournalRepository(test_session)


@pytest.fixture
def price_repo(test_session) -> SqlAlchemyPriceRepository:
    """Provide test PriceRepository."""
    return SqlAlchemyPriceRepository(test_session)


class InMemoryAccountRepository:
    """Dict-backed AccountRepository."""

    def __init__(self):
        self._accounts: dict[str, Account] = {}

    def create(self, account: Account) -> Account:
        self._accounts[account.account_id] = account
        return account

    def get_by_id(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def get_by_name(self, name: str) -> Optional[Account]:
        return next((a for a in self._accounts.values() if a.name == name), None)

    def list_all(self) -> list[Account]:
        return sorted(self._accounts.values(), key=lambda a: a.name)

    def list_ids(self) -> list[str]:
        return sorted(self._accounts)


class InMemoryJournalRepository:
    """
    List-backed JournalRepository.

    Deliberately unsynchronized: concurrent appends rely on the journal
    store's account locks to keep sequences unique.
    """

    def __init__(self):
        self.transactions: list[Transaction] = []

    def add(self, transaction: Transaction) -> Transaction:
        self.transactions.append(transaction)
        return transaction

    def get_by_id(self, txn_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.txn_id == txn_id), None)

    def find_reversal(self, txn_id: str) -> Optional[Transaction]:
        return next((t for t in self.transactions if t.reverses_txn_id == txn_id), None)

    def max_sequence(self, account_id: str) -> int:
        return max((t.sequence for t in self.transactions if t.account_id == account_id), default=0)

    def list_by_account(self, account_id, start=None, end=None) -> list[Transaction]:
        return sorted(
            (
                t for t in self.transactions
                if t.account_id == account_id
                and (start is None or t.txn_date >= start)
                and (end is None or t.txn_date <= end)
            ),
            key=lambda t: (t.txn_date, t.sequence),
        )

    def iter_postings(self, account_ids, start=None, end=None) -> Iterator:
        wanted = set(account_ids)
        postings = [
            p
            for t in self.transactions
            if t.account_id in wanted
            and (start is None or t.txn_date >= start)
            and (end is None or t.txn_date <= end)
            for p in t.postings
        ]
        yield from sorted(postings, key=lambda p: (p.txn_date, p.account_id, p.sequence, p.line_no))

    def list_batch(self, batch_id: str) -> list[Transaction]:
        return [t for t in self.transactions if t.batch_id == batch_id]

    def delete_batch(self, batch_id: str) -> int:
        before = len(self.transactions)
        self.transactions = [t for t in self.transactions if t.batch_id != batch_id]
        return before - len(self.transactions)


class InMemoryPriceRepository:
    """Dict-backed PriceRepository that counts history loads."""

    def __init__(self):
        self._points: dict[tuple[str, date], PricePoint] = {}
        self.loads = 0

    def upsert_many(self, points: list[PricePoint]) -> int:
        for point in points:
            self._points[(point.asset_id, point.price_date)] = point
        return len(points)

    def list_for_asset(self, asset_id: str, end: Optional[date] = None) -> list[PricePoint]:
        self.loads += 1
        return sorted(
            (
                p for (a, d), p in self._points.items()
                if a == asset_id and (end is None or d <= end)
            ),
            key=lambda p: p.price_date,
        )

    def list_assets(self) -> list[str]:
        return sorted({a for a, _ in self._points})


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def journal_store(account_repo, journal_repo) -> JournalStore:
    """Provide test JournalStore backed by SQLite."""
    return JournalStore(account_repo=account_repo, journal_repo=journal_repo)


@pytest.fixture
def memory_journal_store() -> JournalStore:
    """Provide JournalStore backed by in-memory repositories."""
    return JournalStore(
        account_repo=InMemoryAccountRepository(),
        journal_repo=InMemoryJournalRepository(),
    )


@pytest.fixture
def price_book(price_repo) -> PriceBook:
    """Provide test PriceBook."""
    return PriceBook(price_repo)


@pytest.fixture
def resolver_factory(price_repo) -> Callable[[], PriceResolver]:
    """Factory for fresh resolvers (a resolver caches each asset's history)."""

    def _create() -> PriceResolver:
        return PriceResolver(
            price_repo,
            cash_equivalents=CASH_EQUIVALENTS,
            cash_ledger_account=CASH,
        )

    return _create


@pytest.fixture
def query_factory(journal_store, resolver_factory) -> Callable[[], LedgerQueryService]:
    """Factory for query facades reading the current prices."""

    def _create() -> LedgerQueryService:
        prices = resolver_factory()
        return LedgerQueryService(
            journal_store=journal_store,
            price_resolver=prices,
            timeline_builder=TimelineBuilder(),
            aggregator=Aggregator(),
            valuation=ValuationCalculator(prices),
        )

    return _create


@pytest.fixture
def reconciliation_engine(journal_store) -> ReconciliationEngine:
    """Provide ReconciliationEngine with the opening balance provider."""
    return ReconciliationEngine(
        journal_store=journal_store,
        fix_provider=OpeningBalanceFixProvider(),
    )


# =============================================================================
# FIX PROVIDER DOUBLES
# =============================================================================


class ScriptedFixProvider:
    """
    Fix provider returning proposals built by a callback.

    Records every context it was asked about.
    """

    def __init__(self, build: Callable[[InvestigationContext], list[ProposedFix]]):
        self._build = build
        self.contexts: list[InvestigationContext] = []

    def propose(self, context: InvestigationContext) -> list[ProposedFix]:
        self.contexts.append(context)
        return self._build(context)


class SilentFixProvider:
    """Fix provider that never proposes anything."""

    def __init__(self):
        self.calls = 0

    def propose(self, context: InvestigationContext) -> list[ProposedFix]:
        self.calls += 1
        return []


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def account_factory(journal_store) -> Callable[..., Account]:
    """Factory for creating test accounts."""

    def _create_account(name: Optional[str] = None, institution: Optional[str] = None) -> Account:
        if name is None:
            name = f"Test Account {uuid.uuid4().hex[:8]}"
        return journal_store.create_account(name=name, institution=institution)

    return _create_account


@pytest.fixture
def sample_account(account_factory) -> Account:
    """Create a sample account."""
    return account_factory(name="Brokerage")


@pytest.fixture
def funded_account(journal_store, sample_account) -> Account:
    """
    Brokerage with $10,000 deposited on 2024-01-02, 10 ABC bought on
    2024-01-10 for $1,000 and 5 XYZ bought on 2024-02-05 for $500.
    """
    account_id = sample_account.account_id
    journal_store.append(deposit_draft(account_id, date(2024, 1, 2), Decimal("10000")))
    journal_store.append(buy_draft(account_id, date(2024, 1, 10), "ABC", Decimal("10"), Decimal("1000")))
    journal_store.append(buy_draft(account_id, date(2024, 2, 5), "XYZ", Decimal("5"), Decimal("500")))
    return sample_account


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(test_engine) -> TestClient:
    """Provide FastAPI test client with test database."""
    set_settings(Settings(database_url="sqlite://"))
    reset_database()
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_database()
    reset_settings()


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(actual - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


def deposit_draft(
    account_id: str,
    on: date,
    amount: Decimal,
    batch_id: Optional[str] = None,
    category: Optional[str] = None,
) -> TransactionDraft:
    """Cash deposit: debit cash, credit contributions equity."""
    return TransactionDraft(
        account_id=account_id,
        txn_date=on,
        description="Deposit",
        txn_type=TransactionType.DEPOSIT,
        batch_id=batch_id,
        category=category,
        postings=[
            PostingDraft(AccountType.CASH, CASH, PostingSide.DEBIT, amount),
            PostingDraft(AccountType.EQUITY, "Contributions", PostingSide.CREDIT, amount),
        ],
    )


def withdrawal_draft(account_id: str, on: date, amount: Decimal) -> TransactionDraft:
    """Cash withdrawal: credit cash, debit contributions equity."""
    return TransactionDraft(
        account_id=account_id,
        txn_date=on,
        description="Withdrawal",
        txn_type=TransactionType.WITHDRAWAL,
        postings=[
            PostingDraft(AccountType.EQUITY, "Contributions", PostingSide.DEBIT, amount),
            PostingDraft(AccountType.CASH, CASH, PostingSide.CREDIT, amount),
        ],
    )


def buy_draft(
    account_id: str,
    on: date,
    symbol: str,
    quantity: Decimal,
    amount: Decimal,
    batch_id: Optional[str] = None,
) -> TransactionDraft:
    """Buy: debit the asset (with quantity), credit cash."""
    return TransactionDraft(
        account_id=account_id,
        txn_date=on,
        description=f"Buy {symbol}",
        txn_type=TransactionType.BUY,
        batch_id=batch_id,
        postings=[
            PostingDraft(AccountType.ASSET, symbol, PostingSide.DEBIT, amount, quantity=quantity),
            PostingDraft(AccountType.CASH, CASH, PostingSide.CREDIT, amount),
        ],
    )


def sell_draft(
    account_id: str,
    on: date,
    symbol: str,
    quantity: Decimal,
    amount: Decimal,
) -> TransactionDraft:
    """Sell: credit the asset (with quantity), debit cash."""
    return TransactionDraft(
        account_id=account_id,
        txn_date=on,
        description=f"Sell {symbol}",
        txn_type=TransactionType.SELL,
        postings=[
            PostingDraft(AccountType.CASH, CASH, PostingSide.DEBIT, amount),
            PostingDraft(AccountType.ASSET, symbol, PostingSide.CREDIT, amount, quantity=quantity),
        ],
    )


def expense_draft(
    account_id: str,
    on: date,
    amount: Decimal,
    category: str,
    txn_type: TransactionType = TransactionType.FEE,
) -> TransactionDraft:
    """Expense paid from cash, categorized on the expense posting."""
    return TransactionDraft(
        account_id=account_id,
        txn_date=on,
        description=category,
        txn_type=txn_type,
        postings=[
            PostingDraft(AccountType.EXPENSE, "Expenses", PostingSide.DEBIT, amount, category=category),
            PostingDraft(AccountType.CASH, CASH, PostingSide.CREDIT, amount),
        ],
    )


def income_draft(
    account_id: str,
    on: date,
    amount: Decimal,
    category: str = "Income:Dividends",
    ledger_account: str = "Dividend Income",
) -> TransactionDraft:
    """Income received in cash."""
    return TransactionDraft(
        account_id=account_id,
        txn_date=on,
        description=ledger_account,
        txn_type=TransactionType.DIVIDEND,
        category=category,
        postings=[
            PostingDraft(AccountType.CASH, CASH, PostingSide.DEBIT, amount),
            PostingDraft(AccountType.INCOME, ledger_account, PostingSide.CREDIT, amount),
        ],
    )


def asserted(
    account_id: str,
    on: date,
    balance: Decimal,
    ledger_account: str = CASH,
    row_number: Optional[int] = None,
) -> AssertedBalance:
    """Statement balance for a cash ledger account."""
    return AssertedBalance(
        account_id=account_id,
        ledger_account=ledger_account,
        as_of=on,
        balance=balance,
        account_type=AccountType.CASH,
        row_number=row_number,
    )


def price(symbol: str, on: date, value: Decimal, source: PriceSource = PriceSource.MANUAL) -> PricePoint:
    return PricePoint(asset_id=symbol, price_date=on, price=value, source=source)
