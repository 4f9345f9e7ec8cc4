"""SQLAlchemy repository implementations."""

from cascade_ledger.repositories.sqlalchemy.database import (
    create_ledger_engine,
    create_tables,
    get_engine,
    get_session_factory,
    get_db,
    init_db,
    reset_database,
    Base,
)
from cascade_ledger.repositories.sqlalchemy.account_repo import SqlAlchemyAccountRepository
from cascade_ledger.repositories.sqlalchemy.journal_repo import SqlAlchemyJournalRepository
from cascade_ledger.repositories.sqlalchemy.price_repo import SqlAlchemyPriceRepository

__all__ = [
    "create_ledger_engine",
    "create_tables",
    "get_engine",
    "get_session_factory",
    "get_db",
    "init_db",
    "reset_database",
    "Base",
    "SqlAlchemyAccountRepository",
    "SqlAlchemyJournalRepository",
    "SqlAlchemyPriceRepository",
]
