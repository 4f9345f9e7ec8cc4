"""Database connection and session management."""

from typing import Generator, Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from cascade_ledger.config.settings import get_settings

Base = declarative_base()

# Engine used by the HTTP layer (can be reconfigured at runtime)
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def create_ledger_engine(database_url: str, timeout_seconds: float) -> Engine:
    """Create an engine; ``timeout_seconds`` bounds waits on a locked SQLite file."""
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False, "timeout": timeout_seconds},  # SQLite-specific
        echo=False,
    )


def create_tables(engine: Engine) -> None:
    """Create all tables on ``engine``."""
    from cascade_ledger.repositories.sqlalchemy import orm_models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_engine() -> Engine:
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_ledger_engine(
            settings.get_database_url(),
            settings.storage_timeout_seconds,
        )
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize database tables."""
    create_tables(get_engine())


def reset_database() -> None:
    """Reset database state (for reconfiguration)."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    _engine = None
    _SessionLocal = None
