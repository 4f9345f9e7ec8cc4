"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cascade_ledger import __version__
from cascade_ledger.config.settings import get_settings
from cascade_ledger.config.logging_config import setup_logging
from cascade_ledger.repositories.sqlalchemy.database import init_db
from cascade_ledger.api.routers import (
    accounts_router,
    journal_router,
    prices_router,
    analysis_router,
    reconciliation_router,
)
from cascade_ledger.core.exceptions import AppError, NotFoundError
from cascade_ledger.services import AccountLocks


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging(get_settings())
    init_db()
    yield
    # Shutdown (nothing to clean up)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Ledger reconstruction, valuation and statement reconciliation",
    version=__version__,
    lifespan=lifespan,
)

# Appends to one account are serialized across requests
app.state.account_locks = AccountLocks()

# Include routers
app.include_router(accounts_router)
app.include_router(journal_router)
app.include_router(prices_router)
app.include_router(analysis_router)
app.include_router(reconciliation_router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Missing resources map to 404."""
    return JSONResponse(
        status_code=404,
        content={"error": exc.code, "message": exc.message},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=400,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
