"""Core utilities and shared functionality."""

from cascade_ledger.core.timezone import (
    now_eastern,
    today_eastern,
    to_eastern,
    to_ledger_date,
    parse_datetime_eastern,
    EASTERN_TZ,
)
from cascade_ledger.core.exceptions import (
    AppError,
    ValidationError,
    InvalidPostingError,
    NotFoundError,
    ImbalancedTransactionError,
    UnpricedAssetError,
    DegenerateTotalError,
)
from cascade_ledger.core.cancellation import CancellationToken

__all__ = [
    "now_eastern",
    "today_eastern",
    "to_eastern",
    "to_ledger_date",
    "parse_datetime_eastern",
    "EASTERN_TZ",
    "AppError",
    "ValidationError",
    "InvalidPostingError",
    "NotFoundError",
    "ImbalancedTransactionError",
    "UnpricedAssetError",
    "DegenerateTotalError",
    "CancellationToken",
]
