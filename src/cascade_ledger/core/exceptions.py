"""Application-level exceptions."""

from datetime import date
from decimal import Decimal


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)


class InvalidPostingError(ValidationError):
    """Raised when a transaction draft is structurally invalid."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_POSTING")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class ImbalancedTransactionError(AppError):
    """Raised when debits and credits of a transaction do not balance."""

    def __init__(self, debits: Decimal, credits: Decimal, tolerance: Decimal):
        self.debits = debits
        self.credits = credits
        self.tolerance = tolerance
        super().__init__(
            f"Transaction does not balance: debits {debits}, credits {credits}, "
            f"difference {abs(debits - credits)} exceeds tolerance {tolerance}",
            code="IMBALANCED_TRANSACTION",
        )


class UnpricedAssetError(AppError):
    """Raised when no price point exists at or before the requested date."""

    def __init__(self, asset_id: str, on: date):
        self.asset_id = asset_id
        self.on = on
        super().__init__(
            f"No price for {asset_id} on or before {on.isoformat()}",
            code="UNPRICED_ASSET",
        )


class DegenerateTotalError(AppError):
    """Raised when an allocation total is zero or negative."""

    def __init__(self, on: date, total: Decimal):
        self.on = on
        self.total = total
        super().__init__(
            f"Allocation total on {on.isoformat()} is not positive: {total}",
            code="DEGENERATE_TOTAL",
        )
