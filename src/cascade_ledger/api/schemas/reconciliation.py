"""Pydantic schemas for reconciliation endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from cascade_ledger.core.timezone import to_ledger_date
from cascade_ledger.domain.models import (
    AccountType,
    CheckpointStatus,
    DiscrepancySeverity,
    DiscrepancyType,
    ReconciliationOutcome,
)


class AssertedBalanceRequest(BaseModel):
    """
    One statement balance.

    Either ``balance`` or the raw statement text ``raw_value``
    (e.g. ``"$1,234.50"``) must be given.
    """

    ledger_account: str = Field(..., min_length=1, max_length=100)
    as_of: date
    balance: Optional[Decimal] = None
    raw_value: Optional[str] = Field(default=None, max_length=50)
    account_type: AccountType = AccountType.CASH
    row_number: Optional[int] = None

    @field_validator("as_of", mode="before")
    @classmethod
    def ledger_date(cls, v):
        return to_ledger_date(v)

    @model_validator(mode="after")
    def require_balance(self) -> "AssertedBalanceRequest":
        if self.balance is None and not self.raw_value:
            raise ValueError("balance or raw_value is required")
        return self


class ReconcileRequest(BaseModel):
    """Request schema for a reconciliation run."""

    balances: list[AssertedBalanceRequest] = Field(..., min_length=1)
    max_iterations: Optional[int] = Field(default=None, ge=1, le=20)


class CheckpointResponse(BaseModel):
    model_config = {"from_attributes": True}

    ledger_account: str
    account_type: AccountType
    as_of: date
    computed: Decimal
    asserted: Decimal
    delta: Decimal
    status: CheckpointStatus
    row_number: Optional[int] = None


class DiscrepancyResponse(BaseModel):
    model_config = {"from_attributes": True}

    discrepancy_id: str
    ledger_account: str
    as_of: date
    discrepancy_type: DiscrepancyType
    severity: DiscrepancySeverity
    summary: str
    evidence: str
    expected: Decimal
    actual: Decimal
    delta: Decimal
    iteration: int
    resolution_delta: Optional[Decimal] = None
    fix_txn_ids: list[str] = []
    is_resolved: bool
    resolved_at: Optional[datetime] = None


class FixOutcomeResponse(BaseModel):
    model_config = {"from_attributes": True}

    discrepancy_id: str
    description: str
    confidence: Decimal
    applied: bool
    delta_before: Decimal
    delta_after: Optional[Decimal] = None
    txn_ids: list[str] = []
    reason: str = ""


class ReconciliationReportResponse(BaseModel):
    """Response schema for a reconciliation session."""

    model_config = {"from_attributes": True}

    session_id: str
    account_id: str
    outcome: ReconciliationOutcome
    iterations: int
    checkpoints_built: int
    discrepancies_found: int
    discrepancies_resolved: int
    fixes_applied: int
    fixes_rejected: int
    initial_max_discrepancy: Decimal
    final_max_discrepancy: Decimal
    fully_reconciled: bool
    checkpoints: list[CheckpointResponse]
    discrepancies: list[DiscrepancyResponse]
    fix_outcomes: list[FixOutcomeResponse]
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
