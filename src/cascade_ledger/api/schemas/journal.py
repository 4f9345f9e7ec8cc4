"""Pydantic schemas for journal endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from cascade_ledger.core.timezone import to_ledger_date
from cascade_ledger.domain.models import (
    AccountType,
    PostingDraft,
    PostingSide,
    TransactionDraft,
    TransactionType,
)


class PostingRequest(BaseModel):
    """One posting line of a transaction request."""

    account_type: AccountType
    ledger_account: str = Field(..., min_length=1, max_length=100)
    side: PostingSide
    amount: Decimal = Field(..., gt=0)
    quantity: Optional[Decimal] = None
    quantity_unit: Optional[str] = Field(default=None, max_length=20)
    category: Optional[str] = Field(default=None, max_length=200)

    def to_draft(self) -> PostingDraft:
        return PostingDraft(
            account_type=self.account_type,
            ledger_account=self.ledger_account,
            side=self.side,
            amount=self.amount,
            quantity=self.quantity,
            quantity_unit=self.quantity_unit,
            category=self.category,
        )


class TransactionCreateRequest(BaseModel):
    """Request schema for appending a transaction."""

    account_id: str = Field(..., description="Owning account ID")
    txn_date: date
    txn_type: TransactionType = TransactionType.OTHER
    description: str = Field(default="", max_length=500)
    category: Optional[str] = Field(default=None, max_length=200)
    batch_id: Optional[str] = Field(default=None, max_length=64)
    allow_rounding: bool = Field(
        default=False,
        description="Accept a debit/credit difference up to the configured rounding epsilon",
    )
    postings: list[PostingRequest] = Field(..., min_length=1)

    @field_validator("txn_date", mode="before")
    @classmethod
    def ledger_date(cls, v):
        """Timestamps are truncated to their US/Eastern calendar date."""
        return to_ledger_date(v)

    def to_draft(self) -> TransactionDraft:
        return TransactionDraft(
            account_id=self.account_id,
            txn_date=self.txn_date,
            description=self.description,
            txn_type=self.txn_type,
            category=self.category,
            batch_id=self.batch_id,
            allow_rounding=self.allow_rounding,
            postings=[p.to_draft() for p in self.postings],
        )


class ReverseRequest(BaseModel):
    """Request schema for reversing a transaction."""

    on: Optional[date] = Field(default=None, description="Reversal date; defaults to the original date")
    description: Optional[str] = Field(default=None, max_length=500)


class PostingResponse(BaseModel):
    """Response schema for a posting."""

    model_config = {"from_attributes": True}

    posting_id: str
    txn_id: str
    account_id: str
    account_type: AccountType
    ledger_account: str
    side: PostingSide
    amount: Decimal
    txn_date: date
    sequence: int
    line_no: int
    txn_type: TransactionType
    quantity: Optional[Decimal] = None
    quantity_unit: Optional[str] = None
    category: Optional[str] = None
    effect: Decimal


class TransactionResponse(BaseModel):
    """Response schema for a transaction."""

    model_config = {"from_attributes": True}

    txn_id: str
    account_id: str
    txn_date: date
    sequence: int
    description: str
    txn_type: TransactionType
    category: Optional[str] = None
    batch_id: Optional[str] = None
    reverses_txn_id: Optional[str] = None
    created_at_est: Optional[datetime] = None
    postings: list[PostingResponse]


class PostingListResponse(BaseModel):
    """Response schema for posting listings."""

    postings: list[PostingResponse]
    count: int


class BatchRemovalResponse(BaseModel):
    """Response schema for batch removal."""

    batch_id: str
    removed: int
