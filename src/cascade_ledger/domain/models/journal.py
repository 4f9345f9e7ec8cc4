"""Journal domain models: postings, transactions and their drafts."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from cascade_ledger.domain.models.enums import AccountType, PostingSide, TransactionType

# Decimal places kept by storage
AMOUNT_SCALE = 4
QUANTITY_SCALE = 8

# (account classification, side) -> signed effect on that ledger account's balance.
SIGNED_EFFECT: dict[tuple[AccountType, PostingSide], int] = {
    (AccountType.ASSET, PostingSide.DEBIT): 1,
    (AccountType.ASSET, PostingSide.CREDIT): -1,
    (AccountType.CASH, PostingSide.DEBIT): 1,
    (AccountType.CASH, PostingSide.CREDIT): -1,
    (AccountType.EXPENSE, PostingSide.DEBIT): 1,
    (AccountType.EXPENSE, PostingSide.CREDIT): -1,
    (AccountType.LIABILITY, PostingSide.DEBIT): -1,
    (AccountType.LIABILITY, PostingSide.CREDIT): 1,
    (AccountType.EQUITY, PostingSide.DEBIT): -1,
    (AccountType.EQUITY, PostingSide.CREDIT): 1,
    (AccountType.INCOME, PostingSide.DEBIT): -1,
    (AccountType.INCOME, PostingSide.CREDIT): 1,
}


def signed_effect(account_type: AccountType, side: PostingSide) -> int:
    """Return +1 or -1 for a posting of ``side`` on an ``account_type`` ledger account."""
    return SIGNED_EFFECT[(AccountType(account_type), PostingSide(side))]


def position_effect(
    account_type: AccountType,
    side: PostingSide,
    amount: Decimal,
    quantity: Optional[Decimal] = None,
) -> Decimal:
    """
    Change in the tracked position caused by one posting.

    Asset ledger accounts track quantity; every other classification
    tracks the monetary amount.
    """
    sign = signed_effect(account_type, side)
    if AccountType(account_type) == AccountType.ASSET:
        return sign * abs(quantity or Decimal("0"))
    return sign * amount


@dataclass(frozen=True)
class Posting:
    """
    One debit or credit line of a transaction.

    Immutable once created. The owning transaction's date and sequence
    are carried on the posting so that postings can be folded without
    going back to the transaction.
    """

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
    txn_type: TransactionType = TransactionType.OTHER
    quantity: Optional[Decimal] = None
    quantity_unit: Optional[str] = None
    category: Optional[str] = None

    @property
    def is_debit(self) -> bool:
        return self.side == PostingSide.DEBIT

    @property
    def is_asset(self) -> bool:
        return self.account_type == AccountType.ASSET

    @property
    def asset_id(self) -> Optional[str]:
        return self.ledger_account if self.is_asset else None

    @property
    def signed_amount(self) -> Decimal:
        """Monetary amount with the sign of its effect on the ledger account."""
        return signed_effect(self.account_type, self.side) * self.amount

    @property
    def effect(self) -> Decimal:
        """Change in position (quantity for assets, amount otherwise)."""
        return position_effect(self.account_type, self.side, self.amount, self.quantity)

    @property
    def price_per_unit(self) -> Optional[Decimal]:
        if not self.quantity or not self.amount:
            return None
        return abs(self.amount / self.quantity)

    @property
    def order_key(self) -> tuple[date, int, int]:
        return (self.txn_date, self.sequence, self.line_no)


@dataclass
class Transaction:
    """
    Dated, balanced group of postings.

    ``sequence`` is assigned by the journal store at append time and is
    strictly increasing per account; it breaks ties between transactions
    sharing a date.
    """

    txn_id: str
    account_id: str
    txn_date: date
    sequence: int
    description: str = ""
    txn_type: TransactionType = TransactionType.OTHER
    postings: list[Posting] = field(default_factory=list)
    category: Optional[str] = None
    batch_id: Optional[str] = None
    reverses_txn_id: Optional[str] = None
    created_at_est: Optional[datetime] = None

    def __post_init__(self) -> None:
        if isinstance(self.txn_type, str):
            self.txn_type = TransactionType(self.txn_type)

    @property
    def total_debits(self) -> Decimal:
        return sum((p.amount for p in self.postings if p.is_debit), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((p.amount for p in self.postings if not p.is_debit), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


@dataclass
class PostingDraft:
    """Input data for one posting of a transaction to append."""

    account_type: AccountType
    ledger_account: str
    side: PostingSide
    amount: Decimal
    quantity: Optional[Decimal] = None
    quantity_unit: Optional[str] = None
    category: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.account_type, str):
            self.account_type = AccountType(self.account_type)
        if isinstance(self.side, str):
            self.side = PostingSide(self.side)
        if not isinstance(self.amount, Decimal):
            self.amount = Decimal(str(self.amount))
        if self.quantity is not None and not isinstance(self.quantity, Decimal):
            self.quantity = Decimal(str(self.quantity))

    @property
    def effect(self) -> Decimal:
        return position_effect(self.account_type, self.side, self.amount, self.quantity)


@dataclass
class TransactionDraft:
    """
    Input data for appending a transaction to the journal.

    ``allow_rounding`` opts in to the configured rounding epsilon for
    cross-currency or rounding cases; without it debits must equal credits
    exactly.
    """

    account_id: str
    txn_date: date
    postings: list[PostingDraft]
    description: str = ""
    txn_type: TransactionType = TransactionType.OTHER
    category: Optional[str] = None
    batch_id: Optional[str] = None
    reverses_txn_id: Optional[str] = None
    allow_rounding: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.txn_type, str):
            self.txn_type = TransactionType(self.txn_type)
