"""Journal store: append-only double-entry transactions."""

import logging
import threading
import uuid
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, Optional

from cascade_ledger.core.timezone import now_eastern
from cascade_ledger.core.exceptions import (
    ImbalancedTransactionError,
    InvalidPostingError,
    NotFoundError,
    ValidationError,
)
from cascade_ledger.domain.models import (
    Account,
    AMOUNT_SCALE,
    AccountType,
    Posting,
    PostingDraft,
    PostingSide,
    QUANTITY_SCALE,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from cascade_ledger.repositories.protocols import AccountRepository, JournalRepository

logger = logging.getLogger(__name__)


class AccountLocks:
    """Registry of per-account write locks."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def for_account(self, account_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = self._locks[account_id] = threading.Lock()
            return lock


class JournalStore:
    """
    Append-only store of balanced transactions.

    Every transaction is validated before it is written: it needs at least
    two postings with positive amounts, asset postings need a quantity,
    and debits must equal credits. Writes to one account are serialized
    so that the per-account sequence stays a total order; different
    accounts never wait on each other.

    Postings are never edited. A correction is a reversal transaction and
    the only deletion is removal of a whole import batch.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        journal_repo: JournalRepository,
        locks: Optional[AccountLocks] = None,
        rounding_epsilon: Decimal = Decimal("0.01"),
    ):
        self._account_repo = account_repo
        self._journal_repo = journal_repo
        self._locks = locks or AccountLocks()
        self._rounding_epsilon = rounding_epsilon

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def create_account(self, name: str, institution: Optional[str] = None) -> Account:
        """
        Create a new owning account.

        Args:
            name: Unique account name
            institution: Optional institution label

        Returns:
            Created Account instance
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name is required")
        existing = self._account_repo.get_by_name(name)
        if existing:
            raise ValidationError(f"Account with name '{name}' already exists")

        account = Account(
            account_id=str(uuid.uuid4()),
            name=name,
            institution=institution,
            created_at_est=now_eastern(),
        )
        return self._account_repo.create(account)

    def get_account(self, account_id: str) -> Account:
        """Get account by ID."""
        account = self._account_repo.get_by_id(account_id)
        if not account:
            raise NotFoundError("Account", account_id)
        return account

    def list_accounts(self) -> list[Account]:
        """List all accounts."""
        return self._account_repo.list_all()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def validate(self, draft: TransactionDraft) -> None:
        """
        Check a draft without writing it.

        Raises:
            NotFoundError: the owning account does not exist
            InvalidPostingError: the draft is structurally invalid
            ImbalancedTransactionError: debits and credits differ beyond tolerance
        """
        self.get_account(draft.account_id)

        if len(draft.postings) < 2:
            raise InvalidPostingError("A transaction needs at least two postings")

        for line_no, posting in enumerate(draft.postings, start=1):
            self._validate_posting(line_no, posting)

        debits = sum(
            (p.amount for p in draft.postings if p.side == PostingSide.DEBIT),
            Decimal("0"),
        )
        credits = sum(
            (p.amount for p in draft.postings if p.side == PostingSide.CREDIT),
            Decimal("0"),
        )
        tolerance = self._rounding_epsilon if draft.allow_rounding else Decimal("0")
        if abs(debits - credits) > tolerance:
            raise ImbalancedTransactionError(debits, credits, tolerance)

    def append(self, draft: TransactionDraft) -> Transaction:
        """
        Validate and persist a transaction.

        The sequence is assigned under the account's write lock.
        Rejected drafts are never stored.
        """
        try:
            self.validate(draft)
        except (InvalidPostingError, ImbalancedTransactionError) as e:
            logger.warning("Rejected transaction for account %s: %s", draft.account_id, e.message)
            raise

        with self._locks.for_account(draft.account_id):
            sequence = self._journal_repo.max_sequence(draft.account_id) + 1
            transaction = self._build_transaction(draft, sequence)
            created = self._journal_repo.add(transaction)

        logger.debug(
            "Appended %s %s to account %s (seq %d, %d postings)",
            created.txn_type.value,
            created.txn_id,
            created.account_id,
            created.sequence,
            len(created.postings),
        )
        return created

    def append_many(self, drafts: Iterable[TransactionDraft]) -> list[Transaction]:
        """Append drafts in order; the first failure stops, earlier ones stay committed."""
        return [self.append(draft) for draft in drafts]

    def reverse(
        self,
        txn_id: str,
        on: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Transaction:
        """
        Append a transaction carrying the inverse of every posting of ``txn_id``.

        The original stays in the journal; a transaction can be reversed once.
        """
        original = self.get_transaction(txn_id)
        if self._journal_repo.find_reversal(txn_id):
            raise ValidationError(f"Transaction already reversed: {txn_id}")

        draft = TransactionDraft(
            account_id=original.account_id,
            txn_date=on or original.txn_date,
            description=description or f"Reversal of {original.description or txn_id}",
            txn_type=TransactionType.REVERSAL,
            category=original.category,
            reverses_txn_id=original.txn_id,
            postings=[
                PostingDraft(
                    account_type=p.account_type,
                    ledger_account=p.ledger_account,
                    side=p.side.opposite,
                    amount=p.amount,
                    quantity=p.quantity,
                    quantity_unit=p.quantity_unit,
                    category=p.category,
                )
                for p in original.postings
            ],
        )
        reversal = self.append(draft)
        logger.info("Reversed transaction %s with %s", txn_id, reversal.txn_id)
        return reversal

    def remove_batch(self, batch_id: str) -> int:
        """
        Remove every transaction created by one import batch, atomically.

        Returns:
            Number of transactions removed
        """
        transactions = self._journal_repo.list_batch(batch_id)
        if not transactions:
            raise NotFoundError("Batch", batch_id)

        account_ids = sorted({t.account_id for t in transactions})
        locks = [self._locks.for_account(a) for a in account_ids]
        for lock in locks:
            lock.acquire()
        try:
            removed = self._journal_repo.delete_batch(batch_id)
        finally:
            for lock in reversed(locks):
                lock.release()

        logger.info("Removed batch %s (%d transactions)", batch_id, removed)
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_transaction(self, txn_id: str) -> Transaction:
        """Get transaction by ID."""
        transaction = self._journal_repo.get_by_id(txn_id)
        if not transaction:
            raise NotFoundError("Transaction", txn_id)
        return transaction

    def transactions_for(
        self,
        account_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Transaction]:
        """Transactions of an account in a date range, in (date, sequence) order."""
        return self._journal_repo.list_by_account(account_id, start=start, end=end)

    def batch(self, batch_id: str) -> list[Transaction]:
        """Transactions created by one import batch."""
        return self._journal_repo.list_batch(batch_id)

    def postings_for(
        self,
        account_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Iterator[Posting]:
        """Lazily yield an account's postings in (date, sequence, line) order."""
        yield from self._journal_repo.iter_postings([account_id], start=start, end=end)

    def postings_for_accounts(
        self,
        account_ids: list[str],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Iterator[Posting]:
        """Lazily yield postings of several accounts ordered by date."""
        yield from self._journal_repo.iter_postings(account_ids, start=start, end=end)

    def all_account_ids(self) -> list[str]:
        return self._account_repo.list_ids()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_posting(self, line_no: int, posting: PostingDraft) -> None:
        if not posting.ledger_account or not posting.ledger_account.strip():
            raise InvalidPostingError(f"Posting {line_no}: ledger account is required")
        if posting.amount <= Decimal("0"):
            raise InvalidPostingError(f"Posting {line_no}: amount must be positive")
        if not _fits_scale(posting.amount, AMOUNT_SCALE):
            raise InvalidPostingError(
                f"Posting {line_no}: amount {posting.amount} has more than {AMOUNT_SCALE} decimal places"
            )
        if posting.quantity is not None and not _fits_scale(posting.quantity, QUANTITY_SCALE):
            raise InvalidPostingError(
                f"Posting {line_no}: quantity {posting.quantity} has more than {QUANTITY_SCALE} decimal places"
            )
        if posting.account_type == AccountType.ASSET and not posting.quantity:
            raise InvalidPostingError(
                f"Posting {line_no}: asset posting for {posting.ledger_account} requires a quantity"
            )

    def _build_transaction(self, draft: TransactionDraft, sequence: int) -> Transaction:
        txn_id = str(uuid.uuid4())
        postings = [
            Posting(
                posting_id=str(uuid.uuid4()),
                txn_id=txn_id,
                account_id=draft.account_id,
                account_type=p.account_type,
                ledger_account=normalize_ledger_account(p.account_type, p.ledger_account),
                side=p.side,
                amount=p.amount,
                txn_date=draft.txn_date,
                sequence=sequence,
                line_no=line_no,
                txn_type=draft.txn_type,
                quantity=p.quantity,
                quantity_unit=p.quantity_unit or ("shares" if p.account_type == AccountType.ASSET else None),
                category=p.category or draft.category,
            )
            for line_no, p in enumerate(draft.postings, start=1)
        ]
        return Transaction(
            txn_id=txn_id,
            account_id=draft.account_id,
            txn_date=draft.txn_date,
            sequence=sequence,
            description=draft.description,
            txn_type=draft.txn_type,
            postings=postings,
            category=draft.category,
            batch_id=draft.batch_id,
            reverses_txn_id=draft.reverses_txn_id,
            created_at_est=now_eastern(),
        )


def normalize_ledger_account(account_type: AccountType, ledger_account: str) -> str:
    """Asset ledger accounts are symbols and are upper-cased; others are trimmed."""
    ledger_account = ledger_account.strip()
    if account_type == AccountType.ASSET:
        return ledger_account.upper()
    return ledger_account


def _fits_scale(value: Decimal, places: int) -> bool:
    return value == value.quantize(Decimal(1).scaleb(-places))
