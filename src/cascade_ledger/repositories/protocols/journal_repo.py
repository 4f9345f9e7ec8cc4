"""Journal repository protocol."""

from datetime import date
from typing import Iterator, Protocol, Optional

from cascade_ledger.domain.models import Posting, Transaction


class JournalRepository(Protocol):
    """Interface for append-only journal data access."""

    def add(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction with its postings."""
        ...

    def get_by_id(self, txn_id: str) -> Optional[Transaction]:
        """Retrieve transaction by ID."""
        ...

    def find_reversal(self, txn_id: str) -> Optional[Transaction]:
        """Return the transaction reversing ``txn_id``, if any."""
        ...

    def max_sequence(self, account_id: str) -> int:
        """Highest sequence assigned in the account, 0 when empty."""
        ...

    def list_by_account(
        self,
        account_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Transaction]:
        """List transactions ordered by (txn_date, sequence)."""
        ...

    def iter_postings(
        self,
        account_ids: list[str],
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Iterator[Posting]:
        """Stream postings ordered by (txn_date, sequence, line_no)."""
        ...

    def list_batch(self, batch_id: str) -> list[Transaction]:
        """List transactions created by one import batch."""
        ...

    def delete_batch(self, batch_id: str) -> int:
        """Remove every transaction of a batch in one unit of work."""
        ...
