"""Account repository protocol."""

from typing import Protocol, Optional

from cascade_ledger.domain.models import Account


class AccountRepository(Protocol):
    """
    Storage for owning accounts.

    Account names are unique; ``create`` raises ``ValidationError`` when a
    concurrent writer took the name first.
    """

    def create(self, account: Account) -> Account:
        ...

    def get_by_id(self, account_id: str) -> Optional[Account]:
        ...

    def get_by_name(self, name: str) -> Optional[Account]:
        ...

    def list_all(self) -> list[Account]:
        """Accounts ordered by name."""
        ...

    def list_ids(self) -> list[str]:
        """IDs of every account, the scope of an unfiltered query."""
        ...
