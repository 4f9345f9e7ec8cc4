"""Account domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Account:
    """
    Owning account (brokerage, bank, card).

    Every transaction belongs to exactly one account, and the account is
    the scoping key for all reconstruction queries.
    """

    account_id: str
    name: str
    institution: Optional[str] = None
    created_at_est: Optional[datetime] = field(default=None)
