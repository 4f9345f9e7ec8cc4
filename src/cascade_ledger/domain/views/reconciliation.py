"""View model for reconciliation session results."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from cascade_ledger.domain.models import (
    Checkpoint,
    Discrepancy,
    FixOutcome,
    ReconciliationOutcome,
)


@dataclass
class ReconciliationReport:
    """Summary of one reconciliation session."""

    session_id: str
    account_id: str
    outcome: ReconciliationOutcome
    iterations: int = 0
    checkpoints_built: int = 0
    discrepancies_found: int = 0
    discrepancies_resolved: int = 0
    fixes_applied: int = 0
    fixes_rejected: int = 0
    initial_max_discrepancy: Decimal = field(default_factory=lambda: Decimal("0"))
    final_max_discrepancy: Decimal = field(default_factory=lambda: Decimal("0"))
    fully_reconciled: bool = False
    checkpoints: list[Checkpoint] = field(default_factory=list)
    discrepancies: list[Discrepancy] = field(default_factory=list)
    fix_outcomes: list[FixOutcome] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def open_discrepancies(self) -> list[Discrepancy]:
        """Latest observation of each discrepancy that is still unresolved."""
        latest: dict[tuple, Discrepancy] = {}
        for d in self.discrepancies:
            latest[d.key] = d
        return [d for d in latest.values() if not d.is_resolved]
