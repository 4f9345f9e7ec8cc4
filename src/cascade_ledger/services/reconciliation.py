"""Reconciliation of computed balances against statement balances."""

import logging
import re
import uuid
from collections import defaultdict
from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from cascade_ledger.core.cancellation import CancellationToken
from cascade_ledger.core.timezone import now_eastern
from cascade_ledger.core.exceptions import (
    ImbalancedTransactionError,
    InvalidPostingError,
    NotFoundError,
    ValidationError,
)
from cascade_ledger.domain.models import (
    AccountType,
    AssertedBalance,
    Checkpoint,
    CheckpointStatus,
    Discrepancy,
    DiscrepancySeverity,
    DiscrepancyType,
    FixOutcome,
    InvestigationDepth,
    ProposedFix,
    ReconciliationOutcome,
)
from cascade_ledger.domain.views import ReconciliationReport
from cascade_ledger.providers.fix_provider import FixProvider, InvestigationContext
from cascade_ledger.services.journal_store import JournalStore, normalize_ledger_account
from cascade_ledger.services.timeline_builder import TimelineBuilder

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def parse_statement_balance(value: str) -> Decimal:
    """
    Parse a statement balance such as ``"$1,234.50"``, ``"(12.00)"`` or ``"-5"``.

    Raises:
        ValidationError: the text is not a number
    """
    text = (value or "").strip()
    negative = text.startswith("(") and text.endswith(")")
    cleaned = re.sub(r"[,$\s()]", "", text)
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValidationError(f"Not a balance: {value!r}")
    return -amount if negative else amount


class ReconciliationEngine:
    """
    Pairs reconstructed balances with statement balances and drives them together.

    Each iteration builds checkpoints from the current journal, records a
    discrepancy for every checkpoint outside tolerance, and asks the fix
    provider for corrective transactions, most severe first. A proposal is
    applied only when its confidence reaches the threshold, it passes
    journal validation, and it strictly shrinks the delta of the checkpoint
    it addresses. Applied fixes are appended as new transactions tagged
    with the session id as their batch.

    The loop stops when nothing is left to fix, when an iteration applies
    no fix, when the iteration cap is reached, or when the cancellation
    token is set. Cancellation is only observed between iterations.
    """

    def __init__(
        self,
        journal_store: JournalStore,
        fix_provider: Optional[FixProvider] = None,
        timeline_builder: Optional[TimelineBuilder] = None,
        tolerance: Decimal = Decimal("0.01"),
        min_fix_confidence: Decimal = Decimal("0.95"),
        severity_thresholds: tuple[Decimal, Decimal, Decimal] = (
            Decimal("10"),
            Decimal("5"),
            Decimal("1"),
        ),
        max_iterations: int = 3,
        investigation_depth: InvestigationDepth = InvestigationDepth.BALANCED,
    ):
        self._journal = journal_store
        self._fix_provider = fix_provider
        self._builder = timeline_builder or TimelineBuilder()
        self._tolerance = tolerance
        self._min_fix_confidence = min_fix_confidence
        self._severity_thresholds = severity_thresholds
        self._max_iterations = max_iterations
        self._depth = InvestigationDepth(investigation_depth)

    # ------------------------------------------------------------------
    # Checkpoints and classification
    # ------------------------------------------------------------------

    def build_checkpoints(
        self,
        account_id: str,
        asserted: Iterable[AssertedBalance],
    ) -> list[Checkpoint]:
        """Pair every asserted balance with the reconstructed balance on its date."""
        balances = self._normalize_asserted(account_id, asserted)
        if not balances:
            return []

        end = max(b.as_of for b in balances)
        arena = self._builder.build(self._journal.postings_for(account_id, end=end))

        checkpoints = []
        for balance in balances:
            computed = arena.value_as_of(
                account_id, balance.ledger_account, balance.as_of, balance.account_type
            )
            checkpoint = Checkpoint(
                account_id=account_id,
                ledger_account=balance.ledger_account,
                account_type=balance.account_type,
                as_of=balance.as_of,
                computed=computed,
                asserted=balance.balance,
                row_number=balance.row_number,
            )
            checkpoints.append(checkpoint.evaluate(self._tolerance))
        return checkpoints

    def classify_severity(self, delta: Decimal, scale: Decimal) -> DiscrepancySeverity:
        """
        Severity of ``delta`` relative to the account's scale.

        Thresholds are inclusive percentages of ``scale``; a zero scale
        makes any discrepancy critical.
        """
        if scale <= ZERO:
            return DiscrepancySeverity.CRITICAL
        critical, high, medium = self._severity_thresholds
        relative = abs(delta) / scale * HUNDRED
        if relative >= critical:
            return DiscrepancySeverity.CRITICAL
        if relative >= high:
            return DiscrepancySeverity.HIGH
        if relative >= medium:
            return DiscrepancySeverity.MEDIUM
        return DiscrepancySeverity.LOW

    def find_discrepancies(
        self,
        checkpoints: list[Checkpoint],
        iteration: int = 1,
    ) -> list[Discrepancy]:
        """One discrepancy per checkpoint outside tolerance."""
        scales: dict[str, Decimal] = defaultdict(lambda: ZERO)
        first_dates: dict[str, date] = {}
        for cp in checkpoints:
            scales[cp.ledger_account] = max(scales[cp.ledger_account], abs(cp.asserted))
            if cp.ledger_account not in first_dates or cp.as_of < first_dates[cp.ledger_account]:
                first_dates[cp.ledger_account] = cp.as_of

        discrepancies = []
        for cp in checkpoints:
            if cp.status != CheckpointStatus.DISCREPANT:
                continue

            row = f"row {cp.row_number}" if cp.row_number is not None else "statement"
            evidence = (
                f"{row}: asserted {cp.asserted}, computed {cp.computed} "
                f"for {cp.ledger_account} on {cp.as_of.isoformat()}"
            )
            if cp.as_of == first_dates[cp.ledger_account] and cp.computed < ZERO:
                discrepancy_type = DiscrepancyType.MISSING_TRANSACTION
                severity = DiscrepancySeverity.CRITICAL
                summary = "Negative balance at first statement date; funding history is missing"
            else:
                discrepancy_type = DiscrepancyType.BALANCE_MISMATCH
                severity = self.classify_severity(cp.delta, scales[cp.ledger_account])
                summary = f"Balance off by {cp.delta}"

            discrepancies.append(
                Discrepancy(
                    discrepancy_id=str(uuid.uuid4()),
                    account_id=cp.account_id,
                    ledger_account=cp.ledger_account,
                    account_type=cp.account_type,
                    as_of=cp.as_of,
                    discrepancy_type=discrepancy_type,
                    severity=severity,
                    summary=summary,
                    evidence=evidence,
                    expected=cp.asserted,
                    actual=cp.computed,
                    iteration=iteration,
                    row_number=cp.row_number,
                )
            )
        return discrepancies

    # ------------------------------------------------------------------
    # Session loop
    # ------------------------------------------------------------------

    def reconcile(
        self,
        account_id: str,
        asserted: Iterable[AssertedBalance],
        max_iterations: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ReconciliationReport:
        """Run a bounded reconciliation session for one account."""
        self._journal.get_account(account_id)
        balances = self._normalize_asserted(account_id, asserted)
        limit = self._max_iterations if max_iterations is None else max_iterations
        if limit < 1:
            raise ValidationError(f"max_iterations must be at least 1, got {limit}")

        report = ReconciliationReport(
            session_id=str(uuid.uuid4()),
            account_id=account_id,
            outcome=ReconciliationOutcome.ITERATION_LIMIT_REACHED,
            started_at=now_eastern(),
        )
        logger.info(
            "Reconciliation %s started for account %s (%d asserted balances)",
            report.session_id,
            account_id,
            len(balances),
        )

        found_keys: set[tuple[str, date]] = set()
        for iteration in range(1, limit + 1):
            if cancel_token is not None and cancel_token.is_cancelled:
                report.outcome = ReconciliationOutcome.CANCELLED
                logger.info("Reconciliation %s cancelled before iteration %d", report.session_id, iteration)
                break

            report.iterations = iteration
            checkpoints = self.build_checkpoints(account_id, balances)
            if iteration == 1:
                report.initial_max_discrepancy = _max_abs_delta(checkpoints)

            discrepancies = self.find_discrepancies(checkpoints, iteration)
            report.discrepancies.extend(discrepancies)
            found_keys.update(d.key for d in discrepancies)
            if not discrepancies:
                report.outcome = ReconciliationOutcome.RECONCILED
                break

            applied = self._resolve(discrepancies, balances, report)
            logger.debug(
                "Reconciliation %s iteration %d: %d discrepancies, %d fixes applied",
                report.session_id,
                iteration,
                len(discrepancies),
                applied,
            )
            if applied == 0:
                report.outcome = ReconciliationOutcome.NO_PROGRESS
                break

        final = self.build_checkpoints(account_id, balances)
        report.checkpoints = [
            cp.with_status(CheckpointStatus.RESOLVED)
            if cp.status == CheckpointStatus.MATCHED and cp.key in found_keys
            else cp
            for cp in final
        ]
        report.checkpoints_built = len(final)
        report.discrepancies_found = len(found_keys)
        report.discrepancies_resolved = sum(
            1 for cp in report.checkpoints if cp.status == CheckpointStatus.RESOLVED
        )
        report.final_max_discrepancy = _max_abs_delta(final)
        report.fully_reconciled = all(abs(cp.delta) <= self._tolerance for cp in final)
        if report.fully_reconciled and report.outcome != ReconciliationOutcome.CANCELLED:
            report.outcome = ReconciliationOutcome.RECONCILED
        report.completed_at = now_eastern()

        logger.info(
            "Reconciliation %s finished: %s after %d iteration(s), %d fix(es) applied, max delta %s",
            report.session_id,
            report.outcome.value,
            report.iterations,
            report.fixes_applied,
            report.final_max_discrepancy,
        )
        return report

    def _resolve(
        self,
        discrepancies: list[Discrepancy],
        balances: list[AssertedBalance],
        report: ReconciliationReport,
    ) -> int:
        """Try fixes for one iteration's discrepancies; returns fixes applied."""
        applied = 0
        ordered = sorted(discrepancies, key=lambda d: (d.severity.rank, -abs(d.delta), d.as_of))
        for discrepancy in ordered:
            current = self._computed_balance(discrepancy)
            if abs(discrepancy.expected - current) <= self._tolerance:
                # An earlier fix in this iteration already closed it
                report.discrepancies.append(
                    discrepancy.resolve(discrepancy.delta, (), now_eastern())
                )
                continue
            if self._fix_provider is None:
                continue

            observed = replace(discrepancy, actual=current)
            context = self._investigate(observed, balances, report.session_id)
            for fix in self._rank_proposals(observed, self._fix_provider.propose(context), report):
                outcome = self._try_fix(observed, fix, report.session_id)
                report.fix_outcomes.append(outcome)
                if not outcome.applied:
                    report.fixes_rejected += 1
                    logger.info("Rejected fix %r: %s", fix.description, outcome.reason)
                    continue

                applied += 1
                report.fixes_applied += 1
                if abs(outcome.delta_after) <= self._tolerance:
                    report.discrepancies.append(
                        observed.resolve(
                            outcome.delta_before - outcome.delta_after,
                            outcome.txn_ids,
                            now_eastern(),
                        )
                    )
                break
        return applied

    def _rank_proposals(
        self,
        discrepancy: Discrepancy,
        proposals: list[ProposedFix],
        report: ReconciliationReport,
    ) -> list[ProposedFix]:
        """Drop low-confidence proposals (recording them) and order the rest best first."""
        eligible = []
        for fix in proposals:
            if fix.confidence >= self._min_fix_confidence:
                eligible.append(fix)
                continue
            report.fixes_rejected += 1
            report.fix_outcomes.append(
                FixOutcome(
                    discrepancy_id=discrepancy.discrepancy_id,
                    description=fix.description,
                    confidence=fix.confidence,
                    applied=False,
                    delta_before=discrepancy.delta,
                    reason=f"confidence {fix.confidence} below {self._min_fix_confidence}",
                )
            )
        eligible.sort(key=lambda f: f.confidence, reverse=True)
        return eligible

    def _try_fix(self, discrepancy: Discrepancy, fix: ProposedFix, session_id: str) -> FixOutcome:
        """Validate a proposal, simulate its effect and append it if it shrinks the delta."""
        delta = discrepancy.delta
        rejected = FixOutcome(
            discrepancy_id=discrepancy.discrepancy_id,
            description=fix.description,
            confidence=fix.confidence,
            applied=False,
            delta_before=delta,
        )
        if not fix.transactions:
            return replace(rejected, reason="proposal carries no transactions")

        for draft in fix.transactions:
            if draft.account_id != discrepancy.account_id:
                return replace(rejected, reason=f"targets another account: {draft.account_id}")
            try:
                self._journal.validate(draft)
            except (InvalidPostingError, ImbalancedTransactionError, NotFoundError) as e:
                return replace(rejected, reason=e.message)

        effect = sum(
            (
                posting.effect
                for draft in fix.transactions
                if draft.txn_date <= discrepancy.as_of
                for posting in draft.postings
                if posting.account_type == discrepancy.account_type
                and normalize_ledger_account(posting.account_type, posting.ledger_account)
                == discrepancy.ledger_account
            ),
            ZERO,
        )
        delta_after = delta - effect
        if abs(delta_after) >= abs(delta):
            return replace(
                rejected,
                delta_after=delta_after,
                reason=f"does not reduce the discrepancy ({delta} -> {delta_after})",
            )

        created = [
            self._journal.append(replace(draft, batch_id=draft.batch_id or session_id))
            for draft in fix.transactions
        ]
        logger.info(
            "Applied fix %r to %s on %s: delta %s -> %s",
            fix.description,
            discrepancy.ledger_account,
            discrepancy.as_of.isoformat(),
            delta,
            delta_after,
        )
        return replace(
            rejected,
            applied=True,
            delta_after=delta_after,
            txn_ids=tuple(t.txn_id for t in created),
            reason=fix.reasoning,
        )

    def _investigate(
        self,
        discrepancy: Discrepancy,
        balances: list[AssertedBalance],
        session_id: str,
    ) -> InvestigationContext:
        window = timedelta(days=self._depth.window_days)
        start, end = discrepancy.as_of - window, discrepancy.as_of + window

        same_ledger = [
            b for b in balances
            if b.ledger_account == discrepancy.ledger_account
            and b.account_type == discrepancy.account_type
        ]
        ledger_postings = [
            p for p in self._journal.postings_for(discrepancy.account_id)
            if p.ledger_account == discrepancy.ledger_account
            and p.account_type == discrepancy.account_type
        ]
        return InvestigationContext(
            discrepancy=discrepancy,
            computed_balance=discrepancy.actual,
            window_start=start,
            window_end=end,
            nearby_postings=[p for p in ledger_postings if start <= p.txn_date <= end],
            nearby_asserted=[b for b in same_ledger if start <= b.as_of <= end],
            is_first_checkpoint=discrepancy.as_of == min(b.as_of for b in same_ledger),
            first_posting_date=ledger_postings[0].txn_date if ledger_postings else None,
            batch_id=session_id,
        )

    def _computed_balance(self, discrepancy: Discrepancy) -> Decimal:
        return sum(
            (
                p.effect
                for p in self._journal.postings_for(discrepancy.account_id, end=discrepancy.as_of)
                if p.ledger_account == discrepancy.ledger_account
                and p.account_type == discrepancy.account_type
            ),
            ZERO,
        )

    @staticmethod
    def _normalize_asserted(
        account_id: str,
        asserted: Iterable[AssertedBalance],
    ) -> list[AssertedBalance]:
        balances = []
        for balance in asserted:
            if balance.account_id != account_id:
                raise ValidationError(
                    f"Asserted balance for account {balance.account_id} passed to account {account_id}"
                )
            account_type = AccountType(balance.account_type)
            balances.append(
                replace(
                    balance,
                    account_type=account_type,
                    ledger_account=normalize_ledger_account(account_type, balance.ledger_account),
                )
            )
        balances.sort(key=lambda b: (b.ledger_account, b.as_of, b.row_number or 0))
        return balances


def _max_abs_delta(checkpoints: list[Checkpoint]) -> Decimal:
    return max((abs(cp.delta) for cp in checkpoints), default=ZERO)
