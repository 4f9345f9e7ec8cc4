"""Built-in fix provider for missing opening balances."""

from datetime import date, timedelta
from decimal import Decimal

from cascade_ledger.domain.models import (
    AccountType,
    PostingDraft,
    PostingSide,
    ProposedFix,
    TransactionDraft,
    TransactionType,
    signed_effect,
)
from cascade_ledger.providers.fix_provider import InvestigationContext


class OpeningBalanceFixProvider:
    """
    Explains a mismatch at the first statement date as a missing opening balance.

    The proposal books the delta against an equity account the day before
    the earliest posting, so every later balance shifts by the same
    amount. Mismatches after the first statement date get a low-confidence
    adjustment on the statement date, which is below the auto-apply
    threshold and only surfaces in the report.
    """

    def __init__(
        self,
        equity_account: str = "Opening Balance Equity",
        confidence: Decimal = Decimal("0.97"),
        adjustment_confidence: Decimal = Decimal("0.50"),
    ):
        self._equity_account = equity_account
        self._confidence = confidence
        self._adjustment_confidence = adjustment_confidence

    def propose(self, context: InvestigationContext) -> list[ProposedFix]:
        discrepancy = context.discrepancy
        delta = discrepancy.delta
        if delta == Decimal("0") or discrepancy.account_type == AccountType.ASSET:
            return []

        if context.is_first_checkpoint:
            txn_date = discrepancy.as_of
            if context.first_posting_date and context.first_posting_date <= discrepancy.as_of:
                txn_date = context.first_posting_date - timedelta(days=1)
            return [
                ProposedFix(
                    description=f"Opening balance of {delta} for {discrepancy.ledger_account}",
                    confidence=self._confidence,
                    reasoning=(
                        "First statement balance differs from the reconstructed balance; "
                        "history before the first imported transaction is missing."
                    ),
                    assumptions=["Statement balance is authoritative"],
                    transactions=[
                        self._draft(context, txn_date, TransactionType.OPENING_BALANCE, "Opening balance")
                    ],
                )
            ]

        return [
            ProposedFix(
                description=f"Balance adjustment of {delta} for {discrepancy.ledger_account}",
                confidence=self._adjustment_confidence,
                reasoning="No matching pattern; an unexplained adjustment needs review.",
                transactions=[
                    self._draft(context, discrepancy.as_of, TransactionType.ADJUSTMENT, "Balance adjustment")
                ],
            )
        ]

    def _draft(
        self,
        context: InvestigationContext,
        txn_date: date,
        txn_type: TransactionType,
        description: str,
    ) -> TransactionDraft:
        discrepancy = context.discrepancy
        delta = discrepancy.delta
        # Side that moves the reconciled ledger account by +delta
        debit_sign = signed_effect(discrepancy.account_type, PostingSide.DEBIT)
        side = PostingSide.DEBIT if debit_sign * delta > 0 else PostingSide.CREDIT
        return TransactionDraft(
            account_id=discrepancy.account_id,
            txn_date=txn_date,
            description=description,
            txn_type=txn_type,
            batch_id=context.batch_id,
            postings=[
                PostingDraft(
                    account_type=discrepancy.account_type,
                    ledger_account=discrepancy.ledger_account,
                    side=side,
                    amount=abs(delta),
                ),
                PostingDraft(
                    account_type=AccountType.EQUITY,
                    ledger_account=self._equity_account,
                    side=side.opposite,
                    amount=abs(delta),
                ),
            ],
        )
