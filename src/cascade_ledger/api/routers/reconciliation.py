"""Reconciliation endpoint."""

from fastapi import APIRouter, Depends

from cascade_ledger.api.deps import get_reconciliation_engine
from cascade_ledger.api.schemas import ReconcileRequest, ReconciliationReportResponse
from cascade_ledger.domain.models import AssertedBalance
from cascade_ledger.services import ReconciliationEngine, parse_statement_balance

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@router.post("/{account_id}", response_model=ReconciliationReportResponse)
def reconcile_account(
    account_id: str,
    data: ReconcileRequest,
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
) -> ReconciliationReportResponse:
    """Reconcile an account against statement balances, applying confident fixes."""
    asserted = [
        AssertedBalance(
            account_id=account_id,
            ledger_account=b.ledger_account,
            as_of=b.as_of,
            balance=b.balance if b.balance is not None else parse_statement_balance(b.raw_value),
            account_type=b.account_type,
            row_number=b.row_number if b.row_number is not None else i,
            raw_value=b.raw_value,
        )
        for i, b in enumerate(data.balances, start=1)
    ]
    report = engine.reconcile(account_id, asserted, max_iterations=data.max_iterations)
    return ReconciliationReportResponse.model_validate(report)
