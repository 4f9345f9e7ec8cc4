"""Journal endpoints: append, reverse, list postings, remove batches."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from cascade_ledger.api.deps import get_journal_store
from cascade_ledger.api.schemas import (
    TransactionCreateRequest,
    TransactionResponse,
    ReverseRequest,
    PostingResponse,
    PostingListResponse,
    BatchRemovalResponse,
)
from cascade_ledger.services import JournalStore

router = APIRouter(prefix="/journal", tags=["journal"])


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def append_transaction(
    data: TransactionCreateRequest,
    journal: JournalStore = Depends(get_journal_store),
) -> TransactionResponse:
    """Append a balanced transaction."""
    transaction = journal.append(data.to_draft())
    return TransactionResponse.model_validate(transaction)


@router.get("/transactions/{txn_id}", response_model=TransactionResponse)
def get_transaction(
    txn_id: str,
    journal: JournalStore = Depends(get_journal_store),
) -> TransactionResponse:
    """Get transaction by ID."""
    return TransactionResponse.model_validate(journal.get_transaction(txn_id))


@router.post("/transactions/{txn_id}/reverse", response_model=TransactionResponse, status_code=201)
def reverse_transaction(
    txn_id: str,
    data: Optional[ReverseRequest] = None,
    journal: JournalStore = Depends(get_journal_store),
) -> TransactionResponse:
    """Append the inverse of a transaction."""
    data = data or ReverseRequest()
    reversal = journal.reverse(txn_id, on=data.on, description=data.description)
    return TransactionResponse.model_validate(reversal)


@router.get("/postings", response_model=PostingListResponse)
def list_postings(
    account_id: str = Query(..., description="Owning account ID"),
    start: Optional[date] = Query(None, description="First date (inclusive)"),
    end: Optional[date] = Query(None, description="Last date (inclusive)"),
    journal: JournalStore = Depends(get_journal_store),
) -> PostingListResponse:
    """Postings of an account in (date, sequence, line) order."""
    journal.get_account(account_id)
    postings = [
        PostingResponse.model_validate(p)
        for p in journal.postings_for(account_id, start=start, end=end)
    ]
    return PostingListResponse(postings=postings, count=len(postings))


@router.delete("/batches/{batch_id}", response_model=BatchRemovalResponse)
def remove_batch(
    batch_id: str,
    journal: JournalStore = Depends(get_journal_store),
) -> BatchRemovalResponse:
    """Remove every transaction of an import batch."""
    removed = journal.remove_batch(batch_id)
    return BatchRemovalResponse(batch_id=batch_id, removed=removed)
