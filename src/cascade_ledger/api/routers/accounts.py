"""Account management endpoints."""

from fastapi import APIRouter, Depends

from cascade_ledger.api.deps import get_journal_store
from cascade_ledger.api.schemas import (
    AccountCreateRequest,
    AccountResponse,
    AccountListResponse,
)
from cascade_ledger.services import JournalStore

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.post("/", response_model=AccountResponse, status_code=201)
def create_account(
    data: AccountCreateRequest,
    journal: JournalStore = Depends(get_journal_store),
) -> AccountResponse:
    """Create a new account."""
    account = journal.create_account(name=data.name, institution=data.institution)
    return AccountResponse.model_validate(account)


@router.get("/", response_model=AccountListResponse)
def list_accounts(
    journal: JournalStore = Depends(get_journal_store),
) -> AccountListResponse:
    """List all accounts."""
    accounts = journal.list_accounts()
    return AccountListResponse(
        accounts=[AccountResponse.model_validate(a) for a in accounts],
        count=len(accounts),
    )


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: str,
    journal: JournalStore = Depends(get_journal_store),
) -> AccountResponse:
    """Get account by ID."""
    return AccountResponse.model_validate(journal.get_account(account_id))
