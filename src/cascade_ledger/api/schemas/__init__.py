"""Pydantic schemas for API request/response."""

from cascade_ledger.api.schemas.account import (
    AccountCreateRequest,
    AccountResponse,
    AccountListResponse,
)
from cascade_ledger.api.schemas.journal import (
    PostingRequest,
    TransactionCreateRequest,
    ReverseRequest,
    PostingResponse,
    TransactionResponse,
    PostingListResponse,
    BatchRemovalResponse,
)
from cascade_ledger.api.schemas.price import (
    PricePointRequest,
    PriceRecordRequest,
    PriceRecordResponse,
    ResolvedPriceResponse,
)
from cascade_ledger.api.schemas.analysis import (
    TimelinePointResponse,
    TimelineResponse,
    AggregatePointResponse,
    AggregateResponse,
    AllocationItemResponse,
    AllocationSnapshotResponse,
    AllocationResponse,
    AssetSummaryResponse,
    PortfolioSummaryResponse,
)
from cascade_ledger.api.schemas.reconciliation import (
    AssertedBalanceRequest,
    ReconcileRequest,
    CheckpointResponse,
    DiscrepancyResponse,
    FixOutcomeResponse,
    ReconciliationReportResponse,
)

__all__ = [
    "AccountCreateRequest",
    "AccountResponse",
    "AccountListResponse",
    "PostingRequest",
    "TransactionCreateRequest",
    "ReverseRequest",
    "PostingResponse",
    "TransactionResponse",
    "PostingListResponse",
    "BatchRemovalResponse",
    "PricePointRequest",
    "PriceRecordRequest",
    "PriceRecordResponse",
    "ResolvedPriceResponse",
    "TimelinePointResponse",
    "TimelineResponse",
    "AggregatePointResponse",
    "AggregateResponse",
    "AllocationItemResponse",
    "AllocationSnapshotResponse",
    "AllocationResponse",
    "AssetSummaryResponse",
    "PortfolioSummaryResponse",
    "AssertedBalanceRequest",
    "ReconcileRequest",
    "CheckpointResponse",
    "DiscrepancyResponse",
    "FixOutcomeResponse",
    "ReconciliationReportResponse",
]
