"""Pydantic schemas for account endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AccountCreateRequest(BaseModel):
    """Request body for opening an owning account (brokerage, checking, card)."""

    name: str = Field(..., max_length=255, description="Unique account name")
    institution: Optional[str] = Field(default=None, max_length=255, examples=["Fidelity"])

    @field_validator("institution")
    @classmethod
    def blank_institution(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class AccountResponse(BaseModel):
    model_config = {"from_attributes": True}

    account_id: str
    name: str
    institution: Optional[str] = None
    created_at_est: datetime


class AccountListResponse(BaseModel):
    accounts: list[AccountResponse]
    count: int
