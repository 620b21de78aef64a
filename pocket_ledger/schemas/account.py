"""
Pydantic schemas for Account endpoints.

These schemas define the API contract for account creation, retrieval,
balance checking, cascade deletion and the recalculation sweep.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from pocket_ledger.domain.currency import Currency
from pocket_ledger.schemas.common import Money


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts."""
    name: str = Field(min_length=1, max_length=100)
    currency: Currency = Field(default="USD", description="ISO 4217 currency code")


class AccountUpdateRequest(BaseModel):
    """Request body for PATCH /accounts/{id}."""
    name: str = Field(min_length=1, max_length=100)


class AccountResponse(BaseModel):
    """Public representation of an account."""
    id: uuid.UUID
    name: str
    currency: str
    balance: Money
    created_at: datetime

    model_config = {"from_attributes": True}


class BalanceResponse(BaseModel):
    """
    Balance check response — includes both cached and computed values.

    `match` is false when the cached balance has drifted from the
    movement log; POST /accounts/recalculate-balances repairs it.
    """
    account_id: uuid.UUID
    cached_balance: Money
    computed_balance: Money
    match: bool


class AccountDeleteResponse(BaseModel):
    """What a cascade delete removed (or orphaned)."""
    account: int
    pockets: int
    sub_pockets: int
    movements: int
    movements_deleted: bool


class RecalculationResponse(BaseModel):
    """Entities rewritten by the full recalculation sweep."""
    sub_pockets: int
    pockets: int
    accounts: int
    skipped: int
