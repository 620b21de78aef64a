"""Pydantic schemas for Pocket and SubPocket endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from pocket_ledger.schemas.common import Money


class PocketCreateRequest(BaseModel):
    """Request body for POST /pockets."""
    account_id: uuid.UUID
    name: str = Field(min_length=1, max_length=100)
    kind: Literal["normal", "fixed"] = "normal"


class PocketUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class PocketMigrateRequest(BaseModel):
    """Request body for POST /pockets/{id}/migrate."""
    target_account_id: uuid.UUID


class PocketResponse(BaseModel):
    id: uuid.UUID
    account_id: uuid.UUID
    name: str
    kind: str
    currency: str
    balance: Money
    created_at: datetime

    model_config = {"from_attributes": True}


class PocketDeleteResponse(BaseModel):
    pocket: int
    sub_pockets: int
    movements_orphaned: int


class SubPocketCreateRequest(BaseModel):
    """Request body for POST /sub-pockets."""
    pocket_id: uuid.UUID
    name: str = Field(min_length=1, max_length=100)
    value_total: Decimal = Field(gt=0, description="Cost of the item over one period")
    periodicity_months: int = Field(default=1, ge=1, description="Period length in months")


class SubPocketUpdateRequest(BaseModel):
    """Request body for PATCH /sub-pockets/{id}. Omitted fields are unchanged."""
    name: str | None = Field(None, min_length=1, max_length=100)
    value_total: Decimal | None = Field(None, gt=0)
    periodicity_months: int | None = Field(None, ge=1)
    enabled: bool | None = None


class SubPocketResponse(BaseModel):
    id: uuid.UUID
    pocket_id: uuid.UUID
    name: str
    value_total: Money
    periodicity_months: int
    enabled: bool
    balance: Money
    created_at: datetime

    model_config = {"from_attributes": True}
