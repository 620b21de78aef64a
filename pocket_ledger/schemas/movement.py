"""
Pydantic schemas for Movement endpoints.

Amounts are accepted as JSON numbers or strings and returned as strings
with six fractional digits. Dates use ISO-8601 (YYYY-MM-DD).
"""

import uuid
from datetime import date, datetime

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from pocket_ledger.domain.movement import MovementType
from pocket_ledger.schemas.common import Money


class MovementCreateRequest(BaseModel):
    """Request body for POST /movements."""
    type: MovementType
    account_id: uuid.UUID
    pocket_id: uuid.UUID
    amount: Decimal = Field(gt=0, description="Positive amount, up to 6 decimal places")
    displayed_date: date
    notes: str | None = Field(None, max_length=500)
    sub_pocket_id: uuid.UUID | None = None
    is_pending: bool = False


class MovementUpdateRequest(BaseModel):
    """
    Request body for PATCH /movements/{id}.

    Omitted fields are unchanged. `sub_pocket_id: null` detaches the
    movement from its sub-pocket; omitting it keeps the current one.
    """
    type: MovementType | None = None
    amount: Decimal | None = Field(None, gt=0)
    displayed_date: date | None = None
    notes: str | None = Field(None, max_length=500)
    sub_pocket_id: uuid.UUID | None = None
    account_id: uuid.UUID | None = None
    pocket_id: uuid.UUID | None = None


class MovementResponse(BaseModel):
    """Serializable view of a movement."""
    id: uuid.UUID
    type: MovementType
    account_id: uuid.UUID | None
    pocket_id: uuid.UUID | None
    amount: Money
    displayed_date: date
    notes: str | None
    sub_pocket_id: uuid.UUID | None
    is_pending: bool
    is_orphaned: bool
    orphaned_account_name: str | None
    orphaned_account_currency: str | None
    orphaned_pocket_name: str | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class UnmatchedGroupResponse(BaseModel):
    """
    Orphans left in place by a restore.

    `reason` is "missing_parent" when the account or pocket has not been
    recreated yet, "fixed_pocket" when the pocket name now belongs to a
    fixed pocket (restore cannot pick a sub-pocket).
    """
    account_name: str
    account_currency: str
    pocket_name: str
    movements: int
    reason: str

    model_config = {"from_attributes": True}


class RestoreReportResponse(BaseModel):
    restored: int
    failed: int
    unmatched: list[UnmatchedGroupResponse]

    model_config = {"from_attributes": True}


class MonthlySummaryResponse(BaseModel):
    year: int
    month: int
    income: Money
    expense: Money
    net: Money
    movement_count: int


class TransferRequest(BaseModel):
    """Request body for POST /movements/transfers."""
    source_pocket_id: uuid.UUID
    target_pocket_id: uuid.UUID
    amount: Decimal = Field(gt=0)
    displayed_date: date
    notes: str | None = Field(None, max_length=400)

    @model_validator(mode="after")
    def pockets_must_differ(self):
        """Cannot transfer money to the same pocket."""
        if self.source_pocket_id == self.target_pocket_id:
            raise ValueError("Source and target pockets must be different")
        return self


class TransferResponse(BaseModel):
    expense: MovementResponse
    income: MovementResponse
    amount: Money
