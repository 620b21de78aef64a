"""
Movements router — movement CRUD, lifecycle transitions and reads.

    POST   /movements                           — Create
    GET    /movements                           — List (optional filters)
    GET    /movements/pending                   — Pending only
    GET    /movements/orphaned                  — Orphaned only
    POST   /movements/orphaned/restore          — Reattach orphans to recreated parents
    GET    /movements/by-account/{account_id}   — Movements of an account
    GET    /movements/by-pocket/{pocket_id}     — Movements of a pocket
    GET    /movements/by-month?year=&month=     — Movements of a month
    GET    /movements/summary?year=&month=      — Income / expense / net of a month
    POST   /movements/transfers                 — Expense + income pair between pockets
    GET    /movements/{movement_id}             — Get one
    PATCH  /movements/{movement_id}             — Partial update
    DELETE /movements/{movement_id}             — Delete
    POST   /movements/{movement_id}/mark-pending
    POST   /movements/{movement_id}/apply-pending

The fixed paths are declared before /{movement_id} so they are never
parsed as a movement id.
"""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.database import get_db
from pocket_ledger.dependencies import get_current_user
from pocket_ledger.domain.movement import UNSET
from pocket_ledger.models.user import User
from pocket_ledger.repositories.base import MovementFilters
from pocket_ledger.schemas.movement import (
    MonthlySummaryResponse,
    MovementCreateRequest,
    MovementResponse,
    MovementUpdateRequest,
    RestoreReportResponse,
    TransferRequest,
    TransferResponse,
)
from pocket_ledger.services import movement_service

router = APIRouter()


@router.post(
    "",
    response_model=MovementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a movement",
)
async def create_movement(
    request: MovementCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Record an income or expense.

    - **account_id** / **pocket_id**: the pocket must belong to the account
    - **sub_pocket_id**: required for a fixed pocket, rejected for a normal one
    - **is_pending**: pending movements don't count toward balances until applied
    """
    return await movement_service.create_movement(
        db=db,
        user_id=user.id,
        type=request.type,
        account_id=request.account_id,
        pocket_id=request.pocket_id,
        amount=request.amount,
        displayed_date=request.displayed_date,
        notes=request.notes,
        sub_pocket_id=request.sub_pocket_id,
        is_pending=request.is_pending,
    )


@router.get(
    "",
    response_model=list[MovementResponse],
    summary="List movements",
)
async def list_movements(
    account_id: uuid.UUID | None = None,
    pocket_id: uuid.UUID | None = None,
    sub_pocket_id: uuid.UUID | None = None,
    is_pending: bool | None = None,
    is_orphaned: bool | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    filters = MovementFilters(
        account_id=account_id,
        pocket_id=pocket_id,
        sub_pocket_id=sub_pocket_id,
        is_pending=is_pending,
        is_orphaned=is_orphaned,
        start_date=start_date,
        end_date=end_date,
    )
    return await movement_service.list_movements(db, user.id, filters)


@router.get(
    "/pending",
    response_model=list[MovementResponse],
    summary="List pending movements",
)
async def list_pending(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await movement_service.get_pending_movements(db, user.id)


@router.get(
    "/orphaned",
    response_model=list[MovementResponse],
    summary="List orphaned movements",
)
async def list_orphaned(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await movement_service.get_orphaned_movements(db, user.id)


@router.post(
    "/orphaned/restore",
    response_model=RestoreReportResponse,
    summary="Restore orphaned movements",
)
async def restore_orphaned(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Reattach orphaned movements to live accounts/pockets with the same
    names (and account currency) as the deleted ones. Groups with no
    matching parent are listed under `unmatched`; create the parent and
    call this again. Groups whose pocket is now a fixed pocket stay
    orphaned too (`reason: fixed_pocket`).
    """
    return await movement_service.restore_orphaned(db, user.id)


@router.get(
    "/by-account/{account_id}",
    response_model=list[MovementResponse],
    summary="Movements of an account",
)
async def list_by_account(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await movement_service.get_movements_by_account(db, user.id, account_id)


@router.get(
    "/by-pocket/{pocket_id}",
    response_model=list[MovementResponse],
    summary="Movements of a pocket",
)
async def list_by_pocket(
    pocket_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await movement_service.get_movements_by_pocket(db, user.id, pocket_id)


@router.get(
    "/by-month",
    response_model=list[MovementResponse],
    summary="Movements of a month",
)
async def list_by_month(
    year: int,
    month: int,
    account_id: uuid.UUID | None = None,
    pocket_id: uuid.UUID | None = None,
    is_pending: bool | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await movement_service.get_movements_by_month(
        db,
        user.id,
        year,
        month,
        account_id=account_id,
        pocket_id=pocket_id,
        is_pending=is_pending,
    )


@router.get(
    "/summary",
    response_model=MonthlySummaryResponse,
    summary="Monthly income and expense totals",
)
async def monthly_summary(
    year: int,
    month: int,
    account_id: uuid.UUID | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Pending and orphaned movements are left out of the totals."""
    summary = await movement_service.get_monthly_summary(
        db, user.id, year, month, account_id=account_id
    )
    return MonthlySummaryResponse(
        year=year,
        month=month,
        income=summary.income,
        expense=summary.expense,
        net=summary.net,
        movement_count=summary.movement_count,
    )


@router.post(
    "/transfers",
    response_model=TransferResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer between pockets",
)
async def create_transfer(
    request: TransferRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Record a transfer as a normal expense in the source pocket and a
    normal income in the target pocket, same amount and date.
    """
    transfer = await movement_service.create_transfer(
        db=db,
        user_id=user.id,
        source_pocket_id=request.source_pocket_id,
        target_pocket_id=request.target_pocket_id,
        amount=request.amount,
        displayed_date=request.displayed_date,
        notes=request.notes,
    )
    return TransferResponse(
        expense=MovementResponse.model_validate(transfer.expense),
        income=MovementResponse.model_validate(transfer.income),
        amount=request.amount,
    )


@router.get(
    "/{movement_id}",
    response_model=MovementResponse,
    summary="Get a movement",
)
async def get_movement(
    movement_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await movement_service.get_movement(db, user.id, movement_id)


@router.patch(
    "/{movement_id}",
    response_model=MovementResponse,
    summary="Update a movement",
)
async def update_movement(
    movement_id: uuid.UUID,
    request: MovementUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Partial update. Balances are recalculated only when a field that
    feeds them changed (amount, type or any parent reference); a
    notes-only edit leaves them alone.
    """
    sub_pocket_id = (
        request.sub_pocket_id if "sub_pocket_id" in request.model_fields_set else UNSET
    )
    return await movement_service.update_movement(
        db,
        user.id,
        movement_id,
        type=request.type,
        amount=request.amount,
        displayed_date=request.displayed_date,
        notes=request.notes,
        sub_pocket_id=sub_pocket_id,
        account_id=request.account_id,
        pocket_id=request.pocket_id,
    )


@router.delete(
    "/{movement_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a movement",
)
async def delete_movement(
    movement_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Deleting a movement also un-pays any reminder it was linked to."""
    await movement_service.delete_movement(db, user.id, movement_id)


@router.post(
    "/{movement_id}/mark-pending",
    response_model=MovementResponse,
    summary="Mark a movement as pending",
)
async def mark_pending(
    movement_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await movement_service.mark_as_pending(db, user.id, movement_id)


@router.post(
    "/{movement_id}/apply-pending",
    response_model=MovementResponse,
    summary="Apply a pending movement",
)
async def apply_pending(
    movement_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await movement_service.apply_pending(db, user.id, movement_id)
