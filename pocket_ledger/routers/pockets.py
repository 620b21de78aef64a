"""
Pockets router.

    POST   /pockets                      — Create a pocket in an account
    GET    /pockets?account_id=          — List pockets (optionally of one account)
    GET    /pockets/{pocket_id}          — Get a pocket
    PATCH  /pockets/{pocket_id}          — Rename
    DELETE /pockets/{pocket_id}          — Delete (movements are orphaned)
    POST   /pockets/{pocket_id}/migrate  — Move the fixed pocket to another account
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.database import get_db
from pocket_ledger.dependencies import get_current_user
from pocket_ledger.models.user import User
from pocket_ledger.schemas.pocket import (
    PocketCreateRequest,
    PocketDeleteResponse,
    PocketMigrateRequest,
    PocketResponse,
    PocketUpdateRequest,
)
from pocket_ledger.services import pocket_service

router = APIRouter()


@router.post(
    "",
    response_model=PocketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a pocket",
)
async def create_pocket(
    request: PocketCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a normal or fixed pocket. The pocket takes the account's
    currency. Each user can have only one fixed pocket.
    """
    return await pocket_service.create_pocket(
        db=db,
        user_id=user.id,
        account_id=request.account_id,
        name=request.name,
        kind=request.kind,
    )


@router.get(
    "",
    response_model=list[PocketResponse],
    summary="List pockets",
)
async def list_pockets(
    account_id: uuid.UUID | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await pocket_service.get_pockets(db, user.id, account_id)


@router.get(
    "/{pocket_id}",
    response_model=PocketResponse,
    summary="Get a pocket",
)
async def get_pocket(
    pocket_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await pocket_service.get_pocket(db, user.id, pocket_id)


@router.patch(
    "/{pocket_id}",
    response_model=PocketResponse,
    summary="Rename a pocket",
)
async def update_pocket(
    pocket_id: uuid.UUID,
    request: PocketUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await pocket_service.rename_pocket(db, user.id, pocket_id, request.name)


@router.delete(
    "/{pocket_id}",
    response_model=PocketDeleteResponse,
    summary="Delete a pocket",
)
async def delete_pocket(
    pocket_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete the pocket and its sub-pockets. Its movements are kept as
    orphans and the account balance is recalculated without them.
    """
    return await pocket_service.delete_pocket(db, user.id, pocket_id)


@router.post(
    "/{pocket_id}/migrate",
    response_model=PocketResponse,
    summary="Move the fixed pocket to another account",
)
async def migrate_pocket(
    pocket_id: uuid.UUID,
    request: PocketMigrateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await pocket_service.migrate_fixed_pocket(
        db, user.id, pocket_id, request.target_account_id
    )
