"""
Accounts router — account management endpoints.

All endpoints require a bearer token and are scoped to the authenticated
user:

    POST   /accounts                       — Create an account
    GET    /accounts                       — List own accounts
    POST   /accounts/recalculate-balances  — Rebuild every cached balance
    GET    /accounts/{account_id}          — Get account details
    PATCH  /accounts/{account_id}          — Rename
    DELETE /accounts/{account_id}          — Cascade delete
    GET    /accounts/{account_id}/balance  — Cached vs computed balance

An account owned by another user answers 404, exactly like one that
doesn't exist.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.database import get_db
from pocket_ledger.dependencies import get_current_user
from pocket_ledger.models.user import User
from pocket_ledger.schemas.account import (
    AccountCreateRequest,
    AccountDeleteResponse,
    AccountResponse,
    AccountUpdateRequest,
    BalanceResponse,
    RecalculationResponse,
)
from pocket_ledger.services import account_service

router = APIRouter()


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def create_account(
    request: AccountCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an account with a zero balance. Name + currency must be unique
    among the user's accounts (409 otherwise).
    """
    return await account_service.create_account(
        db=db,
        user_id=user.id,
        name=request.name,
        currency=request.currency,
    )


@router.get(
    "",
    response_model=list[AccountResponse],
    summary="List your accounts",
)
async def list_accounts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.get_accounts(db, user.id)


@router.post(
    "/recalculate-balances",
    response_model=RecalculationResponse,
    summary="Recalculate all balances",
)
async def recalculate_balances(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Rebuild every sub-pocket, pocket and account balance of the user from
    the movement log. Safe to call at any time; calling it twice changes
    nothing the second time.
    """
    result = await account_service.recalculate_all_balances(db, user.id)
    return result.as_dict()


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get account details",
)
async def get_account(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.get_account(db, user.id, account_id)


@router.patch(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Rename an account",
)
async def update_account(
    account_id: uuid.UUID,
    request: AccountUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.rename_account(db, user.id, account_id, request.name)


@router.delete(
    "/{account_id}",
    response_model=AccountDeleteResponse,
    summary="Delete an account with its pockets",
)
async def delete_account(
    account_id: uuid.UUID,
    delete_movements: bool = Query(
        False, description="Hard-delete the movements instead of orphaning them"
    ),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete the account, its pockets and their sub-pockets.

    By default the account's movements are kept as orphans so they can be
    restored onto a recreated account with the same name and currency.
    """
    return await account_service.delete_account_cascade(
        db, user.id, account_id, delete_movements=delete_movements
    )


@router.get(
    "/{account_id}/balance",
    response_model=BalanceResponse,
    summary="Check account balance",
)
async def get_balance(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the account balance — both cached and computed from movements.

    `match` is false when the cache has drifted from the movement log.
    """
    return await account_service.get_balance(db, user.id, account_id)
