"""
Sub-pockets router.

    POST   /sub-pockets                    — Create under the fixed pocket
    GET    /sub-pockets?pocket_id=         — List
    PATCH  /sub-pockets/{sub_pocket_id}    — Update / enable / disable
    DELETE /sub-pockets/{sub_pocket_id}    — Delete (409 while movements use it)
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.database import get_db
from pocket_ledger.dependencies import get_current_user
from pocket_ledger.models.user import User
from pocket_ledger.schemas.pocket import (
    SubPocketCreateRequest,
    SubPocketResponse,
    SubPocketUpdateRequest,
)
from pocket_ledger.services import sub_pocket_service

router = APIRouter()


@router.post(
    "",
    response_model=SubPocketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a sub-pocket",
)
async def create_sub_pocket(
    request: SubPocketCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await sub_pocket_service.create_sub_pocket(
        db=db,
        user_id=user.id,
        pocket_id=request.pocket_id,
        name=request.name,
        value_total=request.value_total,
        periodicity_months=request.periodicity_months,
    )


@router.get(
    "",
    response_model=list[SubPocketResponse],
    summary="List sub-pockets",
)
async def list_sub_pockets(
    pocket_id: uuid.UUID | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await sub_pocket_service.get_sub_pockets(db, user.id, pocket_id)


@router.patch(
    "/{sub_pocket_id}",
    response_model=SubPocketResponse,
    summary="Update a sub-pocket",
)
async def update_sub_pocket(
    sub_pocket_id: uuid.UUID,
    request: SubPocketUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await sub_pocket_service.update_sub_pocket(
        db,
        user.id,
        sub_pocket_id,
        name=request.name,
        value_total=request.value_total,
        periodicity_months=request.periodicity_months,
        enabled=request.enabled,
    )


@router.delete(
    "/{sub_pocket_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a sub-pocket",
)
async def delete_sub_pocket(
    sub_pocket_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await sub_pocket_service.delete_sub_pocket(db, user.id, sub_pocket_id)
