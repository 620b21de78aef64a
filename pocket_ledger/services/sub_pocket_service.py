"""
Sub-pocket service — the recurring items of the user's fixed pocket.

A sub-pocket can only live under a fixed pocket. It cannot be deleted
while movements still reference it; the user has to delete or move
those first.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.exceptions import ConflictError, NotFoundError, ValidationError
from pocket_ledger.models import SubPocket
from pocket_ledger.repositories.registry import Repositories
from pocket_ledger.services.pocket_service import get_pocket


logger = logging.getLogger(__name__)


async def create_sub_pocket(
    db: AsyncSession,
    user_id: uuid.UUID,
    pocket_id: uuid.UUID,
    name: str,
    value_total: Decimal,
    periodicity_months: int = 1,
) -> SubPocket:
    pocket = await get_pocket(db, user_id, pocket_id)
    if not pocket.is_fixed:
        raise ValidationError("Sub-pockets can only be created in fixed pockets")
    if value_total <= 0:
        raise ValidationError("Sub-pocket value total must be positive")
    if periodicity_months < 1:
        raise ValidationError("Sub-pocket periodicity must be at least one month")

    sub_pocket = await Repositories.for_session(db).sub_pockets.save(
        SubPocket(
            user_id=user_id,
            pocket_id=pocket.id,
            name=name,
            value_total=value_total,
            periodicity_months=periodicity_months,
            enabled=True,
            balance=Decimal("0"),
        )
    )
    logger.info(
        "sub_pocket.created",
        extra={"extra_fields": {"sub_pocket_id": str(sub_pocket.id), "pocket_id": str(pocket.id)}},
    )
    return sub_pocket


async def get_sub_pockets(
    db: AsyncSession,
    user_id: uuid.UUID,
    pocket_id: Optional[uuid.UUID] = None,
) -> list[SubPocket]:
    repos = Repositories.for_session(db)
    if pocket_id is None:
        return await repos.sub_pockets.find_all(user_id)
    await get_pocket(db, user_id, pocket_id)
    return await repos.sub_pockets.find_by_pocket_id(pocket_id, user_id)


async def get_sub_pocket(
    db: AsyncSession, user_id: uuid.UUID, sub_pocket_id: uuid.UUID
) -> SubPocket:
    sub_pocket = await Repositories.for_session(db).sub_pockets.find_by_id(sub_pocket_id, user_id)
    if sub_pocket is None:
        raise NotFoundError("SubPocket", sub_pocket_id)
    return sub_pocket


async def update_sub_pocket(
    db: AsyncSession,
    user_id: uuid.UUID,
    sub_pocket_id: uuid.UUID,
    name: Optional[str] = None,
    value_total: Optional[Decimal] = None,
    periodicity_months: Optional[int] = None,
    enabled: Optional[bool] = None,
) -> SubPocket:
    """Partial update; the cached balance is never touched here."""
    sub_pocket = await get_sub_pocket(db, user_id, sub_pocket_id)

    if value_total is not None and value_total <= 0:
        raise ValidationError("Sub-pocket value total must be positive")
    if periodicity_months is not None and periodicity_months < 1:
        raise ValidationError("Sub-pocket periodicity must be at least one month")

    if name is not None:
        sub_pocket.name = name
    if value_total is not None:
        sub_pocket.value_total = value_total
    if periodicity_months is not None:
        sub_pocket.periodicity_months = periodicity_months
    if enabled is not None:
        sub_pocket.enabled = enabled

    return await Repositories.for_session(db).sub_pockets.save(sub_pocket)


async def delete_sub_pocket(db: AsyncSession, user_id: uuid.UUID, sub_pocket_id: uuid.UUID) -> None:
    repos = Repositories.for_session(db)
    sub_pocket = await get_sub_pocket(db, user_id, sub_pocket_id)

    if await repos.movements.count_by_sub_pocket_id(sub_pocket.id, user_id) > 0:
        raise ConflictError(
            "Cannot delete sub-pocket with existing movements. "
            "Delete or reassign the movements first."
        )

    await repos.sub_pockets.delete(sub_pocket)
    logger.info(
        "sub_pocket.deleted",
        extra={"extra_fields": {"sub_pocket_id": str(sub_pocket_id)}},
    )
