"""
Pocket service — create, list, rename, delete and migrate pockets.

Rules:
  - a pocket's name is unique within its account
  - a user has at most one fixed pocket
  - a pocket takes its account's currency when it is created
  - deleting a pocket orphans its movements, deletes its sub-pockets and
    recalculates the owning account
  - only a fixed pocket can be migrated to another account; all of its
    movements follow it and both accounts are recalculated
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.domain.affected import AffectedEntities
from pocket_ledger.exceptions import ConflictError, NotFoundError, ValidationError
from pocket_ledger.models import Pocket, PocketKind
from pocket_ledger.repositories.registry import Repositories
from pocket_ledger.services.account_service import get_account
from pocket_ledger.services.lifecycle import orphan_pocket_movements
from pocket_ledger.services.recalculation import run_cascade


logger = logging.getLogger(__name__)


async def create_pocket(
    db: AsyncSession,
    user_id: uuid.UUID,
    account_id: uuid.UUID,
    name: str,
    kind: str = PocketKind.NORMAL.value,
) -> Pocket:
    repos = Repositories.for_session(db)
    account = await get_account(db, user_id, account_id)

    if await repos.pockets.find_by_name(account.id, name, user_id) is not None:
        raise ConflictError(f'A pocket named "{name}" already exists in this account')
    if kind == PocketKind.FIXED.value and await repos.pockets.find_fixed(user_id) is not None:
        raise ConflictError("Only one fixed pocket is allowed per user")

    pocket = await repos.pockets.save(
        Pocket(
            user_id=user_id,
            account_id=account.id,
            name=name,
            kind=kind,
            currency=account.currency,
            balance=Decimal("0"),
        )
    )
    logger.info(
        "pocket.created",
        extra={"extra_fields": {"pocket_id": str(pocket.id), "kind": kind}},
    )
    return pocket


async def get_pockets(
    db: AsyncSession,
    user_id: uuid.UUID,
    account_id: Optional[uuid.UUID] = None,
) -> list[Pocket]:
    """All pockets of the user, or only those of one account."""
    repos = Repositories.for_session(db)
    if account_id is None:
        return await repos.pockets.find_all(user_id)
    await get_account(db, user_id, account_id)
    return await repos.pockets.find_by_account_id(account_id, user_id)


async def get_pocket(db: AsyncSession, user_id: uuid.UUID, pocket_id: uuid.UUID) -> Pocket:
    pocket = await Repositories.for_session(db).pockets.find_by_id(pocket_id, user_id)
    if pocket is None:
        raise NotFoundError("Pocket", pocket_id)
    return pocket


async def rename_pocket(
    db: AsyncSession,
    user_id: uuid.UUID,
    pocket_id: uuid.UUID,
    name: str,
) -> Pocket:
    repos = Repositories.for_session(db)
    pocket = await get_pocket(db, user_id, pocket_id)
    if name != pocket.name:
        if await repos.pockets.find_by_name(pocket.account_id, name, user_id) is not None:
            raise ConflictError(f'A pocket named "{name}" already exists in this account')
        pocket.name = name
        await repos.pockets.save(pocket)
    return pocket


async def delete_pocket(db: AsyncSession, user_id: uuid.UUID, pocket_id: uuid.UUID) -> dict:
    """
    Delete a pocket and its sub-pockets. Its movements become orphans
    remembering the account and pocket names.
    """
    repos = Repositories.for_session(db)
    pocket = await get_pocket(db, user_id, pocket_id)
    account = await get_account(db, user_id, pocket.account_id)

    orphaned = await orphan_pocket_movements(repos, pocket, account, user_id)

    sub_pockets = await repos.sub_pockets.find_by_pocket_id(pocket.id, user_id)
    for sub_pocket in sub_pockets:
        await repos.sub_pockets.delete(sub_pocket)
    await repos.pockets.delete(pocket)
    await db.commit()

    counts = {"pocket": 1, "sub_pockets": len(sub_pockets), "movements_orphaned": orphaned}
    logger.info(
        "pocket.deleted",
        extra={"extra_fields": {"pocket_id": str(pocket_id), **counts}},
    )

    # The account loses the pocket's share of its balance
    await run_cascade(db, repos, AffectedEntities(account_ids={account.id}), user_id)
    return counts


async def migrate_fixed_pocket(
    db: AsyncSession,
    user_id: uuid.UUID,
    pocket_id: uuid.UUID,
    target_account_id: uuid.UUID,
) -> Pocket:
    """
    Move the fixed pocket to another account of the user.

    Raises:
        ValidationError: The pocket is not fixed, or already lives in the
            target account.
        ConflictError: The target account has a pocket with the same name.
    """
    repos = Repositories.for_session(db)
    pocket = await get_pocket(db, user_id, pocket_id)
    if not pocket.is_fixed:
        raise ValidationError("Only fixed pockets can be migrated")

    target = await get_account(db, user_id, target_account_id)
    if pocket.account_id == target.id:
        raise ValidationError("Pocket is already in the target account")
    if await repos.pockets.find_by_name(target.id, pocket.name, user_id) is not None:
        raise ConflictError(f'A pocket named "{pocket.name}" already exists in the target account')

    source_account_id = pocket.account_id
    moved = await repos.movements.update_account_id_by_pocket_id(pocket.id, target.id, user_id)
    pocket.account_id = target.id
    await repos.pockets.save(pocket)
    await db.commit()
    logger.info(
        "pocket.migrated",
        extra={
            "extra_fields": {
                "pocket_id": str(pocket.id),
                "from_account_id": str(source_account_id),
                "to_account_id": str(target.id),
                "movements": moved,
            }
        },
    )

    await run_cascade(
        db,
        repos,
        AffectedEntities(account_ids={source_account_id, target.id}),
        user_id,
    )
    return pocket
