"""
Movement service — the use cases that create, change and read movements.

Every mutating use case runs the same fixed sequence:

    validate -> verify referenced parents -> persist + commit
             -> (lifecycle transition or balance-relevant change)
             -> recalculation cascade -> return the movement

Validation happens before any write: the Movement entity checks its own
invariants on construction and on every mutation, and the parent checks
here (account exists, pocket belongs to it, sub-pocket belongs to a
fixed pocket) need the stores.

The primary write is committed before the cascade starts. A cascade
failure is logged and rolled back by `run_cascade` without touching the
committed movement; the caller still gets the movement back.

Skipped cascades:
  - creating a pending movement (it contributes nothing yet)
  - an update that only touches metadata (notes, displayed date)
  - deleting an orphaned movement (its parents are already gone)
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.domain.affected import affected, affected_across_change, requires_recalculation
from pocket_ledger.domain.balance import PeriodSummary, summarize
from pocket_ledger.domain.movement import Movement, MovementType, UNSET
from pocket_ledger.exceptions import NotFoundError, ValidationError
from pocket_ledger.models import Pocket
from pocket_ledger.repositories.base import MovementFilters
from pocket_ledger.repositories.registry import Repositories
from pocket_ledger.services.lifecycle import RestoreReport, restore_orphaned_movements
from pocket_ledger.services.recalculation import run_cascade


logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100


def _log(event: str, movement: Movement, **fields) -> None:
    logger.info(
        event,
        extra={"extra_fields": {"movement_id": str(movement.id), **fields}},
    )


async def _get_or_404(repos: Repositories, movement_id: uuid.UUID, user_id: uuid.UUID) -> Movement:
    movement = await repos.movements.find_by_id(movement_id, user_id)
    if movement is None:
        raise NotFoundError("Movement", movement_id)
    return movement


async def _verify_references(
    repos: Repositories,
    user_id: uuid.UUID,
    account_id: uuid.UUID,
    pocket_id: uuid.UUID,
    sub_pocket_id: Optional[uuid.UUID],
) -> Pocket:
    """
    Check that the parents a movement points to exist for this user and
    fit together. Returns the pocket.
    """
    account = await repos.accounts.find_by_id(account_id, user_id)
    if account is None:
        raise NotFoundError("Account", account_id)

    pocket = await repos.pockets.find_by_id(pocket_id, user_id)
    if pocket is None:
        raise NotFoundError("Pocket", pocket_id)
    if pocket.account_id != account_id:
        raise ValidationError("Pocket does not belong to the specified account")

    if sub_pocket_id is not None:
        sub_pocket = await repos.sub_pockets.find_by_id(sub_pocket_id, user_id)
        if sub_pocket is None:
            raise NotFoundError("SubPocket", sub_pocket_id)
        if sub_pocket.pocket_id != pocket_id:
            raise ValidationError("Sub-pocket does not belong to the specified pocket")
        if not pocket.is_fixed:
            raise ValidationError("Sub-pockets can only be used with fixed pockets")
    elif pocket.is_fixed:
        # A fixed pocket's balance is the sum of its sub-pockets
        raise ValidationError("Movements in a fixed pocket must reference a sub-pocket")

    return pocket


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

async def create_movement(
    db: AsyncSession,
    user_id: uuid.UUID,
    type: MovementType | str,
    account_id: uuid.UUID,
    pocket_id: uuid.UUID,
    amount: Decimal,
    displayed_date: date,
    notes: Optional[str] = None,
    sub_pocket_id: Optional[uuid.UUID] = None,
    is_pending: bool = False,
) -> Movement:
    """
    Record a new movement.

    Raises:
        ValidationError: Entity invariant or parent mismatch.
        NotFoundError: A referenced account/pocket/sub-pocket is missing.
    """
    repos = Repositories.for_session(db)

    movement = Movement(
        id=uuid.uuid4(),
        type=type,
        account_id=account_id,
        pocket_id=pocket_id,
        amount=amount,
        displayed_date=displayed_date,
        notes=notes,
        sub_pocket_id=sub_pocket_id,
        is_pending=is_pending,
    )
    await _verify_references(repos, user_id, account_id, pocket_id, sub_pocket_id)

    movement = await repos.movements.save(movement, user_id)
    await db.commit()
    _log("movement.created", movement, type=movement.type.value, is_pending=movement.is_pending)

    if not movement.is_pending:
        await run_cascade(db, repos, affected(movement), user_id)
    return movement


async def update_movement(
    db: AsyncSession,
    user_id: uuid.UUID,
    movement_id: uuid.UUID,
    type: Optional[MovementType | str] = None,
    amount: Optional[Decimal] = None,
    displayed_date: Optional[date] = None,
    notes: Optional[str] = None,
    sub_pocket_id: Optional[uuid.UUID] = UNSET,
    account_id: Optional[uuid.UUID] = None,
    pocket_id: Optional[uuid.UUID] = None,
) -> Movement:
    """
    Partially update a movement. Pass `sub_pocket_id=None` explicitly to
    detach it from its sub-pocket; leave it out to keep it.

    When any parent reference changes, the new references go through the
    same checks as on create. Both the old and the new parents are
    recalculated. An orphaned movement keeps its references; restoring is
    the only way to attach it again.

    Raises:
        ValidationError: Entity invariant, parent mismatch, or a reference
            change on an orphaned movement.
    """
    repos = Repositories.for_session(db)
    movement = await _get_or_404(repos, movement_id, user_id)
    if movement.is_orphaned and (
        (account_id is not None and account_id != movement.account_id)
        or (pocket_id is not None and pocket_id != movement.pocket_id)
        or (sub_pocket_id is not UNSET and sub_pocket_id != movement.sub_pocket_id)
    ):
        raise ValidationError("Orphaned movements can only be re-attached by restoring them")
    before = movement.copy()

    movement.update(
        type=type,
        amount=amount,
        displayed_date=displayed_date,
        notes=notes,
        sub_pocket_id=sub_pocket_id,
        account_id=account_id,
        pocket_id=pocket_id,
    )

    references_changed = (
        before.account_id != movement.account_id
        or before.pocket_id != movement.pocket_id
        or before.sub_pocket_id != movement.sub_pocket_id
    )
    if references_changed:
        await _verify_references(
            repos, user_id, movement.account_id, movement.pocket_id, movement.sub_pocket_id
        )

    movement = await repos.movements.update(movement, user_id)
    await db.commit()

    recalculate = requires_recalculation(before, movement)
    _log("movement.updated", movement, recalculate=recalculate)
    if recalculate:
        await run_cascade(db, repos, affected_across_change(before, movement), user_id)
    return movement


async def delete_movement(
    db: AsyncSession,
    user_id: uuid.UUID,
    movement_id: uuid.UUID,
) -> None:
    """Delete a movement and un-pay any reminder it paid."""
    repos = Repositories.for_session(db)
    movement = await _get_or_404(repos, movement_id, user_id)

    unlinked = await repos.reminders.unlink_movement(movement.id, user_id)
    await repos.movements.delete(movement.id, user_id)
    await db.commit()
    _log("movement.deleted", movement, reminders_unpaid=unlinked, was_orphaned=movement.is_orphaned)

    if not movement.is_orphaned:
        await run_cascade(db, repos, affected(movement), user_id)


async def mark_as_pending(
    db: AsyncSession,
    user_id: uuid.UUID,
    movement_id: uuid.UUID,
) -> Movement:
    """applied -> pending. The movement stops counting toward balances."""
    repos = Repositories.for_session(db)
    movement = await _get_or_404(repos, movement_id, user_id)

    movement.mark_as_pending()
    movement = await repos.movements.update(movement, user_id)
    await db.commit()
    _log("movement.marked_pending", movement)

    await run_cascade(db, repos, affected(movement), user_id)
    return movement


async def apply_pending(
    db: AsyncSession,
    user_id: uuid.UUID,
    movement_id: uuid.UUID,
) -> Movement:
    """pending -> applied. The movement starts counting toward balances."""
    repos = Repositories.for_session(db)
    movement = await _get_or_404(repos, movement_id, user_id)

    movement.apply_pending()
    movement = await repos.movements.update(movement, user_id)
    await db.commit()
    _log("movement.applied", movement)

    await run_cascade(db, repos, affected(movement), user_id)
    return movement


async def restore_orphaned(db: AsyncSession, user_id: uuid.UUID) -> RestoreReport:
    """Reattach orphaned movements to live parents with matching names."""
    repos = Repositories.for_session(db)
    report = await restore_orphaned_movements(repos, user_id)
    await db.commit()

    await run_cascade(db, repos, report.affected, user_id)
    return report


@dataclass
class Transfer:
    expense: Movement
    income: Movement


async def create_transfer(
    db: AsyncSession,
    user_id: uuid.UUID,
    source_pocket_id: uuid.UUID,
    target_pocket_id: uuid.UUID,
    amount: Decimal,
    displayed_date: date,
    notes: Optional[str] = None,
) -> Transfer:
    """
    Move money between two normal pockets: a NormalExpense in the source
    and a NormalIncome in the target, recalculated together.
    """
    if source_pocket_id == target_pocket_id:
        raise ValidationError("Source and target pockets must be different")

    repos = Repositories.for_session(db)
    source = await repos.pockets.find_by_id(source_pocket_id, user_id)
    if source is None:
        raise NotFoundError("Pocket", source_pocket_id)
    target = await repos.pockets.find_by_id(target_pocket_id, user_id)
    if target is None:
        raise NotFoundError("Pocket", target_pocket_id)
    if source.is_fixed or target.is_fixed:
        raise ValidationError("Transfers can only move money between normal pockets")

    suffix = f": {notes}" if notes else ""
    expense = Movement(
        id=uuid.uuid4(),
        type=MovementType.NORMAL_EXPENSE,
        account_id=source.account_id,
        pocket_id=source.id,
        amount=amount,
        displayed_date=displayed_date,
        notes=f"Transfer to {target.name}{suffix}",
    )
    income = Movement(
        id=uuid.uuid4(),
        type=MovementType.NORMAL_INCOME,
        account_id=target.account_id,
        pocket_id=target.id,
        amount=amount,
        displayed_date=displayed_date,
        notes=f"Transfer from {source.name}{suffix}",
    )

    expense = await repos.movements.save(expense, user_id)
    income = await repos.movements.save(income, user_id)
    await db.commit()
    logger.info(
        "movement.transfer_created",
        extra={
            "extra_fields": {
                "expense_id": str(expense.id),
                "income_id": str(income.id),
                "amount": str(amount),
            }
        },
    )

    await run_cascade(db, repos, affected(expense).merge(affected(income)), user_id)
    return Transfer(expense=expense, income=income)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_movement(db: AsyncSession, user_id: uuid.UUID, movement_id: uuid.UUID) -> Movement:
    return await _get_or_404(Repositories.for_session(db), movement_id, user_id)


async def list_movements(
    db: AsyncSession,
    user_id: uuid.UUID,
    filters: Optional[MovementFilters] = None,
) -> list[Movement]:
    return await Repositories.for_session(db).movements.find_all(user_id, filters)


async def get_movements_by_account(
    db: AsyncSession, user_id: uuid.UUID, account_id: uuid.UUID
) -> list[Movement]:
    repos = Repositories.for_session(db)
    if await repos.accounts.find_by_id(account_id, user_id) is None:
        raise NotFoundError("Account", account_id)
    return await repos.movements.find_by_account_id(account_id, user_id)


async def get_movements_by_pocket(
    db: AsyncSession, user_id: uuid.UUID, pocket_id: uuid.UUID
) -> list[Movement]:
    repos = Repositories.for_session(db)
    if await repos.pockets.find_by_id(pocket_id, user_id) is None:
        raise NotFoundError("Pocket", pocket_id)
    return await repos.movements.find_by_pocket_id(pocket_id, user_id)


def _validate_period(year: int, month: int) -> None:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")


async def get_movements_by_month(
    db: AsyncSession,
    user_id: uuid.UUID,
    year: int,
    month: int,
    account_id: Optional[uuid.UUID] = None,
    pocket_id: Optional[uuid.UUID] = None,
    is_pending: Optional[bool] = None,
) -> list[Movement]:
    _validate_period(year, month)
    filters = MovementFilters(account_id=account_id, pocket_id=pocket_id, is_pending=is_pending)
    return await Repositories.for_session(db).movements.find_by_month(
        year, month, user_id, filters
    )


async def get_pending_movements(db: AsyncSession, user_id: uuid.UUID) -> list[Movement]:
    return await Repositories.for_session(db).movements.find_pending(user_id)


async def get_orphaned_movements(db: AsyncSession, user_id: uuid.UUID) -> list[Movement]:
    return await Repositories.for_session(db).movements.find_orphaned(user_id)


async def get_monthly_summary(
    db: AsyncSession,
    user_id: uuid.UUID,
    year: int,
    month: int,
    account_id: Optional[uuid.UUID] = None,
) -> PeriodSummary:
    """Income, expense and net for one month (pending and orphaned excluded)."""
    movements = await get_movements_by_month(db, user_id, year, month, account_id=account_id)
    return summarize(movements)
