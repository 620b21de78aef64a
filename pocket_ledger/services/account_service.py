"""
Account service — business logic for accounts.

This module handles:
  - Account creation (name + currency unique per user)
  - Account retrieval (single or list, scoped to the user)
  - Renaming
  - Balance verification (cached vs. freshly aggregated from movements)
  - Cascade deletion (sub-pockets, pockets, account; movements orphaned
    or hard-deleted)
  - The full recalculation sweep that heals any drift in cached balances

Ownership enforcement:
  All functions accept a `user_id` parameter. This is always the
  authenticated user's id, set by the dependency layer. An account that
  belongs to someone else is indistinguishable from one that doesn't
  exist: both raise NotFoundError.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.domain.balance import pocket_balance, sub_pocket_balance, sum_balances
from pocket_ledger.exceptions import ConflictError, NotFoundError
from pocket_ledger.models import Account
from pocket_ledger.repositories.registry import Repositories
from pocket_ledger.services.lifecycle import orphan_account_movements
from pocket_ledger.services.recalculation import BalanceRecalculator, RecalculationResult


logger = logging.getLogger(__name__)


async def create_account(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str,
    currency: str = "USD",
) -> Account:
    """
    Create a new account with a zero balance.

    Raises:
        ConflictError: The user already has an account with this name
            and currency.
    """
    repos = Repositories.for_session(db)
    if await repos.accounts.find_by_name_and_currency(name, currency, user_id) is not None:
        raise ConflictError(f'An account named "{name}" with currency {currency} already exists')

    account = await repos.accounts.save(
        Account(user_id=user_id, name=name, currency=currency, balance=Decimal("0"))
    )
    logger.info(
        "account.created",
        extra={"extra_fields": {"account_id": str(account.id), "currency": currency}},
    )
    return account


async def get_accounts(db: AsyncSession, user_id: uuid.UUID) -> list[Account]:
    """List all accounts belonging to the user, oldest first."""
    return await Repositories.for_session(db).accounts.find_all(user_id)


async def get_account(db: AsyncSession, user_id: uuid.UUID, account_id: uuid.UUID) -> Account:
    """
    Get a single account, verifying ownership.

    Raises:
        NotFoundError: The account doesn't exist or belongs to someone else.
    """
    account = await Repositories.for_session(db).accounts.find_by_id(account_id, user_id)
    if account is None:
        raise NotFoundError("Account", account_id)
    return account


async def rename_account(
    db: AsyncSession,
    user_id: uuid.UUID,
    account_id: uuid.UUID,
    name: str,
) -> Account:
    """
    Change an account's name. Orphaned movements keep the old name in
    their snapshot, so renaming an account back is a way to restore them.
    """
    repos = Repositories.for_session(db)
    account = await get_account(db, user_id, account_id)
    if name != account.name:
        existing = await repos.accounts.find_by_name_and_currency(name, account.currency, user_id)
        if existing is not None:
            raise ConflictError(
                f'An account named "{name}" with currency {account.currency} already exists'
            )
        account.name = name
        await repos.accounts.save(account)
    return account


async def get_balance(db: AsyncSession, user_id: uuid.UUID, account_id: uuid.UUID) -> dict:
    """
    Get the account balance — both cached and computed from movements.

    The computed value follows the same tier rules as the recalculation
    service, but from the raw movement log only: each normal pocket
    aggregates its movements, each fixed pocket sums the aggregates of
    its sub-pockets. A mismatch means the cache has drifted and the full
    sweep should be run.
    """
    repos = Repositories.for_session(db)
    account = await get_account(db, user_id, account_id)

    pocket_totals = []
    for pocket in await repos.pockets.find_by_account_id(account.id, user_id):
        if pocket.is_fixed:
            sub_totals = []
            for sub_pocket in await repos.sub_pockets.find_by_pocket_id(pocket.id, user_id):
                movements = await repos.movements.find_by_sub_pocket_id(sub_pocket.id, user_id)
                sub_totals.append(sub_pocket_balance(movements, sub_pocket.id))
            pocket_totals.append(sum_balances(sub_totals))
        else:
            movements = await repos.movements.find_by_pocket_id(pocket.id, user_id)
            pocket_totals.append(pocket_balance(movements, pocket.id))

    computed = sum_balances(pocket_totals)
    return {
        "account_id": account.id,
        "cached_balance": account.balance,
        "computed_balance": computed,
        "match": account.balance == computed,
    }


async def delete_account_cascade(
    db: AsyncSession,
    user_id: uuid.UUID,
    account_id: uuid.UUID,
    delete_movements: bool = False,
) -> dict:
    """
    Delete an account together with its pockets and sub-pockets.

    Movements are orphaned by default (snapshot: account name, currency,
    pocket name) so they can be restored onto a recreated account later.
    With `delete_movements=True` they are hard-deleted instead, and any
    reminder they paid is marked unpaid.

    No recalculation follows: every parent the movements fed is gone.

    Returns:
        Counts of what was removed or orphaned.
    """
    repos = Repositories.for_session(db)
    account = await get_account(db, user_id, account_id)

    reminders_unpaid = 0
    if delete_movements:
        reminders_unpaid = await repos.reminders.unlink_account_movements(account.id, user_id)
        movement_count = await repos.movements.delete_by_account_id(account.id, user_id)
    else:
        # Needs the pocket rows for the snapshot, so runs before they go
        movement_count = await orphan_account_movements(repos, account, user_id)

    pockets = await repos.pockets.find_by_account_id(account.id, user_id)
    sub_pocket_count = 0
    for pocket in pockets:
        for sub_pocket in await repos.sub_pockets.find_by_pocket_id(pocket.id, user_id):
            await repos.sub_pockets.delete(sub_pocket)
            sub_pocket_count += 1
        await repos.pockets.delete(pocket)

    await repos.accounts.delete(account)
    await db.commit()

    counts = {
        "account": 1,
        "pockets": len(pockets),
        "sub_pockets": sub_pocket_count,
        "movements": movement_count,
        "movements_deleted": delete_movements,
    }
    logger.info(
        "account.deleted",
        extra={
            "extra_fields": {
                "account_id": str(account_id),
                "reminders_unpaid": reminders_unpaid,
                **counts,
            }
        },
    )
    return counts


async def recalculate_all_balances(db: AsyncSession, user_id: uuid.UUID) -> RecalculationResult:
    """Rebuild every cached balance of the user from the movement log."""
    recalculator = BalanceRecalculator.from_repositories(Repositories.for_session(db))
    return await recalculator.recalculate_all(user_id)
