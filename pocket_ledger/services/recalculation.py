"""
Recalculation service — the only writer of cached balances.

Given a set of possibly-stale entity ids, rebuilds their balances from
the movement log in three tiers:

  1. SubPockets: aggregate of the movements that reference the sub-pocket
  2. Pockets:    normal pocket -> aggregate of its movements
                 fixed pocket  -> sum of its sub-pockets' cached balances
  3. Accounts:   sum of its pockets' cached balances

Each tier reads the balances the tier below has just written, so the
order is fixed and every step is awaited before the next one starts.
Dirty sub-pockets also dirty their pocket, and dirty pockets dirty their
account, so a caller may pass only the lowest tier it knows about.

Entities that no longer exist are skipped. Calling `recalculate` with a
superset of the truly dirty ids, or twice in a row, is harmless: each
balance is replaced wholesale, never patched.

Failure semantics:
  A storage failure aborts the rest of the pass and propagates as
  PersistenceError. `run_cascade` is the use-case entry point: it
  catches that error, rolls back the partial cascade and logs it, leaving
  the already-committed movement write intact. A later full sweep
  (`recalculate_all`) heals the drift.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.domain.affected import AffectedEntities
from pocket_ledger.domain.balance import pocket_balance, sub_pocket_balance, sum_balances
from pocket_ledger.exceptions import PersistenceError
from pocket_ledger.repositories.base import (
    AccountStore,
    MovementStore,
    PocketStore,
    SubPocketStore,
)
from pocket_ledger.repositories.registry import Repositories


logger = logging.getLogger(__name__)


@dataclass
class RecalculationResult:
    sub_pockets: int = 0
    pockets: int = 0
    accounts: int = 0
    skipped: int = 0

    def as_dict(self) -> dict:
        return {
            "sub_pockets": self.sub_pockets,
            "pockets": self.pockets,
            "accounts": self.accounts,
            "skipped": self.skipped,
        }


class BalanceRecalculator:
    def __init__(
        self,
        movements: MovementStore,
        accounts: AccountStore,
        pockets: PocketStore,
        sub_pockets: SubPocketStore,
    ):
        self.movements = movements
        self.accounts = accounts
        self.pockets = pockets
        self.sub_pockets = sub_pockets

    @classmethod
    def from_repositories(cls, repos: Repositories) -> "BalanceRecalculator":
        return cls(repos.movements, repos.accounts, repos.pockets, repos.sub_pockets)

    async def recalculate(
        self, refs: AffectedEntities, user_id: uuid.UUID
    ) -> RecalculationResult:
        """Rebuild the balances of `refs` (and their owners) in tier order."""
        result = RecalculationResult()
        pocket_ids = set(refs.pocket_ids)
        account_ids = set(refs.account_ids)

        for sub_pocket_id in sorted(refs.sub_pocket_ids):
            owner = await self._recalculate_sub_pocket(sub_pocket_id, user_id, result)
            if owner is not None:
                pocket_ids.add(owner)

        for pocket_id in sorted(pocket_ids):
            owner = await self._recalculate_pocket(pocket_id, user_id, result)
            if owner is not None:
                account_ids.add(owner)

        for account_id in sorted(account_ids):
            await self._recalculate_account(account_id, user_id, result)

        logger.info(
            "balance.recalculated",
            extra={"extra_fields": {"user_id": str(user_id), **result.as_dict()}},
        )
        return result

    async def recalculate_all(self, user_id: uuid.UUID) -> RecalculationResult:
        """Full sweep over every sub-pocket, pocket and account of the user."""
        refs = AffectedEntities(
            account_ids={a.id for a in await self.accounts.find_all(user_id)},
            pocket_ids={p.id for p in await self.pockets.find_all(user_id)},
            sub_pocket_ids={s.id for s in await self.sub_pockets.find_all(user_id)},
        )
        return await self.recalculate(refs, user_id)

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    async def _recalculate_sub_pocket(
        self, sub_pocket_id: uuid.UUID, user_id: uuid.UUID, result: RecalculationResult
    ) -> uuid.UUID | None:
        sub_pocket = await self.sub_pockets.find_by_id(sub_pocket_id, user_id)
        if sub_pocket is None:
            _log_skipped("sub_pocket", sub_pocket_id)
            result.skipped += 1
            return None

        movements = await self.movements.find_by_sub_pocket_id(sub_pocket_id, user_id)
        balance = sub_pocket_balance(movements, sub_pocket_id)
        await self.sub_pockets.update_balance(sub_pocket_id, balance, user_id)
        _log_written("sub_pocket", sub_pocket_id, balance)
        result.sub_pockets += 1
        return sub_pocket.pocket_id

    async def _recalculate_pocket(
        self, pocket_id: uuid.UUID, user_id: uuid.UUID, result: RecalculationResult
    ) -> uuid.UUID | None:
        pocket = await self.pockets.find_by_id(pocket_id, user_id)
        if pocket is None:
            _log_skipped("pocket", pocket_id)
            result.skipped += 1
            return None

        if pocket.is_fixed:
            sub_pockets = await self.sub_pockets.find_by_pocket_id(pocket_id, user_id)
            balance = sum_balances(s.balance for s in sub_pockets)
        else:
            movements = await self.movements.find_by_pocket_id(pocket_id, user_id)
            balance = pocket_balance(movements, pocket_id)

        await self.pockets.update_balance(pocket_id, balance, user_id)
        _log_written("pocket", pocket_id, balance)
        result.pockets += 1
        return pocket.account_id

    async def _recalculate_account(
        self, account_id: uuid.UUID, user_id: uuid.UUID, result: RecalculationResult
    ) -> None:
        account = await self.accounts.find_by_id(account_id, user_id)
        if account is None:
            _log_skipped("account", account_id)
            result.skipped += 1
            return

        pockets = await self.pockets.find_by_account_id(account_id, user_id)
        balance = sum_balances(p.balance for p in pockets)
        await self.accounts.update_balance(account_id, balance, user_id)
        _log_written("account", account_id, balance)
        result.accounts += 1


def _log_skipped(entity: str, entity_id: uuid.UUID) -> None:
    logger.debug(
        "balance.skipped_missing",
        extra={"extra_fields": {"entity": entity, "entity_id": str(entity_id)}},
    )


def _log_written(entity: str, entity_id: uuid.UUID, balance: Decimal) -> None:
    logger.debug(
        "balance.written",
        extra={
            "extra_fields": {
                "entity": entity,
                "entity_id": str(entity_id),
                "balance": str(balance),
            }
        },
    )


async def run_cascade(
    db: AsyncSession,
    repos: Repositories,
    refs: AffectedEntities,
    user_id: uuid.UUID,
) -> bool:
    """
    Best-effort cascade after a committed primary write.

    Returns False when the cascade was aborted; the partial writes are
    rolled back and the cached balances stay stale until the next sweep.
    """
    if refs.is_empty():
        return True
    try:
        await BalanceRecalculator.from_repositories(repos).recalculate(refs, user_id)
    except PersistenceError:
        await db.rollback()
        logger.error(
            "balance.cascade_aborted",
            exc_info=True,
            extra={"extra_fields": {"user_id": str(user_id), **refs.as_log_fields()}},
        )
        return False
    return True
