"""
SQLAlchemy implementation of the MovementStore contract.

Rows are always loaded through the ORM (never with bulk UPDATE/DELETE
statements) so the session's identity map never holds stale copies of
a movement that a bulk helper changed. Writes are flushed, not
committed: the caller owns the transaction.

Ordering: every list query returns movements by displayed date, newest
first, then by creation time.
"""

import calendar
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.domain.movement import Movement, UNKNOWN_PARENT_NAME
from pocket_ledger.models import Movement as ORMMovement, Pocket
from pocket_ledger.repositories.base import MovementFilters, translate_storage_errors
from pocket_ledger.repositories.mappers import (
    apply_movement,
    movement_to_domain,
    movement_to_orm,
)


class SqlMovementStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _owned(self, user_id: uuid.UUID):
        return select(ORMMovement).where(ORMMovement.user_id == user_id)

    async def _rows(self, stmt) -> list[ORMMovement]:
        stmt = stmt.order_by(
            ORMMovement.displayed_date.desc(),
            ORMMovement.created_at.desc(),
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _list(self, stmt, operation: str) -> list[Movement]:
        with translate_storage_errors(operation):
            rows = await self._rows(stmt)
        return [movement_to_domain(row) for row in rows]

    async def _get_row(self, movement_id: uuid.UUID, user_id: uuid.UUID) -> Optional[ORMMovement]:
        result = await self.db.execute(
            self._owned(user_id).where(ORMMovement.id == movement_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _apply_filters(stmt, filters: Optional[MovementFilters]):
        if filters is None:
            return stmt
        if filters.account_id is not None:
            stmt = stmt.where(ORMMovement.account_id == filters.account_id)
        if filters.pocket_id is not None:
            stmt = stmt.where(ORMMovement.pocket_id == filters.pocket_id)
        if filters.sub_pocket_id is not None:
            stmt = stmt.where(ORMMovement.sub_pocket_id == filters.sub_pocket_id)
        if filters.is_pending is not None:
            stmt = stmt.where(ORMMovement.is_pending == filters.is_pending)
        if filters.is_orphaned is not None:
            stmt = stmt.where(ORMMovement.is_orphaned == filters.is_orphaned)
        if filters.start_date is not None:
            stmt = stmt.where(ORMMovement.displayed_date >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(ORMMovement.displayed_date <= filters.end_date)
        return stmt

    # ------------------------------------------------------------------
    # Single-movement writes
    # ------------------------------------------------------------------

    async def save(self, movement: Movement, user_id: uuid.UUID) -> Movement:
        with translate_storage_errors("save movement"):
            row = movement_to_orm(movement, user_id)
            self.db.add(row)
            await self.db.flush()
        return movement_to_domain(row)

    async def update(self, movement: Movement, user_id: uuid.UUID) -> Movement:
        with translate_storage_errors("update movement"):
            row = await self._get_row(movement.id, user_id)
            if row is None:
                # Deleted between read and write; nothing left to update
                return movement
            apply_movement(row, movement)
            await self.db.flush()
        return movement_to_domain(row)

    async def delete(self, movement_id: uuid.UUID, user_id: uuid.UUID) -> None:
        with translate_storage_errors("delete movement"):
            row = await self._get_row(movement_id, user_id)
            if row is not None:
                await self.db.delete(row)
                await self.db.flush()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find_by_id(self, movement_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Movement]:
        with translate_storage_errors("find movement"):
            row = await self._get_row(movement_id, user_id)
        return movement_to_domain(row) if row is not None else None

    async def find_all(
        self, user_id: uuid.UUID, filters: Optional[MovementFilters] = None
    ) -> list[Movement]:
        stmt = self._apply_filters(self._owned(user_id), filters)
        return await self._list(stmt, "list movements")

    async def find_by_account_id(self, account_id: uuid.UUID, user_id: uuid.UUID) -> list[Movement]:
        stmt = self._owned(user_id).where(ORMMovement.account_id == account_id)
        return await self._list(stmt, "list movements by account")

    async def find_by_pocket_id(self, pocket_id: uuid.UUID, user_id: uuid.UUID) -> list[Movement]:
        stmt = self._owned(user_id).where(ORMMovement.pocket_id == pocket_id)
        return await self._list(stmt, "list movements by pocket")

    async def find_by_sub_pocket_id(
        self, sub_pocket_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[Movement]:
        stmt = self._owned(user_id).where(ORMMovement.sub_pocket_id == sub_pocket_id)
        return await self._list(stmt, "list movements by sub-pocket")

    async def find_by_month(
        self,
        year: int,
        month: int,
        user_id: uuid.UUID,
        filters: Optional[MovementFilters] = None,
    ) -> list[Movement]:
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        stmt = self._apply_filters(self._owned(user_id), filters).where(
            ORMMovement.displayed_date >= first,
            ORMMovement.displayed_date <= last,
        )
        return await self._list(stmt, "list movements by month")

    async def find_pending(self, user_id: uuid.UUID) -> list[Movement]:
        stmt = self._owned(user_id).where(
            ORMMovement.is_pending.is_(True),
            ORMMovement.is_orphaned.is_(False),
        )
        return await self._list(stmt, "list pending movements")

    async def find_orphaned(self, user_id: uuid.UUID) -> list[Movement]:
        stmt = self._owned(user_id).where(ORMMovement.is_orphaned.is_(True))
        return await self._list(stmt, "list orphaned movements")

    async def count_by_sub_pocket_id(self, sub_pocket_id: uuid.UUID, user_id: uuid.UUID) -> int:
        with translate_storage_errors("count movements by sub-pocket"):
            result = await self.db.execute(
                select(func.count(ORMMovement.id)).where(
                    ORMMovement.user_id == user_id,
                    ORMMovement.sub_pocket_id == sub_pocket_id,
                )
            )
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Bulk helpers (parent deletion and pocket migration)
    # ------------------------------------------------------------------

    async def mark_as_orphaned_by_account_id(
        self,
        account_id: uuid.UUID,
        account_name: str,
        account_currency: str,
        user_id: uuid.UUID,
    ) -> int:
        """
        Orphan every attached movement of an account. Each movement's
        snapshot gets the name of the pocket it pointed to, or "Unknown"
        when that pocket is already gone.
        """
        with translate_storage_errors("orphan movements by account"):
            rows = await self._rows(
                self._owned(user_id).where(
                    ORMMovement.account_id == account_id,
                    ORMMovement.is_orphaned.is_(False),
                )
            )
            if not rows:
                return 0

            pocket_ids = {row.pocket_id for row in rows if row.pocket_id is not None}
            pocket_names: dict[uuid.UUID, str] = {}
            if pocket_ids:
                result = await self.db.execute(
                    select(Pocket.id, Pocket.name).where(Pocket.id.in_(pocket_ids))
                )
                pocket_names = {pid: name for pid, name in result.all()}

            for row in rows:
                movement = movement_to_domain(row)
                movement.mark_as_orphaned(
                    account_name,
                    account_currency,
                    pocket_names.get(row.pocket_id, UNKNOWN_PARENT_NAME),
                )
                apply_movement(row, movement)
            await self.db.flush()
        return len(rows)

    async def mark_as_orphaned_by_pocket_id(
        self,
        pocket_id: uuid.UUID,
        account_name: str,
        account_currency: str,
        pocket_name: str,
        user_id: uuid.UUID,
    ) -> int:
        with translate_storage_errors("orphan movements by pocket"):
            rows = await self._rows(
                self._owned(user_id).where(
                    ORMMovement.pocket_id == pocket_id,
                    ORMMovement.is_orphaned.is_(False),
                )
            )
            for row in rows:
                movement = movement_to_domain(row)
                movement.mark_as_orphaned(account_name, account_currency, pocket_name)
                apply_movement(row, movement)
            await self.db.flush()
        return len(rows)

    async def update_account_id_by_pocket_id(
        self, pocket_id: uuid.UUID, new_account_id: uuid.UUID, user_id: uuid.UUID
    ) -> int:
        with translate_storage_errors("move movements to account"):
            rows = await self._rows(
                self._owned(user_id).where(ORMMovement.pocket_id == pocket_id)
            )
            for row in rows:
                row.account_id = new_account_id
            await self.db.flush()
        return len(rows)

    async def delete_by_account_id(self, account_id: uuid.UUID, user_id: uuid.UUID) -> int:
        with translate_storage_errors("delete movements by account"):
            rows = await self._rows(
                self._owned(user_id).where(ORMMovement.account_id == account_id)
            )
            for row in rows:
                await self.db.delete(row)
            await self.db.flush()
        return len(rows)
