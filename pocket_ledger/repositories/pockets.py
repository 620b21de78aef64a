"""SQLAlchemy implementations of the PocketStore and SubPocketStore contracts."""

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.models import Pocket, PocketKind, SubPocket
from pocket_ledger.repositories.base import translate_storage_errors


class SqlPocketStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _scalars(self, stmt, operation: str) -> list[Pocket]:
        with translate_storage_errors(operation):
            result = await self.db.execute(stmt.order_by(Pocket.created_at))
        return list(result.scalars().all())

    async def _one(self, stmt, operation: str) -> Optional[Pocket]:
        with translate_storage_errors(operation):
            result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_id(self, pocket_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Pocket]:
        return await self._one(
            select(Pocket).where(Pocket.id == pocket_id, Pocket.user_id == user_id),
            "find pocket",
        )

    async def find_all(self, user_id: uuid.UUID) -> list[Pocket]:
        return await self._scalars(
            select(Pocket).where(Pocket.user_id == user_id),
            "list pockets",
        )

    async def find_by_account_id(self, account_id: uuid.UUID, user_id: uuid.UUID) -> list[Pocket]:
        return await self._scalars(
            select(Pocket).where(Pocket.account_id == account_id, Pocket.user_id == user_id),
            "list pockets by account",
        )

    async def find_by_name(
        self, account_id: uuid.UUID, name: str, user_id: uuid.UUID
    ) -> Optional[Pocket]:
        return await self._one(
            select(Pocket).where(
                Pocket.account_id == account_id,
                Pocket.name == name,
                Pocket.user_id == user_id,
            ),
            "find pocket by name",
        )

    async def find_fixed(self, user_id: uuid.UUID) -> Optional[Pocket]:
        return await self._one(
            select(Pocket).where(
                Pocket.user_id == user_id,
                Pocket.kind == PocketKind.FIXED.value,
            ),
            "find fixed pocket",
        )

    async def save(self, pocket: Pocket) -> Pocket:
        with translate_storage_errors("save pocket"):
            self.db.add(pocket)
            await self.db.flush()
        return pocket

    async def delete(self, pocket: Pocket) -> None:
        with translate_storage_errors("delete pocket"):
            await self.db.delete(pocket)
            await self.db.flush()

    async def update_balance(
        self, pocket_id: uuid.UUID, balance: Decimal, user_id: uuid.UUID
    ) -> Optional[Pocket]:
        pocket = await self.find_by_id(pocket_id, user_id)
        if pocket is None:
            return None
        with translate_storage_errors("update pocket balance"):
            pocket.balance = balance
            await self.db.flush()
        return pocket


class SqlSubPocketStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(
        self, sub_pocket_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[SubPocket]:
        with translate_storage_errors("find sub-pocket"):
            result = await self.db.execute(
                select(SubPocket).where(
                    SubPocket.id == sub_pocket_id,
                    SubPocket.user_id == user_id,
                )
            )
        return result.scalar_one_or_none()

    async def find_all(self, user_id: uuid.UUID) -> list[SubPocket]:
        with translate_storage_errors("list sub-pockets"):
            result = await self.db.execute(
                select(SubPocket)
                .where(SubPocket.user_id == user_id)
                .order_by(SubPocket.created_at)
            )
        return list(result.scalars().all())

    async def find_by_pocket_id(
        self, pocket_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[SubPocket]:
        with translate_storage_errors("list sub-pockets by pocket"):
            result = await self.db.execute(
                select(SubPocket)
                .where(SubPocket.pocket_id == pocket_id, SubPocket.user_id == user_id)
                .order_by(SubPocket.created_at)
            )
        return list(result.scalars().all())

    async def save(self, sub_pocket: SubPocket) -> SubPocket:
        with translate_storage_errors("save sub-pocket"):
            self.db.add(sub_pocket)
            await self.db.flush()
        return sub_pocket

    async def delete(self, sub_pocket: SubPocket) -> None:
        with translate_storage_errors("delete sub-pocket"):
            await self.db.delete(sub_pocket)
            await self.db.flush()

    async def update_balance(
        self, sub_pocket_id: uuid.UUID, balance: Decimal, user_id: uuid.UUID
    ) -> Optional[SubPocket]:
        sub_pocket = await self.find_by_id(sub_pocket_id, user_id)
        if sub_pocket is None:
            return None
        with translate_storage_errors("update sub-pocket balance"):
            sub_pocket.balance = balance
            await self.db.flush()
        return sub_pocket
