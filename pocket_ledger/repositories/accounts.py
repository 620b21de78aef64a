"""SQLAlchemy implementation of the AccountStore contract."""

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.models import Account
from pocket_ledger.repositories.base import translate_storage_errors


class SqlAccountStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, account_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Account]:
        with translate_storage_errors("find account"):
            result = await self.db.execute(
                select(Account).where(Account.id == account_id, Account.user_id == user_id)
            )
        return result.scalar_one_or_none()

    async def find_all(self, user_id: uuid.UUID) -> list[Account]:
        with translate_storage_errors("list accounts"):
            result = await self.db.execute(
                select(Account)
                .where(Account.user_id == user_id)
                .order_by(Account.created_at)
            )
        return list(result.scalars().all())

    async def find_by_name_and_currency(
        self, name: str, currency: str, user_id: uuid.UUID
    ) -> Optional[Account]:
        with translate_storage_errors("find account by name"):
            result = await self.db.execute(
                select(Account).where(
                    Account.user_id == user_id,
                    Account.name == name,
                    Account.currency == currency,
                )
            )
        return result.scalar_one_or_none()

    async def save(self, account: Account) -> Account:
        with translate_storage_errors("save account"):
            self.db.add(account)
            await self.db.flush()
        return account

    async def delete(self, account: Account) -> None:
        with translate_storage_errors("delete account"):
            await self.db.delete(account)
            await self.db.flush()

    async def update_balance(
        self, account_id: uuid.UUID, balance: Decimal, user_id: uuid.UUID
    ) -> Optional[Account]:
        account = await self.find_by_id(account_id, user_id)
        if account is None:
            return None
        with translate_storage_errors("update account balance"):
            account.balance = balance
            await self.db.flush()
        return account
