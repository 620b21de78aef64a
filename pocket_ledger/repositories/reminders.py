"""SQLAlchemy implementation of the ReminderStore contract."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.models import Movement, Reminder
from pocket_ledger.repositories.base import translate_storage_errors


class SqlReminderStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_linked_movement_id(
        self, movement_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[Reminder]:
        with translate_storage_errors("find reminders by movement"):
            result = await self.db.execute(
                select(Reminder).where(
                    Reminder.user_id == user_id,
                    Reminder.linked_movement_id == movement_id,
                )
            )
        return list(result.scalars().all())

    async def unlink_movement(self, movement_id: uuid.UUID, user_id: uuid.UUID) -> int:
        """Mark every reminder paid by this movement as unpaid again."""
        reminders = await self.find_by_linked_movement_id(movement_id, user_id)
        with translate_storage_errors("unlink reminders"):
            for reminder in reminders:
                reminder.is_paid = False
                reminder.linked_movement_id = None
            await self.db.flush()
        return len(reminders)

    async def unlink_account_movements(self, account_id: uuid.UUID, user_id: uuid.UUID) -> int:
        """Un-pay every reminder paid by a movement of this account."""
        account_movements = select(Movement.id).where(
            Movement.user_id == user_id,
            Movement.account_id == account_id,
        )
        with translate_storage_errors("unlink reminders by account"):
            result = await self.db.execute(
                select(Reminder).where(
                    Reminder.user_id == user_id,
                    Reminder.linked_movement_id.in_(account_movements),
                )
            )
            reminders = list(result.scalars().all())
            for reminder in reminders:
                reminder.is_paid = False
                reminder.linked_movement_id = None
            await self.db.flush()
        return len(reminders)
