"""One set of stores bound to a single database session."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.repositories.accounts import SqlAccountStore
from pocket_ledger.repositories.base import (
    AccountStore,
    MovementStore,
    PocketStore,
    ReminderStore,
    SubPocketStore,
)
from pocket_ledger.repositories.movements import SqlMovementStore
from pocket_ledger.repositories.pockets import SqlPocketStore, SqlSubPocketStore
from pocket_ledger.repositories.reminders import SqlReminderStore


@dataclass
class Repositories:
    movements: MovementStore
    accounts: AccountStore
    pockets: PocketStore
    sub_pockets: SubPocketStore
    reminders: ReminderStore

    @classmethod
    def for_session(cls, db: AsyncSession) -> "Repositories":
        return cls(
            movements=SqlMovementStore(db),
            accounts=SqlAccountStore(db),
            pockets=SqlPocketStore(db),
            sub_pockets=SqlSubPocketStore(db),
            reminders=SqlReminderStore(db),
        )
