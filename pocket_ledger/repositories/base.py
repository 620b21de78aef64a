"""
Storage contract consumed by the balance engine and the use cases.

Each store is a typing.Protocol so the recalculation service and the
lifecycle workflows can run against the SQLAlchemy implementations in
production and against in-memory fakes in tests.

Rules every implementation follows:
  - every method takes the owning user's id and filters on it; there is
    no cross-user access through this interface
  - movement queries return domain Movement entities, parent stores
    return ORM records
  - `update_balance` is the only writer of a cached balance
  - storage failures surface as PersistenceError, never as driver errors
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterator, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from pocket_ledger.domain.movement import Movement
from pocket_ledger.exceptions import PersistenceError
from pocket_ledger.models import Account, Pocket, Reminder, SubPocket


logger = logging.getLogger(__name__)


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    """Re-raise driver/ORM failures inside the block as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(
            "storage.failed",
            exc_info=exc,
            extra={"extra_fields": {"operation": operation}},
        )
        raise PersistenceError(operation) from exc


@dataclass
class MovementFilters:
    account_id: Optional[uuid.UUID] = None
    pocket_id: Optional[uuid.UUID] = None
    sub_pocket_id: Optional[uuid.UUID] = None
    is_pending: Optional[bool] = None
    is_orphaned: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MovementStore(Protocol):
    async def save(self, movement: Movement, user_id: uuid.UUID) -> Movement: ...

    async def update(self, movement: Movement, user_id: uuid.UUID) -> Movement: ...

    async def delete(self, movement_id: uuid.UUID, user_id: uuid.UUID) -> None: ...

    async def find_by_id(
        self, movement_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[Movement]: ...

    async def find_all(
        self, user_id: uuid.UUID, filters: Optional[MovementFilters] = None
    ) -> list[Movement]: ...

    async def find_by_account_id(
        self, account_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[Movement]: ...

    async def find_by_pocket_id(
        self, pocket_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[Movement]: ...

    async def find_by_sub_pocket_id(
        self, sub_pocket_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[Movement]: ...

    async def find_by_month(
        self,
        year: int,
        month: int,
        user_id: uuid.UUID,
        filters: Optional[MovementFilters] = None,
    ) -> list[Movement]: ...

    async def find_pending(self, user_id: uuid.UUID) -> list[Movement]: ...

    async def find_orphaned(self, user_id: uuid.UUID) -> list[Movement]: ...

    async def mark_as_orphaned_by_account_id(
        self,
        account_id: uuid.UUID,
        account_name: str,
        account_currency: str,
        user_id: uuid.UUID,
    ) -> int: ...

    async def mark_as_orphaned_by_pocket_id(
        self,
        pocket_id: uuid.UUID,
        account_name: str,
        account_currency: str,
        pocket_name: str,
        user_id: uuid.UUID,
    ) -> int: ...

    async def update_account_id_by_pocket_id(
        self, pocket_id: uuid.UUID, new_account_id: uuid.UUID, user_id: uuid.UUID
    ) -> int: ...

    async def delete_by_account_id(self, account_id: uuid.UUID, user_id: uuid.UUID) -> int: ...

    async def count_by_sub_pocket_id(
        self, sub_pocket_id: uuid.UUID, user_id: uuid.UUID
    ) -> int: ...


class AccountStore(Protocol):
    async def find_by_id(self, account_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Account]: ...

    async def find_all(self, user_id: uuid.UUID) -> list[Account]: ...

    async def find_by_name_and_currency(
        self, name: str, currency: str, user_id: uuid.UUID
    ) -> Optional[Account]: ...

    async def save(self, account: Account) -> Account: ...

    async def delete(self, account: Account) -> None: ...

    async def update_balance(
        self, account_id: uuid.UUID, balance: Decimal, user_id: uuid.UUID
    ) -> Optional[Account]: ...


class PocketStore(Protocol):
    async def find_by_id(self, pocket_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Pocket]: ...

    async def find_all(self, user_id: uuid.UUID) -> list[Pocket]: ...

    async def find_by_account_id(
        self, account_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[Pocket]: ...

    async def find_by_name(
        self, account_id: uuid.UUID, name: str, user_id: uuid.UUID
    ) -> Optional[Pocket]: ...

    async def find_fixed(self, user_id: uuid.UUID) -> Optional[Pocket]: ...

    async def save(self, pocket: Pocket) -> Pocket: ...

    async def delete(self, pocket: Pocket) -> None: ...

    async def update_balance(
        self, pocket_id: uuid.UUID, balance: Decimal, user_id: uuid.UUID
    ) -> Optional[Pocket]: ...


class SubPocketStore(Protocol):
    async def find_by_id(
        self, sub_pocket_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[SubPocket]: ...

    async def find_all(self, user_id: uuid.UUID) -> list[SubPocket]: ...

    async def find_by_pocket_id(
        self, pocket_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[SubPocket]: ...

    async def save(self, sub_pocket: SubPocket) -> SubPocket: ...

    async def delete(self, sub_pocket: SubPocket) -> None: ...

    async def update_balance(
        self, sub_pocket_id: uuid.UUID, balance: Decimal, user_id: uuid.UUID
    ) -> Optional[SubPocket]: ...


class ReminderStore(Protocol):
    async def find_by_linked_movement_id(
        self, movement_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[Reminder]: ...

    async def unlink_movement(self, movement_id: uuid.UUID, user_id: uuid.UUID) -> int: ...

    async def unlink_account_movements(
        self, account_id: uuid.UUID, user_id: uuid.UUID
    ) -> int: ...
