"""
Movement domain entity — a single income or expense event.

Movements are the source of truth for every balance in the system: the
cached balances on accounts, pockets and sub-pockets are projections
rebuilt from them. This module has no database or HTTP dependencies; the
repositories map ORM rows to and from this class.

Invariants (checked on construction and after every mutation):
  - amount is a positive Decimal with at most 6 fractional digits
  - type is one of the four MovementType variants
  - displayed_date is a calendar date
  - an attached movement references both an account and a pocket
  - an orphaned movement carries a full parent snapshot; missing snapshot
    fields are filled with "Unknown"/"USD" instead of rejecting the record,
    so rows orphaned before the snapshot existed stay readable

Two independent lifecycle flags live on every movement:

  pending  <->  applied     (user intent: exclude from balances until applied)
  attached <->  orphaned    (parent account/pocket was deleted, then restored)

Each axis has its own guarded transition methods; neither looks at the other.
"""

import dataclasses
import enum
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pocket_ledger.domain.currency import DEFAULT_CURRENCY
from pocket_ledger.exceptions import ValidationError


MAX_AMOUNT_PLACES = 6
UNKNOWN_PARENT_NAME = "Unknown"

# Marks "argument not given" where None is a meaningful value
UNSET: Any = object()


class MovementType(str, enum.Enum):
    """
    The four movement variants.

    Normal variants belong to normal pockets; fixed variants are used for
    recurring money tracked in the sub-pockets of a fixed pocket. Only the
    income/expense split matters for balances.
    """
    NORMAL_INCOME = "normal_income"
    NORMAL_EXPENSE = "normal_expense"
    FIXED_INCOME = "fixed_income"
    FIXED_EXPENSE = "fixed_expense"

    @property
    def is_income(self) -> bool:
        return self in (MovementType.NORMAL_INCOME, MovementType.FIXED_INCOME)

    @property
    def is_expense(self) -> bool:
        return not self.is_income


def _coerce_type(value) -> MovementType:
    try:
        return MovementType(value)
    except ValueError:
        valid = ", ".join(t.value for t in MovementType)
        raise ValidationError(f"Invalid movement type - must be one of: {valid}")


def _coerce_amount(value) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(value)
        except InvalidOperation:
            raise ValidationError("Movement amount must be a number")
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        raise ValidationError("Movement amount must be a number")

    if not amount.is_finite():
        raise ValidationError("Movement amount must be a number")
    return amount


@dataclass
class Movement:
    id: uuid.UUID
    type: MovementType
    account_id: Optional[uuid.UUID]
    pocket_id: Optional[uuid.UUID]
    amount: Decimal
    displayed_date: date
    notes: Optional[str] = None
    sub_pocket_id: Optional[uuid.UUID] = None
    is_pending: bool = False
    is_orphaned: bool = False
    orphaned_account_name: Optional[str] = None
    orphaned_account_currency: Optional[str] = None
    orphaned_pocket_name: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.type = _coerce_type(self.type)
        self.amount = _coerce_amount(self.amount)
        if isinstance(self.displayed_date, datetime):
            self.displayed_date = self.displayed_date.date()
        self._validate()

    def _validate(self) -> None:
        if self.amount <= 0:
            raise ValidationError("Movement amount must be positive")
        if self.amount.normalize().as_tuple().exponent < -MAX_AMOUNT_PLACES:
            raise ValidationError(
                f"Movement amount supports at most {MAX_AMOUNT_PLACES} decimal places"
            )

        if not isinstance(self.displayed_date, date):
            raise ValidationError("Movement must have a valid displayed date")

        if self.is_orphaned:
            # Rows orphaned before the snapshot existed get neutral defaults
            if not self.orphaned_account_name:
                self.orphaned_account_name = UNKNOWN_PARENT_NAME
            if not self.orphaned_account_currency:
                self.orphaned_account_currency = DEFAULT_CURRENCY
            if not self.orphaned_pocket_name:
                self.orphaned_pocket_name = UNKNOWN_PARENT_NAME
        else:
            if self.account_id is None:
                raise ValidationError("Movement must belong to an account")
            if self.pocket_id is None:
                raise ValidationError("Movement must belong to a pocket")

    # ------------------------------------------------------------------
    # Sign
    # ------------------------------------------------------------------

    @property
    def is_income(self) -> bool:
        return self.type.is_income

    @property
    def is_expense(self) -> bool:
        return self.type.is_expense

    @property
    def signed_amount(self) -> Decimal:
        """+amount for income variants, -amount for expense variants."""
        return self.amount if self.is_income else -self.amount

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def copy(self) -> "Movement":
        """Independent copy, used to keep the pre-update state around."""
        return dataclasses.replace(self)

    def update(
        self,
        type: Optional[MovementType] = None,
        amount: Optional[Decimal] = None,
        displayed_date: Optional[date] = None,
        notes: Optional[str] = None,
        sub_pocket_id: Optional[uuid.UUID] = UNSET,
        account_id: Optional[uuid.UUID] = None,
        pocket_id: Optional[uuid.UUID] = None,
    ) -> None:
        """
        Apply a partial update. Arguments left as None are unchanged,
        except sub_pocket_id where an explicit None detaches the movement
        from its sub-pocket.

        The candidate state is validated before anything is assigned, so a
        rejected update leaves the movement untouched.
        """
        changes = {
            name: value
            for name, value in (
                ("type", type),
                ("amount", amount),
                ("displayed_date", displayed_date),
                ("notes", notes),
                ("account_id", account_id),
                ("pocket_id", pocket_id),
            )
            if value is not None
        }
        if sub_pocket_id is not UNSET:
            changes["sub_pocket_id"] = sub_pocket_id

        candidate = dataclasses.replace(self, **changes)
        for name in changes:
            setattr(self, name, getattr(candidate, name))

    # ------------------------------------------------------------------
    # Pending <-> applied
    # ------------------------------------------------------------------

    def mark_as_pending(self) -> None:
        if self.is_pending:
            raise ValidationError("Movement is already pending")
        self.is_pending = True

    def apply_pending(self) -> None:
        if not self.is_pending:
            raise ValidationError("Movement is not pending")
        self.is_pending = False

    # ------------------------------------------------------------------
    # Attached <-> orphaned
    # ------------------------------------------------------------------

    def mark_as_orphaned(
        self,
        account_name: str,
        account_currency: str,
        pocket_name: str,
    ) -> None:
        """
        Detach from a deleted parent. The (now dangling) account/pocket ids
        are kept; the snapshot is what the restore workflow matches on.
        """
        if self.is_orphaned:
            raise ValidationError("Movement is already orphaned")
        self.is_orphaned = True
        self.orphaned_account_name = account_name
        self.orphaned_account_currency = account_currency
        self.orphaned_pocket_name = pocket_name
        self._validate()

    def restore_from_orphaned(
        self,
        account_id: uuid.UUID,
        pocket_id: uuid.UUID,
        sub_pocket_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Rebind to a live parent set and drop the snapshot."""
        if not self.is_orphaned:
            raise ValidationError("Movement is not orphaned")
        if account_id is None or pocket_id is None:
            raise ValidationError("Restoring a movement requires an account and a pocket")
        self.is_orphaned = False
        self.account_id = account_id
        self.pocket_id = pocket_id
        self.sub_pocket_id = sub_pocket_id
        self.orphaned_account_name = None
        self.orphaned_account_currency = None
        self.orphaned_pocket_name = None
