"""
Pocket and SubPocket models — subdivisions of an account.

A pocket is either:
  - "normal": movements reference it directly, and its cached balance is
    the aggregate of those movements.
  - "fixed": it holds sub-pockets (one per recurring expense or income
    stream). Movements reference a sub-pocket, and the pocket's cached
    balance is the sum of its sub-pockets' cached balances.

Each user has at most one fixed pocket. Pocket names are unique within
their account, because the pocket name is part of what an orphaned
movement remembers about its deleted parent.

Ownership is exclusive: deleting an account deletes its pockets, and
deleting a pocket deletes its sub-pockets. Movements are never deleted
by those cascades; they are orphaned instead.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Boolean,
    Integer,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from pocket_ledger.database import Base, MicroUnits


class PocketKind(str, enum.Enum):
    NORMAL = "normal"
    FIXED = "fixed"


class Pocket(Base):
    __tablename__ = "pockets"

    __table_args__ = (
        UniqueConstraint("account_id", "name", name="uq_pockets_account_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # "normal" or "fixed" (stored as the plain string value)
    kind: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=PocketKind.NORMAL.value,
    )

    # Inherited from the owning account at creation time
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )

    balance: Mapped[Decimal] = mapped_column(
        MicroUnits,
        nullable=False,
        default=Decimal("0"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def is_fixed(self) -> bool:
        return self.kind == PocketKind.FIXED.value


class SubPocket(Base):
    __tablename__ = "sub_pockets"

    __table_args__ = (
        CheckConstraint("value_total > 0", name="ck_sub_pockets_positive_value_total"),
        CheckConstraint("periodicity_months >= 1", name="ck_sub_pockets_periodicity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    # Always a fixed pocket (enforced by the sub-pocket service)
    pocket_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pockets.id"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Total cost of the recurring item over one period
    value_total: Mapped[Decimal] = mapped_column(
        MicroUnits,
        nullable=False,
    )

    # Length of the period in months (12 = yearly)
    periodicity_months: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    balance: Mapped[Decimal] = mapped_column(
        MicroUnits,
        nullable=False,
        default=Decimal("0"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
