"""
Movement model — persisted form of the Movement domain entity.

Every income or expense event is one row. The row carries the same
lifecycle flags as the entity:

  - is_pending: recorded but excluded from balances until applied
  - is_orphaned: the owning account/pocket was deleted; the row keeps its
    (now dangling) parent ids plus a human-readable snapshot of the
    parent (account name, currency, pocket name) used by the restore
    workflow

Why no foreign keys on the parent ids:
  A movement is never cascade-deleted with its parents, it outlives them
  as an orphan. A foreign key would either block the parent delete or
  null the ids out, and both would lose the information restore needs.
  The ids are plain indexed UUID columns instead.

Why amount is always positive:
  The direction lives in `type` (income or expense, normal or fixed).
  Signed amounts are derived, never stored.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Boolean, Date, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from pocket_ledger.database import Base, MicroUnits


class Movement(Base):
    __tablename__ = "movements"

    __table_args__ = (
        # Amount must always be positive — direction is indicated by type
        CheckConstraint("amount > 0", name="ck_movements_positive_amount"),
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

    # normal_income, normal_expense, fixed_income or fixed_expense
    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    account_id: Mapped[uuid.UUID | None] = mapped_column(
        nullable=True,
        index=True,
    )

    pocket_id: Mapped[uuid.UUID | None] = mapped_column(
        nullable=True,
        index=True,
    )

    # Only set for movements of a fixed pocket
    sub_pocket_id: Mapped[uuid.UUID | None] = mapped_column(
        nullable=True,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(
        MicroUnits,
        nullable=False,
    )

    # The date the user assigns the movement to, independent of created_at
    displayed_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )

    notes: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    is_pending: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
    )

    is_orphaned: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
    )

    # Parent snapshot, populated only while orphaned
    orphaned_account_name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    orphaned_account_currency: Mapped[str | None] = mapped_column(
        String(3),
        nullable=True,
    )
    orphaned_pocket_name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
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
