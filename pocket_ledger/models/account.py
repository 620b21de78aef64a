"""
Account model — a named, single-currency container of pockets.

Balance management:
  `balance` is a cached projection, not a ledger. It always equals the
  sum of the cached balances of the account's pockets, and it is only
  ever replaced wholesale by the recalculation service (never patched
  incrementally). If it drifts, the full recalculation sweep rebuilds it
  from the movement log.

  Unlike a bank account the balance may go negative: expenses recorded
  before the matching income are legitimate.

Name + currency identify an account for the user. That pair is what
orphaned movements remember about a deleted account, and what the
restore workflow matches on when the account is recreated.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from pocket_ledger.database import Base, MicroUnits


class Account(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("user_id", "name", "currency", name="uq_accounts_user_name_currency"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Owner of this account
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # ISO 4217 currency code
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD",
    )

    # Cached sum of the pockets' balances
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
