"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table when the app creates them at startup
  2. Other modules can import from pocket_ledger.models directly

The domain entity with the same name as the Movement model lives in
pocket_ledger.domain.movement; the repositories map between the two.
"""

from pocket_ledger.models.user import User  # noqa: F401
from pocket_ledger.models.account import Account  # noqa: F401
from pocket_ledger.models.pocket import Pocket, PocketKind, SubPocket  # noqa: F401
from pocket_ledger.models.movement import Movement  # noqa: F401
from pocket_ledger.models.reminder import Reminder  # noqa: F401
