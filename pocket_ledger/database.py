"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - engine: The async database engine (connection pool for production DBs)
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - MicroUnits: Column type for monetary values (see below)
  - get_db(): FastAPI dependency that provides a session per request

Session lifecycle:
  Each API request gets its own session via get_db(). Mutating use cases
  commit their primary write themselves before running the balance
  cascade (so a failed cascade can never undo it); whatever is still
  pending when the request finishes is committed on success and rolled
  back on exception.

Why MicroUnits?
  Amounts carry up to 6 decimal places (fractional share quantities).
  SQLite has no exact decimal type and would round-trip Decimals through
  float, so amounts are stored as integer millionths in a BIGINT column
  and handed back to Python as Decimal. Integer storage keeps every sum
  exact, the same way integer cents do for plain currency.
"""

from decimal import Decimal

from sqlalchemy import BigInteger
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from pocket_ledger.config import settings


# Number of fractional digits stored for every monetary value
AMOUNT_SCALE = 6
MICRO = Decimal(1).scaleb(-AMOUNT_SCALE)


# echo=True in debug mode logs all SQL statements
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# expire_on_commit=False prevents lazy-load errors after commit: the
# cascade keeps using records loaded before the primary write committed.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


class MicroUnits(TypeDecorator):
    """Decimal amount persisted as an integer count of millionths."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(Decimal(value).scaleb(AMOUNT_SCALE).to_integral_value())

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value).scaleb(-AMOUNT_SCALE)


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
