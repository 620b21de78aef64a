"""
Authentication service — signup and login business logic.

Signup flow:
  1. Check if email is already registered
  2. Hash the password with Argon2id
  3. Create the User
  4. Return a JWT token so the user is immediately logged in

Login flow:
  1. Look up user by email
  2. Verify password against stored hash
  3. Return a JWT token

Login returns the same error for "wrong password", "email not found" and
"deactivated" to prevent user enumeration.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.exceptions import DuplicateEmailError, InvalidCredentialsError
from pocket_ledger.models.user import User
from pocket_ledger.security import hash_password, verify_password, create_access_token


logger = logging.getLogger(__name__)


async def signup(
    db: AsyncSession,
    email: str,
    password: str,
) -> tuple[User, str]:
    """
    Register a new user.

    Returns:
        Tuple of (User instance, JWT token string).

    Raises:
        DuplicateEmailError: If the email is already registered.
    """
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise DuplicateEmailError(email)

    user = User(email=email, hashed_password=hash_password(password))
    db.add(user)
    await db.flush()

    logger.info("user.signed_up", extra={"extra_fields": {"user_id": str(user.id)}})
    token = create_access_token(data={"sub": str(user.id)})
    return user, token


async def login(
    db: AsyncSession,
    email: str,
    password: str,
) -> tuple[User, str]:
    """
    Authenticate a user and return a JWT token.

    Raises:
        InvalidCredentialsError: Unknown email, wrong password or
            deactivated user.
    """
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.hashed_password) or not user.is_active:
        raise InvalidCredentialsError()

    token = create_access_token(data={"sub": str(user.id)})
    return user, token
