"""
Security utilities: password hashing and access tokens.

1. PASSWORD HASHING (Argon2)
   - Passwords are never stored in plaintext
   - passlib's CryptContext with the argon2 scheme (Argon2id); old hashes
     keep verifying if the scheme list ever changes ("deprecated='auto'")

2. ACCESS TOKENS (JWT)
   - Login and signup return a token signed with SECRET_KEY (HS256)
   - "sub" carries the user id, which becomes the ownership scope of
     every ledger query
   - Tokens expire after ACCESS_TOKEN_EXPIRE_MINUTES
"""

from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from pocket_ledger.config import settings


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time check of a password against a stored Argon2 hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (must include "sub").
        expires_delta: Custom lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.

    Raises:
        JWTError: If the token is expired, tampered with, or invalid.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
