"""
Authentication router — signup and login endpoints.

These are the only public (unauthenticated) endpoints besides /health.
Everything else requires a valid bearer token.

Endpoints:
  POST /auth/signup  — Register a new user and get a token
  POST /auth/login   — Authenticate and get a token

Plaintext passwords exist only in memory during the request; they are
hashed before any database operation and never logged. The request
logging middleware records method, path and status only.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pocket_ledger.database import get_db
from pocket_ledger.schemas.auth import (
    UserSignupRequest,
    UserLoginRequest,
    TokenResponse,
    SignupResponse,
)
from pocket_ledger.services import auth_service

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def signup(
    request: UserSignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new user. Returns a JWT token so the user is logged in
    right away.

    - **email**: Must be a valid email format and not already registered
    - **password**: Minimum 8 characters
    """
    user, token = await auth_service.signup(
        db=db,
        email=request.email,
        password=request.password,
    )
    return SignupResponse(user_id=user.id, email=user.email, token=token)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: UserLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with email and password. Send the token on every other
    request as `Authorization: Bearer <token>`.
    """
    _, token = await auth_service.login(
        db=db,
        email=request.email,
        password=request.password,
    )
    return TokenResponse(token=token)
