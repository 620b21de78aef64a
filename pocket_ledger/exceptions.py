"""
Custom exception classes and FastAPI exception handlers.

The domain, repository and service layers raise these errors without
importing any HTTP concepts; the handlers registered here translate them
into consistent JSON responses: {"detail": "...", "error_type": "..."}.

Exception hierarchy:
    LedgerAPIError (base)
    ├── ValidationError          — malformed input or wrong lifecycle state
    ├── NotFoundError            — referenced entity doesn't exist for this user
    ├── ConflictError            — uniqueness or dependent-data conflicts
    ├── PersistenceError         — storage failure (details never leave the server)
    ├── DuplicateEmailError      — signup with a registered email
    └── InvalidCredentialsError  — failed login
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class LedgerAPIError(Exception):
    """Base exception for all Pocket Ledger domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class ValidationError(LedgerAPIError):
    """
    Raised for semantically invalid input: non-positive amounts, unknown
    movement types, missing references, or an operation invoked in the
    wrong lifecycle state (e.g. applying a movement that isn't pending).
    """


class NotFoundError(LedgerAPIError):
    """
    Raised when a referenced Movement/Account/Pocket/SubPocket does not
    exist for the requesting user.

    Attributes:
        entity: Human-readable entity kind ("Movement", "Pocket", ...).
        entity_id: The identifier that was looked up.
    """

    def __init__(self, entity: str, entity_id: uuid.UUID | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ConflictError(LedgerAPIError):
    """Raised when a write would violate a uniqueness or dependency rule."""


class PersistenceError(LedgerAPIError):
    """
    Raised when the storage layer fails.

    The original exception is chained (``raise ... from exc``) and logged
    where it happens; the message carried here is deliberately generic.
    """

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Storage operation failed: {operation}")


class DuplicateEmailError(LedgerAPIError):
    """Raised when attempting to register with an email that's already in use."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class InvalidCredentialsError(LedgerAPIError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Invalid email or password")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Each handler maps a domain exception to an HTTP status code and a
    consistent JSON body. Called once during app creation in main.py.
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": exc.detail, "error_type": "validation_error"},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(
        request: Request, exc: NotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": exc.detail, "error_type": "not_found"},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(
        request: Request, exc: ConflictError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.detail, "error_type": "conflict"},
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(
        request: Request, exc: PersistenceError
    ) -> JSONResponse:
        # The operation name stays in the logs; clients get an opaque message
        logger.error("persistence.failed", extra={"extra_fields": {"operation": exc.operation}})
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "persistence_error"},
        )

    @app.exception_handler(DuplicateEmailError)
    async def duplicate_email_handler(
        request: Request, exc: DuplicateEmailError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.detail, "error_type": "duplicate_email"},
        )

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"detail": exc.detail, "error_type": "invalid_credentials"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.exception("request.unhandled_error")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal_error"},
        )
