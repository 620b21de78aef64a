"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Logging — structured JSON lines with a per-request id
  2. Lifespan manager — handles startup/shutdown (DB table creation, cleanup)
  3. CORS middleware — allows frontend origins to make cross-origin requests
  4. Exception handlers — maps domain errors to HTTP responses
  5. Router registration — mounts all API endpoint groups

Running locally:
    uvicorn pocket_ledger.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pocket_ledger.config import settings
from pocket_ledger.database import engine, Base
from pocket_ledger.exceptions import register_exception_handlers
from pocket_ledger.observability import install_request_logging, setup_logging
from pocket_ledger.routers import accounts, auth, movements, pockets, sub_pockets

import pocket_ledger.models  # noqa: F401  (registers every table on Base.metadata)


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      Creates all database tables if they don't exist.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Personal-finance ledger: accounts, pockets, movements and derived balances",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_request_logging(app)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
app.include_router(pockets.router, prefix="/pockets", tags=["Pockets"])
app.include_router(sub_pockets.router, prefix="/sub-pockets", tags=["Sub-pockets"])
app.include_router(movements.router, prefix="/movements", tags=["Movements"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe for deployment orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
