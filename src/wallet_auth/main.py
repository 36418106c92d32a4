"""Main entry point for the Wallet Auth application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from wallet_auth import __version__
from wallet_auth.api.v1 import auth_router, users_router
from wallet_auth.api.v1.errors import register_error_handlers
from wallet_auth.core.settings import settings
from wallet_auth.services.nonce_store import get_nonce_store
from wallet_auth.services.sweeper import NonceSweeper

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Wallet Auth API",
    description="Wallet challenge-response authentication",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_error_handlers(app)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.nonce_sweep_interval_seconds > 0:
        sweeper = NonceSweeper(get_nonce_store(), settings.nonce_sweep_interval_seconds)
        await sweeper.start()
        app.state.nonce_sweeper = sweeper
        logger.info(
            "Nonce sweeper running every %.1fs", settings.nonce_sweep_interval_seconds
        )
    else:
        app.state.nonce_sweeper = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    sweeper: NonceSweeper | None = getattr(app.state, "nonce_sweeper", None)
    if sweeper:
        await sweeper.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "description": "Wallet challenge-response authentication",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("wallet_auth.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
