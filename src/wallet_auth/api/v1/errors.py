"""Translation of authentication failures into HTTP responses."""

import logging
from typing import cast

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wallet_auth.core.errors import AuthError

logger = logging.getLogger(__name__)


async def auth_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any :class:`AuthError` as ``{"error": message}`` with its status."""
    error = cast(AuthError, exc)
    if error.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, error.message)
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
