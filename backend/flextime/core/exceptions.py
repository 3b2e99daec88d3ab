"""
Domain errors and the JSON exception handlers that expose them over HTTP.

Handlers never leak stack traces to clients; unexpected failures are logged
with ``logger.exception`` and answered with a generic 500.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class FlexTimeError(Exception):
    """Base class for domain errors raised outside the pure core."""

    status_code: int = status.HTTP_400_BAD_REQUEST


class UnknownRollupError(FlexTimeError):
    def __init__(self, kind: str, valid: list[str]) -> None:
        self.kind = kind
        self.valid = valid
        super().__init__(
            f"Unknown aggregation type: {kind}. Valid types: {', '.join(valid)}"
        )


class ClientNotFoundError(FlexTimeError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Client not found: {email}")


class NoGroupsForClientError(FlexTimeError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"No groups found for client: {email}")


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
    )


async def _flextime_error_handler(_request: Request, exc: FlexTimeError) -> JSONResponse:
    logger.info("Request rejected: %s", exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(FlexTimeError, _flextime_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
