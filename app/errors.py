"""Custom exceptions and centralized FastAPI error handlers."""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("errors")


class RotationServiceError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class UpstreamUnavailableError(RotationServiceError):
    """The catalog API failed on every tier of a query cascade."""

    def __init__(self, message: str = "Catalog API unavailable", cause: Exception = None):
        super().__init__(message, status_code=502)
        self.cause = cause


class StorageFullError(RotationServiceError):
    """A key-value store refused a write because its quota is used up."""

    def __init__(self, key: str, size: int, quota: Optional[int] = None):
        limit = f"quota {quota}" if quota is not None else "store full"
        super().__init__(
            f"Store quota exceeded writing {key} ({size} bytes, {limit})",
            status_code=507,
        )
        self.key = key


class CacheCorruptError(RotationServiceError):
    """A stored cache record could not be decoded."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Corrupt cache record {key}: {reason}")
        self.key = key


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(RotationServiceError)
    async def handle_service_error(_request: Request, exc: RotationServiceError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
        )
