"""
Error taxonomy and the JSON envelopes they are reported with.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ShowcaseError(Exception):
    status_code = 500
    error = "An internal server error occurred."

    def __init__(self, error: Optional[str] = None):
        super().__init__(error or self.error)
        if error:
            self.error = error

    def payload(self) -> dict:
        return {"success": False, "error": self.error}


class ValidationFailed(ShowcaseError):
    status_code = 400
    error = "The submitted data is invalid."

    def __init__(self, details: list[str], error: Optional[str] = None):
        super().__init__(error)
        self.details = list(details)

    def payload(self) -> dict:
        return {**super().payload(), "details": self.details}


class InvalidIdentifier(ShowcaseError):
    status_code = 400
    error = "Invalid portfolio ID."


class NotFound(ShowcaseError):
    status_code = 404
    error = "Portfolio not found."


class ConfigurationError(ShowcaseError):
    status_code = 500
    error = "The service is not configured."


class RateLimited(ShowcaseError):
    status_code = 429
    error = "Too many requests. Please try again later."


def format_request_errors(exc: RequestValidationError) -> list[str]:
    details = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return details


def install_error_handlers(app: FastAPI, *, expose_internal: bool) -> None:
    """Register handlers that render every failure as ``{success: false, ...}``."""

    @app.exception_handler(ShowcaseError)
    async def _showcase_error(request: Request, exc: ShowcaseError):
        return JSONResponse(exc.payload(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {
                "success": False,
                "error": ValidationFailed.error,
                "details": format_request_errors(exc),
            },
            status_code=400,
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                {
                    "success": False,
                    "error": "The requested endpoint was not found.",
                    "path": request.url.path,
                },
                status_code=404,
            )
        return JSONResponse(
            {"success": False, "error": str(exc.detail)},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"success": False, "error": ShowcaseError.error}
        if expose_internal:
            body["message"] = str(exc)
        return JSONResponse(body, status_code=500)
