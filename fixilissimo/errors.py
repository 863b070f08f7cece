"""
fixilissimo/errors.py

Error taxonomy shared by the store, the services and the HTTP layer.

- ValidationError  -> 400, message names the offending field
- NotFoundError    -> 404, missing and not-owned look the same
- ConflictError    -> 400, duplicate keys and blocked deletes (with projectCount)
- UnavailableError -> 500, generic message, storage details stay server-side

Every error body leaving the API has the shape {"error": str} plus optional
extra keys (projectCount for delete guards).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException


class FixitError(Exception):
    """Base class for errors the API knows how to render."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(FixitError):
    status_code = 400


class NotFoundError(FixitError):
    status_code = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(FixitError):
    status_code = 400

    def __init__(self, message: str, project_count: Optional[int] = None):
        super().__init__(message)
        self.project_count = project_count

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.project_count is not None:
            body["projectCount"] = self.project_count
        return body


class UnavailableError(FixitError):
    status_code = 500

    def __init__(self, message: str = "Database error"):
        super().__init__(message)


def _format_validation_error(exc: RequestValidationError) -> str:
    """Render the first pydantic error as 'field: message'."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    # loc looks like ("body", "budget") or ("query", "status")
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    field = ".".join(loc)
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def install_error_handlers(app: FastAPI) -> None:
    """Register handlers so every error response uses the {error} body."""

    @app.exception_handler(FixitError)
    async def fixit_error_handler(request: Request, exc: FixitError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(status_code=exc.status_code, content={"error": detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _format_validation_error(exc)})
