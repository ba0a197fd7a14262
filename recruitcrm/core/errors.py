"""
Error taxonomy and the handlers that render it.

Every error leaves the API as ``{"error": message}``; validation problems are
400, upstream failures 500 with the upstream message attached, uniqueness
conflicts 409 with the datastore's conflict code.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from recruitcrm.core.logging import get_logger

logger = get_logger("errors")

# Postgres unique_violation, surfaced unchanged to clients
UNIQUE_VIOLATION = "23505"


class APIError(Exception):
    """An error carrying its HTTP status and client-facing message."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        extra: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.extra = extra or {}
        self.headers = headers

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.code:
            body["code"] = self.code
        body.update(self.extra)
        return body


def _db_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def is_unique_violation(exc: SQLAlchemyError) -> bool:
    if not isinstance(exc, IntegrityError):
        return False
    if getattr(exc.orig, "pgcode", None) == UNIQUE_VIOLATION:
        return True
    message = _db_message(exc).lower()
    return "unique constraint" in message or "duplicate key" in message


def database_error(exc: SQLAlchemyError, action: str, conflict_message: Optional[str] = None) -> APIError:
    """Map a datastore failure to the API error the client should see."""
    if conflict_message and is_unique_violation(exc):
        return APIError(status.HTTP_409_CONFLICT, conflict_message, code=UNIQUE_VIOLATION)

    logger.error(f"{action}: {_db_message(exc)}")
    return APIError(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        f"{action}: {_db_message(exc)}",
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def setup_error_handlers(app: FastAPI) -> None:
    """Register the JSON error renderers on the application."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": _validation_message(exc)},
        )
