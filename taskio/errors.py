"""Centralized exception handlers.

Route handlers return early with HTTPException for the failures they can
name. Anything that escapes them lands here: known categories map to their
status codes and everything else becomes a generic 500. Clients never see
internal details; those only go to the log.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from jose import JWTError
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


def _field_messages(exc: RequestValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        # Drop the "body"/"query" prefix from the location
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = error.get("msg", "Invalid value")
        messages.append(f"{field}: {msg}" if field else msg)
    return messages


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return field-level messages for request validation errors.

    Response format:
        {"detail": "Validation error", "errors": ["field: message", ...]}
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation error", "errors": _field_messages(exc)},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Map unique-constraint violations from the store to 409."""
    logger.warning(
        "Integrity error",
        extra={"path": request.url.path, "error": str(exc.orig)},
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Duplicate value"},
    )


async def token_error_handler(request: Request, exc: JWTError) -> JSONResponse:
    logger.info("Token error", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": "Invalid or expired token"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the centralized handlers to the application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(JWTError, token_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
