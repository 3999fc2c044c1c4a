"""
Domain exceptions for the expense API and the handlers that render them.

Every failure leaves the API in one of four shapes: validation (400),
unauthorized (401), not found (404) or an opaque server error (500).
"""
import logging
from typing import Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_SERVER_MESSAGE = "An unexpected error occurred"


class ValidationFailed(ValueError):
    """Raised when request data does not meet validation requirements."""

    def __init__(self, details: List[Dict[str, str]]):
        super().__init__("; ".join(f"{d['param']}: {d['msg']}" for d in details))
        self.details = details

    @classmethod
    def single(cls, param: str, msg: str) -> "ValidationFailed":
        return cls([{"param": param, "msg": msg}])


class AuthenticationFailed(Exception):
    """Raised when no owner identity can be resolved from the request."""

    def __init__(self, message: str = "Token required"):
        super().__init__(message)
        self.message = message


class ExpenseNotFound(LookupError):
    """Raised when an expense does not exist for the calling owner."""


class StorageError(IOError):
    """Raised when the document store fails an operation."""


def _param_name(loc) -> str:
    # loc looks like ("body", "amount") or ("query", "startDate")
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) if parts else "body"


def _clean_message(msg: str) -> str:
    # pydantic prefixes messages raised from validators with "Value error, "
    return msg.split(", ", 1)[1] if msg.startswith("Value error, ") else msg


def validation_details(errors) -> List[Dict[str, str]]:
    return [{"param": _param_name(err.get("loc", ())), "msg": _clean_message(err.get("msg", "Invalid value"))} for err in errors]


async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "validation", "details": exc.details},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "validation", "details": validation_details(exc.errors())},
    )


async def authentication_failed_handler(request: Request, exc: AuthenticationFailed):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": "unauthorized", "message": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def not_found_handler(request: Request, exc: ExpenseNotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "not_found"})


async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "server_error", "message": GENERIC_SERVER_MESSAGE},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "server_error", "message": GENERIC_SERVER_MESSAGE},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationFailed, validation_failed_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AuthenticationFailed, authentication_failed_handler)
    app.add_exception_handler(ExpenseNotFound, not_found_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
