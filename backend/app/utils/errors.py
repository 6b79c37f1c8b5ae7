from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from fastapi import status
from sqlalchemy.exc import DBAPIError

from app.utils.logger import logger


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSACTION = "transaction"
    TOKEN_INVALID = "token_invalid"
    TOKEN_EXPIRED = "token_expired"
    STORAGE = "storage"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


KIND_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.TRANSACTION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.STORAGE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """Domain fault raised below the HTTP layer."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class ApiError(Exception):
    """Fault rendered as ``{"traceId": code, "msg": message}``."""

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


@contextmanager
def api_errors(code: Enum) -> Iterator[None]:
    """Translate AppError raised inside the block into an ApiError tagged with ``code``."""
    try:
        yield
    except AppError as e:
        raise ApiError(KIND_STATUS[e.kind], str(code.value), e.message) from e


UNIQUE_CONSTRAINT_MESSAGES = {
    "users_username_key": "username already exists",
    "users_email_key": "email already exists",
}

SQLSTATE_QUERY_CANCELED = "57014"
SQLSTATE_UNIQUE_VIOLATION = "23505"


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _constraint_name(exc: DBAPIError) -> Optional[str]:
    diag = getattr(getattr(exc, "orig", None), "diag", None)
    return getattr(diag, "constraint_name", None)


def translate_db_error(exc: Exception, step: str, kind: ErrorKind = ErrorKind.INTERNAL) -> AppError:
    """Map a database exception to an AppError describing the failing step.

    Statement timeouts become TIMEOUT and unique violations become CONFLICT;
    anything else keeps ``kind``.
    """
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, DBAPIError):
        state = _sqlstate(exc)
        if state == SQLSTATE_QUERY_CANCELED:
            return AppError(ErrorKind.TIMEOUT, f"{step}: statement timed out")
        if state == SQLSTATE_UNIQUE_VIOLATION:
            constraint = _constraint_name(exc)
            message = UNIQUE_CONSTRAINT_MESSAGES.get(constraint or "", f"{step}: duplicate value")
            return AppError(ErrorKind.CONFLICT, message)
    logger.error(f"{step}: {type(exc).__name__}: {exc}")
    return AppError(kind, f"{step}: {exc}")
