# ruff: noqa: D107
"""Base exception classes.

Every failure the core reports maps to one ``ErrorCode`` so callers can
branch on a stable signal instead of parsing messages.
"""

from enum import Enum
from typing import Any

from fastapi import HTTPException


class ErrorCode(str, Enum):
    """Stable, distinguishable error signals."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    INVALID_CRITERIA = "INVALID_CRITERIA"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    PARTIAL_CASCADE_FAILURE = "PARTIAL_CASCADE_FAILURE"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"


class BaseAppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: ErrorCode | str = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = ErrorCode(error_code).value
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={"message": message, "error_code": self.error_code, "details": self.details},
        )

    def __str__(self) -> str:
        return self.message


class NotFoundError(BaseAppException):
    """Exception raised when a resource is not found."""

    def __init__(
        self,
        message: str = "Resource not found",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message, status_code=404, error_code=ErrorCode.NOT_FOUND, details=details
        )


class ForbiddenError(BaseAppException):
    """Exception raised when the authorization policy denies an operation."""

    def __init__(
        self,
        message: str = "This action is unauthorized",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=403,
            error_code=ErrorCode.FORBIDDEN,
            details=details,
        )


class InvalidCriteriaError(BaseAppException):
    """Exception raised for malformed filter, sort or relation arguments."""

    def __init__(
        self,
        message: str = "Invalid query criteria",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=400,
            error_code=ErrorCode.INVALID_CRITERIA,
            details=details,
        )


class ValidationError(BaseAppException):
    """Exception raised when input violates a domain invariant."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=422,
            error_code=ErrorCode.VALIDATION_FAILED,
            details=details,
        )


class PersistenceError(BaseAppException):
    """Exception raised when the database rejects a write."""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            error_code=ErrorCode.PERSISTENCE_FAILURE,
            details=details,
        )
