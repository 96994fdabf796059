"""Attachment and blob storage exceptions."""

from typing import Any

from .base import BaseAppException, ErrorCode


class StorageError(BaseAppException):
    """Raised when a blob store put/get/delete fails."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=503,
            error_code=ErrorCode.STORAGE_FAILURE,
            details=details,
        )


class PartialCascadeFailureError(BaseAppException):
    """Raised when an owner cannot be deleted because a file could not be removed."""

    def __init__(
        self,
        message: str = "Could not remove every attachment; owner was not deleted",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=409,
            error_code=ErrorCode.PARTIAL_CASCADE_FAILURE,
            details=details,
        )
