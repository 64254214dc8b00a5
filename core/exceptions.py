from __future__ import annotations

from fastapi import status

SERVER_ERROR_MESSAGE = "Server error. Please try again."


class AppBaseException(Exception):
    """Base for all application-level exceptions."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        """Message safe to hand back to the caller; server faults stay opaque."""
        if self.http_status >= 500:
            return SERVER_ERROR_MESSAGE
        return self.message


class ValidationException(AppBaseException):
    http_status = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class NotFoundException(AppBaseException):
    http_status = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class StorageError(AppBaseException):
    """The local predictions file could not be written."""
    error_code = "STORAGE_ERROR"


class UpstreamError(AppBaseException):
    """The remote content store was unreachable or answered with garbage."""
    error_code = "UPSTREAM_FAILURE"


class StoreConflict(UpstreamError):
    """The remote file changed between our read and our write."""
    error_code = "STORE_CONFLICT"
