"""Application error definitions."""

from typing import Any, List, Optional


class AppException(Exception):
    def __init__(self, message: str, code: str = "error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationAppException(AppException):
    def __init__(self, message: str = "Invalid data", errors: Optional[List[Any]] = None):
        super().__init__(message=message, code="validation_error")
        self.errors = errors or []


class RepositoryError(AppException):
    """Raised by repositories when the underlying storage fails."""

    def __init__(self, message: str = "Storage failure"):
        super().__init__(message=message, code="repository_error")
