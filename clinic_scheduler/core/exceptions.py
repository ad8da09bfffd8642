"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500, context: dict[str, Any] | None = None):
        """Initialize exception with message, status code and optional context."""
        self.message = message
        self.status_code = status_code
        self.context = context or {}
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource missing or owned by another clinic."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class ConflictException(AppException):
    """Time slot already taken by another active appointment."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class BusinessRuleException(AppException):
    """A scheduling or lifecycle rule rejected the operation."""

    def __init__(self, message: str = "Business rule violation", context: dict[str, Any] | None = None):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422, context=context)
