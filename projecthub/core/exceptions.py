"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class PortalError(Exception):
    """Base exception for projecthub."""

    status_code: int = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class UnauthorizedError(PortalError):
    """No authenticated actor."""

    status_code = 401


class ForbiddenError(PortalError):
    """Authenticated, but the actor lacks the permission for this operation."""

    status_code = 403


class NotFoundError(PortalError):
    """Resource not found."""

    status_code = 404


class ValidationError(PortalError):
    """Validation error."""

    status_code = 422


class DependencyFailureError(PortalError):
    """The backing store (or another collaborator) failed."""

    status_code = 503
