"""Domain error taxonomy.

Services raise these; ``main.py`` turns them into the JSON envelope with the
matching HTTP status.
"""
from fastapi import status


class AppError(Exception):
    """Base class for errors attributable to a request."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "The requested resource was not found"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not enough permissions"


class InvalidReference(AppError):
    """A reference field points at a missing record or one of the wrong role."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid reference"


class InvalidState(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed in the current state"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
