"""Shared exceptions module."""

from typing import Optional


class TeamCornerException(Exception):
    """Base exception for the Team Corner backend."""

    pass


class AuthorizationDenied(TeamCornerException):
    """Raised when an access rule rejects an operation on a list or field."""

    def __init__(
        self,
        message: Optional[str] = "You do not have access to this resource",
        list_key: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        self.message = message
        self.list_key = list_key
        self.operation = operation
        super().__init__(self.message)


class NotFoundException(TeamCornerException):
    """Raised when a record is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        self.message = message
        super().__init__(self.message)


class DuplicateValueException(TeamCornerException):
    """Raised when a write would break a unique field constraint."""

    def __init__(self, field_name: str, message: str = "Value must be unique"):
        self.field_name = field_name
        self.message = message
        super().__init__(f"{message}: {field_name}")
