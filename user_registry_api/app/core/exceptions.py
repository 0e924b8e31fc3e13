"""
Domain errors raised by the store and the service layer.

Validation failures are not represented here: malformed requests are
rejected by FastAPI's ``RequestValidationError`` before a service is
called.
"""


class UserRegistryError(Exception):
    """Base class for errors raised by the user registry."""


class NotFoundError(UserRegistryError):
    """No mapping exists for the requested external identifier."""

    def __init__(self, uid: str) -> None:
        super().__init__(f"User with ID {uid} not found")
        self.uid = uid


class StoreError(UserRegistryError):
    """The underlying database reported an I/O or constraint failure."""
