"""Errors raised by the repository.

Missing records are never an error: lookups and updates return ``None``.
Only conflicts and rejected state changes raise.
"""


class StorageError(Exception):
    """Base class for repository errors."""


class UsernameAlreadyExists(StorageError):
    """Raised when a username is already held by another user."""

    def __init__(self, username: str):
        self.username = username
        super().__init__("Username already exists")


class InvalidStatusTransition(StorageError, ValueError):
    """Raised when a status update is not allowed by the entity's state machine."""

    def __init__(self, entity: str, current: str, requested: str):
        self.entity = entity
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change {entity} status from '{current}' to '{requested}'"
        )
