"""Exceptions for resources app.

Domain errors carry an HTTP status hint so the boundary layer can
translate them into a response without its own lookup table.
"""

from http import HTTPStatus
from typing import ClassVar


class ResourceError(Exception):
    """Base class for errors raised by resource operations."""

    status_code: ClassVar[HTTPStatus] = HTTPStatus.INTERNAL_SERVER_ERROR


class InvalidPathError(ResourceError):
    """Raised when a path is malformed or has the wrong shape."""

    status_code = HTTPStatus.BAD_REQUEST


class ResourceNotFoundError(ResourceError):
    """Raised when a file, directory or move source does not exist."""

    status_code = HTTPStatus.NOT_FOUND


class ResourceAlreadyExistsError(ResourceError):
    """Raised when a create, upload or move target is already taken."""

    status_code = HTTPStatus.CONFLICT


class StorageBackendError(ResourceError):
    """Raised when the object store fails unexpectedly.

    The underlying fault is available both as ``__cause__`` (when raised
    with ``raise ... from``) and as the ``cause`` attribute.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        """Initialize StorageBackendError.

        Args:
            message: Human readable description of the failed operation.
            cause: Underlying exception from the object store.
        """
        super().__init__(message)
        self.cause = cause


class IllegalOperationError(ValueError):
    """Raised for operations that are never allowed, like deleting root."""


class ArchiveStreamError(OSError):
    """Raised when reading or writing fails while a zip is streaming."""


class ObjectNotFoundError(Exception):
    """Raised by the object store when a key does not exist."""

    def __init__(self, key: str) -> None:
        """Initialize ObjectNotFoundError.

        Args:
            key: Object key that was not found.
        """
        self.key = key
        super().__init__(f'Object not found: {key}')
