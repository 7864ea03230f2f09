"""Path validation and translation to user-scoped object keys.

User-visible paths are relative: ``docs/report.pdf``, ``docs/``.
Object keys carry the user prefix: ``user-42-files/docs/report.pdf``.
The prefix is built from the authenticated user id only and is the sole
isolation boundary between users.
"""

import re
from typing import Final, final

from server.apps.resources.exceptions import InvalidPathError

_USER_PREFIX_TEMPLATE: Final = 'user-{user_id}-files/'

# Character used to split paths
SEPARATOR: Final = '/'

_TRAVERSAL_SEQUENCES: Final = ('../', '..\\')

# Letters, digits, ". _ / - ( ) [ ]" and space
_ALLOWED_PATH: Final = re.compile(r'[a-zA-Z0-9._/\-()\[\] ]*')

_ROOT_PATHS: Final = frozenset(('', SEPARATOR))


@final
class PathService:
    """Validates paths and maps them into a user's key namespace."""

    def user_prefix(self, user_id: int) -> str:
        """Get the key prefix owned by a user.

        Args:
            user_id: ID of the authenticated user.

        Returns:
            Prefix such as ``user-42-files/``.
        """
        return _USER_PREFIX_TEMPLATE.format(user_id=user_id)

    def build_user_path(self, user_id: int, relative_path: str | None) -> str:
        """Convert a relative path to an object key.

        Args:
            user_id: ID of the authenticated user.
            relative_path: Path from the user's point of view
                (e.g., ``folder/file.txt``). A single leading ``/`` is
                ignored.

        Returns:
            Object key (e.g., ``user-42-files/folder/file.txt``).
        """
        prefix = self.user_prefix(user_id)
        if not relative_path:
            return prefix
        if relative_path.startswith(SEPARATOR):
            relative_path = relative_path[1:]
        return prefix + relative_path

    def strip_user_path(self, key: str, user_id: int) -> str:
        """Convert an object key back to a relative path.

        Args:
            key: Object key from a listing.
            user_id: ID of the user owning the key.

        Returns:
            Relative path, or the key unchanged if it lacks the prefix.
        """
        prefix = self.user_prefix(user_id)
        if key.startswith(prefix):
            return key[len(prefix):]
        return key

    def validate_path(self, path: str | None) -> None:
        """Reject traversal sequences and characters outside the allow-list.

        Args:
            path: Path to validate. ``None`` means no path was supplied.

        Raises:
            InvalidPathError: If the path is unsafe.
        """
        if path is None:
            return
        if any(sequence in path for sequence in _TRAVERSAL_SEQUENCES):
            raise InvalidPathError("Path contains dangerous sequence '..'.")
        if not _ALLOWED_PATH.fullmatch(path):
            raise InvalidPathError(f'Invalid characters in path: {path}')

    def validate_directory_path(self, path: str | None) -> None:
        """Require a trailing ``/`` on non-empty directory paths.

        Args:
            path: Directory path.

        Raises:
            InvalidPathError: If the path does not end with ``/``.
        """
        if path and not path.endswith(SEPARATOR):
            raise InvalidPathError("Folder path must end with '/'")

    def is_directory_path(self, path: str | None) -> bool:
        """Check if a path has directory shape (root or trailing ``/``)."""
        return not path or path.endswith(SEPARATOR)

    def is_root(self, path: str | None) -> bool:
        """Check if a path denotes the user's root directory."""
        return not path or path in _ROOT_PATHS
