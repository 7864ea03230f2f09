"""Decoding of relative paths into resource descriptors."""

from typing import final

from server.apps.resources.logic.path_service import SEPARATOR
from server.apps.resources.types import Resource, ResourceType


@final
class ResourceInfoBuilder:
    """Builds :class:`Resource` values from relative paths."""

    def build(
        self,
        relative_path: str,
        size: int | None,
        is_directory: bool,
    ) -> Resource:
        """Split a relative path into parent path and name.

        Directory names keep their trailing ``/``; the size of a
        directory is always dropped.

        Args:
            relative_path: Path relative to the user's root
                (e.g., ``folder/file.txt`` or ``folder/sub/``).
            size: Size in bytes. Ignored for directories.
            is_directory: Whether the path denotes a directory.

        Returns:
            Resource descriptor. Root yields an empty name and path.
        """
        if relative_path.startswith(SEPARATOR):
            relative_path = relative_path[1:]

        name = ''
        parent_path = ''
        if relative_path:
            path_for_parsing = relative_path
            if is_directory and path_for_parsing.endswith(SEPARATOR):
                path_for_parsing = path_for_parsing[:-1]

            parent, separator, name = path_for_parsing.rpartition(SEPARATOR)
            parent_path = parent + separator

            if is_directory and name and not name.endswith(SEPARATOR):
                name += SEPARATOR

        return Resource(
            parent_path=parent_path,
            name=name,
            size=None if is_directory else size,
            type=ResourceType.DIRECTORY if is_directory else ResourceType.FILE,
        )
