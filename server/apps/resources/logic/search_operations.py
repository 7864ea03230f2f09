"""Search over a user's resources.

The search scans every key of the user, so it is linear in the number of
stored objects. Directory hits are inferred from key paths: a file at
``a/reports/x.txt`` makes ``a/reports/`` a hit for ``report`` even when
no marker exists for it.
"""

import logging
from typing import Final, final

from server.apps.resources.exceptions import (
    InvalidPathError,
    StorageBackendError,
)
from server.apps.resources.infrastructure.object_store import ObjectStore
from server.apps.resources.logic.path_service import SEPARATOR, PathService
from server.apps.resources.logic.resource_info import ResourceInfoBuilder
from server.apps.resources.types import Resource

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS: Final = 100


@final
class SearchService:
    """Case-insensitive substring search over names."""

    def __init__(
        self,
        object_store: ObjectStore,
        path_service: PathService,
        resource_info_builder: ResourceInfoBuilder,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        """Initialize the service.

        Args:
            object_store: Store holding every user's objects.
            path_service: Path validation and key mapping.
            resource_info_builder: Decoder for resource descriptors.
            max_results: Maximum number of resources returned.
        """
        self._object_store = object_store
        self._path_service = path_service
        self._resource_info_builder = resource_info_builder
        self._max_results = max_results

    def search_user_files(self, user_id: int, query: str | None) -> list[Resource]:
        """Find files and folders whose name contains the query.

        Args:
            user_id: Owner of the resources.
            query: Text to look for, case-insensitive.

        Returns:
            Matching resources, each at most once, in store listing
            order.

        Raises:
            InvalidPathError: If the query is blank or has characters
                outside the path allow-list.
            StorageBackendError: If the object store fails.
        """
        if query is None or not query.strip():
            raise InvalidPathError('Search query must not be empty')
        self._path_service.validate_path(query)

        lowered_query = query.lower()
        found: dict[str, Resource] = {}
        try:
            for stored in self._object_store.list_objects(
                self._path_service.user_prefix(user_id),
                recursive=True,
            ):
                relative_path = self._path_service.strip_user_path(
                    stored.key,
                    user_id,
                )
                if not relative_path:
                    continue

                resource = self._resource_info_builder.build(
                    relative_path,
                    stored.size,
                    stored.is_dir,
                )
                if lowered_query in resource.name.lower():
                    found.setdefault(resource.full_path, resource)

                self._collect_matching_folders(
                    resource.parent_path,
                    lowered_query,
                    found,
                )
                if len(found) >= self._max_results:
                    break
        except Exception as exc:
            logger.exception(
                'Failed to search files for user %d: query=%r',
                user_id,
                query,
            )
            raise StorageBackendError(
                f'Failed to search files: {query}',
                cause=exc,
            ) from exc

        results = list(found.values())[:self._max_results]
        directories = sum(1 for resource in results if resource.is_directory)
        logger.info(
            'Search completed for user %d: query=%r, found %d results '
            '(%d files, %d folders)',
            user_id,
            query,
            len(results),
            len(results) - directories,
            directories,
        )
        return results

    def _collect_matching_folders(
        self,
        parent_path: str,
        lowered_query: str,
        found: dict[str, Resource],
    ) -> None:
        """Add a directory hit for every matching segment of a parent path."""
        current_path = ''
        for segment in parent_path.split(SEPARATOR):
            if not segment:
                continue

            folder_path = f'{current_path}{segment}{SEPARATOR}'
            if lowered_query in segment.lower() and folder_path not in found:
                found[folder_path] = self._resource_info_builder.build(
                    folder_path,
                    0,
                    True,
                )
            current_path = folder_path
