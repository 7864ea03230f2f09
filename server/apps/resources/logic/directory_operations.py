"""Business logic for directory operations.

Directories are not stored as such. A directory exists when at least one
key starts with its prefix; an empty directory is kept alive by a
zero-length marker object whose key ends with ``/``.
"""

import io
import logging
from typing import final

from server.apps.resources.exceptions import (
    IllegalOperationError,
    ResourceAlreadyExistsError,
    ResourceError,
    ResourceNotFoundError,
    StorageBackendError,
)
from server.apps.resources.infrastructure.object_store import (
    ObjectStore,
    has_objects_under,
)
from server.apps.resources.logic.path_service import SEPARATOR, PathService
from server.apps.resources.logic.resource_info import ResourceInfoBuilder
from server.apps.resources.types import Resource

logger = logging.getLogger(__name__)


@final
class DirectoryService:
    """Create, list and delete directories."""

    def __init__(
        self,
        object_store: ObjectStore,
        path_service: PathService,
        resource_info_builder: ResourceInfoBuilder,
    ) -> None:
        """Initialize the service.

        Args:
            object_store: Store holding every user's objects.
            path_service: Path validation and key mapping.
            resource_info_builder: Decoder for resource descriptors.
        """
        self._object_store = object_store
        self._path_service = path_service
        self._resource_info_builder = resource_info_builder

    def create_directory(self, user_id: int, path: str) -> Resource:
        """Create an empty directory by writing its marker object.

        Args:
            user_id: Owner of the directory.
            path: Directory path, ending with ``/``.

        Returns:
            Descriptor of the new directory.

        Raises:
            InvalidPathError: If the path is invalid.
            ResourceAlreadyExistsError: If the directory already exists.
            StorageBackendError: If the object store fails.
        """
        self._path_service.validate_path(path)
        self._path_service.validate_directory_path(path)

        if self.directory_exists(user_id, path):
            raise ResourceAlreadyExistsError(
                f'Directory already exists: {path}',
            )

        try:
            self._object_store.put(
                self._path_service.build_user_path(user_id, path),
                io.BytesIO(b''),
                0,
            )
        except Exception as exc:
            logger.exception('Failed to create directory: %s', path)
            raise StorageBackendError(
                f'Failed to create directory: {path}',
                cause=exc,
            ) from exc

        logger.info('Created directory for user %d: %s', user_id, path)
        return self._resource_info_builder.build(path, 0, True)

    def list_directory(self, user_id: int, path: str | None) -> list[Resource]:
        """List the direct children of a directory.

        Args:
            user_id: Owner of the directory.
            path: Directory path, ending with ``/``. Empty means root.

        Returns:
            Descriptors of direct children, in store listing order.

        Raises:
            InvalidPathError: If the path is invalid.
            ResourceNotFoundError: If the directory does not exist.
            StorageBackendError: If the object store fails.
        """
        if not path:
            path = SEPARATOR

        self._path_service.validate_path(path)
        self._path_service.validate_directory_path(path)

        if not self.directory_exists(user_id, path):
            raise ResourceNotFoundError(f'Directory not found: {path}')

        prefix = self._path_service.build_user_path(user_id, path)
        logger.debug('Listing directory: %s', prefix)

        resources: list[Resource] = []
        try:
            for stored in self._object_store.list_objects(prefix):
                if stored.key == prefix:
                    continue

                relative_path = self._path_service.strip_user_path(
                    stored.key,
                    user_id,
                )
                if not relative_path:
                    continue

                resources.append(self._resource_info_builder.build(
                    relative_path,
                    stored.size,
                    stored.is_dir,
                ))
        except Exception as exc:
            logger.exception('Failed to list directory: %s', path)
            raise StorageBackendError(
                f'Failed to list directory: {path}',
                cause=exc,
            ) from exc

        return resources

    def delete_directory(self, user_id: int, path: str) -> None:
        """Delete a directory and everything below it.

        Keys that the store refuses to delete are logged, not raised: the
        call succeeds even when some descendants survive.

        Args:
            user_id: Owner of the directory.
            path: Directory path, ending with ``/``.

        Raises:
            InvalidPathError: If the path is invalid.
            IllegalOperationError: If the path is the root directory.
            ResourceNotFoundError: If the directory does not exist.
            StorageBackendError: If the object store fails.
        """
        self._path_service.validate_path(path)
        self._path_service.validate_directory_path(path)

        if self._path_service.is_root(path):
            raise IllegalOperationError('Cannot delete root directory')

        if not self.directory_exists(user_id, path):
            raise ResourceNotFoundError(f'Directory not found: {path}')

        prefix = self._path_service.build_user_path(user_id, path)
        try:
            keys = [
                stored.key
                for stored in self._object_store.list_objects(
                    prefix,
                    recursive=True,
                )
            ]
            if not keys:
                logger.warning(
                    'No objects found to delete for directory: %s',
                    path,
                )
                return

            for error in self._object_store.remove_batch(keys):
                logger.error(
                    'Failed to delete object: %s - %s',
                    error.key,
                    error.message,
                )
        except ResourceError:
            raise
        except Exception as exc:
            logger.exception('Failed to delete directory: %s', path)
            raise StorageBackendError(
                f'Failed to delete directory: {path}',
                cause=exc,
            ) from exc

        logger.info(
            'Deleted directory for user %d: %s (%d objects)',
            user_id,
            path,
            len(keys),
        )

    def directory_exists(self, user_id: int, path: str) -> bool:
        """Check if a directory exists.

        Root always exists. Any store error is logged and reported as
        "does not exist".

        Args:
            user_id: Owner of the directory.
            path: Directory path.

        Returns:
            True if any key starts with the directory prefix.
        """
        if self._path_service.is_root(path):
            return True

        try:
            return has_objects_under(
                self._object_store,
                self._path_service.build_user_path(user_id, path),
            )
        except Exception:
            logger.exception(
                'Error checking directory existence for path: %s',
                path,
            )
            return False
