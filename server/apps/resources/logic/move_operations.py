"""Business logic for moving and renaming resources.

A move is a copy followed by a delete. It is not atomic: when the delete
phase fails the resource exists under both paths.
"""

import logging
from typing import final

from server.apps.resources.exceptions import (
    InvalidPathError,
    ResourceAlreadyExistsError,
    ResourceError,
    ResourceNotFoundError,
    StorageBackendError,
)
from server.apps.resources.infrastructure.object_store import ObjectStore
from server.apps.resources.logic.file_operations import FileOperationsService
from server.apps.resources.logic.path_service import PathService
from server.apps.resources.types import Resource

logger = logging.getLogger(__name__)


@final
class ResourceMoveService:
    """Move or rename files and directories."""

    def __init__(
        self,
        object_store: ObjectStore,
        path_service: PathService,
        file_operations: FileOperationsService,
    ) -> None:
        """Initialize the service.

        Args:
            object_store: Store holding every user's objects.
            path_service: Path validation and key mapping.
            file_operations: Existence checks and resource lookups.
        """
        self._object_store = object_store
        self._path_service = path_service
        self._file_operations = file_operations

    def move_or_rename_resource(
        self,
        user_id: int,
        from_path: str,
        to_path: str,
    ) -> Resource:
        """Move or rename a file or a directory.

        Both paths must have the same shape: ``file -> file`` or
        ``folder/ -> folder/``. Keys that survive the delete phase of a
        directory move are logged, not raised.

        Args:
            user_id: Owner of the resource.
            from_path: Current path.
            to_path: New path.

        Returns:
            Descriptor of the resource at its new path.

        Raises:
            InvalidPathError: If a path is invalid or the shapes differ.
            ResourceNotFoundError: If the source does not exist.
            ResourceAlreadyExistsError: If the destination exists.
            StorageBackendError: If the object store fails.
        """
        self._path_service.validate_path(from_path)
        self._path_service.validate_path(to_path)

        is_source_dir = self._path_service.is_directory_path(from_path)
        is_target_dir = self._path_service.is_directory_path(to_path)
        if is_source_dir != is_target_dir:
            raise InvalidPathError(
                'Resource type must match (file -> file, folder/ -> folder/).',
            )

        if not self._file_operations.resource_exists(user_id, from_path):
            raise ResourceNotFoundError(
                f'Source resource not found: {from_path}',
            )

        if self._file_operations.resource_exists(user_id, to_path):
            raise ResourceAlreadyExistsError(
                f'Target resource already exists: {to_path}',
            )

        logger.info(
            'Moving resource for user %d: %s -> %s',
            user_id,
            from_path,
            to_path,
        )

        try:
            if is_source_dir:
                self._move_directory(user_id, from_path, to_path)
            else:
                self._move_file(user_id, from_path, to_path)
        except ResourceError:
            raise
        except Exception as exc:
            logger.exception(
                'Failed to move resource: %s -> %s',
                from_path,
                to_path,
            )
            raise StorageBackendError(
                f'Failed to move resource from {from_path} to {to_path}',
                cause=exc,
            ) from exc

        logger.info('Successfully moved resource: %s -> %s', from_path, to_path)
        return self._file_operations.get_resource_info(user_id, to_path)

    def _move_file(self, user_id: int, from_path: str, to_path: str) -> None:
        """Copy one object to its new key, then remove the source."""
        source_key = self._path_service.build_user_path(user_id, from_path)
        self._object_store.copy(
            source_key,
            self._path_service.build_user_path(user_id, to_path),
        )
        self._object_store.remove(source_key)

    def _move_directory(
        self,
        user_id: int,
        from_path: str,
        to_path: str,
    ) -> None:
        """Copy every key under the source prefix, then batch delete them."""
        source_prefix = self._path_service.build_user_path(user_id, from_path)
        target_prefix = self._path_service.build_user_path(user_id, to_path)

        keys = [
            stored.key
            for stored in self._object_store.list_objects(
                source_prefix,
                recursive=True,
            )
        ]
        if not keys:
            logger.warning('No objects found in source directory: %s', from_path)
            return

        logger.info('Moving directory with %d objects', len(keys))

        # Only the leading prefix is replaced
        for key in keys:
            self._object_store.copy(
                key,
                target_prefix + key[len(source_prefix):],
            )

        for error in self._object_store.remove_batch(keys):
            logger.error(
                'Failed to delete object during move: %s - %s',
                error.key,
                error.message,
            )
