"""Business logic for single-file operations."""

import logging
from collections.abc import Iterable
from typing import Any, final

from django.core.files.uploadedfile import UploadedFile

from server.apps.resources.exceptions import (
    InvalidPathError,
    ObjectNotFoundError,
    ResourceAlreadyExistsError,
    ResourceError,
    ResourceNotFoundError,
    StorageBackendError,
)
from server.apps.resources.infrastructure.metadata import detect_mime_type
from server.apps.resources.infrastructure.object_store import (
    ObjectStore,
    has_objects_under,
)
from server.apps.resources.logic.path_service import PathService
from server.apps.resources.logic.resource_info import ResourceInfoBuilder
from server.apps.resources.types import ObjectStat, Resource

logger = logging.getLogger(__name__)


@final
class FileOperationsService:
    """Upload, download, inspect and delete single files."""

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

    def upload_files(
        self,
        user_id: int,
        directory_path: str,
        files: Iterable[UploadedFile],
    ) -> list[Resource]:
        """Upload files into a directory, one after another.

        Not atomic: when file *k* collides with an existing key the
        upload stops with ``ResourceAlreadyExistsError``, but files
        uploaded before it stay in storage.

        Args:
            user_id: Owner of the files.
            directory_path: Target directory, ending with ``/``.
            files: Uploaded files.

        Returns:
            Descriptors of the uploaded files, in upload order.

        Raises:
            InvalidPathError: If the directory path or a filename is
                invalid.
            ResourceAlreadyExistsError: If a file already exists.
            StorageBackendError: If the object store fails.
        """
        self._path_service.validate_path(directory_path)
        self._path_service.validate_directory_path(directory_path)

        return [
            self.upload_single_file(user_id, directory_path, upload)
            for upload in files
        ]

    def upload_single_file(
        self,
        user_id: int,
        directory_path: str,
        upload: UploadedFile,
    ) -> Resource:
        """Upload one file into a directory.

        Args:
            user_id: Owner of the file.
            directory_path: Target directory, ending with ``/``.
            upload: Uploaded file (name, size, content type, body).

        Returns:
            Descriptor of the stored file, re-read from storage.

        Raises:
            InvalidPathError: If the filename is empty or invalid.
            ResourceAlreadyExistsError: If the file already exists.
            StorageBackendError: If the object store fails.
        """
        filename = upload.name
        if not filename or not filename.strip():
            raise InvalidPathError('File name is empty')

        file_path = (directory_path or '') + filename
        self._path_service.validate_path(file_path)

        if self.resource_exists(user_id, file_path):
            raise ResourceAlreadyExistsError(
                f'File already exists: {file_path}',
            )

        content_type = upload.content_type or detect_mime_type(filename)
        try:
            logger.info(
                'Uploading file for user %d: %s (%d bytes)',
                user_id,
                file_path,
                upload.size,
            )
            self._object_store.put(
                self._path_service.build_user_path(user_id, file_path),
                upload,
                upload.size,
                content_type,
            )
        except Exception as exc:
            logger.exception('Failed to upload file: %s', file_path)
            raise StorageBackendError(
                f'Failed to upload file: {file_path}',
                cause=exc,
            ) from exc

        return self.get_resource_info(user_id, file_path)

    def download_file(self, user_id: int, path: str) -> Any:
        """Open a file for reading.

        Args:
            user_id: Owner of the file.
            path: File path (must not end with ``/``).

        Returns:
            Open byte stream (botocore ``StreamingBody``). The caller
            must close it.

        Raises:
            InvalidPathError: If the path denotes a directory.
            ResourceNotFoundError: If the file does not exist.
            StorageBackendError: If the object store fails.
        """
        self._path_service.validate_path(path)

        if self._path_service.is_directory_path(path):
            raise InvalidPathError(
                'Cannot download directory as file. '
                'Use directory download instead.',
            )

        if not self.resource_exists(user_id, path):
            raise ResourceNotFoundError(f'File not found: {path}')

        try:
            return self._object_store.get(
                self._path_service.build_user_path(user_id, path),
            )
        except Exception as exc:
            logger.exception('Failed to download file: %s', path)
            raise StorageBackendError(
                f'Failed to download file: {path}',
                cause=exc,
            ) from exc

    def get_resource_info(self, user_id: int, path: str) -> Resource:
        """Describe a file or a directory.

        Directory paths are answered by a prefix listing, file paths by a
        metadata lookup.

        Args:
            user_id: Owner of the resource.
            path: File or directory path.

        Returns:
            Resource descriptor.

        Raises:
            ResourceNotFoundError: If the resource does not exist.
            StorageBackendError: If the object store fails.
        """
        self._path_service.validate_path(path)

        try:
            if self._path_service.is_directory_path(path):
                if not self._path_service.is_root(path) and not (
                    self._has_keys_under(user_id, path)
                ):
                    raise ResourceNotFoundError(
                        f'Directory not found: {path}',
                    )
                return self._resource_info_builder.build(path or '', 0, True)

            size = self._stat(user_id, path).size
            return self._resource_info_builder.build(path, size, False)
        except ResourceError:
            raise
        except Exception as exc:
            logger.exception('Failed to get resource info: %s', path)
            raise StorageBackendError(
                f'Failed to get resource info: {path}',
                cause=exc,
            ) from exc

    def delete_file(self, user_id: int, path: str) -> None:
        """Delete a single file.

        Args:
            user_id: Owner of the file.
            path: File path (must not end with ``/``).

        Raises:
            InvalidPathError: If the path denotes a directory.
            ResourceNotFoundError: If the file does not exist.
            StorageBackendError: If the object store fails.
        """
        self._path_service.validate_path(path)

        if self._path_service.is_directory_path(path):
            raise InvalidPathError(
                'Use directory operations to delete directories',
            )

        if not self.resource_exists(user_id, path):
            raise ResourceNotFoundError(f'File not found: {path}')

        try:
            self._object_store.remove(
                self._path_service.build_user_path(user_id, path),
            )
        except Exception as exc:
            logger.exception('Failed to delete file: %s', path)
            raise StorageBackendError(
                f'Failed to delete file: {path}',
                cause=exc,
            ) from exc

        logger.info('Deleted file for user %d: %s', user_id, path)

    def resource_exists(self, user_id: int, path: str) -> bool:
        """Check if a file or directory exists.

        Best effort: any unexpected store error is logged and reported
        as "does not exist".

        Args:
            user_id: Owner of the resource.
            path: File or directory path.

        Returns:
            True if the resource exists.
        """
        try:
            if self._path_service.is_directory_path(path):
                return self._has_keys_under(user_id, path)
            self._stat(user_id, path)
        except ResourceNotFoundError:
            return False
        except Exception:
            logger.exception(
                'Error checking resource existence for path: %s',
                path,
            )
            return False
        return True

    def _has_keys_under(self, user_id: int, path: str | None) -> bool:
        """Check a directory prefix for keys. Store errors propagate."""
        return has_objects_under(
            self._object_store,
            self._path_service.build_user_path(user_id, path),
        )

    def _stat(self, user_id: int, path: str) -> ObjectStat:
        """Read object metadata, mapping a missing key to a domain error."""
        try:
            return self._object_store.stat(
                self._path_service.build_user_path(user_id, path),
            )
        except ObjectNotFoundError as exc:
            raise ResourceNotFoundError(
                f'Resource not found: {path}',
            ) from exc
