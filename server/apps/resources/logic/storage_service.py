"""Facade over the resource services.

The boundary layer talks to :class:`StorageService` only. Paths ending in
``/`` (and root) are routed to directory operations, everything else to
file operations.
"""

import logging
from collections.abc import Iterable, Iterator
from typing import Any, Final, final

from django.conf import settings
from django.core.files.uploadedfile import UploadedFile

from server.apps.resources.infrastructure.metadata import (
    detect_mime_type,
    extract_filename,
    extract_folder_name,
)
from server.apps.resources.infrastructure.object_store import ObjectStore
from server.apps.resources.infrastructure.storage import get_file_storage
from server.apps.resources.logic.archive_operations import (
    DEFAULT_CHUNK_SIZE,
    ArchiveService,
)
from server.apps.resources.logic.directory_operations import DirectoryService
from server.apps.resources.logic.file_operations import FileOperationsService
from server.apps.resources.logic.move_operations import ResourceMoveService
from server.apps.resources.logic.path_service import PathService
from server.apps.resources.logic.resource_info import ResourceInfoBuilder
from server.apps.resources.logic.search_operations import (
    DEFAULT_MAX_RESULTS,
    SearchService,
)
from server.apps.resources.types import Resource, ResourceDownload

logger = logging.getLogger(__name__)

_ZIP_CONTENT_TYPE: Final = 'application/zip'
_ZIP_EXTENSION: Final = '.zip'


@final
class _ObjectStream:
    """Chunk iterator that owns an object body.

    The body is released on exhaustion, on a read error and on
    :meth:`close`, even when iteration never started.
    """

    def __init__(self, body: Any, chunk_size: int) -> None:
        self._body = body
        self._chunk_size = chunk_size
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        """Read the next chunk, closing the body at the end of data."""
        if self._closed:
            raise StopIteration
        try:
            chunk = self._body.read(self._chunk_size)
        except Exception:
            self.close()
            raise
        if not chunk:
            self.close()
            raise StopIteration
        return chunk

    def close(self) -> None:
        """Release the object body. Safe to call more than once."""
        if not self._closed:
            self._closed = True
            self._body.close()


@final
class StorageService:
    """Single entry point for every resource operation."""

    def __init__(
        self,
        path_service: PathService,
        file_operations: FileOperationsService,
        directory_service: DirectoryService,
        move_service: ResourceMoveService,
        search_service: SearchService,
        archive_service: ArchiveService,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the facade with its collaborators."""
        self._path_service = path_service
        self._file_operations = file_operations
        self._directory_service = directory_service
        self._move_service = move_service
        self._search_service = search_service
        self._archive_service = archive_service
        self._chunk_size = chunk_size

    def upload(
        self,
        user_id: int,
        path: str,
        files: Iterable[UploadedFile],
    ) -> list[Resource]:
        """Upload files into a directory."""
        return self._file_operations.upload_files(user_id, path, files)

    def download_resource(self, user_id: int, path: str) -> ResourceDownload:
        """Download a file, or a directory as a zip archive.

        Args:
            user_id: Owner of the resource.
            path: File path, or directory path ending with ``/``.

        Returns:
            Stream plus the filename and content type to send with it.
            Directories are named ``<folder>.zip``; root becomes
            ``archive.zip``.

        Raises:
            InvalidPathError: If the path is invalid.
            ResourceNotFoundError: If the resource does not exist (or
                the directory is empty).
            StorageBackendError: If the object store fails.
        """
        if self._path_service.is_directory_path(path):
            return ResourceDownload(
                filename=extract_folder_name(path) + _ZIP_EXTENSION,
                content_type=_ZIP_CONTENT_TYPE,
                stream=self._archive_service.zip_directory_stream(
                    user_id,
                    path,
                ),
                is_archive=True,
            )

        body = self._file_operations.download_file(user_id, path)
        filename = extract_filename(path)
        return ResourceDownload(
            filename=filename,
            content_type=detect_mime_type(filename),
            stream=_ObjectStream(body, self._chunk_size),
        )

    def get_resource_info(self, user_id: int, path: str) -> Resource:
        """Describe a file or a directory."""
        return self._file_operations.get_resource_info(user_id, path)

    def create_directory(self, user_id: int, path: str) -> Resource:
        """Create an empty directory."""
        return self._directory_service.create_directory(user_id, path)

    def list_directory(self, user_id: int, path: str | None) -> list[Resource]:
        """List direct children of a directory."""
        return self._directory_service.list_directory(user_id, path)

    def delete_resource(self, user_id: int, path: str) -> None:
        """Delete a file, or a directory with everything below it."""
        if self._path_service.is_directory_path(path):
            self._directory_service.delete_directory(user_id, path)
        else:
            self._file_operations.delete_file(user_id, path)

    def move_or_rename_resource(
        self,
        user_id: int,
        from_path: str,
        to_path: str,
    ) -> Resource:
        """Move or rename a file or a directory."""
        return self._move_service.move_or_rename_resource(
            user_id,
            from_path,
            to_path,
        )

    def search_user_files(self, user_id: int, query: str | None) -> list[Resource]:
        """Search resources by name."""
        return self._search_service.search_user_files(user_id, query)


def build_storage_service(
    object_store: ObjectStore | None = None,
) -> StorageService:
    """Wire the facade and all services around one object store.

    Args:
        object_store: Store to use. Defaults to the object store of the
            configured default Django storage.

    Returns:
        Ready to use StorageService.
    """
    if object_store is None:
        object_store = get_file_storage().get_object_store()

    chunk_size = getattr(
        settings,
        'RESOURCES_ARCHIVE_CHUNK_SIZE',
        DEFAULT_CHUNK_SIZE,
    )
    max_results = getattr(
        settings,
        'RESOURCES_SEARCH_MAX_RESULTS',
        DEFAULT_MAX_RESULTS,
    )

    path_service = PathService()
    resource_info_builder = ResourceInfoBuilder()
    file_operations = FileOperationsService(
        object_store,
        path_service,
        resource_info_builder,
    )

    logger.debug('Building storage service')
    return StorageService(
        path_service=path_service,
        file_operations=file_operations,
        directory_service=DirectoryService(
            object_store,
            path_service,
            resource_info_builder,
        ),
        move_service=ResourceMoveService(
            object_store,
            path_service,
            file_operations,
        ),
        search_service=SearchService(
            object_store,
            path_service,
            resource_info_builder,
            max_results=max_results,
        ),
        archive_service=ArchiveService(
            object_store,
            path_service,
            chunk_size=chunk_size,
        ),
        chunk_size=chunk_size,
    )
