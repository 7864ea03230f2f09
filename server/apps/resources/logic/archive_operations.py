"""Streaming zip archives of directories.

Entries are written with :mod:`zipfile` into a sink that cannot seek, so
every entry ends with a data descriptor and its bytes can be handed to the
consumer as soon as they are compressed. Neither a whole object nor the
whole archive is held in memory.
"""

import contextlib
import logging
import time
import zipfile
from collections.abc import Iterator
from typing import Final, final

from server.apps.resources.exceptions import (
    ArchiveStreamError,
    ResourceNotFoundError,
)
from server.apps.resources.infrastructure.metadata import extract_folder_name
from server.apps.resources.infrastructure.object_store import (
    ObjectStore,
    has_objects_under,
)
from server.apps.resources.logic.path_service import SEPARATOR, PathService
from server.apps.resources.types import StoredObject

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE: Final = 64 * 1024


@final
class _ArchiveSink:
    """Write-only buffer drained after every zip write.

    It has no ``tell`` or ``seek``, which makes :class:`zipfile.ZipFile`
    fall back to its streaming mode.
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write(self, data: bytes) -> int:
        """Buffer bytes written by the zip writer."""
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        """Nothing to flush, bytes are drained by the archive stream."""

    def drain(self) -> bytes:
        """Return and forget everything written since the last drain."""
        data = b''.join(self._chunks)
        self._chunks.clear()
        return data


@final
class ArchiveService:
    """Build zip archives of a user's directories."""

    def __init__(
        self,
        object_store: ObjectStore,
        path_service: PathService,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the service.

        Args:
            object_store: Store holding every user's objects.
            path_service: Path validation and key mapping.
            chunk_size: Bytes read from an object body per read call.
        """
        self._object_store = object_store
        self._path_service = path_service
        self._chunk_size = chunk_size

    def zip_directory_stream(self, user_id: int, path: str) -> Iterator[bytes]:
        """Prepare a zip stream of a directory.

        Validation and the existence check run immediately, so errors
        surface before any byte is sent. Listing and reading happen while
        the returned iterator is consumed.

        Args:
            user_id: Owner of the directory.
            path: Directory path, ending with ``/``. Root is allowed.

        Returns:
            Iterator over chunks of the zip file. Entries are rooted at
            the directory's own name (``archive`` for root).

        Raises:
            InvalidPathError: If the path is invalid.
            ResourceNotFoundError: If the directory is absent or empty.
        """
        self._path_service.validate_path(path)
        self._path_service.validate_directory_path(path)

        if not self._has_directory_content(user_id, path):
            raise ResourceNotFoundError(
                f'Directory not found or empty: {path}',
            )

        return self._stream_archive(user_id, path)

    def _stream_archive(self, user_id: int, path: str) -> Iterator[bytes]:
        """Generate the zip, listing and reading the store lazily."""
        prefix = self._path_service.build_user_path(user_id, path)
        root_folder = extract_folder_name(path)
        sink = _ArchiveSink()

        try:
            with zipfile.ZipFile(
                sink,  # type: ignore[arg-type]
                mode='w',
                compression=zipfile.ZIP_DEFLATED,
            ) as archive:
                for stored in self._object_store.list_objects(
                    prefix,
                    recursive=True,
                ):
                    # The archived directory's own marker is implied
                    if stored.key == prefix:
                        continue

                    entry_name = (
                        f'{root_folder}{SEPARATOR}{stored.key[len(prefix):]}'
                    )
                    if stored.is_dir:
                        archive.mkdir(entry_name)
                    else:
                        yield from self._write_file_entry(
                            archive,
                            sink,
                            stored,
                            entry_name,
                        )

                    if chunk := sink.drain():
                        yield chunk

            if chunk := sink.drain():
                yield chunk
        except Exception as exc:
            logger.exception(
                'Zip stream error while reading objects or writing to '
                'client: %s',
                path,
            )
            raise ArchiveStreamError(
                f'Error during zip streaming of {path}',
            ) from exc

    def _write_file_entry(
        self,
        archive: zipfile.ZipFile,
        sink: _ArchiveSink,
        stored: StoredObject,
        entry_name: str,
    ) -> Iterator[bytes]:
        """Copy one object into the archive, yielding bytes as they appear."""
        entry = zipfile.ZipInfo(
            entry_name,
            date_time=time.localtime(time.time())[:6],
        )
        entry.compress_type = zipfile.ZIP_DEFLATED
        entry.file_size = stored.size

        body = self._object_store.get(stored.key)
        with contextlib.closing(body), archive.open(entry, mode='w') as target:
            while data := body.read(self._chunk_size):
                target.write(data)
                if chunk := sink.drain():
                    yield chunk

    def _has_directory_content(self, user_id: int, path: str) -> bool:
        """Check that a directory can be archived. Root always can."""
        if self._path_service.is_root(path):
            return True

        try:
            return has_objects_under(
                self._object_store,
                self._path_service.build_user_path(user_id, path),
            )
        except Exception:
            logger.exception(
                'Error checking directory content for path: %s',
                path,
            )
            return False
