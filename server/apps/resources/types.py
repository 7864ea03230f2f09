"""Value types shared by the resources app.

Resources are never persisted as records of their own. They are rebuilt
from object keys every time a caller asks about them.
"""

import enum
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, final


@final
class ResourceType(enum.StrEnum):
    """Kind of a resource."""

    FILE = 'FILE'
    DIRECTORY = 'DIRECTORY'


@final
@dataclass(frozen=True, slots=True)
class Resource:
    """File or directory as seen by a user.

    Attributes:
        parent_path: Path of the containing directory, empty or ending
            in ``/``.
        name: Basename. Ends in ``/`` for directories.
        size: Size in bytes for files, ``None`` for directories.
        type: Whether this is a file or a directory.
    """

    parent_path: str
    name: str
    size: int | None
    type: ResourceType

    @property
    def full_path(self) -> str:
        """Path of the resource relative to the user's root."""
        return self.parent_path + self.name

    @property
    def is_directory(self) -> bool:
        """Check if the resource is a directory."""
        return self.type is ResourceType.DIRECTORY

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the boundary layer.

        Keys are ordered ``path, name, size, type``; ``size`` is left out
        for directories.

        Returns:
            JSON-compatible dictionary.
        """
        payload: dict[str, Any] = {
            'path': self.parent_path,
            'name': self.name,
        }
        if self.size is not None:
            payload['size'] = self.size
        payload['type'] = str(self.type)
        return payload


@final
@dataclass(frozen=True, slots=True)
class StoredObject:
    """One entry of an object store listing.

    ``is_dir`` is set for common prefixes returned by delimiter listing
    and for directory markers (keys ending in ``/``).
    """

    key: str
    size: int
    is_dir: bool


@final
@dataclass(frozen=True, slots=True)
class ObjectStat:
    """Metadata of a single stored object."""

    size: int
    content_type: str | None = None


@final
@dataclass(frozen=True, slots=True)
class DeleteError:
    """Key that could not be removed by a batch delete."""

    key: str
    message: str


@final
@dataclass(frozen=True, slots=True)
class ResourceDownload:
    """Byte stream of a downloaded resource plus what a response needs.

    Attributes:
        filename: Suggested filename for the client.
        content_type: MIME type of the stream.
        stream: Chunks of the content. Has a ``close()`` that releases
            the underlying object body; call it when the stream is not
            consumed to the end.
        is_archive: True when the stream is a zip of a directory.
    """

    filename: str
    content_type: str
    stream: Iterator[bytes]
    is_archive: bool = False
