"""Metadata helpers for stored resources."""

import mimetypes
from pathlib import PurePosixPath
from typing import Final

_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'

# Top-level folder name inside a zip when none can be derived
DEFAULT_ARCHIVE_NAME: Final = 'archive'


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from a filename.

    Uses Python's built-in mimetypes module to guess the MIME type
    from the filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_MIME_TYPE
    return mime_type


def extract_folder_name(path: str | None) -> str:
    """Extract the leaf folder name of a directory path.

    Args:
        path: Directory path (e.g., 'docs/reports/').

    Returns:
        Leaf name (e.g., 'reports'), or 'archive' for root and empty
        paths.
    """
    if not path:
        return DEFAULT_ARCHIVE_NAME
    name = PurePosixPath(path.rstrip('/')).name
    return name or DEFAULT_ARCHIVE_NAME


def extract_filename(path: str) -> str:
    """Extract the basename of a file path.

    Args:
        path: File path (e.g., 'docs/report.pdf').

    Returns:
        Filename (e.g., 'report.pdf').
    """
    return PurePosixPath(path).name
