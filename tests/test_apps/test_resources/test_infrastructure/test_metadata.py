"""Tests for metadata helpers."""

import pytest

from server.apps.resources.infrastructure.metadata import (
    detect_mime_type,
    extract_filename,
    extract_folder_name,
)


def test_detect_mime_type():
    """Test MIME type detection from filename."""
    assert detect_mime_type('test.pdf') == 'application/pdf'
    assert detect_mime_type('test.txt') == 'text/plain'
    assert detect_mime_type('docs/photo.jpg') == 'image/jpeg'
    assert detect_mime_type('test.png') == 'image/png'


def test_detect_mime_type_unknown():
    """Test MIME type detection for unknown extension."""
    assert detect_mime_type('test.unknown') == 'application/octet-stream'
    assert detect_mime_type('no-extension') == 'application/octet-stream'


def test_extract_filename():
    """Test filename extraction from path."""
    assert extract_filename('documents/test.pdf') == 'test.pdf'
    assert extract_filename('test.txt') == 'test.txt'
    assert extract_filename('folder/subfolder/file.doc') == 'file.doc'


@pytest.mark.parametrize(('path', 'expected'), [
    ('docs/', 'docs'),
    ('docs/reports/', 'reports'),
    ('My Photos (2024)/', 'My Photos (2024)'),
    ('/', 'archive'),
    ('', 'archive'),
    (None, 'archive'),
])
def test_extract_folder_name(path, expected):
    """Test leaf folder extraction with the archive fallback."""
    assert extract_folder_name(path) == expected
