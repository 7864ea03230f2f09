"""Tests for export_directory management command."""

import zipfile
from io import StringIO

import pytest
from botocore.exceptions import BotoCoreError
from django.core.management import CommandError, call_command

from server.apps.resources.infrastructure.object_store import S3ObjectStore


class _TrackedBody:
    """Object body that remembers whether it was closed."""

    def __init__(self, body):
        self._body = body
        self.closed = False

    def read(self, amt=None):
        return self._body.read(amt)

    def close(self):
        self.closed = True
        self._body.close()


@pytest.fixture
def stored_tree(s3_client, default_bucket):
    """Store a few objects for user 42 in the default bucket."""
    for key, content in (
        ('user-42-files/docs/', b''),
        ('user-42-files/docs/readme.txt', b'hello'),
        ('user-42-files/docs/sub/notes.md', b'# notes'),
    ):
        s3_client.put_object(Bucket=default_bucket, Key=key, Body=content)


class TestExportDirectoryCommand:
    """Tests for export_directory management command."""

    def test_exports_directory_as_zip(self, stored_tree, tmp_path):
        """Test a directory is written as a zip archive."""
        output = tmp_path / 'docs.zip'
        out = StringIO()

        call_command(
            'export_directory',
            '42',
            'docs/',
            '--output',
            str(output),
            stdout=out,
        )

        with zipfile.ZipFile(output) as zf:
            assert sorted(zf.namelist()) == [
                'docs/readme.txt',
                'docs/sub/notes.md',
            ]
            assert zf.read('docs/readme.txt') == b'hello'
        assert 'Exported docs/' in out.getvalue()

    def test_exports_single_file(self, stored_tree, tmp_path):
        """Test a file path is written byte for byte."""
        output = tmp_path / 'readme.txt'

        call_command(
            'export_directory',
            '42',
            'docs/readme.txt',
            '--output',
            str(output),
            stdout=StringIO(),
        )

        assert output.read_bytes() == b'hello'

    def test_missing_resource(self, stored_tree, tmp_path):
        """Test domain errors are reported as CommandError."""
        output = tmp_path / 'missing.zip'

        with pytest.raises(CommandError, match='not found'):
            call_command(
                'export_directory',
                '42',
                'missing/',
                '--output',
                str(output),
                stdout=StringIO(),
            )

        assert not output.exists()

    def test_other_user_cannot_export_file(self, stored_tree, tmp_path):
        """Test user namespaces stay isolated."""
        with pytest.raises(CommandError):
            call_command(
                'export_directory',
                '7',
                'docs/readme.txt',
                '--output',
                str(tmp_path / 'x'),
                stdout=StringIO(),
            )

    def test_unwritable_output_releases_body(
        self,
        stored_tree,
        tmp_path,
        monkeypatch,
    ):
        """Test the object body is closed when the output cannot be opened."""
        opened = []
        original_get = S3ObjectStore.get

        def tracked_get(store, key):
            body = _TrackedBody(original_get(store, key))
            opened.append(body)
            return body

        monkeypatch.setattr(S3ObjectStore, 'get', tracked_get)
        output = tmp_path / 'no-such-dir' / 'readme.txt'

        with pytest.raises(CommandError, match='Export failed'):
            call_command(
                'export_directory',
                '42',
                'docs/readme.txt',
                '--output',
                str(output),
                stdout=StringIO(),
            )

        assert len(opened) == 1
        assert opened[0].closed
        assert not output.exists()

    def test_transport_error_is_command_error(
        self,
        stored_tree,
        tmp_path,
        monkeypatch,
    ):
        """Test botocore read failures are reported and clean up the output."""
        original_get = S3ObjectStore.get

        def failing_get(store, key):
            body = _TrackedBody(original_get(store, key))

            def broken_read(amt=None):
                raise BotoCoreError()

            body.read = broken_read
            return body

        monkeypatch.setattr(S3ObjectStore, 'get', failing_get)
        output = tmp_path / 'readme.txt'

        with pytest.raises(CommandError, match='Export failed'):
            call_command(
                'export_directory',
                '42',
                'docs/readme.txt',
                '--output',
                str(output),
                stdout=StringIO(),
            )

        assert not output.exists()
