"""Tests for init_bucket management command."""

from io import StringIO

import pytest
from django.conf import settings
from django.core.management import CommandError, call_command

from server.apps.resources.infrastructure.object_store import S3ObjectStore


class TestInitBucketCommand:
    """Tests for init_bucket management command."""

    def test_creates_missing_bucket(self, s3_client):
        """Test the configured bucket is created."""
        bucket_name = settings.STORAGES['default']['OPTIONS']['bucket_name']
        out = StringIO()

        call_command('init_bucket', stdout=out)

        names = [
            bucket['Name'] for bucket in s3_client.list_buckets()['Buckets']
        ]
        assert bucket_name in names
        assert f'Created bucket {bucket_name}' in out.getvalue()

    def test_is_idempotent(self, default_bucket):
        """Test an existing bucket is left alone."""
        out = StringIO()

        call_command('init_bucket', stdout=out)

        assert f'Bucket {default_bucket} already exists' in out.getvalue()

    def test_failure_becomes_command_error(self, s3_client, monkeypatch):
        """Test storage failures are reported as CommandError."""
        def unreachable(self):
            raise ConnectionError('endpoint down')

        monkeypatch.setattr(S3ObjectStore, 'list_buckets', unreachable)

        with pytest.raises(CommandError, match='endpoint down'):
            call_command('init_bucket', stdout=StringIO())
