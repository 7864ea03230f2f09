"""Shared fixtures for resources app tests."""

from typing import Final

import boto3
import pytest
from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from moto import mock_aws

from server.apps.resources.infrastructure.object_store import S3ObjectStore
from server.apps.resources.logic.archive_operations import ArchiveService
from server.apps.resources.logic.directory_operations import DirectoryService
from server.apps.resources.logic.file_operations import FileOperationsService
from server.apps.resources.logic.move_operations import ResourceMoveService
from server.apps.resources.logic.path_service import PathService
from server.apps.resources.logic.resource_info import ResourceInfoBuilder
from server.apps.resources.logic.search_operations import SearchService
from server.apps.resources.logic.storage_service import build_storage_service

_TEST_BUCKET: Final = 'test-resources'


@pytest.fixture
def s3_client():
    """Mock S3 service with an empty test bucket.

    Yields:
        boto3 S3 client bound to the mocked service.
    """
    with mock_aws():
        client = boto3.client('s3', region_name='us-east-1')
        client.create_bucket(Bucket=_TEST_BUCKET)
        yield client


@pytest.fixture
def default_bucket(s3_client):
    """Create the bucket configured for the default storage.

    Returns:
        Bucket name from ``STORAGES['default']``.
    """
    bucket_name = settings.STORAGES['default']['OPTIONS']['bucket_name']
    s3_client.create_bucket(Bucket=bucket_name)
    return bucket_name


@pytest.fixture
def object_store(s3_client):
    """Object store over the mocked test bucket."""
    return S3ObjectStore(s3_client, _TEST_BUCKET)


@pytest.fixture
def path_service():
    """Path rules shared by all services."""
    return PathService()


@pytest.fixture
def resource_info_builder():
    """Resource descriptor decoder."""
    return ResourceInfoBuilder()


@pytest.fixture
def file_operations(object_store, path_service, resource_info_builder):
    """File operations over the mocked store."""
    return FileOperationsService(
        object_store,
        path_service,
        resource_info_builder,
    )


@pytest.fixture
def directory_service(object_store, path_service, resource_info_builder):
    """Directory operations over the mocked store."""
    return DirectoryService(object_store, path_service, resource_info_builder)


@pytest.fixture
def move_service(object_store, path_service, file_operations):
    """Move operations over the mocked store."""
    return ResourceMoveService(object_store, path_service, file_operations)


@pytest.fixture
def search_service(object_store, path_service, resource_info_builder):
    """Search over the mocked store."""
    return SearchService(object_store, path_service, resource_info_builder)


@pytest.fixture
def archive_service(object_store, path_service):
    """Archive builder over the mocked store, with a tiny read chunk."""
    return ArchiveService(object_store, path_service, chunk_size=4)


@pytest.fixture
def storage_service(object_store):
    """Facade wired around the mocked store."""
    return build_storage_service(object_store)


@pytest.fixture
def put_object(s3_client):
    """Store raw objects for a user, bypassing the services.

    Returns:
        Callable taking a user id, a relative path and content.
    """
    def _put(user_id: int, relative_path: str, content: bytes = b'') -> str:
        key = f'user-{user_id}-files/{relative_path}'
        s3_client.put_object(Bucket=_TEST_BUCKET, Key=key, Body=content)
        return key

    return _put


@pytest.fixture
def list_keys(s3_client):
    """List every key in the test bucket.

    Returns:
        Callable returning sorted keys under an optional prefix.
    """
    def _list(prefix: str = '') -> list[str]:
        paginator = s3_client.get_paginator('list_objects_v2')
        return sorted(
            item['Key']
            for page in paginator.paginate(Bucket=_TEST_BUCKET, Prefix=prefix)
            for item in page.get('Contents', [])
        )

    return _list


@pytest.fixture
def read_object(s3_client):
    """Read the body of a key in the test bucket."""
    def _read(key: str) -> bytes:
        response = s3_client.get_object(Bucket=_TEST_BUCKET, Key=key)
        return response['Body'].read()

    return _read


@pytest.fixture
def make_upload():
    """Build uploaded files the way Django hands them to a view.

    Returns:
        Callable taking a name, content and optional content type.
    """
    def _make(
        name: str,
        content: bytes,
        content_type: str | None = 'text/plain',
    ) -> SimpleUploadedFile:
        return SimpleUploadedFile(name, content, content_type=content_type)

    return _make
