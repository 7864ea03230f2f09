"""Integration tests against a live MinIO instance.

They run the storage facade over a real S3 API, so delimiter listing,
batch deletes and managed copies are exercised by an actual server.
Skipped unless ``MINIO_ENDPOINT`` is set (e.g. inside Docker Compose).
"""
import io
import os
import uuid
import zipfile
from typing import Final

import boto3
import pytest
from botocore.client import BaseClient
from django.core.files.uploadedfile import SimpleUploadedFile

from server.apps.resources.exceptions import ResourceNotFoundError
from server.apps.resources.infrastructure.object_store import S3ObjectStore
from server.apps.resources.logic.storage_service import (
    StorageService,
    build_storage_service,
)

_TEST_BUCKET: Final = 'cloud-storage-integration'

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        'MINIO_ENDPOINT' not in os.environ,
        reason='MINIO_ENDPOINT is not set',
    ),
]


@pytest.fixture
def s3_client() -> BaseClient:
    """Create S3 client for MinIO.

    Returns:
        Configured boto3 S3 client for MinIO.
    """
    return boto3.client(
        's3',
        endpoint_url=os.environ['MINIO_ENDPOINT'],
        aws_access_key_id=os.getenv('MINIO_ROOT_USER', 'minioadmin'),
        aws_secret_access_key=os.getenv('MINIO_ROOT_PASSWORD', 'minioadmin'),
        region_name='us-east-1',
    )


@pytest.fixture
def object_store(s3_client: BaseClient) -> S3ObjectStore:
    """Object store over a bucket that is created when missing.

    Args:
        s3_client: boto3 S3 client.

    Returns:
        Object store bound to the integration bucket.
    """
    store = S3ObjectStore(s3_client, _TEST_BUCKET)
    if not store.bucket_exists():
        store.create_bucket()
    return store


@pytest.fixture
def user_id(object_store: S3ObjectStore):
    """Fresh user namespace, wiped after the test.

    Args:
        object_store: Integration object store.

    Yields:
        Random user id.
    """
    user_id = uuid.uuid4().int % 10**9
    yield user_id

    prefix = f'user-{user_id}-files/'
    object_store.remove_batch(
        stored.key
        for stored in object_store.list_objects(prefix, recursive=True)
    )


@pytest.fixture
def storage_service(object_store: S3ObjectStore) -> StorageService:
    """Facade wired around MinIO."""
    return build_storage_service(object_store)


def test_upload_list_and_download(
    storage_service: StorageService,
    user_id: int,
) -> None:
    """Test uploaded bytes come back through listing and download."""
    storage_service.upload(
        user_id,
        'docs/',
        [SimpleUploadedFile('readme.txt', b'hello')],
    )

    listing = storage_service.list_directory(user_id, 'docs/')
    download = storage_service.download_resource(user_id, 'docs/readme.txt')

    assert [resource.to_dict() for resource in listing] == [{
        'path': 'docs/',
        'name': 'readme.txt',
        'size': 5,
        'type': 'FILE',
    }]
    assert b''.join(download.stream) == b'hello'


def test_move_and_delete_directory(
    storage_service: StorageService,
    user_id: int,
) -> None:
    """Test a directory moves as a whole and is then deleted."""
    storage_service.create_directory(user_id, 'src/')
    storage_service.upload(
        user_id,
        'src/sub/',
        [SimpleUploadedFile('a.txt', b'a'), SimpleUploadedFile('b.txt', b'b')],
    )

    storage_service.move_or_rename_resource(user_id, 'src/', 'dst/')

    with pytest.raises(ResourceNotFoundError):
        storage_service.get_resource_info(user_id, 'src/')
    assert storage_service.get_resource_info(user_id, 'dst/sub/a.txt').size == 1

    storage_service.delete_resource(user_id, 'dst/')

    with pytest.raises(ResourceNotFoundError):
        storage_service.list_directory(user_id, 'dst/')


def test_directory_archive(
    storage_service: StorageService,
    user_id: int,
) -> None:
    """Test the streamed zip is readable."""
    storage_service.create_directory(user_id, 'photos/')
    storage_service.create_directory(user_id, 'photos/empty/')
    storage_service.upload(
        user_id,
        'photos/',
        [SimpleUploadedFile('f1.txt', b'1'), SimpleUploadedFile('f2.txt', b'2')],
    )

    download = storage_service.download_resource(user_id, 'photos/')

    with zipfile.ZipFile(io.BytesIO(b''.join(download.stream))) as zf:
        assert sorted(zf.namelist()) == [
            'photos/empty/',
            'photos/f1.txt',
            'photos/f2.txt',
        ]
