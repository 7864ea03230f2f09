"""Custom storage backend for S3-compatible storage."""

import logging
import re
from typing import Any, Final, final, override

from django.core.exceptions import ImproperlyConfigured
from django.core.files.storage import default_storage
from storages.backends.s3 import S3Storage

from server.apps.resources.exceptions import StorageBackendError
from server.apps.resources.infrastructure.object_store import S3ObjectStore

logger = logging.getLogger(__name__)

# 3-63 characters, lowercase letters, digits and hyphens
_BUCKET_NAME_PATTERN: Final = re.compile(r'^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$')


@final
class FileStorage(S3Storage):
    """S3 storage backend for user resources.

    Extends django-storages S3Storage with:
    - Bucket name validation at construction time
    - An :class:`S3ObjectStore` view over the same connection
    - Bucket bootstrap (connectivity check, create if missing)
    """

    @override
    def __init__(self, **settings: Any) -> None:
        """Initialize the storage and validate the bucket name.

        Args:
            settings: django-storages options (see ``STORAGES``).

        Raises:
            ImproperlyConfigured: If the bucket name is not a valid
                S3 bucket name.
        """
        super().__init__(**settings)
        if not _BUCKET_NAME_PATTERN.match(self.bucket_name or ''):
            raise ImproperlyConfigured(
                'Bucket name must be 3-63 characters, lowercase letters, '
                f'numbers, and hyphens only: {self.bucket_name!r}',
            )

    def get_object_store(self) -> S3ObjectStore:
        """Build an object store bound to the configured bucket.

        Returns:
            S3ObjectStore sharing this storage's boto3 connection.
        """
        return S3ObjectStore(self.connection.meta.client, self.bucket_name)

    def ensure_bucket(self) -> bool:
        """Check connectivity and create the bucket when missing.

        Returns:
            True if the bucket was created, False if it already existed.

        Raises:
            StorageBackendError: If the store is unreachable or refuses
                to create the bucket.
        """
        object_store = self.get_object_store()
        logger.info(
            'Initializing object storage: endpoint=%s, bucket=%s',
            self.endpoint_url,
            self.bucket_name,
        )
        try:
            object_store.list_buckets()
            logger.info('Object storage connection successful')
            if object_store.bucket_exists():
                logger.info('Bucket %s already exists', self.bucket_name)
                return False

            logger.info(
                'Bucket %s does not exist, creating...',
                self.bucket_name,
            )
            object_store.create_bucket()
        except Exception as exc:
            logger.exception(
                'Failed to initialize object storage: endpoint=%s, bucket=%s',
                self.endpoint_url,
                self.bucket_name,
            )
            raise StorageBackendError(
                'Object storage initialization failed',
                cause=exc,
            ) from exc

        logger.info('Bucket %s created successfully', self.bucket_name)
        return True


def get_file_storage() -> FileStorage:
    """Get the configured default storage backend.

    Returns:
        FileStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]
