"""Object store interface and its S3 implementation.

The rest of the app only talks to :class:`ObjectStore`. It models a flat,
prefix addressable key/value store bound to one bucket; there is no
directory concept at this level.
"""

import itertools
from collections.abc import Iterable, Iterator
from typing import IO, Any, Final, Protocol, final

from botocore.client import BaseClient
from botocore.exceptions import ClientError

from server.apps.resources.exceptions import ObjectNotFoundError
from server.apps.resources.types import DeleteError, ObjectStat, StoredObject

# Separator used to emulate one directory level when listing
DELIMITER: Final = '/'

# S3 DeleteObjects accepts at most 1000 keys per request
_DELETE_BATCH_SIZE: Final = 1000

# One listing entry is enough to prove a prefix is in use
_PREFIX_CHECK_MAX_KEYS: Final = 1

_NOT_FOUND_CODES: Final = frozenset((
    '404',
    'NoSuchKey',
    'NoSuchBucket',
    'NotFound',
))


class ObjectStore(Protocol):
    """Capabilities required from the backing object store."""

    def put(
        self,
        key: str,
        stream: IO[bytes],
        size: int,
        content_type: str | None = None,
    ) -> None:
        """Store ``size`` bytes read from ``stream`` under ``key``."""

    def get(self, key: str) -> Any:
        """Open the object body. The caller must close it.

        Raises:
            ObjectNotFoundError: If the key does not exist.
        """

    def stat(self, key: str) -> ObjectStat:
        """Read object metadata.

        Raises:
            ObjectNotFoundError: If the key does not exist.
        """

    def list_objects(
        self,
        prefix: str,
        *,
        recursive: bool = False,
        max_keys: int | None = None,
    ) -> Iterator[StoredObject]:
        """List keys under ``prefix``.

        Non-recursive listing groups keys on the first ``/`` after the
        prefix, yielding sub-prefixes as directory entries.
        """

    def remove(self, key: str) -> None:
        """Remove a single key."""

    def remove_batch(self, keys: Iterable[str]) -> list[DeleteError]:
        """Remove many keys, returning the ones that failed."""

    def copy(self, source_key: str, destination_key: str) -> None:
        """Copy an object inside the bucket."""

    def bucket_exists(self) -> bool:
        """Check that the configured bucket exists."""

    def create_bucket(self) -> None:
        """Create the configured bucket."""


def _is_not_found(error: ClientError) -> bool:
    return error.response.get('Error', {}).get('Code') in _NOT_FOUND_CODES


def has_objects_under(object_store: ObjectStore, prefix: str) -> bool:
    """Check if at least one key starts with a prefix.

    Reads a single listing entry. Store errors propagate; callers decide
    whether a failed check means "absent".

    Args:
        object_store: Store to query.
        prefix: Key prefix, usually a directory prefix ending in ``/``.

    Returns:
        True if the prefix has any key below it.
    """
    entries = object_store.list_objects(
        prefix,
        max_keys=_PREFIX_CHECK_MAX_KEYS,
    )
    return next(iter(entries), None) is not None


@final
class S3ObjectStore:
    """:class:`ObjectStore` backed by a boto3 S3 client.

    Works against AWS S3, MinIO and Cloudflare R2. The client holds no
    per-request state, so one instance is shared by all services.
    """

    def __init__(self, client: BaseClient, bucket_name: str) -> None:
        """Initialize the store.

        Args:
            client: boto3 S3 client.
            bucket_name: Bucket all keys live in.
        """
        self._client = client
        self._bucket_name = bucket_name

    @property
    def bucket_name(self) -> str:
        """Get the bucket this store is bound to."""
        return self._bucket_name

    def put(
        self,
        key: str,
        stream: IO[bytes],
        size: int,
        content_type: str | None = None,
    ) -> None:
        """Upload an object with a known content length.

        Args:
            key: Destination key.
            stream: Readable binary stream.
            size: Number of bytes in the stream.
            content_type: MIME type stored with the object.
        """
        params: dict[str, Any] = {
            'Bucket': self._bucket_name,
            'Key': key,
            'Body': stream,
            'ContentLength': size,
        }
        if content_type:
            params['ContentType'] = content_type
        self._client.put_object(**params)

    def get(self, key: str) -> Any:
        """Open an object for reading.

        Args:
            key: Object key.

        Returns:
            botocore ``StreamingBody``; the caller must close it.

        Raises:
            ObjectNotFoundError: If the key does not exist.
        """
        try:
            response = self._client.get_object(
                Bucket=self._bucket_name,
                Key=key,
            )
        except ClientError as error:
            if _is_not_found(error):
                raise ObjectNotFoundError(key) from error
            raise
        return response['Body']

    def stat(self, key: str) -> ObjectStat:
        """Read size and content type of an object.

        Args:
            key: Object key.

        Returns:
            Object metadata.

        Raises:
            ObjectNotFoundError: If the key does not exist.
        """
        try:
            response = self._client.head_object(
                Bucket=self._bucket_name,
                Key=key,
            )
        except ClientError as error:
            if _is_not_found(error):
                raise ObjectNotFoundError(key) from error
            raise
        return ObjectStat(
            size=response['ContentLength'],
            content_type=response.get('ContentType'),
        )

    def list_objects(
        self,
        prefix: str,
        *,
        recursive: bool = False,
        max_keys: int | None = None,
    ) -> Iterator[StoredObject]:
        """List keys under a prefix, page by page.

        Args:
            prefix: Key prefix.
            recursive: List every key below the prefix instead of one
                ``/``-delimited level.
            max_keys: Stop after this many entries.

        Returns:
            Lazy iterator over listing entries. Order follows the store.
        """
        params: dict[str, Any] = {
            'Bucket': self._bucket_name,
            'Prefix': prefix,
        }
        if not recursive:
            params['Delimiter'] = DELIMITER
        if max_keys is not None:
            params['PaginationConfig'] = {'PageSize': max_keys}

        entries = self._iter_listing(params)
        if max_keys is None:
            return entries
        return itertools.islice(entries, max_keys)

    def remove(self, key: str) -> None:
        """Remove a single object.

        Args:
            key: Object key.
        """
        self._client.delete_object(Bucket=self._bucket_name, Key=key)

    def remove_batch(self, keys: Iterable[str]) -> list[DeleteError]:
        """Remove objects in batches of up to 1000 keys.

        Args:
            keys: Keys to remove.

        Returns:
            Keys the store refused to remove, with its message.
        """
        errors: list[DeleteError] = []
        for batch in itertools.batched(keys, _DELETE_BATCH_SIZE):
            response = self._client.delete_objects(
                Bucket=self._bucket_name,
                Delete={
                    'Objects': [{'Key': key} for key in batch],
                    'Quiet': True,
                },
            )
            errors.extend(
                DeleteError(
                    key=error.get('Key', ''),
                    message=error.get('Message', error.get('Code', '')),
                )
                for error in response.get('Errors', [])
            )
        return errors

    def copy(self, source_key: str, destination_key: str) -> None:
        """Copy an object with a server-side (managed) copy.

        Args:
            source_key: Existing key.
            destination_key: Key to create.
        """
        copy_source = {
            'Bucket': self._bucket_name,
            'Key': source_key,
        }
        self._client.copy(copy_source, self._bucket_name, destination_key)

    def bucket_exists(self) -> bool:
        """Check that the bucket exists.

        Returns:
            True if the bucket exists and is reachable.
        """
        try:
            self._client.head_bucket(Bucket=self._bucket_name)
        except ClientError as error:
            if _is_not_found(error):
                return False
            raise
        return True

    def create_bucket(self) -> None:
        """Create the bucket in the client's region."""
        params: dict[str, Any] = {'Bucket': self._bucket_name}
        region = self._client.meta.region_name
        if region and region not in {'us-east-1', 'auto'}:
            params['CreateBucketConfiguration'] = {
                'LocationConstraint': region,
            }
        self._client.create_bucket(**params)

    def list_buckets(self) -> list[str]:
        """List bucket names visible to the credentials.

        Returns:
            Bucket names.
        """
        response = self._client.list_buckets()
        return [bucket['Name'] for bucket in response.get('Buckets', [])]

    def _iter_listing(self, params: dict[str, Any]) -> Iterator[StoredObject]:
        paginator = self._client.get_paginator('list_objects_v2')
        for page in paginator.paginate(**params):
            for item in page.get('Contents', []):
                key = item['Key']
                yield StoredObject(
                    key=key,
                    size=item.get('Size', 0),
                    is_dir=key.endswith(DELIMITER),
                )
            for common_prefix in page.get('CommonPrefixes', []):
                yield StoredObject(
                    key=common_prefix['Prefix'],
                    size=0,
                    is_dir=True,
                )
