"""Management command to check object storage and create the bucket."""

import logging
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from server.apps.resources.exceptions import StorageBackendError
from server.apps.resources.infrastructure.storage import get_file_storage

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Test the object storage connection and create a missing bucket."""

    help = 'Check object storage connectivity and create the bucket'

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the bootstrap command.

        Args:
            args: Positional arguments (unused).
            options: Command options (unused).

        Raises:
            CommandError: If the storage is unreachable or the bucket
                cannot be created.
        """
        storage = get_file_storage()
        try:
            created = storage.ensure_bucket()
        except StorageBackendError as exc:
            raise CommandError(
                f'Object storage initialization failed: {exc.cause}',
            ) from exc

        if created:
            message = f'Created bucket {storage.bucket_name}'
        else:
            message = f'Bucket {storage.bucket_name} already exists'
        self.stdout.write(self.style.SUCCESS(message))
