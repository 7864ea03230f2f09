"""Management command to export a user's resource to a local file."""

import contextlib
import logging
from pathlib import Path
from typing import Any

from botocore.exceptions import BotoCoreError
from django.core.management.base import BaseCommand, CommandError

from server.apps.resources.exceptions import ResourceError
from server.apps.resources.logic.storage_service import build_storage_service

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Write a file, or a directory as a zip archive, to local disk."""

    help = 'Export a user file or directory (as zip) to a local file'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument('user_id', type=int, help='Owner of the resource')
        parser.add_argument(
            'path',
            help="Resource path, directories end with '/'",
        )
        parser.add_argument(
            '--output',
            help='Destination file (default: name of the resource)',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the export command.

        Args:
            args: Positional arguments (unused).
            options: Command options.

        Raises:
            CommandError: If the resource cannot be exported.
        """
        user_id = options['user_id']
        path = options['path']

        try:
            download = build_storage_service().download_resource(user_id, path)
        except (ResourceError, ValueError) as exc:
            raise CommandError(str(exc)) from exc

        output = Path(options['output'] or download.filename)
        written = 0
        opened = False
        try:
            with contextlib.closing(download.stream) as stream:
                with output.open('wb') as target:
                    opened = True
                    for chunk in stream:
                        target.write(chunk)
                        written += len(chunk)
        except (ResourceError, OSError, BotoCoreError) as exc:
            logger.exception('Failed to export %s for user %d', path, user_id)
            if opened:
                output.unlink(missing_ok=True)
            raise CommandError(f'Export failed: {exc}') from exc

        self.stdout.write(
            self.style.SUCCESS(f'Exported {path} to {output} ({written} bytes)'),
        )
