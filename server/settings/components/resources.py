"""Settings for the resources app."""

from server.settings.components import config

# Search stops once this many resources matched
RESOURCES_SEARCH_MAX_RESULTS = config(
    'RESOURCES_SEARCH_MAX_RESULTS',
    cast=int,
    default=100,
)

# Bytes read from an object per step while streaming a zip archive
RESOURCES_ARCHIVE_CHUNK_SIZE = config(
    'RESOURCES_ARCHIVE_CHUNK_SIZE',
    cast=int,
    default=64 * 1024,
)
