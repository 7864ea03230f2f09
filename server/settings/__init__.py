"""Django settings for the cloud storage project.

Settings are split into components and combined with django-split-settings.
Values that differ between environments are read from the environment
(or ``config/.env``) through python-decouple.
"""

from split_settings.tools import include

include(
    'components/common.py',
    'components/logging.py',
    'components/storages.py',
    'components/resources.py',
)
