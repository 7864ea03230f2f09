"""Core Django settings."""

from server.settings.components import BASE_DIR, config

SECRET_KEY = config('DJANGO_SECRET_KEY', default='insecure-development-key')

DEBUG = config('DJANGO_DEBUG', cast=bool, default=False)

ALLOWED_HOSTS: list[str] = []

INSTALLED_APPS = [
    'server.apps.resources',
]

# User accounts live outside this project, no database is required
DATABASES: dict[str, dict[str, str]] = {}

USE_TZ = True
TIME_ZONE = 'UTC'

STATIC_ROOT = BASE_DIR.joinpath('static')
