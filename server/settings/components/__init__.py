"""Shared helpers for settings components."""

from pathlib import Path
from typing import Final

from decouple import AutoConfig

# Project root: the directory that contains the ``server`` package
BASE_DIR: Final = Path(__file__).parent.parent.parent.parent

# Reads from environment variables first, then from ``config/.env``
config = AutoConfig(search_path=BASE_DIR.joinpath('config'))
