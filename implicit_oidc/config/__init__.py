"""Imports manager"""

from .const import *  # noqa: F403
from .schema import CONFIG_SCHEMA as CONFIG_SCHEMA
from .settings import (
    ClientSettings as ClientSettings,
    NetworkOptions as NetworkOptions,
    normalize_authority as normalize_authority,
)
