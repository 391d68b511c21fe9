"""Configuration loading for runcoach."""

from runcoach.foundation.config.loader import (
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from runcoach.foundation.types.config import RuncoachConfig

__all__ = [
    "RuncoachConfig",
    "get_config",
    "load_config",
    "reset_config",
    "save_default_config",
]
