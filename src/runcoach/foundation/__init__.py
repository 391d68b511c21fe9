"""Foundation domain - base types, config, errors, logging and utilities.

Everything else in runcoach imports from here; nothing here imports from
the modeling, advisor, store or service layers.
"""

from runcoach.foundation.config import (
    RuncoachConfig,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from runcoach.foundation.errors import (
    ErrorCode,
    RuncoachError,
    config_error,
    fit_input_error,
    model_set_error,
)
from runcoach.foundation.logging import configure_logging

__all__ = [
    # Config
    "RuncoachConfig",
    "get_config",
    "load_config",
    "reset_config",
    "save_default_config",
    # Errors
    "ErrorCode",
    "RuncoachError",
    "config_error",
    "fit_input_error",
    "model_set_error",
    # Logging
    "configure_logging",
]
