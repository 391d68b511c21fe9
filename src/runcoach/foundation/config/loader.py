"""Runcoach configuration management.

Loads configuration from .runcoach/config.yaml with sensible defaults.
All settings can be overridden via environment variables (RUNCOACH_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. .runcoach/config.yaml (project-local)
3. ~/.runcoach/config.yaml (user-global)
4. Built-in defaults

Thread Safety:
    Uses threading.Lock for thread-safe lazy initialization.
"""


import logging
import os
import threading
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from runcoach.foundation.errors import config_error
from runcoach.foundation.types.config import (
    FittingConfig,
    RuncoachConfig,
    ServiceConfig,
    SimulationConfig,
    StorageConfig,
    TrackingConfig,
)

logger = logging.getLogger(__name__)

_SECTIONS: dict[str, type] = {
    "fitting": FittingConfig,
    "simulation": SimulationConfig,
    "service": ServiceConfig,
    "tracking": TrackingConfig,
    "storage": StorageConfig,
}

# Inclusive bounds for integer settings; mirrors the ranges exposed in settings menus
_INT_RANGES: dict[tuple[str, str], tuple[int, int]] = {
    ("fitting", "min_samples"): (5, 50),
    ("service", "refit_interval"): (1, 20),
    ("simulation", "max_rounds"): (1, 10_000_000),
    ("simulation", "max_practice_per_round"): (0, 1_000_000),
}


def _get_dataclass_defaults() -> dict[str, Any]:
    """Get defaults from dataclass definitions (single source of truth)."""
    return asdict(RuncoachConfig())


# Global config instance (lazy-loaded, thread-safe)
_config: RuncoachConfig | None = None
_config_lock = threading.Lock()


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(value: str) -> bool | int | float | str:
    """Coerce an environment string to bool, int, float or leave it as str."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict) -> dict:
    """Apply environment variable overrides.

    Environment variables follow pattern: RUNCOACH_SECTION_KEY

    Examples:
        RUNCOACH_FITTING_MIN_SAMPLES=20
        RUNCOACH_SERVICE_DEFERRED=true
        RUNCOACH_STORAGE_BASE_PATH=/tmp/coach
    """
    prefix = "RUNCOACH_"

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        path_str = key[len(prefix):].lower()

        for section, section_type in _SECTIONS.items():
            if not path_str.startswith(section + "_"):
                continue
            field_name = path_str[len(section) + 1:]
            known = {f.name for f in fields(section_type)}
            if field_name in known:
                config_dict.setdefault(section, {})[field_name] = _coerce(value)
            else:
                logger.debug("Ignoring unknown config override %s", key)
            break

    return config_dict


def _validate(config: RuncoachConfig) -> RuncoachConfig:
    """Reject out-of-range settings."""
    for (section, name), (low, high) in _INT_RANGES.items():
        value = getattr(getattr(config, section), name)
        if not isinstance(value, int) or isinstance(value, bool) or not low <= value <= high:
            raise config_error(f"{section}.{name}", f"expected integer in [{low}, {high}], got {value!r}")

    epsilon = config.simulation.survival_epsilon
    if not isinstance(epsilon, (int, float)) or not 0.0 < epsilon < 1.0:
        raise config_error("simulation.survival_epsilon", f"expected value in (0, 1), got {epsilon!r}")

    return config


def _dict_to_config(data: dict) -> RuncoachConfig:
    """Convert a dict to RuncoachConfig."""
    built: dict[str, Any] = {}
    for section, section_type in _SECTIONS.items():
        section_data = data.get(section) or {}
        if not isinstance(section_data, dict):
            raise config_error(section, "expected a mapping")
        try:
            built[section] = section_type(**section_data)
        except TypeError as e:
            raise config_error(section, str(e)) from e

    return _validate(RuncoachConfig(**built, debug=bool(data.get("debug", False))))


def load_config(path: str | Path | None = None) -> RuncoachConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (RUNCOACH_*)
    2. Explicit path if provided
    3. .runcoach/config.yaml (project-local)
    4. ~/.runcoach/config.yaml (user-global)
    5. Built-in defaults

    Args:
        path: Optional explicit config file path.

    Returns:
        Merged RuncoachConfig instance.

    Raises:
        RuncoachError: If a setting is unknown or out of range.
    """
    global _config

    config_dict = _get_dataclass_defaults()

    config_paths = []
    if path:
        config_paths.append(Path(path))
    config_paths.extend([
        Path(".runcoach/config.yaml"),
        Path.home() / ".runcoach" / "config.yaml",
    ])

    for config_path in config_paths:
        if config_path.exists():
            try:
                with open(config_path) as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Skipping unreadable config file %s: %s", config_path, e)
                continue
            if not isinstance(file_config, dict):
                logger.warning("Skipping config file %s: top level is not a mapping", config_path)
                continue
            _deep_update(config_dict, file_config)
            break  # Use first found config

    config_dict = _apply_env_overrides(config_dict)

    _config = _dict_to_config(config_dict)
    return _config


def get_config() -> RuncoachConfig:
    """Get the current configuration, loading if needed.

    Thread-safe with double-check locking.
    """
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None


def save_default_config(path: str | Path = ".runcoach/config.yaml") -> Path:
    """Save the default configuration to a file.

    Creates a documented config file with all options.

    Args:
        path: Where to save the config.

    Returns:
        Path to the saved config file.
    """
    config_content = '''# runcoach configuration
#
# Defaults live in runcoach/foundation/types/config.py.
# Edit the values you want to override.

fitting:
  # Outcomes needed before a learning curve is fitted (5-50).
  # Below this, a segment uses its plain success rate.
  min_samples: 15

simulation:
  # Cap on simulated attempt rounds for time-to-completion estimates
  max_rounds: 100000

  # Stop simulating once the chance of still not having finished is this small
  survival_epsilon: 1.0e-12

  # Cap on virtual practice attempts between two simulated rounds
  max_practice_per_round: 1000

service:
  # Refit on a background worker instead of the recording thread
  deferred: false

  # Compute the recommendation before publishing refitted models
  precompute_recommendation: true

  # Outcomes on a segment between two refits (1-20)
  refit_interval: 1

tracking:
  # Store recorded outcomes
  enabled: true

storage:
  # Directory for attempt history, segment durations and logs
  base_path: ".runcoach"

# Debug logging
debug: false
'''

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config_content)
    return path
