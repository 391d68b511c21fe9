"""Crash-tolerant JSON file I/O.

Reads fall back to a default on any error; writes go through a temp file
and ``os.replace`` so a crash never leaves a half-written file behind.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def safe_json_load(path: Path, default: T = None) -> Any | T:
    """Load JSON file, returning default on any error.

    Args:
        path: Path to JSON file
        default: Value to return if file is missing or invalid

    Returns:
        Parsed JSON data, or default on any error

    Example:
        >>> data = safe_json_load(Path("missing.json"), default={})
    """
    if not path.exists():
        return default

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Corrupted JSON in %s: %s (using default)", path, e)
        return default
    except OSError as e:
        logger.warning("Failed to read %s: %s (using default)", path, e)
        return default


def safe_json_dump(
    obj: dict[str, Any] | list[Any],
    path: Path,
    *,
    indent: int = 2,
) -> bool:
    """Write JSON file atomically (temp file + rename).

    Creates parent directories if needed.

    Args:
        obj: Object to serialize
        path: Destination path
        indent: JSON indentation (default: 2)

    Returns:
        True if successful, False on error
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(obj, indent=indent)

        fd, tmp_path = tempfile.mkstemp(
            suffix=".tmp",
            prefix=path.stem + "_",
            dir=path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, path)  # Atomic on POSIX
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_path)
            raise

        return True
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        return False
    except (TypeError, ValueError) as e:
        logger.error("Failed to serialize JSON for %s: %s", path, e)
        return False
