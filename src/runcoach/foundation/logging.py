"""Root logger setup for the runcoach CLI.

The console shows WARNING and above unless asked otherwise. A debug session
can also keep a full DEBUG transcript on disk, one file per invocation, in
the data directory's ``logs/`` folder.

Level resolution, first match wins:
    1. explicit ``level`` argument
    2. ``RUNCOACH_LOG_LEVEL`` env var (name or number)
    3. ``debug=True`` (the --debug flag or ``debug: true`` in config)
    4. WARNING

Usage:
    from runcoach.foundation.logging import configure_logging
    configure_logging(debug=config.debug, log_dir=data_dir / "logs")
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

_DETAILED_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_CONSOLE_FORMAT = "%(name)s: %(message)s"

LEVEL_ENV_VAR = "RUNCOACH_LOG_LEVEL"
MAX_SESSION_LOGS = 10

logger = logging.getLogger(__name__)


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: TextIO | None = None,
    log_dir: Path | None = None,
) -> Path | None:
    """Install a console handler, and optionally a session file, on the root logger.

    Args:
        debug: Show DEBUG records with timestamps on the console.
        level: Console level override, as a number or a name like "INFO".
        stream: Console stream (default: stderr).
        log_dir: Directory for session logs. Nothing is written to disk
            when omitted.

    Returns:
        Path of this session's log file, or None when no file is kept.
    """
    console_level = _resolve_level(debug, level)

    root = logging.getLogger()
    root.handlers.clear()

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(
        logging.Formatter(_DETAILED_FORMAT if console_level <= logging.DEBUG else _CONSOLE_FORMAT)
    )
    root.addHandler(console)

    session_log = None
    if log_dir is not None:
        try:
            session_log = _open_session_log(root, Path(log_dir))
        except OSError as e:
            sys.stderr.write(f"Warning: Could not enable persistent logging: {e}\n")

    # The session file wants every record; the console filters its own
    root.setLevel(logging.DEBUG if session_log else console_level)

    logger.debug(
        "Logging configured: console=%s, session_log=%s",
        logging.getLevelName(console_level),
        session_log,
    )
    return session_log


def _resolve_level(debug: bool, level: int | str | None) -> int:
    if level is not None:
        return _parse_level(level)
    if env_level := os.environ.get(LEVEL_ENV_VAR):
        return _parse_level(env_level)
    return logging.DEBUG if debug else logging.WARNING


def _parse_level(level: int | str) -> int:
    """Level number from an int, a level name, or a numeric string. Unknown names give WARNING."""
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.strip().upper())
    if isinstance(numeric, int):
        return numeric
    try:
        return int(level)
    except ValueError:
        return logging.WARNING


def _open_session_log(root: logging.Logger, log_dir: Path) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    _prune_sessions(log_dir, keep=MAX_SESSION_LOGS - 1)

    path = log_dir / f"session_{datetime.now():%Y-%m-%d_%H-%M-%S}.log"
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_DETAILED_FORMAT))
    root.addHandler(handler)
    return path


def _prune_sessions(log_dir: Path, keep: int) -> None:
    """Delete all but the ``keep`` newest session logs."""
    sessions = sorted(log_dir.glob("session_*.log"), key=lambda p: p.stat().st_mtime, reverse=True)
    for stale in sessions[keep:]:
        try:
            stale.unlink()
        except OSError:
            logger.debug("Could not remove old session log %s", stale)
