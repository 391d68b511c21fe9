"""File-backed nominal segment durations per run.

Storage: base_path/durations/{sanitized run id}-{id hash}.json

    {"run": "<run id>", "segments": {"<segment>": seconds, ...}}

Key order in ``segments`` is the run's traversal order.
"""

import logging
import math
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from runcoach.foundation.errors import ErrorCode, RuncoachError
from runcoach.foundation.utils.paths import run_file_name
from runcoach.foundation.utils.serialization import safe_json_dump, safe_json_load

logger = logging.getLogger(__name__)

DEFAULT_SEGMENT_DURATION = 10.0


@dataclass(frozen=True, slots=True)
class SegmentDurations:
    """Traversal order and nominal seconds of every segment in a run."""

    order: tuple[str, ...]
    """Segment identifiers in traversal order."""

    durations: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    """Read-only mapping from segment identifier to seconds."""

    def to_dict(self) -> dict[str, float]:
        """Ordered ``{segment: seconds}`` mapping."""
        return {segment: self.durations[segment] for segment in self.order}


def _is_valid_duration(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


class DurationStore:
    """Stores the segment order and duration table of each run.

    Unlike outcomes, duration tables are written by explicit user action,
    so invalid input and failed writes raise ``RuncoachError``. Invalid
    files on disk are logged and treated as absent.
    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        self._cache: dict[str, SegmentDurations | None] = {}
        self._lock = threading.Lock()

    def duration_file_path(self, run_id: str) -> Path:
        """Path of the JSON file that stores ``run_id``."""
        return self._base_path / "durations" / f"{run_file_name(run_id)}.json"

    def _load(self, run_id: str) -> SegmentDurations | None:
        if run_id in self._cache:
            return self._cache[run_id]

        path = self.duration_file_path(run_id)
        data = safe_json_load(path, default=None)
        loaded: SegmentDurations | None = None

        if data is not None:
            raw = data.get("segments") if isinstance(data, dict) else None
            if not isinstance(raw, dict) or not raw:
                logger.warning("Ignoring malformed duration file %s", path)
            elif data.get("run") != run_id:
                logger.warning("Ignoring duration file %s: it belongs to run %r", path, data.get("run"))
            elif bad := [s for s, v in raw.items() if not _is_valid_duration(v)]:
                logger.warning(
                    "Ignoring duration file %s: invalid duration for %s",
                    path,
                    ", ".join(bad),
                )
            else:
                loaded = SegmentDurations(
                    order=tuple(raw),
                    durations=MappingProxyType({s: float(v) for s, v in raw.items()}),
                )

        self._cache[run_id] = loaded
        return loaded

    def get_segment_durations(self, run_id: str) -> SegmentDurations | None:
        """Order and durations of ``run_id``, or None if none are stored."""
        with self._lock:
            return self._load(run_id)

    def has_durations(self, run_id: str) -> bool:
        """Whether a valid duration table exists for ``run_id``."""
        return self.get_segment_durations(run_id) is not None

    def get_duration(
        self,
        run_id: str,
        segment_id: str,
        fallback: float = DEFAULT_SEGMENT_DURATION,
    ) -> float:
        """Duration of one segment, or ``fallback`` if unknown."""
        durations = self.get_segment_durations(run_id)
        if durations is None:
            return fallback
        return durations.durations.get(segment_id, fallback)

    def set_segment_durations(
        self,
        run_id: str,
        order: Sequence[str],
        durations: Mapping[str, float],
    ) -> SegmentDurations:
        """Replace the duration table of ``run_id``.

        Args:
            run_id: Run identifier.
            order: Segment identifiers in traversal order.
            durations: Seconds per segment; every segment in ``order`` needs one.

        Returns:
            The stored table.

        Raises:
            RuncoachError: If the table is invalid (STORE_DURATIONS_INVALID)
                or cannot be written (STORE_WRITE_FAILED).
        """
        order = tuple(order)
        if not order:
            raise _invalid(run_id, "no segments given")
        if len(set(order)) != len(order):
            raise _invalid(run_id, "segment order contains duplicates")
        for segment in order:
            if segment not in durations:
                raise _invalid(run_id, f"no duration for segment '{segment}'")
            if not _is_valid_duration(durations[segment]):
                raise _invalid(run_id, f"duration for '{segment}' must be a positive number")

        table = SegmentDurations(
            order=order,
            durations=MappingProxyType({s: float(durations[s]) for s in order}),
        )
        path = self.duration_file_path(run_id)
        with self._lock:
            if not safe_json_dump({"run": run_id, "segments": table.to_dict()}, path):
                raise RuncoachError(
                    ErrorCode.STORE_WRITE_FAILED,
                    {"path": str(path), "detail": "see log for details"},
                )
            self._cache[run_id] = table
        logger.info("Stored durations for %d segments of %s", len(order), run_id)
        return table

    def invalidate_cache(self, run_id: str | None = None) -> None:
        """Drop cached tables so the next read goes to disk."""
        with self._lock:
            if run_id is None:
                self._cache.clear()
            else:
                self._cache.pop(run_id, None)


def _invalid(run_id: str, detail: str) -> RuncoachError:
    return RuncoachError(
        ErrorCode.STORE_DURATIONS_INVALID,
        {"run": run_id, "detail": detail},
    )
