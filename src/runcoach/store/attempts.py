"""File-backed outcome history per run and segment.

Storage: base_path/attempts/{sanitized run id}-{id hash}.json

    {"run": "<run id>", "segments": {"<segment>": [true, false, ...]}}

Segments keep insertion order; outcomes are append-only until cleared.
"""

import logging
import threading
from pathlib import Path

from runcoach.foundation.utils.paths import run_file_name
from runcoach.foundation.utils.serialization import safe_json_dump, safe_json_load

logger = logging.getLogger(__name__)


class AttemptStore:
    """Records success/failure outcomes and serves them back as histories.

    Histories are cached in memory after the first read of a run. Every
    write goes through ``self._lock`` and is persisted immediately. A file
    that cannot be read or written is logged and treated as empty; outcome
    recording never raises.

    Example:
        >>> store = AttemptStore(Path(".runcoach"))
        >>> store.record("celeste/1a", "room-3", success=False)
        1
        >>> store.get_outcome_history("celeste/1a", "room-3")
        [False]
    """

    def __init__(self, base_path: Path) -> None:
        """Initialize attempt store.

        Args:
            base_path: Base directory for storage (e.g., .runcoach)
        """
        self._base_path = Path(base_path)
        self._cache: dict[str, dict[str, list[bool]]] = {}
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        """Directory holding one JSON file per run."""
        return self._base_path / "attempts"

    def attempt_file_path(self, run_id: str) -> Path:
        """Path of the JSON file that stores ``run_id``."""
        return self.directory / f"{run_file_name(run_id)}.json"

    def _load(self, run_id: str) -> dict[str, list[bool]]:
        """Load a run's histories (uses cache). Caller holds the lock."""
        if run_id in self._cache:
            return self._cache[run_id]

        path = self.attempt_file_path(run_id)
        data = safe_json_load(path, default=None)
        segments: dict[str, list[bool]] = {}

        if data is not None:
            raw = data.get("segments") if isinstance(data, dict) else None
            if not isinstance(raw, dict):
                logger.warning("Ignoring malformed attempt file %s", path)
            elif data.get("run") != run_id:
                logger.warning("Ignoring attempt file %s: it belongs to run %r", path, data.get("run"))
            else:
                for segment, outcomes in raw.items():
                    if isinstance(outcomes, list) and all(isinstance(o, bool) for o in outcomes):
                        segments[segment] = list(outcomes)
                    else:
                        logger.warning("Ignoring malformed history for %s in %s", segment, path)

        self._cache[run_id] = segments
        return segments

    def _save(self, run_id: str, segments: dict[str, list[bool]]) -> None:
        """Persist a run's histories. Caller holds the lock."""
        path = self.attempt_file_path(run_id)
        if not safe_json_dump({"run": run_id, "segments": segments}, path):
            logger.warning("Outcome history for %s kept in memory only", run_id)

    def record(self, run_id: str, segment_id: str, success: bool) -> int:
        """Append one outcome.

        Args:
            run_id: Run the attempt belongs to.
            segment_id: Segment that was attempted.
            success: Whether the attempt cleared the segment.

        Returns:
            Number of outcomes recorded for the segment, this one included.
        """
        with self._lock:
            segments = self._load(run_id)
            history = segments.setdefault(segment_id, [])
            history.append(bool(success))
            self._save(run_id, segments)
            return len(history)

    def get_outcome_history(self, run_id: str, segment_id: str) -> list[bool] | None:
        """Ordered outcomes of one segment (a copy), or None if never attempted."""
        with self._lock:
            history = self._load(run_id).get(segment_id)
            return list(history) if history is not None else None

    def get_run_history(self, run_id: str) -> dict[str, list[bool]]:
        """Copy of every segment history of a run."""
        with self._lock:
            return {segment: list(h) for segment, h in self._load(run_id).items()}

    def clear_run(self, run_id: str) -> None:
        """Delete every outcome recorded for ``run_id``."""
        with self._lock:
            self._cache[run_id] = {}
            path = self.attempt_file_path(run_id)
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Failed to delete %s: %s", path, e)

    def clear_all(self) -> None:
        """Delete every outcome of every run."""
        with self._lock:
            self._cache.clear()
            if not self.directory.exists():
                return
            for path in self.directory.glob("*.json"):
                try:
                    path.unlink()
                except OSError as e:
                    logger.warning("Failed to delete %s: %s", path, e)

    def tracked_runs(self) -> list[str]:
        """Run identifiers with at least one stored outcome, sorted."""
        runs: set[str] = set()
        with self._lock:
            runs.update(run for run, segments in self._cache.items() if segments)
            if self.directory.exists():
                for path in self.directory.glob("*.json"):
                    data = safe_json_load(path, default=None)
                    if isinstance(data, dict) and isinstance(data.get("run"), str) and data.get("segments"):
                        runs.add(data["run"])
        return sorted(runs)
