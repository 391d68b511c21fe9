"""Interfaces the service consumes from persistence.

Any object with these methods can back a ``CoachService``; the file-backed
stores in this package are the default implementations.
"""

from typing import Protocol

from runcoach.store.durations import SegmentDurations


class OutcomeHistorySource(Protocol):
    """Read and append per-segment outcome histories."""

    def get_outcome_history(self, run_id: str, segment_id: str) -> list[bool] | None:
        """Ordered outcomes for one segment, or None if never attempted."""
        ...

    def get_run_history(self, run_id: str) -> dict[str, list[bool]]:
        """All outcome histories of a run, keyed by segment."""
        ...

    def record(self, run_id: str, segment_id: str, success: bool) -> int:
        """Append an outcome; return the segment's outcome count."""
        ...

    def clear_run(self, run_id: str) -> None:
        """Forget every outcome of a run."""
        ...

    def clear_all(self) -> None:
        """Forget every outcome of every run."""
        ...


class DurationSource(Protocol):
    """Read per-segment nominal durations."""

    def get_segment_durations(self, run_id: str) -> SegmentDurations | None:
        """Traversal order and durations of a run, or None if unknown."""
        ...
