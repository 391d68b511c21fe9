"""File-backed persistence for outcome histories and segment durations."""

from runcoach.store.attempts import AttemptStore
from runcoach.store.durations import (
    DEFAULT_SEGMENT_DURATION,
    DurationStore,
    SegmentDurations,
)
from runcoach.store.protocol import DurationSource, OutcomeHistorySource

__all__ = [
    "DEFAULT_SEGMENT_DURATION",
    "AttemptStore",
    "DurationSource",
    "DurationStore",
    "OutcomeHistorySource",
    "SegmentDurations",
]
