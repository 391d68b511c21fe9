"""Shared CLI state passed to subcommands through ``click.Context.obj``."""

from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from runcoach.foundation.types.config import RuncoachConfig
from runcoach.store import AttemptStore, DurationStore

console = Console()


@dataclass(frozen=True, slots=True)
class CliState:
    """Settings shared by every subcommand."""

    config: RuncoachConfig
    """Loaded configuration."""

    data_dir: Path
    """Directory holding attempts/, durations/ and logs/."""

    def attempt_store(self) -> AttemptStore:
        return AttemptStore(self.data_dir)

    def duration_store(self) -> DurationStore:
        return DurationStore(self.data_dir)
