"""Pytest fixtures for runcoach tests."""

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from runcoach.foundation.config import reset_config
from runcoach.foundation.types.config import (
    FittingConfig,
    RuncoachConfig,
    ServiceConfig,
    SimulationConfig,
)
from runcoach.foundation.utils.math import logit
from runcoach.modeling import Confidence, SegmentModel
from runcoach.store import AttemptStore, DurationStore


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep RUNCOACH_* variables from the environment out of every test."""
    for key in list(os.environ):
        if key.startswith("RUNCOACH_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_model() -> Callable[..., SegmentModel]:
    """Factory for flat models at a given success probability."""

    def _make(
        p: float,
        duration: float = 10.0,
        *,
        beta1: float = 0.0,
        attempt_count: int = 0,
        confidence: Confidence = Confidence.CONFIDENT,
    ) -> SegmentModel:
        return SegmentModel(
            beta0=logit(p) - beta1 * attempt_count,
            beta1=beta1,
            duration=duration,
            attempt_count=attempt_count,
            confidence=confidence,
        )

    return _make


@pytest.fixture
def test_config() -> RuncoachConfig:
    """Config with a small sample threshold and a bounded simulation."""
    return RuncoachConfig(
        fitting=FittingConfig(min_samples=5),
        simulation=SimulationConfig(max_rounds=5000),
        service=ServiceConfig(precompute_recommendation=False),
    )


@pytest.fixture
def attempt_store(tmp_path: Path) -> AttemptStore:
    """Attempt store rooted in a temp directory."""
    return AttemptStore(tmp_path)


@pytest.fixture
def duration_store(tmp_path: Path) -> DurationStore:
    """Duration store rooted in a temp directory."""
    return DurationStore(tmp_path)
