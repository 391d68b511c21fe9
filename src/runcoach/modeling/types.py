"""Type definitions for per-segment success-probability models.

Immutable data structures: a model is rebuilt on every refit, never mutated.
All types are frozen dataclasses with slots.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from runcoach.foundation.errors import ErrorCode, RuncoachError, model_set_error
from runcoach.foundation.utils.math import sigmoid


class Confidence(Enum):
    """How much a fitted learning curve's slope should be trusted."""

    CONFIDENT = "confident"
    """Slope is statistically distinguishable from zero."""

    INSUFFICIENT_DATA = "insufficient_data"
    """Too few outcomes, a failed fit, or a slope indistinguishable from zero."""

    NEGATIVE_LEARNING_RATE = "negative_learning_rate"
    """Fitted slope was negative; a flat model was substituted."""


class FitKind(Enum):
    """Which branch of the fitting policy produced a model."""

    FITTED = "fitted"
    """Two-parameter logistic fit kept."""

    FELL_BACK_CONSTANT = "fell_back_constant"
    """Deliberate constant-rate model (few samples or a negative slope)."""

    FAILED_INSUFFICIENT_DATA = "failed_insufficient_data"
    """No outcomes at all, or the optimizer failed."""


@dataclass(frozen=True, slots=True)
class SegmentModel:
    """Logistic success model for one segment.

    P(success after n prior attempts) = sigmoid(beta0 + beta1 * n)

    Example:
        >>> model = SegmentModel(beta0=0.0, beta1=0.0, duration=10.0)
        >>> model.success_prob(7)
        0.5
        >>> model.attempt_time(False)
        5.0
    """

    beta0: float
    """Intercept (log-odds of success on the first attempt)."""

    beta1: float
    """Learning rate per attempt; never negative."""

    duration: float
    """Nominal seconds to traverse the segment."""

    attempt_count: int = 0
    """Number of outcomes the model was fitted from."""

    confidence: Confidence = Confidence.INSUFFICIENT_DATA
    """Confidence classification of the slope."""

    def __post_init__(self) -> None:
        if not self.beta1 >= 0.0:
            raise RuncoachError(
                ErrorCode.MODEL_INVALID,
                {"detail": f"beta1 must be non-negative, got {self.beta1!r}"},
            )

    def success_prob(self, attempt_index: float) -> float:
        """Probability of success after ``attempt_index`` prior attempts.

        ``attempt_index`` may be fractional; the mean-field simulation
        advances attempt counts by expected values.
        """
        return sigmoid(self.beta0 + self.beta1 * attempt_index)

    def attempt_time(self, success: bool) -> float:
        """Time for an attempt: full duration if success, half if failure."""
        return self.duration if success else self.duration / 2.0

    @property
    def current_prob(self) -> float:
        """Success probability of the next attempt."""
        return self.success_prob(self.attempt_count)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "beta0": self.beta0,
            "beta1": self.beta1,
            "duration": self.duration,
            "attempt_count": self.attempt_count,
            "confidence": self.confidence.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SegmentModel:
        """Deserialize from dictionary."""
        return cls(
            beta0=float(data["beta0"]),
            beta1=float(data["beta1"]),
            duration=float(data["duration"]),
            attempt_count=int(data.get("attempt_count", 0)),
            confidence=Confidence(data.get("confidence", Confidence.INSUFFICIENT_DATA.value)),
        )


@dataclass(frozen=True, slots=True)
class FitResult:
    """Outcome of fitting one segment.

    The model is always usable; ``kind`` and ``detail`` say how it was
    obtained so callers can log fallbacks.
    """

    model: SegmentModel
    """The fitted (or substituted) model."""

    kind: FitKind
    """Which branch of the fitting policy produced the model."""

    detail: str = ""
    """Diagnostic note for fallbacks (optimizer message, reason for substitution)."""

    @property
    def fell_back(self) -> bool:
        """True if the model is not a kept two-parameter fit."""
        return self.kind is not FitKind.FITTED


@dataclass(frozen=True, slots=True)
class ModelSet:
    """Per-segment models plus the fixed order segments are traversed in a run.

    Order matters: the expected completion time multiplies probabilities of
    reaching each segment, which depends on everything before it.

    Example:
        >>> flat = SegmentModel(beta0=0.0, beta1=0.0, duration=10.0)
        >>> models = ModelSet(order=("a", "b"), models={"a": flat, "b": flat})
        >>> len(models)
        2
    """

    order: tuple[str, ...]
    """Segment identifiers in traversal order."""

    models: Mapping[str, SegmentModel] = field(
        default_factory=lambda: MappingProxyType({})
    )
    """Read-only mapping from segment identifier to model."""

    def __post_init__(self) -> None:
        order = tuple(self.order)
        if len(set(order)) != len(order):
            raise model_set_error("segment order contains duplicates")

        missing = [segment for segment in order if segment not in self.models]
        if missing:
            raise model_set_error(f"no model for segment(s) {', '.join(missing)}")

        for segment in order:
            model = self.models[segment]
            if not isinstance(model, SegmentModel):
                raise model_set_error(f"model for '{segment}' is {type(model).__name__}")
            if not (math.isfinite(model.duration) and model.duration > 0):
                raise model_set_error(f"segment '{segment}' has non-positive duration")

        # Only ordered segments take part; extra entries are dropped
        object.__setattr__(self, "order", order)
        object.__setattr__(
            self,
            "models",
            MappingProxyType({segment: self.models[segment] for segment in order}),
        )

    @classmethod
    def empty(cls) -> ModelSet:
        """A model set with no segments."""
        return cls(order=(), models=MappingProxyType({}))

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, segment: object) -> bool:
        return segment in self.models

    def get(self, segment: str) -> SegmentModel | None:
        """Model for ``segment``, or None if it is not part of the set."""
        return self.models.get(segment)

    def ordered(self) -> list[SegmentModel]:
        """Models in traversal order."""
        return [self.models[segment] for segment in self.order]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "order": list(self.order),
            "models": {segment: self.models[segment].to_dict() for segment in self.order},
        }
