"""Practice-or-run advice built on fitted segment models.

The advisor answers two questions from a model set:

1. Is one more practice attempt on some segment worth its time, measured as
   the drop in expected completion time (E0) minus the attempt's own cost?
2. How long until a clean run, when grinding full runs versus practicing
   smartly in between?

Thread Safety:
    All state lives in one immutable ``_Snapshot``. ``update_models`` builds
    a new snapshot and replaces the reference in a single assignment, so a
    reader holding the old snapshot keeps a consistent view. Derived values
    (recommendation, per-segment benefits) are memoised on the snapshot they
    were computed from.
"""

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from runcoach.advisor.expectation import (
    expected_completion_time,
    practice_cost,
)
from runcoach.advisor.simulation import mean_field_estimate
from runcoach.foundation.errors import ErrorCode, RuncoachError
from runcoach.foundation.types.config import SimulationConfig
from runcoach.modeling.types import Confidence, ModelSet, SegmentModel

logger = logging.getLogger(__name__)


class RecommendationReason(Enum):
    """Why the advisor recommends what it does."""

    NEEDS_DATA = "needs_data"
    """Segment's model is not trustworthy yet; practice it to collect outcomes."""

    NOT_IMPROVING = "not_improving"
    """Segment showed a negative learning rate; practice it deliberately."""

    NET_BENEFIT = "net_benefit"
    """One more practice attempt saves more time than it costs."""

    GO_FOR_RUN = "go_for_run"
    """No practice attempt pays for itself; attempt the full run."""


@dataclass(frozen=True, slots=True)
class PracticeBenefit:
    """Benefit/cost breakdown of one extra practice attempt on a segment."""

    benefit: float
    """Reduction in expected completion time (seconds)."""

    cost: float
    """Expected time of the practice attempt itself (seconds)."""

    net: float
    """``benefit - cost``; practice pays off when positive."""

    def to_dict(self) -> dict[str, float]:
        """Serialize to dictionary."""
        return {"benefit": self.benefit, "cost": self.cost, "net": self.net}


@dataclass(frozen=True, slots=True)
class Recommendation:
    """What to do next, plus long-horizon time estimates.

    Example:
        >>> rec = Recommendation(
        ...     segment=None,
        ...     reason=RecommendationReason.GO_FOR_RUN,
        ...     confidence=None,
        ... )
        >>> rec.go_for_run
        True
    """

    segment: str | None
    """Segment to practice, or None to attempt the full run."""

    reason: RecommendationReason
    """Which rule produced the recommendation."""

    confidence: Confidence | None
    """Confidence of the recommended segment's model (None for a full run)."""

    net_benefit_seconds: float | None = None
    """Seconds saved per practice attempt; set only for net-benefit recommendations."""

    naive_estimate_seconds: float = 0.0
    """Expected time to a clean run by grinding full runs only."""

    smart_estimate_seconds: float = 0.0
    """Expected time to a clean run when practicing between runs."""

    @property
    def go_for_run(self) -> bool:
        """True if no segment needs practice."""
        return self.segment is None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "segment": self.segment,
            "reason": self.reason.value,
            "confidence": self.confidence.value if self.confidence else None,
            "net_benefit_seconds": self.net_benefit_seconds,
            "naive_estimate_seconds": self.naive_estimate_seconds,
            "smart_estimate_seconds": self.smart_estimate_seconds,
            "go_for_run": self.go_for_run,
        }


@dataclass(frozen=True, slots=True)
class _Snapshot:
    """One published model set with its derived arrays and memoised results."""

    model_set: ModelSet
    probs: np.ndarray
    next_probs: np.ndarray
    durations: np.ndarray
    e0: float
    _memo: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, compare=False, repr=False)

    @classmethod
    def build(cls, model_set: ModelSet) -> "_Snapshot":
        ordered = model_set.ordered()
        probs = np.array([m.current_prob for m in ordered], dtype=float)
        durations = np.array([m.duration for m in ordered], dtype=float)
        return cls(
            model_set=model_set,
            probs=probs,
            next_probs=np.array([m.success_prob(m.attempt_count + 1) for m in ordered], dtype=float),
            durations=durations,
            e0=expected_completion_time(probs, durations),
        )

    def index(self, segment: str) -> int:
        return self.model_set.order.index(segment)


class PracticeAdvisor:
    """Recommends which segment to practice, or to go for the full run.

    Recommendation tiers, first match wins:

    1. A segment with InsufficientData confidence (lowest probability first)
    2. A segment with NegativeLearningRate confidence (lowest probability first)
    3. The segment with the strictly largest positive net benefit
    4. Otherwise, attempt the full run

    Example:
        >>> flat = SegmentModel(beta0=0.0, beta1=0.0, duration=10.0)
        >>> advisor = PracticeAdvisor()
        >>> advisor.update_models(["a"], {"a": flat})
        >>> advisor.has_models
        True
    """

    def __init__(
        self,
        model_set: ModelSet | None = None,
        *,
        simulation: SimulationConfig | None = None,
    ) -> None:
        self._simulation = simulation or SimulationConfig()
        self._snapshot = _Snapshot.build(model_set or ModelSet.empty())

    def update_models(
        self,
        order: Sequence[str],
        models: Mapping[str, SegmentModel],
    ) -> None:
        """Replace the model set. Order is the traversal order of a run.

        Raises:
            RuncoachError: If a segment in ``order`` has no model, or the
                order contains duplicates.
        """
        self._snapshot = _Snapshot.build(ModelSet(order=tuple(order), models=dict(models)))

    @property
    def has_models(self) -> bool:
        """Whether the advisor has any segment to reason about."""
        return len(self._snapshot.model_set) > 0

    @property
    def order(self) -> tuple[str, ...]:
        """Segment identifiers in traversal order."""
        return self._snapshot.model_set.order

    @property
    def models(self) -> ModelSet:
        """The current model set."""
        return self._snapshot.model_set

    def get_segment_model(self, segment: str) -> SegmentModel | None:
        """Model for ``segment``, or None if it is not in the model set."""
        return self._snapshot.model_set.get(segment)

    def current_prob(self, segment: str) -> float:
        """Success probability of the next attempt on ``segment``.

        Raises:
            RuncoachError: If ``segment`` is not in the model set.
        """
        snapshot = self._snapshot
        if segment not in snapshot.model_set:
            raise RuncoachError(ErrorCode.ADVISOR_SEGMENT_UNKNOWN, {"segment": segment})
        return float(snapshot.probs[snapshot.index(segment)])

    def expected_completion_time(self) -> float:
        """E0 under current probabilities (``UNBOUNDED_TIME`` if practically impossible)."""
        return self._snapshot.e0

    def get_practice_benefit(self, segment: str) -> PracticeBenefit | None:
        """Benefit, cost and net of one more practice attempt on ``segment``.

        Returns None if the segment is not part of the model set.
        """
        snapshot = self._snapshot
        if segment not in snapshot.model_set:
            return None
        key = f"benefit:{segment}"
        with snapshot._lock:
            cached = snapshot._memo.get(key)
            if cached is None:
                cached = _practice_benefit(snapshot, snapshot.index(segment))
                snapshot._memo[key] = cached
        return cached

    def get_recommendation(self) -> Recommendation | None:
        """The current recommendation, or None if there are no models.

        Repeated calls without an intervening ``update_models`` return the
        same object.
        """
        snapshot = self._snapshot
        if len(snapshot.model_set) == 0:
            return None
        with snapshot._lock:
            cached = snapshot._memo.get("recommendation")
            if cached is None:
                cached = self._recommend(snapshot)
                snapshot._memo["recommendation"] = cached
        return cached

    def precompute(self) -> None:
        """Compute and memoise the recommendation ahead of the first read."""
        self.get_recommendation()

    def _recommend(self, snapshot: _Snapshot) -> Recommendation:
        order = snapshot.model_set.order
        models = snapshot.model_set.models

        segment: str | None = None
        reason = RecommendationReason.GO_FOR_RUN
        net_benefit: float | None = None

        for confidence, tier_reason in (
            (Confidence.INSUFFICIENT_DATA, RecommendationReason.NEEDS_DATA),
            (Confidence.NEGATIVE_LEARNING_RATE, RecommendationReason.NOT_IMPROVING),
        ):
            tier = [i for i, s in enumerate(order) if models[s].confidence is confidence]
            if tier:
                # min() keeps the earliest segment among equal probabilities
                best = min(tier, key=lambda i: snapshot.probs[i])
                segment, reason = order[best], tier_reason
                break

        if segment is None:
            best_index = -1
            best_net = 0.0
            for i in range(len(order)):
                net = _practice_benefit(snapshot, i).net
                if net > best_net or (
                    best_index >= 0 and net == best_net and snapshot.probs[i] < snapshot.probs[best_index]
                ):
                    best_index, best_net = i, net
            if best_index >= 0:
                segment = order[best_index]
                reason = RecommendationReason.NET_BENEFIT
                net_benefit = best_net

        sim = self._simulation
        estimates = [
            mean_field_estimate(
                snapshot.model_set,
                with_practice=with_practice,
                max_rounds=sim.max_rounds,
                survival_epsilon=sim.survival_epsilon,
                max_practice_per_round=sim.max_practice_per_round,
            )
            for with_practice in (False, True)
        ]

        recommendation = Recommendation(
            segment=segment,
            reason=reason,
            confidence=models[segment].confidence if segment is not None else None,
            net_benefit_seconds=net_benefit,
            naive_estimate_seconds=estimates[0],
            smart_estimate_seconds=estimates[1],
        )
        logger.debug(
            "Recommendation: %s (%s), naive=%.1fs smart=%.1fs",
            segment or "full run",
            reason.value,
            estimates[0],
            estimates[1],
        )
        return recommendation


def _practice_benefit(snapshot: _Snapshot, index: int) -> PracticeBenefit:
    probs = snapshot.probs.copy()
    probs[index] = snapshot.next_probs[index]
    benefit = snapshot.e0 - expected_completion_time(probs, snapshot.durations)
    cost = practice_cost(float(snapshot.probs[index]), float(snapshot.durations[index]))
    return PracticeBenefit(benefit=benefit, cost=cost, net=benefit - cost)
