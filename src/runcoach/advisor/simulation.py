"""Long-horizon time-to-completion estimates.

``mean_field_estimate`` propagates expected values instead of sampling:
random pass/fail outcomes are replaced by their probabilities, so attempt
counts become real numbers and the estimate is deterministic. Two
strategies are modelled:

- naive grinding: attempt full runs only; segments improve passively from
  the attempts that happen to reach them
- smart practice: before each round, practice whichever segment has the
  best positive net benefit, until none does

``monte_carlo_estimate`` samples the naive strategy directly and exists to
check the mean-field approximation against real stochastic play.
"""

import logging
from dataclasses import dataclass

import numpy as np

from runcoach.advisor.expectation import (
    UNBOUNDED_TIME,
    expected_completion_time,
    expected_completion_times,
)
from runcoach.foundation.utils.math import sigmoid_array
from runcoach.modeling.types import ModelSet

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 100_000
DEFAULT_SURVIVAL_EPSILON = 1e-12
DEFAULT_MAX_PRACTICE_PER_ROUND = 1000


@dataclass(frozen=True, slots=True)
class _Curves:
    """Model coefficients laid out as arrays in traversal order."""

    beta0: np.ndarray
    beta1: np.ndarray
    durations: np.ndarray
    attempt_counts: np.ndarray

    @classmethod
    def from_models(cls, models: ModelSet) -> "_Curves":
        ordered = models.ordered()
        return cls(
            beta0=np.array([m.beta0 for m in ordered], dtype=float),
            beta1=np.array([m.beta1 for m in ordered], dtype=float),
            durations=np.array([m.duration for m in ordered], dtype=float),
            attempt_counts=np.array([m.attempt_count for m in ordered], dtype=float),
        )

    def probs(self, counts: np.ndarray) -> np.ndarray:
        return sigmoid_array(self.beta0 + self.beta1 * counts)


def best_practice_index(
    probs: np.ndarray,
    next_probs: np.ndarray,
    durations: np.ndarray,
) -> tuple[int, float]:
    """Segment whose next practice attempt has the largest positive net benefit.

    Args:
        probs: Current probability per segment.
        next_probs: Probability per segment after one more attempt.
        durations: Nominal seconds per segment.

    Returns:
        ``(index, net)``, or ``(-1, 0.0)`` when no segment's net benefit is
        positive. Ties keep the earliest segment.
    """
    n = probs.shape[0]
    if n == 0:
        return -1, 0.0

    current = expected_completion_time(probs, durations)

    # Row i is the current probabilities with segment i advanced by one attempt
    candidates = np.tile(probs, (n, 1))
    np.fill_diagonal(candidates, next_probs)
    improved = expected_completion_times(candidates, durations)

    net = (current - improved) - durations * (1.0 + probs) / 2.0
    best = int(np.argmax(net))
    if net[best] > 0.0:
        return best, float(net[best])
    return -1, 0.0


def mean_field_estimate(
    models: ModelSet,
    *,
    with_practice: bool,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
    survival_epsilon: float = DEFAULT_SURVIVAL_EPSILON,
    max_practice_per_round: int = DEFAULT_MAX_PRACTICE_PER_ROUND,
) -> float:
    """Expected total seconds until a clean run, under the mean-field approximation.

    Each round: snapshot probabilities, optionally commit virtual practice
    attempts, charge the round's expected cost weighted by the probability
    of still not having finished, then advance every segment's effective
    attempt count by the probability of reaching it.

    Args:
        models: Per-segment models and traversal order.
        with_practice: Simulate the smart strategy instead of naive grinding.
        max_rounds: Hard cap on simulated rounds.
        survival_epsilon: Stop once the chance of not having finished is this small.
        max_practice_per_round: Cap on virtual practice attempts per round.

    Returns:
        Accumulated expected cost in seconds. ``0.0`` for an empty model set.
    """
    if len(models) == 0:
        return 0.0

    curves = _Curves.from_models(models)
    durations = curves.durations
    counts = curves.attempt_counts.copy()

    total_cost = 0.0
    survival = 1.0
    rounds = 0
    practiced = 0

    while rounds < max_rounds and survival > survival_epsilon:
        probs = curves.probs(counts)

        if with_practice:
            for _ in range(max_practice_per_round):
                index, _net = best_practice_index(probs, curves.probs(counts + 1.0), durations)
                if index < 0:
                    break
                total_cost += survival * durations[index] * (1.0 + probs[index]) / 2.0
                counts[index] += 1.0
                probs[index] = curves.probs(counts[index : index + 1])[0]
                practiced += 1

        reach = np.ones_like(probs)
        reach[1:] = np.cumprod(probs[:-1])
        round_success = float(np.prod(probs))

        total_cost += survival * float(np.sum(durations * (1.0 + probs) / 2.0 * reach))
        counts += reach
        survival *= 1.0 - round_success
        rounds += 1

    logger.debug(
        "Mean-field estimate (practice=%s): %.1fs after %d rounds, %d practice attempts, survival=%.3g",
        with_practice,
        total_cost,
        rounds,
        practiced,
        survival,
    )
    return total_cost


def monte_carlo_estimate(
    models: ModelSet,
    *,
    trials: int = 2000,
    seed: int | None = None,
    max_rounds: int = 10_000,
) -> float:
    """Sampled expected seconds until a clean run under naive grinding.

    Every trial starts from the models' current attempt counts and plays
    full runs, restarting from the first segment on each failure. Each
    attempt that reaches a segment advances that segment's attempt count
    by exactly one.

    Args:
        models: Per-segment models and traversal order.
        trials: Number of independent simulated players.
        seed: Seed for the numpy random generator.
        max_rounds: Rounds after which a trial is abandoned.

    Returns:
        Mean total seconds over trials, or ``UNBOUNDED_TIME`` if any trial
        hit ``max_rounds`` without finishing.
    """
    if len(models) == 0:
        return 0.0

    curves = _Curves.from_models(models)
    durations = curves.durations
    rng = np.random.default_rng(seed)

    totals = np.empty(trials)
    for trial in range(trials):
        counts = curves.attempt_counts.copy()
        elapsed = 0.0
        finished = False
        for _ in range(max_rounds):
            probs = curves.probs(counts)
            draws = rng.random(probs.shape[0])
            failures = np.flatnonzero(draws >= probs)
            if failures.size == 0:
                elapsed += float(durations.sum())
                finished = True
                break
            stop = int(failures[0])
            # Segments before the failure were cleared, the failing one ends halfway
            elapsed += float(durations[:stop].sum()) + durations[stop] / 2.0
            counts[: stop + 1] += 1.0
        if not finished:
            logger.debug("Monte Carlo trial %d did not finish in %d rounds", trial, max_rounds)
            return UNBOUNDED_TIME
        totals[trial] = elapsed

    return float(totals.mean())
