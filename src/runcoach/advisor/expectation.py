"""Closed-form expected completion time for a run with restarts.

A run visits segments in order and restarts from the first segment on any
failure. With per-segment success probability ``p_j`` and per-visit expected
time ``a_j = d_j * (1 + p_j) / 2``:

    E0 = (1 / P) * sum_j a_j * prod_{k<j} p_k,    P = prod_j p_j

The numerator alone is the expected cost of a single attempt round.
"""

import sys

import numpy as np
from numpy.typing import ArrayLike

# Returned by expected_completion_time when completion is practically impossible.
# Finite so that differences of two unbounded estimates stay finite.
UNBOUNDED_TIME = sys.float_info.max

_MIN_COMPLETION_PROB = 1e-15


def practice_cost(p: float, duration: float) -> float:
    """Expected time of one attempt on a segment: a failure ends halfway."""
    return duration * (1.0 + p) / 2.0


def round_cost(probs: ArrayLike, durations: ArrayLike) -> float:
    """Expected time of one attempt round, from the first segment to the first failure."""
    probs = np.asarray(probs, dtype=float)
    durations = np.asarray(durations, dtype=float)
    return float(_round_costs(probs[np.newaxis, :], durations)[0])


def expected_completion_time(probs: ArrayLike, durations: ArrayLike) -> float:
    """Expected time to finish a full run starting fresh (E0).

    Args:
        probs: Current success probability of each segment, in traversal order.
        durations: Nominal seconds of each segment, in the same order.

    Returns:
        E0 in seconds, or ``UNBOUNDED_TIME`` when the chance of a clean run
        is below 1e-15.
    """
    probs = np.asarray(probs, dtype=float)
    durations = np.asarray(durations, dtype=float)
    return float(expected_completion_times(probs[np.newaxis, :], durations)[0])


def expected_completion_times(prob_rows: np.ndarray, durations: np.ndarray) -> np.ndarray:
    """E0 for every row of a (candidates x segments) probability matrix.

    Used to score one hypothetical practice attempt per segment at once.
    """
    completion = np.prod(prob_rows, axis=1)
    bounded = completion >= _MIN_COMPLETION_PROB
    result = np.full(prob_rows.shape[0], UNBOUNDED_TIME)
    result[bounded] = _round_costs(prob_rows[bounded], durations) / completion[bounded]
    return result


def _round_costs(prob_rows: np.ndarray, durations: np.ndarray) -> np.ndarray:
    if prob_rows.shape[1] == 0:
        return np.zeros(prob_rows.shape[0])
    visit_cost = durations * (1.0 + prob_rows) / 2.0
    # Probability of reaching segment j is the product of everything before it
    reach = np.ones_like(prob_rows)
    reach[:, 1:] = np.cumprod(prob_rows[:, :-1], axis=1)
    return np.sum(visit_cost * reach, axis=1)
