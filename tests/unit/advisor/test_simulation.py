"""Tests for the mean-field and Monte Carlo time-to-completion estimates."""

from collections.abc import Callable

import numpy as np
import pytest

from runcoach.advisor import (
    UNBOUNDED_TIME,
    best_practice_index,
    expected_completion_time,
    mean_field_estimate,
    monte_carlo_estimate,
)
from runcoach.foundation.utils.math import logit, sigmoid
from runcoach.modeling import ModelSet, SegmentModel

ModelFactory = Callable[..., SegmentModel]


def _model_set(**models: SegmentModel) -> ModelSet:
    return ModelSet(order=tuple(models), models=models)


class TestMeanFieldEstimate:
    """Tests for the deterministic mean-field simulation."""

    def test_flat_models_match_e0(self, make_model: ModelFactory) -> None:
        """Without learning, grinding full runs takes exactly E0."""
        models = _model_set(a=make_model(0.8, 10.0), b=make_model(0.6, 20.0))

        naive = mean_field_estimate(models, with_practice=False)

        assert naive == pytest.approx(expected_completion_time([0.8, 0.6], [10.0, 20.0]), rel=1e-9)

    def test_flat_models_never_practice(self, make_model: ModelFactory) -> None:
        """Practice cannot help segments that never improve."""
        models = _model_set(a=make_model(0.8, 10.0), b=make_model(0.6, 20.0))

        naive = mean_field_estimate(models, with_practice=False)
        smart = mean_field_estimate(models, with_practice=True)

        assert smart == pytest.approx(naive)

    def test_learning_shortens_grind(self, make_model: ModelFactory) -> None:
        """Segments that improve with attempts finish sooner than frozen ones."""
        frozen = _model_set(a=make_model(0.2, 10.0))
        learning = _model_set(a=make_model(0.2, 10.0, beta1=0.3))

        assert mean_field_estimate(learning, with_practice=False) < mean_field_estimate(
            frozen, with_practice=False
        )

    def test_smart_strategy_practices(self, make_model: ModelFactory) -> None:
        """A segment worth practicing changes the smart estimate."""
        models = _model_set(a=make_model(0.3, 10.0, beta1=1.0), b=make_model(0.9, 10.0))

        naive = mean_field_estimate(models, with_practice=False)
        smart = mean_field_estimate(models, with_practice=True)

        assert np.isfinite(smart)
        assert smart > 0
        assert smart != pytest.approx(naive)

    def test_practice_commit_values(self, make_model: ModelFactory) -> None:
        """Committed practice is charged at survival weight and advances the count by one.

        One segment, d=10, p(k) = sigmoid(logit(0.05) + 0.5 k), one practice
        attempt allowed per round, two rounds:

        round 1: practice at p0 (survival 1), count 0 -> 1, run at p1
        round 2: count 1 + reach 1 = 2; practice at p2 (survival 1 - p1),
                 count 2 -> 3, run at p3
        """
        models = _model_set(a=make_model(0.05, 10.0, beta1=0.5))
        p = [sigmoid(logit(0.05) + 0.5 * k) for k in range(4)]
        visit = [10.0 * (1.0 + q) / 2.0 for q in p]

        one_round = mean_field_estimate(
            models, with_practice=True, max_rounds=1, max_practice_per_round=1
        )
        two_rounds = mean_field_estimate(
            models, with_practice=True, max_rounds=2, max_practice_per_round=1
        )

        assert one_round == pytest.approx(visit[0] + visit[1], rel=1e-12)
        assert two_rounds == pytest.approx(
            visit[0] + visit[1] + (1.0 - p[1]) * (visit[2] + visit[3]),
            rel=1e-12,
        )

    def test_round_cap(self, make_model: ModelFactory) -> None:
        """The simulation stops after max_rounds even if the run is unlikely."""
        models = _model_set(a=make_model(0.001, 10.0))

        capped = mean_field_estimate(models, with_practice=False, max_rounds=10)

        round_cost = 10.0 * 1.001 / 2
        assert capped == pytest.approx(round_cost * (1 - 0.999**10) / 0.001)

    def test_practice_cap(self, make_model: ModelFactory) -> None:
        """No practice attempts are committed with a zero cap."""
        models = _model_set(a=make_model(0.3, 10.0, beta1=1.0), b=make_model(0.9, 10.0))

        no_practice = mean_field_estimate(models, with_practice=True, max_practice_per_round=0)

        assert no_practice == pytest.approx(mean_field_estimate(models, with_practice=False))

    def test_empty_model_set(self) -> None:
        """Nothing to play, nothing to spend."""
        assert mean_field_estimate(ModelSet.empty(), with_practice=False) == 0.0
        assert mean_field_estimate(ModelSet.empty(), with_practice=True) == 0.0


class TestBestPracticeIndex:
    """Tests for picking the next virtual practice attempt."""

    def test_flat_segments(self) -> None:
        """Nothing improves, nothing is picked."""
        probs = np.array([0.5, 0.7])

        assert best_practice_index(probs, probs.copy(), np.array([10.0, 10.0])) == (-1, 0.0)

    def test_improving_segment(self) -> None:
        """The fast learner is picked with its net benefit."""
        probs = np.array([0.3, 0.9])
        next_probs = np.array([0.5381, 0.9])

        index, net = best_practice_index(probs, next_probs, np.array([10.0, 10.0]))

        assert index == 0
        assert net == pytest.approx(1.69, abs=0.01)

    def test_empty(self) -> None:
        """No segments."""
        empty = np.array([])
        assert best_practice_index(empty, empty, empty) == (-1, 0.0)


class TestMonteCarloBaseline:
    """Checks of the mean-field approximation against sampled play."""

    def test_flat_models_match_e0(self, make_model: ModelFactory) -> None:
        """Sampled grinding agrees with the closed form."""
        models = _model_set(a=make_model(0.8, 10.0), b=make_model(0.6, 20.0))

        sampled = monte_carlo_estimate(models, trials=4000, seed=7)

        assert sampled == pytest.approx(21.8 / 0.48, rel=0.05)

    def test_single_learner_matches_mean_field(self, make_model: ModelFactory) -> None:
        """With one segment every round reaches it, so mean-field is exact."""
        models = _model_set(a=make_model(0.2, 10.0, beta1=0.3))

        sampled = monte_carlo_estimate(models, trials=4000, seed=11)
        approx = mean_field_estimate(models, with_practice=False)

        assert sampled == pytest.approx(approx, rel=0.05)

    def test_multi_segment_learner_close_to_mean_field(self, make_model: ModelFactory) -> None:
        """Fractional attempt counts stay a usable approximation with several segments."""
        models = _model_set(
            a=make_model(0.7, 8.0, beta1=0.05),
            b=make_model(0.4, 12.0, beta1=0.1),
            c=make_model(0.6, 10.0, beta1=0.05),
        )

        sampled = monte_carlo_estimate(models, trials=3000, seed=5)
        approx = mean_field_estimate(models, with_practice=False)

        assert sampled == pytest.approx(approx, rel=0.25)

    def test_seed_is_reproducible(self, make_model: ModelFactory) -> None:
        """Same seed, same estimate."""
        models = _model_set(a=make_model(0.5, 10.0), b=make_model(0.5, 10.0))

        first = monte_carlo_estimate(models, trials=200, seed=42)
        second = monte_carlo_estimate(models, trials=200, seed=42)

        assert first == second

    def test_unfinished_trial_is_unbounded(self, make_model: ModelFactory) -> None:
        """A trial that never finishes makes the estimate unbounded."""
        models = _model_set(a=make_model(1e-9, 10.0))

        assert monte_carlo_estimate(models, trials=3, seed=1, max_rounds=5) == UNBOUNDED_TIME
