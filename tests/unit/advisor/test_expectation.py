"""Tests for the closed-form expected completion time (E0)."""

import pytest
from hypothesis import assume, given, settings, strategies as st

from runcoach.advisor import (
    UNBOUNDED_TIME,
    expected_completion_time,
    practice_cost,
    round_cost,
)


class TestExpectedCompletionTime:
    """Tests for E0 with concrete numbers."""

    def test_single_segment(self) -> None:
        """A 50% segment takes two tries: one 10s success plus one 5s failure."""
        assert expected_completion_time([0.5], [10.0]) == pytest.approx(15.0)

    def test_two_segments(self) -> None:
        """E0 = (a1 + a2 * p1) / (p1 * p2)."""
        # a1 = 10 * 1.8 / 2 = 9, a2 = 20 * 1.6 / 2 = 16
        assert expected_completion_time([0.8, 0.6], [10.0, 20.0]) == pytest.approx(21.8 / 0.48)

    def test_certain_segments_cost_their_duration(self) -> None:
        """With no failures a run takes exactly its nominal time."""
        assert expected_completion_time([1.0, 1.0, 1.0], [3.0, 4.0, 5.0]) == pytest.approx(12.0)

    def test_order_matters(self) -> None:
        """A hard segment late in the run wastes more time than one early."""
        early = expected_completion_time([0.2, 0.9], [10.0, 10.0])
        late = expected_completion_time([0.9, 0.2], [10.0, 10.0])

        assert late > early

    def test_empty_run(self) -> None:
        """No segments, no time."""
        assert expected_completion_time([], []) == 0.0

    @pytest.mark.parametrize(
        "probs",
        [
            [1e-8, 1e-8],
            [0.0, 0.9],
            [1e-3] * 5 + [0.5],
        ],
    )
    def test_impossible_run_is_unbounded(self, probs: list[float]) -> None:
        """Below a 1e-15 chance of a clean run E0 is the sentinel."""
        result = expected_completion_time(probs, [10.0] * len(probs))

        assert result == UNBOUNDED_TIME
        assert result - result == 0.0

    def test_just_above_cutoff_is_finite(self) -> None:
        """A clean-run chance of 1e-14 is still a number."""
        result = expected_completion_time([1e-7, 1e-7], [1.0, 1.0])

        assert result < UNBOUNDED_TIME


class TestRoundCost:
    """Tests for one round's expected cost and one attempt's cost."""

    def test_round_cost_is_e0_numerator(self) -> None:
        """Round cost is the numerator of E0."""
        probs, durations = [0.8, 0.6], [10.0, 20.0]

        assert round_cost(probs, durations) == pytest.approx(21.8)
        assert round_cost(probs, durations) == pytest.approx(
            expected_completion_time(probs, durations) * 0.48
        )

    def test_practice_cost(self) -> None:
        """An attempt costs the full duration on success, half on failure."""
        assert practice_cost(0.0, 10.0) == 5.0
        assert practice_cost(1.0, 10.0) == 10.0
        assert practice_cost(0.5, 10.0) == 7.5


class TestExpectedCompletionTimeProperties:
    """Property-based tests for E0."""

    @given(
        segments=st.lists(
            st.tuples(
                st.floats(min_value=0.05, max_value=1.0),
                st.floats(min_value=0.5, max_value=100.0),
            ),
            min_size=1,
            max_size=8,
        ),
        data=st.data(),
    )
    @settings(max_examples=200)
    def test_monotonic_in_each_probability(self, segments, data) -> None:
        """Making any one segment more reliable never increases E0."""
        probs = [p for p, _ in segments]
        durations = [d for _, d in segments]
        index = data.draw(st.integers(min_value=0, max_value=len(probs) - 1))
        raised = data.draw(st.floats(min_value=probs[index], max_value=1.0))
        assume(raised >= probs[index])

        better = list(probs)
        better[index] = raised

        before = expected_completion_time(probs, durations)
        after = expected_completion_time(better, durations)
        assert after <= before * (1 + 1e-12)

    @given(
        probs=st.lists(st.floats(min_value=0.0, max_value=1e-4), min_size=4, max_size=6),
    )
    def test_sentinel_never_overflows(self, probs: list[float]) -> None:
        """Tiny probabilities give the sentinel, never inf or an exception."""
        result = expected_completion_time(probs, [1.0] * len(probs))

        assert result == UNBOUNDED_TIME
