"""Practice advice and time-to-completion forecasting."""

from runcoach.advisor.advisor import (
    PracticeAdvisor,
    PracticeBenefit,
    Recommendation,
    RecommendationReason,
)
from runcoach.advisor.expectation import (
    UNBOUNDED_TIME,
    expected_completion_time,
    practice_cost,
    round_cost,
)
from runcoach.advisor.simulation import (
    best_practice_index,
    mean_field_estimate,
    monte_carlo_estimate,
)

__all__ = [
    "UNBOUNDED_TIME",
    "PracticeAdvisor",
    "PracticeBenefit",
    "Recommendation",
    "RecommendationReason",
    "best_practice_index",
    "expected_completion_time",
    "mean_field_estimate",
    "monte_carlo_estimate",
    "practice_cost",
    "round_cost",
]
