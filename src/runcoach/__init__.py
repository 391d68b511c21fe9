"""runcoach - learning-curve models and practice advice for multi-segment runs.

Record pass/fail outcomes per segment, fit a logistic learning curve to each
segment, and get a recommendation: practice a specific segment, or go for
the full run.

Example:
    >>> from runcoach import PracticeAdvisor, fit
    >>> model = fit([False, True, True], duration=12.0)
    >>> advisor = PracticeAdvisor()
    >>> advisor.update_models(["a-00"], {"a-00": model})
    >>> advisor.get_recommendation().segment
    'a-00'
"""

__version__ = "0.1.0"

from runcoach.advisor import (
    UNBOUNDED_TIME,
    PracticeAdvisor,
    PracticeBenefit,
    Recommendation,
    RecommendationReason,
    expected_completion_time,
    mean_field_estimate,
    monte_carlo_estimate,
)
from runcoach.foundation.errors import ErrorCode, RuncoachError
from runcoach.modeling import (
    Confidence,
    FitKind,
    FitResult,
    ModelSet,
    SegmentModel,
    fit,
    fit_segment,
)
from runcoach.service import CoachService
from runcoach.store import AttemptStore, DurationStore, SegmentDurations

__all__ = [
    "__version__",
    # Modeling
    "Confidence",
    "FitKind",
    "FitResult",
    "ModelSet",
    "SegmentModel",
    "fit",
    "fit_segment",
    # Advisor
    "UNBOUNDED_TIME",
    "PracticeAdvisor",
    "PracticeBenefit",
    "Recommendation",
    "RecommendationReason",
    "expected_completion_time",
    "mean_field_estimate",
    "monte_carlo_estimate",
    # Persistence and orchestration
    "AttemptStore",
    "CoachService",
    "DurationStore",
    "SegmentDurations",
    # Errors
    "ErrorCode",
    "RuncoachError",
]
