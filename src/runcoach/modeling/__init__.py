"""Per-segment success-probability models and their fitting."""

from runcoach.modeling.fitter import (
    DEFAULT_MIN_SAMPLES,
    compute_low_confidence,
    fit,
    fit_segment,
)
from runcoach.modeling.types import (
    Confidence,
    FitKind,
    FitResult,
    ModelSet,
    SegmentModel,
)

__all__ = [
    "DEFAULT_MIN_SAMPLES",
    "Confidence",
    "FitKind",
    "FitResult",
    "ModelSet",
    "SegmentModel",
    "compute_low_confidence",
    "fit",
    "fit_segment",
]
