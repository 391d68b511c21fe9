"""Maximum-likelihood fitting of per-segment learning curves.

Each segment's outcome history is modelled as independent Bernoulli trials
whose log-odds grow linearly with the attempt index:

    P(success on attempt t) = sigmoid(beta0 + beta1 * t),  t = 0 .. n-1

Fitting policy:
- no outcomes: flat 50% model, InsufficientData
- fewer than ``min_samples`` outcomes: constant model at the (clamped)
  success rate, InsufficientData
- otherwise: BFGS on the negative log-likelihood with the closed-form
  gradient, then a Fisher-information check on the slope. Negative slopes
  and optimizer failures fall back to the constant model.

Fallbacks are reported through ``FitResult.kind`` rather than exceptions.
"""

import logging
import math
from collections.abc import Sequence

import numpy as np
from scipy.optimize import minimize

from runcoach.foundation.errors import fit_input_error
from runcoach.foundation.utils.math import clamp, logit, sigmoid_array
from runcoach.modeling.types import Confidence, FitKind, FitResult, SegmentModel

logger = logging.getLogger(__name__)

DEFAULT_MIN_SAMPLES = 15

# Success rates are clamped before taking logits so constant models stay finite
_RATE_FLOOR = 0.01
_RATE_CEILING = 0.99

# Probabilities are clamped before taking logs in the likelihood
_PROB_EPSILON = 1e-10

_OPTIMIZER_OPTIONS = {
    "gtol": 1e-8,
    "xrtol": 1e-8,
    "maxiter": 1000,
}

# scipy BFGS status codes: 0 converged, 2 precision loss at the optimum.
# Precision loss is expected once the clamped likelihood goes flat.
_ACCEPTED_STATUS = frozenset({0, 2})

_DET_EPSILON = 1e-15


def fit(
    outcomes: Sequence[bool],
    duration: float,
    min_samples: int = DEFAULT_MIN_SAMPLES,
) -> SegmentModel:
    """Fit a success-probability model to a segment's outcome history.

    Args:
        outcomes: Success/failure outcomes in the order they happened.
        duration: Nominal seconds to traverse the segment.
        min_samples: Outcomes needed before a slope is fitted.

    Returns:
        The fitted model. ``beta1`` is never negative.
    """
    return fit_segment(outcomes, duration, min_samples).model


def fit_segment(
    outcomes: Sequence[bool],
    duration: float,
    min_samples: int = DEFAULT_MIN_SAMPLES,
) -> FitResult:
    """Fit a segment and report which branch of the policy produced the model.

    Raises:
        RuncoachError: If ``duration`` is not a positive finite number or
            ``min_samples`` is below 1.
    """
    _validate_inputs(duration, min_samples)

    n = len(outcomes)
    if n == 0:
        return FitResult(
            model=SegmentModel(
                beta0=0.0,
                beta1=0.0,
                duration=duration,
                attempt_count=0,
                confidence=Confidence.INSUFFICIENT_DATA,
            ),
            kind=FitKind.FAILED_INSUFFICIENT_DATA,
            detail="no outcomes recorded",
        )

    successes = sum(1 for outcome in outcomes if outcome)

    if n < min_samples:
        return FitResult(
            model=_constant_model(successes, n, duration, Confidence.INSUFFICIENT_DATA),
            kind=FitKind.FELL_BACK_CONSTANT,
            detail=f"{n} outcomes below minimum of {min_samples}",
        )

    return _fit_logistic(outcomes, duration, successes)


def _validate_inputs(duration: float, min_samples: int) -> None:
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise fit_input_error("duration", f"expected a number, got {type(duration).__name__}")
    if not (math.isfinite(duration) and duration > 0):
        raise fit_input_error("duration", f"must be positive and finite, got {duration!r}")
    if min_samples < 1:
        raise fit_input_error("min_samples", f"must be at least 1, got {min_samples!r}")


def _constant_model(
    successes: int,
    n: int,
    duration: float,
    confidence: Confidence,
) -> SegmentModel:
    rate = clamp(successes / n, _RATE_FLOOR, _RATE_CEILING)
    return SegmentModel(
        beta0=logit(rate),
        beta1=0.0,
        duration=duration,
        attempt_count=n,
        confidence=confidence,
    )


def _negative_log_likelihood(params: np.ndarray, t: np.ndarray, y: np.ndarray) -> float:
    eta = params[0] + params[1] * t
    p = np.clip(sigmoid_array(eta), _PROB_EPSILON, 1.0 - _PROB_EPSILON)
    return float(-np.sum(y * np.log(p) + (1.0 - y) * np.log(1.0 - p)))


def _gradient(params: np.ndarray, t: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Closed-form gradient: (sum(p - y), sum((p - y) * t))."""
    residual = sigmoid_array(params[0] + params[1] * t) - y
    return np.array([residual.sum(), (residual * t).sum()])


def _fit_logistic(outcomes: Sequence[bool], duration: float, successes: int) -> FitResult:
    n = len(outcomes)
    t = np.arange(n, dtype=float)
    y = np.fromiter((1.0 if outcome else 0.0 for outcome in outcomes), dtype=float, count=n)

    try:
        result = minimize(
            _negative_log_likelihood,
            np.zeros(2),
            args=(t, y),
            jac=_gradient,
            method="BFGS",
            options=_OPTIMIZER_OPTIONS,
        )
    except (ArithmeticError, ValueError, np.linalg.LinAlgError) as e:
        logger.debug("Logistic fit raised %s: %s", type(e).__name__, e)
        return FitResult(
            model=_constant_model(successes, n, duration, Confidence.INSUFFICIENT_DATA),
            kind=FitKind.FAILED_INSUFFICIENT_DATA,
            detail=f"optimizer raised {type(e).__name__}: {e}",
        )

    beta0, beta1 = (float(v) for v in result.x)
    if result.status not in _ACCEPTED_STATUS or not (math.isfinite(beta0) and math.isfinite(beta1)):
        return FitResult(
            model=_constant_model(successes, n, duration, Confidence.INSUFFICIENT_DATA),
            kind=FitKind.FAILED_INSUFFICIENT_DATA,
            detail=f"optimizer did not converge (status {result.status}): {result.message}",
        )

    if beta1 < 0:
        return FitResult(
            model=_constant_model(successes, n, duration, Confidence.NEGATIVE_LEARNING_RATE),
            kind=FitKind.FELL_BACK_CONSTANT,
            detail=f"negative learning rate {beta1:.4g}",
        )

    low_confidence = compute_low_confidence(beta0, beta1, n)
    return FitResult(
        model=SegmentModel(
            beta0=beta0,
            beta1=beta1,
            duration=duration,
            attempt_count=n,
            confidence=Confidence.INSUFFICIENT_DATA if low_confidence else Confidence.CONFIDENT,
        ),
        kind=FitKind.FITTED,
    )


def compute_low_confidence(beta0: float, beta1: float, n: int) -> bool:
    """Whether the slope's standard error exceeds its magnitude.

    Builds the observed Fisher information at (beta0, beta1) over attempt
    indices ``0 .. n-1``:

        H = [[sum w,   sum w t  ],
             [sum w t, sum w t^2]],   w = p (1 - p)

    and compares SE(beta1) = sqrt(H00 / det H) to |beta1|. A singular or
    indefinite matrix, or any numerical failure, counts as low confidence.
    """
    try:
        with np.errstate(over="raise", invalid="raise", divide="raise", under="ignore"):
            t = np.arange(n, dtype=float)
            p = sigmoid_array(beta0 + beta1 * t)
            w = p * (1.0 - p)
            h00 = float(w.sum())
            h01 = float((w * t).sum())
            h11 = float((w * t * t).sum())

            det = h00 * h11 - h01 * h01
            if not math.isfinite(det) or abs(det) < _DET_EPSILON:
                return True

            var_beta1 = h00 / det
            if not math.isfinite(var_beta1) or var_beta1 < 0:
                return True

            return math.sqrt(var_beta1) > abs(beta1)
    except (ArithmeticError, ValueError) as e:
        logger.debug("Confidence check failed numerically: %s", e)
        return True
