"""Mathematical utility functions.

Helpers shared by the fitter, the model type and the advisor. Scalar
versions use :mod:`math`; the ``_array`` variants operate on numpy arrays.
"""

import math

import numpy as np


def sigmoid(x: float) -> float:
    """Numerically stable logistic function.

    Branches on the sign of ``x`` so ``exp`` is only ever evaluated on a
    non-positive argument and cannot overflow.

    Example:
        >>> sigmoid(0.0)
        0.5
    """
    if x >= 0:
        ez = math.exp(-x)
        return 1.0 / (1.0 + ez)
    ez = math.exp(x)
    return ez / (1.0 + ez)


def logit(p: float) -> float:
    """Inverse of :func:`sigmoid` for ``0 < p < 1``.

    Example:
        >>> round(logit(0.5), 12)
        0.0
    """
    return math.log(p / (1.0 - p))


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``."""
    if value < low:
        return low
    if value > high:
        return high
    return value


def sigmoid_array(x: np.ndarray) -> np.ndarray:
    """Elementwise :func:`sigmoid` that never exponentiates a positive number."""
    z = np.exp(-np.abs(x))
    return np.where(x >= 0, 1.0 / (1.0 + z), z / (1.0 + z))
