# src/rtt/envelope/quantiles.py
"""
Per-bin quantile curves across posterior samples.

Provides:
  - default_levels()
  - validate_levels(levels)
  - quantile_envelope(matrix, levels)

Notes:
  * Estimator is Hyndman & Fan type 7 (linear interpolation between order
    statistics), i.e. ``np.quantile(..., method="linear")``.
  * Levels are validated before the matrix is looked at.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from rtt.core.errors import InvalidArgument
from rtt.core.models import DEFAULT_INTERVALS
from rtt.envelope.matrix import as_rate_matrix

__all__ = ["default_levels", "validate_levels", "quantile_envelope"]

log = logging.getLogger(__name__)


def default_levels() -> NDArray[np.float64]:
    """0.00, 0.01, ..., 1.00."""
    return np.array(DEFAULT_INTERVALS, dtype=float)


def validate_levels(levels: Optional[Iterable[float]]) -> NDArray[np.float64]:
    """
    Coerce a quantile set to a 1-D float array; ``None`` means no levels.

    Raises:
        InvalidArgument: if any level is non-numeric, non-finite, or outside [0,1].
    """
    if levels is None:
        return np.empty(0, dtype=float)
    if isinstance(levels, (str, bytes)):
        raise InvalidArgument("quantile levels must be numeric, not a string")
    try:
        if not isinstance(levels, (np.ndarray, int, float)):
            levels = list(levels)
        q = np.atleast_1d(np.asarray(levels, dtype=float))
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"quantile levels must be numeric: {exc}") from exc
    if q.ndim != 1:
        raise InvalidArgument("quantile levels must be a flat sequence")
    bad = q[~np.isfinite(q) | (q < 0.0) | (q > 1.0)]
    if bad.size:
        raise InvalidArgument(f"quantile levels must be in [0,1]. Got {bad.tolist()}.")
    return q


def quantile_envelope(matrix: ArrayLike, levels: Optional[Iterable[float]]) -> NDArray[np.float64]:
    """
    Quantile of every column of ``matrix`` at every level.

    Args:
        matrix: (n_samples, n_bins) rates, n_samples >= 1
        levels: quantile set, in any order

    Returns:
        (k, n_bins) array; row i is the curve for ``levels[i]`` (input order).
    """
    q = validate_levels(levels)
    rate = as_rate_matrix(matrix)
    if q.size == 0:
        return np.empty((0, rate.shape[1]), dtype=float)
    env = np.quantile(rate, q, axis=0, method="linear")
    log.debug("quantile envelope: %d levels x %d bins over %d samples", q.size, rate.shape[1], rate.shape[0])
    return np.asarray(env, dtype=float).reshape(q.size, rate.shape[1])
