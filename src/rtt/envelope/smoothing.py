# src/rtt/envelope/smoothing.py
"""
LOWESS smoothing of band boundaries and of the central curve.

A band polygon is not a single-valued function of time, so its two legs are
fitted separately: the outbound (low) leg and the return (high) leg. The
split sits at ``len(points) // 2``. With ``overlap=True`` the return fit
also covers the last outbound point, and its fitted value replaces the
outbound one there; with ``overlap=False`` the legs are disjoint.
Time coordinates are never altered, so the polygon stays closed.

Fits use statsmodels' LOWESS (tricube weights, local linear) with no
robustifying iterations; ``span`` is the fraction of points in each local
neighbourhood.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray
from statsmodels.nonparametric.smoothers_lowess import lowess

from rtt.core.errors import InvalidArgument
from rtt.core.models import BandPolygon, CentralCurve

__all__ = ["validate_span", "smooth_curve", "smooth_band", "smooth_central"]

log = logging.getLogger(__name__)


def validate_span(span: float) -> float:
    if isinstance(span, bool):
        raise InvalidArgument("span must be numeric")
    try:
        s = float(span)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"span must be numeric: {exc}") from exc
    if not (0.0 < s <= 1.0):
        raise InvalidArgument(f"span must be in (0,1]. Got {s}.")
    return s


def smooth_curve(x: ArrayLike, y: ArrayLike, span: float = 0.20) -> NDArray[np.float64]:
    """
    LOWESS-fitted values of ``y`` at the given ``x``, in input order.

    Raises:
        InvalidArgument: on mismatched lengths, non-1-D input, or a span
            outside (0,1].
    """
    s = validate_span(span)
    xa = np.asarray(x, dtype=float)
    ya = np.asarray(y, dtype=float)
    if xa.ndim != 1 or ya.ndim != 1:
        raise InvalidArgument("smoothing expects 1-D x and y")
    if xa.shape != ya.shape:
        raise InvalidArgument(f"x and y differ in length ({xa.size} != {ya.size})")

    # a local linear fit needs at least two neighbours
    if xa.size < 3 or int(s * xa.size + 1e-10) < 2:
        log.debug("span %.3f covers too few of %d points; curve left unsmoothed", s, xa.size)
        return ya.copy()

    fitted = lowess(ya, xa, frac=s, it=0, delta=0.0, return_sorted=False)
    return np.asarray(fitted, dtype=float)


def smooth_band(band: BandPolygon, span: float = 0.20, *, overlap: bool = True) -> BandPolygon:
    """Smooth the outbound and return legs of ``band`` independently."""
    pts = band.as_array()
    n = pts.shape[0]
    h = n // 2
    y = pts[:, 1].copy()

    y[:h] = smooth_curve(pts[:h, 0], pts[:h, 1], span)
    start = h - 1 if overlap and h > 0 else h
    y[start:] = smooth_curve(pts[start:, 0], pts[start:, 1], span)

    return BandPolygon(
        lower_level=band.lower_level,
        upper_level=band.upper_level,
        points=np.column_stack([pts[:, 0], y]),
    )


def smooth_central(curve: CentralCurve, span: float = 0.20) -> CentralCurve:
    """One LOWESS fit over the whole central curve."""
    values = smooth_curve(curve.times, curve.values, span)
    return CentralCurve(mode=curve.mode, times=curve.times, values=values)
