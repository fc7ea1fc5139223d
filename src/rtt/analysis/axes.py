# src/rtt/analysis/axes.py
"""
Axis bounds and tick placement for rate-through-time figures.

Each axis is either ``"auto"`` or an explicit (lo, hi) pair. The four
combinations are resolved through a lookup table rather than nested
branches; explicit pairs are used verbatim.

Auto rules
----------
- time axis: (reference - min(times), reference - max(times)), i.e. the
  oldest bin on the left and the present (0) on the right.
- rate axis: (0, max over all band values), falling back to the central
  curve when no bands were requested. If nothing is positive the axis
  spans (min, 0), or (0, 1) for an all-zero summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import numpy as np
from typing_extensions import TypeAlias

from rtt.core.errors import InvalidArgument
from rtt.core.models import AxisBounds, RateThroughTimeSummary, _coerce_axis_bounds

__all__ = [
    "AxisLayout",
    "auto_time_bounds",
    "auto_rate_bounds",
    "resolve_axis_bounds",
    "axis_ticks",
    "axis_layout",
]

Bounds: TypeAlias = Tuple[float, float]


@dataclass(frozen=True)
class AxisLayout:
    """Resolved window and tick marks for both axes."""

    xlim: Bounds
    ylim: Bounds
    xticks: List[float]
    xticklabels: List[str]
    yticks: List[float]
    yticklabels: List[str]


def auto_time_bounds(summary: RateThroughTimeSummary) -> Bounds:
    ref = summary.reference_time
    lo, hi = ref - min(summary.times), ref - max(summary.times)
    if lo == hi:
        # single time coordinate; give the window a unit width
        return (lo + 1.0, hi)
    return (lo, hi)


def auto_rate_bounds(summary: RateThroughTimeSummary) -> Bounds:
    if summary.bands:
        values = np.concatenate([b.y for b in summary.bands])
    else:
        values = np.asarray(summary.central.values, dtype=float)
    top = float(np.max(values))
    if top > 0.0:
        return (0.0, top)
    bottom = float(np.min(values))
    if bottom < 0.0:
        return (bottom, 0.0)
    return (0.0, 1.0)


def _explicit(bounds: AxisBounds) -> Bounds:
    assert bounds != "auto"
    return (float(bounds[0]), float(bounds[1]))


_RESOLVERS: Dict[
    Tuple[bool, bool],
    Callable[[AxisBounds, AxisBounds, RateThroughTimeSummary], Tuple[Bounds, Bounds]],
] = {
    (True, True): lambda x, y, s: (auto_time_bounds(s), auto_rate_bounds(s)),
    (False, True): lambda x, y, s: (_explicit(x), auto_rate_bounds(s)),
    (True, False): lambda x, y, s: (auto_time_bounds(s), _explicit(y)),
    (False, False): lambda x, y, s: (_explicit(x), _explicit(y)),
}


def resolve_axis_bounds(
    xlim: object, ylim: object, summary: RateThroughTimeSummary
) -> Tuple[Bounds, Bounds]:
    """
    Map (xlim or auto) x (ylim or auto) to numeric windows.

    Raises:
        InvalidArgument: on malformed bounds (wrong length, 'auto' mixed
            with numbers, non-finite or equal endpoints).
    """
    try:
        x = _coerce_axis_bounds("xlim", xlim)
        y = _coerce_axis_bounds("ylim", ylim)
    except ValueError as exc:
        raise InvalidArgument(str(exc)) from exc
    return _RESOLVERS[(x == "auto", y == "auto")](x, y, summary)


def axis_ticks(lo: float, hi: float, n: int, *, digits: int) -> Tuple[List[float], List[str]]:
    """
    ``n + 1`` evenly spaced ticks from ``lo`` to ``hi``.

    With ``digits == 0`` positions are snapped to integers, as on the time
    axis; otherwise only the labels are rounded.
    """
    if n < 1:
        raise InvalidArgument(f"tick count must be >= 1, got {n}")
    pos = np.linspace(lo, hi, n + 1)
    if digits == 0:
        pos = np.round(pos)
        labels = [f"{int(p)}" for p in pos]
    else:
        labels = [f"{round(float(p), digits):.{digits}f}" for p in pos]
    return [float(p) for p in pos], labels


def axis_layout(
    summary: RateThroughTimeSummary,
    *,
    xlim: object = "auto",
    ylim: object = "auto",
    xticks: int = 5,
    yticks: int = 5,
) -> AxisLayout:
    (x0, x1), (y0, y1) = resolve_axis_bounds(xlim, ylim, summary)
    xt, xl = axis_ticks(x0, x1, xticks, digits=0)
    yt, yl = axis_ticks(y0, y1, yticks, digits=1)
    return AxisLayout(
        xlim=(x0, x1),
        ylim=(y0, y1),
        xticks=xt,
        xticklabels=xl,
        yticks=yt,
        yticklabels=yl,
    )
