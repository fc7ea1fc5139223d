# src/rtt/envelope/timeaxis.py
"""
Presentation time axis.

Rates are binned on a coordinate that grows toward the present; figures are
drawn against ``reference - t`` so that the present sits at 0 on the right
and the oldest bin at ``reference`` on the left. The mapping is its own
inverse for a fixed reference. It is applied with one shared reference to
every artifact of a summary so overlays line up.
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from rtt.core.errors import InvalidArgument
from rtt.core.models import BandPolygon, CentralCurve

__all__ = [
    "reference_time",
    "time_since_present",
    "transform_band",
    "transform_central",
]


def reference_time(times: ArrayLike) -> float:
    """Maximum of the time bins."""
    t = np.asarray(times, dtype=float)
    if t.size == 0:
        raise InvalidArgument("cannot take a reference time from empty time bins")
    return float(np.max(t))


def time_since_present(
    t: Union[float, ArrayLike], reference: float
) -> Union[float, NDArray[np.float64]]:
    """``reference - t``, pointwise."""
    if np.ndim(t) == 0:
        return float(reference) - float(t)  # type: ignore[arg-type]
    return float(reference) - np.asarray(t, dtype=float)


def transform_band(band: BandPolygon, reference: float) -> NDArray[np.float64]:
    """Band points as an (n, 2) array with the time column on the presentation axis."""
    pts = band.as_array().copy()
    pts[:, 0] = time_since_present(pts[:, 0], reference)
    return pts


def transform_central(curve: CentralCurve, reference: Optional[float] = None) -> NDArray[np.float64]:
    """Central curve as an (m, 2) array on the presentation axis."""
    ref = reference_time(curve.times) if reference is None else reference
    pts = curve.as_array()
    pts[:, 0] = time_since_present(pts[:, 0], ref)
    return pts
