# src/rtt/envelope/central.py
"""Mean or median rate per time bin."""

from __future__ import annotations

from typing import Union

import numpy as np
from numpy.typing import ArrayLike

from rtt.core.errors import InvalidArgument
from rtt.core.models import CentralCurve, CentralMode
from rtt.envelope.matrix import as_rate_matrix, as_time_bins

__all__ = ["central_tendency"]


def central_tendency(
    matrix: ArrayLike,
    times: ArrayLike,
    mode: Union[CentralMode, str] = CentralMode.MEAN,
) -> CentralCurve:
    """
    Column-wise mean or median of ``matrix``.

    The median interpolates linearly between the two middle order
    statistics when the sample count is even.

    Raises:
        InvalidArgument: on an empty matrix, mismatched times, or unknown mode.
    """
    try:
        m = CentralMode(mode)
    except ValueError as exc:
        raise InvalidArgument(f"central-tendency mode must be 'mean' or 'median'; got {mode!r}") from exc
    rate = as_rate_matrix(matrix)
    t = as_time_bins(times, n_bins=rate.shape[1])

    if m is CentralMode.MEAN:
        values = rate.mean(axis=0)
    else:
        values = np.median(rate, axis=0)
    return CentralCurve(mode=m, times=t, values=values)
