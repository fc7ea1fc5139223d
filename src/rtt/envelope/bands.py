# src/rtt/envelope/bands.py
"""
Pair symmetric quantile curves into closed band polygons.

Rows of the envelope are sorted by level, then paired from the outside in:
lowest with highest, next-lowest with next-highest, and so on until the two
pointers meet. With an odd number of levels the middle row is a zero-width
band and is dropped.

Each polygon traces the low curve forward in time and the high curve back:

    [(t1, lo1), ..., (tm, lom), (tm, him), ..., (t1, hi1)]
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike

from rtt.core.errors import InvalidArgument
from rtt.core.models import BandPolygon
from rtt.envelope.matrix import as_time_bins
from rtt.envelope.quantiles import validate_levels

__all__ = ["assemble_bands", "band_pairs"]

log = logging.getLogger(__name__)


def band_pairs(k: int) -> List[Tuple[int, int]]:
    """Index pairs (low, high) for k sorted rows, outermost first."""
    pairs = []
    q1, q2 = 0, k - 1
    while q1 < q2:
        pairs.append((q1, q2))
        q1 += 1
        q2 -= 1
    return pairs


def assemble_bands(
    envelope: ArrayLike,
    levels: Optional[Iterable[float]],
    times: ArrayLike,
) -> List[BandPolygon]:
    """
    Build the nested band polygons for a quantile envelope.

    Args:
        envelope: (k, m) quantile curves, row i at ``levels[i]``
        levels: the k quantile levels, any order
        times: m time-bin coordinates

    Returns:
        floor(k/2) polygons, widest first. Empty when k < 2.

    Raises:
        InvalidArgument: if the shapes of envelope, levels and times disagree.
    """
    q = validate_levels(levels)
    env = np.asarray(envelope, dtype=float)
    if env.size == 0 and q.size == 0:
        return []
    if env.ndim != 2:
        raise InvalidArgument(f"envelope must be 2-D (levels x bins), got ndim={env.ndim}")
    if env.shape[0] != q.size:
        raise InvalidArgument(
            f"envelope has {env.shape[0]} rows but {q.size} quantile levels were given"
        )
    t = as_time_bins(times, n_bins=env.shape[1])

    order = np.argsort(q, kind="stable")
    q = q[order]
    env = env[order]

    bands: List[BandPolygon] = []
    for lo, hi in band_pairs(q.size):
        outbound = np.column_stack([t, env[lo]])
        inbound = np.column_stack([t[::-1], env[hi][::-1]])
        bands.append(
            BandPolygon(
                lower_level=float(q[lo]),
                upper_level=float(q[hi]),
                points=np.vstack([outbound, inbound]),
            )
        )
    log.debug("assembled %d bands from %d levels", len(bands), q.size)
    return bands
