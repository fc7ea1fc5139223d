"""
Quantile envelopes, band polygons, smoothing and central tendency for
rate-through-time matrices.
"""

from .bands import assemble_bands
from .central import central_tendency
from .matrix import RateMatrixProvider, RateThroughTimeMatrix, select_rates
from .pipeline import RenderResult, rate_through_time, summarize
from .quantiles import quantile_envelope
from .smoothing import smooth_band, smooth_central, smooth_curve
from .timeaxis import time_since_present

__all__ = [
    "RateMatrixProvider",
    "RateThroughTimeMatrix",
    "RenderResult",
    "assemble_bands",
    "central_tendency",
    "quantile_envelope",
    "rate_through_time",
    "select_rates",
    "smooth_band",
    "smooth_central",
    "smooth_curve",
    "summarize",
    "time_since_present",
]
