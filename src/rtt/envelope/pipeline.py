# src/rtt/envelope/pipeline.py
"""
Rate-through-time summary pipeline.

    source -> rate matrix -> quantile envelope -> bands -> (smoothing)
                         \\-> central tendency -> (smoothing)
    -> collect (summary model) | render (matplotlib Axes)

Every option is validated, and the source resolved, before any statistic
is computed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from matplotlib.axes import Axes

from rtt.core.errors import DomainMismatch, InvalidArgument
from rtt.core.models import RateThroughTimeSummary, RttOptions, SourceType, options_from_kwargs
from rtt.envelope.bands import assemble_bands
from rtt.envelope.central import central_tendency
from rtt.envelope.matrix import (
    RateMatrixProvider,
    RateSource,
    RateThroughTimeMatrix,
    rate_label,
    select_rates,
)
from rtt.envelope.quantiles import quantile_envelope, validate_levels
from rtt.envelope.smoothing import smooth_band, smooth_central, validate_span

__all__ = ["RenderResult", "resolve_source", "summarize", "rate_through_time"]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderResult:
    """What render mode hands back: the Axes drawn on and the data behind it."""

    ax: Axes
    summary: RateThroughTimeSummary


def resolve_source(source: RateSource, options: RttOptions) -> RateThroughTimeMatrix:
    """
    Obtain the rate matrix from a precomputed matrix or a provider.

    Raises:
        InvalidArgument: if a precomputed matrix is combined with
            start_time/end_time/node, or ``source`` has an unsupported type.
        DomainMismatch: if a provider returns a different source type than
            it declares.
    """
    if isinstance(source, RateThroughTimeMatrix):
        overrides = options.derivation_overrides
        if overrides:
            raise InvalidArgument(
                "cannot specify start_time, end_time or node when a rate matrix is provided "
                f"(got {sorted(overrides)}); pass the provider instead or bin the matrix with them"
            )
        return source

    if isinstance(source, RateMatrixProvider):
        rmat = source.rate_matrix(
            start_time=options.start_time,
            end_time=options.end_time,
            node=options.node,
            nslices=options.n_bins,
            nodetype=options.nodetype,
        )
        if not isinstance(rmat, RateThroughTimeMatrix):
            raise InvalidArgument(
                f"provider returned {type(rmat).__name__}, expected RateThroughTimeMatrix"
            )
        if rmat.source_type != source.source_type:
            raise DomainMismatch(
                f"provider declares {SourceType(source.source_type).value!r} but returned a "
                f"{rmat.source_type.value!r} matrix"
            )
        return rmat

    raise InvalidArgument(
        "source must be a RateThroughTimeMatrix or a rate-matrix provider; "
        f"got {type(source).__name__}"
    )


def summarize(rmat: RateThroughTimeMatrix, options: Optional[RttOptions] = None) -> RateThroughTimeSummary:
    """Compute bands and central curve for one rate matrix (collection-mode core)."""
    opts = options or RttOptions()
    levels = validate_levels(opts.intervals)
    span = validate_span(opts.smooth_param) if opts.smooth else None
    rate, kind = select_rates(rmat, opts.ratetype)

    bands = []
    if levels.size:
        envelope = quantile_envelope(rate, levels)
        bands = assemble_bands(envelope, levels, rmat.times)
    central = central_tendency(rate, rmat.times, opts.central_mode)

    if span is not None:
        bands = [smooth_band(b, span, overlap=opts.overlap_split) for b in bands]
        central = smooth_central(central, span)

    log.debug(
        "summarized %s rates: %d samples x %d bins, %d bands, smoothed=%s",
        kind.value,
        rate.shape[0],
        rate.shape[1],
        len(bands),
        span is not None,
    )
    return RateThroughTimeSummary(
        bands=bands,
        central=central,
        times=rmat.times,
        rate_kind=kind,
        rate_label=rate_label(kind),
        levels=levels,
        smoothed=span is not None,
        span=span,
    )


def rate_through_time(
    source: RateSource,
    *,
    ax: Optional[Axes] = None,
    options: Optional[RttOptions] = None,
    **kwargs: Any,
) -> Union[RateThroughTimeSummary, RenderResult]:
    """
    Summarize rates through time and either draw or return the result.

    Args:
        source: precomputed :class:`RateThroughTimeMatrix` or a provider
        ax: Axes to draw on (required with ``add=True``)
        options: base options; ``kwargs`` override individual fields

    Returns:
        The summary when ``plot=False``; otherwise a :class:`RenderResult`.

    Raises:
        InvalidArgument, DomainMismatch: see :mod:`rtt.core.errors`.
    """
    opts = options_from_kwargs(options, **kwargs)
    if opts.plot and opts.add and ax is None:
        raise InvalidArgument("add=True requires an existing Axes to draw onto")

    rmat = resolve_source(source, opts)
    summary = summarize(rmat, opts)
    if not opts.plot:
        return summary

    from rtt.analysis.render import render_summary

    drawn = render_summary(summary, opts, ax=ax)
    return RenderResult(ax=drawn, summary=summary)
