# src/rtt/analysis/render.py
"""
Module: rtt.analysis.render
Purpose: Draw a rate-through-time summary onto a matplotlib Axes.

Draw order: axis frame (fresh figures only), then every band as a filled,
unbordered translucent polygon, widest first so that overlapping bands
blend toward the centre, then the central curve as a solid line on top.

No pyplot "current figure" state is relied upon: callers pass an explicit
Axes, or acquire one through ``drawing_surface()`` which closes the figure
on exit.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

import matplotlib as mpl
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.colors import to_rgba

from rtt.analysis.axes import AxisLayout, axis_layout
from rtt.core.errors import InvalidArgument
from rtt.core.models import RateThroughTimeSummary, RttOptions
from rtt.envelope.timeaxis import transform_band, transform_central

__all__ = [
    "TIME_AXIS_LABEL",
    "drawing_surface",
    "transparent_color",
    "draw_frame",
    "draw_bands",
    "draw_central",
    "render_summary",
    "save_figure",
]

TIME_AXIS_LABEL = "Time since present"

# -------------------- Matplotlib (paper-safe) ---------------------------------
_RC: Dict[str, Any] = {
    "pdf.fonttype": 42,
    "ps.fonttype": 42,
    "font.size": 11,
    "axes.labelsize": 13,
    "xtick.labelsize": 10,
    "ytick.labelsize": 10,
    "savefig.bbox": "tight",
    "savefig.pad_inches": 0.02,
    "figure.facecolor": "white",
    "axes.facecolor": "white",
    "savefig.facecolor": "white",
    "savefig.transparent": False,
}


@contextmanager
def drawing_surface(figsize: Tuple[float, float] = (6.0, 5.0)) -> Iterator[Axes]:
    """Yield a fresh Axes; its figure is closed when the block exits."""
    with mpl.rc_context(_RC):
        fig, ax = plt.subplots(figsize=figsize)
        try:
            yield ax
        finally:
            plt.close(fig)


def transparent_color(color: str, opacity: float) -> Tuple[float, float, float, float]:
    """RGBA for ``color`` with alpha ``opacity``."""
    if not (0.0 <= opacity <= 1.0):
        raise InvalidArgument(f"opacity must be in [0,1]. Got {opacity}.")
    try:
        return to_rgba(color, alpha=opacity)
    except ValueError as exc:
        raise InvalidArgument(f"unknown color {color!r}") from exc


def draw_frame(ax: Axes, layout: AxisLayout, rate_label: str) -> None:
    ax.set_xlim(*layout.xlim)
    ax.set_ylim(*layout.ylim)
    ax.set_xticks(layout.xticks)
    ax.set_xticklabels(layout.xticklabels)
    ax.set_yticks(layout.yticks)
    ax.set_yticklabels(layout.yticklabels)
    ax.set_xlabel(TIME_AXIS_LABEL)
    ax.set_ylabel(rate_label)
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)


def draw_bands(
    ax: Axes,
    summary: RateThroughTimeSummary,
    *,
    color: str = "blue",
    opacity: float = 0.01,
) -> int:
    """Fill every band polygon; returns the number drawn."""
    rgba = transparent_color(color, opacity)
    ref = summary.reference_time
    for band in summary.bands:
        pts = transform_band(band, ref)
        ax.fill(pts[:, 0], pts[:, 1], facecolor=rgba, edgecolor="none", linewidth=0.0)
    return len(summary.bands)


def draw_central(
    ax: Axes,
    summary: RateThroughTimeSummary,
    *,
    color: str = "red",
    linewidth: float = 3.0,
) -> None:
    pts = transform_central(summary.central, summary.reference_time)
    ax.plot(pts[:, 0], pts[:, 1], color=color, linewidth=linewidth, linestyle="-", zorder=3)


def render_summary(
    summary: RateThroughTimeSummary,
    options: Optional[RttOptions] = None,
    ax: Optional[Axes] = None,
) -> Axes:
    """
    Render ``summary`` according to ``options``.

    With ``options.add`` the frame step is skipped and ``ax`` is required
    (the surface being added to). Without an ``ax`` a new figure is opened
    and left open for the caller.
    """
    opts = options or RttOptions()
    if ax is None:
        if opts.add:
            raise InvalidArgument("add=True requires an existing Axes to draw onto")
        _, ax = plt.subplots()

    if not opts.add:
        layout = axis_layout(
            summary,
            xlim=opts.xlim,
            ylim=opts.ylim,
            xticks=opts.xticks,
            yticks=opts.yticks,
        )
        draw_frame(ax, layout, summary.rate_label)

    draw_bands(ax, summary, color=opts.interval_col, opacity=opts.opacity)
    draw_central(ax, summary, color=opts.avg_col, linewidth=opts.avg_lw)
    return ax


def save_figure(ax: Axes, path: str | Path) -> str:
    """Write the Axes' figure (format from the suffix); returns the path."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with mpl.rc_context(_RC):
        ax.figure.savefig(out)
    return str(out)
