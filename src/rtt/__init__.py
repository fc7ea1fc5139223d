"""Top-level package for rate-through-time envelope summaries."""

from importlib import metadata as _metadata

from . import analysis, core, envelope, io

try:
    __version__ = _metadata.version("rtt-envelope")
except _metadata.PackageNotFoundError:  # pragma: no cover - during local usage
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "analysis",
    "core",
    "envelope",
    "io",
]
