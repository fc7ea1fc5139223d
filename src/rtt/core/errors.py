# src/rtt/core/errors.py
"""Error kinds raised by the rate-through-time pipeline.

Both concrete errors subclass ``ValueError`` so callers that only guard on
the builtin keep working.
"""

from __future__ import annotations

__all__ = ["RttError", "InvalidArgument", "DomainMismatch"]


class RttError(Exception):
    """Base class for all errors surfaced by :mod:`rtt`."""


class InvalidArgument(RttError, ValueError):
    """A parameter has the wrong type, an out-of-range value, or an incompatible shape."""


class DomainMismatch(RttError, ValueError):
    """The requested rate kind is not supported by the data source."""
