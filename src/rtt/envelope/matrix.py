# src/rtt/envelope/matrix.py
"""
Rate-through-time matrices and rate-slot dispatch.

A source is either *diversification* (speciation ``lambda_`` and extinction
``mu`` matrices) or *trait* (``beta``). Every matrix has shape
(n_samples, n_bins) and shares the same ``times`` vector. ``select_rates``
resolves a :class:`RateKind` against the source's declared capability.

Providers that derive matrices from a model object are opaque here; they
only need to satisfy :class:`RateMatrixProvider`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple, Union, runtime_checkable

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing_extensions import TypeAlias

from rtt.core.errors import DomainMismatch, InvalidArgument
from rtt.core.models import RateKind, SourceType

__all__ = [
    "RateThroughTimeMatrix",
    "RateMatrixProvider",
    "RateSource",
    "as_rate_matrix",
    "as_time_bins",
    "resolve_rate_kind",
    "select_rates",
    "rate_label",
]

_RATE_LABELS = {
    RateKind.SPECIATION: "Speciation",
    RateKind.EXTINCTION: "Extinction",
    RateKind.NETDIV: "Net diversification",
    RateKind.TRAIT: "Trait rate",
}


# ---- Validation -------------------------------------------------------------

def as_rate_matrix(values: ArrayLike, name: str = "rate matrix") -> NDArray[np.float64]:
    """
    Coerce to a read-only float array of shape (n_samples, n_bins).

    A 1-D input is read as a single sample.

    Raises:
        InvalidArgument: if empty, not 2-D, or containing NaN or infinite cells.
    """
    try:
        arr = np.array(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"{name} must be numeric: {exc}") from exc
    if arr.ndim == 1:
        arr = arr[None, :]
    if arr.ndim != 2:
        raise InvalidArgument(f"{name} must be 2-D (samples x time bins), got ndim={arr.ndim}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidArgument(f"{name} is empty (shape {arr.shape})")
    if not np.isfinite(arr).all():
        raise InvalidArgument(f"{name} contains missing (NaN) or infinite cells")
    arr.setflags(write=False)
    return arr


def as_time_bins(times: ArrayLike, n_bins: Optional[int] = None) -> NDArray[np.float64]:
    """
    Coerce to a read-only, non-decreasing 1-D float array.

    Raises:
        InvalidArgument: on wrong shape, non-finite values, decreasing order,
            or a length different from ``n_bins``.
    """
    try:
        t = np.array(times, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"time bins must be numeric: {exc}") from exc
    if t.ndim != 1 or t.size == 0:
        raise InvalidArgument("time bins must be a non-empty 1-D sequence")
    if not np.isfinite(t).all():
        raise InvalidArgument("time bins contain non-finite values")
    if np.any(np.diff(t) < 0):
        raise InvalidArgument("time bins must be non-decreasing")
    if n_bins is not None and t.size != n_bins:
        raise InvalidArgument(
            f"time bins length {t.size} does not match matrix column count {n_bins}"
        )
    t.setflags(write=False)
    return t


# ---- Containers -------------------------------------------------------------

@dataclass(frozen=True)
class RateThroughTimeMatrix:
    """
    Per-sample rates binned through time for one source.

    Fields
    ------
    source_type:
        Declared capability of the source.
    times:
        Time-bin coordinates shared by every matrix.
    lambda_, mu:
        Speciation and extinction matrices (diversification sources).
        ``mu`` may be absent, in which case only speciation is available.
    beta:
        Trait-rate matrix (trait sources).
    """

    source_type: SourceType
    times: NDArray[np.float64]
    lambda_: Optional[NDArray[np.float64]] = None
    mu: Optional[NDArray[np.float64]] = None
    beta: Optional[NDArray[np.float64]] = None

    def __post_init__(self) -> None:
        try:
            stype = SourceType(self.source_type)
        except ValueError as exc:
            raise InvalidArgument(f"unknown source type: {self.source_type!r}") from exc
        object.__setattr__(self, "source_type", stype)

        if stype is SourceType.DIVERSIFICATION:
            if self.lambda_ is None:
                raise InvalidArgument("diversification source requires a speciation (lambda) matrix")
            if self.beta is not None:
                raise InvalidArgument("diversification source cannot carry a trait (beta) matrix")
            slots = {"lambda": "lambda_", "mu": "mu"}
        else:
            if self.beta is None:
                raise InvalidArgument("trait source requires a beta matrix")
            if self.lambda_ is not None or self.mu is not None:
                raise InvalidArgument("trait source cannot carry lambda/mu matrices")
            slots = {"beta": "beta"}

        shape: Optional[Tuple[int, int]] = None
        for label, attr in slots.items():
            value = getattr(self, attr)
            if value is None:
                continue
            arr = as_rate_matrix(value, name=f"{label} matrix")
            if shape is not None and arr.shape != shape:
                raise InvalidArgument(
                    f"{label} matrix shape {arr.shape} does not match {shape}"
                )
            shape = arr.shape
            object.__setattr__(self, attr, arr)

        assert shape is not None
        object.__setattr__(self, "times", as_time_bins(self.times, n_bins=shape[1]))

    @classmethod
    def diversification(
        cls, lambda_: ArrayLike, mu: Optional[ArrayLike], times: ArrayLike
    ) -> "RateThroughTimeMatrix":
        return cls(SourceType.DIVERSIFICATION, times, lambda_=lambda_, mu=mu)

    @classmethod
    def trait(cls, beta: ArrayLike, times: ArrayLike) -> "RateThroughTimeMatrix":
        return cls(SourceType.TRAIT, times, beta=beta)

    @property
    def shape(self) -> Tuple[int, int]:
        ref = self.beta if self.source_type is SourceType.TRAIT else self.lambda_
        assert ref is not None
        return (int(ref.shape[0]), int(ref.shape[1]))

    @property
    def n_samples(self) -> int:
        return self.shape[0]

    @property
    def n_bins(self) -> int:
        return self.shape[1]


@runtime_checkable
class RateMatrixProvider(Protocol):
    """Anything able to bin its posterior rates through time on demand."""

    source_type: SourceType

    def rate_matrix(
        self,
        *,
        start_time: Optional[float],
        end_time: Optional[float],
        node: Optional[int],
        nslices: int,
        nodetype: str,
    ) -> RateThroughTimeMatrix: ...


RateSource: TypeAlias = Union[RateThroughTimeMatrix, RateMatrixProvider]


# ---- Dispatch ---------------------------------------------------------------

def resolve_rate_kind(kind: Union[RateKind, str], source_type: SourceType) -> RateKind:
    """
    Resolve ``auto`` and check that ``kind`` is available on ``source_type``.

    Raises:
        InvalidArgument: if ``kind`` is not a known rate kind.
        DomainMismatch: if the source cannot supply that rate.
    """
    try:
        k = RateKind(kind)
    except ValueError as exc:
        choices = ", ".join(repr(r.value) for r in RateKind)
        raise InvalidArgument(f"ratetype must be one of {choices}; got {kind!r}") from exc

    stype = SourceType(source_type)
    if k is RateKind.AUTO:
        return RateKind.TRAIT if stype is SourceType.TRAIT else RateKind.SPECIATION
    if stype is SourceType.TRAIT and k is not RateKind.TRAIT:
        raise DomainMismatch(
            f"source of type 'trait' only supports ratetype 'auto' or 'trait'; got {k.value!r}"
        )
    if stype is SourceType.DIVERSIFICATION and k is RateKind.TRAIT:
        raise DomainMismatch("source of type 'diversification' has no trait rate")
    return k


def select_rates(
    rmat: RateThroughTimeMatrix, kind: Union[RateKind, str] = RateKind.AUTO
) -> Tuple[NDArray[np.float64], RateKind]:
    """
    Pick the (samples x bins) matrix for ``kind`` from ``rmat``.

    Net diversification is derived as speciation minus extinction.

    Returns:
        (matrix, resolved kind)
    """
    k = resolve_rate_kind(kind, rmat.source_type)
    if k is RateKind.TRAIT:
        assert rmat.beta is not None
        return rmat.beta, k
    if k is RateKind.SPECIATION:
        assert rmat.lambda_ is not None
        return rmat.lambda_, k
    if rmat.mu is None:
        raise DomainMismatch(f"ratetype {k.value!r} requires an extinction (mu) matrix")
    if k is RateKind.EXTINCTION:
        return rmat.mu, k
    assert rmat.lambda_ is not None
    return rmat.lambda_ - rmat.mu, k


def rate_label(kind: Union[RateKind, str]) -> str:
    """Axis label for a resolved rate kind."""
    k = RateKind(kind)
    if k is RateKind.AUTO:
        raise InvalidArgument("rate label requires a resolved rate kind, not 'auto'")
    return _RATE_LABELS[k]
