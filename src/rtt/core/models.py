"""
Module: core.models (data layer for rate-through-time summaries)
Purpose: Frozen, validated and serializable models for the artifacts the
         envelope pipeline emits and for the options that drive it.

Design notes
------------
- Pydantic BaseModel (v2) for runtime validation, serialization, schemas.
- Frozen/immutable instances: results carry no reference back to the input
  matrix and cannot be mutated after construction.
- Enums for fixed values (RateKind, SourceType, CentralMode).
- BLAKE3 hashing over canonical JSON, used as the summary fingerprint in
  audit records. A per-class exclusion spec drops non-semantic fields.

Numeric payloads (band points, curve values) are stored as plain float
lists so that ``model_dump(mode="json")`` is lossless; ``as_array()`` helpers
give NumPy views for plotting.
"""

from __future__ import annotations

import json
import math
from enum import Enum
from functools import cached_property
from typing import (
    Any,
    ClassVar,
    Dict,
    List,
    Literal,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import blake3
import numpy as np
from numpy.typing import NDArray
from matplotlib.colors import to_rgba
from typing_extensions import TypeAlias
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    ValidationError,
    field_validator,
    model_validator,
)

from rtt.core.errors import InvalidArgument

__all__ = [
    "RateKind",
    "SourceType",
    "CentralMode",
    "ModelBase",
    "BandPolygon",
    "CentralCurve",
    "RateThroughTimeSummary",
    "RttOptions",
    "AxisBounds",
    "DEFAULT_INTERVALS",
    "options_from_kwargs",
]

# ---------------------------------------------------------------------------
# Global schema & type aliases
# ---------------------------------------------------------------------------
_SCHEMA_VERSION: str = "1.0"

JsonDict: TypeAlias = Dict[str, Any]
Point: TypeAlias = Tuple[float, float]
AxisBounds: TypeAlias = Union[Literal["auto"], Tuple[float, float]]

# 0.00, 0.01, ..., 1.00
DEFAULT_INTERVALS: Tuple[float, ...] = tuple(round(i / 100.0, 2) for i in range(101))


def _hash_json(obj: Any) -> str:
    """Canonical JSON -> BLAKE3 hex digest."""
    data = json.dumps(obj, sort_keys=True, separators=(",", ":"))
    hasher = blake3.blake3()
    hasher.update(data.encode("utf-8"))
    return hasher.hexdigest()


def _finite_float(name: str, v: Any) -> float:
    if isinstance(v, (str, bytes, bool)):
        raise ValueError(f"{name} must be numeric, got {type(v).__name__}")
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be numeric")
    if math.isnan(f) or math.isinf(f):
        raise ValueError(f"{name} cannot be NaN or infinite")
    return f


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class RateKind(str, Enum):
    """Which rate slot of a source is summarized."""
    AUTO = "auto"
    SPECIATION = "speciation"
    EXTINCTION = "extinction"
    NETDIV = "netdiv"
    TRAIT = "trait"


class SourceType(str, Enum):
    """Declared capability of a rate source."""
    DIVERSIFICATION = "diversification"
    TRAIT = "trait"


class CentralMode(str, Enum):
    """Central-tendency statistic computed per time bin."""
    MEAN = "mean"
    MEDIAN = "median"


# ---------------------------------------------------------------------------
# Base Pydantic model
# ---------------------------------------------------------------------------
class ModelBase(BaseModel):
    """
    Shared BaseModel config for all rtt models.

    - Frozen/immutable instances (no in-place mutation).
    - Extra fields ignored on decode.
    - schema_version attached to every instance.
    - Stable BLAKE3 hashing, with a per-class exclusion spec.
    """

    schema_version: str = Field(default=_SCHEMA_VERSION, frozen=True)

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        validate_assignment=False,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    # pydantic ``exclude`` spec applied before hashing; may be nested
    HASH_EXCLUDE: ClassVar[Dict[str, Any]] = {}

    @cached_property
    def _default_hash(self) -> str:
        data = self.model_dump(mode="json", exclude=self.__class__.HASH_EXCLUDE or None)
        return _hash_json(data)

    def blake3_hash(self) -> str:
        """
        Stable BLAKE3 hash of the JSON representation of the model.

        Fields named in the class's ``HASH_EXCLUDE`` are dropped first. The
        digest is computed once per instance.
        """
        return self._default_hash


# ---------------------------------------------------------------------------
# Pipeline artifacts
# ---------------------------------------------------------------------------
def _coerce_points(v: Any) -> List[Point]:
    arr = np.asarray(v, dtype=float)
    if arr.size == 0:
        return []
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError("points must be a sequence of (time, value) pairs")
    return [(float(t), float(y)) for t, y in arr]


class BandPolygon(ModelBase):
    """
    Closed region between two symmetric quantile curves.

    ``points`` holds the low curve in time-ascending order followed by the
    high curve in time-descending order, so the first half is the outbound
    leg and the second half the return leg.
    """

    lower_level: float = Field(ge=0.0, le=1.0)
    upper_level: float = Field(ge=0.0, le=1.0)
    points: List[Point]

    @field_validator("points", mode="before")
    @classmethod
    def _normalize_points(cls, v: Any) -> List[Point]:
        return _coerce_points(v)

    @model_validator(mode="after")
    def _check_levels(self) -> "BandPolygon":
        if self.lower_level > self.upper_level:
            raise ValueError("lower_level must not exceed upper_level")
        return self

    def as_array(self) -> NDArray[np.float64]:
        """Points as an (n, 2) float array [[time, value], ...]."""
        return np.asarray(self.points, dtype=float).reshape(-1, 2)

    @property
    def x(self) -> NDArray[np.float64]:
        return self.as_array()[:, 0]

    @property
    def y(self) -> NDArray[np.float64]:
        return self.as_array()[:, 1]

    @property
    def outbound(self) -> NDArray[np.float64]:
        return self.as_array()[: len(self.points) // 2]

    @property
    def inbound(self) -> NDArray[np.float64]:
        return self.as_array()[len(self.points) // 2 :]


class CentralCurve(ModelBase):
    """Mean or median rate per time bin."""

    mode: CentralMode = CentralMode.MEAN
    times: List[float]
    values: List[float]

    @field_validator("times", "values", mode="before")
    @classmethod
    def _to_float_list(cls, v: Any) -> List[float]:
        if isinstance(v, str):
            raise ValueError("expected a numeric sequence, not a string")
        return np.asarray(v, dtype=float).ravel().tolist()

    @model_validator(mode="after")
    def _check_lengths(self) -> "CentralCurve":
        if len(self.times) != len(self.values):
            raise ValueError(
                f"times and values differ in length ({len(self.times)} != {len(self.values)})"
            )
        return self

    def as_array(self) -> NDArray[np.float64]:
        return np.column_stack([self.times, self.values]).astype(float)


class RateThroughTimeSummary(ModelBase):
    """
    Collection-mode result of the envelope pipeline.

    ``bands`` are ordered outermost first (the draw order), ``central`` and
    ``times`` are on the binned time coordinate, not the presentation axis.
    """

    bands: List[BandPolygon] = Field(default_factory=list)
    central: CentralCurve
    times: List[float]
    rate_kind: RateKind
    rate_label: str
    levels: List[float] = Field(default_factory=list)
    smoothed: bool = False
    span: Optional[float] = None

    # the fingerprint identifies the numbers, not the serialization schema
    HASH_EXCLUDE: ClassVar[Dict[str, Any]] = {
        "schema_version": True,
        "central": {"schema_version": True},
        "bands": {"__all__": {"schema_version": True}},
    }

    @field_validator("times", "levels", mode="before")
    @classmethod
    def _to_float_list(cls, v: Any) -> List[float]:
        if v is None:
            return []
        return np.asarray(v, dtype=float).ravel().tolist()

    @property
    def reference_time(self) -> float:
        """Maximum time bin; the pivot of the time-since-present axis."""
        return float(max(self.times))

    def astuple(self) -> Tuple[List[BandPolygon], CentralCurve, List[float]]:
        return self.bands, self.central, self.times


# ---------------------------------------------------------------------------
# Options (configuration surface)
# ---------------------------------------------------------------------------
def _coerce_axis_bounds(name: str, v: Any) -> AxisBounds:
    if v is None or (isinstance(v, str) and v.strip().lower() == "auto"):
        return "auto"
    if isinstance(v, (str, bytes)):
        raise ValueError(f"{name} must be 'auto' or a (min, max) pair, got {v!r}")
    if not isinstance(v, Sequence) and not isinstance(v, np.ndarray):
        raise ValueError(f"{name} must be 'auto' or a (min, max) pair")
    if len(v) != 2:
        raise ValueError(f"{name} must have exactly two entries, got {len(v)}")
    if any(isinstance(b, str) for b in v):
        raise ValueError(f"{name} cannot mix 'auto' with explicit bounds")
    lo = _finite_float(f"{name}[0]", v[0])
    hi = _finite_float(f"{name}[1]", v[1])
    if lo == hi:
        raise ValueError(f"{name} bounds must differ, got ({lo}, {hi})")
    return (lo, hi)


class RttOptions(ModelBase):
    """
    Every knob of the rate-through-time summary, with the defaults the
    plotting routine has always used.

    ``intervals=None`` disables bands entirely; an empty list does the same.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    use_median: StrictBool = False
    intervals: Optional[List[float]] = Field(default_factory=lambda: list(DEFAULT_INTERVALS))
    ratetype: RateKind = RateKind.AUTO
    n_bins: int = Field(default=100, gt=0)
    smooth: StrictBool = False
    smooth_param: float = Field(default=0.20, gt=0.0, le=1.0)
    overlap_split: StrictBool = True
    opacity: float = Field(default=0.01, ge=0.0, le=1.0)
    interval_col: str = "blue"
    avg_col: str = "red"
    avg_lw: float = Field(default=3.0, gt=0.0)
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    node: Optional[int] = None
    nodetype: Literal["include", "exclude"] = "include"
    plot: StrictBool = True
    xticks: int = Field(default=5, ge=1)
    yticks: int = Field(default=5, ge=1)
    xlim: AxisBounds = "auto"
    ylim: AxisBounds = "auto"
    add: StrictBool = False

    @field_validator("intervals", mode="before")
    @classmethod
    def _normalize_intervals(cls, v: Any) -> Optional[List[float]]:
        if v is None:
            return None
        if isinstance(v, (str, bytes, Mapping)):
            raise ValueError("intervals must be None or a sequence of quantile levels")
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = [v]
        out: List[float] = []
        for i, q in enumerate(v):
            f = _finite_float(f"intervals[{i}]", q)
            if not (0.0 <= f <= 1.0):
                raise ValueError(f"quantile level must be in [0,1]. Got {f}.")
            out.append(f)
        return out

    @field_validator("xlim", mode="before")
    @classmethod
    def _normalize_xlim(cls, v: Any) -> AxisBounds:
        return _coerce_axis_bounds("xlim", v)

    @field_validator("ylim", mode="before")
    @classmethod
    def _normalize_ylim(cls, v: Any) -> AxisBounds:
        return _coerce_axis_bounds("ylim", v)

    @field_validator("interval_col", "avg_col")
    @classmethod
    def _check_color(cls, v: str) -> str:
        try:
            to_rgba(v)
        except ValueError as exc:
            raise ValueError(f"not a matplotlib color: {v!r}") from exc
        return v

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _normalize_time(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        return _finite_float("time window bound", v)

    @property
    def central_mode(self) -> CentralMode:
        return CentralMode.MEDIAN if self.use_median else CentralMode.MEAN

    @property
    def derivation_overrides(self) -> JsonDict:
        """Provider parameters that were explicitly set (start/end time, node)."""
        return {
            k: getattr(self, k)
            for k in ("start_time", "end_time", "node")
            if getattr(self, k) is not None
        }


def options_from_kwargs(base: Optional[RttOptions] = None, **kwargs: Any) -> RttOptions:
    """
    Build validated options, layering ``kwargs`` over ``base``.

    Raises:
        InvalidArgument: if any option has the wrong type or an invalid value.
    """
    data: JsonDict = {}
    if base is not None:
        data.update(base.model_dump(exclude={"schema_version"}))
    data.update(kwargs)
    try:
        return RttOptions.model_validate(data)
    except ValidationError as exc:
        raise InvalidArgument(str(exc)) from exc
