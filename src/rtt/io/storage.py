"""Storage helpers for rate matrices and summary artifacts."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Dict, Union

import numpy as np

from rtt.core.errors import InvalidArgument
from rtt.core.models import RateThroughTimeSummary, SourceType
from rtt.envelope.matrix import RateThroughTimeMatrix

__all__ = [
    "load_rate_matrix",
    "save_rate_matrix",
    "save_summary",
    "load_summary",
    "hash_file",
]

PathLike = Union[str, Path]


def hash_file(path: PathLike) -> str:
    hasher = hashlib.sha256()
    with Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def save_rate_matrix(rmat: RateThroughTimeMatrix, path: PathLike) -> Path:
    """
    Write ``rmat`` as an ``.npz`` archive.

    Keys: ``type``, ``times`` and either ``lambda`` (+ ``mu``) or ``beta``.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    arrays: Dict[str, np.ndarray] = {
        "type": np.array(rmat.source_type.value),
        "times": np.asarray(rmat.times),
    }
    if rmat.source_type is SourceType.TRAIT:
        arrays["beta"] = np.asarray(rmat.beta)
    else:
        arrays["lambda"] = np.asarray(rmat.lambda_)
        if rmat.mu is not None:
            arrays["mu"] = np.asarray(rmat.mu)
    with out.open("wb") as fh:
        np.savez(fh, **arrays)
    return out


def load_rate_matrix(path: PathLike) -> RateThroughTimeMatrix:
    """
    Read an ``.npz`` archive written by :func:`save_rate_matrix`.

    A missing ``type`` key is inferred from which matrices are present.

    Raises:
        InvalidArgument: if required keys are absent or the arrays are malformed.
    """
    with np.load(path, allow_pickle=False) as data:
        keys = set(data.files)
        if "times" not in keys:
            raise InvalidArgument(f"{path}: missing 'times' array")
        if "type" in keys:
            stype = str(data["type"])
        else:
            stype = SourceType.TRAIT.value if "beta" in keys else SourceType.DIVERSIFICATION.value
        try:
            source_type = SourceType(stype)
        except ValueError as exc:
            raise InvalidArgument(f"{path}: unknown source type {stype!r}") from exc

        if source_type is SourceType.TRAIT:
            if "beta" not in keys:
                raise InvalidArgument(f"{path}: trait archive has no 'beta' array")
            return RateThroughTimeMatrix.trait(data["beta"], data["times"])
        if "lambda" not in keys:
            raise InvalidArgument(f"{path}: diversification archive has no 'lambda' array")
        mu = data["mu"] if "mu" in keys else None
        return RateThroughTimeMatrix.diversification(data["lambda"], mu, data["times"])


def save_summary(summary: RateThroughTimeSummary, path: PathLike) -> Path:
    """Write the summary as JSON (bands, central, times and metadata)."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    payload = summary.model_dump(mode="json")
    payload["blake3"] = summary.blake3_hash()
    out.write_text(json.dumps(payload, sort_keys=True, indent=2), encoding="utf-8")
    return out


def load_summary(path: PathLike) -> RateThroughTimeSummary:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    payload.pop("blake3", None)
    return RateThroughTimeSummary.model_validate(payload)
