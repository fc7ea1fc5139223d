"""
Module: audit
Purpose: Append-only run log for the rtt CLI. Each JSONL line records one
         summarize/plot run and is linked to its predecessor by SHA-256, so
         edited, dropped or reordered lines are detected on verification.
Dependencies: hashlib, json, pathlib, datetime

Record layout
-------------
    {"meta": {...}, "options": {...}, "summary": {...},
     "inputs": {path: sha256}, "outputs": [path, ...],
     "prev_sha256": <digest of previous line or null>,
     "sha256": <digest of this line without the "sha256" key>}
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from rtt.core.errors import RttError
from rtt.core.models import RateThroughTimeSummary, RttOptions

__all__ = [
    "AuditChainError",
    "append_jsonl",
    "verify_chain",
    "tail_sha",
    "make_record",
]

PathLike = Union[str, Path]

_LINK = "prev_sha256"
_SELF = "sha256"


class AuditChainError(RttError, RuntimeError):
    """The run log is unreadable or its hash links do not verify."""


# ---------------- Digests & reading ----------------


def _canonical(obj: Mapping[str, Any]) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))


def _digest(record: Mapping[str, Any]) -> str:
    """SHA-256 over the canonical record, never including its own digest."""
    body = {k: v for k, v in record.items() if k != _SELF}
    return hashlib.sha256(_canonical(body).encode("utf-8")).hexdigest()


def _records(path: Path) -> Iterator[Tuple[int, Dict[str, Any]]]:
    """(line number, record) for each non-blank line of the log."""
    try:
        handle = path.open("r", encoding="utf-8")
    except OSError as exc:
        raise AuditChainError(f"cannot read audit log {path}: {exc}") from exc
    with handle:
        for lineno, raw in enumerate(handle, start=1):
            if not raw.strip():
                continue
            try:
                rec = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise AuditChainError(f"{path}:{lineno}: not valid JSON ({exc.msg})") from exc
            if not isinstance(rec, dict):
                raise AuditChainError(f"{path}:{lineno}: record is not a JSON object")
            yield lineno, rec


# ---------------- Chain operations ----------------


def tail_sha(path: PathLike) -> Optional[str]:
    """
    Digest of the last record, or None when the log does not exist yet.

    Raises:
        AuditChainError: if the log exists but cannot be parsed, or its last
            record carries no digest.
    """
    log_path = Path(path)
    if not log_path.exists():
        return None
    last: Optional[Tuple[int, Dict[str, Any]]] = None
    for item in _records(log_path):
        last = item
    if last is None:
        return None
    lineno, rec = last
    sha = rec.get(_SELF)
    if not isinstance(sha, str):
        raise AuditChainError(f"{log_path}:{lineno}: last record has no {_SELF!r}")
    return sha


def append_jsonl(path: PathLike, rec: Mapping[str, Any]) -> str:
    """Link ``rec`` to the current tail, append it, and return its digest."""
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    linked: Dict[str, Any] = {**rec, _LINK: tail_sha(log_path)}
    linked[_SELF] = _digest(linked)
    with log_path.open("a", encoding="utf-8") as fh:
        fh.write(_canonical(linked) + "\n")
    return linked[_SELF]


def verify_chain(path: PathLike) -> int:
    """
    Walk the log from the first line and check every digest and link.

    Returns:
        Number of records verified.

    Raises:
        AuditChainError: on a missing or unparsable log, a record whose
            digest does not match its content, or a broken link.
    """
    log_path = Path(path)
    if not log_path.exists():
        raise AuditChainError(f"audit log not found: {log_path}")

    expected_link: Optional[str] = None
    count = 0
    for lineno, rec in _records(log_path):
        claimed = rec.get(_SELF)
        if claimed is None:
            raise AuditChainError(f"Line {lineno}: missing {_SELF}")
        actual = _digest(rec)
        if actual != claimed:
            raise AuditChainError(f"Line {lineno}: SHA mismatch (expected {claimed}, got {actual})")
        if rec.get(_LINK) != expected_link:
            raise AuditChainError(f"Line {lineno}: chain break ({_LINK} mismatch)")
        expected_link = claimed
        count += 1
    return count


# ---------------- Record builder ----------------


def _now_iso_utc() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def make_record(
    options: RttOptions,
    summary: RateThroughTimeSummary,
    *,
    command: str,
    inputs: Optional[Mapping[str, str]] = None,
    outputs: Iterable[str] = (),
) -> Dict[str, Any]:
    """
    Build a JSON-serializable audit record for one CLI run.

    ``inputs`` maps input paths to their SHA-256; the summary itself is
    identified by its BLAKE3 fingerprint rather than stored inline.
    """
    return {
        "meta": {
            "schema": "rtt/audit.v1",
            "ts": _now_iso_utc(),
            "command": command,
        },
        "options": options.model_dump(mode="json", exclude={"schema_version"}),
        "summary": {
            "blake3": summary.blake3_hash(),
            "rate_kind": summary.rate_kind.value,
            "n_bands": len(summary.bands),
            "n_bins": len(summary.times),
            "smoothed": summary.smoothed,
        },
        "inputs": dict(inputs or {}),
        "outputs": list(outputs),
    }
