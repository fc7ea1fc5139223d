import json

import pytest

from rtt.core.errors import RttError
from rtt.core.models import RttOptions
from rtt.envelope.pipeline import summarize
from rtt.io.audit import AuditChainError, append_jsonl, make_record, tail_sha, verify_chain
from tests._factories import mk_diversification


@pytest.fixture
def record():
    opts = RttOptions(intervals=[0.1, 0.9], plot=False)
    summary = summarize(mk_diversification(n_samples=10, n_bins=5), opts)
    return make_record(opts, summary, command="summarize", inputs={"m.npz": "ab" * 32}, outputs=["s.json"])


def test_record_shape(record):
    assert record["meta"]["schema"] == "rtt/audit.v1"
    assert record["meta"]["command"] == "summarize"
    assert record["summary"]["n_bands"] == 1
    assert record["summary"]["n_bins"] == 5
    assert record["summary"]["rate_kind"] == "speciation"
    assert record["options"]["intervals"] == [0.1, 0.9]
    assert record["outputs"] == ["s.json"]
    json.dumps(record)


def test_chain_links_records(tmp_path, record):
    path = tmp_path / "logs" / "audit.jsonl"
    assert tail_sha(str(path)) is None

    first = append_jsonl(str(path), record)
    second = append_jsonl(str(path), record)
    assert tail_sha(str(path)) == second
    assert verify_chain(str(path)) == 2

    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert lines[0]["prev_sha256"] is None
    assert lines[1]["prev_sha256"] == first


def test_tampered_record_detected(tmp_path, record):
    path = tmp_path / "audit.jsonl"
    append_jsonl(str(path), record)
    append_jsonl(str(path), record)

    lines = path.read_text(encoding="utf-8").splitlines()
    rec = json.loads(lines[0])
    rec["summary"]["n_bands"] = 99
    lines[0] = json.dumps(rec, sort_keys=True, separators=(",", ":"))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    with pytest.raises(AuditChainError, match="Line 1"):
        verify_chain(str(path))


def test_dropped_record_breaks_chain(tmp_path, record):
    path = tmp_path / "audit.jsonl"
    for _ in range(3):
        append_jsonl(str(path), record)
    lines = path.read_text(encoding="utf-8").splitlines()
    path.write_text("\n".join([lines[0], lines[2]]) + "\n", encoding="utf-8")

    with pytest.raises(AuditChainError, match="chain break"):
        verify_chain(str(path))


def test_missing_log_raises(tmp_path):
    with pytest.raises(AuditChainError, match="not found"):
        verify_chain(tmp_path / "nope.jsonl")


@pytest.mark.parametrize("garbage", ["{not json", "[1, 2, 3]"])
def test_unparsable_line_is_a_chain_error(tmp_path, record, garbage):
    path = tmp_path / "audit.jsonl"
    append_jsonl(path, record)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(garbage + "\n")

    with pytest.raises(AuditChainError, match=":2:"):
        verify_chain(path)
    with pytest.raises(AuditChainError):
        tail_sha(path)
    with pytest.raises(AuditChainError):
        append_jsonl(path, record)


def test_chain_error_is_an_rtt_error():
    assert issubclass(AuditChainError, RttError)
