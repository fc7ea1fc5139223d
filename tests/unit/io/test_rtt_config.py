import pytest

from rtt.core.errors import InvalidArgument
from rtt.core.models import RateKind
from rtt.io.config import load_config, load_config_mapping


def _write(tmp_path, text, name="rtt.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_yaml_values_become_options(tmp_path):
    path = _write(
        tmp_path,
        """
ratetype: extinction
intervals: [0.05, 0.25, 0.75, 0.95]
smooth: true
smooth_param: 0.35
xlim: [30, 0]
""",
    )
    opts = load_config(path)
    assert opts.ratetype is RateKind.EXTINCTION
    assert opts.intervals == [0.05, 0.25, 0.75, 0.95]
    assert opts.smooth is True and opts.smooth_param == pytest.approx(0.35)
    assert opts.xlim == (30.0, 0.0)


def test_null_intervals_in_yaml_disable_bands(tmp_path):
    opts = load_config(_write(tmp_path, "intervals: null\n"))
    assert opts.intervals is None


def test_overrides_win_and_none_is_ignored(tmp_path):
    path = _write(tmp_path, "use_median: true\nopacity: 0.1\n")
    opts = load_config(path, opacity=0.3, use_median=None)
    assert opts.opacity == pytest.approx(0.3)
    assert opts.use_median is True


def test_no_file_gives_defaults():
    assert load_config().n_bins == 100


def test_empty_file_is_an_empty_mapping(tmp_path):
    assert load_config_mapping(_write(tmp_path, "")) == {}


def test_non_mapping_rejected(tmp_path):
    with pytest.raises(InvalidArgument):
        load_config_mapping(_write(tmp_path, "- 0.1\n- 0.9\n"))


def test_unknown_key_rejected(tmp_path):
    with pytest.raises(InvalidArgument):
        load_config(_write(tmp_path, "span: 0.3\n"))
