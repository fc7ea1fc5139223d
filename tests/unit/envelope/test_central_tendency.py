import numpy as np
import pytest

from rtt.core.errors import InvalidArgument
from rtt.core.models import CentralMode
from rtt.envelope.central import central_tendency
from tests._factories import SCENARIO_MATRIX, SCENARIO_TIMES


def test_scenario_mean_and_median():
    mean = central_tendency(SCENARIO_MATRIX, SCENARIO_TIMES)
    assert mean.mode is CentralMode.MEAN
    assert mean.values == [2.0, 2.0, 2.0]
    assert mean.times == SCENARIO_TIMES

    median = central_tendency(SCENARIO_MATRIX, SCENARIO_TIMES, "median")
    assert median.mode is CentralMode.MEDIAN
    assert median.values == [2.0, 2.0, 2.0]


def test_mean_of_constant_columns_is_exact():
    row = [1.5, 2.5, -3.0, 0.125]
    curve = central_tendency([row] * 4, [0, 1, 2, 3])
    assert curve.values == row


def test_median_odd_count_is_middle_order_statistic():
    rng = np.random.default_rng(5)
    mat = rng.normal(size=(7, 5))
    curve = central_tendency(mat, np.arange(5.0), CentralMode.MEDIAN)
    np.testing.assert_array_equal(curve.values, np.sort(mat, axis=0)[3])


def test_median_even_count_interpolates():
    curve = central_tendency([[1.0], [2.0], [3.0], [10.0]], [0.0], "median")
    assert curve.values == [2.5]


def test_single_sample_is_valid():
    curve = central_tendency([[0.3, 0.2, 0.1]], [0.0, 1.0, 2.0], "median")
    np.testing.assert_allclose(curve.values, [0.3, 0.2, 0.1])


def test_unknown_mode_raises():
    with pytest.raises(InvalidArgument):
        central_tendency(SCENARIO_MATRIX, SCENARIO_TIMES, "mode")


def test_empty_matrix_raises():
    with pytest.raises(InvalidArgument):
        central_tendency(np.empty((0, 3)), SCENARIO_TIMES)


def test_time_length_mismatch_raises():
    with pytest.raises(InvalidArgument):
        central_tendency(SCENARIO_MATRIX, [0.0, 1.0])
