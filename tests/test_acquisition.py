import numpy as np
import pytest

from slsopt.acquisition import (
    calc_acquisition_value,
    calc_acquisition_value_derivative,
    find_next_point,
    find_next_points,
)
from slsopt.enums import AcquisitionFuncType
from slsopt.gaussian_process import GaussianProcessRegressor

EI = AcquisitionFuncType.EXPECTED_IMPROVEMENT
UCB = AcquisitionFuncType.GAUSSIAN_PROCESS_UPPER_CONFIDENCE_BOUND


@pytest.fixture
def regressor_1d():
    X = np.array([[0.1, 0.5, 0.9]])
    y = np.array([0.0, 1.0, 0.2])
    return GaussianProcessRegressor(X, y, [0.5, 0.3], 1e-3)


@pytest.fixture
def regressor_2d():
    X = np.array([[0.2, 0.8, 0.5], [0.3, 0.7, 0.1]])
    y = np.array([0.4, 0.1, 0.9])
    return GaussianProcessRegressor(X, y, [0.5, 0.4, 0.4], 1e-3)


@pytest.fixture
def empty_regressor():
    return GaussianProcessRegressor(np.empty((0, 0)), np.empty(0), [0.5], 1e-3)


def test_empty_regressor_gives_zero_value(empty_regressor):
    assert calc_acquisition_value(empty_regressor, np.array([0.3, 0.4]), EI) == 0.0
    assert calc_acquisition_value(empty_regressor, np.array([0.3, 0.4]), UCB) == 0.0


def test_empty_regressor_gives_zero_derivative(empty_regressor):
    grad = calc_acquisition_value_derivative(empty_regressor, np.array([0.3, 0.4, 0.5]), EI)
    np.testing.assert_array_equal(grad, np.zeros(3))


def test_expected_improvement_is_nonnegative(regressor_1d):
    values = [calc_acquisition_value(regressor_1d, np.array([t]), EI) for t in np.linspace(0, 1, 21)]
    assert min(values) >= 0.0
    assert max(values) > 0.0


def test_ucb_with_zero_weight_is_the_mean(regressor_1d):
    x = np.array([0.3])
    assert calc_acquisition_value(regressor_1d, x, UCB, 0.0) == pytest.approx(regressor_1d.predict_mu(x))


def test_ucb_grows_with_weight(regressor_1d):
    x = np.array([0.3])
    low = calc_acquisition_value(regressor_1d, x, UCB, 0.5)
    high = calc_acquisition_value(regressor_1d, x, UCB, 2.0)
    assert high > low


@pytest.mark.parametrize("func_type", [EI, UCB])
def test_derivative_matches_finite_differences(regressor_2d, func_type):
    x = np.array([0.35, 0.45])
    grad = calc_acquisition_value_derivative(regressor_2d, x, func_type, 1.0)
    h = 1e-6
    numeric = []
    for axis in range(2):
        step = np.zeros(2)
        step[axis] = h
        numeric.append(
            (
                calc_acquisition_value(regressor_2d, x + step, func_type, 1.0)
                - calc_acquisition_value(regressor_2d, x - step, func_type, 1.0)
            )
            / (2 * h)
        )
    np.testing.assert_allclose(grad, numeric, rtol=1e-4, atol=1e-6)


def test_unknown_func_type_raises(regressor_1d):
    with pytest.raises(ValueError):
        calc_acquisition_value(regressor_1d, np.array([0.3]), 7)


def test_find_next_point_without_search_uses_rng(regressor_2d):
    point = find_next_point(regressor_2d, 0, 0, EI, 1.0, np.random.default_rng(3))
    expected = np.random.default_rng(3).uniform(0.0, 1.0, size=2)
    np.testing.assert_allclose(point, expected)


@pytest.mark.parametrize("func_type", [EI, UCB])
def test_find_next_point_beats_samples(regressor_2d, func_type):
    rng = np.random.default_rng(0)
    point = find_next_point(regressor_2d, 200, 30, func_type, 1.0, rng)
    assert point.shape == (2,)
    assert np.all((point >= 0.0) & (point <= 1.0))
    best = calc_acquisition_value(regressor_2d, point, func_type)
    samples = np.random.default_rng(1).uniform(size=(30, 2))
    sampled = max(calc_acquisition_value(regressor_2d, s, func_type) for s in samples)
    assert best >= sampled - 1e-6


def test_find_next_points_returns_distinct_points(regressor_2d):
    points = find_next_points(regressor_2d, 3, 100, 20, EI, 1.0, np.random.default_rng(2))
    assert len(points) == 3
    for point in points:
        assert point.shape == (2,)
        assert np.all((point >= 0.0) & (point <= 1.0))
    assert np.linalg.norm(points[0] - points[1]) > 1e-3
    assert np.linalg.norm(points[1] - points[2]) > 1e-3


def test_find_next_points_zero_points(regressor_2d):
    assert find_next_points(regressor_2d, 0, 10, 5, UCB, 1.0, np.random.default_rng(0)) == []