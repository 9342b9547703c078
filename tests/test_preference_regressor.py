import numpy as np
import pytest

from slsopt.enums import KernelType
from slsopt.preference_regressor import PreferenceRegressor

X_2D = np.array([[0.1, 0.5, 0.9], [0.2, 0.6, 0.3]])
D_2D = [(1, 0), (1, 2)]


@pytest.fixture
def fixed_regressor():
    return PreferenceRegressor(X_2D, D_2D)


@pytest.fixture
def map_regressor():
    return PreferenceRegressor(X_2D, D_2D, use_map_hyperparams=True, num_map_estimation_iters=60)


def _finite_difference(func, x, h=1e-6):
    grad = np.zeros_like(x)
    for i in range(x.size):
        step = np.zeros_like(x)
        step[i] = h
        grad[i] = (func(x + step) - func(x - step)) / (2.0 * h)
    return grad


def test_fixed_hyperparams_are_the_defaults(fixed_regressor):
    np.testing.assert_allclose(fixed_regressor.kernel_hyperparams, [0.5, 0.5, 0.5])
    assert fixed_regressor.noise_hyperparam == pytest.approx(0.005)


def test_preferred_point_is_arg_max(fixed_regressor):
    np.testing.assert_allclose(fixed_regressor.find_arg_max(), X_2D[:, 1])
    y = fixed_regressor.small_y
    assert y[1] > y[0]
    assert y[1] > y[2]


def test_preference_chain_orders_values():
    X = np.array([[0.1, 0.5, 0.9]])
    regressor = PreferenceRegressor(X, [(0, 1), (1, 2)])
    y = regressor.small_y
    assert y[0] > y[1] > y[2]
    np.testing.assert_allclose(regressor.find_arg_max(), [0.1])


def test_squared_exponential_kernel_finds_preferred_point():
    regressor = PreferenceRegressor(X_2D, D_2D, kernel_type=KernelType.ARD_SQUARED_EXPONENTIAL)
    np.testing.assert_allclose(regressor.find_arg_max(), X_2D[:, 1])


def test_mean_is_highest_at_preferred_point(fixed_regressor):
    assert fixed_regressor.predict_mu(X_2D[:, 1]) > fixed_regressor.predict_mu(X_2D[:, 0])
    assert fixed_regressor.predict_mu(X_2D[:, 1]) > fixed_regressor.predict_mu(X_2D[:, 2])


def test_sigma_grows_away_from_data(fixed_regressor):
    near = fixed_regressor.predict_sigma(X_2D[:, 0])
    far = fixed_regressor.predict_sigma(np.array([5.0, 5.0]))
    assert 0.0 <= near < far
    assert far == pytest.approx(np.sqrt(0.5), abs=1e-3)


def test_mu_derivative_matches_finite_difference(fixed_regressor):
    x = np.array([0.33, 0.47])
    expected = _finite_difference(fixed_regressor.predict_mu, x)
    np.testing.assert_allclose(fixed_regressor.predict_mu_derivative(x), expected, rtol=1e-4, atol=1e-6)


def test_sigma_derivative_matches_finite_difference(fixed_regressor):
    x = np.array([0.33, 0.47])
    expected = _finite_difference(fixed_regressor.predict_sigma, x)
    np.testing.assert_allclose(fixed_regressor.predict_sigma_derivative(x), expected, rtol=1e-4, atol=1e-6)


def test_map_hyperparams_stay_in_bounds(map_regressor):
    theta = map_regressor.kernel_hyperparams
    assert theta.shape == (3,)
    assert np.all(theta >= 1e-08) and np.all(theta <= 10.0)
    assert 1e-08 <= map_regressor.noise_hyperparam <= 10.0
    assert np.all(np.abs(map_regressor.small_y) <= 10.0)


def test_map_regressor_prefers_chosen_point(map_regressor):
    np.testing.assert_allclose(map_regressor.find_arg_max(), X_2D[:, 1])


def test_map_derivatives_match_finite_difference(map_regressor):
    x = np.array([0.27, 0.71])
    expected = _finite_difference(map_regressor.predict_mu, x)
    np.testing.assert_allclose(map_regressor.predict_mu_derivative(x), expected, rtol=1e-4, atol=1e-6)


def test_empty_preferences_leave_model_unfitted():
    regressor = PreferenceRegressor(X_2D, [])
    assert regressor.small_y.size == 0
    assert regressor.kernel_hyperparams.size == 0
    with pytest.raises(ValueError):
        regressor.find_arg_max()


def test_sigma_rejects_wrong_dimension(fixed_regressor):
    with pytest.raises(ValueError):
        fixed_regressor.predict_sigma(np.array([0.1, 0.2, 0.3]))


def test_num_dims(fixed_regressor):
    assert fixed_regressor.num_dims == 2


def test_damp_data_writes_files(tmp_path):
    X = np.array([[0.1, 0.9], [0.2, 0.8]])
    regressor = PreferenceRegressor(X, [(0, 1), (1, 0)])
    regressor.damp_data(tmp_path)
    assert (tmp_path / "X.csv").read_text() == "0.1,0.9\n0.2,0.8"
    assert (tmp_path / "D.csv").read_text() == "0,1\n1,0\n"


def test_damp_data_with_prefix(tmp_path):
    regressor = PreferenceRegressor(X_2D, D_2D)
    regressor.damp_data(tmp_path, prefix="run_")
    assert (tmp_path / "run_D.csv").read_text() == "1,0\n1,2\n"
    rows = (tmp_path / "run_X.csv").read_text().split("\n")
    assert len(rows) == 2
    np.testing.assert_allclose([float(v) for v in rows[0].split(",")], X_2D[0])