import numpy as np
import pytest

from slsopt.enums import KernelType
from slsopt.gaussian_process import GaussianProcessRegressor

X_1D = np.array([[0.1, 0.5, 0.9]])
Y_1D = np.array([0.0, 1.0, -0.5])
THETA_1D = np.array([0.5, 0.3])

X_2D = np.array([[0.1, 0.4, 0.7, 0.9, 0.3], [0.2, 0.8, 0.5, 0.1, 0.6]])
Y_2D = np.array([0.3, -0.2, 0.9, 0.1, 0.5])
THETA_2D = np.array([0.5, 0.4, 0.6])

KERNELS = [KernelType.ARD_SQUARED_EXPONENTIAL, KernelType.ARD_MATERN_52]


def _fixed(kernel_type=KernelType.ARD_MATERN_52, noise=1e-6):
    return GaussianProcessRegressor(X_1D, Y_1D, THETA_1D, noise, kernel_type)


@pytest.mark.parametrize("kernel_type", KERNELS)
def test_mean_interpolates_data(kernel_type):
    regressor = _fixed(kernel_type)
    predictions = [regressor.predict_mu(column) for column in X_1D.T]
    np.testing.assert_allclose(predictions, Y_1D, atol=1e-3)


@pytest.mark.parametrize("kernel_type", KERNELS)
def test_sigma_small_at_data_and_prior_far_away(kernel_type):
    regressor = _fixed(kernel_type)
    assert regressor.predict_sigma(X_1D[:, 1]) < 1e-2
    assert regressor.predict_sigma(np.array([50.0])) == pytest.approx(np.sqrt(THETA_1D[0]), rel=1e-6)


def test_accessors_return_given_values():
    regressor = _fixed(noise=0.01)
    np.testing.assert_array_equal(regressor.large_x, X_1D)
    np.testing.assert_array_equal(regressor.small_y, Y_1D)
    np.testing.assert_array_equal(regressor.kernel_hyperparams, THETA_1D)
    assert regressor.noise_hyperparam == 0.01
    assert regressor.num_dims == 1


def test_kernel_matrix_inverse():
    regressor = GaussianProcessRegressor(X_2D, Y_2D, THETA_2D, 0.01)
    np.testing.assert_allclose(regressor.k_y @ regressor.k_y_inv, np.eye(5), atol=1e-8)
    np.testing.assert_allclose(regressor.k_y, regressor.k_y.T)


@pytest.mark.parametrize("kernel_type", KERNELS)
def test_mu_derivative_matches_finite_difference(kernel_type):
    regressor = GaussianProcessRegressor(X_2D, Y_2D, THETA_2D, 0.01, kernel_type)
    x = np.array([0.35, 0.45])
    h = 1e-6
    numeric = [
        (regressor.predict_mu(x + h * e) - regressor.predict_mu(x - h * e)) / (2 * h) for e in np.eye(2)
    ]
    np.testing.assert_allclose(regressor.predict_mu_derivative(x), numeric, rtol=1e-4, atol=1e-6)


@pytest.mark.parametrize("kernel_type", KERNELS)
def test_sigma_derivative_matches_finite_difference(kernel_type):
    regressor = GaussianProcessRegressor(X_2D, Y_2D, THETA_2D, 0.01, kernel_type)
    x = np.array([0.55, 0.3])
    h = 1e-6
    numeric = [
        (regressor.predict_sigma(x + h * e) - regressor.predict_sigma(x - h * e)) / (2 * h) for e in np.eye(2)
    ]
    np.testing.assert_allclose(regressor.predict_sigma_derivative(x), numeric, rtol=1e-4, atol=1e-6)


def test_maximum_point_from_data():
    regressor = _fixed()
    np.testing.assert_allclose(regressor.predict_maximum_point_from_data(), X_1D[:, 1])


def test_wrong_point_dimension_raises():
    with pytest.raises(ValueError):
        _fixed().predict_sigma(np.array([0.1, 0.2]))


def test_hyperparams_must_be_given_together():
    with pytest.raises(ValueError):
        GaussianProcessRegressor(X_1D, Y_1D, THETA_1D)


def test_empty_data():
    regressor = GaussianProcessRegressor(np.empty((0, 0)), np.empty(0))
    assert regressor.k_y.shape == (0, 0)
    assert regressor.small_y.size == 0


def test_map_estimation_stays_in_bounds_and_is_deterministic():
    first = GaussianProcessRegressor(X_2D, Y_2D)
    second = GaussianProcessRegressor(X_2D, Y_2D)
    assert first.kernel_hyperparams.shape == (3,)
    assert np.all(first.kernel_hyperparams >= 1e-8)
    assert np.all(first.kernel_hyperparams <= 50.0)
    assert 1e-8 <= first.noise_hyperparam <= 50.0
    np.testing.assert_allclose(first.kernel_hyperparams, second.kernel_hyperparams)
    assert first.noise_hyperparam == pytest.approx(second.noise_hyperparam)


def test_map_estimation_gives_usable_predictions():
    regressor = GaussianProcessRegressor(X_2D, Y_2D)
    x = np.array([0.5, 0.5])
    assert np.isfinite(regressor.predict_mu(x))
    assert regressor.predict_sigma(x) >= 0.0
    np.testing.assert_allclose(regressor.k_y @ regressor.k_y_inv, np.eye(5), atol=1e-6)