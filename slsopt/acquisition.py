"""Acquisition functions and their maximisation over the unit hypercube."""

import math

import numpy as np
from scipy.optimize import direct, minimize

from .enums import AcquisitionFuncType
from .gaussian_process import GaussianProcessRegressor

_SIGMA_THRESHOLD = 1e-10
_PENALTY = 1e20


def _std_normal_cdf(u):
    return 0.5 * math.erfc(-u / math.sqrt(2.0))


def _std_normal_pdf(u):
    return math.exp(-0.5 * u * u) / math.sqrt(2.0 * math.pi)


def _ei_terms(x, mu, sigma, x_best):
    sigma_x = float(sigma(x))
    diff = float(mu(x)) - float(mu(x_best))
    if not sigma_x >= _SIGMA_THRESHOLD:
        return None
    return diff, sigma_x, diff / sigma_x


def _expected_improvement(x, mu, sigma, x_best):
    terms = _ei_terms(x, mu, sigma, x_best)
    if terms is None:
        return 0.0
    diff, sigma_x, u = terms
    return diff * _std_normal_cdf(u) + sigma_x * _std_normal_pdf(u)


def _expected_improvement_derivative(x, mu, sigma, x_best, mu_derivative, sigma_derivative):
    terms = _ei_terms(x, mu, sigma, x_best)
    if terms is None:
        return np.zeros(np.asarray(x).size)
    _, _, u = terms
    return _std_normal_cdf(u) * np.asarray(mu_derivative(x)) + _std_normal_pdf(u) * np.asarray(
        sigma_derivative(x)
    )


def _upper_confidence_bound(x, mu, sigma, hyperparam):
    return float(mu(x)) + hyperparam * float(sigma(x))


def _upper_confidence_bound_derivative(x, mu_derivative, sigma_derivative, hyperparam):
    return np.asarray(mu_derivative(x)) + hyperparam * np.asarray(sigma_derivative(x))


def _acquisition(func_type, hyperparam, x_best_of, mu, sigma, mu_derivative, sigma_derivative):
    """Return value and gradient callables for the chosen acquisition function."""
    func_type = AcquisitionFuncType(func_type)
    if func_type is AcquisitionFuncType.EXPECTED_IMPROVEMENT:
        x_best = x_best_of()

        def value(x):
            return _expected_improvement(x, mu, sigma, x_best)

        def gradient(x):
            return _expected_improvement_derivative(x, mu, sigma, x_best, mu_derivative, sigma_derivative)

    else:

        def value(x):
            return _upper_confidence_bound(x, mu, sigma, hyperparam)

        def gradient(x):
            return _upper_confidence_bound_derivative(x, mu_derivative, sigma_derivative, hyperparam)

    return value, gradient


def calc_acquisition_value(
    regressor,
    x,
    func_type=AcquisitionFuncType.EXPECTED_IMPROVEMENT,
    ucb_hyperparam=1.0,
):
    """Acquisition value at x; 0 when the regressor holds no data."""
    func_type = AcquisitionFuncType(func_type)
    if np.asarray(regressor.small_y).size == 0:
        return 0.0
    value, _ = _acquisition(
        func_type,
        ucb_hyperparam,
        regressor.predict_maximum_point_from_data,
        regressor.predict_mu,
        regressor.predict_sigma,
        regressor.predict_mu_derivative,
        regressor.predict_sigma_derivative,
    )
    return float(value(np.asarray(x, dtype=float)))


def calc_acquisition_value_derivative(
    regressor,
    x,
    func_type=AcquisitionFuncType.EXPECTED_IMPROVEMENT,
    ucb_hyperparam=1.0,
):
    """Gradient of the acquisition function at x; zeros when the regressor holds no data."""
    func_type = AcquisitionFuncType(func_type)
    x = np.asarray(x, dtype=float)
    if np.asarray(regressor.small_y).size == 0:
        return np.zeros(x.size)
    _, gradient = _acquisition(
        func_type,
        ucb_hyperparam,
        regressor.predict_maximum_point_from_data,
        regressor.predict_mu,
        regressor.predict_sigma,
        regressor.predict_mu_derivative,
        regressor.predict_sigma_derivative,
    )
    return np.asarray(gradient(x), dtype=float)


def _safe_value(value, x):
    result = value(x)
    return result if np.isfinite(result) else -_PENALTY


def _maximize(value, gradient, num_dims, num_global_search_iters, num_local_search_iters, rng):
    """Maximise over [0, 1]^d by a DIRECT global search refined by L-BFGS."""
    bounds = [(0.0, 1.0)] * num_dims
    x_best = rng.uniform(0.0, 1.0, size=num_dims)
    f_best = _safe_value(value, x_best)

    if num_global_search_iters > 0:
        result = direct(lambda x: -_safe_value(value, x), bounds, maxfun=int(num_global_search_iters))
        candidate = np.clip(result.x, 0.0, 1.0)
        f_candidate = _safe_value(value, candidate)
        if f_candidate > f_best:
            x_best, f_best = candidate, f_candidate

    if num_local_search_iters > 0:

        def negative(x):
            f = _safe_value(value, x)
            grad = np.nan_to_num(np.asarray(gradient(x), dtype=float), nan=0.0, posinf=0.0, neginf=0.0)
            return -f, -grad

        result = minimize(
            negative,
            x_best,
            jac=True,
            method="L-BFGS-B",
            bounds=bounds,
            options={"maxfun": int(num_local_search_iters)},
        )
        candidate = np.clip(result.x, 0.0, 1.0)
        f_candidate = _safe_value(value, candidate)
        if f_candidate > f_best:
            x_best, f_best = candidate, f_candidate

    return np.asarray(x_best, dtype=float)


def find_next_point(
    regressor,
    num_global_search_iters=100,
    num_local_search_iters=50,
    func_type=AcquisitionFuncType.EXPECTED_IMPROVEMENT,
    ucb_hyperparam=1.0,
    rng=None,
):
    """Point in [0, 1]^d that maximises the acquisition function."""
    func_type = AcquisitionFuncType(func_type)
    rng = np.random.default_rng() if rng is None else rng

    def value(x):
        return calc_acquisition_value(regressor, x, func_type, ucb_hyperparam)

    def gradient(x):
        return calc_acquisition_value_derivative(regressor, x, func_type, ucb_hyperparam)

    return _maximize(
        value, gradient, regressor.num_dims, num_global_search_iters, num_local_search_iters, rng
    )


def find_next_points(
    regressor,
    num_points,
    num_global_search_iters=100,
    num_local_search_iters=50,
    func_type=AcquisitionFuncType.EXPECTED_IMPROVEMENT,
    ucb_hyperparam=1.0,
    rng=None,
):
    """Several points chosen one after another to maximise the acquisition function.

    After each point is chosen, the variance model is updated as if that
    point had been observed, so the following points avoid it.
    """
    func_type = AcquisitionFuncType(func_type)
    rng = np.random.default_rng() if rng is None else rng
    num_dims = regressor.num_dims
    kernel_hyperparams = np.asarray(regressor.kernel_hyperparams, dtype=float)
    noise = regressor.noise_hyperparam

    temp = GaussianProcessRegressor(regressor.large_x, regressor.small_y, kernel_hyperparams, noise)

    points = []
    for _ in range(num_points):
        value, gradient = _acquisition(
            func_type,
            ucb_hyperparam,
            regressor.predict_maximum_point_from_data,
            regressor.predict_mu,
            temp.predict_sigma,
            regressor.predict_mu_derivative,
            temp.predict_sigma_derivative,
        )
        x_star = _maximize(
            value, gradient, num_dims, num_global_search_iters, num_local_search_iters, rng
        )
        points.append(x_star)

        if len(points) != num_points:
            new_X = np.column_stack([temp.large_x, x_star])
            new_y = np.append(temp.small_y, temp.predict_mu(x_star))
            temp = GaussianProcessRegressor(new_X, new_y, kernel_hyperparams, noise)

    return points