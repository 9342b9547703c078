"""Gaussian process regression with optional MAP estimation of hyperparameters."""

import numpy as np
from scipy.optimize import direct, minimize

from .enums import KernelType
from .regressor import (
    Regressor,
    calc_large_k_y,
    calc_large_k_y_theta_derivative,
    calc_small_k,
    calc_small_k_small_x_derivative,
)
from .utils import log_of_log_normal, log_of_log_normal_derivative

_A_PRIOR_MU = np.log(0.500)
_A_PRIOR_SIGMA_SQUARED = 0.50
_B_PRIOR_MU = np.log(1e-04)
_B_PRIOR_SIGMA_SQUARED = 0.50
_R_PRIOR_MU = np.log(0.500)
_R_PRIOR_SIGMA_SQUARED = 0.50

_LOWER = 1e-08
_UPPER = 5e01
_GLOBAL_EVALS = 300
_LOCAL_EVALS = 1000
_PENALTY = 1e20


def _log_posterior(params, X, y, kernel, kernel_theta_derivative):
    """Log marginal likelihood plus log-normal priors, with its gradient.

    params holds the signal variance, the noise level, then the length scales.
    """
    a, b, r = params[0], params[1], params[2:]
    theta = np.concatenate(([a], r))
    n = X.shape[1]

    K_y = calc_large_k_y(X, theta, b, kernel)
    sign, log_det = np.linalg.slogdet(K_y)
    if sign <= 0.0:
        raise np.linalg.LinAlgError("kernel matrix is not positive definite")
    K_y_inv = np.linalg.inv(K_y)
    alpha = K_y_inv @ y

    value = -0.5 * y @ alpha - 0.5 * log_det - 0.5 * n * np.log(2.0 * np.pi)
    value += log_of_log_normal(a, _A_PRIOR_MU, _A_PRIOR_SIGMA_SQUARED)
    value += log_of_log_normal(b, _B_PRIOR_MU, _B_PRIOR_SIGMA_SQUARED)
    value += sum(log_of_log_normal(r_i, _R_PRIOR_MU, _R_PRIOR_SIGMA_SQUARED) for r_i in r)

    def component(dK):
        # The diagonal sum of K_y_inv @ dK, written as an element-wise product.
        return 0.5 * alpha @ dK @ alpha - 0.5 * np.sum(K_y_inv * dK.T)

    tensor = calc_large_k_y_theta_derivative(X, theta, kernel_theta_derivative)
    grad_theta = np.array([component(dK) for dK in tensor])
    grad_theta[0] += log_of_log_normal_derivative(a, _A_PRIOR_MU, _A_PRIOR_SIGMA_SQUARED)
    grad_theta[1:] += [log_of_log_normal_derivative(r_i, _R_PRIOR_MU, _R_PRIOR_SIGMA_SQUARED) for r_i in r]
    grad_b = component(np.eye(n)) + log_of_log_normal_derivative(b, _B_PRIOR_MU, _B_PRIOR_SIGMA_SQUARED)

    grad = np.concatenate(([grad_theta[0], grad_b], grad_theta[1:]))
    return float(value), grad


class GaussianProcessRegressor(Regressor):
    """Gaussian process regressor over data points stored as columns of X.

    When kernel_hyperparams and noise_hyperparam are omitted they are set by
    MAP estimation; otherwise the given values are used.
    """

    def __init__(
        self,
        X,
        y,
        kernel_hyperparams=None,
        noise_hyperparam=None,
        kernel_type=KernelType.ARD_MATERN_52,
    ):
        super().__init__(kernel_type)
        if (kernel_hyperparams is None) != (noise_hyperparam is None):
            raise ValueError("kernel_hyperparams and noise_hyperparam must be given together")

        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            if X.size != 0:
                raise ValueError("X must be a matrix with one data point per column")
            X = X.reshape(0, 0)
        self._X = X
        self._y = np.asarray(y, dtype=float).ravel()

        if kernel_hyperparams is None:
            self._kernel_hyperparams = np.empty(0)
            self._noise_hyperparam = 0.0
        else:
            self._kernel_hyperparams = np.asarray(kernel_hyperparams, dtype=float).ravel()
            self._noise_hyperparam = float(noise_hyperparam)

        self.k_y = np.empty((0, 0))
        self.k_y_inv = np.empty((0, 0))

        if X.shape[0] == 0:
            return

        if kernel_hyperparams is None:
            self._perform_map_estimation()

        self.k_y = calc_large_k_y(self._X, self._kernel_hyperparams, self._noise_hyperparam, self.kernel)
        self.k_y_inv = np.linalg.inv(self.k_y)

    @property
    def large_x(self):
        return self._X

    @property
    def small_y(self):
        return self._y

    @property
    def kernel_hyperparams(self):
        return self._kernel_hyperparams

    @property
    def noise_hyperparam(self):
        return self._noise_hyperparam

    def _perform_map_estimation(self):
        dims = self._X.shape[0]
        bounds = [(_LOWER, _UPPER)] * (dims + 2)

        def negative_value(params):
            try:
                value, _ = _log_posterior(params, self._X, self._y, self.kernel, self.kernel_theta_derivative)
            except np.linalg.LinAlgError:
                return _PENALTY
            return -value if np.isfinite(value) else _PENALTY

        def negative_value_and_grad(params):
            try:
                value, grad = _log_posterior(params, self._X, self._y, self.kernel, self.kernel_theta_derivative)
            except np.linalg.LinAlgError:
                return _PENALTY, np.zeros_like(params)
            if not np.isfinite(value):
                return _PENALTY, np.zeros_like(params)
            return -value, -grad

        x_global = direct(negative_value, bounds, maxfun=_GLOBAL_EVALS).x
        x_local = minimize(
            negative_value_and_grad,
            x_global,
            jac=True,
            method="TNC",
            bounds=bounds,
            options={"maxfun": _LOCAL_EVALS},
        ).x
        x_local = np.clip(x_local, _LOWER, _UPPER)

        self._kernel_hyperparams = np.concatenate(([x_local[0]], x_local[2:]))
        self._noise_hyperparam = float(x_local[1])

    def _as_point(self, x):
        x = np.asarray(x, dtype=float).ravel()
        if self._kernel_hyperparams.size != x.size + 1:
            raise ValueError("point dimension does not match the kernel hyperparameters")
        return x

    def predict_mu(self, x):
        k = calc_small_k(x, self._X, self._kernel_hyperparams, self.kernel)
        return float(k @ self.k_y_inv @ self._y)

    def predict_sigma(self, x):
        x = self._as_point(x)
        k = calc_small_k(x, self._X, self._kernel_hyperparams, self.kernel)
        intensity = self._kernel_hyperparams[0]
        sigma_squared = intensity - k @ self.k_y_inv @ k
        # Numerical error can make the variance slightly negative.
        return 0.0 if sigma_squared < 0.0 else float(np.sqrt(sigma_squared))

    def predict_mu_derivative(self, x):
        k_x_derivative = calc_small_k_small_x_derivative(
            x, self._X, self._kernel_hyperparams, self.kernel_first_arg_derivative
        )
        return k_x_derivative @ self.k_y_inv @ self._y

    def predict_sigma_derivative(self, x):
        k_x_derivative = calc_small_k_small_x_derivative(
            x, self._X, self._kernel_hyperparams, self.kernel_first_arg_derivative
        )
        k = calc_small_k(x, self._X, self._kernel_hyperparams, self.kernel)
        sigma = np.float64(self.predict_sigma(x))
        with np.errstate(divide="ignore", invalid="ignore"):
            return -(np.float64(1.0) / sigma) * (k_x_derivative @ self.k_y_inv @ k)