"""Regression of latent goodness values from preferential observations.

The latent values at the data points are found by MAP estimation under a
Bradley-Terry-Luce likelihood and a Gaussian-process prior. The kernel
hyperparameters may be estimated jointly or taken from the defaults.
"""

from pathlib import Path

import numpy as np
from scipy.linalg import cho_factor, cho_solve
from scipy.optimize import minimize
from scipy.special import logsumexp, softmax

from .enums import KernelType
from .regressor import (
    Regressor,
    calc_large_k_y,
    calc_large_k_y_theta_derivative,
    calc_small_k,
    calc_small_k_small_x_derivative,
)
from .utils import export_matrix_to_csv, log_of_log_normal, log_of_log_normal_derivative

_VALUE_BOUND = 1e01
_HYPERPARAM_LOWER = 1e-08
_PENALTY = 1e20


def _log_btl_and_grad(values, scale):
    """Log BTL probability that the first value wins, and its gradient."""
    scaled = values / scale
    log_p = scaled[0] - logsumexp(scaled)
    grad = -softmax(scaled) / scale
    grad[0] += 1.0 / scale
    return float(log_p), grad


class PreferenceRegressor(Regressor):
    """Regressor fitted to preferences among data points stored as columns of X.

    Each preference in D is a sequence of column indices whose first entry
    is preferred to all the others.
    """

    def __init__(
        self,
        X,
        D,
        use_map_hyperparams=False,
        default_kernel_signal_var=0.500,
        default_kernel_length_scale=0.500,
        default_noise_level=0.005,
        kernel_hyperparams_prior_var=0.250,
        btl_scale=0.010,
        num_map_estimation_iters=100,
        kernel_type=KernelType.ARD_MATERN_52,
    ):
        super().__init__(kernel_type)

        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            if X.size != 0:
                raise ValueError("X must be a matrix with one data point per column")
            X = X.reshape(0, 0)

        self.use_map_hyperparams = bool(use_map_hyperparams)
        self.X = X
        self.D = [tuple(int(index) for index in preference) for preference in D]
        self.default_kernel_signal_var = float(default_kernel_signal_var)
        self.default_kernel_length_scale = float(default_kernel_length_scale)
        self.default_noise_level = float(default_noise_level)
        self.kernel_hyperparams_prior_var = float(kernel_hyperparams_prior_var)
        self.btl_scale = float(btl_scale)

        self._y = np.empty(0)
        self._kernel_hyperparams = np.empty(0)
        self._noise_hyperparam = 0.0
        self.K = np.empty((0, 0))
        self._k_factor = None

        if X.shape[1] == 0 or not self.D:
            return

        self._perform_map_estimation(num_map_estimation_iters)

        self.K = calc_large_k_y(X, self._kernel_hyperparams, self._noise_hyperparam, self.kernel)
        self._k_factor = cho_factor(self.K, lower=True)

    @property
    def large_x(self):
        return self.X

    @property
    def small_y(self):
        return self._y

    @property
    def kernel_hyperparams(self):
        return self._kernel_hyperparams

    @property
    def noise_hyperparam(self):
        return self._noise_hyperparam

    def _log_posterior(self, params):
        """Objective to maximise and its gradient.

        params holds the latent values, followed, when hyperparameters are
        estimated, by the signal variance, the noise level and the length scales.
        """
        X = self.X
        m = X.shape[1]
        y = params[:m]

        if self.use_map_hyperparams:
            a, b, r = params[m], params[m + 1], params[m + 2 :]
            theta = np.concatenate(([a], r))
            factor = cho_factor(calc_large_k_y(X, theta, b, self.kernel), lower=True)
        else:
            factor = self._k_factor

        value = 0.0
        grad_y = np.zeros(m)
        for preference in self.D:
            indices = np.asarray(preference, dtype=int)
            log_p, grad = _log_btl_and_grad(y[indices], self.btl_scale)
            value += log_p
            np.add.at(grad_y, indices, grad)

        K_inv_y = cho_solve(factor, y)
        log_det = 2.0 * np.sum(np.log(np.diag(factor[0])))
        value += -0.5 * y @ K_inv_y - 0.5 * log_det - 0.5 * m * np.log(2.0 * np.pi)
        grad_y -= K_inv_y

        if not self.use_map_hyperparams:
            return float(value), grad_y

        variance = self.kernel_hyperparams_prior_var
        a_mu = np.log(self.default_kernel_signal_var)
        b_mu = np.log(self.default_noise_level)
        r_mu = np.log(self.default_kernel_length_scale)

        value += log_of_log_normal(a, a_mu, variance)
        value += log_of_log_normal(b, b_mu, variance)
        value += sum(log_of_log_normal(r_i, r_mu, variance) for r_i in r)

        K_inv = cho_solve(factor, np.eye(m))

        def component(dK):
            # The diagonal sum of K_inv @ dK, written as an element-wise product.
            return 0.5 * K_inv_y @ dK @ K_inv_y - 0.5 * np.sum(K_inv * dK.T)

        tensor = calc_large_k_y_theta_derivative(X, theta, self.kernel_theta_derivative)
        grad_theta = np.array([component(dK) for dK in tensor])
        grad_theta[0] += log_of_log_normal_derivative(a, a_mu, variance)
        grad_theta[1:] += [log_of_log_normal_derivative(r_i, r_mu, variance) for r_i in r]
        grad_b = component(np.eye(m)) + log_of_log_normal_derivative(b, b_mu, variance)

        grad = np.concatenate((grad_y, [grad_theta[0], grad_b], grad_theta[1:]))
        return float(value), grad

    def _perform_map_estimation(self, num_iters):
        m = self.X.shape[1]
        d = self.X.shape[0]
        opt_dim = m + 2 + d if self.use_map_hyperparams else m

        upper = np.full(opt_dim, _VALUE_BOUND)
        lower = np.full(opt_dim, -_VALUE_BOUND)
        x_ini = np.zeros(opt_dim)

        if self.use_map_hyperparams:
            lower[m:] = _HYPERPARAM_LOWER
            x_ini[m] = self.default_kernel_signal_var
            x_ini[m + 1] = self.default_noise_level
            x_ini[m + 2 :] = self.default_kernel_length_scale
            x_ini = np.clip(x_ini, lower, upper)
        else:
            self._kernel_hyperparams = np.concatenate(
                ([self.default_kernel_signal_var], np.full(d, self.default_kernel_length_scale))
            )
            self._noise_hyperparam = self.default_noise_level
            self.K = calc_large_k_y(self.X, self._kernel_hyperparams, self._noise_hyperparam, self.kernel)
            self._k_factor = cho_factor(self.K, lower=True)

        def negative(params):
            try:
                value, grad = self._log_posterior(params)
            except np.linalg.LinAlgError:
                return _PENALTY, np.zeros_like(params)
            if not np.isfinite(value):
                return _PENALTY, np.zeros_like(params)
            return -value, -grad

        options = {"maxfun": int(num_iters)} if num_iters and num_iters > 0 else {}
        result = minimize(
            negative,
            x_ini,
            jac=True,
            method="TNC",
            bounds=list(zip(lower, upper)),
            options=options,
        )
        x_opt = np.clip(result.x, lower, upper)

        self._y = x_opt[:m].copy()
        if self.use_map_hyperparams:
            self._kernel_hyperparams = np.concatenate(([x_opt[m]], x_opt[m + 2 :]))
            self._noise_hyperparam = float(x_opt[m + 1])

    def _as_point(self, x):
        x = np.asarray(x, dtype=float).ravel()
        if self._kernel_hyperparams.size != x.size + 1:
            raise ValueError("point dimension does not match the kernel hyperparameters")
        return x

    def predict_mu(self, x):
        k = calc_small_k(x, self.X, self._kernel_hyperparams, self.kernel)
        return float(k @ cho_solve(self._k_factor, self._y))

    def predict_sigma(self, x):
        x = self._as_point(x)
        k = calc_small_k(x, self.X, self._kernel_hyperparams, self.kernel)
        intensity = self._kernel_hyperparams[0]
        sigma_squared = intensity - k @ cho_solve(self._k_factor, k)
        # Numerical error can make the variance slightly negative.
        return 0.0 if sigma_squared < 0.0 else float(np.sqrt(sigma_squared))

    def predict_mu_derivative(self, x):
        k_x_derivative = calc_small_k_small_x_derivative(
            x, self.X, self._kernel_hyperparams, self.kernel_first_arg_derivative
        )
        return k_x_derivative @ cho_solve(self._k_factor, self._y)

    def predict_sigma_derivative(self, x):
        k_x_derivative = calc_small_k_small_x_derivative(
            x, self.X, self._kernel_hyperparams, self.kernel_first_arg_derivative
        )
        k = calc_small_k(x, self.X, self._kernel_hyperparams, self.kernel)
        sigma = np.float64(self.predict_sigma(x))
        with np.errstate(divide="ignore", invalid="ignore"):
            return -(np.float64(1.0) / sigma) * (k_x_derivative @ cho_solve(self._k_factor, k))

    def find_arg_max(self):
        """The observed data point with the largest estimated goodness value."""
        if self._y.size == 0:
            raise ValueError("no goodness values have been estimated")
        return self.X[:, int(np.argmax(self._y))].copy()

    def damp_data(self, dir_path, prefix=""):
        """Write the data points to <prefix>X.csv and the preferences to <prefix>D.csv."""
        directory = Path(dir_path)
        export_matrix_to_csv(directory / f"{prefix}X.csv", self.X)
        lines = "".join(",".join(str(index) for index in preference) + "\n" for preference in self.D)
        (directory / f"{prefix}D.csv").write_text(lines)