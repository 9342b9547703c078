"""Regressor base class and kernel-matrix helpers.

Data matrices hold one data point per column, so X has shape (dims, points).
"""

from abc import ABC, abstractmethod
from itertools import combinations_with_replacement

import numpy as np

from .kernels import kernel_functions


class Regressor(ABC):
    """A surrogate model that predicts a mean and deviation at any point."""

    def __init__(self, kernel_type):
        functions = kernel_functions(kernel_type)
        self.kernel_type = kernel_type
        self.kernel = functions.kernel
        self.kernel_theta_derivative = functions.theta_derivative
        self.kernel_first_arg_derivative = functions.first_arg_derivative

    @property
    @abstractmethod
    def large_x(self):
        """Data points, one per column."""

    @property
    @abstractmethod
    def small_y(self):
        """Values at the data points."""

    @property
    @abstractmethod
    def kernel_hyperparams(self):
        """Kernel hyperparameters: signal variance then length scales."""

    @property
    @abstractmethod
    def noise_hyperparam(self):
        """Noise level hyperparameter."""

    @property
    def num_dims(self):
        return np.asarray(self.large_x).shape[0]

    @abstractmethod
    def predict_mu(self, x):
        """Predicted mean at x."""

    @abstractmethod
    def predict_sigma(self, x):
        """Predicted standard deviation at x."""

    @abstractmethod
    def predict_mu_derivative(self, x):
        """Gradient of the predicted mean at x."""

    @abstractmethod
    def predict_sigma_derivative(self, x):
        """Gradient of the predicted standard deviation at x."""

    def predict_maximum_point_from_data(self):
        """Return the data point with the largest predicted mean."""
        X = np.asarray(self.large_x, dtype=float)
        means = [self.predict_mu(column) for column in X.T]
        return X[:, int(np.argmax(means))].copy()


def calc_small_k(x, X, kernel_hyperparams, kernel):
    """Kernel values between x and every data point."""
    X = np.asarray(X, dtype=float)
    return np.array([kernel(x, column, kernel_hyperparams) for column in X.T], dtype=float)


def calc_large_k_f(X, kernel_hyperparams, kernel):
    """Noise-free kernel matrix K_f of the data points."""
    X = np.asarray(X, dtype=float)
    n = X.shape[1]
    K_f = np.empty((n, n))
    for i, j in combinations_with_replacement(range(n), 2):
        value = kernel(X[:, i], X[:, j], kernel_hyperparams)
        K_f[i, j] = K_f[j, i] = value
    return K_f


def calc_large_k_y(X, kernel_hyperparams, noise_level, kernel):
    """Kernel matrix with noise, K_y = K_f + noise_level * I."""
    K_f = calc_large_k_f(X, kernel_hyperparams, kernel)
    return K_f + noise_level * np.eye(K_f.shape[0])


def calc_small_k_small_x_derivative(x, X, kernel_hyperparams, kernel_first_arg_derivative):
    """Matrix of shape (dims, points) holding the gradient of k with respect to x."""
    X = np.asarray(X, dtype=float)
    dim = X.shape[0]
    if dim == 0:
        raise ValueError("data points must have at least one dimension")
    columns = [kernel_first_arg_derivative(x, column, kernel_hyperparams) for column in X.T]
    return np.array(columns, dtype=float).reshape(len(columns), dim).T


def calc_large_k_y_theta_derivative(X, kernel_hyperparams, kernel_theta_derivative):
    """List of matrices, the derivative of K_y with respect to each kernel hyperparameter."""
    X = np.asarray(X, dtype=float)
    n = X.shape[1]
    tensor = np.empty((len(kernel_hyperparams), n, n))
    for i, j in combinations_with_replacement(range(n), 2):
        grad = kernel_theta_derivative(X[:, i], X[:, j], kernel_hyperparams)
        tensor[:, i, j] = grad
        tensor[:, j, i] = grad
    return list(tensor)


def calc_large_k_y_noise_level_derivative(X, kernel_hyperparams, noise_level):
    """Derivative of K_y with respect to the noise level: the identity."""
    n = np.asarray(X).shape[1]
    return np.eye(n)