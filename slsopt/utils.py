"""Random sampling, the Bradley-Terry-Luce model, log-normal priors and CSV export."""

from pathlib import Path

import numpy as np


def generate_random_vector(n, rng=None):
    """Sample a vector uniformly from [0, 1]^n."""
    rng = np.random.default_rng() if rng is None else rng
    return rng.uniform(0.0, 1.0, size=n)


def calc_btl(f, scale=1.0):
    """Probability under the BTL model that the first entry of f is preferred."""
    scaled = np.asarray(f, dtype=float) / scale
    weights = np.exp(scaled - scaled.max())
    return float(weights[0] / weights.sum())


def calc_btl_derivative(f, scale=1.0):
    """Gradient of calc_btl with respect to f."""
    f = np.asarray(f, dtype=float)
    btl = calc_btl(f, scale)
    ratios = np.exp((f[1:] - f[0]) / scale)
    direction = np.concatenate(([-ratios.sum()], ratios))
    return (-btl * btl / scale) * direction


def log_of_log_normal(x, mu, sigma_squared):
    """Log density of a log-normal distribution at x."""
    log_x = np.log(x)
    return float(
        -log_x - 0.5 * np.log(2.0 * np.pi * sigma_squared) - (log_x - mu) ** 2 / (2.0 * sigma_squared)
    )


def log_of_log_normal_derivative(x, mu, sigma_squared):
    """Derivative of log_of_log_normal with respect to x."""
    return float(-(sigma_squared + np.log(x) - mu) / (sigma_squared * x))


def export_matrix_to_csv(file_path, X):
    """Write a matrix as comma-separated rows; a 1-D array is written as a column."""
    matrix = np.asarray(X, dtype=float)
    if matrix.ndim == 1:
        matrix = matrix.reshape(-1, 1)
    text = "\n".join(",".join(f"{value:g}" for value in row) for row in matrix)
    Path(file_path).write_text(text)