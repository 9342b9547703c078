"""ARD covariance kernels with derivatives for hyperparameters and inputs.

Hyperparameter vectors hold the signal variance first, then one length
scale per input dimension.
"""

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from .enums import KernelType

_SQRT5 = np.sqrt(5.0)


def _unpack(x1, x2, theta):
    theta = np.asarray(theta, dtype=float)
    diff = np.asarray(x1, dtype=float) - np.asarray(x2, dtype=float)
    return theta[0], theta[1:], diff


def ard_squared_exp_kernel(x1, x2, theta):
    """Return the ARD squared exponential kernel value."""
    signal_var, length_scales, diff = _unpack(x1, x2, theta)
    r_squared = np.sum((diff / length_scales) ** 2)
    return float(signal_var * np.exp(-0.5 * r_squared))


def ard_squared_exp_kernel_theta_derivative(x1, x2, theta):
    """Return the gradient of the ARD squared exponential kernel w.r.t. theta."""
    signal_var, length_scales, diff = _unpack(x1, x2, theta)
    decay = np.exp(-0.5 * np.sum((diff / length_scales) ** 2))
    length_part = signal_var * decay * diff**2 / length_scales**3
    return np.concatenate(([decay], length_part))


def ard_squared_exp_kernel_first_arg_derivative(x1, x2, theta):
    """Return the gradient of the ARD squared exponential kernel w.r.t. x1."""
    signal_var, length_scales, diff = _unpack(x1, x2, theta)
    value = signal_var * np.exp(-0.5 * np.sum((diff / length_scales) ** 2))
    return -value * diff / length_scales**2


def _matern_terms(x1, x2, theta):
    signal_var, length_scales, diff = _unpack(x1, x2, theta)
    r = np.sqrt(np.sum((diff / length_scales) ** 2))
    decay = np.exp(-_SQRT5 * r)
    return signal_var, length_scales, diff, r, decay


def ard_matern52_kernel(x1, x2, theta):
    """Return the ARD Matern 5/2 kernel value."""
    signal_var, _, _, r, decay = _matern_terms(x1, x2, theta)
    return float(signal_var * (1.0 + _SQRT5 * r + 5.0 / 3.0 * r * r) * decay)


def ard_matern52_kernel_theta_derivative(x1, x2, theta):
    """Return the gradient of the ARD Matern 5/2 kernel w.r.t. theta."""
    signal_var, length_scales, diff, r, decay = _matern_terms(x1, x2, theta)
    signal_part = (1.0 + _SQRT5 * r + 5.0 / 3.0 * r * r) * decay
    common = 5.0 / 3.0 * signal_var * (1.0 + _SQRT5 * r) * decay
    return np.concatenate(([signal_part], common * diff**2 / length_scales**3))


def ard_matern52_kernel_first_arg_derivative(x1, x2, theta):
    """Return the gradient of the ARD Matern 5/2 kernel w.r.t. x1."""
    signal_var, length_scales, diff, r, decay = _matern_terms(x1, x2, theta)
    common = 5.0 / 3.0 * signal_var * (1.0 + _SQRT5 * r) * decay
    return -common * diff / length_scales**2


@dataclass(frozen=True)
class KernelFunctions:
    """A kernel together with its theta and first-argument derivatives."""

    kernel: Callable
    theta_derivative: Callable
    first_arg_derivative: Callable


_KERNELS = {
    KernelType.ARD_SQUARED_EXPONENTIAL: KernelFunctions(
        ard_squared_exp_kernel,
        ard_squared_exp_kernel_theta_derivative,
        ard_squared_exp_kernel_first_arg_derivative,
    ),
    KernelType.ARD_MATERN_52: KernelFunctions(
        ard_matern52_kernel,
        ard_matern52_kernel_theta_derivative,
        ard_matern52_kernel_first_arg_derivative,
    ),
}


def kernel_functions(kernel_type):
    """Return the kernel functions for a kernel type."""
    try:
        return _KERNELS[KernelType(kernel_type)]
    except (KeyError, ValueError):
        raise ValueError(f"unknown kernel type: {kernel_type!r}") from None