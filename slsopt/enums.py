"""Enumerations that select kernels, acquisition functions and current-best strategies."""

from enum import IntEnum


class KernelType(IntEnum):
    """Covariance kernel used by the Gaussian-process surrogate models."""

    ARD_SQUARED_EXPONENTIAL = 0
    ARD_MATERN_52 = 1


class AcquisitionFuncType(IntEnum):
    """Acquisition function maximised to choose the next query."""

    EXPECTED_IMPROVEMENT = 0
    GAUSSIAN_PROCESS_UPPER_CONFIDENCE_BOUND = 1


class CurrentBestSelectionStrategy(IntEnum):
    """How the so-far-observed current best point is selected."""

    # The point with the largest expected value, x^{+}.
    LARGEST_EXPECT_VALUE = 0
    # The point chosen in the last subtask, x^{chosen}.
    LAST_SELECTION = 1