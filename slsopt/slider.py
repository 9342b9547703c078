"""One-dimensional slider subspaces inside the unit hypercube."""

import numpy as np

_EPSILON = 1e-16


def _crop(x):
    return np.clip(np.asarray(x, dtype=float), _EPSILON, 1.0 - _EPSILON)


def _max_step_inside_box(c, r, limit):
    """Largest t in [0, limit] for which c + t * r stays inside the cropped box."""
    t = limit
    for c_i, r_i in zip(c, r):
        if r_i > 0.0:
            t = min(t, (1.0 - _EPSILON - c_i) / r_i)
        elif r_i < 0.0:
            t = min(t, (_EPSILON - c_i) / r_i)
    return max(t, 0.0)


def enlarge_slider_ends(x_1, x_2, scale, minimum_length):
    """Enlarge the segment x_1--x_2 by scale about its centre, within the unit box.

    If the result is shorter than minimum_length, it is stretched to reach it.
    """
    c = 0.5 * (_crop(x_1) + _crop(x_2))
    r = _crop(x_1) - c

    t_1 = _max_step_inside_box(c, r, scale)
    t_2 = _max_step_inside_box(c, -r, scale)

    x_1_new = _crop(c + t_1 * r)
    x_2_new = _crop(c - t_2 * r)

    length = np.linalg.norm(x_1_new - x_2_new)

    if length < minimum_length:
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = minimum_length / length
            if abs(t_1 - t_2) < 1e-10:
                return c + ratio * t_1 * r, c - ratio * t_2 * r
            if t_1 > t_2:
                return c + 2.0 * ratio * t_1 * r, c - t_2 * r
            return c + t_1 * r, c - 2.0 * ratio * t_2 * r
    return x_1_new, x_2_new


class Slider:
    """A line segment between two points, optionally enlarged.

    end_0 is expected to be the current best point and end_1 the acquisition
    maximiser; the original ends are kept even when enlargement moves them.
    """

    def __init__(self, end_0, end_1, enlarge, scale=1.25, minimum_length=0.25):
        self.original_end_0 = np.asarray(end_0, dtype=float).copy()
        self.original_end_1 = np.asarray(end_1, dtype=float).copy()
        if enlarge:
            self.end_0, self.end_1 = enlarge_slider_ends(
                self.original_end_0, self.original_end_1, scale, minimum_length
            )
        else:
            self.end_0 = self.original_end_0.copy()
            self.end_1 = self.original_end_1.copy()

    def get_value(self, t):
        """Point at position t, where 0 is end_0 and 1 is end_1."""
        return (1.0 - t) * self.end_0 + t * self.end_1