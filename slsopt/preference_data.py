"""Storage of preferential observations over data points.

Data points are kept as the columns of a matrix. Each observation is a
tuple of column indices whose first entry is preferred to all the others.
"""

from itertools import combinations

import numpy as np


def _find_close_pair(X, eps_squared):
    for i, j in combinations(range(X.shape[1]), 2):
        if np.sum((X[:, i] - X[:, j]) ** 2) < eps_squared:
            return i, j
    return None


def merge_close_points(epsilon, X, D):
    """Merge data points closer than epsilon, one pair at a time, until none remain.

    Each merged pair is replaced by its midpoint, placed as the last column;
    the other columns keep their relative order. Returns the new matrix and
    the preferences with their indices remapped. The inputs are not modified.
    """
    X = np.array(X, dtype=float)
    D = [tuple(int(index) for index in preference) for preference in D]
    eps_squared = epsilon * epsilon

    while True:
        pair = _find_close_pair(X, eps_squared)
        if pair is None:
            return X, D
        i, j = pair
        m = X.shape[1]

        kept = [k for k in range(m) if k not in (i, j)]
        mapping = {old: new for new, old in enumerate(kept)}
        mapping[i] = mapping[j] = m - 2

        midpoint = 0.5 * (X[:, i] + X[:, j])
        X = np.hstack([X[:, kept], midpoint[:, np.newaxis]])
        D = [tuple(mapping[index] for index in preference) for preference in D]


_merge = merge_close_points


class PreferenceDataManager:
    """Collects preferential observations made during an optimisation."""

    def __init__(self):
        self.X = np.empty((0, 0))
        self.D = []

    @property
    def num_data_points(self):
        return self.X.shape[1]

    def add_new_points(self, x_preferable, xs_other, merge_close_points=True, epsilon=1e-04):
        """Record that x_preferable was preferred to every point in xs_other.

        When merge_close_points is true, points (old and new) closer than
        epsilon are merged, except on the very first observation.
        """
        points = [np.asarray(x_preferable, dtype=float)]
        points.extend(np.asarray(x, dtype=float) for x in xs_other)

        if self.X.shape[0] == 0:
            self.X = np.column_stack(points)
            self.D.append(tuple(range(len(points))))
            return

        n = self.X.shape[1]
        self.X = np.column_stack([self.X, *points])
        self.D.append(tuple(range(n, n + len(points))))

        if merge_close_points:
            self.X, self.D = _merge(epsilon, self.X, self.D)

    def last_selected_data_point(self):
        """The point chosen in the most recent observation."""
        if not self.D:
            raise IndexError("no preference has been recorded yet")
        return self.X[:, self.D[-1][0]].copy()