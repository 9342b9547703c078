"""Preferential Bayesian optimisation driven by discrete-choice queries.

The search space is the unit hypercube [0, 1]^d. Each iteration shows the
user a fixed number of options (two by default, a pairwise comparison); the
chosen option becomes a preference over all the others.
"""

import numpy as np

from .acquisition import calc_acquisition_value, find_next_points
from .enums import AcquisitionFuncType, CurrentBestSelectionStrategy, KernelType
from .preference_data import PreferenceDataManager
from .preference_regressor import PreferenceRegressor


def generate_random_points(num_dims, num_options, rng=None):
    """A list of num_options points drawn uniformly from [0, 1]^num_dims."""
    rng = np.random.default_rng() if rng is None else rng
    return [rng.uniform(0.0, 1.0, size=num_dims) for _ in range(num_options)]


class PreferentialBayesianOptimizer:
    """Optimiser that asks the user to choose one of several options at every iteration.

    The first current option is always the current best point; the others
    are found by maximising the acquisition function.
    """

    def __init__(
        self,
        num_dims,
        use_map_hyperparams=True,
        kernel_type=KernelType.ARD_MATERN_52,
        acquisition_func_type=AcquisitionFuncType.EXPECTED_IMPROVEMENT,
        initial_query_generator=generate_random_points,
        current_best_selection_strategy=CurrentBestSelectionStrategy.LARGEST_EXPECT_VALUE,
        num_options=2,
    ):
        self.use_map_hyperparams = bool(use_map_hyperparams)
        self.num_options = int(num_options)
        self.kernel_type = KernelType(kernel_type)
        self.acquisition_func_type = AcquisitionFuncType(acquisition_func_type)
        self.current_best_selection_strategy = CurrentBestSelectionStrategy(current_best_selection_strategy)

        self.kernel_signal_var = 0.500
        self.kernel_length_scale = 0.500
        self.noise_level = 0.005
        self.kernel_hyperparams_prior_var = 0.250
        self.btl_scale = 0.010
        self.ucb_hyperparam = 1.0

        self._data = PreferenceDataManager()
        self._regressor = None
        options = [np.asarray(option, dtype=float).copy() for option in initial_query_generator(num_dims, num_options)]
        if len(options) != self.num_options:
            raise ValueError(
                f"initial query generator returned {len(options)} options, expected {self.num_options}"
            )
        self._current_options = options

    def set_hyperparams(
        self,
        kernel_signal_var=0.500,
        kernel_length_scale=0.500,
        noise_level=0.005,
        kernel_hyperparams_prior_var=0.250,
        btl_scale=0.010,
    ):
        """Set the kernel and model hyperparameters.

        With MAP estimation these are the prior medians and initial guesses;
        otherwise they are used directly.
        """
        self.kernel_signal_var = kernel_signal_var
        self.kernel_length_scale = kernel_length_scale
        self.noise_level = noise_level
        self.kernel_hyperparams_prior_var = kernel_hyperparams_prior_var
        self.btl_scale = btl_scale

    def submit_feedback_data(self, option_index, num_map_estimation_iters=0):
        """Record that the current option at option_index was chosen and refit the model.

        A non-positive iteration count is replaced by a heuristic value.
        """
        if not 0 <= option_index < len(self._current_options):
            raise IndexError(f"option index {option_index} is out of range")

        x_chosen = self._current_options[option_index]
        x_others = [option for i, option in enumerate(self._current_options) if i != option_index]

        self._data.add_new_points(x_chosen, x_others, True)
        self._perform_map_estimation(num_map_estimation_iters)

    def submit_custom_feedback_data(self, chosen_option, other_options, num_map_estimation_iters=0):
        """Record that chosen_option was preferred to every point in other_options and refit the model."""
        self._data.add_new_points(chosen_option, list(other_options), True)
        self._perform_map_estimation(num_map_estimation_iters)

    def determine_next_query(self, num_global_search_iters=0, num_local_search_iters=0):
        """Choose the options for the next query by maximising the acquisition function.

        Non-positive iteration counts are replaced by heuristic values.
        """
        if self._regressor is None:
            raise RuntimeError("no feedback has been submitted yet")

        num_dims = self.get_maximizer().size
        if num_global_search_iters <= 0:
            num_global_search_iters = 50 * num_dims * num_dims
        if num_local_search_iters <= 0:
            num_local_search_iters = 10 * num_dims

        if self.current_best_selection_strategy is CurrentBestSelectionStrategy.LARGEST_EXPECT_VALUE:
            x_plus = self._regressor.find_arg_max()
        else:
            x_plus = self._data.last_selected_data_point()

        next_points = find_next_points(
            self._regressor,
            self.num_options - 1,
            num_global_search_iters,
            num_local_search_iters,
            self.acquisition_func_type,
            self.ucb_hyperparam,
        )

        self._current_options = [np.asarray(x_plus, dtype=float).copy()]
        self._current_options.extend(np.asarray(point, dtype=float).copy() for point in next_points)

    def get_current_options(self):
        """The options of the current query; the first is the current best point."""
        return [option.copy() for option in self._current_options]

    def get_maximizer(self):
        """The current best point."""
        return self._current_options[0].copy()

    def get_preference_value_mean(self, point):
        return 0.0 if self._regressor is None else self._regressor.predict_mu(point)

    def get_preference_value_stdev(self, point):
        return 0.0 if self._regressor is None else self._regressor.predict_sigma(point)

    def get_acquisition_func_value(self, point):
        if self._regressor is None:
            return 0.0
        return calc_acquisition_value(self._regressor, point, self.acquisition_func_type, self.ucb_hyperparam)

    def get_raw_data_points(self):
        """Observed data points, one per column."""
        return self._data.X

    def damp_data(self, directory_path):
        """Write the observed data to CSV files; does nothing before the first feedback."""
        if self._regressor is None:
            return
        self._regressor.damp_data(directory_path)

    def set_gaussian_process_upper_confidence_bound_hyperparam(self, hyperparam):
        """Set the exploration weight used by GP-UCB."""
        self.ucb_hyperparam = hyperparam

    def _perform_map_estimation(self, num_map_estimation_iters):
        if num_map_estimation_iters <= 0:
            num_dims = self.get_maximizer().size
            num_map_estimation_iters = 10 * (num_dims + self._data.num_data_points)

        self._regressor = PreferenceRegressor(
            self._data.X,
            self._data.D,
            self.use_map_hyperparams,
            self.kernel_signal_var,
            self.kernel_length_scale,
            self.noise_level,
            self.kernel_hyperparams_prior_var,
            self.btl_scale,
            num_map_estimation_iters,
            self.kernel_type,
        )