# slsopt

Bayesian optimization driven by human preference, for problems where the
objective cannot be written down but a person can tell which of several
candidates looks better. The search space is the unit hypercube `[0, 1]^D`.

The main entry point is `PreferentialBayesianOptimizer`, which presents a
small set of discrete options (two by default, i.e. pairwise comparison). The
user picks one, the optimizer fits a Gaussian-process preference model to all
choices so far under the Bradley–Terry–Luce choice model, and proposes the
next set of options by maximizing expected improvement or GP-UCB.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Preferential Bayesian optimization

```python
import numpy as np
from slsopt.preferential_bayesian_optimizer import PreferentialBayesianOptimizer

optimizer = PreferentialBayesianOptimizer(num_dims=2, num_options=3)

for _ in range(10):
    options = optimizer.get_current_options()
    # Stand-in for a human judgement: prefers points near 0.7.
    chosen = max(range(len(options)), key=lambda i: -np.sum((options[i] - 0.7) ** 2))
    optimizer.submit_feedback_data(chosen)
    optimizer.determine_next_query()

print(optimizer.get_maximizer())
```

The first current option is always the current best point; the others are
the points proposed by the acquisition function. A choice made among
arbitrary points can be recorded with
`submit_custom_feedback_data(chosen_option, other_options)`.

`submit_feedback_data` raises `IndexError` for an option index out of range,
and `determine_next_query` raises `RuntimeError` if no feedback has been
submitted yet. Iteration counts of zero or less (the default) are replaced by
heuristic values.

### Constructor options

- `use_map_hyperparams` (default `True`): estimate the kernel
  hyperparameters and noise level by MAP together with the latent values;
  otherwise the set hyperparameters are used as they are.
- `kernel_type`: a member of `slsopt.enums.KernelType`,
  `ARD_SQUARED_EXPONENTIAL` or `ARD_MATERN_52` (the default).
- `acquisition_func_type`: a member of `slsopt.enums.AcquisitionFuncType`,
  `EXPECTED_IMPROVEMENT` (the default) or
  `GAUSSIAN_PROCESS_UPPER_CONFIDENCE_BOUND`.
- `initial_query_generator`: a callable taking `(num_dims, num_options)` and
  returning the first options; the default is `generate_random_points`, which
  draws them uniformly from the unit hypercube. It must return exactly
  `num_options` points, or `ValueError` is raised.
- `current_best_selection_strategy`: a member of
  `slsopt.enums.CurrentBestSelectionStrategy`, `LARGEST_EXPECT_VALUE` (the
  observed point with the largest estimated value, the default) or
  `LAST_SELECTION` (the point chosen last).
- `num_options` (default 2): the number of options in each query.

Hyperparameters (kernel signal variance, length scale, noise level, prior
variance and BTL scale) are set with `set_hyperparams(...)`; the GP-UCB
exploration weight with
`set_gaussian_process_upper_confidence_bound_hyperparam(...)`.

### Inspecting the model

- `get_preference_value_mean(point)` and `get_preference_value_stdev(point)`
  give the posterior of the latent preference at a point (zero before any
  feedback).
- `get_acquisition_func_value(point)` gives the current acquisition value
  (zero before any feedback).
- `get_raw_data_points()` returns the observed points, one per column.
- `damp_data(directory_path)` writes the observed points to `X.csv` (one
  point per column) and the recorded choices to `D.csv` (one line of indices
  per choice, the chosen point first) in the given directory. It does nothing
  before the first feedback.

## Building blocks

The lower-level modules can be used on their own:

- `slsopt.kernels`: ARD squared exponential and ARD Matérn 5/2 kernels with
  their derivatives with respect to the hyperparameters and the first
  argument; `kernel_functions(kernel_type)` returns all three as a
  `KernelFunctions`.
- `slsopt.regressor`: the abstract `Regressor` and helpers that build kernel
  vectors, kernel matrices and their derivatives (`calc_small_k`,
  `calc_large_k_f`, `calc_large_k_y`, ...).
- `slsopt.gaussian_process`: `GaussianProcessRegressor`, with
  hyperparameters given or found by MAP estimation.
- `slsopt.preference_regressor`: `PreferenceRegressor`, which estimates
  latent goodness values from preferences; `find_arg_max()` returns the
  observed point with the largest value.
- `slsopt.preference_data`: `PreferenceDataManager`, which stores points and
  preferences and merges points closer than a threshold
  (`merge_close_points`).
- `slsopt.acquisition`: `calc_acquisition_value`,
  `calc_acquisition_value_derivative`, `find_next_point` and
  `find_next_points`, which maximize the acquisition function over the unit
  hypercube (DIRECT global search refined by L-BFGS-B). Several points are
  chosen one after another, each lowering the variance around itself.
- `slsopt.slider`: `Slider`, a segment between two points with `get_value(t)`
  for positions in `[0, 1]`, and `enlarge_slider_ends`, which stretches a
  segment about its centre while keeping it inside the unit box.
- `slsopt.utils`: the Bradley–Terry–Luce probability and its gradient
  (`calc_btl`, `calc_btl_derivative`), log-normal log densities, uniform
  sampling and CSV export.

Functions that draw random numbers accept an optional `rng`
(`numpy.random.Generator`).

## What this package does not do

There is no optimizer that runs slider-based line-search queries: `Slider`
and `enlarge_slider_ends` are provided, but building a query loop on top of
them is left to the caller. The package has no command-line tool, no
graphical interface and no persistent storage beyond the CSV files written by
`damp_data`.