# coding: utf-8

# ====================================================
# imports
from __future__ import annotations

from itertools import count
from tqdm.autonotebook import tqdm
from tqdm.autonotebook import trange

import numpy.typing as npt
from typing import Any
from typing import Iterable
from typing import Optional
from typing import Sequence

import asann.typing as ast
from asann.annealer import Annealer
from asann.algorithms.run import run_annealing
from asann.storage.result import Result


# ====================================================
# code
def asa(
    fun: ast.FUN_TYPE[...],
    x0: npt.ArrayLike,
    bounds: ast.BOUNDS_TYPE,
    args: Optional[tuple[Any, ...]] = None,
    max_iter: Optional[int] = None,
    seed: Optional[int] = None,
    verbose: bool = True,
    param_names: Optional[Sequence[str]] = None,
    **parameters: Any,
) -> Result:
    """
    Adaptive Simulated Annealing algorithm.

    Args:
        fun: a <d> dimensional function to optimize, called as fun(x, *args).
        x0: a <d> dimensional vector of initial values.
        bounds: a sequence of bounds (one for each <n> dimensions) with the following format:
            (lower_bound, upper_bound)
            or a single (lower_bound, upper_bound) tuple of bounds to set for all dimensions.
        args: an optional sequence of arguments to pass to the function to optimize.
        max_iter: an optional maximum number of steps before stopping the algorithm.
        seed: a seed for the random generator.
        verbose: print progress bar ?
        param_names: optional names for each dimension.
        **parameters: tunable parameters of the algorithm :
            downhill: minimize <fun> ? (maximize otherwise, default True)
            temperature_ratio_scale: Ingber's Temperature_Ratio_Scale. (default 1e-5)
            temperature_anneal_scale: Ingber's Temperature_Anneal_Scale. (default 100)
            cost_parameter_scale_ratio: Ingber's Cost_Parameter_Scale_Ratio. (default 1)
            acc_gen_reanneal_ratio: reanneal when recently accepted / generated drops below this. (default 1e-6)
            delta_param: fraction used for perturbing x when estimating sensitivities. (default 0.01)
            objective_repeat_precision: tolerance for considering the best value as repeated. (default eps)
            f_x_best_repeat_max: number of best value repeats before stopping. (default 10)
            enable_reanneal: allow reannealing ? (default True)
            reanneal_after_steps: force a reanneal after this many steps since the last one. (default 100)
            exit_at_T_f: stop when reaching the expected final temperature ? (default False)

    Returns:
        A Result object.
    """
    args = tuple(args) if args is not None else ()

    if max_iter is not None and max_iter < 0:
        raise ValueError("'max_iter' parameter must be positive.")

    annealer = Annealer(x0, bounds, seed=seed, param_names=param_names, **parameters)

    progress_bar: Iterable[int] | tqdm[int]
    if verbose:
        progress_bar = trange(max_iter, unit="step") if max_iter is not None else tqdm(count(), unit="step")

    else:
        progress_bar = range(max_iter) if max_iter is not None else count()

    # run the ASA algorithm
    return run_annealing(annealer, fun, args, progress_bar)
