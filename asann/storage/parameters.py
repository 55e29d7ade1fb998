# coding: utf-8

# ====================================================
# imports
from __future__ import annotations

import numbers
import collections.abc
import numpy as np
from attrs import field
from attrs import frozen
from attrs import asdict
from attrs import fields_dict
from warnings import warn

import numpy.typing as npt
from typing import Any

import asann.typing as ast
from asann.compute import EPSILON
from asann.errors import ShapeError


# ====================================================
# code
MIN_STEPS_TO_REANNEAL = 10


@frozen(kw_only=True)
class ASAParameters:
    """
    Object for storing the tunable parameters of the ASA algorithm.
    """

    #: minimize the objective ? (maximize otherwise)
    downhill: bool = field(default=True, converter=bool)
    #: Ingber's Temperature_Ratio_Scale, m = -log(temperature_ratio_scale).
    temperature_ratio_scale: float = field(default=1e-5, converter=float)
    #: Ingber's Temperature_Anneal_Scale, n = log(temperature_anneal_scale).
    temperature_anneal_scale: float = field(default=100.0, converter=float)
    #: Ingber's Cost_Parameter_Scale_Ratio, c_cost = c * cost_parameter_scale_ratio.
    cost_parameter_scale_ratio: float = field(default=1.0, converter=float)
    #: reanneal when the ratio of recently accepted over recently generated candidates drops below this.
    acc_gen_reanneal_ratio: float = field(default=1e-6, converter=float)
    #: fraction used for perturbing x when estimating the objective's sensitivity.
    delta_param: float = field(default=0.01, converter=float)
    #: tolerance for considering f_x_best as repeated.
    objective_repeat_precision: float = field(default=EPSILON, converter=float)
    #: number of f_x_best repeats before stopping.
    f_x_best_repeat_max: int = field(default=10, converter=int)
    #: allow reannealing ?
    enable_reanneal: bool = field(default=True, converter=bool)
    #: force a reanneal after this many steps since the last one.
    reanneal_after_steps: int = field(default=100, converter=int)
    #: stop when the mean temperature reaches the expected final temperature ?
    exit_at_T_f: bool = field(default=False, converter=bool)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def check_asa_parameters(**kwargs: Any) -> ASAParameters:
    """
    Check validity of tunable parameters.

    Args:
        **kwargs: ASAParameters field values, missing fields take their default value.

    Returns:
        ASAParameters.
    """
    unknown = set(kwargs) - set(fields_dict(ASAParameters))
    if unknown:
        raise TypeError(f"Unknown parameter(s) {', '.join(sorted(unknown))}.")

    params = ASAParameters(**kwargs)

    # temperature scales
    if not 0 < params.temperature_ratio_scale < 1:
        raise ValueError(
            f"Invalid value '{params.temperature_ratio_scale}' for 'temperature_ratio_scale', should be in (0, 1)."
        )

    if params.temperature_anneal_scale <= 1:
        raise ValueError("'temperature_anneal_scale' parameter must be greater than 1.")

    if params.cost_parameter_scale_ratio <= 0:
        raise ValueError("'cost_parameter_scale_ratio' parameter must be strictly positive.")

    # reannealing
    if params.acc_gen_reanneal_ratio < 0:
        raise ValueError("'acc_gen_reanneal_ratio' parameter must be positive.")

    if params.delta_param <= 0:
        raise ValueError("'delta_param' parameter must be strictly positive.")

    if params.reanneal_after_steps < 0:
        raise ValueError("'reanneal_after_steps' parameter must be positive.")

    if params.enable_reanneal and params.reanneal_after_steps < MIN_STEPS_TO_REANNEAL:
        warn(
            f"'reanneal_after_steps' ({params.reanneal_after_steps}) is lower than the minimum number of steps "
            f"between reanneals ({MIN_STEPS_TO_REANNEAL}), reanneals will happen every {MIN_STEPS_TO_REANNEAL} steps."
        )

    # stopping
    if params.objective_repeat_precision < 0:
        raise ValueError("'objective_repeat_precision' parameter must be positive.")

    if params.f_x_best_repeat_max < 0:
        raise ValueError("'f_x_best_repeat_max' parameter must be positive.")

    if params.f_x_best_repeat_max == 0:
        warn("'f_x_best_repeat_max' is 0, the algorithm will stop at the first step.")

    return params


def check_x0(x0: npt.ArrayLike) -> ast.FLOAT_ARR:
    """
    Check validity of the initial position vector.

    Args:
        x0: a <d> dimensional vector of initial values.

    Returns:
        x0 as a float64 numpy array.
    """
    x0_arr = np.array(x0, dtype=np.float64)

    if x0_arr.ndim != 1 or len(x0_arr) == 0:
        raise ShapeError(
            f"Initial values should be a non-empty vector, got an array of shape {x0_arr.shape}."
        )

    if not np.all(np.isfinite(x0_arr)):
        raise ValueError("Initial values must be finite.")

    return x0_arr


def check_bounds(
    bounds: ast.BOUNDS_TYPE,
    x0: ast.FLOAT_ARR,
) -> ast.FLOAT_ARR:
    """
    Check validity of bounds.

    Args:
        bounds: a sequence of bounds (one for each <n> dimensions) with the following format:
            (lower_bound, upper_bound)
            or a single (lower_bound, upper_bound) tuple of bounds to set for all dimensions.
        x0: a <d> dimensional vector of initial values.

    Returns:
        The bounds as an array of shape (d, 2).
    """
    if (
        isinstance(bounds, tuple)
        and len(bounds) == 2
        and isinstance(bounds[0], numbers.Number)
        and isinstance(bounds[1], numbers.Number)
    ):
        bounds_arr = np.tile(np.array(bounds, dtype=np.float64), (len(x0), 1))

    elif isinstance(bounds, (collections.abc.Sequence, np.ndarray)):
        if len(bounds) != len(x0):
            raise ShapeError(
                f"Bounds must be defined for all dimensions, but only {len(bounds)} out of"
                f" {len(x0)} were defined."
            )

        for bound in bounds:
            if not (
                isinstance(bound, (collections.abc.Sequence, np.ndarray))
                and len(bound) == 2
                and all(isinstance(b, numbers.Number) for b in bound)
            ):
                raise TypeError(
                    "'bounds' parameter must be a sequence of bounds (one for each <n> dimensions) "
                    "with the following format: \n"
                    "\t(lower_bound, upper_bound)\n "
                    "or a single (lower_bound, upper_bound) tuple of bounds to set for all dimensions."
                )

        bounds_arr = np.array(bounds, dtype=np.float64)

    else:
        raise TypeError(
            "'bounds' parameter must be a sequence of bounds (one for each <n> dimensions) "
            "with the following format: \n"
            "\t(lower_bound, upper_bound)\n "
            "or a single (lower_bound, upper_bound) tuple of bounds to set for all dimensions."
        )

    if not np.all(np.isfinite(bounds_arr)):
        raise ValueError("Bounds must be finite.")

    for dim_index, (lower, upper) in enumerate(bounds_arr):
        if lower >= upper:
            raise ValueError(
                f"Invalid bounds ({lower}, {upper}) for dimension {dim_index}, lower bound must be strictly lower "
                f"than upper bound."
            )

        if not lower <= x0[dim_index] <= upper:
            raise ValueError(
                f"Some values in x0 do not lie in between defined bounds for dimensions {dim_index}."
            )

    return bounds_arr
