# coding: utf-8

# ====================================================
# imports
from __future__ import annotations

import numpy as np

import numpy.typing as npt

import asann.typing as ast


# ====================================================
# code
EPSILON = float(np.finfo(np.float64).eps)


# parameters computation --------------------------------------------------------------------------
def control_constants(
    temperature_ratio_scale: float, temperature_anneal_scale: float, nb_dimensions: int
) -> tuple[ast.FLOAT_ARR, ast.FLOAT_ARR, ast.FLOAT_ARR]:
    """
    Compute Ingber's per-dimension control constants.

    Args:
        temperature_ratio_scale: ratio of expected final over initial temperature, m = -log(ratio).
        temperature_anneal_scale: expected number of steps to reach the final temperature, n = log(scale).
        nb_dimensions: number of dimensions D of the search space.

    Returns:
        The m, n and c = m * exp(-n / D) constants, one value per dimension.
    """
    m = np.full(nb_dimensions, -np.log(temperature_ratio_scale), dtype=np.float64)
    n = np.full(nb_dimensions, np.log(temperature_anneal_scale), dtype=np.float64)

    return m, n, m * np.exp(-n / nb_dimensions)


def T(k: int, T_0: ast.FLOAT_ARR, c: ast.FLOAT_ARR) -> ast.FLOAT_ARR:
    """
    Compute the temperatures at step k : T_0 * exp(-c * k^(1/D)), floored at machine epsilon.

    Args:
        k: the step number.
        T_0: initial temperatures.
        c: decay rate constants.

    Returns:
        The temperatures.
    """
    return np.maximum(T_0 * np.exp(-c * k ** (1 / len(T_0))), EPSILON)


def k_from_T(T_0: ast.FLOAT_ARR, temperature: ast.FLOAT_ARR, c: ast.FLOAT_ARR) -> int:
    """
    Invert the cooling schedule : find the step number at which temperatures <temperature> would be reached,
        averaged over dimensions. Temperatures above T_0 map to step 0.

    Args:
        T_0: initial temperatures.
        temperature: reached temperatures.
        c: decay rate constants.

    Returns:
        The step number.
    """
    log_ratio = np.maximum(np.log(T_0 / temperature), 0.0)
    return int(np.mean((log_ratio / c) ** len(T_0)))


def acceptance_probability(
    current_cost: float, new_cost: float, temperature: float, downhill: bool = True
) -> float:
    """
    Compute the Metropolis acceptance probability min(1, exp(-delta / (eps + T))) where delta is the increase of the
        objective in the search direction (f_x_cand - f_x when going downhill, f_x - f_x_cand when going uphill).

    Args:
        current_cost: the current objective value f_x.
        new_cost: the candidate objective value f_x_cand.
        temperature: the acceptance temperature (mean of T_cost).
        downhill: minimize the objective ? (maximize otherwise)

    Returns:
        The probability of acceptance, 0 for NaN objective values.
    """
    delta = new_cost - current_cost if downhill else current_cost - new_cost
    exponent = -delta / (EPSILON + temperature)

    if np.isnan(exponent):
        return 0.0

    return float(np.exp(min(0.0, exponent)))


def accepted_vs_generated(num_accepted_recently: int, num_generated_recently: int) -> float:
    """Ratio of recently accepted over recently generated candidates, shifted by one to stay defined."""
    return (num_accepted_recently + 1) / (num_generated_recently + 1)


def sensitivities(
    f_x: float,
    f_x_plusdelta: ast.FLOAT_ARR,
    x: ast.FLOAT_ARR,
    x_plusdelta: ast.FLOAT_ARR,
) -> ast.FLOAT_ARR:
    """
    Finite difference estimate of the objective's rate of change along each dimension.

    Args:
        f_x: objective value at x.
        f_x_plusdelta: objective values at the probe points, one per dimension.
        x: position vector of shape (D,).
        x_plusdelta: probe points of shape (D, D), row i is x perturbed along dimension i.

    Returns:
        The tangents, of shape (D,).
    """
    with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
        return (f_x_plusdelta - f_x) / (np.diagonal(x_plusdelta) - x + EPSILON)


def ingber_offset(u: npt.NDArray[np.float64], temperature: ast.FLOAT_ARR) -> ast.FLOAT_ARR:
    """
    Map uniform draws in [0, 1) through the ASA generating transform :
        y = sign(u - 1/2) * T * ((1 + 1/T)^|2u - 1| - 1)

    Args:
        u: uniform draws, one per dimension.
        temperature: generating temperatures T_k.

    Returns:
        The offsets to add to the current position vector.
    """
    return (
        np.sign(u - 0.5)
        * temperature
        * ((1.0 + 1.0 / temperature) ** np.abs(2 * u - 1) - 1.0)
    )
