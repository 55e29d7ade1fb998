# coding: utf-8

"""
Core Adaptive Simulated Annealing loop : evaluates the objective function wherever the Annealer asks for it.
"""

# ====================================================
# imports
from __future__ import annotations

import logging
import traceback
import numpy as np
from tqdm.autonotebook import tqdm

from typing import Any
from typing import Iterable

import asann.typing as ast
from asann.annealer import Annealer
from asann.annealer import NeedsObjectiveSet
from asann.annealer import Request
from asann.annealer import Stopped
from asann.storage.result import Result

logger = logging.getLogger(__name__)


# ====================================================
# code
def _evaluate(fun: ast.FUN_TYPE[...], x: ast.FLOAT_ARR, args: tuple[Any, ...]) -> float:
    return float(fun(x.copy(), *args))


def run_annealing(
    annealer: Annealer,
    fun: ast.FUN_TYPE[...],
    args: tuple[Any, ...],
    progress_bar: Iterable[int] | tqdm[int],
) -> Result:
    """
    Drive an Annealer until it stops or <progress_bar> is exhausted.

    Args:
        annealer: an Annealer, not yet initialized.
        fun: a <d> dimensional function to optimize.
        args: arguments to pass to <fun>.
        progress_bar: an iterable yielding one element per step.

    Returns:
        A Result object.
    """
    request: Request = annealer.initialize()

    try:
        for _ in progress_bar:
            try:
                if isinstance(request, NeedsObjectiveSet):
                    annealer.f_x_plusdelta = [_evaluate(fun, probe, args) for probe in request.probes]

                annealer.f_x_cand = _evaluate(fun, annealer.x_cand, args)

            except Exception:
                message = (
                    f"Unexpected failure while evaluating cost function : \n"
                    f"{traceback.format_exc()}"
                )
                logger.error(message)
                success = False
                break

            request = annealer.step()

            if isinstance(progress_bar, tqdm):
                progress_bar.set_description(
                    f"T: {np.mean(annealer.T_k):.4g}"
                    f"  T_cost: {np.mean(annealer.T_cost):.4g}"
                    f"  Best: {annealer.f_x_best:.4f}"
                    f"  Current: {annealer.f_x:.4f}"
                )

            if isinstance(request, Stopped):
                message, success = f"Stopping condition reached : {request.reason.value}.", True
                break

        else:
            message, success = "Requested number of iterations reached.", False

    finally:
        if isinstance(progress_bar, tqdm):
            progress_bar.close()

    return Result(message, success, annealer)
