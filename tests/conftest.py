# coding: utf-8

# ====================================================
# imports
import pytest
import numpy as np

import numpy.typing as npt
from typing import Any
from typing import Callable

from asann import Annealer
from asann import NeedsObjectiveSet
from asann import Stopped


# ====================================================
# code
@pytest.fixture
def BOUNDS():
    return [(0.0, 10.0)]


def _quadratic(x: npt.NDArray[Any]) -> float:
    return float((x[0] - 3) ** 2)


@pytest.fixture
def quadratic():
    return _quadratic


def _drive(
    annealer: Annealer,
    fun: Callable[[npt.NDArray[Any]], float],
    max_steps: int = 100_000,
    on_step: Callable[[Annealer], None] | None = None,
) -> list[npt.NDArray[Any]]:
    """
    Run the evaluate / step loop on an Annealer, return all position vectors the Annealer asked to evaluate.
    """
    requested = []
    request = annealer.initialize()

    for _ in range(max_steps):
        if isinstance(request, Stopped):
            break

        if isinstance(request, NeedsObjectiveSet):
            requested.extend(request.probes)
            annealer.f_x_plusdelta = [fun(probe) for probe in request.probes]

        requested.append(request.x)
        annealer.f_x_cand = fun(request.x)

        request = annealer.step()

        if on_step is not None:
            on_step(annealer)

    return requested


def _step_until_reanneal(annealer: Annealer, fun: Callable[[npt.NDArray[Any]], float]) -> NeedsObjectiveSet:
    request = annealer.initialize()

    while not isinstance(request, NeedsObjectiveSet):
        assert not isinstance(request, Stopped)

        annealer.f_x_cand = fun(request.x)
        request = annealer.step()

    return request


@pytest.fixture
def drive():
    return _drive


@pytest.fixture
def step_until_reanneal():
    return _step_until_reanneal
