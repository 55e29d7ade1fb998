from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Concatenate, ParamSpec, Sequence, TypeAlias, Union

import numpy
from numpy.typing import NDArray

FLOAT_ARR: TypeAlias = NDArray[numpy.float64]
BOUND: TypeAlias = tuple[float, float]
BOUNDS_TYPE: TypeAlias = Union[BOUND, Sequence[BOUND]]


if TYPE_CHECKING:
    # the objective only needs to accept a position vector as first argument, extra arguments are forwarded as-is
    _P = ParamSpec("_P")

    FUN_TYPE: TypeAlias = Callable[Concatenate[NDArray[numpy.float64], _P], float]
