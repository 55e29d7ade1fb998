# coding: utf-8

# ====================================================
# imports
from __future__ import annotations

import numpy as np

from typing import Sequence

import asann.typing as ast


# ====================================================
# code
class PositionHistory:
    """
    Append-only record of position vectors and their objective values.
    """

    # region magic methods
    def __init__(self, nb_dimensions: int):
        self.nb_dimensions = nb_dimensions

        self._positions: list[ast.FLOAT_ARR] = []
        self._costs: list[float] = []

    def __len__(self) -> int:
        return len(self._costs)

    def __repr__(self) -> str:
        return f"PositionHistory({len(self)} positions)"

    # endregion

    # region attributes
    @property
    def x(self) -> ast.FLOAT_ARR:
        """Recorded position vectors, of shape (n, nb_dimensions)."""
        if not self._positions:
            return np.empty((0, self.nb_dimensions), dtype=np.float64)

        return np.vstack(self._positions)

    @property
    def costs(self) -> ast.FLOAT_ARR:
        """Recorded objective values, of shape (n,)."""
        return np.array(self._costs, dtype=np.float64)

    # endregion

    # region methods
    def append(self, x: ast.FLOAT_ARR, cost: float) -> None:
        self._positions.append(np.array(x, dtype=np.float64))
        self._costs.append(float(cost))

    # endregion


class History:
    """
    Object for storing the history of an ASA run : accepted candidates and, for each rejected candidate, the position
    the algorithm stayed at. History is only ever appended to and is never read by the algorithm.
    """

    # region magic methods
    def __init__(self, nb_dimensions: int, param_names: Sequence[str] | None = None):
        """
        Instantiate a History.

        Args:
            nb_dimensions: number of dimensions per optimization problem.
            param_names: optional names for each dimension.
        """
        self.accepted = PositionHistory(nb_dimensions)
        self.rejected = PositionHistory(nb_dimensions)
        self.param_names = list(param_names) if param_names is not None else [
            f"x{i}" for i in range(nb_dimensions)
        ]

    def __repr__(self) -> str:
        return (
            f"History({self.nb_dimensions} dimensions, "
            f"{len(self.accepted)} accepted, {len(self.rejected)} rejected)"
        )

    def __len__(self) -> int:
        return len(self.accepted) + len(self.rejected)

    # endregion

    # region attributes
    @property
    def nb_dimensions(self) -> int:
        """Number of dimensions per optimization problem."""
        return self.accepted.nb_dimensions

    @property
    def acceptance_fraction(self) -> float:
        """Proportion of accepted candidates over all acceptance checks."""
        if not len(self):
            return np.nan

        return len(self.accepted) / len(self)

    # endregion

    # region methods
    def store_accepted(self, x: ast.FLOAT_ARR, cost: float) -> None:
        self.accepted.append(x, cost)

    def store_rejected(self, x: ast.FLOAT_ARR, cost: float) -> None:
        self.rejected.append(x, cost)

    def as_dict(self) -> dict[str, object]:
        """
        Get the history as plain arrays, for handing over to code that persists runs.
        """
        return {
            "param_names": list(self.param_names),
            "param_hist_accepted": self.accepted.x,
            "f_param_hist_accepted": self.accepted.costs,
            "param_hist_rejected": self.rejected.x,
            "f_param_hist_rejected": self.rejected.costs,
        }

    # endregion
