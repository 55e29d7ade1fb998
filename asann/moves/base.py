# coding: utf-8

# ====================================================
# imports
from __future__ import annotations

import numpy as np
from abc import ABC
from abc import abstractmethod
from attrs import frozen

import numpy.typing as npt
from typing import Any
from typing import Optional

import asann.typing as ast


# ====================================================
# code
@frozen
class State:
    """
    Object for describing the current state of the ASA algorithm, as seen by moves.

    Args:
        temperatures: current generating temperatures T_k, one per dimension.
        delta_param: current fraction used for perturbing position vectors when probing the objective's sensitivity.
    """

    temperatures: ast.FLOAT_ARR  #: current generating temperatures T_k, one per dimension.
    delta_param: float  #: current probe perturbation fraction.


class Move(ABC):
    """
    Base abstract class for defining how positions evolve in the ASA algorithm.
    """

    # region magic methods
    def __init__(
        self,
        *,
        bounds: Optional[npt.NDArray[np.float64]] = None,
        repr_attributes: tuple[str, ...] = (),
        **kwargs: Any,
    ):
        """
        Instantiate a Move.

        Args:
            bounds: optional array of (min, max) bounds for values to propose in each dimension.
            repr_attributes: list of attribute names to include in the string representation of this Move.
        """
        self._bounds = bounds
        self._repr_attributes = tuple(repr_attributes)

    def __repr__(self) -> str:
        with np.printoptions(precision=4):
            repr_str = (
                f"[Move] {type(self).__name__}("
                f"{', '.join([str(getattr(self, attr_name)) for attr_name in self._repr_attributes])}"
                f")"
            )

        return repr_str

    # endregion

    # region attributes
    @property
    def bounds(self) -> Optional[npt.NDArray[np.float64]]:
        return self._bounds

    # endregion

    # region methods
    def in_bounds(self, x: npt.NDArray[np.float64]) -> bool:
        """
        Do all values of <x> lie within the defined bounds (inclusive) ?

        Args:
            x: a position vector of shape (ndim,) or a matrix of position vectors of shape (n, ndim).
        """
        if self._bounds is None:
            return True

        return bool(np.all(x >= self._bounds[:, 0]) and np.all(x <= self._bounds[:, 1]))

    @abstractmethod
    def _get_proposal(
        self, x: npt.NDArray[np.float64], state: State, rng: np.random.Generator
    ) -> npt.NDArray[np.float64]:
        """
        Generate a new proposed vector x.

        Args:
            x: current vector x of shape (ndim,).
            state: current state of the ASA algorithm.
            rng: the random generator to draw from.

        Returns:
            New proposed vector x of shape (ndim,).
        """
        pass

    def get_proposal(
        self, x: npt.NDArray[np.float64], state: State, rng: np.random.Generator
    ) -> npt.NDArray[np.float64]:
        """
        Generate a new proposed vector x.

        Args:
            x: current vector x of shape (ndim,).
            state: current state of the ASA algorithm.
            rng: the random generator to draw from.

        Returns:
            New proposed vector x of shape (ndim,).
        """
        return self._valid_proposal(self._get_proposal(x, state, rng).astype(x.dtype))

    def _valid_proposal(self, x: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Get valid proposal within defined bounds.

        Args:
            x: a 'raw' proposal.

        Returns
            A proposal with values restricted with the defined bounds.
        """
        if self._bounds is not None:
            return np.minimum(np.maximum(x, self._bounds[:, 0]), self._bounds[:, 1])

        return x

    # endregion
