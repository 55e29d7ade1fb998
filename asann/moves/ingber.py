# coding: utf-8

"""Moves of the Adaptive Simulated Annealing algorithm."""

# ====================================================
# imports
from __future__ import annotations

import numpy as np
from warnings import warn

import numpy.typing as npt
from typing import Any
from typing import Optional

from asann.compute import ingber_offset
from asann.moves.base import Move
from asann.moves.base import State


# ====================================================
# code
class IngberStep(Move):
    """
    Step drawn from Ingber's ASA generating distribution : a Cauchy-like distribution which spread, in each dimension,
    scales with the current temperature of that dimension. Proposals falling out of bounds are redrawn (not clipped)
    so that the distribution is preserved up to the boundaries.
    """

    # region magic methods
    def __init__(
        self,
        *,
        bounds: Optional[npt.NDArray[np.float64]] = None,
        repr_attributes: tuple[str, ...] = (),
        **kwargs: Any,
    ):
        super().__init__(
            bounds=bounds, repr_attributes=("nb_redraws",) + repr_attributes, **kwargs
        )

        self.nb_redraws = 0

    # endregion

    # region methods
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
        u = rng.random(len(x))
        return x + ingber_offset(u, state.temperatures)  # type: ignore[no-any-return]

    def get_proposal(
        self, x: npt.NDArray[np.float64], state: State, rng: np.random.Generator
    ) -> npt.NDArray[np.float64]:
        while True:
            proposal = self._get_proposal(x, state, rng).astype(x.dtype)

            if self.in_bounds(proposal):
                return proposal

            self.nb_redraws += 1

    # endregion


class DeltaProbe(Move):
    """
    Probe points for estimating the objective's sensitivity around x : one point per dimension, with only that
    dimension's value moved to x * (1 + delta_param), or to x * (1 - delta_param) when the former lies out of bounds.
    """

    # region methods
    def _get_proposal(
        self, x: npt.NDArray[np.float64], state: State, rng: np.random.Generator
    ) -> npt.NDArray[np.float64]:
        """
        Generate the probe points.

        Args:
            x: current vector x of shape (ndim,).
            state: current state of the ASA algorithm.
            rng: unused, probe points are deterministic.

        Returns:
            Matrix of probe points of shape (ndim, ndim).
        """
        plus_minus = np.ones(len(x))
        plus_delta = x * (1 + state.delta_param)

        if self._bounds is not None:
            out = (plus_delta > self._bounds[:, 1]) | (plus_delta < self._bounds[:, 0])
            plus_minus[out] = -1.0

        probes = np.tile(x, (len(x), 1))
        np.fill_diagonal(probes, x * (1 + plus_minus * state.delta_param))

        return probes

    def get_proposal(
        self, x: npt.NDArray[np.float64], state: State, rng: np.random.Generator
    ) -> npt.NDArray[np.float64]:
        probes = super().get_proposal(x, state, rng)

        stuck = np.flatnonzero(np.diagonal(probes) == x)
        if len(stuck):
            warn(
                f"Probe points could not move dimensions {stuck.tolist()} away from x = {x} with delta_param = "
                f"{state.delta_param} : the objective's sensitivity will be 0 there."
            )

        return probes

    # endregion
