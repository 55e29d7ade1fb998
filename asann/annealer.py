# coding: utf-8

"""
Adaptive Simulated Annealing state machine, after :

    Ingber, L. (1989). Very fast simulated re-annealing. Mathematical and Computer Modelling 12, 967-973.

The Annealer never evaluates the objective function. Client code runs a loop in which it reads the request returned
by the Annealer, evaluates the objective at the requested position vectors, writes the values back and calls step()
to advance the algorithm. When reannealing, the Annealer asks for the objective at the probe points AND at the
pending candidate x_cand : step() raises an AnnealerStateError if either is missing. A typical loop :

    annealer = Annealer(x0, bounds, seed=42)
    request = annealer.initialize()

    while not isinstance(request, Stopped):
        if isinstance(request, NeedsObjectiveSet):
            annealer.f_x_plusdelta = [fun(probe) for probe in request.probes]

        annealer.f_x_cand = fun(request.x)
        request = annealer.step()
"""

# ====================================================
# imports
from __future__ import annotations

import time
import logging
import numpy as np
from enum import Enum
from warnings import warn
from attrs import frozen

import numpy.typing as npt
from typing import Any
from typing import Union
from typing import Optional
from typing import Sequence

import asann.typing as ast
from asann.compute import EPSILON
from asann.compute import T
from asann.compute import k_from_T
from asann.compute import sensitivities
from asann.compute import control_constants
from asann.compute import accepted_vs_generated
from asann.compute import acceptance_probability
from asann.errors import ShapeError
from asann.errors import AnnealerStateError
from asann.errors import NonFiniteSensitivityError
from asann.errors import NonPositiveTemperatureError
from asann.moves.base import State
from asann.moves.ingber import DeltaProbe
from asann.moves.ingber import IngberStep
from asann.storage.history import History
from asann.storage.parameters import ASAParameters
from asann.storage.parameters import MIN_STEPS_TO_REANNEAL
from asann.storage.parameters import check_x0
from asann.storage.parameters import check_bounds
from asann.storage.parameters import check_asa_parameters

logger = logging.getLogger(__name__)


# ====================================================
# code
class AnnealState(Enum):
    """What does client code need to do next ?"""

    UNINITIALIZED = "uninitialized"  # call configure() (optional) then initialize()
    NEEDS_OBJECTIVE = "needs objective"  # compute f_x_cand at x_cand, then step()
    NEEDS_OBJECTIVE_SET = "needs objective set"  # compute f_x_plusdelta at x_plusdelta and f_x_cand, then step()
    READY_TO_STOP = "ready to stop"  # the algorithm has finished


class StopCondition(Enum):
    """Which stopping condition caused the exit ?"""

    UNKNOWN = "unknown"
    T_K_BELOW_T_F = "T_k < T_f"
    T_K_BELOW_EPSILON = "T_k < epsilon"
    T_COST_BELOW_EPSILON = "T_cost < epsilon"
    F_X_BEST_REPEATED = "f_x_best repeated"


@frozen(eq=False)
class NeedsObjective:
    """Evaluate the objective at <x> and store it in Annealer.f_x_cand."""

    x: ast.FLOAT_ARR  #: the candidate position vector.


@frozen(eq=False)
class NeedsObjectiveSet:
    """
    Evaluate the objective at each row of <probes> and store the values in Annealer.f_x_plusdelta, then evaluate the
    objective at <x> and store it in Annealer.f_x_cand. Both are required : <x> is the candidate generated before the
    reanneal started and is judged on the next step().
    """

    probes: ast.FLOAT_ARR  #: probe position vectors, of shape (D, D).
    x: ast.FLOAT_ARR  #: the pending candidate position vector.


@frozen
class Stopped:
    """The algorithm has finished."""

    reason: StopCondition  #: the stopping condition that caused the exit.


Request = Union[NeedsObjective, NeedsObjectiveSet, Stopped]


class Annealer:
    """
    Lester Ingber's Adaptive Simulated Annealing algorithm, as a pull-based state machine.
    """

    # region magic methods
    def __init__(
        self,
        x0: npt.ArrayLike,
        bounds: ast.BOUNDS_TYPE,
        *,
        seed: Optional[int] = None,
        param_names: Optional[Sequence[str]] = None,
        **parameters: Any,
    ):
        """
        Instantiate an Annealer.

        Args:
            x0: a <d> dimensional vector of initial values.
            bounds: a sequence of bounds (one for each <n> dimensions) with the following format:
                (lower_bound, upper_bound)
                or a single (lower_bound, upper_bound) tuple of bounds to set for all dimensions.
            seed: a seed for the random generator.
            param_names: optional names for each dimension, kept in the history.
            **parameters: tunable parameters, see ASAParameters.
        """
        x0_arr = check_x0(x0)
        self._bounds = check_bounds(bounds, x0_arr)
        self._parameters = check_asa_parameters(**parameters)

        if param_names is not None and len(param_names) != len(x0_arr):
            raise ShapeError(
                f"Expected {len(x0_arr)} parameter names, got {len(param_names)}."
            )

        if seed is None:
            seed = int(time.time())

        self.seed = seed
        self._rng = np.random.default_rng(seed)

        self.D = len(x0_arr)
        self._generate = IngberStep(bounds=self._bounds)
        self._probe = DeltaProbe(bounds=self._bounds)

        # parameter vectors and objective values
        self._x = x0_arr.copy()
        self._x_cand = x0_arr.copy()
        self._x_best = x0_arr.copy()
        self._x_plusdelta = np.tile(x0_arr, (self.D, 1))

        self._f_x = np.nan
        self._f_x_cand = np.nan
        self._f_x_best = np.nan
        self._f_x_plusdelta = np.full(self.D, np.nan)

        self._has_f_x_cand = False
        self._has_f_x_plusdelta = False

        # statistics
        self.f_x_best_repeats = 0
        self.num_generated = 0
        self.num_generated_best = 0
        self.num_generated_recently = 0
        self.num_improved = 0
        self.num_worse = 0
        self.num_worse_accepted = 0
        self.num_accepted = 0
        self.num_accepted_best = 0
        self.num_accepted_recently = 0
        self.num_reanneals = 0
        self.steps = 0

        self.history = History(self.D, param_names)

        self.state = AnnealState.UNINITIALIZED
        self.reason_for_exit = StopCondition.UNKNOWN

        # internal algorithm parameters, set by initialize()
        self.k = 1
        self.k_f = 0
        self.k_r = 0
        self.k_cost = 0
        self.delta_param = self._parameters.delta_param
        self.T_0 = np.ones(self.D)
        self.T_k = np.ones(self.D)
        self.T_f = np.ones(self.D)
        self.m = np.zeros(self.D)
        self.n = np.zeros(self.D)
        self.c = np.zeros(self.D)
        self.c_cost = np.zeros(self.D)
        self.T_cost_0 = np.ones(self.D)
        self.T_cost = np.ones(self.D)
        self.tangents = np.ones(self.D)

    def __repr__(self) -> str:
        return (
            f"Annealer(\n"
            f"\tstate: {self.state.value}\n"
            f"\tdimensions: {self.D}\n"
            f"\tsteps: {self.steps}\n"
            f"\tbest: {self._x_best} ({self._f_x_best})\n"
            f"\treason for exit: {self.reason_for_exit.value}"
            f")"
        )

    # endregion

    # region attributes
    @property
    def parameters(self) -> ASAParameters:
        """Tunable parameters."""
        return self._parameters

    @property
    def downhill(self) -> bool:
        return self._parameters.downhill

    @property
    def range_min(self) -> ast.FLOAT_ARR:
        return self._bounds[:, 0].copy()

    @property
    def range_max(self) -> ast.FLOAT_ARR:
        return self._bounds[:, 1].copy()

    @property
    def x(self) -> ast.FLOAT_ARR:
        """Currently accepted position vector."""
        return self._x.copy()

    @property
    def x_cand(self) -> ast.FLOAT_ARR:
        """Candidate position vector, to evaluate."""
        return self._x_cand.copy()

    @property
    def x_best(self) -> ast.FLOAT_ARR:
        """Best position vector so far."""
        return self._x_best.copy()

    @property
    def x_plusdelta(self) -> ast.FLOAT_ARR:
        """Probe position vectors of shape (D, D), to evaluate when reannealing."""
        return self._x_plusdelta.copy()

    @property
    def f_x(self) -> float:
        return self._f_x

    @property
    def f_x_best(self) -> float:
        return self._f_x_best

    @property
    def f_x_cand(self) -> float:
        return self._f_x_cand

    @f_x_cand.setter
    def f_x_cand(self, value: float) -> None:
        self._f_x_cand = float(value)
        self._has_f_x_cand = True

    @property
    def f_x_plusdelta(self) -> ast.FLOAT_ARR:
        return self._f_x_plusdelta.copy()

    @f_x_plusdelta.setter
    def f_x_plusdelta(self, values: npt.ArrayLike) -> None:
        values_arr = np.array(values, dtype=np.float64).reshape(-1)

        if len(values_arr) != self.D:
            raise ShapeError(
                f"Expected {self.D} objective values (one per probe point), got {len(values_arr)}."
            )

        self._f_x_plusdelta = values_arr
        self._has_f_x_plusdelta = True

    @property
    def request(self) -> Request:
        """What client code needs to do next."""
        if self.state == AnnealState.NEEDS_OBJECTIVE:
            return NeedsObjective(self.x_cand)

        if self.state == AnnealState.NEEDS_OBJECTIVE_SET:
            return NeedsObjectiveSet(self.x_plusdelta, self.x_cand)

        if self.state == AnnealState.READY_TO_STOP:
            return Stopped(self.reason_for_exit)

        raise AnnealerStateError("The Annealer is not initialized, call initialize() first.")

    @property
    def is_stopped(self) -> bool:
        return self.state == AnnealState.READY_TO_STOP

    # endregion

    # region methods
    def configure(self, **changes: Any) -> ASAParameters:
        """
        Change tunable parameters. Only allowed before initialize() was called.

        Args:
            **changes: new values for ASAParameters fields.

        Returns:
            The updated parameters.
        """
        if self.state != AnnealState.UNINITIALIZED:
            raise AnnealerStateError("Parameters cannot be changed after initialize() was called.")

        self._parameters = check_asa_parameters(**(self._parameters.as_dict() | changes))
        self.delta_param = self._parameters.delta_param

        return self._parameters

    def initialize(self) -> Request:
        """
        Derive temperatures and control constants from the tunable parameters. After this, client code must compute
        the objective at x_cand.

        Returns:
            The first request.
        """
        if self.state != AnnealState.UNINITIALIZED:
            raise AnnealerStateError("The Annealer was already initialized.")

        params = self._parameters

        # worst possible objective values, so that the first evaluated candidate is always accepted and best
        worst = float(np.finfo(np.float64).max)
        self._f_x_best = worst if params.downhill else -worst
        self._f_x = self._f_x_best
        self._f_x_cand = self._f_x_best

        self.T_0 = np.ones(self.D)
        self.T_k = np.ones(self.D)

        self.m, self.n, self.c = control_constants(
            params.temperature_ratio_scale, params.temperature_anneal_scale, self.D
        )

        self.T_f = self.T_0 * np.exp(-self.m)
        self.k_f = int(np.mean(np.exp(self.n)))

        self.tangents = np.ones(self.D)
        self.c_cost = self.c * params.cost_parameter_scale_ratio
        self.T_cost_0 = self.c_cost.copy()
        self.T_cost = self.c_cost.copy()
        self.delta_param = params.delta_param

        if params.enable_reanneal and np.any(self._x == 0):
            warn(
                "Some initial values are 0 : probing the sensitivity of the objective by scaling x by "
                "(1 +/- delta_param) will not move them."
            )

        logger.info(
            "Initialized ASA in %d dimensions : c = %s, expected final temperature %.4g after %d steps.",
            self.D,
            np.array2string(self.c, precision=4),
            float(np.mean(self.T_f)),
            self.k_f,
        )

        self.state = AnnealState.NEEDS_OBJECTIVE
        return self.request

    def step(self) -> Request:
        """
        Advance the algorithm by one step.

        Returns:
            The next request.
        """
        if self.state == AnnealState.UNINITIALIZED:
            raise AnnealerStateError("The Annealer is not initialized, call initialize() first.")

        if self.state == AnnealState.READY_TO_STOP:
            return self.request

        if self._stop_check():
            self.state = AnnealState.READY_TO_STOP
            return self.request

        self._check_inputs()

        if self.state == AnnealState.NEEDS_OBJECTIVE_SET:
            self._complete_reanneal()

        self.steps += 1

        self._cooling_schedule()
        self._acceptance_check()
        self._generate_next()
        self.k += 1
        self.k_r += 1

        self._has_f_x_cand = False
        self._has_f_x_plusdelta = False

        if self._parameters.enable_reanneal and self._reanneal_test():
            self.state = AnnealState.NEEDS_OBJECTIVE_SET

        else:
            self.state = AnnealState.NEEDS_OBJECTIVE

        return self.request

    def statistics(self) -> dict[str, Any]:
        """
        Get the run's statistics and best position, as plain values.
        """
        return {
            "x_best": self.x_best,
            "f_x_best": self._f_x_best,
            "reason_for_exit": self.reason_for_exit.value,
            "steps": self.steps,
            "num_generated": self.num_generated,
            "num_generated_best": self.num_generated_best,
            "num_improved": self.num_improved,
            "num_worse": self.num_worse,
            "num_worse_accepted": self.num_worse_accepted,
            "num_accepted": self.num_accepted,
            "num_accepted_best": self.num_accepted_best,
            "num_reanneals": self.num_reanneals,
            "acceptance_fraction": self.history.acceptance_fraction,
            "f_x_best_repeats": self.f_x_best_repeats,
            "k": self.k,
            "k_cost": self.k_cost,
            "seed": self.seed,
        }

    def _check_inputs(self) -> None:
        if self.state == AnnealState.NEEDS_OBJECTIVE_SET and not self._has_f_x_plusdelta:
            raise AnnealerStateError(
                "Objective values at probe points x_plusdelta are required, set f_x_plusdelta before calling step()."
            )

        if not self._has_f_x_cand:
            raise AnnealerStateError(
                "Objective value at candidate x_cand is required, set f_x_cand before calling step()."
            )

    def _stop_check(self) -> bool:
        if self._parameters.exit_at_T_f and np.mean(self.T_k) < np.mean(self.T_f):
            self.reason_for_exit = StopCondition.T_K_BELOW_T_F

        elif np.min(self.T_k) <= EPSILON:
            self.reason_for_exit = StopCondition.T_K_BELOW_EPSILON

        elif np.min(self.T_cost) <= EPSILON:
            self.reason_for_exit = StopCondition.T_COST_BELOW_EPSILON

        elif self.f_x_best_repeats >= self._parameters.f_x_best_repeat_max:
            self.reason_for_exit = StopCondition.F_X_BEST_REPEATED

        else:
            return False

        logger.info("%s; stopping after %d steps.", self.reason_for_exit.value, self.steps)
        return True

    def _cooling_schedule(self) -> None:
        # T_k drives candidate generation and drops with the step count k, T_cost drives acceptance and drops with the
        # number of accepted candidates
        self.T_k = T(self.k, self.T_0, self.c)
        self.T_cost = T(self.k_cost, self.T_cost_0, self.c_cost)

        logger.debug(
            "T_i(k=%d[%d]) = %.6g [T_f=%.6g]; T_cost(n_acc=%d) = %.6g, f_x_best = %.6g",
            self.k,
            self.k_f,
            float(np.mean(self.T_k)),
            float(np.mean(self.T_f)),
            self.k_cost,
            float(np.mean(self.T_cost)),
            self._f_x_best,
        )

    def _is_better(self, value: float, reference: float, precision: float = 0.0) -> bool:
        if self._parameters.downhill:
            return value - reference + precision < 0

        return value - reference - precision > 0

    def _acceptance_check(self) -> None:
        candidate_is_better = self._is_better(self._f_x_cand, self._f_x)

        if candidate_is_better:
            self.num_improved += 1

        else:
            self.num_worse += 1

        p = acceptance_probability(
            self._f_x, self._f_x_cand, float(np.mean(self.T_cost)), self._parameters.downhill
        )
        accepted = p >= self._rng.random()

        if not accepted:
            self.history.store_rejected(self._x, self._f_x)
            return

        if not candidate_is_better:
            self.num_worse_accepted += 1

        self.k_cost += 1
        self.num_accepted += 1
        self.num_accepted_recently += 1

        precision = self._parameters.objective_repeat_precision
        if abs(self._f_x_cand - self._f_x_best) <= precision:
            self.f_x_best_repeats += 1

        if self._is_better(self._f_x_cand, self._f_x_best, precision):
            self.f_x_best_repeats = 0
            self._x_best = self._x_cand.copy()
            self._f_x_best = self._f_x_cand
            self.num_accepted_best = self.num_accepted
            self.num_generated_best = self.num_generated
            self.num_accepted_recently = 0
            self.num_generated_recently = 0

        self._x = self._x_cand.copy()
        self._f_x = self._f_x_cand
        self.history.store_accepted(self._x, self._f_x)

    def _generate_next(self) -> None:
        self._x_cand = self._generate.get_proposal(
            self._x, State(self.T_k, self.delta_param), self._rng
        )

        self.num_generated += 1
        self.num_generated_recently += 1

    def _reanneal_test(self) -> bool:
        if self.k_r < MIN_STEPS_TO_REANNEAL:
            return False

        ratio = accepted_vs_generated(self.num_accepted_recently, self.num_generated_recently)

        if self.k_r < self._parameters.reanneal_after_steps and ratio >= self._parameters.acc_gen_reanneal_ratio:
            return False

        if ratio < self._parameters.acc_gen_reanneal_ratio:
            self.num_accepted_recently = 0
            self.num_generated_recently = 0

        # restart from the best position and ask for the objective around it
        self._x = self._x_best.copy()
        self._f_x = self._f_x_best
        self._x_plusdelta = self._probe.get_proposal(
            self._x, State(self.T_k, self.delta_param), self._rng
        )

        logger.info(
            "Reannealing at step %d (%d steps since last reanneal, accepted/generated = %.4g).",
            self.steps,
            self.k_r,
            ratio,
        )
        return True

    def _complete_reanneal(self) -> None:
        tangents = sensitivities(self._f_x, self._f_x_plusdelta, self._x, self._x_plusdelta)

        if not np.all(np.isfinite(tangents)):
            raise NonFiniteSensitivityError(
                f"NaN or inf in estimated sensitivities {tangents} at x = {self._x} (f_x = {self._f_x}, "
                f"f_x_plusdelta = {self._f_x_plusdelta})."
            )

        if np.any(tangents == 0):
            # probes were too close to x to see any change in the objective : widen them and reanneal later
            logger.info(
                "Sensitivities had a zero, doubling delta_param from %.4g to %.4g.",
                self.delta_param,
                self.delta_param * 2,
            )
            self.tangents = tangents
            self.delta_param *= 2
            return

        abs_tangents = np.abs(tangents)
        max_tangent = np.max(abs_tangents)
        # leave temperatures of insensitive dimensions as is
        abs_tangents[abs_tangents < EPSILON] = max_tangent

        T_re = np.abs(self.T_k * (max_tangent / abs_tangents))

        if np.any(T_re <= 0) or not np.all(np.isfinite(T_re)):
            raise NonPositiveTemperatureError(
                f"Cannot update k from rescaled temperatures {T_re}, temperatures must be > 0."
            )

        k_re = k_from_T(self.T_0, T_re, self.c)

        # rescale the acceptance temperature from the spread between f_x and f_x_best
        f_spread = abs(self._f_x_best - self._f_x)
        T_cost_0 = np.minimum(
            self.T_cost_0, max(abs(self._f_x), abs(self._f_x_best), f_spread, EPSILON)
        )
        T_cost_reached = np.minimum(T_cost_0, max(f_spread, float(np.max(self.T_cost)), EPSILON))
        k_cost = int(
            EPSILON
            + np.mean(
                (np.abs(np.log((T_cost_0 + EPSILON) / T_cost_reached)) / self.c_cost) ** self.D
            )
        )

        logger.info(
            "Reanneal done. T_i(k): %.5g --> %.5g and k: %d --> %d; k_cost: %d --> %d.",
            float(np.mean(self.T_k)),
            float(np.mean(T_re)),
            self.k,
            k_re,
            self.k_cost,
            k_cost,
        )

        self.tangents = tangents
        self.k = k_re
        self.T_k = T_re
        self.T_cost_0 = T_cost_0
        self.k_cost = k_cost
        self.T_cost = T(self.k_cost, self.T_cost_0, self.c_cost)
        self.k_r = 0
        self.num_reanneals += 1

    # endregion
