# coding: utf-8

# ====================================================
# imports
import logging

import pytest
import numpy as np

from asann import Annealer
from asann import AnnealState
from asann import NeedsObjective
from asann import NeedsObjectiveSet
from asann import StopCondition
from asann import Stopped
from asann.compute import EPSILON
from asann.compute import T
from asann.errors import ShapeError
from asann.errors import AnnealerStateError
from asann.errors import NonFiniteSensitivityError
from asann.errors import NonPositiveTemperatureError


# ====================================================
# code
def _constant(x: np.ndarray) -> float:
    return 1.5


def _paraboloid(x: np.ndarray) -> float:
    return float((x[0] - 3) ** 2 + 2 * (x[1] - 1) ** 2)


# protocol --------------------------------------------------------------------
def test_step_before_initialize(BOUNDS):
    annealer = Annealer([5.0], BOUNDS, seed=42)

    assert annealer.state == AnnealState.UNINITIALIZED

    with pytest.raises(AnnealerStateError):
        annealer.step()

    with pytest.raises(AnnealerStateError):
        annealer.request


def test_initialize(BOUNDS):
    annealer = Annealer([5.0], BOUNDS, seed=42)
    request = annealer.initialize()

    assert isinstance(request, NeedsObjective)
    assert np.array_equal(request.x, [5.0])
    assert annealer.state == AnnealState.NEEDS_OBJECTIVE
    assert annealer.f_x_best == np.finfo(np.float64).max
    assert np.allclose(annealer.c, -np.log(1e-5) / 100)
    assert np.allclose(annealer.T_f, 1e-5)
    assert abs(annealer.k_f - 100) <= 1

    with pytest.raises(AnnealerStateError):
        annealer.initialize()


def test_configure(BOUNDS):
    annealer = Annealer([5.0], BOUNDS, seed=42, delta_param=0.05)
    params = annealer.configure(downhill=False, f_x_best_repeat_max=3)

    assert not params.downhill
    assert params.f_x_best_repeat_max == 3
    assert params.delta_param == 0.05

    annealer.initialize()
    assert annealer.f_x_best == -np.finfo(np.float64).max

    with pytest.raises(AnnealerStateError):
        annealer.configure(downhill=True)


def test_step_requires_objective(BOUNDS):
    annealer = Annealer([5.0], BOUNDS, seed=42)
    annealer.initialize()

    with pytest.raises(AnnealerStateError):
        annealer.step()

    annealer.f_x_cand = 4.0
    annealer.step()

    # values are consumed by step()
    with pytest.raises(AnnealerStateError):
        annealer.step()


def test_step_requires_objective_set(BOUNDS, quadratic, step_until_reanneal):
    annealer = Annealer([5.0], BOUNDS, seed=42, reanneal_after_steps=10, f_x_best_repeat_max=1000)
    request = step_until_reanneal(annealer, quadratic)

    annealer.f_x_cand = quadratic(request.x)

    with pytest.raises(AnnealerStateError):
        annealer.step()

    with pytest.raises(ShapeError):
        annealer.f_x_plusdelta = [1.0, 2.0]


def test_step_requires_candidate_when_reannealing(BOUNDS, quadratic, step_until_reanneal):
    annealer = Annealer([5.0], BOUNDS, seed=42, reanneal_after_steps=10, f_x_best_repeat_max=1000)
    request = step_until_reanneal(annealer, quadratic)

    annealer.f_x_plusdelta = [quadratic(probe) for probe in request.probes]

    with pytest.raises(AnnealerStateError, match="x_cand"):
        annealer.step()

    annealer.f_x_cand = quadratic(request.x)
    annealer.step()

    assert annealer.num_reanneals == 1


def test_stop_check_comes_before_inputs(BOUNDS, quadratic):
    annealer = Annealer([5.0], BOUNDS, seed=42)
    request = annealer.initialize()

    annealer.f_x_cand = quadratic(request.x)
    annealer.step()

    annealer.T_k = np.full(1, EPSILON)
    request = annealer.step()

    assert isinstance(request, Stopped)
    assert request.reason == StopCondition.T_K_BELOW_EPSILON
    assert annealer.steps == 1


def test_first_candidate_is_accepted(BOUNDS, quadratic):
    annealer = Annealer([5.0], BOUNDS, seed=42)
    request = annealer.initialize()

    annealer.f_x_cand = quadratic(request.x)
    annealer.step()

    assert len(annealer.history.accepted) == 1
    assert annealer.history.accepted.costs[-1] == 4.0
    assert annealer.statistics()["acceptance_fraction"] == 1.0
    assert np.array_equal(annealer.x_best, [5.0])
    assert annealer.f_x_best == 4.0
    assert annealer.f_x == 4.0
    assert annealer.num_improved == 1


def test_repr(BOUNDS):
    assert "uninitialized" in repr(Annealer([5.0], BOUNDS, seed=42))


# properties ------------------------------------------------------------------
def test_candidates_within_bounds(drive):
    bounds = [(0.0, 10.0), (0.5, 1.5)]
    annealer = Annealer([5.0, 1.4], bounds, seed=1, reanneal_after_steps=20)

    requested = np.array(drive(annealer, _paraboloid, max_steps=2000))

    assert annealer.num_reanneals > 0
    assert np.all(requested >= [0.0, 0.5])
    assert np.all(requested <= [10.0, 1.5])


def test_temperatures_decrease_between_reanneals(drive):
    records = []

    def record(annealer: Annealer) -> None:
        records.append((annealer.num_reanneals, annealer.T_k.copy(), annealer.T_cost.copy()))

    annealer = Annealer([5.0, 1.4], [(0.0, 10.0), (0.5, 1.5)], seed=3, reanneal_after_steps=30)
    drive(annealer, _paraboloid, max_steps=2000, on_step=record)

    for (reanneals, T_k, T_cost), (next_reanneals, next_T_k, next_T_cost) in zip(records, records[1:]):
        assert np.all(next_T_k >= EPSILON)
        assert np.all(next_T_cost >= EPSILON)

        if reanneals == next_reanneals:
            assert np.all(next_T_k <= T_k)
            assert np.all(next_T_cost <= T_cost)


@pytest.mark.parametrize("downhill", [True, False])
def test_best_never_regresses(downhill, drive):
    sign = 1 if downhill else -1
    best = []

    annealer = Annealer(
        [5.0, 1.4], [(0.0, 10.0), (0.5, 1.5)], seed=5, downhill=downhill, reanneal_after_steps=25
    )
    drive(
        annealer,
        lambda x: sign * _paraboloid(x),
        max_steps=1500,
        on_step=lambda a: best.append(a.f_x_best),
    )

    best = np.array(best)
    if downhill:
        assert np.all(np.diff(best) <= 0)

    else:
        assert np.all(np.diff(best) >= 0)


def test_history_length(BOUNDS, quadratic, drive):
    annealer = Annealer([5.0], BOUNDS, seed=42)
    drive(annealer, quadratic, max_steps=300)

    assert len(annealer.history) == annealer.steps
    assert len(annealer.history.accepted) == annealer.num_accepted
    assert len(annealer.history.accepted) + len(annealer.history.rejected) == annealer.num_improved + annealer.num_worse
    assert annealer.history.as_dict()["param_hist_accepted"].shape == (annealer.num_accepted, 1)
    assert np.isclose(annealer.statistics()["acceptance_fraction"], annealer.num_accepted / annealer.steps)


def test_determinism(drive):
    def run(seed: int) -> Annealer:
        annealer = Annealer([5.0, 1.4], [(0.0, 10.0), (0.5, 1.5)], seed=seed, reanneal_after_steps=20)
        drive(annealer, _paraboloid, max_steps=1000)
        return annealer

    first, second, other = run(12), run(12), run(13)

    assert np.array_equal(first.history.accepted.x, second.history.accepted.x)
    assert np.array_equal(first.history.accepted.costs, second.history.accepted.costs)
    assert np.array_equal(first.history.rejected.x, second.history.rejected.x)
    assert np.array_equal(first.x_best, second.x_best)
    assert first.statistics() | {"x_best": None} == second.statistics() | {"x_best": None}

    assert not np.array_equal(first.history.accepted.costs, other.history.accepted.costs)


# scenarios -------------------------------------------------------------------
def test_quadratic_converges(BOUNDS, quadratic, drive):
    annealer = Annealer([5.0], BOUNDS, seed=42)
    drive(annealer, quadratic)

    assert annealer.is_stopped
    assert annealer.reason_for_exit != StopCondition.UNKNOWN
    assert np.allclose(annealer.x_best, [3.0], atol=1e-2)


def test_quadratic_converges_uphill(BOUNDS, quadratic, drive):
    annealer = Annealer([5.0], BOUNDS, seed=42, downhill=False)
    drive(annealer, lambda x: -quadratic(x))

    assert annealer.is_stopped
    assert np.allclose(annealer.x_best, [3.0], atol=1e-2)


def test_zero_tangent_doubles_delta_param(BOUNDS, quadratic, step_until_reanneal):
    annealer = Annealer([5.0], BOUNDS, seed=42, reanneal_after_steps=10, f_x_best_repeat_max=1000)
    request = step_until_reanneal(annealer, quadratic)

    k = annealer.k
    delta_param = annealer.delta_param

    annealer.f_x_plusdelta = [annealer.f_x]
    annealer.f_x_cand = quadratic(request.x)
    annealer.step()

    assert annealer.delta_param == 2 * delta_param
    assert np.all(annealer.tangents == 0)
    assert annealer.num_reanneals == 0
    # only the regular cooling schedule ran
    assert annealer.k == k + 1
    assert np.array_equal(annealer.T_k, T(k, annealer.T_0, annealer.c))


def test_reanneal_completes(BOUNDS, quadratic, step_until_reanneal, caplog):
    annealer = Annealer([5.0], BOUNDS, seed=42, reanneal_after_steps=10, f_x_best_repeat_max=1000)

    with caplog.at_level(logging.INFO, logger="asann.annealer"):
        request = step_until_reanneal(annealer, quadratic)

        assert np.array_equal(request.probes, annealer.x_plusdelta)
        assert np.array_equal(annealer.x, annealer.x_best)
        assert annealer.f_x == annealer.f_x_best

        annealer.f_x_plusdelta = [quadratic(probe) for probe in request.probes]
        annealer.f_x_cand = quadratic(request.x)
        annealer.step()

    assert "Reannealing" in caplog.text
    assert "Reanneal done" in caplog.text
    assert annealer.num_reanneals == 1
    assert annealer.k_r == 1
    assert np.all(annealer.tangents != 0)


def test_nan_probe_is_fatal(BOUNDS, quadratic, step_until_reanneal):
    annealer = Annealer([5.0], BOUNDS, seed=42, reanneal_after_steps=10, f_x_best_repeat_max=1000)
    request = step_until_reanneal(annealer, quadratic)

    T_k, k, steps = annealer.T_k.copy(), annealer.k, annealer.steps

    annealer.f_x_plusdelta = [np.nan]
    annealer.f_x_cand = quadratic(request.x)

    with pytest.raises(NonFiniteSensitivityError):
        annealer.step()

    assert np.array_equal(annealer.T_k, T_k)
    assert annealer.k == k
    assert annealer.steps == steps
    assert annealer.state == AnnealState.NEEDS_OBJECTIVE_SET


def test_overflowing_rescale_is_fatal(step_until_reanneal):
    annealer = Annealer(
        [5.0, 1.4], [(0.0, 10.0), (0.5, 1.5)], seed=42, reanneal_after_steps=10, f_x_best_repeat_max=1000
    )
    request = step_until_reanneal(annealer, _paraboloid)

    annealer.T_k = np.full(2, 1e300)
    T_k, k, steps, tangents = annealer.T_k.copy(), annealer.k, annealer.steps, annealer.tangents.copy()

    # very different sensitivities push the rescaled temperature of the flat dimension to inf
    dx = np.diagonal(request.probes) - annealer.x
    annealer.f_x_plusdelta = annealer.f_x + np.array([1e6, 1e-6]) * dx
    annealer.f_x_cand = _paraboloid(request.x)

    with np.errstate(over="ignore"), pytest.raises(NonPositiveTemperatureError):
        annealer.step()

    assert np.array_equal(annealer.T_k, T_k)
    assert np.array_equal(annealer.tangents, tangents)
    assert annealer.k == k
    assert annealer.steps == steps
    assert annealer.num_reanneals == 0
    assert annealer.state == AnnealState.NEEDS_OBJECTIVE_SET


def test_constant_objective_stops_on_repeat(BOUNDS, drive):
    annealer = Annealer([5.0], BOUNDS, seed=42, f_x_best_repeat_max=1)
    drive(annealer, _constant)

    assert annealer.reason_for_exit == StopCondition.F_X_BEST_REPEATED
    # the initial point, then the first accepted candidate repeating the best value
    assert annealer.steps == 2
    assert annealer.num_accepted == 2
    assert annealer.f_x_best == 1.5


def test_exit_at_T_f(BOUNDS, quadratic, drive):
    annealer = Annealer(
        [5.0], BOUNDS, seed=42, exit_at_T_f=True, enable_reanneal=False, f_x_best_repeat_max=1000
    )
    drive(annealer, quadratic)

    assert annealer.reason_for_exit == StopCondition.T_K_BELOW_T_F
    assert np.mean(annealer.T_k) < np.mean(annealer.T_f)


def test_stopped_annealer_does_not_change(BOUNDS, drive):
    annealer = Annealer([5.0], BOUNDS, seed=42, f_x_best_repeat_max=1)
    drive(annealer, _constant)

    statistics = annealer.statistics()
    request = annealer.step()

    assert isinstance(request, Stopped)
    assert request.reason == StopCondition.F_X_BEST_REPEATED
    assert annealer.statistics()["steps"] == statistics["steps"]
    assert annealer.statistics()["num_generated"] == statistics["num_generated"]


def test_reanneal_disabled(BOUNDS, quadratic, drive):
    requests = []

    annealer = Annealer([5.0], BOUNDS, seed=42, enable_reanneal=False, reanneal_after_steps=10)
    drive(annealer, quadratic, on_step=lambda a: requests.append(a.request))

    assert annealer.num_reanneals == 0
    assert not any(isinstance(request, NeedsObjectiveSet) for request in requests)


def test_param_names(BOUNDS):
    annealer = Annealer([5.0], BOUNDS, seed=42, param_names=["alpha"])
    assert annealer.history.param_names == ["alpha"]

    with pytest.raises(ShapeError):
        Annealer([5.0], BOUNDS, seed=42, param_names=["alpha", "beta"])
