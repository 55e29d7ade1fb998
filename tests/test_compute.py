# coding: utf-8

# ====================================================
# imports
import numpy as np

from asann.compute import EPSILON
from asann.compute import T
from asann.compute import k_from_T
from asann.compute import sensitivities
from asann.compute import ingber_offset
from asann.compute import control_constants
from asann.compute import accepted_vs_generated
from asann.compute import acceptance_probability


# ====================================================
# code
def test_control_constants():
    m, n, c = control_constants(1e-5, 100, 1)

    assert np.allclose(m, -np.log(1e-5))
    assert np.allclose(n, np.log(100))
    assert np.allclose(c, -np.log(1e-5) / 100)

    m, n, c = control_constants(1e-5, 100, 4)

    assert m.shape == n.shape == c.shape == (4,)
    assert np.allclose(c, m * np.exp(-n / 4))


def test_T_decreases_with_k():
    _, _, c = control_constants(1e-5, 100, 2)
    T_0 = np.ones(2)

    assert np.allclose(T(0, T_0, c), T_0)

    temperatures = [T(k, T_0, c) for k in range(1, 200)]

    assert all(np.all(t_next <= t) for t, t_next in zip(temperatures, temperatures[1:]))


def test_T_is_floored():
    _, _, c = control_constants(1e-5, 100, 1)

    assert np.all(T(10**9, np.ones(1), c) == EPSILON)


def test_k_from_T_inverts_T():
    _, _, c = control_constants(1e-5, 100, 3)
    T_0 = np.ones(3)

    for k in (1, 50, 500):
        assert abs(k_from_T(T_0, T(k, T_0, c), c) - k) <= 1


def test_k_from_T_above_T_0():
    _, _, c = control_constants(1e-5, 100, 1)

    assert k_from_T(np.ones(1), np.array([2.0]), c) == 0


def test_acceptance_probability_downhill():
    assert acceptance_probability(1.0, 0.5, 0.1) == 1.0
    assert acceptance_probability(1.0, 1.0, 0.1) == 1.0
    assert np.isclose(acceptance_probability(1.0, 2.0, 1.0), np.exp(-1 / (1 + EPSILON)))
    assert acceptance_probability(0.0, 1e6, 1e-3) == 0.0


def test_acceptance_probability_uphill():
    assert acceptance_probability(0.5, 1.0, 0.1, downhill=False) == 1.0
    assert np.isclose(
        acceptance_probability(2.0, 1.0, 1.0, downhill=False), np.exp(-1 / (1 + EPSILON))
    )


def test_acceptance_probability_worst_start():
    worst = float(np.finfo(np.float64).max)

    assert acceptance_probability(worst, 12.0, 0.1) == 1.0
    assert acceptance_probability(-worst, 12.0, 0.1, downhill=False) == 1.0


def test_acceptance_probability_nan():
    assert acceptance_probability(1.0, np.nan, 0.1) == 0.0


def test_accepted_vs_generated():
    assert accepted_vs_generated(0, 0) == 1.0
    assert accepted_vs_generated(1, 3) == 0.5
    assert accepted_vs_generated(0, 99) == 0.01


def test_sensitivities():
    x = np.array([1.0, 2.0])
    x_plusdelta = np.array([[1.01, 2.0], [1.0, 2.02]])

    tangents = sensitivities(0.0, np.array([0.01, 0.04]), x, x_plusdelta)

    assert np.allclose(tangents, [1.0, 2.0])


def test_sensitivities_non_finite():
    x = np.array([1.0])

    assert np.isnan(sensitivities(0.0, np.array([np.nan]), x, np.array([[1.01]])))[0]


def test_ingber_offset():
    temperature = np.full(5, 0.5)

    assert np.allclose(ingber_offset(np.full(5, 0.5), temperature), 0.0)
    assert np.allclose(ingber_offset(np.zeros(5), temperature), -1.0)

    u = np.random.default_rng(0).random((1000, 5))
    offsets = np.array([ingber_offset(_u, temperature) for _u in u])

    assert np.all(np.abs(offsets) <= 1.0)


def test_ingber_offset_narrows_with_temperature():
    u = np.random.default_rng(0).random(1000)

    hot = np.median(np.abs(ingber_offset(u, np.full(1000, 1.0))))
    cold = np.median(np.abs(ingber_offset(u, np.full(1000, 1e-6))))

    assert cold < hot
