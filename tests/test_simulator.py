import math

import numpy as np

from integrators import Method, StepOutcome
from simulator import record_trajectory, simulate_ensemble
from universe import Universe


def test_record_trajectory_shapes():
    universe = Universe()
    t, x, y, outcomes = record_trajectory(universe, 1.0, 12)
    assert t.shape == (12,)
    assert x.shape == (12, 2) and y.shape == (12, 2)
    assert outcomes == [StepOutcome.APPLIED] * 12
    bob = universe.get_bob(1)
    assert x[-1, 1] == bob.position.x
    assert y[-1, 1] == bob.position.y
    assert t[-1] == 12.0


def test_record_trajectory_stops_on_not_implemented():
    universe = Universe()
    universe.set_method(Method.HAMILTONIAN)
    t, x, y, outcomes = record_trajectory(universe, 1.0, 5)
    assert outcomes == [StepOutcome.NOT_IMPLEMENTED]
    assert len(t) == 0 and x.shape == (0, 2)


def test_record_trajectory_while_paused():
    universe = Universe()
    universe.set_paused(True)
    _, x, _, outcomes = record_trajectory(universe, 1.0, 3)
    assert outcomes == [StepOutcome.SKIPPED] * 3
    assert np.all(x[:, 0] == x[0, 0])


def test_ensemble_shapes_and_links():
    t, x, y = simulate_ensemble(N=2, T=0.2, M=2, perturbation=1e-3, fps=20, processes=1)
    assert t.shape == (4,)
    assert x.shape == (4, 3, 2) and y.shape == (4, 3, 2)
    assert np.all(x[:, 0, :] == 0.0) and np.all(y[:, 0, :] == 0.0)
    link = np.hypot(np.diff(x, axis=1), np.diff(y, axis=1))
    np.testing.assert_allclose(link, 1.0, rtol=1e-12)
    assert abs(x[0, 1, 0] - 1.0) < 1e-12


def test_engine_rk4_agrees_with_ensemble():
    universe = Universe()
    universe.set_method(Method.RK4)
    universe.set_speed(4.0)  # effective step == dt
    for _ in range(200):
        assert universe.advance(0.001) is StepOutcome.APPLIED

    t, x, y = simulate_ensemble(N=2, T=0.2, M=1, perturbation=0.0, gravity=9.8, fps=20, processes=1)
    assert abs(t[-1] - 0.2) < 1e-15
    for k in range(2):
        theta_ref = math.atan2(x[-1, k + 1, 0] - x[-1, k, 0], y[-1, k + 1, 0] - y[-1, k, 0])
        assert abs(universe.get_bob(k).theta - theta_ref) < 1e-6
