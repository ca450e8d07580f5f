import math

import numpy as np

from dynamics import (
    build_equations_of_motion,
    coupling_matrix,
    forcing_vector,
    mass_matrix,
    solve_accelerations,
)


def closed_form_double_pendulum(th1, w1, th2, w2, g, m1=1.0, m2=1.0, l1=1.0, l2=1.0):
    """Textbook two-body pendulum accelerations, independent of the matrix form."""
    delta = th1 - th2
    denom = 2.0 * m1 + m2 - m2 * math.cos(2.0 * delta)

    num1 = -g * (2.0 * m1 + m2) * math.sin(th1)
    num1 -= m2 * g * math.sin(th1 - 2.0 * th2)
    num1 -= 2.0 * math.sin(delta) * m2 * (w2 * w2 * l2 + w1 * w1 * l1 * math.cos(delta))

    num2 = 2.0 * math.sin(delta) * (
        w1 * w1 * l1 * (m1 + m2)
        + g * (m1 + m2) * math.cos(th1)
        + w2 * w2 * l2 * m2 * math.cos(delta)
    )
    return num1 / (l1 * denom), num2 / (l2 * denom)


def test_coupling_matrix_counts_masses_beyond_joint():
    expected = np.array([
        [3.0, 2.0, 1.0],
        [2.0, 2.0, 1.0],
        [1.0, 1.0, 1.0],
    ])
    assert np.array_equal(coupling_matrix(3), expected)


def test_mass_matrix_is_symmetric():
    rng = np.random.default_rng(7)
    for n in (1, 2, 3, 5, 12):
        theta = rng.uniform(-10.0, 10.0, size=n)
        M = mass_matrix(theta)
        assert M.shape == (n, n)
        assert np.array_equal(M, M.T)


def test_two_body_matches_closed_form():
    rng = np.random.default_rng(11)
    for _ in range(50):
        th1, th2 = rng.uniform(-math.pi, math.pi, size=2)
        w1, w2 = rng.uniform(-5.0, 5.0, size=2)
        g = rng.uniform(0.0, 30.0)

        theta_dot, theta_ddot = solve_accelerations(np.array([th1, th2]), np.array([w1, w2]), g)
        a1, a2 = closed_form_double_pendulum(th1, w1, th2, w2, g)

        np.testing.assert_allclose(theta_dot, [w1, w2])
        np.testing.assert_allclose(theta_ddot, [a1, a2], rtol=1e-9, atol=1e-12)


def test_single_link_is_simple_pendulum():
    _, theta_ddot = solve_accelerations(np.array([0.4]), np.array([2.0]), 9.8)
    assert abs(theta_ddot[0] - (-9.8 * math.sin(0.4))) < 1e-12


def test_forcing_vector_at_rest_is_gravity_only():
    theta = np.array([0.5, 0.5, 0.5])
    b = forcing_vector(theta, np.zeros(3), 2.0)
    np.testing.assert_allclose(b, -2.0 * np.array([3.0, 2.0, 1.0]) * math.sin(0.5))


def test_singular_matrix_falls_back_to_zero(monkeypatch):
    def singular(a, b):
        raise np.linalg.LinAlgError("Singular matrix")

    monkeypatch.setattr(np.linalg, "solve", singular)
    omega = np.array([1.0, 2.0, 3.0])
    theta_dot, theta_ddot = solve_accelerations(np.array([0.1, 0.2, 0.3]), omega, 9.8)
    assert np.array_equal(theta_ddot, np.zeros(3))
    assert np.array_equal(theta_dot, omega)


def test_theta_dot_is_a_copy():
    omega = np.array([1.0, -1.0])
    theta_dot, _ = solve_accelerations(np.array([0.0, 0.0]), omega, 9.8)
    theta_dot[0] = 99.0
    assert omega[0] == 1.0


def test_nan_inputs_surface_as_nan():
    _, theta_ddot = solve_accelerations(np.array([math.pi / 2, math.pi / 2]), np.array([math.inf, 0.0]), 9.8)
    assert np.isnan(theta_ddot).any()


def test_equations_of_motion_packs_state():
    f = build_equations_of_motion(3, 9.8)
    u = np.array([0.1, 0.2, 0.3, 1.0, 2.0, 3.0])
    du = f(0.0, u)
    assert du.shape == (6,)
    np.testing.assert_allclose(du[:3], u[3:])
    _, expected = solve_accelerations(u[:3], u[3:], 9.8)
    np.testing.assert_allclose(du[3:], expected)
