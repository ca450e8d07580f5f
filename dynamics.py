"""
Equations of motion for an N-link pendulum in generalized coordinates.

Every link is treated with the same effective inertia, so the Lagrangian reduces to
a coupling matrix that counts how many masses lie beyond joint i/j:

    M[i][j] = (N - max(i, j)) * cos(theta_i - theta_j)
    b[i]    = -sum_j (N - max(i, j)) * sin(theta_i - theta_j) * omega_j^2
              - g * (N - i) * sin(theta_i)

and the angular accelerations solve M @ theta_ddot = b.
"""

from __future__ import annotations

import logging
from typing import Callable, Tuple

import numpy as np

logger = logging.getLogger(__name__)


def coupling_matrix(N: int) -> np.ndarray:
    idx = np.arange(N, dtype=float)
    return (N - np.maximum.outer(idx, idx)).astype(float)


def mass_matrix(theta: np.ndarray) -> np.ndarray:
    theta = np.asarray(theta, dtype=float)
    # |delta| keeps M[i][j] and M[j][i] bit-identical.
    delta = np.abs(theta[:, None] - theta[None, :])
    return coupling_matrix(len(theta)) * np.cos(delta)


def forcing_vector(theta: np.ndarray, omega: np.ndarray, gravity: float) -> np.ndarray:
    theta = np.asarray(theta, dtype=float)
    omega = np.asarray(omega, dtype=float)
    N = len(theta)

    delta = theta[:, None] - theta[None, :]
    centrifugal = (coupling_matrix(N) * np.sin(delta)) @ (omega**2)
    gravity_term = gravity * (N - np.arange(N, dtype=float)) * np.sin(theta)
    return -centrifugal - gravity_term


def solve_accelerations(
    theta: np.ndarray,
    omega: np.ndarray,
    gravity: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return ``(theta_dot, theta_ddot)`` for the chain state.

    theta_dot is omega passed through unchanged. When the mass matrix cannot be
    factorized the accelerations fall back to zero so the caller's step still
    completes. NaN inputs are not trapped here; they surface as NaN accelerations.
    """
    omega = np.asarray(omega, dtype=float)
    A = mass_matrix(theta)
    b = forcing_vector(theta, omega, gravity)

    try:
        theta_ddot = np.linalg.solve(A, b)
    except np.linalg.LinAlgError:
        logger.debug("Singular mass matrix for N=%d, using zero accelerations", len(b))
        theta_ddot = np.zeros(len(b))

    return omega.copy(), theta_ddot


def build_equations_of_motion(N: int, gravity: float) -> Callable:
    """
    Right-hand side ``f(t, u)`` for ``scipy.integrate.solve_ivp``.

    The state is packed as ``u = [theta_0..theta_{N-1}, omega_0..omega_{N-1}]``.
    """

    def equations_of_motion(t: float, u: np.ndarray) -> np.ndarray:
        """Return time derivative of state [theta, omega]."""
        theta_dot, theta_ddot = solve_accelerations(u[:N], u[N:], gravity)
        return np.concatenate([theta_dot, theta_ddot])

    return equations_of_motion
