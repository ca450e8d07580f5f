"""
Time integrators for the pendulum chain.

Each stepper advances the chain's (theta, omega) state by one effective step, runs the
forward-kinematics pass and records a trail point per bob. A stepper never mutates the
chain when it reports anything other than APPLIED.

Numerical notes
- Semi-implicit Euler updates omega first and then theta with the new omega. It is cheap
  but only stable for short chains, which is why the Euler bob cap is low.
- RK4 is not symplectic; energy slowly drifts over long runs.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Dict

import numpy as np

from chain import Chain
from dynamics import solve_accelerations

logger = logging.getLogger(__name__)

# Empirical stabilization factor applied on top of the host's speed multiplier.
STEP_SCALE = 0.25
TRAIL_CAPACITY = 250


class Method(str, enum.Enum):
    EULER = "euler"
    RK4 = "rk4"
    HAMILTONIAN = "hamiltonian"


class StepOutcome(enum.Enum):
    APPLIED = 0
    SKIPPED = 1
    ABORTED = 2
    NOT_IMPLEMENTED = 3


def effective_dt(dt: float, speed: float) -> float:
    return dt * speed * STEP_SCALE


def euler_step(chain: Chain, gravity: float, h: float) -> StepOutcome:
    theta = chain.thetas()
    omega = chain.omegas()

    _, theta_ddot = solve_accelerations(theta, omega, gravity)
    if np.isnan(theta_ddot).any():
        logger.warning("Euler step aborted: NaN accelerations for %d bobs", len(chain))
        return StepOutcome.ABORTED

    omega = omega + theta_ddot * h
    theta = theta + omega * h

    chain.apply_state(theta, omega)
    chain.record_trails(TRAIL_CAPACITY)
    return StepOutcome.APPLIED


def rk4_step(chain: Chain, gravity: float, h: float) -> StepOutcome:
    theta = chain.thetas()
    omega = chain.omegas()

    k1 = solve_accelerations(theta, omega, gravity)
    k2 = solve_accelerations(theta + k1[0] * (0.5 * h), omega + k1[1] * (0.5 * h), gravity)
    k3 = solve_accelerations(theta + k2[0] * (0.5 * h), omega + k2[1] * (0.5 * h), gravity)
    k4 = solve_accelerations(theta + k3[0] * h, omega + k3[1] * h, gravity)

    if any(np.isnan(k[1]).any() for k in (k1, k2, k3, k4)):
        logger.warning("RK4 step aborted: NaN accelerations for %d bobs", len(chain))
        return StepOutcome.ABORTED

    theta_delta = (k1[0] + k2[0] * 2.0 + k3[0] * 2.0 + k4[0]) * (h / 6.0)
    omega_delta = (k1[1] + k2[1] * 2.0 + k3[1] * 2.0 + k4[1]) * (h / 6.0)

    chain.apply_state(theta + theta_delta, omega + omega_delta)
    chain.record_trails(TRAIL_CAPACITY)
    return StepOutcome.APPLIED


def hamiltonian_step(chain: Chain, gravity: float, h: float) -> StepOutcome:
    logger.warning("Hamiltonian integration is not implemented; chain left unchanged")
    return StepOutcome.NOT_IMPLEMENTED


STEPPERS: Dict[Method, Callable[[Chain, float, float], StepOutcome]] = {
    Method.EULER: euler_step,
    Method.RK4: rk4_step,
    Method.HAMILTONIAN: hamiltonian_step,
}


def step(chain: Chain, method: Method, gravity: float, h: float) -> StepOutcome:
    return STEPPERS[Method(method)](chain, gravity, h)
