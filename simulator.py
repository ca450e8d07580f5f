"""
Headless N-Pendulum runs
Drive the interactive engine without a host, or integrate a perturbed ensemble offline
"""

from __future__ import annotations

import multiprocessing as mp
import time
from typing import Iterable, List, Tuple

import dill
import numpy as np
from scipy.integrate import solve_ivp

from dynamics import build_equations_of_motion
from integrators import StepOutcome
from universe import Universe

_worker_equations = None
_worker_t = None
_worker_T = None
_worker_solver_kwargs = None
_worker_N = None
_worker_M = None
_worker_perturbation = None

SOLVER_KWARGS = dict(
    method='DOP853',  # High-order Runge-Kutta method
    rtol=1e-13,
    atol=1e-16,
    max_step=5e-3,
    first_step=1e-5,
)


def record_trajectory(
    universe: Universe,
    dt: float,
    frames: int,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, List[StepOutcome]]:
    """
    Tick ``universe`` ``frames`` times and collect bob positions after each tick.

    Returns
    -------
    t : array
        Host time at each recorded frame (shape: Frame)
    x, y : array
        Bob positions (shape: Frame x N)
    outcomes : list
        Outcome of every tick that was issued

    Recording stops at the first ABORTED or NOT_IMPLEMENTED tick; the arrays only
    contain the frames that were actually recorded.
    """
    N = min(universe.get_bob_count(), universe.get_max_bobs())
    x = np.zeros((frames, N))
    y = np.zeros((frames, N))
    outcomes: List[StepOutcome] = []

    recorded = 0
    for frame in range(frames):
        outcome = universe.advance(dt)
        outcomes.append(outcome)
        if outcome in (StepOutcome.ABORTED, StepOutcome.NOT_IMPLEMENTED):
            break
        for k in range(N):
            x[frame, k] = universe.chain[k].position.x
            y[frame, k] = universe.chain[k].position.y
        recorded += 1

    t = dt * np.arange(1, recorded + 1)
    return t, x[:recorded], y[:recorded], outcomes


def _initial_state(index: int, N: int, M: int, perturbation: float) -> np.ndarray:
    initial_angles = np.ones(N) * np.pi / 2 - index / M * perturbation
    return np.concatenate([initial_angles, np.zeros(N)])


def _worker_init(equations_blob: bytes, t: np.ndarray, T: float, solver_kwargs: dict, N: int, M: int, perturbation: float) -> None:
    """Initializer for worker processes; restores shared context."""
    global _worker_equations, _worker_t, _worker_T, _worker_solver_kwargs, _worker_N, _worker_M, _worker_perturbation
    _worker_equations = dill.loads(equations_blob)
    _worker_t = t
    _worker_T = T
    _worker_solver_kwargs = solver_kwargs
    _worker_N = N
    _worker_M = M
    _worker_perturbation = perturbation


def _worker_simulate_single(index: int) -> Tuple[int, np.ndarray]:
    """Integrate a single chain instance inside a worker process."""
    if _worker_equations is None:
        raise RuntimeError("Worker equations not initialized")

    sol = solve_ivp(
        _worker_equations,
        [0, _worker_T],
        _initial_state(index, _worker_N, _worker_M, _worker_perturbation),
        t_eval=_worker_t,
        **_worker_solver_kwargs,
    )
    if not sol.success:
        raise RuntimeError(f"Integration failed for instance {index}: {sol.message}")
    return index, sol.y[:_worker_N].T  # (Frame, N)


def _accumulate_positions(theta: np.ndarray, x: np.ndarray, y: np.ndarray, idx: int) -> None:
    """Unit-link forward kinematics for one instance, same axes as the engine."""
    for k in range(theta.shape[1]):
        x[:, k + 1, idx] = x[:, k, idx] + np.sin(theta[:, k])
        y[:, k + 1, idx] = y[:, k, idx] + np.cos(theta[:, k])


def simulate_ensemble(
    N: int = 3,
    T: float = 100,
    M: int = 100,
    perturbation: float = 1e-8,
    gravity: float = 9.8,
    fps: int = 60,
    processes: int | None = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Integrate M unit-link N-pendulums with slightly different initial angles.

    Parameters:
    -----------
    N : int
        Number of links per chain
    T : float
        Total simulation time
    M : int
        Number of instances
    perturbation : float
        Spread of the initial angles, instance k starts at pi/2 - k/M * perturbation
    gravity : float
        Gravity in the same normalized units as the interactive engine
    fps : int
        Output samples per unit time
    processes : int | None
        Number of worker processes (default: cpu_count, sequential when <= 1)

    Returns:
    --------
    t : array
        Time points
    x, y : array
        Positions of origin and masses (shape: Frame x N+1 x M)
    """
    equations_of_motion = build_equations_of_motion(N, gravity)

    Frame = max(2, int(T * fps))
    t = np.linspace(0, T, Frame)
    x = np.zeros((Frame, N + 1, M))
    y = np.zeros((Frame, N + 1, M))

    print(f"Simulating {M} chains of {N} links...")
    tic = time.time()

    cpu_total = mp.cpu_count() or 1
    processes = processes or min(M, cpu_total)
    processes = max(1, min(processes, M))

    if processes == 1:
        for ii in range(M):
            if (ii + 1) % 10 == 0 or ii + 1 == M:
                print(f"Progress: {ii+1}/{M}")

            sol = solve_ivp(
                equations_of_motion,
                [0, T],
                _initial_state(ii, N, M, perturbation),
                t_eval=t,
                **SOLVER_KWARGS,
            )
            if not sol.success:
                print(f"Warning: Integration failed for instance {ii}: {sol.message}")
                continue

            _accumulate_positions(sol.y[:N].T, x, y, ii)
    else:
        print(f"Using {processes} parallel workers...")
        equations_blob = dill.dumps(equations_of_motion)
        ctx = mp.get_context("spawn")
        with ctx.Pool(
            processes=processes,
            initializer=_worker_init,
            initargs=(equations_blob, t, T, SOLVER_KWARGS, N, M, perturbation),
        ) as pool:
            chunk_iter: Iterable[Tuple[int, np.ndarray]] = pool.imap_unordered(_worker_simulate_single, range(M))
            for completed, (idx, theta) in enumerate(chunk_iter, start=1):
                _accumulate_positions(theta, x, y, idx)
                if (completed % 10 == 0) or completed == M:
                    print(f"Progress: {completed}/{M}")

    toc = time.time()
    print(f"Simulation completed in {toc-tic:.1f} seconds")

    return t, x, y


if __name__ == '__main__':
    t, x, y = simulate_ensemble(N=3, T=10, M=20)
