"""
Ordered chain of bobs stored as a flat arena.

Bob i hangs from bob i-1 through its own link; bob 0 hangs from the fixed origin.
Connectivity is purely by adjacent index, so forward kinematics is a running sum.
"""

from __future__ import annotations

import math
from typing import Iterator, List, Optional

import numpy as np

from bobs import Bob
from vectors import Vector2

ORIGIN = Vector2(0.0, 0.0)


def link_offset(length: float, theta: float) -> Vector2:
    return Vector2(length * math.sin(theta), length * math.cos(theta))


class Chain:
    def __init__(self, bobs: Optional[List[Bob]] = None):
        self._bobs: List[Bob] = list(bobs or [])

    def __len__(self) -> int:
        return len(self._bobs)

    def __iter__(self) -> Iterator[Bob]:
        return iter(self._bobs)

    def __getitem__(self, index: int) -> Bob:
        return self._bobs[index]

    def contains_index(self, index: int) -> bool:
        return 0 <= index < len(self._bobs)

    def last(self) -> Optional[Bob]:
        return self._bobs[-1] if self._bobs else None

    def push(self, bob: Bob) -> None:
        self._bobs.append(bob)

    def pop(self) -> Optional[Bob]:
        if not self._bobs:
            return None
        return self._bobs.pop()

    def truncate(self, size: int) -> None:
        del self._bobs[size:]

    def thetas(self) -> np.ndarray:
        return np.array([bob.theta for bob in self._bobs], dtype=float)

    def omegas(self) -> np.ndarray:
        return np.array([bob.omega for bob in self._bobs], dtype=float)

    def apply_state(self, theta: np.ndarray, omega: np.ndarray) -> None:
        """Write integrated angles back and re-derive every position."""
        for bob, th, om in zip(self._bobs, theta, omega):
            bob.theta = float(th)
            bob.omega = float(om)
        self.forward_kinematics()

    def forward_kinematics(self, start: int = 0) -> None:
        """
        Recompute positions from ``start`` to the tail.

        Bobs before ``start`` are assumed to be up to date; their stored position is the
        base for the first recomputed link.
        """
        base = self._bobs[start - 1].position if start > 0 else ORIGIN
        for bob in self._bobs[start:]:
            base = base + link_offset(bob.link.length, bob.theta)
            bob.position = base

    def record_trails(self, capacity: int) -> None:
        for bob in self._bobs:
            bob.record_trail_point(bob.position, bob.color, capacity)
