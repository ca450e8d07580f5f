"""
Small 2D vector type used for bob positions and trail points.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Vector2:
    x: float = 0.0
    y: float = 0.0

    def add(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def subtract(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def scale(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    def divide(self, scalar: float) -> Vector2:
        # No zero guard, callers own the divisor.
        return Vector2(self.x / scalar, self.y / scalar)

    def distance_to(self, other: Vector2) -> float:
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    __add__ = add
    __sub__ = subtract
    __mul__ = scale
    __truediv__ = divide
