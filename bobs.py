"""
Data model for a single pendulum mass and the rod that attaches it.

Units and conventions
- theta is measured in radians from the downward vertical, omega in rad per unit time.
- position is in host (pixel) units; x grows with sin(theta), y with cos(theta).
- trail keeps past positions for rendering motion paths. Its capacity is chosen by the
  caller on every append, so the deque itself is unbounded and evicts explicitly.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Tuple

from vectors import Vector2


@dataclass
class Link:
    """Massless-in-the-dynamics rod joining a bob to its predecessor."""

    length: float
    mass: float
    color: int

    def set_length(self, new_length: float) -> None:
        # Negative lengths are kept; they simply flip the geometry.
        self.length = new_length


@dataclass(frozen=True)
class TrailPoint:
    position: Vector2
    color: int


@dataclass
class Bob:
    """
    One pendulum mass.

    Fields:
    - position: Cartesian position, kept consistent with theta by the owning Chain
    - omega: angular velocity
    - theta: angular position
    - link: rod connecting this bob to the previous one (or to the origin)
    - radius, mass, color: display and bookkeeping values for the host
    """

    position: Vector2
    omega: float
    theta: float
    link: Link
    radius: int = 10
    mass: float = 10.0
    color: int = 0xFF0000
    _trail: Deque[TrailPoint] = field(default_factory=deque, repr=False)

    @property
    def trail(self) -> Tuple[TrailPoint, ...]:
        return tuple(self._trail)

    def record_trail_point(self, position: Vector2, color: int, capacity: int) -> None:
        """Append a trail point, evicting the oldest entries beyond ``capacity``."""
        self._trail.append(TrailPoint(position, color))
        while len(self._trail) > capacity:
            self._trail.popleft()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "position": {"x": self.position.x, "y": self.position.y},
            "omega": self.omega,
            "theta": self.theta,
            "link": {
                "length": self.link.length,
                "mass": self.link.mass,
                "color": self.link.color,
            },
            "trail": [
                {"position": {"x": p.position.x, "y": p.position.y}, "color": p.color}
                for p in self._trail
            ],
            "radius": self.radius,
            "mass": self.mass,
            "color": self.color,
        }
