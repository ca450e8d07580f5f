"""
Host-facing simulation aggregate: the bob chain plus the global simulation settings.

A host (render loop, UI) owns one Universe, mutates it between frames and calls
``advance(dt)`` once per frame. Nothing here performs I/O or blocks.

Index handling
- Read operations with an out-of-range index return None.
- Mutators with an out-of-range index do nothing.
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

import integrators
from bobs import Bob, Link, TrailPoint
from chain import Chain, ORIGIN, link_offset
from integrators import Method, StepOutcome
from vectors import Vector2

logger = logging.getLogger(__name__)

DEFAULT_GRAVITY = 9.8
DEFAULT_SPEED = 1.0 / 20.0
DEFAULT_STEP = 0.1

# Bob caps per method; Euler blows up quickly on long chains.
EULER_MAX_BOBS = 100
DEFAULT_MAX_BOBS = 1000

DEFAULT_LENGTH = 100.0
DEFAULT_LINK_MASS = 10.0
DEFAULT_LINK_COLOR = 0x0F0F0F
DEFAULT_RADIUS = 10
DEFAULT_BOB_MASS = 100.0
SIMPLE_BOB_MASS = 10.0

PALETTE = (0xFF0000, 0x0000FF, 0x00FF00, 0xF0F000, 0x00F0F0, 0xF000F0)

ColorChooser = Callable[[Sequence[int]], int]


class PaletteColorChooser:
    """Pick a display color uniformly from a palette."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def __call__(self, palette: Sequence[int]) -> int:
        return int(palette[int(self._rng.integers(len(palette)))])


def max_bobs_for(method: Method) -> int:
    return EULER_MAX_BOBS if method == Method.EULER else DEFAULT_MAX_BOBS


@dataclass
class SimulationState:
    gravity: float = DEFAULT_GRAVITY
    paused: bool = False
    method: Method = Method.EULER
    speed: float = DEFAULT_SPEED
    step: float = DEFAULT_STEP
    max_bobs: int = field(default_factory=lambda: max_bobs_for(Method.EULER))


def _default_chain() -> Chain:
    chain = Chain([
        Bob(ORIGIN, 0.0, math.pi / 2.0, Link(DEFAULT_LENGTH, DEFAULT_LINK_MASS, DEFAULT_LINK_COLOR),
            DEFAULT_RADIUS, DEFAULT_BOB_MASS, 0xFF0000),
        Bob(ORIGIN, 0.0, math.pi / 2.0, Link(DEFAULT_LENGTH, DEFAULT_LINK_MASS, DEFAULT_LINK_COLOR),
            DEFAULT_RADIUS, DEFAULT_BOB_MASS, 0x0000FF),
    ])
    chain.forward_kinematics()
    return chain


class Universe:
    def __init__(self, color_chooser: Optional[ColorChooser] = None):
        self._color_chooser: ColorChooser = color_chooser or PaletteColorChooser()
        self.chain = _default_chain()
        self.state = SimulationState()

    def reset(self) -> None:
        self.chain = _default_chain()
        self.state = SimulationState()

    # ---- tick ----

    def advance(self, dt: float) -> StepOutcome:
        """Advance the chain by one host frame of length ``dt``."""
        if len(self.chain) == 0 or self.state.paused:
            return StepOutcome.SKIPPED

        if len(self.chain) > self.state.max_bobs:
            logger.debug("Truncating chain from %d to %d bobs", len(self.chain), self.state.max_bobs)
            self.chain.truncate(self.state.max_bobs)

        h = integrators.effective_dt(dt, self.state.speed)
        return integrators.step(self.chain, self.state.method, self.state.gravity, h)

    # ---- chain mutators ----

    def add_bob(
        self,
        x: float,
        y: float,
        omega: float,
        theta: float,
        length: float,
        link_mass: float,
        link_color: int,
        radius: int,
        mass: float,
        color: int,
    ) -> None:
        self.chain.push(Bob(Vector2(x, y), omega, theta, Link(length, link_mass, link_color), radius, mass, color))

    def add_bob_simple(self, theta: float) -> None:
        """
        Append a default bob hanging at ``theta`` from the current tail.

        The position is chained from the tail's stored position rather than a full
        kinematics pass, so it inherits whatever the tail currently holds.
        """
        color = self._color_chooser(PALETTE)
        last = self.chain.last()
        base = last.position if last is not None else ORIGIN
        position = base + link_offset(DEFAULT_LENGTH, theta)

        self.chain.push(Bob(
            position,
            0.0,
            theta,
            Link(DEFAULT_LENGTH, DEFAULT_LINK_MASS, DEFAULT_LINK_COLOR),
            DEFAULT_RADIUS,
            SIMPLE_BOB_MASS,
            color,
        ))

    def remove_bob(self) -> None:
        self.chain.pop()

    def update_bob_theta(self, index: int, theta: float) -> None:
        if not self.chain.contains_index(index):
            return
        self.chain[index].theta = theta
        self.chain.forward_kinematics(start=index)

    def update_bob_length(self, index: int, length: float) -> None:
        if not self.chain.contains_index(index):
            return
        self.chain[index].link.set_length(length)
        self.update_bob_theta(index, self.chain[index].theta)

    def update_bob_mass(self, index: int, mass: float) -> None:
        if self.chain.contains_index(index):
            self.chain[index].mass = mass

    # ---- settings ----

    def set_gravity(self, gravity: float) -> None:
        self.state.gravity = gravity

    def get_gravity(self) -> float:
        return self.state.gravity

    def set_speed(self, speed: float) -> None:
        self.state.speed = speed

    def get_speed(self) -> float:
        return self.state.speed

    def set_paused(self, paused: bool) -> None:
        self.state.paused = paused

    def get_paused(self) -> bool:
        return self.state.paused

    def set_method(self, method: Method) -> None:
        method = Method(method)
        self.state.method = method
        self.state.max_bobs = max_bobs_for(method)

    def get_method(self) -> Method:
        return self.state.method

    def get_max_bobs(self) -> int:
        return self.state.max_bobs

    # ---- queries ----

    def get_bob(self, index: int) -> Optional[Bob]:
        if not self.chain.contains_index(index):
            return None
        return copy.deepcopy(self.chain[index])

    def get_bobs(self) -> List[Bob]:
        return [copy.deepcopy(bob) for bob in self.chain]

    def get_bob_count(self) -> int:
        return len(self.chain)

    def get_trails(self) -> List[List[TrailPoint]]:
        return [list(bob.trail) for bob in self.chain]

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready projection of the whole universe for the host."""
        return {
            "gravity": self.state.gravity,
            "paused": self.state.paused,
            "method": self.state.method.value,
            "speed": self.state.speed,
            "step": self.state.step,
            "max_bobs": self.state.max_bobs,
            "bobs": [bob.as_dict() for bob in self.chain],
        }
