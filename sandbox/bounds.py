"""Failure and boundary policies applied after each dynamics step."""

import math
import numpy as np
from dataclasses import dataclass
from typing import Tuple

from .state import CartPoleState


@dataclass(frozen=True)
class FailurePolicy:
    """
    Termination limits for the cart-pole.

    A run fails when the cart leaves the track or the pole falls past
    horizontal. The check uses strict inequalities, so a state sitting
    exactly on a limit is still alive.
    """
    x_limit: float = 2.4
    angle_limit: float = math.pi / 2

    def violated(self, state: CartPoleState) -> bool:
        return abs(state.x) > self.x_limit or abs(state.theta) > self.angle_limit


@dataclass(frozen=True)
class WallBounds:
    """Rectangular domain the drone is kept inside [px]."""
    x_min: float = 10.0
    x_max: float = 590.0
    y_min: float = 10.0
    y_max: float = 290.0

    def __post_init__(self):
        if self.x_min >= self.x_max or self.y_min >= self.y_max:
            raise ValueError(f"Empty wall bounds: {self}")

    def clamp_axis(
        self,
        position: float,
        velocity: float,
        low: float,
        high: float,
    ) -> Tuple[float, float]:
        """
        Clamp one axis. A wall contact absorbs all velocity on that axis.

        Returns:
            Tuple of (position, velocity)
        """
        clamped = float(np.clip(position, low, high))
        if clamped == low or clamped == high:
            return clamped, 0.0
        return clamped, velocity

    def clamp(
        self,
        x: float,
        y: float,
        vx: float,
        vy: float,
    ) -> Tuple[float, float, float, float]:
        """Clamp position and velocity on both axes."""
        x, vx = self.clamp_axis(x, vx, self.x_min, self.x_max)
        y, vy = self.clamp_axis(y, vy, self.y_min, self.y_max)
        return x, y, vx, vy
