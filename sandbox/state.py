"""State representations for the cart-pole and the planar twin-rotor drone."""

import math
import numpy as np
from dataclasses import dataclass, replace


def normalize_angle(angle: float) -> float:
    """
    Wrap an angle into (-pi, pi].

    Uses the truncated remainder (math.fmod) so that the wrap direction is
    the same for negative and positive inputs: -pi maps to pi, pi stays pi.
    """
    two_pi = 2 * math.pi
    wrapped = math.fmod(math.fmod(angle, two_pi) + two_pi, two_pi)
    if wrapped > math.pi:
        wrapped -= two_pi
    return wrapped


@dataclass(frozen=True)
class CartPoleState:
    """
    State of the inverted pendulum on a cart.

    Attributes:
        x: Cart position [m]
        theta: Pole angle from vertical [rad], positive leaning right
        dx: Cart velocity [m/s]
        dtheta: Pole angular velocity [rad/s]
        score: Number of ticks survived
    """
    x: float = 0.0
    theta: float = 0.1
    dx: float = 0.0
    dtheta: float = 0.0
    score: int = 0

    def to_array(self) -> np.ndarray:
        """Convert the continuous part of the state to a flat array."""
        return np.array([self.x, self.theta, self.dx, self.dtheta])

    @classmethod
    def from_array(cls, arr: np.ndarray, score: int = 0) -> 'CartPoleState':
        """Create state from a flat [x, theta, dx, dtheta] array."""
        return cls(
            x=float(arr[0]),
            theta=float(arr[1]),
            dx=float(arr[2]),
            dtheta=float(arr[3]),
            score=score,
        )

    @property
    def theta_deg(self) -> float:
        return math.degrees(self.theta)

    def __repr__(self) -> str:
        return (
            f"CartPoleState(x={self.x:.2f} m, theta={self.theta_deg:.1f} deg, "
            f"dx={self.dx:.2f} m/s, dtheta={self.dtheta:.2f} rad/s, score={self.score})"
        )


@dataclass(frozen=True)
class DroneState:
    """
    State of the planar twin-rotor drone.

    Position is in the simulation plane with y as altitude (up positive).
    Rotation is positive when the drone tilts towards +x.

    Attributes:
        x, y: Position [px]
        vx, vy: Velocity [px/s]
        rotation: Body angle [rad]
        angular_velocity: Body rate [rad/s]
    """
    x: float = 100.0
    y: float = 150.0
    vx: float = 0.0
    vy: float = 0.0
    rotation: float = 0.0
    angular_velocity: float = 0.0

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y])

    @property
    def velocity(self) -> np.ndarray:
        return np.array([self.vx, self.vy])

    @property
    def rotation_deg(self) -> float:
        return math.degrees(self.rotation)

    @property
    def angular_velocity_deg(self) -> float:
        return math.degrees(self.angular_velocity)

    def evolve(self, **changes) -> 'DroneState':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_array(self) -> np.ndarray:
        """Convert state to a flat array."""
        return np.array([
            self.x, self.y, self.vx, self.vy, self.rotation, self.angular_velocity,
        ])

    @classmethod
    def from_array(cls, arr: np.ndarray) -> 'DroneState':
        """Create state from a flat array."""
        return cls(*(float(v) for v in arr[0:6]))

    def __repr__(self) -> str:
        return (
            f"DroneState(\n"
            f"  pos=[{self.x:.2f}, {self.y:.2f}]\n"
            f"  vel=[{self.vx:.2f}, {self.vy:.2f}]\n"
            f"  rotation={self.rotation_deg:.1f} deg\n"
            f"  omega={self.angular_velocity_deg:.1f} deg/s\n"
            f")"
        )
