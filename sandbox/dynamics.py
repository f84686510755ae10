"""Fixed-step Euler dynamics for the cart-pole and the planar twin-rotor drone."""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import Tuple

from .bounds import FailurePolicy, WallBounds
from .state import CartPoleState, DroneState, normalize_angle


@dataclass
class CartPoleParams:
    """
    Physical parameters of the cart-pole.

    pole_length is the distance from the pivot to the pole's center of
    mass (half the drawn pole).
    """
    gravity: float = 9.81  # m/s^2
    cart_mass: float = 1.0  # kg
    pole_mass: float = 0.1  # kg
    pole_length: float = 0.5  # m
    dt: float = 0.02  # s - one tick
    max_force: float = 15.0  # N

    failure: FailurePolicy = field(default_factory=FailurePolicy)

    def __post_init__(self):
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.cart_mass <= 0 or self.pole_mass <= 0:
            raise ValueError("Cart and pole masses must be positive")
        if self.pole_length <= 0:
            raise ValueError(f"pole_length must be positive, got {self.pole_length}")
        if self.max_force < 0:
            raise ValueError(f"max_force must be non-negative, got {self.max_force}")

    @property
    def total_mass(self) -> float:
        return self.cart_mass + self.pole_mass

    @property
    def tick_period(self) -> float:
        """Wall-clock seconds between ticks."""
        return self.dt

    def clamp_force(self, force: float) -> float:
        return float(np.clip(force, -self.max_force, self.max_force))


class CartPoleDynamics:
    """
    Inverted pendulum on a cart, integrated with explicit Euler.

    Positions advance with the pre-update velocities, then velocities
    advance with the accelerations computed from the old state.
    """

    def __init__(self, params: CartPoleParams = None):
        self.params = params or CartPoleParams()

    def accelerations(self, state: CartPoleState, force: float) -> Tuple[float, float]:
        """
        Compute (cart acceleration, pole angular acceleration).

        The pole centripetal term is added and subtracted again in the cart
        equation; both terms are kept so results match the reference output.
        """
        p = self.params
        m = p.pole_mass
        l = p.pole_length
        total_mass = p.total_mass

        cos_theta = math.cos(state.theta)
        sin_theta = math.sin(state.theta)

        pole_force = m * l * state.dtheta * state.dtheta * sin_theta
        temp = total_mass - m * cos_theta * cos_theta
        denominator = l * temp
        assert denominator > 0, f"Singular cart-pole denominator: {denominator}"

        ddtheta = (
            p.gravity * sin_theta * total_mass -
            (force + pole_force) * cos_theta
        ) / denominator

        ddx = (
            force +
            pole_force +
            m * l * ddtheta * cos_theta -
            m * l * state.dtheta * state.dtheta * sin_theta
        ) / total_mass

        return ddx, ddtheta

    def step(self, state: CartPoleState, force: float, dt: float = None) -> CartPoleState:
        """
        Advance one tick.

        Args:
            state: Current cart-pole state
            force: Horizontal force on the cart [N], clamped to +-max_force
            dt: Time step [s], defaults to params.dt

        Returns:
            New cart-pole state with score incremented
        """
        dt = self.params.dt if dt is None else dt
        force = self.params.clamp_force(force)

        ddx, ddtheta = self.accelerations(state, force)

        new_x = state.x + state.dx * dt
        new_theta = state.theta + state.dtheta * dt
        new_dx = state.dx + ddx * dt
        new_dtheta = state.dtheta + ddtheta * dt

        return CartPoleState(
            x=new_x,
            theta=normalize_angle(new_theta),
            dx=new_dx,
            dtheta=new_dtheta,
            score=state.score + 1,
        )


@dataclass
class DroneParams:
    """
    Physical parameters of the planar twin-rotor drone.

    Lengths are in display pixels; with the default mass and gravity each
    rotor hovers at 4.9 N.
    """
    gravity: float = 9.8
    mass: float = 1.0
    moment_of_inertia: float = 0.1
    drag_coefficient: float = 0.1  # quadratic, N/(px/s)^2
    angular_drag_coefficient: float = 0.5  # linear, N*px/(rad/s)

    # Rotor geometry
    thrust_distance: float = 0.4  # center to rotor
    center_of_mass_offset: float = 0.0  # shifts the COM towards the right rotor

    # Actuator efficiency multipliers
    left_thrust_efficiency: float = 1.0
    right_thrust_efficiency: float = 1.0

    dt: float = 0.2  # simulated seconds per tick
    time_scale: float = 10.0  # simulated seconds per wall-clock second

    bounds: WallBounds = field(default_factory=WallBounds)

    # Thrust limits [N]
    max_manual_thrust: float = 10.0
    max_mixed_thrust: float = 100.0

    def __post_init__(self):
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.time_scale <= 0:
            raise ValueError(f"time_scale must be positive, got {self.time_scale}")
        if self.mass <= 0:
            raise ValueError(f"mass must be positive, got {self.mass}")
        if self.moment_of_inertia <= 0:
            raise ValueError(f"moment_of_inertia must be positive, got {self.moment_of_inertia}")

    @classmethod
    def basic(cls, **overrides) -> 'DroneParams':
        """Parameters of the simple model: centered COM and ideal rotors."""
        overrides.update(
            center_of_mass_offset=0.0,
            left_thrust_efficiency=1.0,
            right_thrust_efficiency=1.0,
        )
        return cls(**overrides)

    @property
    def hover_thrust(self) -> float:
        """Total thrust required to hover."""
        return self.mass * self.gravity

    @property
    def base_thrust(self) -> float:
        """Per-rotor hover thrust."""
        return self.hover_thrust / 2

    @property
    def tick_period(self) -> float:
        """Wall-clock seconds between ticks."""
        return self.dt / self.time_scale


class DroneDynamics:
    """
    Planar twin-rotor dynamics with explicit Euler integration.

    Angular velocity is integrated first and the new rate drives the
    rotation; the thrust direction uses the rotation from before the step.
    Linear velocity is integrated next and the new velocity drives the
    position, which is then clamped to the wall bounds.
    """

    def __init__(self, params: DroneParams = None):
        self.params = params or DroneParams()

    def effective_thrusts(
        self,
        left: float,
        right: float,
        noise: Tuple[float, float] = (1.0, 1.0),
    ) -> Tuple[float, float]:
        """Apply rotor efficiency and multiplicative noise to commanded thrusts."""
        p = self.params
        return (
            left * p.left_thrust_efficiency * noise[0],
            right * p.right_thrust_efficiency * noise[1],
        )

    def torque(self, left: float, right: float) -> float:
        """Body torque from effective rotor thrusts."""
        p = self.params
        return (
            right * (p.thrust_distance + p.center_of_mass_offset) -
            left * (p.thrust_distance - p.center_of_mass_offset)
        )

    @staticmethod
    def quadratic_drag(coefficient: float, velocity: float) -> float:
        """Drag force with the sign of the velocity, opposing motion when subtracted."""
        return coefficient * velocity * abs(velocity)

    def step(
        self,
        state: DroneState,
        left_thrust: float,
        right_thrust: float,
        wind_force: float = 0.0,
        noise: Tuple[float, float] = (1.0, 1.0),
        dt: float = None,
    ) -> DroneState:
        """
        Advance one tick.

        Args:
            state: Current drone state
            left_thrust: Commanded left rotor thrust [N]
            right_thrust: Commanded right rotor thrust [N]
            wind_force: Horizontal wind force [N]
            noise: Multiplicative (left, right) thrust noise factors
            dt: Time step, defaults to params.dt

        Returns:
            New drone state
        """
        p = self.params
        dt = p.dt if dt is None else dt

        left, right = self.effective_thrusts(left_thrust, right_thrust, noise)
        total_thrust = left + right

        # Attitude
        angular_acceleration = (
            self.torque(left, right) - p.angular_drag_coefficient * state.angular_velocity
        ) / p.moment_of_inertia
        new_angular_velocity = state.angular_velocity + angular_acceleration * dt
        new_rotation = state.rotation + new_angular_velocity * dt

        # Thrust resolved in the world frame, plus wind
        thrust_force_y = total_thrust * math.cos(state.rotation)
        thrust_force_x = total_thrust * math.sin(state.rotation) + wind_force

        gravity_force = p.mass * p.gravity
        drag_force_y = self.quadratic_drag(p.drag_coefficient, state.vy)
        drag_force_x = self.quadratic_drag(p.drag_coefficient, state.vx)

        vertical_acceleration = (thrust_force_y - gravity_force - drag_force_y) / p.mass
        horizontal_acceleration = (thrust_force_x - drag_force_x) / p.mass

        new_vy = state.vy + vertical_acceleration * dt
        new_vx = state.vx + horizontal_acceleration * dt

        new_y = state.y + new_vy * dt
        new_x = state.x + new_vx * dt

        x, y, vx, vy = p.bounds.clamp(new_x, new_y, new_vx, new_vy)

        return DroneState(
            x=x,
            y=y,
            vx=vx,
            vy=vy,
            rotation=new_rotation,
            angular_velocity=new_angular_velocity,
        )
