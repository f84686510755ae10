"""Closed-loop controllers: drone position/attitude cascade and cart-pole balance loop."""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import Tuple, Dict

from .dynamics import CartPoleParams, DroneParams
from .pid import PIDController, PIDGains
from .state import CartPoleState, DroneState


@dataclass
class DroneGains:
    """
    All gains for the drone cascade.

    The cascaded structure is:
    - Outer loop (Position): horizontal error -> target rotation,
      vertical error -> collective thrust adjustment
    - Inner loop (Attitude): rotation error -> thrust differential

    The attitude loop needs the faster response, hence the larger gains.
    """

    # Inner loop - rotation error [rad] -> thrust differential [N]
    attitude: PIDGains = field(
        default_factory=lambda: PIDGains(kp=8.0, ki=0.5, kd=0.0, output_min=-1.0, output_max=1.0)
    )

    # Outer loop - horizontal error [px] -> target rotation [rad]
    horizontal: PIDGains = field(
        default_factory=lambda: PIDGains(
            kp=1.0, ki=0.05, kd=0.0, output_min=-math.pi / 6, output_max=math.pi / 6
        )
    )

    # Outer loop - altitude error [px] -> collective thrust adjustment [N]
    vertical: PIDGains = field(
        default_factory=lambda: PIDGains(kp=1.5, ki=0.05, kd=0.0, output_min=-2.0, output_max=2.0)
    )

    LOOPS = ('attitude', 'horizontal', 'vertical')


@dataclass(frozen=True)
class Setpoints:
    """Target position held by the cascade [px]."""
    target_x: float = 300.0
    target_y: float = 150.0


class CascadedPIDController:
    """
    Cascaded PID controller for the planar drone.

    Structure:
    - Outer loop: x -> target rotation (negated horizontal output), y -> vertical output
    - Inner loop: rotation -> thrust differential
    - Mixer: base hover thrust + vertical output +/- attitude output per rotor
    """

    def __init__(self, gains: DroneGains = None, params: DroneParams = None):
        self.gains = gains or DroneGains()
        self.params = params or DroneParams()

        self._init_controllers()

    def _init_controllers(self):
        """Initialize all PID controllers."""
        g = self.gains
        self.attitude_pid = PIDController(g.attitude)
        self.horizontal_pid = PIDController(g.horizontal)
        self.vertical_pid = PIDController(g.vertical)

    def pid(self, loop: str) -> PIDController:
        """Look up a loop's controller by name."""
        if loop not in DroneGains.LOOPS:
            raise ValueError(f"Unknown control loop {loop!r}, expected one of {DroneGains.LOOPS}")
        return getattr(self, f"{loop}_pid")

    def set_gains(self, loop: str, kp: float, ki: float, kd: float):
        """Retune one loop, keeping its integral history."""
        pid = self.pid(loop)
        pid.set_gains(kp, ki, kd)
        setattr(self.gains, loop, pid.gains)

    def reset(self):
        """Reset all controller states."""
        self.attitude_pid.reset()
        self.horizontal_pid.reset()
        self.vertical_pid.reset()

    def compute(
        self,
        state: DroneState,
        setpoints: Setpoints,
        dt: float,
    ) -> Tuple[float, float]:
        """
        Compute rotor thrusts using the cascade.

        Args:
            state: Current drone state
            setpoints: Target position
            dt: Time step

        Returns:
            Tuple of (left thrust [N], right thrust [N])
        """
        # === Outer loop: Position control ===
        vertical_output = self.vertical_pid.update(setpoints.target_y, state.y, dt)
        horizontal_output = self.horizontal_pid.update(setpoints.target_x, state.x, dt)
        target_rotation = -horizontal_output

        # === Inner loop: Attitude control ===
        attitude_output = self.attitude_pid.update(target_rotation, state.rotation, dt)

        # === Mixer ===
        base_thrust = self.params.base_thrust
        left = base_thrust + vertical_output + attitude_output
        right = base_thrust + vertical_output - attitude_output

        max_thrust = self.params.max_mixed_thrust
        return (
            float(np.clip(left, 0.0, max_thrust)),
            float(np.clip(right, 0.0, max_thrust)),
        )

    def get_gains_dict(self) -> Dict[str, Dict[str, float]]:
        """Get all gains as a nested dictionary for GUI."""
        g = self.gains
        return {
            loop: {'kp': getattr(g, loop).kp, 'ki': getattr(g, loop).ki, 'kd': getattr(g, loop).kd}
            for loop in DroneGains.LOOPS
        }


class BalanceController:
    """
    Single-loop PID that keeps the cart-pole upright.

    A pole leaning right is caught by pushing the cart right, so the force
    follows the sign of (theta - target).
    """

    def __init__(
        self,
        gains: PIDGains = None,
        params: CartPoleParams = None,
        target_angle: float = 0.0,
    ):
        self.params = params or CartPoleParams()
        self.pid = PIDController(gains or PIDGains(
            kp=30.0, ki=0.1, kd=10.0,
            output_min=-self.params.max_force,
            output_max=self.params.max_force,
        ))
        self.target_angle = target_angle

    @property
    def gains(self) -> PIDGains:
        return self.pid.gains

    def set_gains(self, kp: float, ki: float, kd: float):
        self.pid.set_gains(kp, ki, kd)

    def reset(self):
        self.pid.reset()

    def compute(self, state: CartPoleState, dt: float) -> float:
        """Return the balancing force [N]."""
        return -self.pid.update(self.target_angle, state.theta, dt)
