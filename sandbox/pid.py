"""Single-loop PID controller with output clamping and integral anti-windup."""

import numpy as np
from dataclasses import dataclass


@dataclass
class PIDGains:
    """PID gains and output clamp for a single loop."""
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0

    # Output saturation
    output_min: float = -float('inf')
    output_max: float = float('inf')

    def __post_init__(self):
        if self.output_min > self.output_max:
            raise ValueError(
                f"output_min ({self.output_min}) must not exceed output_max ({self.output_max})"
            )


@dataclass
class PIDState:
    """Internal state of a PID controller."""
    integral: float = 0.0
    last_error: float = 0.0


class PIDController:
    """
    Single-axis PID controller.

    The integral is accumulated first and then clamped to the range that
    keeps kp*error + ki*integral inside the output limits, so the integral
    alone can never push the output past saturation. With ki == 0 there is
    no such range and the clamp is skipped.
    """

    def __init__(self, gains: PIDGains = None):
        self.gains = gains or PIDGains()
        self.state = PIDState()

    @property
    def output_min(self) -> float:
        return self.gains.output_min

    @property
    def output_max(self) -> float:
        return self.gains.output_max

    def reset(self):
        """Zero the accumulated integral and last error. Gains and limits are kept."""
        self.state = PIDState()

    def set_gains(self, kp: float, ki: float, kd: float):
        """Replace the gains without touching the accumulator state."""
        self.gains = PIDGains(
            kp=kp, ki=ki, kd=kd,
            output_min=self.gains.output_min,
            output_max=self.gains.output_max,
        )

    def update(self, setpoint: float, measured: float, dt: float) -> float:
        """
        Compute PID output.

        Args:
            setpoint: Target value
            measured: Current measured value
            dt: Time step [s]

        Returns:
            Control output clamped to [output_min, output_max]
        """
        if dt <= 0:
            return 0.0

        g = self.gains
        s = self.state

        error = setpoint - measured

        # Integral term with anti-windup
        s.integral += error * dt
        if g.ki != 0:
            max_integral = (g.output_max - g.kp * error) / g.ki
            min_integral = (g.output_min - g.kp * error) / g.ki
            # A negative ki flips the bounds
            if min_integral > max_integral:
                min_integral, max_integral = max_integral, min_integral
            s.integral = min(max(s.integral, min_integral), max_integral)

        derivative = (error - s.last_error) / dt
        s.last_error = error

        output = g.kp * error + g.ki * s.integral + g.kd * derivative
        return float(np.clip(output, g.output_min, g.output_max))
