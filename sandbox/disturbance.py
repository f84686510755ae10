"""Exogenous disturbances: horizontal wind and multiplicative thrust noise."""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class WindConfig:
    """Wind model: steady base force, sinusoidal gusts and uniform turbulence."""
    enabled: bool = True
    base_speed: float = 0.0
    gust_frequency: float = 0.0  # Hz of the wind clock
    gust_magnitude: float = 0.0
    turbulence_intensity: float = 0.0


@dataclass(frozen=True)
class ThrustNoiseConfig:
    """Per-rotor multiplicative thrust noise."""
    enabled: bool = True
    magnitude: float = 0.0
    # Accepted for configuration compatibility; the noise model does not use it.
    frequency: float = 10.0


@dataclass(frozen=True)
class DisturbanceConfig:
    wind: WindConfig = field(default_factory=WindConfig)
    thrust: ThrustNoiseConfig = field(default_factory=ThrustNoiseConfig)

    @classmethod
    def calm(cls) -> 'DisturbanceConfig':
        """Both sub-models disabled."""
        return cls(
            wind=WindConfig(enabled=False),
            thrust=ThrustNoiseConfig(enabled=False),
        )


@dataclass(frozen=True)
class Disturbance:
    """Disturbance values for one tick."""
    wind_force: float = 0.0
    noise: Tuple[float, float] = (1.0, 1.0)


class DisturbanceGenerator:
    """
    Produces the wind force and thrust noise factors for each tick.

    The wind clock is the only state carried across ticks. It advances by
    dt on every tick where wind is enabled and stays frozen otherwise.
    """

    def __init__(
        self,
        config: DisturbanceConfig = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.config = config or DisturbanceConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.wind_time = 0.0

    def reset(self):
        """Rewind the wind clock."""
        self.wind_time = 0.0

    def _centered_uniform(self, amplitude: float) -> float:
        """Zero-mean sample bounded by amplitude."""
        return (self.rng.random() - 0.5) * 2 * amplitude

    def wind(self, dt: float) -> float:
        """Advance the wind clock and return the instantaneous wind force."""
        wind = self.config.wind
        if not wind.enabled:
            return 0.0

        self.wind_time += dt
        gust_phase = 2 * math.pi * wind.gust_frequency * self.wind_time
        gust = math.sin(gust_phase) * wind.gust_magnitude
        turbulence = self._centered_uniform(wind.turbulence_intensity)
        return wind.base_speed + (gust + turbulence)

    def thrust_noise(self) -> Tuple[float, float]:
        """Independent (left, right) multiplicative noise factors."""
        thrust = self.config.thrust
        if not thrust.enabled:
            return 1.0, 1.0
        return (
            1 + self._centered_uniform(thrust.magnitude),
            1 + self._centered_uniform(thrust.magnitude),
        )

    def sample(self, dt: float) -> Disturbance:
        """Compute the disturbance for one tick."""
        wind_force = self.wind(dt)
        return Disturbance(wind_force=wind_force, noise=self.thrust_noise())
