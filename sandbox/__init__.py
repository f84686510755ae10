"""Real-time control sandbox: cart-pole and planar twin-rotor drone."""

from .state import CartPoleState, DroneState, normalize_angle
from .pid import PIDController, PIDGains
from .dynamics import CartPoleDynamics, CartPoleParams, DroneDynamics, DroneParams
from .bounds import FailurePolicy, WallBounds
from .disturbance import DisturbanceConfig, DisturbanceGenerator, ThrustNoiseConfig, WindConfig
from .controller import BalanceController, CascadedPIDController, DroneGains, Setpoints
from .simulation import CartPoleSimulation, DroneSimulation, Snapshot
from .scheduler import Scheduler

__all__ = [
    "CartPoleState",
    "DroneState",
    "normalize_angle",
    "PIDController",
    "PIDGains",
    "CartPoleDynamics",
    "CartPoleParams",
    "DroneDynamics",
    "DroneParams",
    "FailurePolicy",
    "WallBounds",
    "DisturbanceConfig",
    "DisturbanceGenerator",
    "ThrustNoiseConfig",
    "WindConfig",
    "BalanceController",
    "CascadedPIDController",
    "DroneGains",
    "Setpoints",
    "CartPoleSimulation",
    "DroneSimulation",
    "Snapshot",
    "Scheduler",
]
