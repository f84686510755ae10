"""
Simulation sessions: one owned state, its controllers and a command channel.

The host never touches state or controller accumulators directly. Every
host call posts a command on a thread-safe queue; the queue is drained at
the start of the next step(), before the tick pipeline runs, so a change
is visible no later than the next tick boundary.
"""

import logging
import queue
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

import numpy as np

from .controller import BalanceController, CascadedPIDController, DroneGains, Setpoints
from .disturbance import Disturbance, DisturbanceConfig, DisturbanceGenerator
from .dynamics import CartPoleDynamics, CartPoleParams, DroneDynamics, DroneParams
from .pid import PIDGains
from .state import CartPoleState, DroneState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """
    Read-only view of a session after a step.

    Attributes:
        state: Current physical state
        time: Simulated time since reset
        ticks: Number of ticks executed since reset
        running: Whether the session is ticking
        failed: Whether the last run ended on a bounds violation
        pid_enabled: Whether closed-loop control drives the actuators
        actuation: Last applied force [N] (cart-pole) or (left, right) thrust [N] (drone)
    """
    state: Union[CartPoleState, DroneState]
    time: float = 0.0
    ticks: int = 0
    running: bool = False
    failed: bool = False
    pid_enabled: bool = False
    actuation: Union[float, Tuple[float, float]] = 0.0


class Simulation:
    """
    Base session: lifecycle, command channel and the step() entry point.

    Subclasses provide the initial state and the body of one tick.
    """

    def __init__(self, pid_enabled: bool = False):
        self._commands: queue.SimpleQueue = queue.SimpleQueue()
        self._handlers: Dict[str, Callable[..., None]] = {
            'start': self._apply_start,
            'stop': self._apply_stop,
            'toggle': self._apply_toggle,
            'reset': self._apply_reset,
            'pid_enabled': self._apply_pid_enabled,
        }

        self.running = False
        self.failed = False
        self.pid_enabled = pid_enabled
        self.time = 0.0
        self.ticks = 0
        self.state = self.initial_state()
        self._snapshot = self._make_snapshot()

    # === Subclass interface ===

    @property
    def dt(self) -> float:
        raise NotImplementedError

    @property
    def tick_period(self) -> float:
        raise NotImplementedError

    def initial_state(self):
        raise NotImplementedError

    def _tick(self):
        """Run one disturbance -> control -> dynamics -> bounds pipeline."""
        raise NotImplementedError

    def _reset_controllers(self):
        raise NotImplementedError

    def _actuation(self):
        raise NotImplementedError

    # === Host-side commands ===

    def post(self, command: str, *args: Any):
        """Queue a command for the next step boundary."""
        if command not in self._handlers:
            raise KeyError(f"Unknown command {command!r}")
        self._commands.put((command, args))

    def start(self):
        self.post('start')

    def stop(self):
        self.post('stop')

    def toggle(self):
        self.post('toggle')

    def reset(self):
        self.post('reset')

    def set_pid_enabled(self, enabled: bool):
        self.post('pid_enabled', bool(enabled))

    def snapshot(self) -> Snapshot:
        """Latest published snapshot. Safe to call from any thread."""
        return self._snapshot

    # === Tick-side ===

    def step(self) -> Snapshot:
        """Apply pending commands, then run one tick if running."""
        self._drain_commands()
        if self.running:
            self._tick()
            self.ticks += 1
            self.time += self.dt
        self._snapshot = self._make_snapshot()
        return self._snapshot

    def _drain_commands(self):
        while True:
            try:
                command, args = self._commands.get_nowait()
            except queue.Empty:
                return
            logger.debug("Applying %s%s", command, args)
            self._handlers[command](*args)

    def _make_snapshot(self) -> Snapshot:
        return Snapshot(
            state=self.state,
            time=self.time,
            ticks=self.ticks,
            running=self.running,
            failed=self.failed,
            pid_enabled=self.pid_enabled,
            actuation=self._actuation(),
        )

    def _apply_start(self):
        if self.running:
            return
        self.running = True
        self.failed = False
        logger.info("%s started", type(self).__name__)

    def _apply_stop(self):
        if not self.running:
            return
        self.running = False
        logger.info("%s stopped at t=%.2f", type(self).__name__, self.time)

    def _apply_toggle(self):
        if self.running:
            self._apply_stop()
        else:
            self._apply_start()

    def _apply_reset(self):
        self.state = self.initial_state()
        self.failed = False
        self.time = 0.0
        self.ticks = 0
        self._reset_controllers()
        logger.info("%s reset to initial state", type(self).__name__)

    def _apply_pid_enabled(self, enabled: bool):
        if enabled == self.pid_enabled:
            return
        self.pid_enabled = enabled
        self._reset_controllers()
        logger.info("PID control %s", "enabled" if enabled else "disabled")


class CartPoleSimulation(Simulation):
    """
    Cart-pole session.

    Manual mode applies the host force; autopilot uses the balance loop.
    A tick whose result leaves the failure limits is discarded: the run
    halts and the previous state is kept.
    """

    def __init__(
        self,
        params: CartPoleParams = None,
        gains: PIDGains = None,
        initial_state: CartPoleState = None,
        autopilot: bool = False,
    ):
        self.params = params or CartPoleParams()
        self.dynamics = CartPoleDynamics(self.params)
        self.controller = BalanceController(gains, self.params)
        self._initial_state = initial_state or CartPoleState()
        self.manual_force = 0.0
        self.last_force = 0.0
        super().__init__(pid_enabled=autopilot)
        self._handlers.update({
            'force': self._apply_force,
            'gains': self._apply_gains,
        })

    @property
    def dt(self) -> float:
        return self.params.dt

    @property
    def tick_period(self) -> float:
        return self.params.tick_period

    def initial_state(self) -> CartPoleState:
        return self._initial_state

    # === Host-side commands ===

    def set_force(self, force: float):
        self.post('force', float(force))

    def push_left(self):
        self.set_force(-self.params.max_force)

    def push_right(self):
        self.set_force(self.params.max_force)

    def release(self):
        self.set_force(0.0)

    def set_gains(self, kp: float, ki: float, kd: float):
        self.post('gains', float(kp), float(ki), float(kd))

    def set_autopilot(self, enabled: bool):
        self.set_pid_enabled(enabled)

    # === Tick-side ===

    def _apply_force(self, force: float):
        self.manual_force = self.params.clamp_force(force)

    def _apply_gains(self, kp: float, ki: float, kd: float):
        self.controller.set_gains(kp, ki, kd)

    def _reset_controllers(self):
        self.controller.reset()

    def _actuation(self) -> float:
        return self.last_force

    def _tick(self):
        if self.pid_enabled:
            force = self.controller.compute(self.state, self.dt)
        else:
            force = self.manual_force
        self.last_force = self.params.clamp_force(force)

        new_state = self.dynamics.step(self.state, self.last_force, self.dt)

        if self.params.failure.violated(new_state):
            self.running = False
            self.failed = True
            logger.info(
                "Cart-pole failed after %d ticks (x=%.2f, theta=%.2f)",
                self.state.score, new_state.x, new_state.theta,
            )
            return

        self.state = new_state


class DroneSimulation(Simulation):
    """
    Planar drone session.

    With extended=True the session samples wind and thrust noise each tick
    and can fly on the PID cascade. With extended=False it is the simple
    model: no disturbance and manual thrust only. The drone never fails;
    the wall bounds keep it inside the domain.
    """

    def __init__(
        self,
        params: DroneParams = None,
        gains: DroneGains = None,
        setpoints: Setpoints = None,
        disturbance: DisturbanceConfig = None,
        initial_state: DroneState = None,
        pid_enabled: bool = True,
        extended: bool = True,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.params = params or (DroneParams() if extended else DroneParams.basic())
        self.extended = extended
        self.dynamics = DroneDynamics(self.params)
        self.controller = CascadedPIDController(gains, self.params)
        self.setpoints = setpoints or Setpoints()
        self.disturbances = DisturbanceGenerator(disturbance, rng=rng, seed=seed)
        self._initial_state = initial_state or DroneState()

        base = self.params.base_thrust
        self.manual_thrust = (base, base)
        self.last_thrust = (base, base)
        self.last_disturbance = Disturbance()
        super().__init__(pid_enabled=pid_enabled and extended)
        self._handlers.update({
            'thrust': self._apply_thrust,
            'gains': self._apply_gains,
            'disturbance': self._apply_disturbance,
            'setpoints': self._apply_setpoints,
        })

    @property
    def dt(self) -> float:
        return self.params.dt

    @property
    def tick_period(self) -> float:
        return self.params.tick_period

    def initial_state(self) -> DroneState:
        return self._initial_state

    # === Host-side commands ===

    def set_thrust(self, left: float, right: float):
        self.post('thrust', float(left), float(right))

    def set_gains(self, loop: str, kp: float, ki: float, kd: float):
        if loop not in DroneGains.LOOPS:
            raise ValueError(f"Unknown control loop {loop!r}, expected one of {DroneGains.LOOPS}")
        self.post('gains', loop, float(kp), float(ki), float(kd))

    def set_disturbance(self, config: DisturbanceConfig):
        self.post('disturbance', config)

    def set_setpoints(self, setpoints: Setpoints):
        self.post('setpoints', setpoints)

    def set_pid_enabled(self, enabled: bool):
        if enabled and not self.extended:
            raise ValueError("PID control requires the extended drone model")
        super().set_pid_enabled(enabled)

    # === Tick-side ===

    def _apply_thrust(self, left: float, right: float):
        limit = self.params.max_manual_thrust
        self.manual_thrust = (
            float(np.clip(left, 0.0, limit)),
            float(np.clip(right, 0.0, limit)),
        )

    def _apply_gains(self, loop: str, kp: float, ki: float, kd: float):
        self.controller.set_gains(loop, kp, ki, kd)

    def _apply_disturbance(self, config: DisturbanceConfig):
        self.disturbances.config = config

    def _apply_setpoints(self, setpoints: Setpoints):
        self.setpoints = setpoints

    def _apply_reset(self):
        super()._apply_reset()
        self.disturbances.reset()
        self.last_disturbance = Disturbance()

    def _reset_controllers(self):
        self.controller.reset()

    def _actuation(self) -> Tuple[float, float]:
        return self.last_thrust

    def _tick(self):
        if self.extended:
            disturbance = self.disturbances.sample(self.dt)
        else:
            disturbance = Disturbance()

        if self.pid_enabled:
            left, right = self.controller.compute(self.state, self.setpoints, self.dt)
        else:
            left, right = self.manual_thrust

        self.state = self.dynamics.step(
            self.state,
            left,
            right,
            wind_force=disturbance.wind_force,
            noise=disturbance.noise,
            dt=self.dt,
        )
        self.last_thrust = (left, right)
        self.last_disturbance = disturbance
