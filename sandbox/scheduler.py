"""Fixed-cadence driver that steps a simulation once per period."""

import logging
import threading
import time
from typing import Callable, List, Optional

from .simulation import Simulation, Snapshot

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Drives a simulation at a fixed tick period.

    Each step runs to completion before the next one starts; sleeping only
    happens between steps. stop() may be called from any thread and takes
    effect at the next step boundary.
    """

    def __init__(
        self,
        simulation: Simulation,
        period: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.simulation = simulation
        self.period = simulation.tick_period if period is None else period
        if self.period <= 0:
            raise ValueError(f"Tick period must be positive, got {self.period}")

        self.clock = clock
        self.sleep = sleep
        self.steps = 0
        self._stop_event = threading.Event()
        self._callbacks: List[Callable[[Snapshot], None]] = []

    def on_step(self, callback: Callable[[Snapshot], None]) -> Callable[[Snapshot], None]:
        """Register a callback that receives every snapshot. Usable as a decorator."""
        self._callbacks.append(callback)
        return callback

    def stop(self):
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def run_once(self) -> Snapshot:
        """Execute exactly one step and notify callbacks."""
        snapshot = self.simulation.step()
        self.steps += 1
        for callback in self._callbacks:
            callback(snapshot)
        return snapshot

    def run(
        self,
        max_steps: Optional[int] = None,
        should_stop: Optional[Callable[[Snapshot], bool]] = None,
    ) -> Optional[Snapshot]:
        """
        Step the simulation until stopped.

        Args:
            max_steps: Stop after this many steps (None runs forever)
            should_stop: Predicate on the latest snapshot that ends the loop

        Returns:
            The last snapshot, or None if no step ran
        """
        self._stop_event.clear()
        snapshot = None
        steps_run = 0
        next_time = self.clock()

        logger.debug("Scheduler running at %.1f Hz", 1.0 / self.period)

        while not self._stop_event.is_set():
            if max_steps is not None and steps_run >= max_steps:
                break

            # Rate limiting - wait if we're running too fast
            delay = next_time - self.clock()
            if delay > 0:
                self.sleep(delay)

            snapshot = self.run_once()
            steps_run += 1

            if should_stop is not None and should_stop(snapshot):
                break

            next_time += self.period
            # Drop missed deadlines instead of bursting to catch up
            now = self.clock()
            if next_time < now:
                next_time = now

        return snapshot
