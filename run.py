#!/usr/bin/env python3
"""
Control Sandbox Playground

Real-time cart-pole and twin-rotor drone simulations with interactive PID
tuning via a web-based GUI.

Usage:
    python run.py [--sim {cartpole,drone}] [--port PORT]
    python run.py --sim drone --headless --ticks 500

Then open http://localhost:PORT in your browser.
"""

import argparse
import logging

from sandbox.disturbance import DisturbanceConfig
from sandbox.scheduler import Scheduler
from sandbox.simulation import CartPoleSimulation, DroneSimulation, Simulation, Snapshot


def build_simulation(args: argparse.Namespace) -> Simulation:
    """Create the requested simulation session."""
    if args.sim == "cartpole":
        return CartPoleSimulation(autopilot=args.pid)
    return DroneSimulation(
        disturbance=DisturbanceConfig(),
        pid_enabled=args.pid,
        extended=not args.basic,
        seed=args.seed,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Control Sandbox Playground")
    parser.add_argument(
        "--sim",
        choices=["cartpole", "drone"],
        default="drone",
        help="Simulation to run (default: drone)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port number for the web server (default: 8080)"
    )
    parser.add_argument(
        "--pid",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Start with closed-loop PID control enabled (default: on)"
    )
    parser.add_argument(
        "--basic",
        action="store_true",
        help="Use the simple drone model without disturbance or cascade"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for wind turbulence and thrust noise"
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without the GUI and print the final state"
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Stop after this many ticks"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)
    if args.basic and args.sim == "drone":
        args.pid = False
    return args


def run_headless(simulation: Simulation, ticks: int) -> Snapshot:
    """Run as fast as possible for a fixed number of ticks."""
    scheduler = Scheduler(simulation, sleep=lambda _: None)
    simulation.start()
    return scheduler.run(
        max_steps=ticks,
        should_stop=lambda snapshot: snapshot.failed,
    )


def main(argv=None):
    """Main entry point for the playground."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s: %(message)s",
    )

    simulation = build_simulation(args)

    if args.headless:
        snapshot = run_headless(simulation, args.ticks or 500)
        print(f"Ran {snapshot.ticks} ticks ({snapshot.time:.2f} s simulated)")
        print(snapshot.state)
        if snapshot.failed:
            print("Run ended on a bounds violation")
        return

    # Deferred so headless runs do not need the GUI stack
    from gui.visualizer import PlaygroundVisualizer

    print("=" * 60)
    print("  Control Sandbox Playground")
    print("=" * 60)
    print()

    print("[1/2] Initializing simulation...")
    scheduler = Scheduler(simulation)

    print("[2/2] Starting Viser server...")
    visualizer = PlaygroundVisualizer(simulation, port=args.port)

    print()
    print("-" * 60)
    print(f"  Server running at: http://localhost:{args.port}")
    print("-" * 60)
    print()
    print("Controls:")
    print("  - Click 'Start' to run and 'Stop' to pause the simulation")
    print("  - Click 'Reset' to return to the initial state")
    print("  - Toggle PID control and edit gains while running")
    if args.sim == "cartpole":
        print("  - Use 'Push Left' / 'Push Right' / 'Release' in manual mode")
    else:
        print("  - Set rotor thrust with the sliders in manual mode")
        print("  - Enable wind and thrust noise under 'Disturbance'")
    print()
    print("Press Ctrl+C to stop the server.")
    print()

    plot_update_interval = 5  # Update plots every N steps

    @scheduler.on_step
    def render(snapshot: Snapshot):
        visualizer.update(snapshot)
        if scheduler.steps % plot_update_interval == 0:
            visualizer.plot_manager.update()

    try:
        scheduler.run(max_steps=args.ticks)
    except KeyboardInterrupt:
        print("\nShutting down...")
        scheduler.stop()

    print("Goodbye!")


if __name__ == "__main__":
    main()
