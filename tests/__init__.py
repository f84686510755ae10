"""
Test suite for the control sandbox.

This package contains unit tests organized by component:
- test_state.py: State types and angle normalization
- test_pid.py: Single-loop PID controller
- test_dynamics.py: Cart-pole and drone dynamics, bounds
- test_disturbance.py: Wind and thrust noise generator
- test_controller.py: Drone cascade and cart-pole balance loop
- test_simulation.py: Sessions, command channel and lifecycle
- test_scheduler.py: Fixed-cadence driver
"""
