"""Viser-based visualization and controls for the control sandbox."""

import math
import numpy as np
import viser

from sandbox.controller import DroneGains, Setpoints
from sandbox.disturbance import DisturbanceConfig, ThrustNoiseConfig, WindConfig
from sandbox.simulation import CartPoleSimulation, DroneSimulation, Simulation, Snapshot
from .plots import CARTPOLE_PLOTS, DRONE_PLOTS, PlotData, PlotManager, snapshot_values

# Display pixels of the drone domain to scene meters
DRONE_SCALE = 0.01


def _pitch_wxyz(angle: float) -> np.ndarray:
    """Quaternion (w, x, y, z) for a rotation about the scene y axis."""
    return np.array([math.cos(angle / 2), 0.0, math.sin(angle / 2), 0.0])


class PlaygroundVisualizer:
    """
    Viser front end for one simulation session.

    Features:
    - 3D view of the cart-pole or the planar drone
    - Start/stop/reset and PID toggle
    - Gain inputs, manual actuation and disturbance settings
    - Real-time plots

    Every control only posts a command to the session; rendering reads
    the snapshot published after each step.
    """

    def __init__(self, simulation: Simulation, port: int = 8080):
        self.simulation = simulation
        self.port = port
        self.plot_data = PlotData()
        self.is_drone = isinstance(simulation, DroneSimulation)

        self.server = viser.ViserServer(host="0.0.0.0", port=port)

        if self.is_drone:
            self._create_drone()
            self._setup_drone_gui()
        else:
            self._create_cartpole()
            self._setup_cartpole_gui()

        self.plot_manager = PlotManager(
            self.server,
            self.plot_data,
            DRONE_PLOTS if self.is_drone else CARTPOLE_PLOTS,
        )

    # === Scene ===

    def _create_cartpole(self):
        """Create the track, cart and pole."""
        params = self.simulation.params
        limit = params.failure.x_limit

        self.server.scene.add_box(
            "/track",
            dimensions=(2 * limit, 0.05, 0.02),
            position=(0.0, 0.0, -0.01),
            color=(120, 120, 120),
        )
        for name, x in (("left", -limit), ("right", limit)):
            self.server.scene.add_box(
                f"/limit_{name}",
                dimensions=(0.02, 0.05, 1.5),
                position=(x, 0.0, 0.75),
                color=(220, 60, 60),
            )

        self.cart_frame = self.server.scene.add_frame("/cart", show_axes=False)
        self.server.scene.add_box(
            "/cart/body",
            dimensions=(0.5, 0.3, 0.3),
            position=(0.0, 0.0, 0.15),
            color=(60, 60, 220),
        )
        self.pole_frame = self.server.scene.add_frame(
            "/cart/pole", position=(0.0, 0.0, 0.3), show_axes=False
        )
        self.server.scene.add_box(
            "/cart/pole/rod",
            dimensions=(0.05, 0.05, 2 * params.pole_length),
            position=(0.0, 0.0, params.pole_length),
            color=(220, 60, 60),
        )

    def _create_drone(self):
        """Create the domain walls and the twin-rotor body."""
        bounds = self.simulation.params.bounds
        width = (bounds.x_max - bounds.x_min) * DRONE_SCALE
        height = (bounds.y_max - bounds.y_min) * DRONE_SCALE
        center = (
            (bounds.x_min + bounds.x_max) / 2 * DRONE_SCALE,
            0.0,
            (bounds.y_min + bounds.y_max) / 2 * DRONE_SCALE,
        )
        self.server.scene.add_box(
            "/domain",
            dimensions=(width, 0.01, height),
            position=center,
            color=(40, 40, 60),
            opacity=0.3,
        )

        self.drone_frame = self.server.scene.add_frame(
            "/drone", axes_length=0.2, axes_radius=0.005
        )
        arm = self.simulation.params.thrust_distance
        self.server.scene.add_box(
            "/drone/body",
            dimensions=(2 * arm, 0.08, 0.04),
            color=(60, 60, 70),
        )
        for name, x in (("left", -arm), ("right", arm)):
            self.server.scene.add_box(
                f"/drone/rotor_{name}",
                dimensions=(0.16, 0.16, 0.01),
                position=(x, 0.0, 0.03),
                color=(220, 60, 60),
            )

        self.setpoint_marker = self.server.scene.add_icosphere(
            "/setpoint",
            radius=0.05,
            color=(50, 200, 50),
        )

    # === GUI ===

    def _setup_lifecycle_gui(self, pid_label: str):
        with self.server.gui.add_folder("Simulation"):
            self.run_button = self.server.gui.add_button("Start")
            self.reset_button = self.server.gui.add_button("Reset")
            self.pid_checkbox = self.server.gui.add_checkbox(
                pid_label, initial_value=self.simulation.pid_enabled
            )
            self.status = self.server.gui.add_markdown("")

            @self.run_button.on_click
            def _(_):
                self.simulation.toggle()

            @self.reset_button.on_click
            def _(_):
                self.simulation.reset()
                self.plot_data.clear()
                print("Simulation reset to initial state")

            @self.pid_checkbox.on_update
            def _(_):
                self.simulation.set_pid_enabled(self.pid_checkbox.value)

    def _add_gain_inputs(self, name: str, kp: float, ki: float, kd: float, on_change):
        """Create Kp, Ki, Kd number inputs that call on_change(kp, ki, kd)."""
        with self.server.gui.add_folder(name):
            inputs = [
                self.server.gui.add_number("Kp", initial_value=kp, step=0.05),
                self.server.gui.add_number("Ki", initial_value=ki, step=0.05),
                self.server.gui.add_number("Kd", initial_value=kd, step=0.05),
            ]

        for handle in inputs:
            @handle.on_update
            def _(_):
                on_change(*(h.value for h in inputs))

    def _setup_cartpole_gui(self):
        sim: CartPoleSimulation = self.simulation
        self._setup_lifecycle_gui("PID Autopilot")

        with self.server.gui.add_folder("Manual Force"):
            left = self.server.gui.add_button("Push Left")
            release = self.server.gui.add_button("Release")
            right = self.server.gui.add_button("Push Right")

            left.on_click(lambda _: sim.push_left())
            release.on_click(lambda _: sim.release())
            right.on_click(lambda _: sim.push_right())

        gains = sim.controller.gains
        self._add_gain_inputs("Balance PID", gains.kp, gains.ki, gains.kd, sim.set_gains)

    def _setup_drone_gui(self):
        sim: DroneSimulation = self.simulation
        self._setup_lifecycle_gui("PID Control")

        limit = sim.params.max_manual_thrust
        with self.server.gui.add_folder("Manual Thrust"):
            left = self.server.gui.add_slider(
                "Left [N]", min=0.0, max=limit, step=0.1, initial_value=sim.manual_thrust[0]
            )
            right = self.server.gui.add_slider(
                "Right [N]", min=0.0, max=limit, step=0.1, initial_value=sim.manual_thrust[1]
            )

            @left.on_update
            def _(_):
                sim.set_thrust(left.value, right.value)

            @right.on_update
            def _(_):
                sim.set_thrust(left.value, right.value)

        with self.server.gui.add_folder("Setpoints"):
            target_x = self.server.gui.add_number("Target X [px]", initial_value=sim.setpoints.target_x)
            target_y = self.server.gui.add_number("Target Y [px]", initial_value=sim.setpoints.target_y)

            @target_x.on_update
            def _(_):
                sim.set_setpoints(Setpoints(target_x.value, target_y.value))

            @target_y.on_update
            def _(_):
                sim.set_setpoints(Setpoints(target_x.value, target_y.value))

        self._setup_disturbance_gui()

        for loop in DroneGains.LOOPS:
            gains = getattr(sim.controller.gains, loop)
            self._add_gain_inputs(
                f"{loop.capitalize()} PID", gains.kp, gains.ki, gains.kd,
                lambda kp, ki, kd, loop=loop: sim.set_gains(loop, kp, ki, kd),
            )

    def _setup_disturbance_gui(self):
        sim: DroneSimulation = self.simulation
        current = sim.disturbances.config

        with self.server.gui.add_folder("Disturbance"):
            wind_enabled = self.server.gui.add_checkbox("Wind", initial_value=current.wind.enabled)
            base_speed = self.server.gui.add_slider(
                "Base Speed", min=0.0, max=2.0, step=0.1, initial_value=current.wind.base_speed
            )
            gust_magnitude = self.server.gui.add_slider(
                "Gust Magnitude", min=0.0, max=2.0, step=0.1, initial_value=current.wind.gust_magnitude
            )
            gust_frequency = self.server.gui.add_slider(
                "Gust Frequency", min=0.0, max=1.0, step=0.05, initial_value=current.wind.gust_frequency
            )
            turbulence = self.server.gui.add_slider(
                "Turbulence", min=0.0, max=1.0, step=0.05,
                initial_value=current.wind.turbulence_intensity,
            )
            noise_enabled = self.server.gui.add_checkbox(
                "Thrust Noise", initial_value=current.thrust.enabled
            )
            noise_magnitude = self.server.gui.add_slider(
                "Noise Magnitude", min=0.0, max=0.2, step=0.01, initial_value=current.thrust.magnitude
            )

        handles = [
            wind_enabled, base_speed, gust_magnitude, gust_frequency, turbulence,
            noise_enabled, noise_magnitude,
        ]

        def post_config(_):
            sim.set_disturbance(DisturbanceConfig(
                wind=WindConfig(
                    enabled=wind_enabled.value,
                    base_speed=base_speed.value,
                    gust_frequency=gust_frequency.value,
                    gust_magnitude=gust_magnitude.value,
                    turbulence_intensity=turbulence.value,
                ),
                thrust=ThrustNoiseConfig(
                    enabled=noise_enabled.value,
                    magnitude=noise_magnitude.value,
                    frequency=current.thrust.frequency,
                ),
            ))

        for handle in handles:
            handle.on_update(post_config)

    # === Rendering ===

    def update(self, snapshot: Snapshot):
        """Render a snapshot and log it for the plots."""
        state = snapshot.state
        self.run_button.label = "Stop" if snapshot.running else "Start"

        if self.is_drone:
            self.drone_frame.position = (state.x * DRONE_SCALE, 0.0, state.y * DRONE_SCALE)
            self.drone_frame.wxyz = _pitch_wxyz(state.rotation)
            setpoints = self.simulation.setpoints
            self.setpoint_marker.position = (
                setpoints.target_x * DRONE_SCALE, 0.0, setpoints.target_y * DRONE_SCALE
            )
            left, right = snapshot.actuation
            self.status.content = (
                f"Altitude: {state.y:.1f} px | X: {state.x:.1f} px  \n"
                f"Rotation: {state.rotation_deg:.1f}° | Rate: {state.angular_velocity_deg:.1f}°/s  \n"
                f"Thrust L/R: {left:.1f} N / {right:.1f} N"
            )
        else:
            self.cart_frame.position = (state.x, 0.0, 0.0)
            self.pole_frame.wxyz = _pitch_wxyz(state.theta)
            status = "FAILED" if snapshot.failed else ("running" if snapshot.running else "stopped")
            self.status.content = (
                f"Score: {state.score} ({status})  \n"
                f"Angle: {state.theta_deg:.1f}° | Position: {state.x:.2f} m  \n"
                f"Force: {snapshot.actuation:.2f} N"
            )

        if snapshot.running:
            self.plot_data.append(snapshot.time, snapshot_values(snapshot))
