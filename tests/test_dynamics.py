"""
Unit tests for the cart-pole and drone dynamics and their bounds policies.
"""

import math

import pytest

from sandbox.bounds import FailurePolicy, WallBounds
from sandbox.dynamics import CartPoleDynamics, CartPoleParams, DroneDynamics, DroneParams
from sandbox.state import CartPoleState, DroneState


class TestCartPoleDynamics:
    """Test suite for CartPoleDynamics"""

    @pytest.fixture
    def params(self) -> CartPoleParams:
        return CartPoleParams()

    @pytest.fixture
    def dynamics(self, params: CartPoleParams) -> CartPoleDynamics:
        return CartPoleDynamics(params)

    def test_single_tick_from_small_tilt(self, dynamics: CartPoleDynamics) -> None:
        """Test one tick from theta = 0.1 with no force: pole starts falling, score is 1"""
        state = CartPoleState(x=0.0, theta=0.1, dx=0.0, dtheta=0.0)

        new_state = dynamics.step(state, 0.0, 0.02)

        assert new_state.score == 1
        assert new_state.dtheta > 0
        # Angle advances with the pre-update rate, which is zero on the first tick
        assert new_state.theta == pytest.approx(0.1, abs=1e-12)
        assert new_state.x == 0.0

    def test_unforced_pole_diverges_monotonically(self, dynamics: CartPoleDynamics) -> None:
        """Test that an unforced tilted pole keeps falling away from upright"""
        state = dynamics.step(CartPoleState(), 0.0)
        thetas = [state.theta]
        for _ in range(20):
            state = dynamics.step(state, 0.0)
            thetas.append(state.theta)

        assert all(later > earlier for earlier, later in zip(thetas, thetas[1:]))
        assert state.score == 21

    def test_accelerations_match_reference_form(self, params: CartPoleParams, dynamics: CartPoleDynamics) -> None:
        """Test the exact algebraic form of both accelerations"""
        state = CartPoleState(x=0.2, theta=0.3, dx=-0.4, dtheta=1.5)
        force = 4.0
        m, l, total = params.pole_mass, params.pole_length, params.total_mass
        sin_t, cos_t = math.sin(state.theta), math.cos(state.theta)
        pole_force = m * l * state.dtheta * state.dtheta * sin_t

        expected_ddtheta = (
            params.gravity * sin_t * total - (force + pole_force) * cos_t
        ) / (l * (total - m * cos_t * cos_t))
        expected_ddx = (
            force + pole_force + m * l * expected_ddtheta * cos_t
            - m * l * state.dtheta * state.dtheta * sin_t
        ) / total

        ddx, ddtheta = dynamics.accelerations(state, force)

        assert ddtheta == pytest.approx(expected_ddtheta, rel=1e-12)
        assert ddx == pytest.approx(expected_ddx, rel=1e-12)

    def test_explicit_euler_order(self, dynamics: CartPoleDynamics) -> None:
        """Test that positions use pre-update velocities"""
        state = CartPoleState(x=0.5, theta=0.05, dx=1.0, dtheta=-0.5)

        new_state = dynamics.step(state, 2.0, 0.02)
        ddx, ddtheta = dynamics.accelerations(state, 2.0)

        assert new_state.x == 0.5 + 1.0 * 0.02
        assert new_state.theta == pytest.approx(0.05 - 0.5 * 0.02, abs=1e-12)
        assert new_state.dx == 1.0 + ddx * 0.02
        assert new_state.dtheta == -0.5 + ddtheta * 0.02

    def test_force_is_clamped(self, dynamics: CartPoleDynamics) -> None:
        """Test that forces beyond max_force act as max_force"""
        state = CartPoleState()

        assert dynamics.step(state, 100.0) == dynamics.step(state, 15.0)
        assert dynamics.step(state, -100.0) == dynamics.step(state, -15.0)

    def test_pushing_right_accelerates_cart_right(self, dynamics: CartPoleDynamics) -> None:
        """Test the sign of the force response"""
        state = CartPoleState(theta=0.0)

        new_state = dynamics.step(state, 10.0)

        assert new_state.dx > 0
        assert new_state.dtheta < 0

    def test_angle_wraps_after_step(self, dynamics: CartPoleDynamics) -> None:
        """Test that the integrated angle is normalized into (-pi, pi]"""
        state = CartPoleState(theta=math.pi - 0.01, dtheta=2.0)

        new_state = dynamics.step(state, 0.0, 0.02)

        assert -math.pi < new_state.theta < 0

    @pytest.mark.parametrize("overrides", [
        {"dt": 0.0}, {"dt": -0.02}, {"cart_mass": 0.0}, {"pole_mass": -1.0}, {"pole_length": 0.0},
    ])
    def test_degenerate_params_rejected(self, overrides: dict) -> None:
        """Test that degenerate configuration fails at construction"""
        with pytest.raises(ValueError):
            CartPoleParams(**overrides)


class TestFailurePolicy:
    """Test suite for the cart-pole termination limits"""

    @pytest.fixture
    def policy(self) -> FailurePolicy:
        return FailurePolicy()

    @pytest.mark.parametrize("state", [
        CartPoleState(x=2.41, theta=0.0),
        CartPoleState(x=-2.5, theta=0.0),
        CartPoleState(x=0.0, theta=1.6),
        CartPoleState(x=0.0, theta=-1.6),
    ])
    def test_violations(self, policy: FailurePolicy, state: CartPoleState) -> None:
        assert policy.violated(state)

    @pytest.mark.parametrize("state", [
        CartPoleState(x=2.4, theta=0.0),
        CartPoleState(x=-2.4, theta=math.pi / 2),
        CartPoleState(x=1.0, theta=-1.5),
    ])
    def test_limits_are_inclusive(self, policy: FailurePolicy, state: CartPoleState) -> None:
        assert not policy.violated(state)


class TestDroneDynamics:
    """Test suite for DroneDynamics"""

    @pytest.fixture
    def params(self) -> DroneParams:
        return DroneParams()

    @pytest.fixture
    def dynamics(self, params: DroneParams) -> DroneDynamics:
        return DroneDynamics(params)

    def test_hover_thrust_balances_gravity(self, params: DroneParams) -> None:
        """Test that 4.9 N per rotor is the nominal hover thrust"""
        assert params.base_thrust == pytest.approx(4.9)
        assert 4.9 + 4.9 == pytest.approx(params.mass * params.gravity)

    def test_hover_holds_altitude(self, dynamics: DroneDynamics) -> None:
        """Test that hover thrust with no disturbance keeps vertical velocity at zero"""
        state = DroneState(x=300.0, y=150.0)

        new_state = dynamics.step(state, 4.9, 4.9)

        assert new_state.vy == pytest.approx(0.0, abs=1e-9)
        assert new_state.y == pytest.approx(150.0, abs=1e-9)
        assert new_state.rotation == 0.0

    def test_falls_without_enough_thrust(self, dynamics: DroneDynamics) -> None:
        """Test that total thrust below m*g loses altitude"""
        state = DroneState(x=300.0, y=150.0)

        new_state = dynamics.step(state, 2.0, 2.0)

        assert new_state.vy < 0
        assert new_state.y < 150.0

    def test_falls_under_gravity_with_zero_thrust(self, dynamics: DroneDynamics) -> None:
        """Test free fall over several ticks"""
        state = DroneState(x=300.0, y=250.0)
        altitudes = [state.y]
        for _ in range(5):
            state = dynamics.step(state, 0.0, 0.0)
            altitudes.append(state.y)

        assert all(later < earlier for earlier, later in zip(altitudes, altitudes[1:]))

    def test_wall_clamp_upper_x(self) -> None:
        """Test that crossing x = 590 clamps exactly to the wall and stops the drone"""
        dynamics = DroneDynamics(DroneParams(drag_coefficient=0.0))
        state = DroneState(x=589.0, y=150.0, vx=100.0)

        new_state = dynamics.step(state, 4.9, 4.9)

        assert new_state.x == 590.0
        assert new_state.vx == 0.0

    def test_wall_clamp_lower_bounds(self) -> None:
        """Test clamping against the left wall and the floor"""
        dynamics = DroneDynamics(DroneParams(drag_coefficient=0.0))
        state = DroneState(x=11.0, y=11.0, vx=-100.0, vy=-100.0)

        new_state = dynamics.step(state, 4.9, 4.9)

        assert (new_state.x, new_state.y) == (10.0, 10.0)
        assert (new_state.vx, new_state.vy) == (0.0, 0.0)

    def test_clamp_only_affects_touching_axis(self) -> None:
        """Test that a wall contact on x leaves y velocity alone"""
        dynamics = DroneDynamics(DroneParams(drag_coefficient=0.0))
        state = DroneState(x=589.0, y=150.0, vx=100.0)

        new_state = dynamics.step(state, 3.0, 3.0)

        assert new_state.vx == 0.0
        assert new_state.vy < 0

    def test_differential_thrust_rotates(self, dynamics: DroneDynamics) -> None:
        """Test torque sign and Euler integration of the rotation"""
        state = DroneState(x=300.0, y=150.0)

        new_state = dynamics.step(state, 4.0, 5.0)

        # torque = 5*0.4 - 4*0.4 = 0.4, alpha = 0.4 / 0.1 = 4
        assert new_state.angular_velocity == pytest.approx(0.8)
        assert new_state.rotation == pytest.approx(0.16)

    def test_com_offset_adds_torque(self) -> None:
        """Test that equal thrusts produce torque when the COM is off center"""
        dynamics = DroneDynamics(DroneParams(center_of_mass_offset=0.1))

        assert dynamics.torque(5.0, 5.0) == pytest.approx(1.0)

    def test_thrust_efficiency_and_noise(self) -> None:
        """Test effective thrust = commanded * efficiency * noise"""
        dynamics = DroneDynamics(DroneParams(left_thrust_efficiency=0.5))

        assert dynamics.effective_thrusts(4.0, 4.0) == (2.0, 4.0)
        assert dynamics.effective_thrusts(4.0, 4.0, (1.1, 0.9)) == pytest.approx((2.2, 3.6))

    def test_thrust_uses_rotation_before_step(self) -> None:
        """Test that a tilted drone is pushed sideways by its thrust"""
        dynamics = DroneDynamics(DroneParams(drag_coefficient=0.0))
        state = DroneState(x=300.0, y=150.0, rotation=0.2)

        new_state = dynamics.step(state, 5.0, 5.0)

        assert new_state.vx == pytest.approx(10.0 * math.sin(0.2) * 0.2)

    def test_wind_pushes_sideways(self) -> None:
        """Test that wind force adds to horizontal acceleration"""
        dynamics = DroneDynamics(DroneParams(drag_coefficient=0.0))
        state = DroneState(x=300.0, y=150.0)

        new_state = dynamics.step(state, 4.9, 4.9, wind_force=2.0)

        assert new_state.vx == pytest.approx(0.4)

    @pytest.mark.parametrize("velocity, expected", [(3.0, 0.9), (-3.0, -0.9), (0.0, 0.0)])
    def test_quadratic_drag_is_signed(self, velocity: float, expected: float) -> None:
        """Test drag = c * v * |v|"""
        assert DroneDynamics.quadratic_drag(0.1, velocity) == pytest.approx(expected)

    def test_drag_slows_motion(self, dynamics: DroneDynamics) -> None:
        """Test that drag opposes horizontal velocity"""
        state = DroneState(x=300.0, y=150.0, vx=2.0)

        new_state = dynamics.step(state, 4.9, 4.9)

        assert 0 < new_state.vx < 2.0

    def test_tick_period(self, params: DroneParams) -> None:
        """Test that the default tick period is 20 ms of wall-clock time"""
        assert params.tick_period == pytest.approx(0.02)

    def test_basic_params_are_ideal(self) -> None:
        """Test that the simple model has no COM offset and unit efficiencies"""
        params = DroneParams.basic(center_of_mass_offset=0.2, mass=2.0)

        assert params.center_of_mass_offset == 0.0
        assert params.left_thrust_efficiency == params.right_thrust_efficiency == 1.0
        assert params.mass == 2.0

    @pytest.mark.parametrize("overrides", [
        {"dt": 0.0}, {"time_scale": 0.0}, {"mass": 0.0}, {"moment_of_inertia": -0.1},
    ])
    def test_degenerate_params_rejected(self, overrides: dict) -> None:
        with pytest.raises(ValueError):
            DroneParams(**overrides)

    def test_empty_bounds_rejected(self) -> None:
        with pytest.raises(ValueError):
            WallBounds(x_min=10.0, x_max=10.0)
