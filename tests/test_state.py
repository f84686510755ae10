"""
Unit tests for state types and angle normalization.
"""

import math

import numpy as np
import pytest

from sandbox.state import CartPoleState, DroneState, normalize_angle


class TestNormalizeAngle:
    """Test suite for normalize_angle"""

    @pytest.mark.parametrize("angle", np.linspace(-20.0, 20.0, 401))
    def test_result_in_half_open_range(self, angle: float) -> None:
        """Test that every angle lands in (-pi, pi]"""
        result = normalize_angle(angle)

        assert -math.pi < result <= math.pi

    def test_pi_is_kept(self) -> None:
        """Test that pi stays pi"""
        assert normalize_angle(math.pi) == math.pi

    def test_minus_pi_wraps_to_pi(self) -> None:
        """Test that -pi is mapped onto the closed end of the range"""
        assert normalize_angle(-math.pi) == math.pi

    def test_wrap_past_pi_goes_negative(self) -> None:
        """Test that an angle just past pi wraps to just above -pi"""
        result = normalize_angle(math.pi + 0.1)

        assert result == pytest.approx(-math.pi + 0.1)

    def test_full_turns_removed(self) -> None:
        """Test that multiples of 2*pi are removed"""
        assert normalize_angle(0.5 + 4 * math.pi) == pytest.approx(0.5)
        assert normalize_angle(-0.5 - 6 * math.pi) == pytest.approx(-0.5)

    @pytest.mark.parametrize("angle", [-3.0, -1.0, -1e-3, 0.0, 0.1, 1.0, 3.0, math.pi])
    def test_normalized_angle_is_fixed_point(self, angle: float) -> None:
        """Test that normalizing an already normalized angle is the identity"""
        once = normalize_angle(angle)

        assert once == pytest.approx(angle, abs=1e-12)
        assert normalize_angle(once) == pytest.approx(once, abs=1e-12)


class TestStates:
    """Test suite for the state dataclasses"""

    def test_cartpole_initial_values(self) -> None:
        """Test that the cart-pole starts slightly tilted at rest"""
        state = CartPoleState()

        assert (state.x, state.theta, state.dx, state.dtheta, state.score) == (0.0, 0.1, 0.0, 0.0, 0)

    def test_cartpole_array_roundtrip_keeps_score(self) -> None:
        """Test conversion to and from a flat array"""
        state = CartPoleState(x=0.3, theta=-0.2, dx=1.0, dtheta=-2.0, score=7)

        restored = CartPoleState.from_array(state.to_array(), score=state.score)

        assert restored == state

    def test_cartpole_state_is_immutable(self) -> None:
        """Test that states cannot be partially updated in place"""
        state = CartPoleState()

        with pytest.raises(AttributeError):
            state.x = 1.0

    def test_drone_initial_values(self) -> None:
        """Test the drone's initial position and rest state"""
        state = DroneState()

        assert state.position.tolist() == [100.0, 150.0]
        assert state.velocity.tolist() == [0.0, 0.0]
        assert state.rotation == 0.0
        assert state.angular_velocity == 0.0

    def test_drone_degrees(self) -> None:
        """Test degree readouts"""
        state = DroneState(rotation=math.pi / 2, angular_velocity=-math.pi)

        assert state.rotation_deg == pytest.approx(90.0)
        assert state.angular_velocity_deg == pytest.approx(-180.0)

    def test_drone_evolve_returns_new_state(self) -> None:
        """Test that evolve leaves the original untouched"""
        state = DroneState()

        moved = state.evolve(x=200.0)

        assert moved.x == 200.0
        assert state.x == 100.0
