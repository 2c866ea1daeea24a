"""
Tests for rotation utilities (DCM, Euler angles, Euler kinematics).

These tests verify:
1. Elementary rotations and their derivatives
2. Skew-symmetric matrices
3. Euler angle / DCM conversions, including a reference attitude
4. Euler rate kinematics and gimbal lock handling
5. Angle wrapping
"""

import numpy as np
import pytest

from quaddyn.utils.rotations import (
    angle_difference,
    angular_velocity_to_euler_rates,
    dcm_euler_partials,
    dcm_is_valid,
    dcm_to_euler,
    drotx,
    droty,
    drotz,
    euler_rate_matrix,
    euler_rate_matrix_partials,
    euler_rates_to_angular_velocity,
    euler_to_dcm,
    rotx,
    roty,
    rotz,
    skew,
    unskew,
    wrap_angle,
)

# =============================================================================
# Test: Elementary Rotations
# =============================================================================


class TestElementaryRotations:
    """Tests for rotx, roty, rotz and their derivatives."""

    @pytest.mark.parametrize("rot", [rotx, roty, rotz])
    def test_zero_angle_is_identity(self, rot):
        np.testing.assert_allclose(rot(0.0), np.eye(3), atol=1e-15)

    def test_rotz_90(self):
        v = rotz(np.pi / 2) @ np.array([1.0, 0.0, 0.0])

        np.testing.assert_allclose(v, [0.0, 1.0, 0.0], atol=1e-15)

    def test_rotx_90(self):
        v = rotx(np.pi / 2) @ np.array([0.0, 1.0, 0.0])

        np.testing.assert_allclose(v, [0.0, 0.0, 1.0], atol=1e-15)

    def test_roty_90(self):
        v = roty(np.pi / 2) @ np.array([0.0, 0.0, 1.0])

        np.testing.assert_allclose(v, [1.0, 0.0, 0.0], atol=1e-15)

    @pytest.mark.parametrize("angle", [-2.0, -0.3, 0.0, 0.7, 2.5])
    def test_rotations_are_valid(self, angle, assert_rotation):
        for rot in (rotx, roty, rotz):
            assert_rotation(rot(angle))

    @pytest.mark.parametrize("rot, drot", [(rotx, drotx), (roty, droty), (rotz, drotz)])
    def test_derivative_matches_finite_difference(self, rot, drot):
        angle, eps = 0.4, 1e-6
        numeric = (rot(angle + eps) - rot(angle - eps)) / (2 * eps)

        np.testing.assert_allclose(drot(angle), numeric, atol=1e-9)


# =============================================================================
# Test: Skew Matrix
# =============================================================================


class TestSkewMatrix:
    """Tests for skew and unskew."""

    def test_skew_antisymmetric(self):
        S = skew([1.0, 2.0, 3.0])

        np.testing.assert_array_equal(S, -S.T)

    def test_skew_cross_product(self, rng):
        a, b = rng.standard_normal(3), rng.standard_normal(3)

        np.testing.assert_allclose(skew(a) @ b, np.cross(a, b), atol=1e-14)

    def test_unskew_inverts_skew(self):
        v = np.array([0.5, -1.5, 2.0])

        np.testing.assert_array_equal(unskew(skew(v)), v)


# =============================================================================
# Test: Euler Angles and DCM
# =============================================================================


class TestEulerToDCM:
    """Tests for euler_to_dcm and dcm_to_euler."""

    def test_identity(self):
        np.testing.assert_allclose(euler_to_dcm(0.0, 0.0, 0.0), np.eye(3), atol=1e-15)

    def test_reference_attitude(self):
        """Known body-to-world matrix for roll 45°, pitch 22.5°, yaw -30° (with π ≈ 3.14)."""
        R = euler_to_dcm(3.14 / 4, 3.14 / 8, -3.14 / 6)

        expected = np.array(
            [
                [0.800292, 0.587706, -0.118889],
                [-0.461765, 0.477592, -0.747448],
                [-0.382499, 0.653075, 0.653595],
            ]
        )
        np.testing.assert_allclose(R, expected, atol=1e-6)

    def test_zyx_composition(self):
        phi, theta, psi = 0.1, -0.2, 0.3

        np.testing.assert_allclose(euler_to_dcm(phi, theta, psi), rotz(psi) @ roty(theta) @ rotx(phi))

    def test_xyz_sequence(self):
        phi, theta, psi = 0.1, -0.2, 0.3

        np.testing.assert_allclose(euler_to_dcm(phi, theta, psi, "xyz"), rotx(phi) @ roty(theta) @ rotz(psi))

    def test_unknown_sequence(self):
        with pytest.raises(NotImplementedError):
            euler_to_dcm(0.0, 0.0, 0.0, sequence="ZXZ")

    def test_dcm_euler_roundtrip(self, rng):
        for _ in range(10):
            angles = rng.uniform([-3.0, -1.5, -3.0], [3.0, 1.5, 3.0])

            np.testing.assert_allclose(dcm_to_euler(euler_to_dcm(*angles)), angles, atol=1e-10)

    def test_dcm_to_euler_gimbal_lock(self):
        phi, theta, psi = dcm_to_euler(euler_to_dcm(0.3, np.pi / 2, 0.0))

        assert psi == 0.0
        np.testing.assert_allclose(theta, np.pi / 2)
        np.testing.assert_allclose(euler_to_dcm(phi, theta, psi), euler_to_dcm(0.3, np.pi / 2, 0.0), atol=1e-8)

    def test_partials_match_finite_difference(self):
        angles = np.array([0.3, -0.4, 1.1])
        eps = 1e-6

        for j, dR in enumerate(dcm_euler_partials(*angles)):
            dx = np.zeros(3)
            dx[j] = eps
            numeric = (euler_to_dcm(*(angles + dx)) - euler_to_dcm(*(angles - dx))) / (2 * eps)
            np.testing.assert_allclose(dR, numeric, atol=1e-9)


class TestDCMValidity:
    """Tests for dcm_is_valid."""

    def test_rotation_is_valid(self):
        assert dcm_is_valid(euler_to_dcm(0.2, 0.3, -0.4))

    def test_scaled_matrix_is_invalid(self):
        assert not dcm_is_valid(2.0 * np.eye(3))

    def test_reflection_is_invalid(self):
        assert not dcm_is_valid(np.diag([1.0, 1.0, -1.0]))

    def test_wrong_shape_is_invalid(self):
        assert not dcm_is_valid(np.eye(2))


# =============================================================================
# Test: Euler Kinematics
# =============================================================================


class TestEulerKinematics:
    """Tests for the body-rate to Euler-rate map."""

    def test_level_attitude_is_identity(self):
        np.testing.assert_allclose(euler_rate_matrix(0.0, 0.0), np.eye(3), atol=1e-15)

    def test_roundtrip(self, rng):
        omega = rng.standard_normal(3)
        phi, theta = 0.4, -0.7

        rates = angular_velocity_to_euler_rates(omega, phi, theta)

        np.testing.assert_allclose(euler_rates_to_angular_velocity(rates, phi, theta), omega, atol=1e-12)

    def test_matches_matrix(self):
        omega = np.array([0.1, 0.2, 0.3])

        np.testing.assert_allclose(angular_velocity_to_euler_rates(omega, 0.5, 0.2), euler_rate_matrix(0.5, 0.2) @ omega)

    def test_gimbal_lock_raises(self):
        with pytest.raises(ValueError, match="Gimbal lock"):
            angular_velocity_to_euler_rates(np.ones(3), 0.0, np.pi / 2)

    def test_unguarded_matrix_blows_up_at_gimbal_lock(self):
        W = euler_rate_matrix(0.3, np.pi / 2)

        assert np.max(np.abs(W)) > 1e10

    def test_partials_match_finite_difference(self):
        phi, theta, eps = 0.3, 0.5, 1e-6
        dW_dphi, dW_dtheta = euler_rate_matrix_partials(phi, theta)

        num_phi = (euler_rate_matrix(phi + eps, theta) - euler_rate_matrix(phi - eps, theta)) / (2 * eps)
        num_theta = (euler_rate_matrix(phi, theta + eps) - euler_rate_matrix(phi, theta - eps)) / (2 * eps)

        np.testing.assert_allclose(dW_dphi, num_phi, atol=1e-8)
        np.testing.assert_allclose(dW_dtheta, num_theta, atol=1e-8)


# =============================================================================
# Test: Angle Wrapping
# =============================================================================


class TestAngleWrapping:
    """Tests for wrap_angle and angle_difference."""

    @pytest.mark.parametrize(
        "angle, expected",
        [(0.0, 0.0), (np.pi / 2, np.pi / 2), (3 * np.pi / 2, -np.pi / 2), (-3 * np.pi / 2, np.pi / 2)],
    )
    def test_wrap_angle(self, angle, expected):
        np.testing.assert_allclose(wrap_angle(angle), expected, atol=1e-12)

    def test_wrap_pi_maps_to_minus_pi(self):
        np.testing.assert_allclose(wrap_angle(np.pi), -np.pi)

    def test_angle_difference_across_branch_cut(self):
        np.testing.assert_allclose(angle_difference(np.pi - 0.1, -np.pi + 0.1), -0.2, atol=1e-12)
