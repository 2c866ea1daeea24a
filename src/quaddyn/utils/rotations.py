"""
Rotation utilities for Euler-angle attitude representation.

Conventions
-----------
- Angles are in radians
- Euler sequence 'ZYX' (yaw-pitch-roll, aerospace convention) is the default
- The DCM maps body-frame vectors to the world frame: v_W = R @ v_B
- Right-hand rotation convention

The quadrotor state stores attitude as [roll, pitch, yaw] = [phi, theta, psi].
The kinematic map from body rates to Euler rates is singular at
theta = ±90° (gimbal lock).

References
----------
- Diebel (2006) - Representing Attitude: Euler Angles, Unit Quaternions, and Rotation Vectors
- Beard & McLain - Small Unmanned Aircraft: Theory and Practice
"""

from typing import Tuple

import numpy as np

# =============================================================================
# Elementary Rotations
# =============================================================================


def rotx(angle: float) -> np.ndarray:
    """
    Elementary rotation matrix about the x-axis.

    Parameters
    ----------
    angle : float
        Rotation angle in radians.

    Returns
    -------
    np.ndarray, shape (3, 3)
        Rotation matrix.
    """
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def roty(angle: float) -> np.ndarray:
    """Elementary rotation matrix about the y-axis."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rotz(angle: float) -> np.ndarray:
    """Elementary rotation matrix about the z-axis."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def drotx(angle: float) -> np.ndarray:
    """Derivative of rotx with respect to its angle."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[0.0, 0.0, 0.0], [0.0, -s, -c], [0.0, c, -s]])


def droty(angle: float) -> np.ndarray:
    """Derivative of roty with respect to its angle."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[-s, 0.0, c], [0.0, 0.0, 0.0], [-c, 0.0, -s]])


def drotz(angle: float) -> np.ndarray:
    """Derivative of rotz with respect to its angle."""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[-s, -c, 0.0], [c, -s, 0.0], [0.0, 0.0, 0.0]])


# =============================================================================
# Skew-Symmetric Matrix
# =============================================================================


def skew(v: np.ndarray) -> np.ndarray:
    """
    Construct the skew-symmetric matrix [v]x such that [v]x @ u = v x u.

    Parameters
    ----------
    v : np.ndarray, shape (3,)
        Input vector [x, y, z].

    Returns
    -------
    np.ndarray, shape (3, 3)
        Skew-symmetric matrix:
            [ 0  -z   y]
            [ z   0  -x]
            [-y   x   0]
    """
    x, y, z = np.asarray(v, dtype=np.float64)
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])


def unskew(S: np.ndarray) -> np.ndarray:
    """Extract the vector from a skew-symmetric matrix (inverse of skew)."""
    S = np.asarray(S, dtype=np.float64)
    return np.array([S[2, 1], S[0, 2], S[1, 0]])


# =============================================================================
# Euler Angles to DCM
# =============================================================================


def euler_to_dcm(phi: float, theta: float, psi: float, sequence: str = "ZYX") -> np.ndarray:
    """
    Convert Euler angles to a body-to-world Direction Cosine Matrix.

    Parameters
    ----------
    phi : float
        Roll angle in radians (rotation about x-axis).
    theta : float
        Pitch angle in radians (rotation about y-axis).
    psi : float
        Yaw angle in radians (rotation about z-axis).
    sequence : str, optional
        Euler angle sequence. Default 'ZYX' (yaw-pitch-roll).
        Options: 'ZYX', 'XYZ'

    Returns
    -------
    np.ndarray, shape (3, 3)
        Rotation matrix.

    Examples
    --------
    >>> R = euler_to_dcm(0.0, 0.0, np.pi / 2)
    >>> R @ np.array([1.0, 0.0, 0.0])  # body x points along world y
    array([0., 1., 0.])

    Notes
    -----
    For 'ZYX': R = Rz(psi) @ Ry(theta) @ Rx(phi). Its third row,
    [-sin(theta), cos(theta)sin(phi), cos(theta)cos(phi)], is the body-frame
    direction of the world down axis.
    """
    sequence = sequence.upper()

    if sequence == "ZYX":
        return rotz(psi) @ roty(theta) @ rotx(phi)
    if sequence == "XYZ":
        return rotx(phi) @ roty(theta) @ rotz(psi)

    raise NotImplementedError(f"Sequence '{sequence}' not implemented. Use 'ZYX' or 'XYZ'.")


def dcm_euler_partials(phi: float, theta: float, psi: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Partial derivatives of the 'ZYX' DCM with respect to each Euler angle.

    Parameters
    ----------
    phi, theta, psi : float
        Roll, pitch and yaw in radians.

    Returns
    -------
    dR_dphi, dR_dtheta, dR_dpsi : np.ndarray, shape (3, 3)
        Element-wise derivatives of euler_to_dcm(phi, theta, psi).
    """
    Rx, Ry, Rz = rotx(phi), roty(theta), rotz(psi)

    dR_dphi = Rz @ Ry @ drotx(phi)
    dR_dtheta = Rz @ droty(theta) @ Rx
    dR_dpsi = drotz(psi) @ Ry @ Rx

    return dR_dphi, dR_dtheta, dR_dpsi


def dcm_to_euler(C: np.ndarray) -> Tuple[float, float, float]:
    """
    Recover 'ZYX' Euler angles (roll, pitch, yaw) from a DCM.

    At gimbal lock (|C[2, 0]| == 1) yaw is set to zero and the remaining
    rotation is attributed to roll.
    """
    C = np.asarray(C, dtype=np.float64)

    if np.abs(C[2, 0]) >= 1.0 - 1e-10:
        psi = 0.0
        if C[2, 0] < 0:
            theta = np.pi / 2
            phi = np.arctan2(C[0, 1], C[0, 2])
        else:
            theta = -np.pi / 2
            phi = np.arctan2(-C[0, 1], -C[0, 2])
        return phi, theta, psi

    theta = np.arcsin(-C[2, 0])
    phi = np.arctan2(C[2, 1], C[2, 2])
    psi = np.arctan2(C[1, 0], C[0, 0])

    return phi, theta, psi


def dcm_is_valid(C: np.ndarray, tol: float = 1e-6) -> bool:
    """
    Check that C is a proper rotation (orthogonal with determinant +1).
    """
    C = np.asarray(C, dtype=np.float64)

    if C.shape != (3, 3):
        return False
    if not np.allclose(C @ C.T, np.eye(3), atol=tol):
        return False
    return bool(np.isclose(np.linalg.det(C), 1.0, atol=tol))


# =============================================================================
# Angular Velocity Utilities
# =============================================================================


def euler_rate_matrix(phi: float, theta: float) -> np.ndarray:
    """
    Matrix W mapping body angular rates [p, q, r] to Euler rates.

    [phi_dot  ]   [1  sin(phi)tan(theta)  cos(phi)tan(theta)] [p]
    [theta_dot] = [0  cos(phi)            -sin(phi)         ] [q]
    [psi_dot  ]   [0  sin(phi)sec(theta)  cos(phi)sec(theta)] [r]

    No guard is applied: at theta = ±90° the entries blow up (gimbal lock)
    and the result is inf/NaN. Use angular_velocity_to_euler_rates for a
    checked conversion.
    """
    sp, cp = np.sin(phi), np.cos(phi)
    tt, ct = np.tan(theta), np.cos(theta)

    return np.array(
        [
            [1.0, sp * tt, cp * tt],
            [0.0, cp, -sp],
            [0.0, sp / ct, cp / ct],
        ]
    )


def euler_rate_matrix_partials(phi: float, theta: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Derivatives of euler_rate_matrix with respect to roll and pitch.

    Returns
    -------
    dW_dphi, dW_dtheta : np.ndarray, shape (3, 3)
    """
    sp, cp = np.sin(phi), np.cos(phi)
    st, ct = np.sin(theta), np.cos(theta)
    tt = st / ct
    sec2 = 1.0 / ct**2

    dW_dphi = np.array(
        [
            [0.0, cp * tt, -sp * tt],
            [0.0, -sp, -cp],
            [0.0, cp / ct, -sp / ct],
        ]
    )
    dW_dtheta = np.array(
        [
            [0.0, sp * sec2, cp * sec2],
            [0.0, 0.0, 0.0],
            [0.0, sp * st * sec2, cp * st * sec2],
        ]
    )

    return dW_dphi, dW_dtheta


def angular_velocity_to_euler_rates(omega: np.ndarray, phi: float, theta: float) -> np.ndarray:
    """
    Convert body angular velocity to 'ZYX' Euler angle rates.

    Parameters
    ----------
    omega : np.ndarray, shape (3,)
        Angular velocity in body frame [p, q, r].
    phi : float
        Current roll angle.
    theta : float
        Current pitch angle.

    Returns
    -------
    np.ndarray, shape (3,)
        Euler angle rates [phi_dot, theta_dot, psi_dot].

    Raises
    ------
    ValueError
        If theta is within 1e-10 of cos(theta) = 0 (gimbal lock).
    """
    omega = np.asarray(omega, dtype=np.float64)

    if np.abs(np.cos(theta)) < 1e-10:
        raise ValueError("Gimbal lock: theta near ±90°")

    return euler_rate_matrix(phi, theta) @ omega


def euler_rates_to_angular_velocity(euler_rates: np.ndarray, phi: float, theta: float) -> np.ndarray:
    """
    Convert 'ZYX' Euler angle rates to body angular velocity [p, q, r].

    This direction is well defined at every attitude.
    """
    phi_dot, theta_dot, psi_dot = np.asarray(euler_rates, dtype=np.float64)

    sp, cp = np.sin(phi), np.cos(phi)
    st, ct = np.sin(theta), np.cos(theta)

    p = phi_dot - st * psi_dot
    q = cp * theta_dot + sp * ct * psi_dot
    r = -sp * theta_dot + cp * ct * psi_dot

    return np.array([p, q, r])


# =============================================================================
# Angle Wrapping
# =============================================================================


def wrap_angle(angle: float) -> float:
    """Wrap angle to [-π, π)."""
    return (angle + np.pi) % (2 * np.pi) - np.pi


def angle_difference(angle1: float, angle2: float) -> float:
    """Shortest signed difference angle1 - angle2, in [-π, π)."""
    return wrap_angle(angle1 - angle2)
