"""
Linear control model of the quadrotor about a reference state.

Two ways to use it:

- ``linearize(x_ref)`` is a pure function returning the full LinearModel
  (rotation, A, B, Ad, Bd) in one call.
- ``LinearizationEngine`` keeps the last computed matrices for a control
  loop that refreshes them step by step. Its update methods must be called
  in order: update_rotation() -> update_A() -> discretize_AB(). The engine
  does not check the order; each call reads whatever the previous ones left.

The state Jacobian here is a reduced model for control design, not the
exact Jacobian of Quadrotor.f:

    [p, v] = S·R                  (position is linear in body velocity)
    [e, ω] = I                    (small-rate kinematics)
    [v, v] = -(μ/m)·I             (drag)
    [v, e] = ∂(R^T·[0, 0, g])/∂e  (gravity gradient)

All other blocks are zero. Terms that vanish at zero velocity and rate
(rotating-frame coupling, gyroscopic coupling, ∂W/∂e) are dropped.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from quaddyn.integrators import rk4_discretize_jacobians
from quaddyn.systems.quadrotor import (
    ATTITUDE,
    E3,
    INPUT_SIZE,
    POSITION,
    RATES,
    STATE_SIZE,
    VELOCITY,
    VERTICAL_FLIP,
    VZ,
    Quadrotor,
    QuadrotorParams,
    default_params,
    validate_state,
)
from quaddyn.utils.rotations import dcm_euler_partials, euler_to_dcm

logger = logging.getLogger(__name__)

DEFAULT_CONTROL_PERIOD = 0.01


@dataclass
class LinearModel:
    """Discrete and continuous linear model about one reference state."""

    rotation: np.ndarray
    A: np.ndarray
    B: np.ndarray
    Ad: np.ndarray
    Bd: np.ndarray
    dt: float


# =============================================================================
# Pipeline Functions
# =============================================================================


def rotation_matrix(x: np.ndarray) -> np.ndarray:
    """Body-to-world 'ZYX' rotation for the attitude in state x."""
    phi, theta, psi = validate_state(x)[ATTITUDE]
    return euler_to_dcm(phi, theta, psi)


def gravity_gradient(x: np.ndarray, params: QuadrotorParams) -> np.ndarray:
    """
    ∂(R^T·[0, 0, g])/∂[φ, θ, ψ], shape (3, 3).

    Column j is the derivative of the body-frame gravity vector with respect
    to the j-th Euler angle; the yaw column is always zero.
    """
    phi, theta, psi = validate_state(x)[ATTITUDE]
    g_world = params.gravity * E3
    return np.column_stack([dR.T @ g_world for dR in dcm_euler_partials(phi, theta, psi)])


def state_jacobian(
    x: np.ndarray, params: Optional[QuadrotorParams] = None, rotation: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Reduced continuous-time state matrix A (12x12) about x.

    Parameters
    ----------
    x : np.ndarray, shape (12,)
        Reference state. Only the attitude enters A.
    params : QuadrotorParams, optional
        Vehicle parameters. Defaults if None.
    rotation : np.ndarray, shape (3, 3), optional
        Precomputed body-to-world rotation for x. Computed if None.
    """
    if params is None:
        params = default_params()
    if rotation is None:
        rotation = rotation_matrix(x)

    A = np.zeros((STATE_SIZE, STATE_SIZE))
    A[POSITION, VELOCITY] = VERTICAL_FLIP @ rotation
    A[ATTITUDE, RATES] = np.eye(3)
    A[VELOCITY, VELOCITY] = -(params.drag / params.mass) * np.eye(3)
    A[VELOCITY, ATTITUDE] = gravity_gradient(x, params)

    return A


def input_jacobian(params: Optional[QuadrotorParams] = None) -> np.ndarray:
    """
    Continuous-time input matrix B (12x4).

    Thrust (mixer row 0) drives body vertical acceleration, the torque rows
    drive angular acceleration through J^{-1}.
    """
    if params is None:
        params = default_params()

    B = np.zeros((STATE_SIZE, INPUT_SIZE))
    B[VZ, :] = -params.mixer[0] / params.mass
    B[RATES, :] = params.inertia_inv @ params.mixer[1:4]

    return B


def equilibrium_input(params: Optional[QuadrotorParams] = None) -> np.ndarray:
    """Per-rotor hover command: equal commands whose total thrust is m·g."""
    return Quadrotor(params).hover_command()


def linearize(
    x_ref: np.ndarray, params: Optional[QuadrotorParams] = None, dt: float = DEFAULT_CONTROL_PERIOD
) -> LinearModel:
    """
    Build the complete linear model about x_ref in one call.

    Parameters
    ----------
    x_ref : np.ndarray, shape (12,)
        Reference state.
    params : QuadrotorParams, optional
        Vehicle parameters.
    dt : float, optional
        Control period used for discretization.

    Returns
    -------
    LinearModel
    """
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if params is None:
        params = default_params()

    R = rotation_matrix(x_ref)
    A = state_jacobian(x_ref, params, rotation=R)
    B = input_jacobian(params)
    Ad, Bd = rk4_discretize_jacobians(A, B, dt)

    return LinearModel(rotation=R, A=A, B=B, Ad=Ad, Bd=Bd, dt=dt)


# =============================================================================
# Stateful Engine
# =============================================================================


class LinearizationEngine:
    """
    Linear model and equilibrium-tracking control law for a control loop.

    Parameters
    ----------
    params : QuadrotorParams, optional
        Vehicle parameters.
    dt : float, optional
        Control period for discretization. Default DEFAULT_CONTROL_PERIOD.
    x_ref : np.ndarray, shape (12,), optional
        Initial reference state. Zeros if None.

    Notes
    -----
    Control law: u = u_eq - K·(x - x_sp). The gain K (4x12) must come from
    an external design over (Ad, Bd), e.g. LQR or MPC; it defaults to zero,
    in which case the law returns the hover command for any state.
    """

    def __init__(
        self, params: Optional[QuadrotorParams] = None, dt: float = DEFAULT_CONTROL_PERIOD, x_ref=None
    ):
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")

        self.params = default_params() if params is None else params
        self.dt = float(dt)

        self._x_ref = np.zeros(STATE_SIZE) if x_ref is None else validate_state(x_ref).copy()
        self._setpoint = np.zeros(STATE_SIZE)
        self._K = np.zeros((INPUT_SIZE, STATE_SIZE))
        self._u_eq = equilibrium_input(self.params)

        self._R = np.zeros((3, 3))
        self._A = np.zeros((STATE_SIZE, STATE_SIZE))
        self._B = np.zeros((STATE_SIZE, INPUT_SIZE))
        self._Ad = np.zeros((STATE_SIZE, STATE_SIZE))
        self._Bd = np.zeros((STATE_SIZE, INPUT_SIZE))

    # =========================================================================
    # Reference, Setpoint and Gain
    # =========================================================================

    @property
    def reference(self) -> np.ndarray:
        """Copy of the state the model is linearized about."""
        return self._x_ref.copy()

    def set_reference(self, x: np.ndarray) -> None:
        self._x_ref = validate_state(x).copy()

    def set_attitude(self, roll: float, pitch: float, yaw: float) -> None:
        """Set only the attitude part of the reference state."""
        self._x_ref[ATTITUDE] = [roll, pitch, yaw]

    def set_setpoint(self, x: np.ndarray) -> None:
        """State the control law drives toward."""
        self._setpoint = validate_state(x).copy()

    def set_gain(self, K: np.ndarray) -> None:
        """Feedback gain, shape (4, 12)."""
        K = np.asarray(K, dtype=np.float64)
        if K.shape != (INPUT_SIZE, STATE_SIZE):
            raise ValueError(f"K must be ({INPUT_SIZE},{STATE_SIZE}), got {K.shape}")
        self._K = K.copy()

    @property
    def equilibrium_input(self) -> np.ndarray:
        return self._u_eq.copy()

    # =========================================================================
    # Updates (call in order)
    # =========================================================================

    def update_rotation(self) -> None:
        """Recompute the body-to-world rotation from the reference attitude."""
        self._R = rotation_matrix(self._x_ref)

    def update_A(self) -> None:
        """Recompute A from the current rotation and reference; B is rebuilt too."""
        self._A = state_jacobian(self._x_ref, self.params, rotation=self._R)
        self._B = input_jacobian(self.params)

    def discretize_AB(self) -> None:
        """Discretize the held (A, B) over the control period."""
        self._Ad, self._Bd = rk4_discretize_jacobians(self._A, self._B, self.dt)
        logger.debug("Discretized linear model at attitude %s (dt=%g)", self._x_ref[ATTITUDE], self.dt)

    def relinearize(self, x_ref: Optional[np.ndarray] = None) -> LinearModel:
        """Optionally set a new reference, then run all three updates in order."""
        if x_ref is not None:
            self.set_reference(x_ref)
        self.update_rotation()
        self.update_A()
        self.discretize_AB()
        return self.linear_model()

    # =========================================================================
    # Control
    # =========================================================================

    def calculate_control(self, x: np.ndarray) -> np.ndarray:
        """
        Rotor commands u = u_eq - K·(x - x_sp).

        Parameters
        ----------
        x : np.ndarray, shape (12,)
            Current state.

        Returns
        -------
        np.ndarray, shape (4,)
        """
        x = validate_state(x)
        return self._u_eq - self._K @ (x - self._setpoint)

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_rotation(self) -> np.ndarray:
        return self._R.copy()

    def get_A(self) -> np.ndarray:
        return self._A.copy()

    def get_B(self) -> np.ndarray:
        return self._B.copy()

    def get_Ad(self) -> np.ndarray:
        return self._Ad.copy()

    def get_Bd(self) -> np.ndarray:
        return self._Bd.copy()

    def linear_model(self) -> LinearModel:
        """Snapshot of the last computed matrices."""
        return LinearModel(
            rotation=self.get_rotation(), A=self.get_A(), B=self.get_B(), Ad=self.get_Ad(), Bd=self.get_Bd(), dt=self.dt
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dt={self.dt})"
