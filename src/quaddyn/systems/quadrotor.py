"""
Quadrotor 6-DoF rigid-body dynamical system.

A four-rotor vehicle with Euler-angle attitude, body-frame velocity and
rates, isotropic linear drag, and thrust acting along the body down axis.

Dynamics
--------
    ṗ = S·R(φ,θ,ψ)·v                      S = diag(1, 1, -1)
    v̇ = v x ω + R^T·[0, 0, g] - ([0, 0, T] + μ·v)/m
    ė = W(φ,θ)·ω
    ω̇ = J^{-1}·(τ - ω x J·ω)

where [T, τ] = M·u is the mixer applied to the four rotor commands.

State Vector (n=12)
-------------------
    x = [p(3), v(3), e(3), ω(3)]

    Index 0-2: position, world frame (x, y horizontal; z is altitude, up)
    Index 3-5: velocity, body frame (z along body down)
    Index 6-8: attitude [roll φ, pitch θ, yaw ψ]
    Index 9-11: angular rate, body frame [p, q, r]

Control Vector (m=4)
--------------------
    u = [u1, u2, u3, u4] - normalized rotor commands, nominally in [0, 1]

Rotor layout
------------
Rotors 2 and 4 sit on the body y-axis (roll), rotors 1 and 3 on the body
x-axis (pitch). Rotors 1/3 and 2/4 spin in opposite directions, so the
yaw torque is k2·(-u1 + u2 - u3 + u4).

Notes
-----
The Euler kinematics W(φ,θ) contain 1/cos(θ). At θ = ±90° (gimbal lock)
derivatives become inf/NaN and propagate through integration; this is a
limit of the attitude representation, not a handled error.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from quaddyn.base import DynamicalSystem
from quaddyn.utils.rotations import (
    dcm_euler_partials,
    euler_rate_matrix,
    euler_rate_matrix_partials,
    euler_to_dcm,
    skew,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Layout Constants
# =============================================================================

STATE_SIZE = 12
INPUT_SIZE = 4

PX, PY, PZ, VX, VY, VZ, RX, RY, RZ, WX, WY, WZ = range(STATE_SIZE)
U1, U2, U3, U4 = range(INPUT_SIZE)

POSITION = slice(PX, PZ + 1)
VELOCITY = slice(VX, VZ + 1)
ATTITUDE = slice(RX, RZ + 1)
RATES = slice(WX, WZ + 1)

# Flips the world vertical so position z reads as altitude
VERTICAL_FLIP = np.diag([1.0, 1.0, -1.0])
E3 = np.array([0.0, 0.0, 1.0])


# =============================================================================
# Parameter Dataclass
# =============================================================================


@dataclass
class QuadrotorParams:
    """
    Parameters for the quadrotor.

    Attributes
    ----------
    mass : float
        Vehicle mass.
    gravity : float
        Gravitational acceleration (positive).
    drag : float
        Linear drag coefficient μ; drag force is -μ·v in the body frame.
    k_thrust : float, optional
        Rotor thrust per unit command. If None, chosen so that four rotors
        at `hover_throttle` exactly balance weight.
    k_torque : float
        Rotor reaction (yaw) torque per unit command.
    arm_length : float
        Distance from the center of mass to each rotor.
    inertia : np.ndarray
        Inertia tensor (3, 3) in body frame.
    hover_throttle : float
        Per-rotor command at hover, used only to derive `k_thrust`.
    kinematics_pitch : float, optional
        If set, position kinematics use this fixed pitch instead of the live
        pitch state (reference-trim model). Attitude kinematics and
        force/torque terms always use the live attitude.
    """

    mass: float = 3.0
    gravity: float = 9.81
    drag: float = 0.1
    k_thrust: Optional[float] = None
    k_torque: float = 0.2
    arm_length: float = 0.3
    inertia: np.ndarray = field(default_factory=lambda: np.diag([0.053, 0.053, 0.098]))
    hover_throttle: float = 0.55
    kinematics_pitch: Optional[float] = None

    def __post_init__(self):
        """Validate parameters and precompute the inertia inverse and mixer."""
        if self.mass <= 0:
            raise ValueError(f"mass must be positive, got {self.mass}")
        if self.gravity <= 0:
            raise ValueError(f"gravity must be positive, got {self.gravity}")
        if self.drag < 0:
            raise ValueError(f"drag must be non-negative, got {self.drag}")
        if self.arm_length <= 0:
            raise ValueError(f"arm_length must be positive, got {self.arm_length}")
        if self.k_torque < 0:
            raise ValueError(f"k_torque must be non-negative, got {self.k_torque}")

        if self.k_thrust is None:
            if self.hover_throttle <= 0:
                raise ValueError(f"hover_throttle must be positive, got {self.hover_throttle}")
            self.k_thrust = self.mass * self.gravity / (INPUT_SIZE * self.hover_throttle)
            logger.debug("Derived k_thrust=%g from hover throttle %g", self.k_thrust, self.hover_throttle)
        elif self.k_thrust <= 0:
            raise ValueError(f"k_thrust must be positive, got {self.k_thrust}")

        self.inertia = np.asarray(self.inertia, dtype=np.float64)
        if self.inertia.shape != (3, 3):
            raise ValueError(f"inertia must be (3,3), got {self.inertia.shape}")
        if not np.allclose(self.inertia, self.inertia.T):
            raise ValueError("inertia must be symmetric")

        # Fixed for the lifetime of the parameters
        self._inertia_inv = np.linalg.inv(self.inertia)
        self._inertia_inv.setflags(write=False)
        self._mixer = self._build_mixer()
        self._mixer.setflags(write=False)

    def _build_mixer(self) -> np.ndarray:
        k1, k2, L = self.k_thrust, self.k_torque, self.arm_length
        return np.array(
            [
                [k1, k1, k1, k1],
                [0.0, -L * k1, 0.0, L * k1],
                [L * k1, 0.0, -L * k1, 0.0],
                [-k2, k2, -k2, k2],
            ]
        )

    @property
    def inertia_inv(self) -> np.ndarray:
        """Inverse of the inertia tensor (read-only)."""
        return self._inertia_inv

    @property
    def mixer(self) -> np.ndarray:
        """4x4 map from rotor commands to [thrust, τx, τy, τz] (read-only)."""
        return self._mixer

    @property
    def weight(self) -> float:
        """Gravitational force m·g."""
        return self.mass * self.gravity


def default_params() -> QuadrotorParams:
    """Default quadrotor parameters (hover at 0.55 per rotor)."""
    return QuadrotorParams()


# =============================================================================
# Validation Helpers
# =============================================================================


def _as_vector(v, size: int, name: str) -> np.ndarray:
    v = np.asarray(v, dtype=np.float64)
    if v.shape != (size,):
        raise ValueError(f"{name} must have shape ({size},), got {v.shape}")
    return v


def validate_state(x) -> np.ndarray:
    """Return x as a float64 array of shape (12,), or raise ValueError."""
    return _as_vector(x, STATE_SIZE, "state")


def validate_input(u) -> np.ndarray:
    """Return u as a float64 array of shape (4,), or raise ValueError."""
    return _as_vector(u, INPUT_SIZE, "motor commands")


# =============================================================================
# Main System Class
# =============================================================================


class Quadrotor(DynamicalSystem):
    """
    Quadrotor 6-DoF dynamical system.

    Parameters
    ----------
    params : QuadrotorParams, optional
        System parameters. If None, uses default parameters.

    Examples
    --------
    >>> quad = Quadrotor()
    >>> x0 = np.zeros(12)
    >>> u_hover = quad.hover_command()      # [0.55, 0.55, 0.55, 0.55]
    >>> quad.f(x0, u_hover)                 # all zeros
    """

    def __init__(self, params: Optional[QuadrotorParams] = None):
        if params is None:
            params = default_params()
        super().__init__(params)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def n_state(self) -> int:
        return STATE_SIZE

    @property
    def n_control(self) -> int:
        return INPUT_SIZE

    @property
    def n_disturbance(self) -> int:
        return STATE_SIZE

    @property
    def state_names(self) -> List[str]:
        return ["p_x", "p_y", "p_z", "v_x", "v_y", "v_z", "roll", "pitch", "yaw", "omega_x", "omega_y", "omega_z"]

    @property
    def control_names(self) -> List[str]:
        return ["u_1", "u_2", "u_3", "u_4"]

    @property
    def mixer(self) -> np.ndarray:
        """Rotor-command to force/torque map."""
        return self.params.mixer

    # =========================================================================
    # State Accessors
    # =========================================================================

    def get_position(self, x: np.ndarray) -> np.ndarray:
        """Position in the world frame (z = altitude)."""
        return np.asarray(x)[POSITION]

    def get_velocity(self, x: np.ndarray) -> np.ndarray:
        """Velocity in the body frame."""
        return np.asarray(x)[VELOCITY]

    def get_attitude(self, x: np.ndarray) -> np.ndarray:
        """[roll, pitch, yaw]."""
        return np.asarray(x)[ATTITUDE]

    def get_rates(self, x: np.ndarray) -> np.ndarray:
        """Angular rate in the body frame."""
        return np.asarray(x)[RATES]

    def get_dcm(self, x: np.ndarray) -> np.ndarray:
        """Body-to-world rotation for the live attitude."""
        phi, theta, psi = self.get_attitude(x)
        return euler_to_dcm(phi, theta, psi)

    def pack_state(
        self,
        position=(0.0, 0.0, 0.0),
        velocity=(0.0, 0.0, 0.0),
        attitude=(0.0, 0.0, 0.0),
        rates=(0.0, 0.0, 0.0),
    ) -> np.ndarray:
        """Concatenate the four 3-vectors into a state vector."""
        parts = [np.asarray(p, dtype=np.float64).reshape(3) for p in (position, velocity, attitude, rates)]
        return np.concatenate(parts)

    # =========================================================================
    # Forces
    # =========================================================================

    def forces_and_torques(self, u: np.ndarray) -> np.ndarray:
        """[thrust, τx, τy, τz] = mixer @ u."""
        return self.mixer @ validate_input(u)

    def hover_command(self) -> np.ndarray:
        """
        Equal per-rotor command whose total thrust balances weight.

        Solves mixer[0] @ u = m·g with all four entries equal.
        """
        thrust_row = self.mixer[0]
        return np.full(INPUT_SIZE, self.params.weight / np.sum(thrust_row))

    def _kinematics_dcm(self, phi: float, theta: float, psi: float) -> np.ndarray:
        pitch = theta if self.params.kinematics_pitch is None else self.params.kinematics_pitch
        return euler_to_dcm(phi, pitch, psi)

    # =========================================================================
    # Dynamics
    # =========================================================================

    def rigid_body_derivatives(
        self, x: np.ndarray, force_torque: np.ndarray, w: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """
        State derivative for a given body-frame force/torque vector.

        This is the function the integrator evaluates at every stage;
        force_torque is held fixed across the stages of one step.

        Parameters
        ----------
        x : np.ndarray, shape (12,)
            State vector.
        force_torque : np.ndarray, shape (4,)
            [thrust along body -z, τx, τy, τz].
        w : np.ndarray, shape (12,), optional
            Additive disturbance on the derivative.

        Returns
        -------
        np.ndarray, shape (12,)
        """
        x = np.asarray(x, dtype=np.float64)
        force_torque = np.asarray(force_torque, dtype=np.float64)

        p = self.params
        v = x[VELOCITY]
        phi, theta, psi = x[ATTITUDE]
        omega = x[RATES]
        thrust = force_torque[0]
        tau = force_torque[1:4]

        R = euler_to_dcm(phi, theta, psi)

        x_dot = np.empty(STATE_SIZE)

        # Position: body velocity rotated into the world, vertical flipped to altitude rate
        x_dot[POSITION] = VERTICAL_FLIP @ self._kinematics_dcm(phi, theta, psi) @ v

        # Velocity: rotating-frame term + gravity in body - (thrust + drag)/m
        gravity_body = R.T @ (p.gravity * E3)
        x_dot[VELOCITY] = np.cross(v, omega) + gravity_body - (thrust * E3 + p.drag * v) / p.mass

        # Attitude: Euler kinematics (singular at θ = ±90°)
        x_dot[ATTITUDE] = euler_rate_matrix(phi, theta) @ omega

        # Rates: Euler's rigid-body equation
        x_dot[RATES] = p.inertia_inv @ (tau - np.cross(omega, p.inertia @ omega))

        if w is not None:
            x_dot += np.asarray(w, dtype=np.float64)

        return x_dot

    def f(self, x: np.ndarray, u: np.ndarray, w: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Continuous-time dynamics with rotor commands as input.

        Parameters
        ----------
        x : np.ndarray, shape (12,)
            State vector.
        u : np.ndarray, shape (4,)
            Rotor commands.
        w : np.ndarray, shape (12,), optional
            Disturbance vector.

        Returns
        -------
        np.ndarray, shape (12,)
            State derivative.
        """
        u = np.asarray(u, dtype=np.float64)
        return self.rigid_body_derivatives(x, self.mixer @ u, w)

    # =========================================================================
    # Jacobians
    # =========================================================================

    def A(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:  # noqa: ARG002
        """
        Exact state Jacobian ∂f/∂x of the nonlinear model.

        Structure (12x12), block rows/cols [p, v, e, ω]:
            [0  S·R       S·∂R/∂e·v     0   ]
            [0  -[ω]x-μ/m ∂(R^T g)/∂e   [v]x]
            [0  0         ∂W/∂e·ω       W   ]
            [0  0         0             ∂ω̇/∂ω]

        Thrust only acts along body z, so the result does not depend on u.
        See quaddyn.linearization.state_jacobian for the reduced model used
        by the controller.
        """
        x = np.asarray(x, dtype=np.float64)

        p = self.params
        v = x[VELOCITY]
        phi, theta, psi = x[ATTITUDE]
        omega = x[RATES]

        A = np.zeros((STATE_SIZE, STATE_SIZE))

        # --- ∂ṗ/∂v, ∂ṗ/∂e ---
        pitch = theta if p.kinematics_pitch is None else p.kinematics_pitch
        A[POSITION, VELOCITY] = VERTICAL_FLIP @ euler_to_dcm(phi, pitch, psi)
        kin_partials = dcm_euler_partials(phi, pitch, psi)
        for j, dR in enumerate(kin_partials):
            if j == 1 and p.kinematics_pitch is not None:
                continue
            A[POSITION, RX + j] = VERTICAL_FLIP @ dR @ v

        # --- ∂v̇/∂v, ∂v̇/∂e, ∂v̇/∂ω ---
        A[VELOCITY, VELOCITY] = -skew(omega) - (p.drag / p.mass) * np.eye(3)
        for j, dR in enumerate(dcm_euler_partials(phi, theta, psi)):
            A[VELOCITY, RX + j] = dR.T @ (p.gravity * E3)
        A[VELOCITY, RATES] = skew(v)

        # --- ∂ė/∂e, ∂ė/∂ω ---
        dW_dphi, dW_dtheta = euler_rate_matrix_partials(phi, theta)
        A[ATTITUDE, RX] = dW_dphi @ omega
        A[ATTITUDE, RY] = dW_dtheta @ omega
        A[ATTITUDE, RATES] = euler_rate_matrix(phi, theta)

        # --- ∂ω̇/∂ω = J^{-1}·([Jω]x - [ω]x·J) ---
        J = p.inertia
        A[RATES, RATES] = p.inertia_inv @ (skew(J @ omega) - skew(omega) @ J)

        return A

    def B(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:  # noqa: ARG002
        """
        Control Jacobian ∂f/∂u.

        Only the body vertical acceleration (through thrust) and the angular
        accelerations (through torque) depend on the rotor commands:
            ∂v̇_z/∂u = -M[0]/m
            ∂ω̇/∂u   = J^{-1}·M[1:4]
        """
        p = self.params
        M = self.mixer

        B = np.zeros((STATE_SIZE, INPUT_SIZE))
        B[VZ, :] = -M[0] / p.mass
        B[RATES, :] = p.inertia_inv @ M[1:4]

        return B

    # =========================================================================
    # Constraints
    # =========================================================================

    def get_state_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Only pitch is bounded, to stay clear of gimbal lock."""
        lb = np.full(STATE_SIZE, -np.inf)
        ub = np.full(STATE_SIZE, np.inf)
        lb[RY] = -np.pi / 2
        ub[RY] = np.pi / 2
        return lb, ub

    def get_control_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Normalized rotor commands lie in [0, 1]."""
        return np.zeros(INPUT_SIZE), np.ones(INPUT_SIZE)

    def is_near_gimbal_lock(self, x: np.ndarray, tol: float = 1e-3) -> bool:
        """True if |cos(pitch)| < tol."""
        return bool(np.abs(np.cos(np.asarray(x)[RY])) < tol)


# =============================================================================
# Factory Functions
# =============================================================================


def create_quadrotor(
    mass: float = 3.0,
    arm_length: float = 0.3,
    drag: float = 0.1,
    hover_throttle: float = 0.55,
) -> Quadrotor:
    """
    Create a Quadrotor with a few commonly varied parameters.

    The thrust coefficient follows from mass and hover throttle.
    """
    params = QuadrotorParams(mass=mass, arm_length=arm_length, drag=drag, hover_throttle=hover_throttle)
    return Quadrotor(params)
