"""
4th-order Runge-Kutta integration and the matching Jacobian discretization.

The vehicle model is stepped with the classical four-stage scheme, and the
discrete-time linear model handed to controllers is built from the same
truncated matrix exponential so both agree to fourth order in the step.
"""

from typing import Callable, Optional, Tuple

import numpy as np


def rk4_step(
    f: Callable[[np.ndarray, np.ndarray, Optional[np.ndarray]], np.ndarray],
    x: np.ndarray,
    u: np.ndarray,
    dt: float,
    w: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Perform one classical 4th-order Runge-Kutta step.

    Computes:
        k1 = f(x, u, w)
        k2 = f(x + dt/2 * k1, u, w)
        k3 = f(x + dt/2 * k2, u, w)
        k4 = f(x + dt * k3, u, w)
        x_{k+1} = x_k + dt/6 * (k1 + 2*k2 + 2*k3 + k4)

    Parameters
    ----------
    f : callable
        Derivative function with signature f(x, u, w) -> x_dot.
    x : np.ndarray, shape (n,)
        Current state vector.
    u : np.ndarray, shape (m,)
        Input held constant over all four stages (zero-order hold).
        For the quadrotor this is either the motor commands or the
        force/torque vector they mix to.
    dt : float
        Step duration.
    w : np.ndarray, shape (p,), optional
        Disturbance vector, passed through to f unchanged.

    Returns
    -------
    x_next : np.ndarray, shape (n,)
        State after one step.
    """
    x = np.asarray(x, dtype=np.float64)
    u = np.asarray(u, dtype=np.float64)

    k1 = f(x, u, w)
    k2 = f(x + 0.5 * dt * k1, u, w)
    k3 = f(x + 0.5 * dt * k2, u, w)
    k4 = f(x + dt * k3, u, w)

    return x + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


def rk4_integrate(
    f: Callable[[np.ndarray, np.ndarray, Optional[np.ndarray]], np.ndarray],
    x0: np.ndarray,
    u_sequence: np.ndarray,
    dt: float,
    w_sequence: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Integrate over len(u_sequence) steps with rk4_step.

    Returns
    -------
    x_trajectory : np.ndarray, shape (N+1, n)
        State trajectory including the initial state.
    """
    x0 = np.asarray(x0, dtype=np.float64)
    N = len(u_sequence)

    x_trajectory = np.zeros((N + 1, x0.size))
    x_trajectory[0] = x0

    for k in range(N):
        w_k = w_sequence[k] if w_sequence is not None else None
        x_trajectory[k + 1] = rk4_step(f, x_trajectory[k], u_sequence[k], dt, w_k)

    return x_trajectory


def rk4_discretize_jacobians(A_c: np.ndarray, B_c: np.ndarray, dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Discretize a continuous-time pair (A, B) for a fixed control period.

    For x_dot = A x + B u with u held over the period, x_{k+1} = Ad x_k + Bd u_k
    with the 4th-order truncated series:
        Ad = I + dt*A + (dt²/2)*A² + (dt³/6)*A³ + (dt⁴/24)*A⁴
        Bd = dt * (I + (dt/2)*A + (dt²/6)*A² + (dt³/24)*A³) @ B

    Parameters
    ----------
    A_c : np.ndarray, shape (n, n)
        Continuous-time state matrix.
    B_c : np.ndarray, shape (n, m)
        Continuous-time input matrix.
    dt : float
        Control period.

    Returns
    -------
    A_d : np.ndarray, shape (n, n)
    B_d : np.ndarray, shape (n, m)

    Raises
    ------
    ValueError
        If A_c is not square or B_c has a different number of rows.
    """
    A_c = np.asarray(A_c, dtype=np.float64)
    B_c = np.asarray(B_c, dtype=np.float64)

    if A_c.ndim != 2 or A_c.shape[0] != A_c.shape[1]:
        raise ValueError(f"A must be square, got shape {A_c.shape}")
    if B_c.ndim != 2 or B_c.shape[0] != A_c.shape[0]:
        raise ValueError(f"B must have {A_c.shape[0]} rows, got shape {B_c.shape}")

    n = A_c.shape[0]
    I = np.eye(n)

    A2 = A_c @ A_c
    A3 = A2 @ A_c
    A4 = A3 @ A_c

    A_d = I + dt * A_c + (dt**2 / 2) * A2 + (dt**3 / 6) * A3 + (dt**4 / 24) * A4

    B_int = I + (dt / 2) * A_c + (dt**2 / 6) * A2 + (dt**3 / 24) * A3
    B_d = dt * B_int @ B_c

    return A_d, B_d
