"""
Forward Euler integration.

First-order accurate; kept alongside RK4 as a cheap reference when checking
step-size sensitivity of the vehicle model.
"""

from typing import Callable, Optional

import numpy as np


def euler_step(
    f: Callable[[np.ndarray, np.ndarray, Optional[np.ndarray]], np.ndarray],
    x: np.ndarray,
    u: np.ndarray,
    dt: float,
    w: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Perform one forward Euler step: x_{k+1} = x_k + dt * f(x_k, u_k, w_k).

    Same signature as rk4_step so the two are interchangeable through the
    integrator registry.
    """
    x = np.asarray(x, dtype=np.float64)
    u = np.asarray(u, dtype=np.float64)

    return x + dt * f(x, u, w)


def euler_integrate(
    f: Callable[[np.ndarray, np.ndarray, Optional[np.ndarray]], np.ndarray],
    x0: np.ndarray,
    u_sequence: np.ndarray,
    dt: float,
    w_sequence: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Integrate over len(u_sequence) steps; returns shape (N+1, n)."""
    x0 = np.asarray(x0, dtype=np.float64)
    N = len(u_sequence)

    x_trajectory = np.zeros((N + 1, x0.size))
    x_trajectory[0] = x0

    for k in range(N):
        w_k = w_sequence[k] if w_sequence is not None else None
        x_trajectory[k + 1] = euler_step(f, x_trajectory[k], u_sequence[k], dt, w_k)

    return x_trajectory
