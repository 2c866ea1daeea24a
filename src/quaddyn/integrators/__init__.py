"""
Fixed-step integrators for the vehicle model.

Available Methods
-----------------
rk4 : classical 4th-order Runge-Kutta (default for DynamicsModel)
euler : forward Euler, first order

Usage
-----
>>> from quaddyn.integrators import get_integrator
>>> step_fn = get_integrator("rk4")
>>> x_next = step_fn(dynamics_fn, x, u, dt)
"""

from typing import Callable, List

from .euler import euler_integrate, euler_step
from .rk4 import rk4_discretize_jacobians, rk4_integrate, rk4_step

INTEGRATOR_REGISTRY = {
    "euler": euler_step,
    "rk4": rk4_step,
}


def get_integrator(method: str) -> Callable:
    """
    Look up a step function by name.

    Raises
    ------
    ValueError
        If the method name is not registered.
    """
    if method not in INTEGRATOR_REGISTRY:
        available = ", ".join(INTEGRATOR_REGISTRY.keys())
        raise ValueError(f"Unknown integrator '{method}'. Available: {available}")

    return INTEGRATOR_REGISTRY[method]


def list_integrators() -> List[str]:
    """Names of the registered integrators."""
    return list(INTEGRATOR_REGISTRY.keys())


__all__ = [
    "INTEGRATOR_REGISTRY",
    "euler_integrate",
    "euler_step",
    "get_integrator",
    "list_integrators",
    "rk4_discretize_jacobians",
    "rk4_integrate",
    "rk4_step",
]
