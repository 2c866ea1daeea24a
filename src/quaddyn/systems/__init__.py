"""
Vehicle models.

Available Systems
-----------------
Quadrotor : 6-DoF rigid-body quadrotor with Euler-angle attitude
"""

from quaddyn.systems.quadrotor import (
    INPUT_SIZE,
    STATE_SIZE,
    Quadrotor,
    QuadrotorParams,
    create_quadrotor,
    default_params,
    validate_input,
    validate_state,
)

__all__ = [
    "INPUT_SIZE",
    "STATE_SIZE",
    "Quadrotor",
    "QuadrotorParams",
    "create_quadrotor",
    "default_params",
    "validate_input",
    "validate_state",
]
