"""
Utility functions for quaddyn.

Modules
-------
rotations : Rotation utilities (DCM, Euler angles, Euler kinematics)
"""

from quaddyn.utils.rotations import (
    angle_difference,
    # Angular velocity
    angular_velocity_to_euler_rates,
    dcm_euler_partials,
    # DCM utilities
    dcm_is_valid,
    dcm_to_euler,
    drotx,
    droty,
    drotz,
    euler_rate_matrix,
    euler_rate_matrix_partials,
    euler_rates_to_angular_velocity,
    # Euler angle conversions
    euler_to_dcm,
    # Elementary rotations
    rotx,
    roty,
    rotz,
    # Skew matrix
    skew,
    unskew,
    # Angle utilities
    wrap_angle,
)

__all__ = [
    "angle_difference",
    "angular_velocity_to_euler_rates",
    "dcm_euler_partials",
    "dcm_is_valid",
    "dcm_to_euler",
    "drotx",
    "droty",
    "drotz",
    "euler_rate_matrix",
    "euler_rate_matrix_partials",
    "euler_rates_to_angular_velocity",
    "euler_to_dcm",
    "rotx",
    "roty",
    "rotz",
    "skew",
    "unskew",
    "wrap_angle",
]
