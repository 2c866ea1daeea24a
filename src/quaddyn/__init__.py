"""
quaddyn - Quadrotor flight dynamics and linear control models.

The package has two halves used together by a control loop:

- DynamicsModel integrates the nonlinear 6-DoF model under rotor commands.
- LinearizationEngine (or the pure ``linearize`` function) builds the
  rotation, continuous (A, B) and discrete (Ad, Bd) model about a reference
  state, and the equilibrium-tracking control law.

Plotting helpers live in ``quaddyn.visualization`` (requires matplotlib).
"""

__version__ = "0.1.0"

from quaddyn.base import DynamicalSystem
from quaddyn.integrators import (
    euler_integrate,
    euler_step,
    get_integrator,
    list_integrators,
    rk4_discretize_jacobians,
    rk4_integrate,
    rk4_step,
)
from quaddyn.linearization import (
    DEFAULT_CONTROL_PERIOD,
    LinearizationEngine,
    LinearModel,
    equilibrium_input,
    input_jacobian,
    linearize,
    rotation_matrix,
    state_jacobian,
)
from quaddyn.model import DEFAULT_INTEGRATION_STEP, DynamicsModel
from quaddyn.systems import (
    INPUT_SIZE,
    STATE_SIZE,
    Quadrotor,
    QuadrotorParams,
    create_quadrotor,
)
from quaddyn.utils import (
    angle_difference,
    angular_velocity_to_euler_rates,
    dcm_euler_partials,
    dcm_is_valid,
    dcm_to_euler,
    euler_rate_matrix,
    euler_rates_to_angular_velocity,
    euler_to_dcm,
    rotx,
    roty,
    rotz,
    skew,
    unskew,
    wrap_angle,
)

__all__ = [
    "DEFAULT_CONTROL_PERIOD",
    "DEFAULT_INTEGRATION_STEP",
    "INPUT_SIZE",
    "STATE_SIZE",
    # Core
    "DynamicalSystem",
    "DynamicsModel",
    "LinearModel",
    "LinearizationEngine",
    "Quadrotor",
    "QuadrotorParams",
    "__version__",
    "angle_difference",
    "angular_velocity_to_euler_rates",
    "create_quadrotor",
    "dcm_euler_partials",
    "dcm_is_valid",
    "dcm_to_euler",
    "equilibrium_input",
    "euler_integrate",
    "euler_rate_matrix",
    "euler_rates_to_angular_velocity",
    # Integrators
    "euler_step",
    "euler_to_dcm",
    "get_integrator",
    "input_jacobian",
    "linearize",
    "list_integrators",
    "rk4_discretize_jacobians",
    "rk4_integrate",
    "rk4_step",
    "rotation_matrix",
    # Rotation utilities
    "rotx",
    "roty",
    "rotz",
    "skew",
    "state_jacobian",
    "unskew",
    "wrap_angle",
]
