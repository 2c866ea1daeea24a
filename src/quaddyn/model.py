"""
Stateful quadrotor simulator.

DynamicsModel owns the live vehicle state and advances it one fixed step
per motor command using the nonlinear Quadrotor model.
"""

import logging
from typing import Optional

import numpy as np

from quaddyn.integrators import get_integrator
from quaddyn.systems.quadrotor import (
    RY,
    STATE_SIZE,
    Quadrotor,
    QuadrotorParams,
    validate_input,
    validate_state,
)

logger = logging.getLogger(__name__)

DEFAULT_INTEGRATION_STEP = 0.002


class DynamicsModel:
    """
    Quadrotor state integrator driven by rotor commands.

    Parameters
    ----------
    params : QuadrotorParams, optional
        Vehicle parameters. Fixed for the lifetime of the model.
    dt : float, optional
        Integration step. Default DEFAULT_INTEGRATION_STEP.
    x0 : np.ndarray, shape (12,), optional
        Initial state. Default all zeros (level, at rest, at the origin).
    method : str, optional
        Integrator name, 'rk4' (default) or 'euler'.

    Examples
    --------
    >>> model = DynamicsModel()
    >>> model.send_motor_cmds([0.55, 0.55, 0.55, 0.55])   # hover
    >>> model.get_states()                                # still all zeros
    """

    def __init__(
        self,
        params: Optional[QuadrotorParams] = None,
        dt: float = DEFAULT_INTEGRATION_STEP,
        x0: Optional[np.ndarray] = None,
        method: str = "rk4",
    ):
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")

        self.system = Quadrotor(params)
        self.dt = float(dt)
        self.method = method
        self._step_fn = get_integrator(method)

        self._x = np.zeros(STATE_SIZE)
        self.reset(x0)

    @property
    def params(self) -> QuadrotorParams:
        return self.system.params

    @property
    def time(self) -> float:
        """Simulated time since the last reset."""
        return self.steps * self.dt

    def reset(self, x0: Optional[np.ndarray] = None) -> None:
        """Restore the initial state (zeros if x0 is None) and clear the clock."""
        if x0 is None:
            self._x[:] = 0.0
        else:
            self._x[:] = validate_state(x0)
        self.steps = 0
        self._warned_nonfinite = False

    def set_states(self, x: np.ndarray) -> None:
        """Overwrite the live state without touching the clock."""
        self._x[:] = validate_state(x)

    def get_states(self) -> np.ndarray:
        """Independent copy of the current state."""
        return self._x.copy()

    def send_motor_cmds(self, cmds: np.ndarray) -> None:
        """
        Advance the state by one integration step under the given commands.

        The commands are mixed to [thrust, τx, τy, τz] once and held
        constant over every stage of the step. Commands outside [0, 1] are
        not clipped.

        Parameters
        ----------
        cmds : array_like, shape (4,)
            Rotor commands.

        Raises
        ------
        ValueError
            If cmds does not have exactly four entries.
        """
        cmds = validate_input(cmds)
        force_torque = self.system.mixer @ cmds

        self._x[:] = self._step_fn(self.system.rigid_body_derivatives, self._x, force_torque, self.dt)
        self.steps += 1

        if not self._warned_nonfinite and not np.all(np.isfinite(self._x)):
            self._warned_nonfinite = True
            logger.warning(
                "State became non-finite at step %d (pitch=%s); Euler kinematics are singular at ±90° pitch",
                self.steps,
                self._x[RY],
            )

    def run(self, cmds: np.ndarray, n_steps: int) -> np.ndarray:
        """
        Apply the same commands for n_steps and record the trajectory.

        Returns
        -------
        np.ndarray, shape (n_steps + 1, 12)
            States before the first step and after each step.
        """
        if n_steps < 0:
            raise ValueError(f"n_steps must be non-negative, got {n_steps}")

        cmds = validate_input(cmds)
        trajectory = np.zeros((n_steps + 1, STATE_SIZE))
        trajectory[0] = self._x

        for k in range(n_steps):
            self.send_motor_cmds(cmds)
            trajectory[k + 1] = self._x

        return trajectory

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dt={self.dt}, method='{self.method}', steps={self.steps})"
