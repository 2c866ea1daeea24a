"""
Abstract base class for dynamical systems.

Concrete vehicle models (see quaddyn.systems) inherit from DynamicalSystem,
supply the continuous dynamics and their analytic Jacobians, and get
discrete stepping, linearization, discretization, constraint checks and
Jacobian verification for free.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from quaddyn.integrators import get_integrator, rk4_discretize_jacobians

logger = logging.getLogger(__name__)


class DynamicalSystem(ABC):
    """
    Abstract base class for dynamical systems ẋ = f(x, u, w).

    Attributes
    ----------
    params : object
        System parameters. Structure depends on the specific system.

    Notes
    -----
    All dynamics functions accept an optional disturbance `w` that defaults
    to zero. It enters additively according to G(x, u).
    """

    def __init__(self, params=None):
        self.params = params

    # =========================================================================
    # Abstract Properties
    # =========================================================================

    @property
    @abstractmethod
    def n_state(self) -> int:
        """Dimension of the state vector x."""

    @property
    @abstractmethod
    def n_control(self) -> int:
        """Dimension of the control vector u."""

    @property
    @abstractmethod
    def n_disturbance(self) -> int:
        """Dimension of the disturbance vector w."""

    @property
    @abstractmethod
    def state_names(self) -> List[str]:
        """Human-readable names for each state element."""

    @property
    @abstractmethod
    def control_names(self) -> List[str]:
        """Human-readable names for each control element."""

    # =========================================================================
    # Abstract Methods
    # =========================================================================

    @abstractmethod
    def f(self, x: np.ndarray, u: np.ndarray, w: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Continuous-time dynamics: ẋ = f(x, u, w).

        Parameters
        ----------
        x : np.ndarray, shape (n_state,)
            Current state vector.
        u : np.ndarray, shape (n_control,)
            Control input vector.
        w : np.ndarray, shape (n_disturbance,), optional
            Disturbance vector. Defaults to zeros if not provided.

        Returns
        -------
        np.ndarray, shape (n_state,)
            State derivative ẋ.
        """

    @abstractmethod
    def A(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:
        """State Jacobian ∂f/∂x, shape (n_state, n_state)."""

    @abstractmethod
    def B(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:
        """Control Jacobian ∂f/∂u, shape (n_state, n_control)."""

    @abstractmethod
    def get_state_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Lower and upper state bounds (use ±np.inf for unbounded)."""

    @abstractmethod
    def get_control_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Lower and upper control bounds (use ±np.inf for unbounded)."""

    # =========================================================================
    # Concrete Methods
    # =========================================================================

    def G(self, x: np.ndarray, u: np.ndarray) -> np.ndarray:  # noqa: ARG002
        """
        Disturbance Jacobian ∂f/∂w.

        Default: disturbance adds directly onto every state derivative.
        """
        return np.eye(self.n_state, self.n_disturbance)

    def f_discrete(
        self, x: np.ndarray, u: np.ndarray, dt: float, w: Optional[np.ndarray] = None, method: str = "rk4"
    ) -> np.ndarray:
        """
        Discrete-time dynamics: integrate f over one step of length dt.

        The control u and disturbance w are held constant over the step.

        Raises
        ------
        ValueError
            If an unknown integration method is specified.
        """
        x = np.asarray(x, dtype=np.float64)
        u = np.asarray(u, dtype=np.float64)
        if w is not None:
            w = np.asarray(w, dtype=np.float64)

        step_fn = get_integrator(method)
        return step_fn(self.f, x, u, dt, w)

    def linearize(self, x0: np.ndarray, u0: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Linearize about an operating point: ẋ ≈ A(x - x0) + B(u - u0) + Gw + c.

        Returns
        -------
        A, B, G : np.ndarray
            Jacobians at the operating point.
        c : np.ndarray, shape (n_state,)
            Affine term f(x0, u0); zero at an equilibrium.
        """
        x0 = np.asarray(x0, dtype=np.float64)
        u0 = np.asarray(u0, dtype=np.float64)

        return self.A(x0, u0), self.B(x0, u0), self.G(x0, u0), self.f(x0, u0)

    def discretize(self, x0: np.ndarray, u0: np.ndarray, dt: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Discrete-time linear model (Ad, Bd) about an operating point.

        Uses the RK4-consistent truncated exponential, see
        quaddyn.integrators.rk4_discretize_jacobians.
        """
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")

        A, B, _, _ = self.linearize(x0, u0)
        return rk4_discretize_jacobians(A, B, dt)

    def _bound_constraints(self, values: np.ndarray, names: List[str], bounds) -> Dict[str, float]:
        lb, ub = bounds
        constraints = {}
        for i, name in enumerate(names):
            # lb_i - v_i <= 0 and v_i - ub_i <= 0 when satisfied
            if lb[i] > -np.inf:
                constraints[f"{name}_lower"] = lb[i] - values[i]
            if ub[i] < np.inf:
                constraints[f"{name}_upper"] = values[i] - ub[i]
        return constraints

    def state_constraints(self, x: np.ndarray) -> Dict[str, float]:
        """
        Evaluate state bound constraints.

        Returns
        -------
        dict
            '<name>_lower' / '<name>_upper' entries; non-positive means satisfied.
        """
        x = np.asarray(x, dtype=np.float64)
        return self._bound_constraints(x, self.state_names, self.get_state_bounds())

    def control_constraints(self, u: np.ndarray) -> Dict[str, float]:
        """Evaluate control bound constraints (same format as state_constraints)."""
        u = np.asarray(u, dtype=np.float64)
        return self._bound_constraints(u, self.control_names, self.get_control_bounds())

    def is_state_valid(self, x: np.ndarray) -> bool:
        """True if every state bound is satisfied."""
        return all(v <= 0 for v in self.state_constraints(x).values())

    def is_control_valid(self, u: np.ndarray) -> bool:
        """True if every control bound is satisfied."""
        return all(v <= 0 for v in self.control_constraints(u).values())

    def simulate(
        self,
        x0: np.ndarray,
        controller: Callable[[float, np.ndarray], np.ndarray],
        t_span: Tuple[float, float],
        dt: float,
        disturbance_fn: Optional[Callable[[float, np.ndarray], np.ndarray]] = None,
        method: str = "rk4",
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Run a closed-loop simulation.

        Parameters
        ----------
        x0 : np.ndarray, shape (n_state,)
            Initial state.
        controller : callable
            Control law u = controller(t, x).
        t_span : tuple of float
            (t_start, t_end).
        dt : float
            Integration step.
        disturbance_fn : callable, optional
            w = disturbance_fn(t, x). Zero if None.
        method : str, optional
            Integration method ('euler' or 'rk4').

        Returns
        -------
        t : np.ndarray, shape (n_steps,)
        x : np.ndarray, shape (n_steps, n_state)
        u : np.ndarray, shape (n_steps-1, n_control)
        """
        t_start, t_end = t_span
        n_steps = int(round((t_end - t_start) / dt)) + 1
        t = t_start + dt * np.arange(n_steps)

        x = np.zeros((n_steps, self.n_state))
        u = np.zeros((n_steps - 1, self.n_control))
        x[0] = np.asarray(x0, dtype=np.float64)

        logger.debug("Simulating %s for %d steps (dt=%g, method=%s)", self.__class__.__name__, n_steps - 1, dt, method)

        for k in range(n_steps - 1):
            u[k] = controller(t[k], x[k])
            w_k = disturbance_fn(t[k], x[k]) if disturbance_fn is not None else None
            x[k + 1] = self.f_discrete(x[k], u[k], dt, w_k, method=method)

        return t, x, u

    def jacobian_numerical(self, x: np.ndarray, u: np.ndarray, eps: float = 1e-6) -> Tuple[np.ndarray, np.ndarray]:
        """
        Jacobians by central differences, for checking the analytic A and B.

        Returns
        -------
        A_num : np.ndarray, shape (n_state, n_state)
        B_num : np.ndarray, shape (n_state, n_control)
        """
        x = np.asarray(x, dtype=np.float64)
        u = np.asarray(u, dtype=np.float64)

        A_num = np.zeros((self.n_state, self.n_state))
        for j in range(self.n_state):
            dx = np.zeros(self.n_state)
            dx[j] = eps
            A_num[:, j] = (self.f(x + dx, u) - self.f(x - dx, u)) / (2 * eps)

        B_num = np.zeros((self.n_state, self.n_control))
        for j in range(self.n_control):
            du = np.zeros(self.n_control)
            du[j] = eps
            B_num[:, j] = (self.f(x, u + du) - self.f(x, u - du)) / (2 * eps)

        return A_num, B_num

    def verify_jacobians(
        self, x: np.ndarray, u: np.ndarray, eps: float = 1e-6, tol: float = 1e-5
    ) -> Tuple[bool, Dict[str, float]]:
        """
        Compare analytic Jacobians with central differences.

        Returns
        -------
        passed : bool
            True if both relative errors are below tol.
        errors : dict
            'A_relative_error' and 'B_relative_error'.
        """
        A_num, B_num = self.jacobian_numerical(x, u, eps)

        errors = {}
        for key, analytic, numeric in (("A", self.A(x, u), A_num), ("B", self.B(x, u), B_num)):
            scale = np.linalg.norm(analytic)
            error = np.linalg.norm(analytic - numeric)
            errors[f"{key}_relative_error"] = error / scale if scale > 0 else error

        passed = all(e < tol for e in errors.values())
        if not passed:
            logger.debug("Jacobian check failed for %s: %s", self.__class__.__name__, errors)

        return passed, errors

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"n_state={self.n_state}, "
            f"n_control={self.n_control}, "
            f"n_disturbance={self.n_disturbance})"
        )
