"""
Tests for the DynamicalSystem abstract base class.

These tests verify:
1. Abstract class enforcement
2. Default disturbance Jacobian, stepping and linearization
3. Discretization through the RK4-consistent series
4. Constraint evaluation
5. Closed-loop simulation and Jacobian verification
"""

from typing import List

import numpy as np
import pytest

from quaddyn import DynamicalSystem

# =============================================================================
# Test Fixtures - Concrete System Implementations
# =============================================================================


class SpringDamper(DynamicalSystem):
    """
    Mass-spring-damper with unit mass.

    State: [position, velocity]
    Control: [force]
    Dynamics: ṗ = v, v̇ = -k p - c v + u
    """

    def __init__(self, k=4.0, c=0.5):
        super().__init__({"k": k, "c": c})

    @property
    def n_state(self) -> int:
        return 2

    @property
    def n_control(self) -> int:
        return 1

    @property
    def n_disturbance(self) -> int:
        return 2

    @property
    def state_names(self) -> List[str]:
        return ["position", "velocity"]

    @property
    def control_names(self) -> List[str]:
        return ["force"]

    def f(self, x, u, w=None):
        p, v = np.asarray(x)
        x_dot = np.array([v, -self.params["k"] * p - self.params["c"] * v + u[0]])
        if w is not None:
            x_dot += np.asarray(w)
        return x_dot

    def A(self, x, u):  # noqa: ARG002
        return np.array([[0.0, 1.0], [-self.params["k"], -self.params["c"]]])

    def B(self, x, u):  # noqa: ARG002
        return np.array([[0.0], [1.0]])

    def get_state_bounds(self):
        return np.array([-1.0, -np.inf]), np.array([1.0, np.inf])

    def get_control_bounds(self):
        return np.array([-2.0]), np.array([2.0])


class WrongJacobian(SpringDamper):
    """SpringDamper with a deliberately incorrect A."""

    def A(self, x, u):  # noqa: ARG002
        return np.zeros((2, 2))


@pytest.fixture
def spring():
    return SpringDamper()


# =============================================================================
# Test: Abstract Behavior
# =============================================================================


class TestAbstractBehavior:
    """Tests for abstract class enforcement."""

    def test_cannot_instantiate_base_class(self):
        with pytest.raises(TypeError):
            DynamicalSystem()

    def test_incomplete_implementation_raises(self):
        class MissingDynamics(DynamicalSystem):
            n_state = 1

        with pytest.raises(TypeError):
            MissingDynamics()

    def test_repr(self, spring):
        assert repr(spring) == "SpringDamper(n_state=2, n_control=1, n_disturbance=2)"


# =============================================================================
# Test: Dynamics, Linearization, Discretization
# =============================================================================


class TestDynamics:
    """Tests for the concrete helpers built on f, A and B."""

    def test_G_default_is_identity(self, spring):
        np.testing.assert_array_equal(spring.G(np.zeros(2), np.zeros(1)), np.eye(2))

    @pytest.mark.parametrize("method", ["euler", "rk4"])
    def test_f_discrete_at_equilibrium(self, spring, method):
        x_next = spring.f_discrete(np.zeros(2), np.zeros(1), 0.1, method=method)

        np.testing.assert_array_equal(x_next, np.zeros(2))

    def test_f_discrete_euler(self, spring):
        x_next = spring.f_discrete([1.0, 0.0], [0.0], 0.1, method="euler")

        np.testing.assert_allclose(x_next, [1.0, -0.4])

    def test_f_discrete_unknown_method(self, spring):
        with pytest.raises(ValueError, match="Unknown integrator"):
            spring.f_discrete(np.zeros(2), np.zeros(1), 0.1, method="leapfrog")

    def test_linearize_affine_term(self, spring):
        x0, u0 = np.array([0.5, 0.0]), np.array([1.0])
        A, B, G, c = spring.linearize(x0, u0)

        assert A.shape == (2, 2)
        assert B.shape == (2, 1)
        assert G.shape == (2, 2)
        np.testing.assert_allclose(c, spring.f(x0, u0))

    def test_discretize_matches_rk4_step(self, spring):
        """The system is linear, so one RK4 step equals Ad x + Bd u."""
        x, u, dt = np.array([0.3, -0.2]), np.array([0.7]), 0.05
        Ad, Bd = spring.discretize(x, u, dt)

        np.testing.assert_allclose(Ad @ x + Bd @ u, spring.f_discrete(x, u, dt), atol=1e-14)

    def test_discretize_rejects_nonpositive_dt(self, spring):
        with pytest.raises(ValueError, match="dt must be positive"):
            spring.discretize(np.zeros(2), np.zeros(1), 0.0)


# =============================================================================
# Test: Constraints
# =============================================================================


class TestConstraints:
    """Tests for bound-based constraint evaluation."""

    def test_only_finite_bounds_reported(self, spring):
        constraints = spring.state_constraints([0.0, 100.0])

        assert set(constraints) == {"position_lower", "position_upper"}

    def test_state_constraint_values(self, spring):
        constraints = spring.state_constraints([0.25, 0.0])

        np.testing.assert_allclose(constraints["position_lower"], -1.25)
        np.testing.assert_allclose(constraints["position_upper"], -0.75)

    def test_is_state_valid(self, spring):
        assert spring.is_state_valid([1.0, 3.0])
        assert not spring.is_state_valid([1.5, 0.0])

    def test_is_control_valid(self, spring):
        assert spring.is_control_valid([-2.0])
        assert not spring.is_control_valid([2.5])
        assert spring.control_constraints([2.5])["force_upper"] > 0


# =============================================================================
# Test: Simulation
# =============================================================================


class TestSimulation:
    """Tests for closed-loop simulation."""

    def test_shapes(self, spring):
        t, x, u = spring.simulate(np.array([1.0, 0.0]), lambda t, x: np.zeros(1), (0.0, 1.0), 0.01)

        assert t.shape == (101,)
        assert x.shape == (101, 2)
        assert u.shape == (100, 1)
        np.testing.assert_allclose(t[-1], 1.0)

    def test_initial_condition_and_controller(self, spring):
        calls = []

        def controller(t, x):
            calls.append(t)
            return np.array([-x[0]])

        t, x, u = spring.simulate(np.array([0.5, 0.0]), controller, (0.0, 0.1), 0.01)

        np.testing.assert_array_equal(x[0], [0.5, 0.0])
        np.testing.assert_allclose(u[0], [-0.5])
        assert len(calls) == 10

    def test_damped_decay(self, spring):
        _, x, _ = spring.simulate(np.array([1.0, 0.0]), lambda t, x: np.zeros(1), (0.0, 20.0), 0.01)

        assert np.abs(x[-1]).max() < 0.05

    def test_disturbance(self, spring):
        _, x, _ = spring.simulate(
            np.zeros(2), lambda t, x: np.zeros(1), (0.0, 0.5), 0.01, disturbance_fn=lambda t, x: np.array([1.0, 0.0])
        )

        assert x[-1, 0] > 0


# =============================================================================
# Test: Jacobian Verification
# =============================================================================


class TestJacobianVerification:
    """Tests for jacobian_numerical and verify_jacobians."""

    def test_numerical_matches_analytic(self, spring):
        A_num, B_num = spring.jacobian_numerical(np.array([0.2, 0.1]), np.array([0.0]))

        np.testing.assert_allclose(A_num, spring.A(None, None), atol=1e-8)
        np.testing.assert_allclose(B_num, spring.B(None, None), atol=1e-8)

    def test_verify_passes(self, spring):
        passed, errors = spring.verify_jacobians(np.array([0.2, 0.1]), np.array([0.3]))

        assert passed
        assert set(errors) == {"A_relative_error", "B_relative_error"}

    def test_verify_detects_wrong_jacobian(self):
        passed, errors = WrongJacobian().verify_jacobians(np.array([0.2, 0.1]), np.array([0.3]))

        assert not passed
        assert errors["A_relative_error"] > 1.0
