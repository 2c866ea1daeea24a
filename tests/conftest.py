"""
Pytest configuration and shared fixtures for quaddyn tests.
"""

import numpy as np
import pytest

from quaddyn import DynamicsModel, LinearizationEngine, Quadrotor

# =============================================================================
# Random Seed Fixture
# =============================================================================


@pytest.fixture
def rng():
    """Provide a seeded random number generator for reproducibility."""
    return np.random.default_rng(42)


@pytest.fixture
def random_state(rng):
    """Random quadrotor state with pitch kept well away from ±90°."""

    def _random_state(scale=0.5):
        x = scale * rng.standard_normal(12)
        x[7] = np.clip(x[7], -1.0, 1.0)
        return x

    return _random_state


# =============================================================================
# Tolerance Fixtures
# =============================================================================


@pytest.fixture
def atol():
    """Absolute tolerance for floating point comparisons."""
    return 1e-10


@pytest.fixture
def rtol():
    """Relative tolerance for floating point comparisons."""
    return 1e-6


# =============================================================================
# System Fixtures
# =============================================================================


@pytest.fixture
def quad():
    """Quadrotor with default parameters."""
    return Quadrotor()


@pytest.fixture
def model():
    """DynamicsModel at rest at the origin."""
    return DynamicsModel()


@pytest.fixture
def engine():
    """LinearizationEngine with default parameters and control period."""
    return LinearizationEngine()


# =============================================================================
# Common Test Utilities
# =============================================================================


def assert_valid_rotation_matrix(C, tol=1e-10):
    """Assert that C is a valid rotation matrix."""
    assert C.shape == (3, 3), f"Expected shape (3,3), got {C.shape}"

    np.testing.assert_allclose(C @ C.T, np.eye(3), atol=tol, err_msg="Matrix is not orthogonal")

    det = np.linalg.det(C)
    np.testing.assert_allclose(det, 1.0, atol=tol, err_msg=f"Determinant is {det}, expected 1.0")


@pytest.fixture
def assert_rotation():
    """Fixture providing rotation matrix assertion."""
    return assert_valid_rotation_matrix
