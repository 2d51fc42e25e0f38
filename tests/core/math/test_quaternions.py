"""Tests for quaternion operations."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from bundlecost.core.jax_init import jax, jnp
from bundlecost.core.math.quaternions import (
    angle_axis_to_quat,
    quat_conjugate,
    quat_from_axis_angle,
    quat_identity,
    quat_multiply,
    quat_normalize,
    quat_rotate,
    quat_to_angle_axis,
    quat_to_matrix,
)


def scipy_matrix(q):
    """Rotation matrix of a [w, x, y, z] quaternion via scipy ([x, y, z, w])."""
    return Rotation.from_quat([q[1], q[2], q[3], q[0]]).as_matrix()


class TestQuaternions:
    """Test quaternion operations."""

    def setup_method(self):
        """Set up test fixtures."""
        self.q = quat_normalize(np.array([0.9, 0.1, -0.3, 0.2]))
        self.v = np.array([1.0, -2.0, 0.5])

    def test_quat_normalize(self):
        """Test quaternion normalization."""
        q = np.array([2.0, 3.0, 4.0, 5.0])
        q_norm = quat_normalize(q)

        assert abs(np.linalg.norm(q_norm) - 1.0) < 1e-10

    def test_quat_normalize_zero(self):
        """Test quaternion normalization with zero quaternion."""
        with pytest.raises(ValueError):
            quat_normalize(np.zeros(4))

    def test_quat_normalize_wrong_shape(self):
        with pytest.raises(ValueError):
            quat_normalize(np.ones(3))

    def test_quat_from_axis_angle_90deg(self):
        """Test quaternion from axis-angle for 90 degree rotation."""
        q = quat_from_axis_angle(np.array([1, 0, 0]), np.pi / 2)

        expected = np.array([np.sqrt(2) / 2, np.sqrt(2) / 2, 0.0, 0.0])
        np.testing.assert_allclose(q, expected, atol=1e-10)

    def test_quat_from_axis_angle_zero_axis(self):
        """Test quaternion from zero axis."""
        q = quat_from_axis_angle(np.zeros(3), 1.0)

        np.testing.assert_allclose(q, quat_identity(), atol=1e-10)

    def test_quat_to_matrix_matches_scipy(self):
        """Test matrix conversion against an independent implementation."""
        R = np.asarray(quat_to_matrix(self.q))

        np.testing.assert_allclose(R, scipy_matrix(self.q), atol=1e-12)
        assert abs(np.linalg.det(R) - 1.0) < 1e-10

    def test_quat_rotate_matches_matrix(self):
        """Test direct rotation against the rotation matrix."""
        rotated = np.asarray(quat_rotate(self.q, self.v))
        expected = np.asarray(quat_to_matrix(self.q)) @ self.v

        np.testing.assert_allclose(rotated, expected, atol=1e-12)

    def test_quat_multiply_composes_rotations(self):
        """Test that the Hamilton product composes rotations right to left."""
        q2 = quat_from_axis_angle(np.array([0.0, 1.0, 1.0]), 0.7)
        q12 = np.asarray(quat_multiply(self.q, q2))

        expected = np.asarray(quat_rotate(self.q, quat_rotate(q2, self.v)))
        np.testing.assert_allclose(np.asarray(quat_rotate(q12, self.v)), expected, atol=1e-12)

    def test_quat_conjugate_is_inverse(self):
        """Test q * conj(q) is the identity."""
        product = np.asarray(quat_multiply(self.q, quat_conjugate(self.q)))

        np.testing.assert_allclose(product, quat_identity(), atol=1e-12)

    def test_angle_axis_round_trip(self):
        """Test exp/log round trip for a generic rotation."""
        angle_axis = np.array([0.3, -0.5, 1.1])
        q = angle_axis_to_quat(angle_axis)

        np.testing.assert_allclose(np.asarray(quat_to_angle_axis(q)), angle_axis, atol=1e-12)

    def test_angle_axis_matches_scipy(self):
        """Test angle-axis conversion against scipy rotation vectors."""
        expected = Rotation.from_quat([self.q[1], self.q[2], self.q[3], self.q[0]]).as_rotvec()

        np.testing.assert_allclose(np.asarray(quat_to_angle_axis(self.q)), expected, atol=1e-12)

    def test_angle_axis_sign_invariant(self):
        """Test that q and -q give the same angle-axis vector."""
        np.testing.assert_allclose(
            np.asarray(quat_to_angle_axis(-self.q)),
            np.asarray(quat_to_angle_axis(self.q)),
            atol=1e-12,
        )

    def test_angle_axis_identity(self):
        """Test angle-axis of the identity and of a zero vector."""
        np.testing.assert_allclose(np.asarray(quat_to_angle_axis(quat_identity())), np.zeros(3))
        np.testing.assert_allclose(np.asarray(angle_axis_to_quat(np.zeros(3))), quat_identity())

    def test_derivatives_finite_at_identity(self):
        """Test that derivatives at the singular point are finite and exact."""
        J_log = np.asarray(jax.jacfwd(quat_to_angle_axis)(jnp.asarray(quat_identity())))
        expected_log = np.hstack([np.zeros((3, 1)), 2.0 * np.eye(3)])
        np.testing.assert_allclose(J_log, expected_log, atol=1e-12)

        J_exp = np.asarray(jax.jacfwd(angle_axis_to_quat)(jnp.zeros(3)))
        expected_exp = np.vstack([np.zeros((1, 3)), 0.5 * np.eye(3)])
        np.testing.assert_allclose(J_exp, expected_exp, atol=1e-12)
