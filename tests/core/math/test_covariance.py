"""Tests for square-root information matrices."""

import logging

import numpy as np
import pytest

from bundlecost.core.math.covariance import sqrt_information, whiten


class TestSqrtInformation:
    """Test square-root information computation."""

    def test_diagonal_covariance(self):
        """Test diag(4, 9, 16) gives diag(1/2, 1/3, 1/4)."""
        R = sqrt_information(np.diag([4.0, 9.0, 16.0]))

        np.testing.assert_allclose(R, np.diag([0.5, 1.0 / 3.0, 0.25]), atol=1e-12)

    def test_factorizes_information(self):
        """Test R^T R = C^-1 with R upper triangular."""
        rng = np.random.default_rng(0)
        A = rng.standard_normal((6, 6))
        C = A @ A.T + 6.0 * np.eye(6)

        R = sqrt_information(C)

        np.testing.assert_allclose(R.T @ R, np.linalg.inv(C), atol=1e-10)
        np.testing.assert_allclose(np.tril(R, -1), np.zeros((6, 6)))

    def test_whitened_residual_has_unit_covariance_norm(self):
        """Test |R r|^2 equals the Mahalanobis norm r^T C^-1 r."""
        C = np.array([[2.0, 0.3, 0.0], [0.3, 1.0, 0.2], [0.0, 0.2, 0.5]])
        r = np.array([0.4, -1.0, 0.7])

        whitened = np.asarray(whiten(sqrt_information(C), r))

        assert abs(whitened @ whitened - r @ np.linalg.solve(C, r)) < 1e-10

    def test_indefinite_covariance_gives_nan(self, caplog):
        """Test that non positive definite input yields NaN and a warning."""
        C = np.array([[1.0, 2.0], [2.0, 1.0]])

        with caplog.at_level(logging.WARNING, logger="bundlecost.core.math.covariance"):
            R = sqrt_information(C)

        assert R.shape == (2, 2)
        assert np.all(np.isnan(R))
        assert "not positive definite" in caplog.text

    def test_singular_covariance_gives_nan(self, caplog):
        """Test that a singular covariance yields NaN and a warning."""
        with caplog.at_level(logging.WARNING, logger="bundlecost.core.math.covariance"):
            R = sqrt_information(np.zeros((3, 3)))

        assert np.all(np.isnan(R))
        assert "singular" in caplog.text

    def test_non_square_raises(self):
        """Test shape validation."""
        with pytest.raises(ValueError):
            sqrt_information(np.ones((3, 2)))
