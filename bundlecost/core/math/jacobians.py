"""Finite-difference Jacobians for validating cost functions."""

from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np


def finite_difference_jacobian(
    func: Callable[[np.ndarray], np.ndarray],
    x: np.ndarray,
    h: float = 1e-6,
    method: str = "central"
) -> np.ndarray:
    """Compute Jacobian using finite differences.

    Args:
        func: Function that takes x and returns residual vector
        x: Input parameters
        h: Step size for finite differences
        method: Finite difference method ("forward", "central")

    Returns:
        Jacobian matrix J where J[i,j] = df_i/dx_j
    """
    x = np.atleast_1d(np.asarray(x, dtype=float))
    f0 = np.atleast_1d(func(x))

    J = np.zeros((len(f0), len(x)))

    for j in range(len(x)):
        x_plus = x.copy()
        x_plus[j] += h
        f_plus = np.atleast_1d(func(x_plus))

        if method == "forward":
            J[:, j] = (f_plus - f0) / h
        elif method == "central":
            x_minus = x.copy()
            x_minus[j] -= h
            f_minus = np.atleast_1d(func(x_minus))
            J[:, j] = (f_plus - f_minus) / (2 * h)
        else:
            raise ValueError(f"Unknown finite difference method: {method}")

    return J


def numeric_block_jacobians(
    cost_function,
    parameters: Sequence[np.ndarray],
    h: float = 1e-6
) -> List[np.ndarray]:
    """Central-difference Jacobian of a cost function, one matrix per block.

    Args:
        cost_function: Object implementing the CostFunction interface
        parameters: Parameter blocks at which to linearize
        h: Step size

    Returns:
        List of num_residuals x block_size matrices
    """
    blocks = [np.asarray(block, dtype=float) for block in parameters]
    jacobians = []

    for i, block in enumerate(blocks):
        def residual_of_block(x, i=i):
            perturbed = list(blocks)
            perturbed[i] = x
            return cost_function.compute_residual(perturbed)

        jacobians.append(finite_difference_jacobian(residual_of_block, block, h))

    return jacobians


def check_cost_function_jacobians(
    cost_function,
    parameters: Sequence[np.ndarray],
    h: float = 1e-6,
    atol: float = 1e-6,
    rtol: float = 1e-5
) -> Tuple[bool, float, List[np.ndarray]]:
    """Compare a cost function's Jacobians against finite differences.

    Args:
        cost_function: Object implementing the CostFunction interface
        parameters: Parameter blocks at which to compare
        h: Step size for finite differences
        atol: Absolute tolerance
        rtol: Relative tolerance

    Returns:
        Tuple of (is_correct, max_abs_error, per-block error matrices)
    """
    analytic = cost_function.compute_jacobian(parameters)
    numeric = numeric_block_jacobians(cost_function, parameters, h)

    errors = [np.abs(J_a - J_n) for J_a, J_n in zip(analytic, numeric)]
    max_error = max((float(np.max(e)) for e in errors if e.size), default=0.0)
    is_correct = all(
        np.allclose(J_a, J_n, atol=atol, rtol=rtol)
        for J_a, J_n in zip(analytic, numeric)
    )

    return is_correct, max_error, errors


class JacobianTester:
    """Checks cost function Jacobians at several random linearization points."""

    def __init__(self, atol: float = 1e-6, rtol: float = 1e-5, seed: Optional[int] = None):
        """Initialize tester with tolerances and a random seed."""
        self.atol = atol
        self.rtol = rtol
        self.rng = np.random.default_rng(seed)

    def random_parameters(
        self,
        base_parameters: Sequence[np.ndarray],
        scale: float = 0.05
    ) -> List[np.ndarray]:
        """Perturb every block of a reference linearization point."""
        return [
            np.asarray(block, dtype=float) + scale * self.rng.standard_normal(len(block))
            for block in base_parameters
        ]

    def test_cost_function(
        self,
        cost_function,
        base_parameters: Sequence[np.ndarray],
        n_points: int = 3,
        scale: float = 0.05
    ) -> bool:
        """Return True if Jacobians match at the base point and n_points perturbations."""
        points = [list(base_parameters)]
        points += [self.random_parameters(base_parameters, scale) for _ in range(n_points)]

        return all(
            check_cost_function_jacobians(cost_function, p, atol=self.atol, rtol=self.rtol)[0]
            for p in points
        )
