"""Square-root information matrices for whitening residuals."""

import logging

import numpy as np
from scipy.linalg import lapack

logger = logging.getLogger(__name__)


def sqrt_information(covariance: np.ndarray) -> np.ndarray:
    """Upper-triangular square root of the information matrix.

    Returns R with R^T R = covariance^{-1}, i.e. the transposed lower
    Cholesky factor of the inverse covariance. A whitened residual is
    R @ raw_residual.

    The covariance is expected to be symmetric positive definite. This is
    not validated: if the information matrix cannot be factorized the result
    is filled with NaN and a warning is logged.

    Args:
        covariance: Square covariance matrix (3x3 or 6x6 in practice)

    Returns:
        Upper-triangular matrix of the same shape
    """
    covariance = np.asarray(covariance, dtype=float)
    if covariance.ndim != 2 or covariance.shape[0] != covariance.shape[1]:
        raise ValueError(f"covariance must be a square matrix, got shape {covariance.shape}")

    try:
        information = np.linalg.inv(covariance)
    except np.linalg.LinAlgError:
        logger.warning("Covariance is singular; square-root information is undefined")
        return np.full_like(covariance, np.nan)

    factor, info = lapack.dpotrf(information, lower=0, clean=1)
    if info != 0:
        logger.warning(
            "Information matrix is not positive definite (potrf info=%d); "
            "square-root information is undefined", info
        )
        return np.full_like(information, np.nan)

    return factor


def whiten(sqrt_info, residual):
    """Left-multiply a raw residual by a square-root information matrix."""
    return sqrt_info @ residual
