"""Sampson error for refining two-view relative pose."""

import numpy as np

from ..jax_init import jnp
from ..math.quaternions import quat_to_matrix
from ..math.rigid3 import skew_symmetric
from .cost_function import CostFunctor, constant_array


class SampsonErrorCostFunctor(CostFunctor):
    """Squared Sampson distance of a correspondence to its epipolar lines.

    The first camera sits at the origin with identity rotation; the second is
    parameterized by cam2_from_cam1 rotation (4) and translation (3). The
    translation is over-parameterized and is expected to be kept on the unit
    sphere by the solver's manifold.

    x1 and x2 are normalized image coordinates (camera intrinsics removed).
    When both epipolar lines have vanishing direction the denominator is zero
    and the residual is non-finite; this is not guarded.
    """

    num_residuals = 1
    parameter_block_sizes = (4, 3)
    constant_fields = ("x1_h", "x2_h")

    def __init__(self, x1, x2):
        self.x1_h = np.append(constant_array(x1, (2,), "x1"), 1.0)
        self.x2_h = np.append(constant_array(x2, (2,), "x2"), 1.0)

    def __call__(self, cam2_from_cam1_rotation, cam2_from_cam1_translation):
        R = quat_to_matrix(cam2_from_cam1_rotation)
        E = skew_symmetric(cam2_from_cam1_translation) @ R

        Ex1 = E @ self.x1_h
        Etx2 = E.T @ self.x2_h
        x2tEx1 = jnp.dot(self.x2_h, Ex1)

        denominator = Ex1[0] ** 2 + Ex1[1] ** 2 + Etx2[0] ** 2 + Etx2[1] ** 2
        return jnp.reshape(x2tEx1 * x2tEx1 / denominator, (1,))
