"""Prior residuals on poses and points, whitened by their covariance.

Each functor stores the square-root information of its prior covariance and
left-multiplies the raw residual by it, so correlations between residual
components are respected. Pose residuals split SE(3) into SO(3) x R^3: the
first three components are the rotation error as an angle-axis vector, the
last three the translation error.
"""

from ..jax_init import jnp
from ..math.covariance import sqrt_information, whiten
from ..math.quaternions import quat_conjugate, quat_multiply, quat_rotate, quat_to_angle_axis
from ..math.rigid3 import RigidTransform, invert
from .cost_function import CostFunctor, constant_array


class AbsolutePosePriorCostFunctor(CostFunctor):
    """6-DoF prior on an absolute camera pose.

    The covariance is expressed in the camera frame, rotation block first.
    Blocks: cam_from_world rotation (4), translation (3).
    """

    num_residuals = 6
    parameter_block_sizes = (4, 3)
    constant_fields = ("world_from_cam_rotation", "world_from_cam_translation", "sqrt_info")

    def __init__(self, cam_from_world_prior: RigidTransform, cam_cov_from_world_prior):
        world_from_cam_prior = invert(cam_from_world_prior)
        self.world_from_cam_rotation = world_from_cam_prior.rotation
        self.world_from_cam_translation = world_from_cam_prior.translation
        self.sqrt_info = sqrt_information(
            constant_array(cam_cov_from_world_prior, (6, 6), "cam_cov_from_world_prior")
        )

    def __call__(self, cam_from_world_rotation, cam_from_world_translation):
        param_from_prior_rotation = quat_multiply(cam_from_world_rotation, self.world_from_cam_rotation)
        param_from_prior_translation = cam_from_world_translation + quat_rotate(
            cam_from_world_rotation, self.world_from_cam_translation
        )
        residual = jnp.concatenate([
            quat_to_angle_axis(param_from_prior_rotation),
            param_from_prior_translation,
        ])
        return whiten(self.sqrt_info, residual)


class AbsolutePosePositionPriorCostFunctor(CostFunctor):
    """3-DoF prior on the camera position in the world frame.

    With position = -R^T t, the residual is prior + R^T t, i.e. the prior
    position minus the estimated one. Blocks: cam_from_world rotation (4),
    translation (3).
    """

    num_residuals = 3
    parameter_block_sizes = (4, 3)
    constant_fields = ("position_in_world_prior", "sqrt_info")

    def __init__(self, position_in_world_prior, position_cov_in_world_prior):
        self.position_in_world_prior = constant_array(
            position_in_world_prior, (3,), "position_in_world_prior"
        )
        self.sqrt_info = sqrt_information(
            constant_array(position_cov_in_world_prior, (3, 3), "position_cov_in_world_prior")
        )

    def __call__(self, cam_from_world_rotation, cam_from_world_translation):
        residual = self.position_in_world_prior + quat_rotate(
            quat_conjugate(cam_from_world_rotation), cam_from_world_translation
        )
        return whiten(self.sqrt_info, residual)


class RelativePosePriorCostFunctor(CostFunctor):
    """6-DoF prior on the relative pose between two absolute poses.

    Writing i_from_world = dT * i_from_j * j_from_world, the residual is
    log(dT) = log(i_from_world * j_from_world^-1 * j_from_i):

        rotation:    log(R_i * R_j^T * R_j_from_i)
        translation: t_i + R_i * R_j^T * (t_j_from_i - t_j)

    The covariance is expressed in frame i. Blocks: i_from_world rotation (4),
    translation (3), j_from_world rotation (4), translation (3).
    """

    num_residuals = 6
    parameter_block_sizes = (4, 3, 4, 3)
    constant_fields = ("j_from_i_rotation", "j_from_i_translation", "sqrt_info")

    def __init__(self, i_from_j_prior: RigidTransform, i_cov_from_j_prior):
        j_from_i_prior = invert(i_from_j_prior)
        self.j_from_i_rotation = j_from_i_prior.rotation
        self.j_from_i_translation = j_from_i_prior.translation
        self.sqrt_info = sqrt_information(
            constant_array(i_cov_from_j_prior, (6, 6), "i_cov_from_j_prior")
        )

    def __call__(
        self,
        i_from_world_rotation,
        i_from_world_translation,
        j_from_world_rotation,
        j_from_world_translation
    ):
        i_from_j_rotation = quat_multiply(i_from_world_rotation, quat_conjugate(j_from_world_rotation))
        param_from_prior_rotation = quat_multiply(i_from_j_rotation, self.j_from_i_rotation)

        param_from_prior_translation = i_from_world_translation + quat_rotate(
            i_from_j_rotation, self.j_from_i_translation - j_from_world_translation
        )
        residual = jnp.concatenate([
            quat_to_angle_axis(param_from_prior_rotation),
            param_from_prior_translation,
        ])
        return whiten(self.sqrt_info, residual)


class Point3DAlignmentCostFunctor(CostFunctor):
    """Align a point in frame A with a reference point in frame B.

    b_from_a is a similarity transform, point_in_b = s * (R * point_in_a) + t.
    Blocks: point_in_a (3), b_from_a rotation (4), translation (3), scale (1).
    """

    num_residuals = 3
    parameter_block_sizes = (3, 4, 3, 1)
    constant_fields = ("point_in_b_prior", "sqrt_info")

    def __init__(self, point_in_b_prior, point_cov_in_b_prior):
        self.point_in_b_prior = constant_array(point_in_b_prior, (3,), "point_in_b_prior")
        self.sqrt_info = sqrt_information(
            constant_array(point_cov_in_b_prior, (3, 3), "point_cov_in_b_prior")
        )

    def __call__(self, point_in_a, b_from_a_rotation, b_from_a_translation, b_from_a_scale):
        point_in_b = quat_rotate(b_from_a_rotation, point_in_a) * b_from_a_scale[0] + b_from_a_translation
        return whiten(self.sqrt_info, point_in_b - self.point_in_b_prior)
