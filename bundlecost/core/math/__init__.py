"""Math primitives for bundlecost."""

from .rigid3 import RigidTransform, compose, invert, skew_symmetric
from .quaternions import (
    quat_normalize,
    quat_from_axis_angle,
    quat_multiply,
    quat_conjugate,
    quat_rotate,
    quat_to_matrix,
    quat_to_angle_axis,
    angle_axis_to_quat,
)
from .covariance import sqrt_information, whiten
from .camera import CameraModel, CameraModelId, CAMERA_MODELS, camera_model_from_id, camera_model_from_name
from .jacobians import finite_difference_jacobian, check_cost_function_jacobians, JacobianTester

__all__ = [
    "RigidTransform",
    "compose",
    "invert",
    "skew_symmetric",
    "quat_normalize",
    "quat_from_axis_angle",
    "quat_multiply",
    "quat_conjugate",
    "quat_rotate",
    "quat_to_matrix",
    "quat_to_angle_axis",
    "angle_axis_to_quat",
    "sqrt_information",
    "whiten",
    "CameraModel",
    "CameraModelId",
    "CAMERA_MODELS",
    "camera_model_from_id",
    "camera_model_from_name",
    "finite_difference_jacobian",
    "check_cost_function_jacobians",
    "JacobianTester",
]
