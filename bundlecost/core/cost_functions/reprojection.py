"""Reprojection residuals for bundle adjustment.

Every functor transforms a 3D point into the camera frame, projects it with
the camera model it was specialized for and returns predicted minus observed
pixel coordinates. Functors are camera-model templates: index the class with
a model to get a concrete functor,

    ReprojErrorCostFunctor[PinholeCameraModel].create(point2D)

or go through `registry.create_camera_cost_function` with a model id.
"""

from typing import Dict, Optional, Tuple, Type

from ..jax_init import jnp
from ..math.camera import CameraModel
from ..math.quaternions import quat_rotate
from ..math.rigid3 import RigidTransform
from .cost_function import CostFunctor, constant_array

_SPECIALIZATIONS: Dict[Tuple[type, type], type] = {}


class CameraCostFunctor(CostFunctor):
    """Functor parameterized by a camera model class.

    The camera parameter block is always last; its size is the model's
    `num_params` and is appended to `pose_block_sizes` on specialization.
    """

    camera_model: Optional[Type[CameraModel]] = None
    pose_block_sizes: Tuple[int, ...] = ()

    def __class_getitem__(cls, camera_model: Type[CameraModel]):
        if cls.camera_model is not None:
            raise TypeError(f"{cls.__name__} is already specialized")
        if not (isinstance(camera_model, type) and issubclass(camera_model, CameraModel)):
            raise TypeError(f"Expected a CameraModel subclass, got {camera_model!r}")

        key = (cls, camera_model)
        if key not in _SPECIALIZATIONS:
            _SPECIALIZATIONS[key] = type(
                f"{cls.__name__}[{camera_model.model_name}]",
                (cls,),
                {
                    "camera_model": camera_model,
                    "parameter_block_sizes": cls.pose_block_sizes + (camera_model.num_params,),
                    "__module__": cls.__module__,
                },
            )
        return _SPECIALIZATIONS[key]

    def __init__(self):
        if self.camera_model is None:
            raise TypeError(
                f"{type(self).__name__} must be specialized with a camera model, "
                f"e.g. {type(self).__name__}[PinholeCameraModel]"
            )


def reprojection_residual(camera_model, rotation, translation, point3D, camera_params, observed):
    """Predicted minus observed pixel for a point mapped by (rotation, translation)."""
    point3D_in_cam = quat_rotate(rotation, point3D) + translation
    x, y = camera_model.img_from_cam(
        camera_params, point3D_in_cam[0], point3D_in_cam[1], point3D_in_cam[2]
    )
    return jnp.stack([x - observed[0], y - observed[1]])


def rig_reprojection_residual(
    camera_model,
    cam_from_rig_rotation,
    cam_from_rig_translation,
    rig_from_world_rotation,
    rig_from_world_translation,
    point3D,
    camera_params,
    observed
):
    """Reprojection through cam_from_rig * rig_from_world."""
    point3D_in_rig = quat_rotate(rig_from_world_rotation, point3D) + rig_from_world_translation
    return reprojection_residual(
        camera_model,
        cam_from_rig_rotation,
        cam_from_rig_translation,
        point3D_in_rig,
        camera_params,
        observed,
    )


class ReprojErrorCostFunctor(CameraCostFunctor):
    """Variable camera pose, point and calibration.

    Blocks: cam_from_world rotation (4), translation (3), point3D (3),
    camera params.
    """

    num_residuals = 2
    pose_block_sizes = (4, 3, 3)
    constant_fields = ("observed",)

    def __init__(self, point2D):
        super().__init__()
        self.observed = constant_array(point2D, (2,), "point2D")

    def __call__(self, cam_from_world_rotation, cam_from_world_translation, point3D, camera_params):
        return reprojection_residual(
            self.camera_model,
            cam_from_world_rotation,
            cam_from_world_translation,
            point3D,
            camera_params,
            self.observed,
        )


class ReprojErrorConstantPoseCostFunctor(CameraCostFunctor):
    """Variable point and calibration, fixed camera pose.

    Blocks: point3D (3), camera params.
    """

    num_residuals = 2
    pose_block_sizes = (3,)
    constant_fields = ("cam_from_world_rotation", "cam_from_world_translation", "observed")

    def __init__(self, cam_from_world: RigidTransform, point2D):
        super().__init__()
        self.cam_from_world_rotation = constant_array(cam_from_world.rotation, (4,), "rotation")
        self.cam_from_world_translation = constant_array(cam_from_world.translation, (3,), "translation")
        self.observed = constant_array(point2D, (2,), "point2D")

    def __call__(self, point3D, camera_params):
        return reprojection_residual(
            self.camera_model,
            self.cam_from_world_rotation,
            self.cam_from_world_translation,
            point3D,
            camera_params,
            self.observed,
        )


class ReprojErrorConstantPoint3DCostFunctor(CameraCostFunctor):
    """Variable camera pose and calibration, fixed point.

    Blocks: cam_from_world rotation (4), translation (3), camera params.
    """

    num_residuals = 2
    pose_block_sizes = (4, 3)
    constant_fields = ("point3D", "observed")

    def __init__(self, point2D, point3D):
        super().__init__()
        self.observed = constant_array(point2D, (2,), "point2D")
        self.point3D = constant_array(point3D, (3,), "point3D")

    def __call__(self, cam_from_world_rotation, cam_from_world_translation, camera_params):
        return reprojection_residual(
            self.camera_model,
            cam_from_world_rotation,
            cam_from_world_translation,
            self.point3D,
            camera_params,
            self.observed,
        )


class RigReprojErrorCostFunctor(CameraCostFunctor):
    """Camera rig residual with variable extrinsics, rig pose, point and calibration.

    The point is first mapped into the rig frame and then into the camera
    frame. Blocks: cam_from_rig rotation (4), translation (3), rig_from_world
    rotation (4), translation (3), point3D (3), camera params.
    """

    num_residuals = 2
    pose_block_sizes = (4, 3, 4, 3, 3)
    constant_fields = ("observed",)

    def __init__(self, point2D):
        super().__init__()
        self.observed = constant_array(point2D, (2,), "point2D")

    def __call__(
        self,
        cam_from_rig_rotation,
        cam_from_rig_translation,
        rig_from_world_rotation,
        rig_from_world_translation,
        point3D,
        camera_params
    ):
        return rig_reprojection_residual(
            self.camera_model,
            cam_from_rig_rotation,
            cam_from_rig_translation,
            rig_from_world_rotation,
            rig_from_world_translation,
            point3D,
            camera_params,
            self.observed,
        )


class RigReprojErrorConstantRigCostFunctor(CameraCostFunctor):
    """Camera rig residual with fixed cam_from_rig extrinsics.

    Blocks: rig_from_world rotation (4), translation (3), point3D (3),
    camera params.
    """

    num_residuals = 2
    pose_block_sizes = (4, 3, 3)
    constant_fields = ("cam_from_rig_rotation", "cam_from_rig_translation", "observed")

    def __init__(self, cam_from_rig: RigidTransform, point2D):
        super().__init__()
        self.cam_from_rig_rotation = constant_array(cam_from_rig.rotation, (4,), "rotation")
        self.cam_from_rig_translation = constant_array(cam_from_rig.translation, (3,), "translation")
        self.observed = constant_array(point2D, (2,), "point2D")

    def __call__(self, rig_from_world_rotation, rig_from_world_translation, point3D, camera_params):
        return rig_reprojection_residual(
            self.camera_model,
            self.cam_from_rig_rotation,
            self.cam_from_rig_translation,
            rig_from_world_rotation,
            rig_from_world_translation,
            point3D,
            camera_params,
            self.observed,
        )
