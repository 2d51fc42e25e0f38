"""Construction of cost functions by camera model id and by name."""

import logging
from typing import List, Optional

from ..math.camera import camera_model_from_id
from .conditioned import IsotropicNoiseCostFunctorWrapper
from .cost_function import CostFunction
from .epipolar import SampsonErrorCostFunctor
from .priors import (
    AbsolutePosePositionPriorCostFunctor,
    AbsolutePosePriorCostFunctor,
    Point3DAlignmentCostFunctor,
    RelativePosePriorCostFunctor,
)
from .reprojection import (
    CameraCostFunctor,
    ReprojErrorConstantPoint3DCostFunctor,
    ReprojErrorConstantPoseCostFunctor,
    ReprojErrorCostFunctor,
    RigReprojErrorConstantRigCostFunctor,
    RigReprojErrorCostFunctor,
)

logger = logging.getLogger(__name__)


def create_camera_cost_function(cost_functor, camera_model_id, *args, **kwargs) -> CostFunction:
    """Build a camera-templated cost function for a runtime camera model id.

    Args:
        cost_functor: Unspecialized camera functor class, or an
            `IsotropicNoiseCostFunctorWrapper` around one
        camera_model_id: `CameraModelId` member or its integer value
        *args, **kwargs: Forwarded to the specialized functor's `create`

    Returns:
        Cost function whose last parameter block is the camera parameters

    Raises:
        ValueError: If the id does not name a registered camera model
    """
    camera_model = camera_model_from_id(camera_model_id)
    logger.debug(
        "Creating %s for camera model %s",
        getattr(cost_functor, "__name__", cost_functor), camera_model.model_name
    )
    return cost_functor[camera_model].create(*args, **kwargs)


class CostFunctorRegistry:
    """Registry for cost functor types."""

    _cost_functor_types = {
        "reprojection": ReprojErrorCostFunctor,
        "reprojection_constant_pose": ReprojErrorConstantPoseCostFunctor,
        "reprojection_constant_point3D": ReprojErrorConstantPoint3DCostFunctor,
        "rig_reprojection": RigReprojErrorCostFunctor,
        "rig_reprojection_constant_rig": RigReprojErrorConstantRigCostFunctor,
        "sampson": SampsonErrorCostFunctor,
        "absolute_pose_prior": AbsolutePosePriorCostFunctor,
        "absolute_pose_position_prior": AbsolutePosePositionPriorCostFunctor,
        "relative_pose_prior": RelativePosePriorCostFunctor,
        "point3D_alignment": Point3DAlignmentCostFunctor,
    }

    @classmethod
    def get_cost_functor_class(cls, cost_functor_type: str):
        """Get cost functor class by type string."""
        if cost_functor_type not in cls._cost_functor_types:
            raise ValueError(f"Unknown cost functor type: {cost_functor_type}")
        return cls._cost_functor_types[cost_functor_type]

    @classmethod
    def list_cost_functor_types(cls) -> List[str]:
        """List all available cost functor types."""
        return list(cls._cost_functor_types.keys())

    @classmethod
    def is_camera_dependent(cls, cost_functor_type: str) -> bool:
        """Whether the functor must be specialized with a camera model."""
        return issubclass(cls.get_cost_functor_class(cost_functor_type), CameraCostFunctor)

    @classmethod
    def create_cost_function(
        cls,
        cost_functor_type: str,
        *args,
        camera_model_id=None,
        stddev: Optional[float] = None,
        **kwargs
    ) -> CostFunction:
        """Create cost function of specified type.

        Camera-dependent types require `camera_model_id`; the others reject
        it. With `stddev` the result is whitened by isotropic noise.
        """
        cost_functor = cls.get_cost_functor_class(cost_functor_type)
        camera_dependent = issubclass(cost_functor, CameraCostFunctor)

        if camera_dependent and camera_model_id is None:
            raise ValueError(f"{cost_functor_type} requires a camera_model_id")
        if not camera_dependent and camera_model_id is not None:
            raise ValueError(f"{cost_functor_type} does not take a camera model")

        if stddev is not None:
            cost_functor = IsotropicNoiseCostFunctorWrapper(cost_functor)
            args = (stddev,) + args

        if camera_dependent:
            return create_camera_cost_function(cost_functor, camera_model_id, *args, **kwargs)
        return cost_functor.create(*args, **kwargs)
