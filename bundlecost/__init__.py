"""bundlecost - differentiable cost functions for bundle adjustment

Reprojection, epipolar and prior residuals with forward-mode Jacobians,
dispatched over a closed set of camera models.
"""

__version__ = "0.1.0"

# Math
from .core.math.camera import CameraModel, CameraModelId, camera_model_from_id, camera_model_from_name
from .core.math.covariance import sqrt_information
from .core.math.rigid3 import RigidTransform, compose, invert

# Cost functions
from .core.cost_functions.cost_function import (
    AutoDiffCostFunction,
    AutoDiffOptions,
    CostFunction,
    CostFunctor,
)
from .core.cost_functions.reprojection import (
    ReprojErrorCostFunctor,
    ReprojErrorConstantPoseCostFunctor,
    ReprojErrorConstantPoint3DCostFunctor,
    RigReprojErrorCostFunctor,
    RigReprojErrorConstantRigCostFunctor,
)
from .core.cost_functions.epipolar import SampsonErrorCostFunctor
from .core.cost_functions.priors import (
    AbsolutePosePriorCostFunctor,
    AbsolutePosePositionPriorCostFunctor,
    RelativePosePriorCostFunctor,
    Point3DAlignmentCostFunctor,
)
from .core.cost_functions.conditioned import (
    IsotropicNoiseCostFunction,
    IsotropicNoiseCostFunctorWrapper,
)
from .core.cost_functions.registry import CostFunctorRegistry, create_camera_cost_function

# Models
from .core.models.entities import Camera, PosePrior, PosePriorCoordinateSystem

__all__ = [
    # Version
    "__version__",
    # Math
    "CameraModel",
    "CameraModelId",
    "camera_model_from_id",
    "camera_model_from_name",
    "sqrt_information",
    "RigidTransform",
    "compose",
    "invert",
    # Cost functions
    "AutoDiffCostFunction",
    "AutoDiffOptions",
    "CostFunction",
    "CostFunctor",
    "ReprojErrorCostFunctor",
    "ReprojErrorConstantPoseCostFunctor",
    "ReprojErrorConstantPoint3DCostFunctor",
    "RigReprojErrorCostFunctor",
    "RigReprojErrorConstantRigCostFunctor",
    "SampsonErrorCostFunctor",
    "AbsolutePosePriorCostFunctor",
    "AbsolutePosePositionPriorCostFunctor",
    "RelativePosePriorCostFunctor",
    "Point3DAlignmentCostFunctor",
    "IsotropicNoiseCostFunction",
    "IsotropicNoiseCostFunctorWrapper",
    "CostFunctorRegistry",
    "create_camera_cost_function",
    # Models
    "Camera",
    "PosePrior",
    "PosePriorCoordinateSystem",
]
