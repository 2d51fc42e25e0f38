"""Residual rules and cost functions for bundle adjustment."""

from .cost_function import CostFunction, CostFunctor, AutoDiffCostFunction, AutoDiffOptions
from .reprojection import (
    ReprojErrorCostFunctor,
    ReprojErrorConstantPoseCostFunctor,
    ReprojErrorConstantPoint3DCostFunctor,
    RigReprojErrorCostFunctor,
    RigReprojErrorConstantRigCostFunctor,
)
from .epipolar import SampsonErrorCostFunctor
from .priors import (
    AbsolutePosePriorCostFunctor,
    AbsolutePosePositionPriorCostFunctor,
    RelativePosePriorCostFunctor,
    Point3DAlignmentCostFunctor,
)
from .conditioned import (
    LinearCostFunction,
    ConditionedCostFunction,
    IsotropicNoiseCostFunction,
    IsotropicNoiseCostFunctorWrapper,
)
from .registry import CostFunctorRegistry, create_camera_cost_function

__all__ = [
    "CostFunction",
    "CostFunctor",
    "AutoDiffCostFunction",
    "AutoDiffOptions",
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
    "LinearCostFunction",
    "ConditionedCostFunction",
    "IsotropicNoiseCostFunction",
    "IsotropicNoiseCostFunctorWrapper",
    "CostFunctorRegistry",
    "create_camera_cost_function",
]
