"""Core entities: Camera, PosePrior."""

from enum import IntEnum
from typing import List, Optional, Type

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

from ..cost_functions.cost_function import CostFunction
from ..cost_functions.priors import AbsolutePosePositionPriorCostFunctor
from ..cost_functions.registry import create_camera_cost_function
from ..math.camera import CameraModel, CameraModelId, camera_model_from_id


class Camera(BaseModel):
    """Camera intrinsics for one of the supported camera models.

    `params` follows the model's layout, e.g. [f, cx, cy] for SIMPLE_PINHOLE
    or [fx, fy, cx, cy, k1, k2, p1, p2] for OPENCV.
    """

    camera_id: int = Field(ge=0, description="Unique identifier for the camera")
    model_id: CameraModelId = Field(description="Camera model")
    width: int = Field(gt=0, description="Image width in pixels")
    height: int = Field(gt=0, description="Image height in pixels")
    params: List[float] = Field(description="Model parameters, in model order")

    @model_validator(mode='after')
    def validate_params(self):
        expected = self.camera_model.num_params
        if len(self.params) != expected:
            raise ValueError(
                f"{self.camera_model.model_name} expects {expected} params, got {len(self.params)}"
            )
        return self

    @property
    def camera_model(self) -> Type[CameraModel]:
        """Camera model class for this camera's model id."""
        return camera_model_from_id(self.model_id)

    @property
    def model_name(self) -> str:
        return self.camera_model.model_name

    def to_numpy(self) -> np.ndarray:
        """Convert parameters to numpy array."""
        return np.array(self.params, dtype=float)

    def set_from_numpy(self, params: np.ndarray) -> None:
        """Set parameters from numpy array."""
        if params.shape != (self.camera_model.num_params,):
            raise ValueError(f"params must be a {self.camera_model.num_params}-element array")
        self.params = params.tolist()

    def focal_length(self) -> List[float]:
        return [self.params[i] for i in self.camera_model.focal_length_idxs]

    def principal_point(self) -> List[float]:
        return [self.params[i] for i in self.camera_model.principal_point_idxs]

    def extra_params(self) -> List[float]:
        return [self.params[i] for i in self.camera_model.extra_params_idxs]

    def img_from_cam(self, point3D_in_cam: np.ndarray) -> np.ndarray:
        """Project a point in camera coordinates to pixels."""
        x, y, z = np.asarray(point3D_in_cam, dtype=float)
        u, v = self.camera_model.img_from_cam(self.to_numpy(), x, y, z)
        return np.array([float(u), float(v)])

    def create_cost_function(self, cost_functor, *args, **kwargs) -> CostFunction:
        """Create a camera-templated cost function for this camera's model.

        Example:
            camera.create_cost_function(ReprojErrorCostFunctor, point2D)
        """
        return create_camera_cost_function(cost_functor, self.model_id, *args, **kwargs)


class PosePriorCoordinateSystem(IntEnum):
    """Coordinate system of a pose prior position."""
    UNDEFINED = -1
    WGS84 = 0
    CARTESIAN = 1


class PosePrior(BaseModel):
    """Prior on a camera position, e.g. from GPS.

    The covariance is stored row-major as 9 values. An unset covariance is
    NaN, which marks the prior as usable for alignment but not for
    whitened refinement.
    """

    position: Optional[List[float]] = Field(
        default=None,
        description="Camera position in world [x, y, z]",
        min_length=3,
        max_length=3
    )
    position_covariance: List[float] = Field(
        default_factory=lambda: [float("nan")] * 9,
        description="Row-major 3x3 position covariance",
        min_length=9,
        max_length=9
    )
    coordinate_system: PosePriorCoordinateSystem = Field(
        default=PosePriorCoordinateSystem.UNDEFINED,
        description="Coordinate system of the position"
    )

    @field_validator('position')
    @classmethod
    def validate_position(cls, v):
        if v is not None and len(v) != 3:
            raise ValueError("position must be exactly 3 elements")
        return v

    def get_position(self) -> Optional[np.ndarray]:
        """Position as numpy array, or None if unset."""
        if self.position is None:
            return None
        return np.array(self.position, dtype=float)

    def get_covariance(self) -> np.ndarray:
        """Covariance as a 3x3 numpy array."""
        return np.array(self.position_covariance, dtype=float).reshape(3, 3)

    def is_valid(self) -> bool:
        """Check if the position is set and finite."""
        return self.position is not None and bool(np.all(np.isfinite(self.position)))

    def is_covariance_valid(self) -> bool:
        """Check if the covariance is fully specified."""
        return bool(np.all(np.isfinite(self.position_covariance)))

    def create_cost_function(self) -> CostFunction:
        """Whitened position prior on a cam_from_world pose."""
        if not self.is_valid():
            raise ValueError("Pose prior has no valid position")
        if not self.is_covariance_valid():
            raise ValueError("Pose prior has no valid covariance")
        return AbsolutePosePositionPriorCostFunctor.create(self.get_position(), self.get_covariance())
