"""Rigid 3D transforms (rotation + translation) for camera poses.

A `RigidTransform` named `b_from_a` maps points expressed in frame A into
frame B: x_b = R * x_a + t. Composition reads right to left,
`c_from_a = c_from_b * b_from_a`.
"""

from dataclasses import dataclass, field

import numpy as np

from ..jax_init import jnp
from .quaternions import (
    angle_axis_to_quat,
    quat_conjugate,
    quat_identity,
    quat_multiply,
    quat_rotate,
    quat_to_matrix,
)


@dataclass(frozen=True, eq=False)
class RigidTransform:
    """Rotation as unit quaternion [w, x, y, z] plus translation."""

    rotation: np.ndarray = field(default_factory=quat_identity)
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        """Coerce to float arrays and check shapes."""
        rotation = np.asarray(self.rotation, dtype=float)
        translation = np.asarray(self.translation, dtype=float)
        if rotation.shape != (4,):
            raise ValueError(f"rotation must be 4-element quaternion, got shape {rotation.shape}")
        if translation.shape != (3,):
            raise ValueError(f"translation must be 3-element vector, got shape {translation.shape}")
        object.__setattr__(self, "rotation", rotation)
        object.__setattr__(self, "translation", translation)

    @classmethod
    def identity(cls) -> "RigidTransform":
        """Identity transform."""
        return cls()

    @classmethod
    def from_angle_axis(cls, angle_axis: np.ndarray, translation: np.ndarray) -> "RigidTransform":
        """Build a transform from an angle-axis rotation vector."""
        return cls(np.asarray(angle_axis_to_quat(np.asarray(angle_axis, dtype=float))), translation)

    def rotation_matrix(self) -> np.ndarray:
        """3x3 rotation matrix."""
        return np.asarray(quat_to_matrix(self.rotation))

    def to_matrix(self) -> np.ndarray:
        """3x4 matrix [R | t]."""
        return np.column_stack([self.rotation_matrix(), self.translation])

    def transform_point(self, point: np.ndarray) -> np.ndarray:
        """Map a point from the source frame into the target frame."""
        return np.asarray(quat_rotate(self.rotation, np.asarray(point, dtype=float))) + self.translation

    def inverse(self) -> "RigidTransform":
        """Return a_from_b for self = b_from_a."""
        return invert(self)

    def __mul__(self, other: "RigidTransform") -> "RigidTransform":
        return compose(self, other)


def compose(c_from_b: RigidTransform, b_from_a: RigidTransform) -> RigidTransform:
    """Compose two transforms: c_from_a = c_from_b * b_from_a."""
    rotation = quat_multiply(c_from_b.rotation, b_from_a.rotation)
    translation = quat_rotate(c_from_b.rotation, b_from_a.translation) + c_from_b.translation
    return RigidTransform(np.asarray(rotation), np.asarray(translation))


def invert(b_from_a: RigidTransform) -> RigidTransform:
    """Invert a transform, assuming a unit quaternion."""
    rotation = quat_conjugate(b_from_a.rotation)
    translation = -quat_rotate(rotation, b_from_a.translation)
    return RigidTransform(np.asarray(rotation), np.asarray(translation))


def skew_symmetric(v):
    """Cross-product matrix [v]_x such that [v]_x @ w == v x w."""
    zero = jnp.zeros_like(v[0])
    return jnp.stack([
        jnp.stack([zero, -v[2], v[1]]),
        jnp.stack([v[2], zero, -v[0]]),
        jnp.stack([-v[1], v[0], zero]),
    ])
