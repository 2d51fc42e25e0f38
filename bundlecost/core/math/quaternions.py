"""Quaternion operations for 3D rotations.

Quaternions are stored as [w, x, y, z]. Apart from the numpy helpers used to
build inputs (`quat_normalize`, `quat_from_axis_angle`), every function here
is written against jax.numpy so it can be evaluated on plain float arrays and
under forward-mode differentiation alike. They do not normalize their inputs:
unit norm is the caller's responsibility.
"""

import numpy as np

from ..jax_init import jnp


def quat_identity() -> np.ndarray:
    """Return the identity rotation."""
    return np.array([1.0, 0.0, 0.0, 0.0])


def quat_normalize(q: np.ndarray) -> np.ndarray:
    """Normalize quaternion to unit length."""
    q = np.asarray(q, dtype=float)
    if q.shape != (4,):
        raise ValueError(f"Quaternion must be 4-element vector, got shape {q.shape}")

    norm = np.linalg.norm(q)
    if norm < 1e-12:
        raise ValueError("Cannot normalize zero quaternion")

    return q / norm


def quat_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """Create quaternion from a rotation axis and an angle in radians.

    A zero axis yields the identity rotation.
    """
    axis = np.asarray(axis, dtype=float)
    if axis.shape != (3,):
        raise ValueError(f"Axis must be 3-element vector, got shape {axis.shape}")

    axis_norm = np.linalg.norm(axis)
    if axis_norm < 1e-12:
        return quat_identity()

    axis = axis / axis_norm
    half_angle = angle / 2
    return np.concatenate([[np.cos(half_angle)], np.sin(half_angle) * axis])


def quat_multiply(q1, q2):
    """Hamilton product q1 * q2."""
    w1, x1, y1, z1 = q1[0], q1[1], q1[2], q1[3]
    w2, x2, y2, z2 = q2[0], q2[1], q2[2], q2[3]

    return jnp.stack([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2,
    ])


def quat_conjugate(q):
    """Return quaternion conjugate (the inverse of a unit quaternion)."""
    return jnp.stack([q[0], -q[1], -q[2], -q[3]])


def quat_rotate(q, v):
    """Rotate a 3-vector by a unit quaternion.

    Uses v' = v + 2w (u x v) + 2 u x (u x v) with u the vector part.
    """
    u = jnp.stack([q[1], q[2], q[3]])
    uv = 2.0 * jnp.cross(u, v)
    return v + q[0] * uv + jnp.cross(u, uv)


def quat_to_matrix(q):
    """Convert a unit quaternion to a 3x3 rotation matrix."""
    w, x, y, z = q[0], q[1], q[2], q[3]

    return jnp.stack([
        jnp.stack([1 - 2*(y*y + z*z), 2*(x*y - w*z), 2*(x*z + w*y)]),
        jnp.stack([2*(x*y + w*z), 1 - 2*(x*x + z*z), 2*(y*z - w*x)]),
        jnp.stack([2*(x*z - w*y), 2*(y*z + w*x), 1 - 2*(x*x + y*y)]),
    ])


def quat_to_angle_axis(q):
    """Logarithm of a unit quaternion as an angle-axis 3-vector.

    The angle is wrapped to [-pi, pi] so q and -q map to the same vector.
    At the identity the derivative falls back to 2 * d(vector part).
    """
    vec = jnp.stack([q[1], q[2], q[3]])
    sin_squared_theta = jnp.dot(vec, vec)
    has_rotation = sin_squared_theta > 0.0

    sin_theta = jnp.sqrt(jnp.where(has_rotation, sin_squared_theta, 1.0))
    cos_theta = q[0]
    two_theta = 2.0 * jnp.where(
        cos_theta < 0.0,
        jnp.arctan2(-sin_theta, -cos_theta),
        jnp.arctan2(sin_theta, cos_theta),
    )
    k = jnp.where(has_rotation, two_theta / sin_theta, 2.0)
    return vec * k


def angle_axis_to_quat(angle_axis):
    """Exponential map from an angle-axis 3-vector to a unit quaternion."""
    angle_axis = jnp.asarray(angle_axis)
    theta_squared = jnp.dot(angle_axis, angle_axis)
    has_rotation = theta_squared > 0.0

    theta = jnp.sqrt(jnp.where(has_rotation, theta_squared, 1.0))
    half_theta = 0.5 * theta
    k = jnp.where(has_rotation, jnp.sin(half_theta) / theta, 0.5)
    w = jnp.where(has_rotation, jnp.cos(half_theta), 1.0)
    return jnp.concatenate([jnp.reshape(w, (1,)), angle_axis * k])
