"""Camera models: projection from camera coordinates to image pixels.

Each model is a class with a fixed parameter layout and an `img_from_cam`
projection written against jax.numpy, so cost functors can differentiate
through it with respect to both the point and the intrinsics. The set of
models is closed: every `CameraModelId` is registered exactly once when this
module is imported, after which the registry is read-only.

Projection follows the usual convention:

    u, v = x / z, y / z
    du, dv = distortion(extra_params, u, v)
    image = (fx * (u + du) + cx, fy * (v + dv) + cy)

Points behind the camera are not rejected; that is the caller's business.
"""

from enum import IntEnum
from types import MappingProxyType
from typing import Dict, Tuple, Type

from ..jax_init import jnp

# Below this radius fisheye models fall back to the identity mapping.
_FISHEYE_EPS = 1e-12


class CameraModelId(IntEnum):
    """Identifiers of the supported camera models."""
    SIMPLE_PINHOLE = 0
    PINHOLE = 1
    SIMPLE_RADIAL = 2
    RADIAL = 3
    OPENCV = 4
    OPENCV_FISHEYE = 5
    FULL_OPENCV = 6
    FOV = 7
    SIMPLE_RADIAL_FISHEYE = 8
    RADIAL_FISHEYE = 9
    THIN_PRISM_FISHEYE = 10


class CameraModel:
    """Base class for camera models.

    Subclasses set the class attributes and override `distortion` when the
    model is not a plain pinhole.
    """

    model_id: CameraModelId
    model_name: str = ""
    num_params: int = 0
    params_info: Tuple[str, ...] = ()
    focal_length_idxs: Tuple[int, ...] = ()
    principal_point_idxs: Tuple[int, ...] = ()
    extra_params_idxs: Tuple[int, ...] = ()

    @classmethod
    def img_from_cam(cls, params, x, y, z):
        """Project a point in camera coordinates to image coordinates.

        Args:
            params: Camera parameters, length `num_params`
            x, y, z: Point in the camera frame

        Returns:
            Tuple (u, v) of image coordinates
        """
        u = x / z
        v = y / z

        extra = [params[i] for i in cls.extra_params_idxs]
        du, dv = cls.distortion(extra, u, v)
        u = u + du
        v = v + dv

        fx = params[cls.focal_length_idxs[0]]
        fy = params[cls.focal_length_idxs[-1]]
        cx = params[cls.principal_point_idxs[0]]
        cy = params[cls.principal_point_idxs[1]]
        return fx * u + cx, fy * v + cy

    @staticmethod
    def distortion(extra, u, v):
        """Offsets (du, dv) added to normalized coordinates."""
        return jnp.zeros_like(u), jnp.zeros_like(v)


_CAMERA_MODELS: Dict[CameraModelId, Type[CameraModel]] = {}


def register_camera_model(model: Type[CameraModel]) -> Type[CameraModel]:
    """Class decorator adding a model to the registry."""
    if model.model_id in _CAMERA_MODELS:
        raise ValueError(f"Camera model {model.model_id.name} registered twice")
    _CAMERA_MODELS[model.model_id] = model
    return model


def _fisheye_theta(u, v):
    """Radius r and incidence angle atan(r) with a safe value at r = 0."""
    r2 = u * u + v * v
    is_off_axis = r2 > _FISHEYE_EPS * _FISHEYE_EPS
    r = jnp.sqrt(jnp.where(is_off_axis, r2, 1.0))
    return is_off_axis, r, jnp.arctan(r)


@register_camera_model
class SimplePinholeCameraModel(CameraModel):
    model_id = CameraModelId.SIMPLE_PINHOLE
    model_name = "SIMPLE_PINHOLE"
    num_params = 3
    params_info = ("f", "cx", "cy")
    focal_length_idxs = (0,)
    principal_point_idxs = (1, 2)
    extra_params_idxs = ()


@register_camera_model
class PinholeCameraModel(CameraModel):
    model_id = CameraModelId.PINHOLE
    model_name = "PINHOLE"
    num_params = 4
    params_info = ("fx", "fy", "cx", "cy")
    focal_length_idxs = (0, 1)
    principal_point_idxs = (2, 3)
    extra_params_idxs = ()


@register_camera_model
class SimpleRadialCameraModel(CameraModel):
    model_id = CameraModelId.SIMPLE_RADIAL
    model_name = "SIMPLE_RADIAL"
    num_params = 4
    params_info = ("f", "cx", "cy", "k")
    focal_length_idxs = (0,)
    principal_point_idxs = (1, 2)
    extra_params_idxs = (3,)

    @staticmethod
    def distortion(extra, u, v):
        k = extra[0]
        radial = k * (u * u + v * v)
        return u * radial, v * radial


@register_camera_model
class RadialCameraModel(CameraModel):
    model_id = CameraModelId.RADIAL
    model_name = "RADIAL"
    num_params = 5
    params_info = ("f", "cx", "cy", "k1", "k2")
    focal_length_idxs = (0,)
    principal_point_idxs = (1, 2)
    extra_params_idxs = (3, 4)

    @staticmethod
    def distortion(extra, u, v):
        k1, k2 = extra
        r2 = u * u + v * v
        radial = k1 * r2 + k2 * r2 * r2
        return u * radial, v * radial


@register_camera_model
class OpenCVCameraModel(CameraModel):
    model_id = CameraModelId.OPENCV
    model_name = "OPENCV"
    num_params = 8
    params_info = ("fx", "fy", "cx", "cy", "k1", "k2", "p1", "p2")
    focal_length_idxs = (0, 1)
    principal_point_idxs = (2, 3)
    extra_params_idxs = (4, 5, 6, 7)

    @staticmethod
    def distortion(extra, u, v):
        k1, k2, p1, p2 = extra
        u2 = u * u
        v2 = v * v
        uv = u * v
        r2 = u2 + v2
        radial = k1 * r2 + k2 * r2 * r2
        du = u * radial + 2 * p1 * uv + p2 * (r2 + 2 * u2)
        dv = v * radial + 2 * p2 * uv + p1 * (r2 + 2 * v2)
        return du, dv


@register_camera_model
class OpenCVFisheyeCameraModel(CameraModel):
    model_id = CameraModelId.OPENCV_FISHEYE
    model_name = "OPENCV_FISHEYE"
    num_params = 8
    params_info = ("fx", "fy", "cx", "cy", "k1", "k2", "k3", "k4")
    focal_length_idxs = (0, 1)
    principal_point_idxs = (2, 3)
    extra_params_idxs = (4, 5, 6, 7)

    @staticmethod
    def distortion(extra, u, v):
        k1, k2, k3, k4 = extra
        is_off_axis, r, theta = _fisheye_theta(u, v)
        theta2 = theta * theta
        theta4 = theta2 * theta2
        theta6 = theta4 * theta2
        theta8 = theta4 * theta4
        thetad = theta * (1 + k1 * theta2 + k2 * theta4 + k3 * theta6 + k4 * theta8)
        scale = jnp.where(is_off_axis, thetad / r - 1, 0.0)
        return u * scale, v * scale


@register_camera_model
class FullOpenCVCameraModel(CameraModel):
    model_id = CameraModelId.FULL_OPENCV
    model_name = "FULL_OPENCV"
    num_params = 12
    params_info = ("fx", "fy", "cx", "cy", "k1", "k2", "p1", "p2", "k3", "k4", "k5", "k6")
    focal_length_idxs = (0, 1)
    principal_point_idxs = (2, 3)
    extra_params_idxs = tuple(range(4, 12))

    @staticmethod
    def distortion(extra, u, v):
        k1, k2, p1, p2, k3, k4, k5, k6 = extra
        u2 = u * u
        v2 = v * v
        uv = u * v
        r2 = u2 + v2
        r4 = r2 * r2
        r6 = r4 * r2
        radial = (1 + k1 * r2 + k2 * r4 + k3 * r6) / (1 + k4 * r2 + k5 * r4 + k6 * r6)
        du = u * radial + 2 * p1 * uv + p2 * (r2 + 2 * u2) - u
        dv = v * radial + 2 * p2 * uv + p1 * (r2 + 2 * v2) - v
        return du, dv


@register_camera_model
class FOVCameraModel(CameraModel):
    """Field-of-view model with a single distortion parameter omega."""

    model_id = CameraModelId.FOV
    model_name = "FOV"
    num_params = 5
    params_info = ("fx", "fy", "cx", "cy", "omega")
    focal_length_idxs = (0, 1)
    principal_point_idxs = (2, 3)
    extra_params_idxs = (4,)

    @staticmethod
    def distortion(extra, u, v):
        omega = extra[0]
        epsilon = 1e-4
        radius2 = u * u + v * v
        omega2 = omega * omega

        small_omega = omega2 < epsilon
        small_radius = radius2 < epsilon
        safe_omega = jnp.where(small_omega, 1.0, omega)
        safe_radius = jnp.sqrt(jnp.where(small_radius, 1.0, radius2))
        tan_half_omega = jnp.tan(safe_omega / 2)

        # Taylor expansions around omega = 0 and radius = 0.
        factor_small_omega = (omega2 * radius2) / 3 - omega2 / 12 + 1
        factor_small_radius = (
            -2 * tan_half_omega * (4 * radius2 * tan_half_omega * tan_half_omega - 3)
        ) / (3 * safe_omega)
        factor_general = jnp.arctan(safe_radius * 2 * tan_half_omega) / (safe_radius * safe_omega)

        factor = jnp.where(
            small_omega,
            factor_small_omega,
            jnp.where(small_radius, factor_small_radius, factor_general),
        )
        return u * factor - u, v * factor - v


@register_camera_model
class SimpleRadialFisheyeCameraModel(CameraModel):
    model_id = CameraModelId.SIMPLE_RADIAL_FISHEYE
    model_name = "SIMPLE_RADIAL_FISHEYE"
    num_params = 4
    params_info = ("f", "cx", "cy", "k")
    focal_length_idxs = (0,)
    principal_point_idxs = (1, 2)
    extra_params_idxs = (3,)

    @staticmethod
    def distortion(extra, u, v):
        k = extra[0]
        is_off_axis, r, theta = _fisheye_theta(u, v)
        thetad = theta * (1 + k * theta * theta)
        scale = jnp.where(is_off_axis, thetad / r - 1, 0.0)
        return u * scale, v * scale


@register_camera_model
class RadialFisheyeCameraModel(CameraModel):
    model_id = CameraModelId.RADIAL_FISHEYE
    model_name = "RADIAL_FISHEYE"
    num_params = 5
    params_info = ("f", "cx", "cy", "k1", "k2")
    focal_length_idxs = (0,)
    principal_point_idxs = (1, 2)
    extra_params_idxs = (3, 4)

    @staticmethod
    def distortion(extra, u, v):
        k1, k2 = extra
        is_off_axis, r, theta = _fisheye_theta(u, v)
        theta2 = theta * theta
        thetad = theta * (1 + k1 * theta2 + k2 * theta2 * theta2)
        scale = jnp.where(is_off_axis, thetad / r - 1, 0.0)
        return u * scale, v * scale


@register_camera_model
class ThinPrismFisheyeCameraModel(CameraModel):
    """Equidistant fisheye followed by radial, tangential and thin-prism terms."""

    model_id = CameraModelId.THIN_PRISM_FISHEYE
    model_name = "THIN_PRISM_FISHEYE"
    num_params = 12
    params_info = ("fx", "fy", "cx", "cy", "k1", "k2", "p1", "p2", "k3", "k4", "sx1", "sy1")
    focal_length_idxs = (0, 1)
    principal_point_idxs = (2, 3)
    extra_params_idxs = tuple(range(4, 12))

    @staticmethod
    def distortion(extra, u, v):
        k1, k2, p1, p2, k3, k4, sx1, sy1 = extra
        is_off_axis, r, theta = _fisheye_theta(u, v)
        scale = jnp.where(is_off_axis, theta / r, 1.0)
        uu = u * scale
        vv = v * scale

        u2 = uu * uu
        v2 = vv * vv
        uv = uu * vv
        r2 = u2 + v2
        r4 = r2 * r2
        r6 = r4 * r2
        r8 = r4 * r4
        radial = k1 * r2 + k2 * r4 + k3 * r6 + k4 * r8
        du = uu * radial + 2 * p1 * uv + p2 * (r2 + 2 * u2) + sx1 * r2
        dv = vv * radial + 2 * p2 * uv + p1 * (r2 + 2 * v2) + sy1 * r2
        return uu + du - u, vv + dv - v


def _seal_registry() -> MappingProxyType:
    """Check the registry covers every model id with a consistent layout."""
    missing = [model_id.name for model_id in CameraModelId if model_id not in _CAMERA_MODELS]
    if missing:
        raise RuntimeError(f"Camera models without implementation: {missing}")

    for model in _CAMERA_MODELS.values():
        if len(model.params_info) != model.num_params:
            raise RuntimeError(f"{model.model_name}: params_info does not match num_params")
        indices = model.focal_length_idxs + model.principal_point_idxs + model.extra_params_idxs
        if sorted(indices) != list(range(model.num_params)):
            raise RuntimeError(f"{model.model_name}: parameter indices do not cover all parameters")

    return MappingProxyType(dict(_CAMERA_MODELS))


CAMERA_MODELS = _seal_registry()


def camera_model_from_id(model_id) -> Type[CameraModel]:
    """Look up the model class for an id (enum member or int)."""
    try:
        return CAMERA_MODELS[CameraModelId(model_id)]
    except (ValueError, KeyError):
        raise ValueError(f"Unknown camera model id: {model_id!r}") from None


def camera_model_from_name(model_name: str) -> Type[CameraModel]:
    """Look up the model class by its name, e.g. "PINHOLE"."""
    try:
        return CAMERA_MODELS[CameraModelId[model_name]]
    except KeyError:
        raise ValueError(f"Unknown camera model name: {model_name!r}") from None
