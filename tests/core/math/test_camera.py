"""Tests for camera models and the camera model registry."""

import numpy as np
import pytest

from bundlecost.core.jax_init import jax, jnp
from bundlecost.core.math.camera import (
    CAMERA_MODELS,
    CameraModel,
    CameraModelId,
    FOVCameraModel,
    OpenCVCameraModel,
    OpenCVFisheyeCameraModel,
    PinholeCameraModel,
    SimplePinholeCameraModel,
    SimpleRadialCameraModel,
    ThinPrismFisheyeCameraModel,
    camera_model_from_id,
    camera_model_from_name,
    register_camera_model,
)

EXPECTED_NUM_PARAMS = {
    CameraModelId.SIMPLE_PINHOLE: 3,
    CameraModelId.PINHOLE: 4,
    CameraModelId.SIMPLE_RADIAL: 4,
    CameraModelId.RADIAL: 5,
    CameraModelId.OPENCV: 8,
    CameraModelId.OPENCV_FISHEYE: 8,
    CameraModelId.FULL_OPENCV: 12,
    CameraModelId.FOV: 5,
    CameraModelId.SIMPLE_RADIAL_FISHEYE: 4,
    CameraModelId.RADIAL_FISHEYE: 5,
    CameraModelId.THIN_PRISM_FISHEYE: 12,
}


def project(model, params, point):
    u, v = model.img_from_cam(np.asarray(params, dtype=float), point[0], point[1], point[2])
    return np.array([float(u), float(v)])


class TestCameraRegistry:
    """Test the sealed camera model registry."""

    def test_all_models_registered(self):
        """Test every model id has exactly one implementation."""
        assert set(CAMERA_MODELS) == set(CameraModelId)

    @pytest.mark.parametrize("model_id", list(CameraModelId))
    def test_model_layout(self, model_id):
        """Test parameter counts and parameter name lists."""
        model = camera_model_from_id(model_id)

        assert model.model_id == model_id
        assert model.model_name == model_id.name
        assert model.num_params == EXPECTED_NUM_PARAMS[model_id]
        assert len(model.params_info) == model.num_params

    def test_lookup_by_int_and_name(self):
        """Test lookup with a plain integer and with a name."""
        assert camera_model_from_id(1) is PinholeCameraModel
        assert camera_model_from_name("OPENCV") is OpenCVCameraModel

    def test_unknown_id_raises(self):
        """Test that an id outside the closed set is rejected."""
        with pytest.raises(ValueError):
            camera_model_from_id(42)

        with pytest.raises(ValueError):
            camera_model_from_name("NOT_A_MODEL")

    def test_registry_is_read_only(self):
        """Test that the registry cannot be modified after import."""
        with pytest.raises(TypeError):
            CAMERA_MODELS[CameraModelId.PINHOLE] = SimplePinholeCameraModel

    def test_duplicate_registration_raises(self):
        """Test that registering an existing id twice is rejected."""
        class DuplicatePinhole(CameraModel):
            model_id = CameraModelId.PINHOLE

        with pytest.raises(ValueError):
            register_camera_model(DuplicatePinhole)


class TestCameraProjection:
    """Test camera projection."""

    def setup_method(self):
        """Set up test fixtures."""
        self.point = np.array([1.0, 2.0, 4.0])
        self.pinhole_params = np.array([100.0, 120.0, 50.0, 60.0])

    def test_simple_pinhole(self):
        """Test the simplest model on the optical axis."""
        uv = project(SimplePinholeCameraModel, [1.0, 0.0, 0.0], np.array([0.0, 0.0, 5.0]))

        np.testing.assert_allclose(uv, [0.0, 0.0])

    def test_pinhole(self):
        """Test u = fx x/z + cx, v = fy y/z + cy."""
        uv = project(PinholeCameraModel, self.pinhole_params, self.point)

        np.testing.assert_allclose(uv, [100.0 * 0.25 + 50.0, 120.0 * 0.5 + 60.0])

    def test_simple_radial_distortion(self):
        """Test a single radial coefficient against the closed form."""
        f, cx, cy, k = 100.0, 50.0, 60.0, 0.1
        uv = project(SimpleRadialCameraModel, [f, cx, cy, k], self.point)

        u, v = 0.25, 0.5
        radial = 1.0 + k * (u * u + v * v)
        np.testing.assert_allclose(uv, [f * u * radial + cx, f * v * radial + cy], atol=1e-12)

    def test_opencv_zero_distortion_is_pinhole(self):
        """Test OPENCV with zero coefficients matches PINHOLE."""
        params = np.concatenate([self.pinhole_params, np.zeros(4)])

        np.testing.assert_allclose(
            project(OpenCVCameraModel, params, self.point),
            project(PinholeCameraModel, self.pinhole_params, self.point),
            atol=1e-12,
        )

    def test_fov_small_omega_is_pinhole(self):
        """Test FOV with omega = 0 matches PINHOLE."""
        params = np.concatenate([self.pinhole_params, [0.0]])

        np.testing.assert_allclose(
            project(FOVCameraModel, params, self.point),
            project(PinholeCameraModel, self.pinhole_params, self.point),
            atol=1e-9,
        )

    def test_fisheye_equidistant(self):
        """Test the equidistant fisheye maps radius r to atan(r)."""
        params = np.concatenate([self.pinhole_params, np.zeros(4)])
        uv = project(OpenCVFisheyeCameraModel, params, self.point)

        r = np.hypot(0.25, 0.5)
        scale = np.arctan(r) / r
        expected = [100.0 * 0.25 * scale + 50.0, 120.0 * 0.5 * scale + 60.0]
        np.testing.assert_allclose(uv, expected, atol=1e-10)

    @pytest.mark.parametrize("model", [OpenCVFisheyeCameraModel, ThinPrismFisheyeCameraModel])
    def test_fisheye_on_optical_axis(self, model):
        """Test fisheye models at r = 0: principal point and finite derivatives."""
        params = np.concatenate([self.pinhole_params, 0.01 * np.ones(model.num_params - 4)])

        def img(point):
            u, v = model.img_from_cam(jnp.asarray(params), point[0], point[1], point[2])
            return jnp.stack([u, v])

        axis_point = jnp.array([0.0, 0.0, 2.0])
        np.testing.assert_allclose(np.asarray(img(axis_point)), [50.0, 60.0], atol=1e-12)

        J = np.asarray(jax.jacfwd(img)(axis_point))
        assert np.all(np.isfinite(J))
        np.testing.assert_allclose(J[:, :2], np.diag([50.0, 60.0]), atol=1e-9)
