"""Test least-squares refinement driven through cost function evaluation."""

import numpy as np
import pytest
from scipy.optimize import least_squares

from bundlecost.core.cost_functions.conditioned import IsotropicNoiseCostFunctorWrapper
from bundlecost.core.cost_functions.registry import create_camera_cost_function
from bundlecost.core.cost_functions.reprojection import (
    ReprojErrorConstantPoint3DCostFunctor,
    ReprojErrorConstantPoseCostFunctor,
)
from bundlecost.core.math.camera import CameraModelId, camera_model_from_id
from bundlecost.core.math.rigid3 import RigidTransform


@pytest.fixture
def scene():
    """Three cameras observing a small point cloud without noise."""
    rng = np.random.default_rng(11)
    points = np.column_stack([
        rng.uniform(-1.0, 1.0, 15),
        rng.uniform(-1.0, 1.0, 15),
        rng.uniform(4.0, 6.0, 15),
    ])
    cameras = [
        RigidTransform.identity(),
        RigidTransform.from_angle_axis(np.array([0.0, -0.1, 0.0]), np.array([-0.5, 0.0, 0.0])),
        RigidTransform.from_angle_axis(np.array([0.05, 0.1, 0.0]), np.array([0.5, 0.2, 0.1])),
    ]
    params = np.array([500.0, 500.0, 320.0, 240.0])

    model = camera_model_from_id(CameraModelId.PINHOLE)
    observations = []
    for cam_index, cam_from_world in enumerate(cameras):
        for point_index, point in enumerate(points):
            p = cam_from_world.transform_point(point)
            u, v = model.img_from_cam(params, p[0], p[1], p[2])
            observations.append((cam_index, point_index, np.array([float(u), float(v)])))

    return {"points": points, "cameras": cameras, "params": params, "observations": observations}


class TestBundleRefinement:
    """Refine parameters with scipy least squares over autodiff cost functions."""

    def test_refine_points_with_fixed_poses(self, scene):
        """Test triangulation refinement converges to the true points."""
        cost_functions = [
            (point_index, create_camera_cost_function(
                IsotropicNoiseCostFunctorWrapper(ReprojErrorConstantPoseCostFunctor),
                CameraModelId.PINHOLE,
                1.5,
                scene["cameras"][cam_index],
                point2D,
            ))
            for cam_index, point_index, point2D in scene["observations"]
        ]
        n_points = len(scene["points"])

        def residuals(x):
            points = x.reshape(n_points, 3)
            return np.concatenate([
                cf.compute_residual([points[i], scene["params"]]) for i, cf in cost_functions
            ])

        def jacobian(x):
            points = x.reshape(n_points, 3)
            J = np.zeros((2 * len(cost_functions), x.size))
            for row, (i, cf) in enumerate(cost_functions):
                J_point = np.zeros((2, 3))
                cf.evaluate([points[i], scene["params"]], np.zeros(2), [J_point, None])
                J[2 * row:2 * row + 2, 3 * i:3 * i + 3] = J_point
            return J

        rng = np.random.default_rng(5)
        x0 = (scene["points"] + 0.05 * rng.standard_normal(scene["points"].shape)).reshape(-1)
        initial_cost = 0.5 * np.sum(residuals(x0) ** 2)

        result = least_squares(residuals, x0, jac=jacobian, method="lm")

        assert result.success
        assert result.cost < 1e-8
        assert result.cost < initial_cost
        np.testing.assert_allclose(result.x.reshape(n_points, 3), scene["points"], atol=1e-5)

    def test_refine_pose_with_fixed_points(self, scene):
        """Test camera resection converges to zero reprojection error."""
        true_pose = scene["cameras"][2]
        cost_functions = [
            create_camera_cost_function(
                ReprojErrorConstantPoint3DCostFunctor,
                CameraModelId.PINHOLE,
                point2D,
                scene["points"][point_index],
            )
            for cam_index, point_index, point2D in scene["observations"]
            if cam_index == 2
        ]

        def residuals(x):
            return np.concatenate([cf.compute_residual([x[:4], x[4:], scene["params"]]) for cf in cost_functions])

        def jacobian(x):
            rows = []
            for cf in cost_functions:
                J_rotation = np.zeros((2, 4))
                J_translation = np.zeros((2, 3))
                cf.evaluate([x[:4], x[4:], scene["params"]], np.zeros(2), [J_rotation, J_translation, None])
                rows.append(np.hstack([J_rotation, J_translation]))
            return np.vstack(rows)

        start = RigidTransform.from_angle_axis(np.array([0.08, 0.12, -0.02]), np.array([0.45, 0.25, 0.0]))
        x0 = np.concatenate([start.rotation, start.translation])

        result = least_squares(residuals, x0, jac=jacobian, method="trf")

        assert result.cost < 1e-8
        # The rotation block is over-parameterized; compare the mapped points instead.
        estimated = RigidTransform(result.x[:4] / np.linalg.norm(result.x[:4]), result.x[4:])
        for point in scene["points"]:
            np.testing.assert_allclose(
                estimated.transform_point(point), true_pose.transform_point(point), atol=1e-4
            )
