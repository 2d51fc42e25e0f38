"""Cost functions that rescale the output of another cost function.

`ConditionedCostFunction` applies a scalar conditioner to each residual
component of a wrapped cost function and propagates it into the Jacobians
by the chain rule. `IsotropicNoiseCostFunction` uses that to whiten a
residual whose components share the same, independent standard deviation.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from .cost_function import CostFunction

logger = logging.getLogger(__name__)


class LinearCostFunction(CostFunction):
    """r = s * x for a single scalar parameter."""

    def __init__(self, scale: float):
        super().__init__(1, (1,))
        self.scale = float(scale)

    def evaluate(self, parameters, residuals, jacobians=None) -> bool:
        residuals[...] = np.asarray(parameters[0], dtype=float).reshape(np.shape(residuals)) * self.scale
        if jacobians is not None and jacobians[0] is not None:
            jacobians[0][...] = self.scale
        return True


class ConditionedCostFunction(CostFunction):
    """Wraps a cost function with one conditioner per residual component.

    Each conditioner is a 1-residual, 1-parameter cost function applied to
    the corresponding residual component; None leaves that component as is.
    """

    def __init__(self, wrapped: CostFunction, conditioners: Sequence[Optional[CostFunction]]):
        """Initialize conditioned cost function.

        Args:
            wrapped: Cost function whose residuals are conditioned
            conditioners: One entry per residual of `wrapped`
        """
        if len(conditioners) != wrapped.num_residuals:
            raise ValueError(
                f"Expected {wrapped.num_residuals} conditioners, got {len(conditioners)}"
            )
        for conditioner in conditioners:
            if conditioner is not None and (
                conditioner.num_residuals != 1 or conditioner.parameter_block_sizes != (1,)
            ):
                raise ValueError("Conditioners must map one scalar to one scalar")

        super().__init__(wrapped.num_residuals, wrapped.parameter_block_sizes)
        self.wrapped = wrapped
        self.conditioners = tuple(conditioners)

    def evaluate(self, parameters, residuals, jacobians=None) -> bool:
        """Evaluate the wrapped function, then condition residuals and Jacobian rows."""
        if not self.wrapped.evaluate(parameters, residuals, jacobians):
            return False

        flat_residuals = np.reshape(residuals, (-1,))
        want_jacobians = jacobians is not None and any(J is not None for J in jacobians)

        for i, conditioner in enumerate(self.conditioners):
            if conditioner is None:
                continue

            value = np.empty(1)
            derivative = np.empty((1, 1)) if want_jacobians else None
            if not conditioner.evaluate(
                [flat_residuals[i:i + 1].copy()],
                value,
                [derivative] if want_jacobians else None,
            ):
                return False
            flat_residuals[i] = value[0]

            if want_jacobians:
                for J in jacobians:
                    if J is not None:
                        np.reshape(J, (self.num_residuals, -1))[i] *= derivative[0, 0]

        return True


class IsotropicNoiseCostFunction(ConditionedCostFunction):
    """Whitens a cost function by an isotropic standard deviation.

    Every residual component and Jacobian entry is divided by `stddev`.
    Wrapping an already wrapped function scales cumulatively.
    """

    def __init__(self, wrapped: CostFunction, stddev: float):
        if not stddev > 0.0:
            raise ValueError(f"stddev must be positive, got {stddev}")

        self.stddev = float(stddev)
        conditioner = LinearCostFunction(1.0 / self.stddev)
        super().__init__(wrapped, [conditioner] * wrapped.num_residuals)
        logger.debug("Whitening %r with isotropic stddev %g", wrapped, self.stddev)


class IsotropicNoiseCostFunctorWrapper:
    """Functor-level form of `IsotropicNoiseCostFunction`.

    Wraps a functor class (or a camera-model template) so that
    `create(stddev, *args)` builds the functor's cost function and whitens
    it. Indexing with a camera model specializes the wrapped template, which
    lets the camera-model dispatcher build whitened reprojection residuals.
    """

    def __init__(self, cost_functor):
        self.cost_functor = cost_functor

    def __getitem__(self, camera_model) -> "IsotropicNoiseCostFunctorWrapper":
        return IsotropicNoiseCostFunctorWrapper(self.cost_functor[camera_model])

    def create(self, stddev: float, *args, **kwargs) -> IsotropicNoiseCostFunction:
        """Build the wrapped cost function and whiten it by `stddev`."""
        if not stddev > 0.0:
            raise ValueError(f"stddev must be positive, got {stddev}")
        return IsotropicNoiseCostFunction(self.cost_functor.create(*args, **kwargs), stddev)

    def __repr__(self) -> str:
        return f"IsotropicNoiseCostFunctorWrapper({getattr(self.cost_functor, '__name__', self.cost_functor)!r})"
