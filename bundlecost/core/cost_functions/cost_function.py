"""Cost function interface and the automatic-differentiation adapter.

A `CostFunction` is what a least-squares solver consumes: it declares the
residual dimension and the sizes of its parameter blocks, and evaluates
residuals and (optionally) per-block Jacobians into caller-owned arrays.

A `CostFunctor` is a residual rule: a small object holding constants
captured at construction and a `__call__` that maps parameter blocks to a
residual vector using jax.numpy only. `AutoDiffCostFunction` turns a functor
into a cost function, computing Jacobians with forward-mode differentiation
(`jax.jacfwd`).

Functors are registered as JAX pytrees whose leaves are their constants, so
the compiled evaluation is shared by all instances of a functor class rather
than rebuilt per residual block.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..jax_init import jax, jnp

logger = logging.getLogger(__name__)


class CostFunction(ABC):
    """Residual block with fixed residual and parameter block dimensions."""

    def __init__(self, num_residuals: int, parameter_block_sizes: Sequence[int]):
        """Initialize cost function dimensions.

        Args:
            num_residuals: Length of the residual vector
            parameter_block_sizes: Size of each parameter block, in order
        """
        self._num_residuals = int(num_residuals)
        self._parameter_block_sizes = tuple(int(size) for size in parameter_block_sizes)

    @property
    def num_residuals(self) -> int:
        """Residual dimension."""
        return self._num_residuals

    @property
    def parameter_block_sizes(self) -> Tuple[int, ...]:
        """Sizes of the parameter blocks."""
        return self._parameter_block_sizes

    @abstractmethod
    def evaluate(
        self,
        parameters: Sequence[np.ndarray],
        residuals: np.ndarray,
        jacobians: Optional[Sequence[Optional[np.ndarray]]] = None
    ) -> bool:
        """Evaluate residuals and optionally Jacobians in place.

        Args:
            parameters: One array per parameter block
            residuals: Output array of length num_residuals
            jacobians: None, or one entry per block that is either None or a
                num_residuals x block_size output array (row-major)

        Returns:
            True if the residual could be evaluated
        """

    def check_parameters(self, parameters: Sequence[np.ndarray]) -> List[np.ndarray]:
        """Convert parameter blocks to flat float arrays of the declared sizes."""
        if len(parameters) != len(self._parameter_block_sizes):
            raise ValueError(
                f"Expected {len(self._parameter_block_sizes)} parameter blocks, got {len(parameters)}"
            )

        blocks = []
        for i, (block, size) in enumerate(zip(parameters, self._parameter_block_sizes)):
            block = np.asarray(block, dtype=float).reshape(-1)
            if block.shape != (size,):
                raise ValueError(f"Parameter block {i}: expected size {size}, got {block.size}")
            blocks.append(block)
        return blocks

    def compute_residual(self, parameters: Sequence[np.ndarray]) -> np.ndarray:
        """Evaluate and return the residual vector."""
        residuals = np.empty(self._num_residuals)
        if not self.evaluate(parameters, residuals):
            raise ValueError(f"{type(self).__name__}: residual evaluation failed")
        return residuals

    def compute_jacobian(self, parameters: Sequence[np.ndarray]) -> List[np.ndarray]:
        """Evaluate and return the Jacobian of every parameter block."""
        residuals = np.empty(self._num_residuals)
        jacobians = [np.empty((self._num_residuals, size)) for size in self._parameter_block_sizes]
        if not self.evaluate(parameters, residuals, jacobians):
            raise ValueError(f"{type(self).__name__}: Jacobian evaluation failed")
        return jacobians

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(num_residuals={self._num_residuals}, "
            f"parameter_block_sizes={self._parameter_block_sizes})"
        )


class CostFunctor:
    """Base class for residual rules evaluated through `AutoDiffCostFunction`.

    Subclasses declare `num_residuals`, `parameter_block_sizes` and the names
    of the attributes holding their constants (`constant_fields`), and
    implement `__call__(*parameter_blocks)` with jax.numpy operations only.
    The formula evaluated must not depend on Python-level branches over
    parameter values.
    """

    num_residuals: int = 0
    parameter_block_sizes: Tuple[int, ...] = ()
    constant_fields: Tuple[str, ...] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        jax.tree_util.register_pytree_node(cls, cls._tree_flatten, cls._tree_unflatten)

    def _tree_flatten(self):
        return tuple(getattr(self, name) for name in self.constant_fields), None

    @classmethod
    def _tree_unflatten(cls, aux_data, children):
        functor = object.__new__(cls)
        for name, value in zip(cls.constant_fields, children):
            setattr(functor, name, value)
        return functor

    def __call__(self, *parameter_blocks):
        raise NotImplementedError

    @classmethod
    def create(cls, *args, **kwargs) -> "AutoDiffCostFunction":
        """Construct the functor and wrap it in an autodiff cost function."""
        return AutoDiffCostFunction(cls(*args, **kwargs))


def constant_array(value, shape: Tuple[int, ...], name: str) -> np.ndarray:
    """Copy a functor constant into a float array of the expected shape."""
    array = np.array(value, dtype=float)
    if array.shape != shape:
        raise ValueError(f"{name} must have shape {shape}, got {array.shape}")
    return array


@dataclass
class AutoDiffOptions:
    """Options for automatic-differentiation cost functions."""

    jit: bool = True


def _residual(functor: CostFunctor, *blocks):
    return jnp.reshape(functor(*blocks), (-1,))


def _residual_and_jacobians(functor: CostFunctor, *blocks):
    def residual_with_aux(*args):
        residual = _residual(functor, *args)
        return residual, residual

    argnums = tuple(range(len(blocks)))
    jacobians, residual = jax.jacfwd(residual_with_aux, argnums=argnums, has_aux=True)(*blocks)
    return residual, jacobians


_residual_jit = jax.jit(_residual)
_residual_and_jacobians_jit = jax.jit(_residual_and_jacobians)


class AutoDiffCostFunction(CostFunction):
    """Cost function whose Jacobians come from forward-mode autodiff."""

    def __init__(self, functor: CostFunctor, options: Optional[AutoDiffOptions] = None):
        """Wrap a functor.

        Args:
            functor: Residual rule with declared dimensions
            options: Differentiation options
        """
        super().__init__(functor.num_residuals, functor.parameter_block_sizes)
        if self.num_residuals <= 0 or not self.parameter_block_sizes:
            raise ValueError(f"{type(functor).__name__} does not declare its dimensions")

        self.functor = functor
        self.options = options or AutoDiffOptions()

        if self.options.jit:
            self._residual_fn = _residual_jit
            self._linearize_fn = _residual_and_jacobians_jit
        else:
            self._residual_fn = _residual
            self._linearize_fn = _residual_and_jacobians

        logger.debug(
            "Created autodiff cost function for %s (residuals=%d, blocks=%s)",
            type(functor).__name__, self.num_residuals, self.parameter_block_sizes
        )

    def evaluate(
        self,
        parameters: Sequence[np.ndarray],
        residuals: np.ndarray,
        jacobians: Optional[Sequence[Optional[np.ndarray]]] = None
    ) -> bool:
        """Evaluate the functor, differentiating only if Jacobians are requested."""
        blocks = self.check_parameters(parameters)

        if jacobians is not None and len(jacobians) != len(blocks):
            raise ValueError(f"Expected {len(blocks)} Jacobian outputs, got {len(jacobians)}")

        if jacobians is None or all(out is None for out in jacobians):
            value = self._residual_fn(self.functor, *blocks)
        else:
            value, block_jacobians = self._linearize_fn(self.functor, *blocks)
            for out, J in zip(jacobians, block_jacobians):
                if out is not None:
                    out[...] = np.asarray(J).reshape(np.shape(out))

        residuals[...] = np.asarray(value).reshape(np.shape(residuals))
        return True
