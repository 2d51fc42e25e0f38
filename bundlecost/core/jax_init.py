"""JAX initialization shared by every bundlecost module.

Residuals are compared against pixel observations and whitened by inverse
covariances, so evaluation has to run in double precision. Import JAX from
here so the x64 flag is set before the first array is created:

    from bundlecost.core.jax_init import jax, jnp
"""

from __future__ import annotations

import logging

import jax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)

logging.getLogger(__name__).debug("JAX configured with x64 enabled")

__all__ = ["jax", "jnp"]
