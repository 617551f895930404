"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure, reflection, refraction and origin offsets
    tracer: Recursive Whitted-style shading and the render target
    renderer: Row-band rendering driver and render configuration

The tracer handles direct lighting from point lights with hard shadows,
mirror reflection and dielectric refraction up to a bounded recursion
depth. Pixels are traced in parallel by Taichi kernels.
"""

from .ray import (
    RAY_EPSILON,
    Ray,
    make_ray,
    offset_origin,
    ray_at,
    reflect,
    refract,
    vec3,
)

# Note: tracer and renderer are NOT imported here to avoid circular imports.
# Import directly from tinyray.core.tracer or tinyray.core.renderer when needed.
#
# For rendering a whole image, use:
#   from tinyray.core.renderer import Renderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "reflect",
    "refract",
    "offset_origin",
    "RAY_EPSILON",
]
