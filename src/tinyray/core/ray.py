"""Ray data structure and vector utilities for the Whitted-style tracer.

This module provides the Ray dataclass and the vector helpers the shading
code is built from: mirror reflection, Snell refraction across an air /
material boundary, and the origin offset used to keep secondary rays from
re-intersecting the surface they start on. All helpers are Taichi functions
and are meant to be called from inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tinyray.core.ray import Ray, ray_at, vec3
    >>> # Within a Taichi kernel:
    >>> # ray = Ray(origin=vec3(0.0), direction=vec3(0.0, 0.0, -1.0))
    >>> # point = ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Distance secondary ray origins are pushed off a surface
RAY_EPSILON = 1e-3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Unit length wherever it
            is used in cosine computations.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length). Either orientation gives
            the same result.

    Returns:
        The mirrored direction incident - 2 (incident . normal) normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, refractive_index: ti.f32) -> vec3:
    """Refract an incident vector across an air / material boundary.

    Applies Snell's law between air (index 1) and a material with the given
    refractive index. The side of the surface the ray is on is taken from
    the sign of incident . normal:

    - incident . normal < 0: the ray enters the material, the ratio is
      1 / refractive_index and the outward normal is used as is.
    - incident . normal > 0: the ray leaves the material, the normal is
      flipped and the ratio becomes refractive_index / 1.

    When the Snell discriminant is negative (total internal reflection) the
    mirror reflection is returned instead, so the result is always a usable
    direction.

    Args:
        incident: The incoming direction (unit length).
        normal: The outward surface normal (unit length).
        refractive_index: Index of the material; 1.0 leaves rays unbent.

    Returns:
        The transmitted direction, or the reflected direction under total
        internal reflection.
    """
    cos_i = -tm.clamp(tm.dot(incident, normal), -1.0, 1.0)
    eta_i = 1.0
    eta_t = refractive_index
    n = normal
    if cos_i < 0.0:
        # Inside the material: swap the media and face the normal inward
        cos_i = -cos_i
        eta_i = refractive_index
        eta_t = 1.0
        n = -normal

    eta = eta_i / eta_t
    k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)

    result = reflect(incident, normal)
    if k >= 0.0:
        result = incident * eta + n * (eta * cos_i - ti.sqrt(k))
    return result


@ti.func
def offset_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Offset a ray origin to avoid self-intersection.

    Pushes the point by RAY_EPSILON along the normal on the side the new
    ray travels toward: above the surface for reflection and shadow rays,
    below it for rays refracted into the material.

    Args:
        point: The intersection point.
        normal: The geometric surface normal.
        direction: The direction of the ray that will start at the point.

    Returns:
        The offset origin point.
    """
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir
