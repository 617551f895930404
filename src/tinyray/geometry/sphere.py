"""Sphere primitive with geometric ray-sphere intersection.

The intersection solves the quadratic obtained by substituting the ray
equation into the sphere's implicit equation, in its geometric form:

    L   = center - origin
    tca = L . direction            (projection of L onto the ray)
    d2  = L . L - tca^2            (squared distance from center to the ray)
    thc = sqrt(radius^2 - d2)      (half chord)
    t0  = tca - thc,  t1 = tca + thc

A root closer than epsilon is promoted to the far root, so rays starting on
or inside the sphere report the exit point, and a sphere entirely behind
the origin is a miss.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tinyray.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(center=vec3(0, 0, -10), radius=2.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: Distance along the ray to the intersection. Only valid if hit == 1.
        point: The 3D point where the ray intersected the sphere.
        normal: The outward surface normal at the intersection point
            (unit length, points away from the sphere center). The side
            the ray came from is the sign of direction . normal.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def ray_sphere_distance(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    epsilon: ti.f32,
):
    """Find the nearest intersection distance of a ray with a sphere.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (unit length).
        sphere: The sphere to test.
        epsilon: Smallest accepted distance; closer roots are ignored.

    Returns:
        A tuple (hit, t) where hit is 1 if a root >= epsilon exists and t
        is the nearest such root.
    """
    v_l = sphere.center - ray_origin
    tca = tm.dot(v_l, ray_direction)
    d2 = tm.dot(v_l, v_l) - tca * tca
    radius2 = sphere.radius * sphere.radius

    did_hit = 0
    t = 0.0
    if d2 <= radius2:
        thc = ti.sqrt(radius2 - d2)
        t0 = tca - thc
        t1 = tca + thc
        if t0 < epsilon:
            t0 = t1
        if t0 >= epsilon:
            did_hit = 1
            t = t0

    return did_hit, t


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection within [t_min, t_max).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (unit length).
        sphere: The sphere to test intersection against.
        t_min: Minimum distance considered a valid hit (avoids acne).
        t_max: Hits at or beyond this distance are ignored.

    Returns:
        A HitRecord containing intersection information. Check the hit
        field to determine if an intersection occurred.
    """
    did_hit, t = ray_sphere_distance(ray_origin, ray_direction, sphere, t_min)

    hit_flag = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    if did_hit == 1 and t < t_max:
        hit_flag = 1
        hit_t = t
        hit_point = ray_origin + t * ray_direction
        hit_normal = tm.normalize(hit_point - sphere.center)

    return HitRecord(hit=hit_flag, t=hit_t, point=hit_point, normal=hit_normal)
