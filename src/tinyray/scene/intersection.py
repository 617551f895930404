"""Scene-level intersection testing and shadow queries.

This module provides the nearest-hit search over every primitive in the
scene, the any-hit query used by shadow rays, and the shadow test itself.
Primitives live in Taichi fields (Structure of Arrays) and are scanned
linearly; each sphere stores the id of its (shared) material.

Hits farther than MAX_RENDER_DISTANCE are treated as misses.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tinyray.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -10.0), 2.0, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from tinyray.core.ray import offset_origin
from tinyray.geometry.floor import Floor, hit_floor
from tinyray.geometry.sphere import Sphere, hit_sphere
from tinyray.materials.phong import get_material

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Smallest accepted hit distance (rejects self-intersections)
T_MIN = 1e-4

# Hits beyond this distance count as "nothing hit"
MAX_RENDER_DISTANCE = 1000.0


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: Distance along the ray to the intersection.
        point: The 3D point where the ray intersected the surface.
        normal: The outward surface normal at the hit point (unit length).
            For spheres this is (point - center) normalised; it faces away
            from the ray when the ray hits the inside of a sphere.
        material_id: The material id of the hit primitive, -1 on a miss.
        diffuse_color: The diffuse colour at the hit point (the material's
            colour, or the checker tile colour on the floor).
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32
    diffuse_color: vec3


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Floor storage: at most one checkerboard floor
_floor_enabled = ti.field(dtype=ti.i32, shape=())
_floor_height = ti.field(dtype=ti.f32, shape=())
_floor_half_width = ti.field(dtype=ti.f32, shape=())
_floor_z_near = ti.field(dtype=ti.f32, shape=())
_floor_z_far = ti.field(dtype=ti.f32, shape=())
_floor_tile_scale = ti.field(dtype=ti.f32, shape=())
_floor_color_a = ti.Vector.field(3, dtype=ti.f32, shape=())
_floor_color_b = ti.Vector.field(3, dtype=ti.f32, shape=())
_floor_material_id = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all primitives (spheres and the floor) from the scene.

    The field data is not erased but will be overwritten when new
    primitives are added.
    """
    num_spheres[None] = 0
    _floor_enabled[None] = 0


def add_sphere(center: tuple[float, float, float], radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        material_id: The material id to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = [center[0], center[1], center[2]]
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def set_floor(
    height: float,
    half_width: float,
    z_near: float,
    z_far: float,
    tile_scale: float,
    color_a: tuple[float, float, float],
    color_b: tuple[float, float, float],
    material_id: int,
) -> None:
    """Enable the checkerboard floor with the given geometry and material."""
    _floor_height[None] = height
    _floor_half_width[None] = half_width
    _floor_z_near[None] = z_near
    _floor_z_far[None] = z_far
    _floor_tile_scale[None] = tile_scale
    _floor_color_a[None] = [color_a[0], color_a[1], color_a[2]]
    _floor_color_b[None] = [color_b[0], color_b[1], color_b[2]]
    _floor_material_id[None] = material_id
    _floor_enabled[None] = 1


def clear_floor() -> None:
    """Remove the floor from the scene."""
    _floor_enabled[None] = 0


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def is_floor_enabled() -> bool:
    """Check if the scene has a floor."""
    return bool(_floor_enabled[None])


@ti.func
def _get_floor() -> Floor:
    """Assemble the stored floor parameters."""
    return Floor(
        height=_floor_height[None],
        half_width=_floor_half_width[None],
        z_near=_floor_z_near[None],
        z_far=_floor_z_far[None],
        tile_scale=_floor_tile_scale[None],
        color_a=_floor_color_a[None],
        color_b=_floor_color_b[None],
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
        diffuse_color=vec3(0.0, 0.0, 0.0),
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the nearest primitive hit by a ray.

    Tests every sphere, then the floor, keeping the smallest distance in
    [t_min, t_max). Overlapping spheres need no special handling.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (unit length).
        t_min: Minimum distance considered a hit.
        t_max: Maximum distance considered a hit.

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            material_id = sphere_material_ids[i]
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                material_id=material_id,
                diffuse_color=get_material(material_id).diffuse_color,
            )

    if _floor_enabled[None] == 1:
        did_hit, t, point, color = hit_floor(
            ray_origin, ray_direction, _get_floor(), t_min, closest_t
        )
        if did_hit == 1:
            result = SceneHitRecord(
                hit=1,
                t=t,
                point=point,
                normal=vec3(0.0, 1.0, 0.0),
                material_id=_floor_material_id[None],
                diffuse_color=color,
            )

    return result


@ti.func
def intersect_scene_any(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Test if a ray hits any primitive closer than t_max (shadow query).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (unit length).
        t_min: Minimum distance considered a hit.
        t_max: Maximum distance considered a hit.

    Returns:
        1 if any primitive was hit, 0 otherwise.
    """
    hit_any = 0

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        if hit_any == 0:
            sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
            rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
            if rec.hit == 1:
                hit_any = 1

    if hit_any == 0 and _floor_enabled[None] == 1:
        did_hit, _t, _point, _color = hit_floor(
            ray_origin, ray_direction, _get_floor(), t_min, t_max
        )
        if did_hit == 1:
            hit_any = 1

    return hit_any


@ti.func
def in_shadow(point: vec3, normal: vec3, light_dir: vec3, light_distance: ti.f32) -> ti.i32:
    """Check whether a point is shadowed from one light.

    The shadow ray starts at the point nudged off the surface toward the
    side the light is on, and the point is in shadow if any primitive is
    hit before the light.

    Args:
        point: The shaded surface point.
        normal: The surface normal at the point.
        light_dir: Unit direction from the point to the light.
        light_distance: Distance from the point to the light.

    Returns:
        1 if the light is blocked, 0 otherwise.
    """
    shadow_origin = offset_origin(point, normal, light_dir)
    return intersect_scene_any(shadow_origin, light_dir, T_MIN, light_distance)
