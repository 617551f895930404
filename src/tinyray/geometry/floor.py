"""Bounded checkerboard floor primitive.

The floor is a horizontal rectangle in the plane y = height, limited to
|x| < half_width and z_far < z < z_near, textured with a two-colour
checker pattern. It is the reference scene's ground plane; its diffuse
colour is resolved at the hit point while every other shading weight comes
from the floor's material.

Rays nearly parallel to the plane (|direction.y| <= PARALLEL_EPSILON) never
hit it.

Example:
    >>> from tinyray.geometry.floor import CheckerboardFloor
    >>> floor = CheckerboardFloor()          # the reference floor
    >>> floor.height
    -4.0
"""

from dataclasses import dataclass, field

import taichi as ti
import taichi.math as tm

from tinyray.errors import (
    InvalidSceneParameter,
    require_finite,
    require_finite_vector,
    require_positive,
)
from tinyray.materials.phong import Material

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays with a smaller vertical component are treated as parallel to the floor
PARALLEL_EPSILON = 1e-3

# Offset keeping the tile index positive before truncation
_TILE_BIAS = 1000.0


def _default_floor_material() -> Material:
    # Purely diffuse; the colour is replaced by the checker pattern
    return Material(
        diffuse_color=(0.0, 0.0, 0.0),
        albedo=(1.0, 0.0, 0.0, 0.0),
        specular_exponent=0.0,
        refractive_index=1.0,
    )


@dataclass(frozen=True)
class CheckerboardFloor:
    """Configuration of the checkerboard floor.

    Attributes:
        height: The y coordinate of the floor plane.
        half_width: The floor covers -half_width < x < half_width.
        z_near: The floor ends at this z (closest to the camera).
        z_far: The floor starts at this z (farthest from the camera).
        tile_scale: Tiles per world unit along x and z.
        color_a: Colour of odd tiles.
        color_b: Colour of even tiles.
        material: Shading weights for the floor (diffuse colour unused).
    """

    height: float = -4.0
    half_width: float = 10.0
    z_near: float = -10.0
    z_far: float = -30.0
    tile_scale: float = 0.5
    color_a: tuple[float, float, float] = (0.3, 0.3, 0.3)
    color_b: tuple[float, float, float] = (0.3, 0.2, 0.1)
    material: Material = field(default_factory=_default_floor_material)

    def __post_init__(self) -> None:
        for name, check in (
            ("height", require_finite),
            ("half_width", require_positive),
            ("tile_scale", require_positive),
            ("z_near", require_finite),
            ("z_far", require_finite),
        ):
            object.__setattr__(self, name, check(f"floor.{name}", getattr(self, name)))
        if self.z_far >= self.z_near:
            raise InvalidSceneParameter(
                "floor.z_far", self.z_far, f"must be less than z_near ({self.z_near})"
            )
        for name in ("color_a", "color_b"):
            color = require_finite_vector(f"floor.{name}", getattr(self, name), non_negative=True)
            object.__setattr__(self, name, color)
        if not isinstance(self.material, Material):
            raise InvalidSceneParameter("floor.material", self.material, "must be a Material")


@ti.dataclass
class Floor:
    """Device-side copy of a CheckerboardFloor (without the material)."""

    height: ti.f32
    half_width: ti.f32
    z_near: ti.f32
    z_far: ti.f32
    tile_scale: ti.f32
    color_a: vec3
    color_b: vec3


@ti.func
def checker_color(floor: Floor, point: vec3) -> vec3:
    """Colour of the checker tile containing a point on the floor.

    Tile indices are truncated toward zero, so the tile row at z = 0 is
    twice as wide as the others. The floor lies entirely at negative z in
    the reference scene, where this does not show.
    """
    ix = ti.cast(floor.tile_scale * point.x + _TILE_BIAS, ti.i32)
    iz = ti.cast(floor.tile_scale * point.z, ti.i32)
    color = floor.color_b
    if ((ix + iz) & 1) == 1:
        color = floor.color_a
    return color


@ti.func
def hit_floor(ray_origin: vec3, ray_direction: vec3, floor: Floor, t_min: ti.f32, t_max: ti.f32):
    """Intersect a ray with the floor rectangle.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (unit length).
        floor: The floor to test.
        t_min: Minimum accepted distance.
        t_max: Hits at or beyond this distance are ignored.

    Returns:
        A tuple (hit, t, point, color) with the distance to the floor, the
        hit point and the checker colour there. hit is 0 on a miss.
    """
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    color = vec3(0.0, 0.0, 0.0)

    if ti.abs(ray_direction.y) > PARALLEL_EPSILON:
        t = (floor.height - ray_origin.y) / ray_direction.y
        point = ray_origin + t * ray_direction
        inside = (
            ti.abs(point.x) < floor.half_width and point.z < floor.z_near and point.z > floor.z_far
        )
        if t > t_min and t < t_max and inside:
            did_hit = 1
            hit_t = t
            hit_point = point
            color = checker_color(floor, point)

    return did_hit, hit_t, hit_point, color
