"""Pinhole camera for primary ray generation.

The camera sits at the world origin looking down the -z axis with +y up.
Each pixel (i, j) is mapped through the vertical field of view and the
image aspect ratio onto the image plane at z = -1:

    scale = tan(vfov / 2)
    x =  (2 (i + 0.5) / width  - 1) * scale * width / height
    y = -(2 (j + 0.5) / height - 1) * scale
    direction = normalize(x, y, -1)

Pixel (0, 0) is the top-left corner of the image. There is no depth of
field, motion blur or sub-pixel jitter: one ray through each pixel center.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tinyray.camera.pinhole import PinholeCamera, setup_camera
    >>> setup_camera(PinholeCamera(vfov=60.0))
    >>> # Within a Taichi kernel:
    >>> # ray = get_primary_ray(i, j, width, height)
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from tinyray.core.ray import Ray, make_ray, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class PinholeCamera:
    """Configuration for the fixed pinhole camera.

    Attributes:
        vfov: Vertical field of view in degrees, in (0, 180).
    """

    vfov: float = 60.0

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"Field of view must be in (0, 180) degrees, got {self.vfov}")


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# tan(vfov / 2): half-height of the image plane at unit distance
_camera_scale = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: PinholeCamera) -> None:
    """Initialize camera state from configuration.

    Must be called before rendering.

    Args:
        camera: Camera configuration.
    """
    _camera_scale[None] = math.tan(math.radians(camera.vfov) / 2.0)


@ti.func
def get_primary_ray(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the ray through the center of a pixel.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray from the origin through the pixel center, with unit direction.
    """
    scale = _camera_scale[None]
    w = ti.cast(width, ti.f32)
    h = ti.cast(height, ti.f32)
    aspect_ratio = w / h
    x = (2.0 * (ti.cast(pixel_i, ti.f32) + 0.5) / w - 1.0) * scale * aspect_ratio
    y = -(2.0 * (ti.cast(pixel_j, ti.f32) + 0.5) / h - 1.0) * scale
    direction = tm.normalize(vec3(x, y, -1.0))
    return make_ray(vec3(0.0, 0.0, 0.0), direction)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with the image-plane scale and the field of view in degrees.
    """
    scale = float(_camera_scale[None])
    return {
        "scale": scale,
        "vfov": math.degrees(2.0 * math.atan(scale)),
    }


def primary_ray_direction(
    pixel_i: int, pixel_j: int, width: int, height: int, vfov: float
) -> tuple[float, float, float]:
    """Python-side reference of get_primary_ray's direction.

    Useful for aiming test rays and for picking the pixel that looks at a
    given point.
    """
    scale = math.tan(math.radians(vfov) / 2.0)
    x = (2.0 * (pixel_i + 0.5) / width - 1.0) * scale * width / height
    y = -(2.0 * (pixel_j + 0.5) / height - 1.0) * scale
    length = math.sqrt(x * x + y * y + 1.0)
    return x / length, y / length, -1.0 / length
