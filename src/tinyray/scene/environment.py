"""Scene background: constant colour or environment map.

Rays that leave the scene (or exceed the recursion depth) take their colour
from the background. By default this is a constant colour; an
EnvironmentMap can be installed instead, in which case the background is
looked up by ray direction.

Environment maps use the equirectangular layout: column u covers the
azimuth around the y axis starting behind the camera (+z) and row v runs
from straight up (v = 0) to straight down (v = 1):

    u = 0.5 + atan2(d.x, -d.z) / (2 pi)
    v = acos(d.y) / pi

Loading images from disk is left to the caller; a map is built from a
NumPy array or tabulated from any ``direction -> colour`` callable.

Example:
    >>> import numpy as np
    >>> from tinyray.scene.environment import EnvironmentMap
    >>> sky = EnvironmentMap.from_function(
    ...     lambda d: (0.2, 0.7, 0.8) if d[1] > 0 else (0.1, 0.1, 0.1)
    ... )
"""

import math
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from tinyray.errors import InvalidSceneParameter, require_finite_vector

# Type alias for 3D vectors
vec3 = tm.vec3

# Background of the reference scene
DEFAULT_BACKGROUND = (0.2, 0.7, 0.8)

# Largest environment map accepted (preallocated to avoid kernel recompilation)
MAX_ENV_WIDTH = 2048
MAX_ENV_HEIGHT = 1024

# Callable mapping a unit direction (x, y, z) to an RGB colour
DirectionSampler = Callable[[tuple[float, float, float]], tuple[float, float, float]]


def direction_to_uv(direction: tuple[float, float, float]) -> tuple[float, float]:
    """Map a unit direction to equirectangular (u, v) in [0, 1]."""
    x, y, z = direction
    u = 0.5 + math.atan2(x, -z) / (2.0 * math.pi)
    v = math.acos(max(-1.0, min(1.0, y))) / math.pi
    return u, v


def uv_to_direction(u: float, v: float) -> tuple[float, float, float]:
    """Map equirectangular (u, v) back to a unit direction."""
    phi = (u - 0.5) * 2.0 * math.pi
    theta = v * math.pi
    return (
        math.sin(theta) * math.sin(phi),
        math.cos(theta),
        -math.sin(theta) * math.cos(phi),
    )


@dataclass(frozen=True, eq=False)
class EnvironmentMap:
    """An equirectangular environment map.

    Attributes:
        pixels: Read-only float32 array of shape (height, width, 3) with
            non-negative linear RGB values.

    Raises:
        InvalidSceneParameter: If the array has the wrong shape, exceeds
            MAX_ENV_HEIGHT x MAX_ENV_WIDTH, or contains negative or
            non-finite values.
    """

    pixels: npt.NDArray[np.float32]

    def __post_init__(self) -> None:
        pixels = np.array(self.pixels, dtype=np.float32)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise InvalidSceneParameter(
                "environment.pixels", pixels.shape, "must have shape (height, width, 3)"
            )
        height, width = pixels.shape[:2]
        if not (1 <= height <= MAX_ENV_HEIGHT and 1 <= width <= MAX_ENV_WIDTH):
            raise InvalidSceneParameter(
                "environment.pixels",
                pixels.shape,
                f"must be at most {MAX_ENV_HEIGHT}x{MAX_ENV_WIDTH}",
            )
        if not np.all(np.isfinite(pixels)) or np.any(pixels < 0.0):
            raise InvalidSceneParameter(
                "environment.pixels", "<array>", "must contain finite non-negative values"
            )
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @classmethod
    def from_function(
        cls,
        sampler: DirectionSampler,
        width: int = 256,
        height: int = 128,
    ) -> "EnvironmentMap":
        """Tabulate a direction -> colour callable into an environment map.

        The callable is evaluated once per texel, at the direction through
        the texel center.

        Args:
            sampler: Function returning an RGB colour for a unit direction.
            width: Number of texel columns.
            height: Number of texel rows.

        Returns:
            The tabulated environment map.
        """
        pixels = np.empty((height, width, 3), dtype=np.float32)
        for row in range(height):
            v = (row + 0.5) / height
            for col in range(width):
                u = (col + 0.5) / width
                color = sampler(uv_to_direction(u, v))
                pixels[row, col] = require_finite_vector("environment color", color)
        return cls(pixels)

    def sample(self, direction: tuple[float, float, float]) -> tuple[float, float, float]:
        """Look up the texel seen along a direction (nearest neighbour)."""
        u, v = direction_to_uv(direction)
        col = min(int(u * self.width), self.width - 1)
        row = min(int(v * self.height), self.height - 1)
        r, g, b = self.pixels[row, col]
        return float(r), float(g), float(b)


# =============================================================================
# Background Field Storage
# =============================================================================

_background_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_environment_enabled = ti.field(dtype=ti.i32, shape=())
_environment_width = ti.field(dtype=ti.i32, shape=())
_environment_height = ti.field(dtype=ti.i32, shape=())
_environment_pixels = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_ENV_HEIGHT, MAX_ENV_WIDTH))


def set_background_color(color: tuple[float, float, float]) -> None:
    """Set the constant background colour."""
    _background_color[None] = list(require_finite_vector("background", color, non_negative=True))


def get_background_color() -> tuple[float, float, float]:
    """Get the constant background colour."""
    c = _background_color[None]
    return float(c[0]), float(c[1]), float(c[2])


def set_environment(environment: EnvironmentMap) -> None:
    """Install an environment map; misses are then looked up by direction."""
    padded = np.zeros((MAX_ENV_HEIGHT, MAX_ENV_WIDTH, 3), dtype=np.float32)
    padded[: environment.height, : environment.width] = environment.pixels
    _environment_pixels.from_numpy(padded)
    _environment_width[None] = environment.width
    _environment_height[None] = environment.height
    _environment_enabled[None] = 1


def clear_environment() -> None:
    """Remove the environment map; misses use the constant background."""
    _environment_enabled[None] = 0


def is_environment_enabled() -> bool:
    """Check if an environment map is installed."""
    return bool(_environment_enabled[None])


def reset_background() -> None:
    """Restore the default constant background and drop any environment map."""
    set_background_color(DEFAULT_BACKGROUND)
    clear_environment()


@ti.func
def sample_environment(direction: vec3) -> vec3:
    """Nearest-texel lookup of the installed environment map."""
    width = _environment_width[None]
    height = _environment_height[None]
    u = 0.5 + ti.atan2(direction.x, -direction.z) / (2.0 * tm.pi)
    v = ti.acos(tm.clamp(direction.y, -1.0, 1.0)) / tm.pi
    col = ti.max(0, ti.min(ti.cast(u * width, ti.i32), width - 1))
    row = ti.max(0, ti.min(ti.cast(v * height, ti.i32), height - 1))
    return _environment_pixels[row, col]


@ti.func
def background(direction: vec3) -> vec3:
    """Colour seen along a ray that hits nothing.

    Args:
        direction: The ray direction (unit length).

    Returns:
        The environment map sample if one is installed, otherwise the
        constant background colour.
    """
    color = _background_color[None]
    if _environment_enabled[None] == 1:
        color = sample_environment(direction)
    return color
