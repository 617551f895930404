"""Point light sources.

A point light has a position and a scalar intensity. Lights are evaluated
independently during shading: each contributes diffuse and specular
intensity unless the shaded point is in its shadow.

Example:
    >>> from tinyray.scene.lights import Light
    >>> key = Light(position=(-20.0, 20.0, 20.0), intensity=1.5)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from tinyray.errors import require_finite_vector, require_non_negative

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Light:
    """A point light (immutable once constructed).

    Attributes:
        position: World-space position (x, y, z).
        intensity: Scalar intensity (>= 0).

    Raises:
        InvalidSceneParameter: If the position is not a finite 3-vector or
            the intensity is negative.
    """

    position: tuple[float, float, float]
    intensity: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", require_finite_vector("position", self.position))
        object.__setattr__(self, "intensity", require_non_negative("intensity", self.intensity))

    def to_dict(self) -> dict[str, object]:
        """Export the light as JSON-compatible values."""
        return {"position": list(self.position), "intensity": self.intensity}


# =============================================================================
# Light Field Storage
# =============================================================================

# Maximum number of lights in the scene
MAX_LIGHTS = 64

light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights from the scene."""
    num_lights[None] = 0


def add_light(light: Light) -> int:
    """Add a point light to the scene.

    Args:
        light: The validated light to store.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_positions[idx] = list(light.position)
    light_intensities[idx] = light.intensity
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


@ti.func
def get_light(light_idx: ti.i32):
    """Get the position and intensity of a light by index.

    Returns:
        A tuple (position, intensity).
    """
    return light_positions[light_idx], light_intensities[light_idx]
