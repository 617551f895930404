"""Albedo-blended Phong material.

A material describes how a surface combines four lighting terms into one
colour. The albedo is a 4-component weight vector:

    albedo[0]  diffuse    diffuse_color * sum(intensity * max(0, l . n))
    albedo[1]  specular   white * sum(intensity * max(0, r . v)^exponent)
    albedo[2]  reflect    colour of the mirror-reflected ray
    albedo[3]  refract    colour of the refracted ray

The weights are not required to sum to one; a mirror can have a specular
weight of 10. Materials are immutable and shared: spheres refer to them by
material id, and the device-side registry stores each material once.

Example:
    >>> from tinyray.materials.phong import Material
    >>> glass = Material(
    ...     diffuse_color=(0.6, 0.7, 0.8),
    ...     albedo=(0.0, 0.5, 0.1, 0.8),
    ...     specular_exponent=125.0,
    ...     refractive_index=1.5,
    ... )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from tinyray.errors import require_finite_vector, require_non_negative, require_positive

# Type alias for 3D vectors
vec3 = tm.vec3
vec4 = tm.vec4


@dataclass(frozen=True)
class Material:
    """Surface material (immutable once constructed).

    Attributes:
        diffuse_color: Diffuse RGB colour, each component >= 0.
        albedo: Weights (k_diffuse, k_specular, k_reflect, k_refract),
            each >= 0, no constraint on their sum.
        specular_exponent: Phong exponent (>= 0); larger is sharper.
        refractive_index: Index of refraction (> 0); 1.0 does not bend rays.

    Raises:
        InvalidSceneParameter: If any parameter is out of range.
    """

    diffuse_color: tuple[float, float, float] = (0.0, 0.0, 0.0)
    albedo: tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)
    specular_exponent: float = 0.0
    refractive_index: float = 1.0

    def __post_init__(self) -> None:
        # Normalise to plain float tuples so lists and arrays are accepted
        diffuse = require_finite_vector("diffuse_color", self.diffuse_color, non_negative=True)
        albedo = require_finite_vector("albedo", self.albedo, size=4, non_negative=True)
        exponent = require_non_negative("specular_exponent", self.specular_exponent)
        ior = require_positive("refractive_index", self.refractive_index)

        object.__setattr__(self, "diffuse_color", diffuse)
        object.__setattr__(self, "albedo", albedo)
        object.__setattr__(self, "specular_exponent", exponent)
        object.__setattr__(self, "refractive_index", ior)

    @property
    def is_reflective(self) -> bool:
        """Whether the material spawns reflection rays."""
        return self.albedo[2] > 0.0

    @property
    def is_refractive(self) -> bool:
        """Whether the material spawns refraction rays."""
        return self.albedo[3] > 0.0

    def to_dict(self) -> dict[str, object]:
        """Export the material parameters as JSON-compatible values."""
        return {
            "diffuse_color": list(self.diffuse_color),
            "albedo": list(self.albedo),
            "specular_exponent": self.specular_exponent,
            "refractive_index": self.refractive_index,
        }


@ti.dataclass
class MaterialRecord:
    """Device-side material record returned by get_material().

    Attributes:
        diffuse_color: Diffuse RGB colour.
        albedo: Blend weights (diffuse, specular, reflect, refract).
        specular_exponent: Phong exponent.
        refractive_index: Index of refraction.
    """

    diffuse_color: vec3
    albedo: vec4
    specular_exponent: ti.f32
    refractive_index: ti.f32


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of materials in the scene
MAX_MATERIALS = 256

# Storage for material properties: Structure of Arrays layout
material_diffuse_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_albedos = ti.Vector.field(4, dtype=ti.f32, shape=MAX_MATERIALS)
material_specular_exponents = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_refractive_indices = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the registry.

    Args:
        material: The validated material to store.

    Returns:
        The material id (index into the registry).

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_diffuse_colors[idx] = list(material.diffuse_color)
    material_albedos[idx] = list(material.albedo)
    material_specular_exponents[idx] = material.specular_exponent
    material_refractive_indices[idx] = material.refractive_index
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material(material_id: ti.i32) -> MaterialRecord:
    """Look up a material by id.

    Args:
        material_id: The index of the material in the registry.

    Returns:
        The stored material properties.
    """
    return MaterialRecord(
        diffuse_color=material_diffuse_colors[material_id],
        albedo=material_albedos[material_id],
        specular_exponent=material_specular_exponents[material_id],
        refractive_index=material_refractive_indices[material_id],
    )
