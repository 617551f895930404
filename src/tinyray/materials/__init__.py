"""Materials module.

Components:
    phong: Albedo-blended Phong material (diffuse, specular, reflective
        and refractive weights) and its device-side registry

Materials are plain immutable values on the Python side and rows of
Taichi fields on the device side. Shading code looks them up by material
id with get_material().
"""

from .phong import (
    MAX_MATERIALS,
    Material,
    MaterialRecord,
    add_material,
    clear_materials,
    get_material,
    get_material_count,
)

__all__ = [
    "Material",
    "MaterialRecord",
    "add_material",
    "clear_materials",
    "get_material",
    "get_material_count",
    "MAX_MATERIALS",
]
