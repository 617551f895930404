"""Scene construction and upload.

This module provides the immutable Scene description and the manager that
copies a Scene into the Taichi fields read by the tracer.

Scene construction is all-or-nothing: build_scene() validates every
sphere, material, light and background parameter, and raises
InvalidSceneParameter before anything is built if one is invalid.
Overlapping spheres are legal; the nearest-hit search resolves them.

Materials are shared by identity. When several spheres use the same
Material object it is uploaded once and all of them refer to its id.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tinyray.materials.phong import Material
    >>> from tinyray.scene.lights import Light
    >>> from tinyray.scene.manager import SceneManager, build_scene
    >>> red = Material(diffuse_color=(1.0, 0.0, 0.0))
    >>> scene = build_scene(
    ...     spheres=[((0.0, 0.0, -10.0), 2.0, red)],
    ...     lights=[Light((0.0, 10.0, 0.0), 1.5)],
    ... )
    >>> manager = SceneManager()
    >>> manager.load(scene)
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from tinyray.errors import InvalidSceneParameter, require_finite_vector, require_positive
from tinyray.geometry.floor import CheckerboardFloor
from tinyray.materials.phong import (
    MAX_MATERIALS,
    Material,
    add_material,
    clear_materials,
    get_material_count,
)
from tinyray.scene.environment import (
    DEFAULT_BACKGROUND,
    EnvironmentMap,
    clear_environment,
    set_background_color,
    set_environment,
)
from tinyray.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    is_floor_enabled,
    set_floor,
)
from tinyray.scene.lights import MAX_LIGHTS, Light, add_light, clear_lights, get_light_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SphereInfo:
    """A sphere in the scene description.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere (> 0).
        material: The (possibly shared) material of the sphere.
    """

    center: tuple[float, float, float]
    radius: float
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", require_finite_vector("center", self.center))
        object.__setattr__(self, "radius", require_positive("radius", self.radius))
        if not isinstance(self.material, Material):
            raise InvalidSceneParameter("material", self.material, "must be a Material")


@dataclass(frozen=True)
class Scene:
    """An immutable scene description.

    Use build_scene() to construct one from loosely typed input.

    Attributes:
        spheres: The spheres, in intersection order.
        lights: The point lights.
        background: Constant colour returned for rays that hit nothing.
        environment: Optional environment map replacing the constant
            background.
        floor: Optional checkerboard floor.
    """

    spheres: tuple[SphereInfo, ...] = ()
    lights: tuple[Light, ...] = ()
    background: tuple[float, float, float] = DEFAULT_BACKGROUND
    environment: EnvironmentMap | None = None
    floor: CheckerboardFloor | None = None

    @property
    def materials(self) -> list[Material]:
        """Distinct materials (by identity) in order of first use."""
        seen: dict[int, Material] = {}
        for sphere in self.spheres:
            seen.setdefault(id(sphere.material), sphere.material)
        if self.floor is not None:
            seen.setdefault(id(self.floor.material), self.floor.material)
        return list(seen.values())


def _as_sphere(index: int, item: Any) -> SphereInfo:
    if isinstance(item, SphereInfo):
        return item
    try:
        center, radius, material = item
    except (TypeError, ValueError):
        raise InvalidSceneParameter(
            f"spheres[{index}]", item, "must be a SphereInfo or (center, radius, material)"
        ) from None
    return SphereInfo(center=center, radius=radius, material=material)


def _as_light(index: int, item: Any) -> Light:
    if isinstance(item, Light):
        return item
    try:
        position, intensity = item
    except (TypeError, ValueError):
        raise InvalidSceneParameter(
            f"lights[{index}]", item, "must be a Light or (position, intensity)"
        ) from None
    return Light(position=position, intensity=intensity)


def build_scene(
    spheres: Iterable[SphereInfo | tuple[Any, Any, Material]] = (),
    lights: Iterable[Light | tuple[Any, Any]] = (),
    background: tuple[float, float, float] = DEFAULT_BACKGROUND,
    environment: EnvironmentMap | None = None,
    floor: CheckerboardFloor | None = None,
) -> Scene:
    """Validate scene parameters and build an immutable Scene.

    Args:
        spheres: SphereInfo objects or (center, radius, material) tuples.
        lights: Light objects or (position, intensity) tuples.
        background: Constant background colour (non-negative RGB).
        environment: Optional environment map for rays that hit nothing.
        floor: Optional checkerboard floor.

    Returns:
        The validated Scene.

    Raises:
        InvalidSceneParameter: If any parameter is invalid. No partial
            scene is returned.
    """
    sphere_infos = tuple(_as_sphere(i, item) for i, item in enumerate(spheres))
    light_infos = tuple(_as_light(i, item) for i, item in enumerate(lights))
    background_color = require_finite_vector("background", background, non_negative=True)
    if environment is not None and not isinstance(environment, EnvironmentMap):
        raise InvalidSceneParameter("environment", environment, "must be an EnvironmentMap")
    if floor is not None and not isinstance(floor, CheckerboardFloor):
        raise InvalidSceneParameter("floor", floor, "must be a CheckerboardFloor")

    return Scene(
        spheres=sphere_infos,
        lights=light_infos,
        background=background_color,
        environment=environment,
        floor=floor,
    )


class SceneManager:
    """Uploads Scene descriptions into the tracer's Taichi fields.

    There is a single set of scene fields per process, so loading a scene
    replaces whatever was loaded before.

    Attributes:
        scene: The currently loaded Scene, or None.
        material_ids: Material id assigned to each loaded material,
            keyed by id() of the Material object.
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.scene: Scene | None = None
        self.material_ids: dict[int, int] = {}
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_materials()
        clear_lights()
        clear_environment()
        set_background_color(DEFAULT_BACKGROUND)
        self.material_ids.clear()
        self.scene = None

    def clear(self) -> None:
        """Remove everything from the scene fields."""
        self._clear_all()

    def load(self, scene: Scene) -> None:
        """Replace the loaded scene with the given one.

        Args:
            scene: The scene to upload.

        Raises:
            RuntimeError: If the scene exceeds the sphere, light or material
                capacity. Nothing is uploaded in that case.
        """
        materials = scene.materials
        if len(scene.spheres) > MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
        if len(scene.lights) > MAX_LIGHTS:
            raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
        if len(materials) > MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        self._clear_all()

        for material in materials:
            self.material_ids[id(material)] = add_material(material)

        for sphere in scene.spheres:
            add_sphere(sphere.center, sphere.radius, self.material_ids[id(sphere.material)])

        for light in scene.lights:
            add_light(light)

        if scene.floor is not None:
            floor = scene.floor
            set_floor(
                height=floor.height,
                half_width=floor.half_width,
                z_near=floor.z_near,
                z_far=floor.z_far,
                tile_scale=floor.tile_scale,
                color_a=floor.color_a,
                color_b=floor.color_b,
                material_id=self.material_ids[id(floor.material)],
            )

        set_background_color(scene.background)
        if scene.environment is not None:
            set_environment(scene.environment)

        self.scene = scene
        logger.debug(
            "Loaded scene: %d spheres, %d lights, %d materials, floor=%s, environment=%s",
            len(scene.spheres),
            len(scene.lights),
            len(materials),
            scene.floor is not None,
            scene.environment is not None,
        )

    def material_id(self, material: Material) -> int:
        """Get the id a loaded material was assigned.

        Raises:
            KeyError: If the material is not part of the loaded scene.
        """
        return self.material_ids[id(material)]

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene fields."""
        return get_sphere_count()

    def get_light_count(self) -> int:
        """Get the number of lights in the scene fields."""
        return get_light_count()

    def get_material_count(self) -> int:
        """Get the number of materials in the scene fields."""
        return get_material_count()

    def has_floor(self) -> bool:
        return is_floor_enabled()

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_lights() -> int:
        return MAX_LIGHTS

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS


# =============================================================================
# Scene Serialization
# =============================================================================


def scene_to_dict(scene: Scene) -> dict[str, Any]:
    """Export a scene to a JSON-compatible dictionary.

    Materials are listed once; spheres and the floor refer to them by
    index, so shared materials stay shared after a round trip. Environment
    maps are not exported.

    Args:
        scene: The scene to export.

    Returns:
        A dictionary with "materials", "spheres", "lights", "background"
        and "floor" keys.
    """
    materials = scene.materials
    index = {id(material): i for i, material in enumerate(materials)}

    floor_config: dict[str, Any] | None = None
    if scene.floor is not None:
        floor = scene.floor
        floor_config = {
            "height": floor.height,
            "half_width": floor.half_width,
            "z_near": floor.z_near,
            "z_far": floor.z_far,
            "tile_scale": floor.tile_scale,
            "color_a": list(floor.color_a),
            "color_b": list(floor.color_b),
            "material": index[id(floor.material)],
        }

    return {
        "materials": [material.to_dict() for material in materials],
        "spheres": [
            {
                "center": list(sphere.center),
                "radius": sphere.radius,
                "material": index[id(sphere.material)],
            }
            for sphere in scene.spheres
        ],
        "lights": [light.to_dict() for light in scene.lights],
        "background": list(scene.background),
        "floor": floor_config,
    }


def scene_from_dict(data: dict[str, Any], environment: EnvironmentMap | None = None) -> Scene:
    """Build a scene from a dictionary produced by scene_to_dict().

    Args:
        data: The scene configuration.
        environment: Optional environment map to attach.

    Returns:
        The validated Scene.

    Raises:
        InvalidSceneParameter: If any value is invalid or a material index
            is out of range.
    """
    materials = [
        Material(
            diffuse_color=config.get("diffuse_color", (0.0, 0.0, 0.0)),
            albedo=config.get("albedo", (1.0, 0.0, 0.0, 0.0)),
            specular_exponent=config.get("specular_exponent", 0.0),
            refractive_index=config.get("refractive_index", 1.0),
        )
        for config in data.get("materials", [])
    ]

    def lookup(index: Any) -> Material:
        if not isinstance(index, int) or not 0 <= index < len(materials):
            raise InvalidSceneParameter("material", index, "must index the materials list")
        return materials[index]

    spheres = [
        SphereInfo(
            center=config.get("center", (0.0, 0.0, 0.0)),
            radius=config.get("radius", 1.0),
            material=lookup(config.get("material", 0)),
        )
        for config in data.get("spheres", [])
    ]
    lights = [
        Light(
            position=config.get("position", (0.0, 0.0, 0.0)),
            intensity=config.get("intensity", 1.0),
        )
        for config in data.get("lights", [])
    ]

    floor = None
    floor_config = data.get("floor")
    if floor_config is not None:
        floor_kwargs = {key: value for key, value in floor_config.items() if key != "material"}
        for key in ("color_a", "color_b"):
            if key in floor_kwargs:
                floor_kwargs[key] = tuple(floor_kwargs[key])
        floor = CheckerboardFloor(material=lookup(floor_config.get("material", 0)), **floor_kwargs)

    return build_scene(
        spheres=spheres,
        lights=lights,
        background=data.get("background", DEFAULT_BACKGROUND),
        environment=environment,
        floor=floor,
    )
