"""Scene module for scene description, storage and ray-scene queries.

Components:
    lights: Point lights and their device-side storage
    environment: Constant background colour or environment map
    intersection: Nearest-hit and shadow queries over spheres and the floor
    manager: Immutable Scene construction and upload to Taichi fields
    tutorial: The reference four-sphere scene

Scene data is organized for GPU access:
    - Structure-of-Arrays layout for spheres, materials and lights
    - Materials stored once and referenced by id
"""

from .environment import (
    DEFAULT_BACKGROUND,
    EnvironmentMap,
    background,
    clear_environment,
    get_background_color,
    is_environment_enabled,
    reset_background,
    set_background_color,
    set_environment,
)
from .intersection import (
    MAX_RENDER_DISTANCE,
    MAX_SPHERES,
    T_MIN,
    SceneHitRecord,
    add_sphere,
    clear_floor,
    clear_scene,
    get_sphere_count,
    in_shadow,
    intersect_scene,
    intersect_scene_any,
    is_floor_enabled,
    set_floor,
)
from .lights import MAX_LIGHTS, Light, add_light, clear_lights, get_light_count
from .manager import Scene, SceneManager, SphereInfo, build_scene, scene_from_dict, scene_to_dict
from .tutorial import create_tutorial_scene

__all__ = [
    # Environment module
    "DEFAULT_BACKGROUND",
    "EnvironmentMap",
    "background",
    "clear_environment",
    "get_background_color",
    "is_environment_enabled",
    "reset_background",
    "set_background_color",
    "set_environment",
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "clear_floor",
    "set_floor",
    "get_sphere_count",
    "is_floor_enabled",
    "intersect_scene",
    "intersect_scene_any",
    "in_shadow",
    "MAX_SPHERES",
    "MAX_RENDER_DISTANCE",
    "T_MIN",
    # Lights module
    "Light",
    "add_light",
    "clear_lights",
    "get_light_count",
    "MAX_LIGHTS",
    # Manager module
    "Scene",
    "SceneManager",
    "SphereInfo",
    "build_scene",
    "scene_to_dict",
    "scene_from_dict",
    # Tutorial scene
    "create_tutorial_scene",
]
