"""Reference scene: four spheres over a checkerboard floor.

The scene has one sphere of each classic material:
- Ivory: mostly diffuse with a soft highlight and a hint of reflection
- Glass: refractive (index 1.5) with a sharp highlight
- Red rubber: matte
- Mirror: strongly reflective with a very sharp highlight

It is lit by three point lights, sits over a bounded checkerboard floor and
is seen from the origin against a sky-blue background.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tinyray.core.renderer import RenderConfig, render_scene
    >>> from tinyray.scene.tutorial import create_tutorial_scene
    >>>
    >>> image = render_scene(create_tutorial_scene(), RenderConfig(1024, 768))
"""

from tinyray.geometry.floor import CheckerboardFloor
from tinyray.materials.phong import Material
from tinyray.scene.environment import DEFAULT_BACKGROUND
from tinyray.scene.lights import Light
from tinyray.scene.manager import Scene, SphereInfo, build_scene

# =============================================================================
# Materials
# =============================================================================

IVORY = Material(
    diffuse_color=(0.4, 0.4, 0.3),
    albedo=(0.6, 0.3, 0.1, 0.0),
    specular_exponent=50.0,
    refractive_index=1.0,
)

GLASS = Material(
    diffuse_color=(0.6, 0.7, 0.8),
    albedo=(0.0, 0.5, 0.1, 0.8),
    specular_exponent=125.0,
    refractive_index=1.5,
)

RED_RUBBER = Material(
    diffuse_color=(0.3, 0.1, 0.1),
    albedo=(0.9, 0.1, 0.0, 0.0),
    specular_exponent=10.0,
    refractive_index=1.0,
)

MIRROR = Material(
    diffuse_color=(1.0, 1.0, 1.0),
    albedo=(0.0, 10.0, 0.8, 0.0),
    specular_exponent=1425.0,
    refractive_index=1.0,
)


def tutorial_spheres() -> list[SphereInfo]:
    """The four spheres of the reference scene."""
    return [
        SphereInfo(center=(-3.0, 0.0, -16.0), radius=2.0, material=IVORY),
        SphereInfo(center=(-1.0, -1.5, -12.0), radius=2.0, material=GLASS),
        SphereInfo(center=(1.5, -0.5, -18.0), radius=3.0, material=RED_RUBBER),
        SphereInfo(center=(7.0, 5.0, -18.0), radius=4.0, material=MIRROR),
    ]


def tutorial_lights() -> list[Light]:
    """The three point lights of the reference scene."""
    return [
        Light(position=(-20.0, 20.0, 20.0), intensity=1.5),
        Light(position=(30.0, 50.0, -25.0), intensity=1.8),
        Light(position=(30.0, 20.0, 30.0), intensity=1.7),
    ]


def create_tutorial_scene(with_floor: bool = True) -> Scene:
    """Create the reference scene.

    Args:
        with_floor: Whether to include the checkerboard floor.

    Returns:
        The validated Scene.
    """
    return build_scene(
        spheres=tutorial_spheres(),
        lights=tutorial_lights(),
        background=DEFAULT_BACKGROUND,
        floor=CheckerboardFloor() if with_floor else None,
    )
