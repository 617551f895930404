"""Taichi-based Whitted-style ray tracer for spheres.

This package renders scenes of spheres with albedo-blended Phong materials
lit by point lights, with hard shadows and recursive mirror reflection and
refraction, one primary ray per pixel.

Subpackages:
    core: Ray helpers, the recursive tracer and the rendering driver
    geometry: Sphere and checkerboard floor intersection
    materials: Albedo-blended Phong material and its registry
    scene: Scene construction, lights, background and ray-scene queries
    camera: Fixed pinhole camera
    preview: Tone mapping, preview and image export

Taichi must be initialised with ti.init() before importing the modules
that declare fields (everything except errors and preview).
"""

__version__ = "0.1.0"
