"""Geometry module for shape primitives.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Sphere primitive with geometric ray-sphere intersection
    floor: Bounded checkerboard floor plane

All intersection routines are Taichi functions (@ti.func) so they can be
called from the tracing kernels. Scenes are scanned linearly; there is no
acceleration structure.
"""

from .floor import (
    PARALLEL_EPSILON,
    CheckerboardFloor,
    Floor,
    checker_color,
    hit_floor,
)
from .sphere import HitRecord, Sphere, hit_sphere, ray_sphere_distance

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "ray_sphere_distance",
    "CheckerboardFloor",
    "Floor",
    "checker_color",
    "hit_floor",
    "PARALLEL_EPSILON",
]
