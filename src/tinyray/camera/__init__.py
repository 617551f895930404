"""Camera module for primary ray generation.

Components:
    pinhole: Fixed perspective camera at the origin looking down -z

Ray generation maps pixel coordinates to directions:
    i in [0, width): left to right across the image
    j in [0, height): top to bottom across the image
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_primary_ray,
    primary_ray_direction,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "get_primary_ray",
    "get_camera_info",
    "primary_ray_direction",
]
