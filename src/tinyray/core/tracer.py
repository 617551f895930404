"""Whitted-style recursive ray tracer.

This module implements the colour computation for a single ray and the
render target it is written to. For a ray that hits a surface the colour is

    diffuse_color * diffuse_intensity * albedo[0]
    + white * specular_intensity * albedo[1]
    + trace(reflected ray, depth + 1) * albedo[2]
    + trace(refracted ray, depth + 1) * albedo[3]

where the diffuse and specular intensities are summed over every point
light not blocked by a shadow ray. Rays that hit nothing, and rays whose
depth exceeds the maximum recursion depth, take the background colour.

Taichi functions cannot recurse, so the recursion is unrolled into a
per-ray work stack. Each entry is a pending ray together with the product
of the albedo weights along its branch; because the colour is linear in
the recursive terms, summing weight * local_colour over every visited ray
gives exactly the recursive result. The stack never holds more than
MAX_SUPPORTED_DEPTH + 2 entries.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tinyray.core.tracer import render_rows, setup_render_target
    >>> from tinyray.camera.pinhole import PinholeCamera, setup_camera
    >>> setup_camera(PinholeCamera())
    >>> setup_render_target(320, 240)
    >>> render_rows(0, 240)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from tinyray.camera.pinhole import get_primary_ray
from tinyray.core.ray import offset_origin, reflect, refract
from tinyray.materials.phong import get_material
from tinyray.scene.environment import background
from tinyray.scene.intersection import MAX_RENDER_DISTANCE, T_MIN, in_shadow, intersect_scene
from tinyray.scene.lights import get_light, num_lights

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Recursion Depth
# =============================================================================

# Depth used when nothing else is configured (matches the reference scene)
DEFAULT_MAX_DEPTH = 4

# Largest depth the work stack is sized for
MAX_SUPPORTED_DEPTH = 8

# Depth-first traversal leaves at most one pending sibling per level
STACK_SIZE = MAX_SUPPORTED_DEPTH + 2

_max_depth = DEFAULT_MAX_DEPTH


def set_max_depth(depth: int) -> None:
    """Set the maximum recursion depth.

    A ray traced at depth d spawns reflection and refraction rays at depth
    d + 1; rays deeper than the maximum return the background colour.

    Args:
        depth: Maximum depth in [0, MAX_SUPPORTED_DEPTH].

    Raises:
        ValueError: If the depth is out of range.
    """
    global _max_depth
    if not 0 <= depth <= MAX_SUPPORTED_DEPTH:
        raise ValueError(f"max_depth must be in [0, {MAX_SUPPORTED_DEPTH}], got {depth}")
    _max_depth = depth


def get_max_depth() -> int:
    """Get the maximum recursion depth."""
    return _max_depth


# =============================================================================
# Render Target (Framebuffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Tone-mapped colour per pixel, indexed [i, j] with j = 0 the top row
_framebuffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Number of times each pixel was written (exactly one after a full render)
_write_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the framebuffer for an image of the given size.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the framebuffer and write counts to zero."""
    _framebuffer.fill(0.0)
    _write_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Shading
# =============================================================================


@ti.func
def _phong_power(base: ti.f32, exponent: ti.f32) -> ti.f32:
    """max(0, base)^exponent with 0^0 = 1."""
    result = 0.0
    if base > 0.0:
        result = base**exponent
    elif exponent == 0.0:
        result = 1.0
    return result


@ti.func
def shade_direct(point: vec3, normal: vec3, view_dir: vec3, specular_exponent: ti.f32):
    """Sum the diffuse and specular intensity of every unshadowed light.

    Args:
        point: The shaded surface point.
        normal: The outward surface normal (unit length).
        view_dir: Direction of the incoming ray (unit length).
        specular_exponent: Phong exponent of the surface material.

    Returns:
        A tuple (diffuse_intensity, specular_intensity).
    """
    diffuse_intensity = 0.0
    specular_intensity = 0.0

    for k in range(num_lights[None]):
        light_position, light_intensity = get_light(k)
        to_light = light_position - point
        light_distance = tm.length(to_light)
        light_dir = to_light / light_distance

        if in_shadow(point, normal, light_dir, light_distance) == 0:
            diffuse_intensity += light_intensity * ti.max(0.0, tm.dot(light_dir, normal))
            mirrored = reflect(-light_dir, normal)
            specular_intensity += light_intensity * _phong_power(
                tm.dot(mirrored, -view_dir), specular_exponent
            )

    return diffuse_intensity, specular_intensity


@ti.func
def trace_ray(origin: vec3, direction: vec3, depth: ti.i32, max_depth: ti.i32) -> vec3:
    """Compute the colour seen along a ray.

    Args:
        origin: The ray origin.
        direction: The ray direction (unit length).
        depth: Recursion depth of this ray (0 for primary rays).
        max_depth: Deepest ray that is intersected with the scene.

    Returns:
        The RGB colour before tone mapping.
    """
    radiance = vec3(0.0, 0.0, 0.0)

    # Work stack of pending rays: origin, direction, branch weight and depth
    stack_ox = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_oy = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_oz = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_dx = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_dy = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_dz = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_wx = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_wy = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_wz = ti.Vector([0.0 for _ in range(STACK_SIZE)], dt=ti.f32)
    stack_depth = ti.Vector([0 for _ in range(STACK_SIZE)], dt=ti.i32)
    sp = 0

    if depth > max_depth:
        radiance = background(direction)
    else:
        stack_ox[0] = origin.x
        stack_oy[0] = origin.y
        stack_oz[0] = origin.z
        stack_dx[0] = direction.x
        stack_dy[0] = direction.y
        stack_dz[0] = direction.z
        stack_wx[0] = 1.0
        stack_wy[0] = 1.0
        stack_wz[0] = 1.0
        stack_depth[0] = depth
        sp = 1

    while sp > 0:
        sp -= 1
        ray_origin = vec3(stack_ox[sp], stack_oy[sp], stack_oz[sp])
        ray_dir = vec3(stack_dx[sp], stack_dy[sp], stack_dz[sp])
        weight = vec3(stack_wx[sp], stack_wy[sp], stack_wz[sp])
        ray_depth = stack_depth[sp]

        rec = intersect_scene(ray_origin, ray_dir, T_MIN, MAX_RENDER_DISTANCE)
        if rec.hit == 0:
            radiance += weight * background(ray_dir)
        else:
            material = get_material(rec.material_id)
            albedo = material.albedo
            diffuse_intensity, specular_intensity = shade_direct(
                rec.point, rec.normal, ray_dir, material.specular_exponent
            )
            local = (
                rec.diffuse_color * diffuse_intensity * albedo[0]
                + vec3(1.0, 1.0, 1.0) * specular_intensity * albedo[1]
            )
            radiance += weight * local

            # Child 0 is the reflected ray, child 1 the refracted ray
            for child in ti.static(range(2)):
                child_weight = weight * albedo[2 + child]
                child_dir = vec3(0.0, 0.0, 0.0)
                if ti.static(child == 0):
                    child_dir = tm.normalize(reflect(ray_dir, rec.normal))
                else:
                    child_dir = tm.normalize(
                        refract(ray_dir, rec.normal, material.refractive_index)
                    )

                if child_weight.max() > 0.0:
                    if ray_depth + 1 > max_depth:
                        radiance += child_weight * background(child_dir)
                    elif sp < STACK_SIZE:
                        child_origin = offset_origin(rec.point, rec.normal, child_dir)
                        stack_ox[sp] = child_origin.x
                        stack_oy[sp] = child_origin.y
                        stack_oz[sp] = child_origin.z
                        stack_dx[sp] = child_dir.x
                        stack_dy[sp] = child_dir.y
                        stack_dz[sp] = child_dir.z
                        stack_wx[sp] = child_weight.x
                        stack_wy[sp] = child_weight.y
                        stack_wz[sp] = child_weight.z
                        stack_depth[sp] = ray_depth + 1
                        sp += 1

    return radiance


@ti.func
def tone_map_max_channel(color: vec3) -> vec3:
    """Bring a colour into [0, 1] while preserving its hue.

    Negative and NaN channels become 0; if the largest channel exceeds 1
    the whole colour is divided by it.
    """
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(result[c]):
            result[c] = 0.0
    peak = result.max()
    if peak > 1.0:
        result = result / peak
    return result


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    width: ti.i32, height: ti.i32, row_start: ti.i32, row_end: ti.i32, max_depth: ti.i32
):
    """Trace one primary ray per pixel in rows [row_start, row_end)."""
    for i, j in ti.ndrange(width, (row_start, row_end)):
        ray = get_primary_ray(i, j, width, height)
        color = trace_ray(ray.origin, ray.direction, 0, max_depth)
        _framebuffer[i, j] = tone_map_max_channel(color)
        _write_count[i, j] += 1


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32
) -> vec3:
    ray = get_primary_ray(pixel_i, pixel_j, width, height)
    return trace_ray(ray.origin, ray.direction, 0, max_depth)


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    direction = tm.normalize(vec3(dx, dy, dz))
    return trace_ray(vec3(ox, oy, oz), direction, depth, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(row_start: int, row_end: int) -> None:
    """Render the band of rows [row_start, row_end) into the framebuffer.

    Pixels within the band are traced in parallel. Bands that do not
    overlap write disjoint framebuffer regions.

    Args:
        row_start: First row of the band (0 = top).
        row_end: One past the last row of the band.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the band is outside the image.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Row band [{row_start}, {row_end}) outside image of height {height}")
    if row_start < row_end:
        _render_rows(width, height, row_start, row_end, _max_depth)


def render_image() -> None:
    """Render every row of the framebuffer in one launch."""
    _check_render_target_initialized()
    _, height = get_image_dimensions()
    render_rows(0, height)


def render_pixel(pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
    """Trace the primary ray of one pixel without tone mapping.

    This is a Python-callable function for testing. It does not touch the
    framebuffer.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).

    Returns:
        Tuple of (R, G, B) colour values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, _max_depth)
    return float(color[0]), float(color[1]), float(color[2])


def trace(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = 0,
) -> tuple[float, float, float]:
    """Trace one ray from Python scope.

    Args:
        origin: Ray origin.
        direction: Ray direction (normalized before tracing).
        depth: Recursion depth to start at.

    Returns:
        Tuple of (R, G, B) colour values, not tone mapped.
    """
    color = _trace_single_ray(
        origin[0],
        origin[1],
        origin[2],
        direction[0],
        direction[1],
        direction[2],
        depth,
        _max_depth,
    )
    return float(color[0]), float(color[1]), float(color[2])


def get_framebuffer_numpy() -> np.ndarray:
    """Get the rendered image as a NumPy array.

    Returns:
        Float32 array of shape (height, width, 3), row 0 at the top, values
        in [0, 1].

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _framebuffer.to_numpy()
    image = np.transpose(full_image[:width, :height, :], (1, 0, 2))
    return np.ascontiguousarray(image, dtype=np.float32)


def get_write_counts_numpy() -> np.ndarray:
    """Get how often each pixel was written, shape (height, width)."""
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    counts = _write_count.to_numpy()[:width, :height]
    return np.ascontiguousarray(counts.T)

