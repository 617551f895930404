"""Unit tests for the recursive tracer.

Tests cover:
- Background colour for misses and rays past the maximum depth
- Diffuse lighting with several lights and shadow rays
- Reflection and refraction weights and the depth limit
- Tone mapping inside kernels
- Render target validation
"""

import math

import pytest
import taichi as ti

BACKGROUND = (0.2, 0.7, 0.8)


def _load(spheres, lights=()):
    """Upload (center, radius, material) spheres and (position, intensity) lights."""
    from tinyray.scene.manager import SceneManager, build_scene

    manager = SceneManager()
    manager.load(build_scene(spheres=spheres, lights=lights))
    return manager


def _normalize(v):
    length = math.sqrt(sum(c * c for c in v))
    return tuple(c / length for c in v)


def _dot(a, b):
    return sum(x * y for x, y in zip(a, b))


def _snell(direction, normal, eta):
    """Refract a unit direction through a surface whose normal faces the ray."""
    cos_i = -_dot(direction, normal)
    k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)
    return tuple(
        eta * d + (eta * cos_i - math.sqrt(k)) * n for d, n in zip(direction, normal)
    )


def _through_glass_ball(origin, direction, center, radius, ior):
    """Direction of a ray after entering and leaving a solid glass sphere."""
    d = _normalize(direction)
    oc = tuple(o - c for o, c in zip(origin, center))
    b = _dot(oc, d)
    t = -b - math.sqrt(b * b - (_dot(oc, oc) - radius * radius))
    entry = tuple(o + t * c for o, c in zip(origin, d))
    inside = _snell(d, _normalize(tuple(p - c for p, c in zip(entry, center))), 1.0 / ior)

    # Far root of the chord starting on the surface
    ec = tuple(p - c for p, c in zip(entry, center))
    t_exit = -2.0 * _dot(ec, inside)
    exit_point = tuple(p + t_exit * c for p, c in zip(entry, inside))
    outward = _normalize(tuple(p - c for p, c in zip(exit_point, center)))
    return _snell(inside, tuple(-c for c in outward), ior)


def _direction_colored_sky():
    """Environment whose colour encodes the direction it is seen from."""
    from tinyray.scene.environment import EnvironmentMap

    return EnvironmentMap.from_function(
        lambda d: tuple(0.5 * (c + 1.0) for c in d), width=512, height=256
    )


def _red():
    from tinyray.materials.phong import Material

    return Material(diffuse_color=(1.0, 0.0, 0.0))


class TestBackground:
    """Rays that hit nothing."""

    def test_miss_returns_background_exactly(self):
        from tinyray.core.tracer import trace

        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert color == pytest.approx(BACKGROUND, abs=1e-7)

    def test_ray_past_max_depth_returns_background(self):
        from tinyray.core.tracer import get_max_depth, trace

        _load([((0.0, 0.0, -10.0), 2.0, _red())], [((0.0, 10.0, 0.0), 1.5)])
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=get_max_depth() + 1)
        assert color == pytest.approx(BACKGROUND, abs=1e-7)

    def test_environment_background(self):
        from tinyray.core.tracer import trace
        from tinyray.scene.environment import EnvironmentMap, set_environment

        set_environment(
            EnvironmentMap.from_function(
                lambda d: (1.0, 0.0, 0.0) if d[1] > 0 else (0.0, 0.0, 1.0), width=32, height=16
            )
        )
        assert trace((0.0, 0.0, 0.0), (0.0, 1.0, 0.0)) == pytest.approx((1.0, 0.0, 0.0))
        assert trace((0.0, 0.0, 0.0), (0.0, -1.0, 0.0)) == pytest.approx((0.0, 0.0, 1.0))


class TestDirectLighting:
    """Diffuse and specular terms."""

    def test_single_light_diffuse(self):
        from tinyray.core.tracer import trace

        _load([((0.0, 0.0, -10.0), 2.0, _red())], [((0.0, 10.0, 0.0), 1.5)])
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        # Hit at (0, 0, -8), normal +z, light direction (0, 10, 8) / sqrt(164)
        expected = 1.5 * 8.0 / math.sqrt(164.0)
        assert color == pytest.approx((expected, 0.0, 0.0), abs=1e-5)

    def test_lights_add_up(self):
        from tinyray.core.tracer import trace

        _load(
            [((0.0, 0.0, -10.0), 2.0, _red())],
            [((0.0, 10.0, 0.0), 1.5), ((0.0, 0.0, 0.0), 0.5)],
        )
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        expected = 1.5 * 8.0 / math.sqrt(164.0) + 0.5
        assert color[0] == pytest.approx(expected, abs=1e-5)

    def test_occluded_light_is_skipped(self):
        """A sphere halfway to the first light blocks it; the second still counts."""
        from tinyray.core.tracer import trace

        _load(
            [((0.0, 0.0, -10.0), 2.0, _red()), ((0.0, 5.0, -4.0), 1.0, _red())],
            [((0.0, 10.0, 0.0), 1.5), ((0.0, 0.0, 0.0), 0.5)],
        )
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert color == pytest.approx((0.5, 0.0, 0.0), abs=1e-5)

    def test_light_behind_surface_gives_no_diffuse(self):
        from tinyray.core.tracer import trace

        _load([((0.0, 0.0, -10.0), 2.0, _red())], [((0.0, 0.0, -30.0), 1.0)])
        assert trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.0, 0.0, 0.0))

    def test_specular_highlight_is_white(self):
        """A light behind the camera reflects straight back along the view ray."""
        from tinyray.core.tracer import trace
        from tinyray.materials.phong import Material

        shiny = Material(
            diffuse_color=(0.0, 0.0, 0.0), albedo=(0.0, 1.0, 0.0, 0.0), specular_exponent=50.0
        )
        _load([((0.0, 0.0, -10.0), 2.0, shiny)], [((0.0, 0.0, 5.0), 0.7)])
        assert trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.7, 0.7, 0.7), abs=1e-4)


class TestRecursion:
    """Reflected and refracted contributions."""

    def test_mirror_at_depth_zero_sees_background(self):
        from tinyray.core.tracer import set_max_depth, trace
        from tinyray.scene.tutorial import MIRROR

        set_max_depth(0)
        _load([((0.0, 0.0, -10.0), 2.0, MIRROR)])
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert color == pytest.approx(tuple(0.8 * c for c in BACKGROUND), abs=1e-5)

    @pytest.mark.parametrize("max_depth", [0, 1, 2, 4])
    def test_weights_multiply_per_bounce(self, max_depth):
        """A ray trapped inside a half-reflective sphere bounces max_depth + 1 times."""
        from tinyray.core.tracer import set_max_depth, trace
        from tinyray.materials.phong import Material

        half_mirror = Material(albedo=(0.0, 0.0, 0.5, 0.0))
        set_max_depth(max_depth)
        _load([((0.0, 0.0, -10.0), 2.0, half_mirror)])
        color = trace((0.0, 0.0, -10.0), (0.0, 0.0, -1.0))
        factor = 0.5 ** (max_depth + 1)
        assert color == pytest.approx(tuple(factor * c for c in BACKGROUND), abs=1e-5)

    def test_index_one_glass_is_transparent(self):
        from tinyray.core.tracer import trace
        from tinyray.materials.phong import Material

        clear_glass = Material(albedo=(0.0, 0.0, 0.0, 1.0), refractive_index=1.0)
        _load([((0.0, 0.0, -10.0), 2.0, clear_glass)], [((0.0, 10.0, 0.0), 1.0)])
        color = trace((0.0, 0.0, 0.0), (0.1, 0.05, -1.0))
        assert color == pytest.approx(BACKGROUND, abs=1e-4)

    def test_glass_ray_through_center_is_undeviated(self):
        from tinyray.core.tracer import trace
        from tinyray.materials.phong import Material
        from tinyray.scene.environment import set_environment

        sky = _direction_colored_sky()
        set_environment(sky)
        glass = Material(albedo=(0.0, 0.0, 0.0, 1.0), refractive_index=1.5)
        _load([((0.0, 0.0, -10.0), 2.0, glass)])

        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        # -z lies on a texel edge, so either neighbour may be picked
        assert color == pytest.approx(sky.sample((0.0, 0.0, -1.0)), abs=0.01)

    @pytest.mark.parametrize("direction", [(0.1, 0.0, -1.0), (-0.05, 0.12, -1.0)])
    def test_glass_bends_ray_at_both_surfaces(self, direction):
        """Off-center rays leave a glass ball along the two-interface Snell direction."""
        from tinyray.core.tracer import trace
        from tinyray.materials.phong import Material
        from tinyray.scene.environment import set_environment

        sky = _direction_colored_sky()
        set_environment(sky)
        glass = Material(albedo=(0.0, 0.0, 0.0, 1.0), refractive_index=1.5)
        _load([((0.0, 0.0, -10.0), 2.0, glass)])

        exit_dir = _through_glass_ball((0.0, 0.0, 0.0), direction, (0.0, 0.0, -10.0), 2.0, 1.5)
        expected = sky.sample(exit_dir)
        # The ball deviates the ray visibly, so an unbent ray gives another colour
        assert not sky.sample(_normalize(direction)) == pytest.approx(expected, abs=0.02)

        color = trace((0.0, 0.0, 0.0), direction)
        assert color == pytest.approx(expected, abs=0.02)

    def test_mirror_shows_reflected_sphere(self):
        """A mirror behind the camera's line of sight reflects a lit red sphere."""
        from tinyray.core.tracer import trace
        from tinyray.materials.phong import Material

        mirror = Material(albedo=(0.0, 0.0, 1.0, 0.0))
        _load(
            [((0.0, 0.0, -10.0), 2.0, mirror), ((0.0, 0.0, 10.0), 2.0, _red())],
            [((0.0, 0.0, 0.0), 1.0)],
        )
        color = trace((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        # The reflected ray hits the red sphere head on at (0, 0, 8)
        assert color == pytest.approx((1.0, 0.0, 0.0), abs=1e-4)

    def test_set_max_depth_range(self):
        from tinyray.core.tracer import MAX_SUPPORTED_DEPTH, get_max_depth, set_max_depth

        set_max_depth(MAX_SUPPORTED_DEPTH)
        assert get_max_depth() == MAX_SUPPORTED_DEPTH
        with pytest.raises(ValueError):
            set_max_depth(-1)
        with pytest.raises(ValueError):
            set_max_depth(MAX_SUPPORTED_DEPTH + 1)


class TestToneMapping:
    """Tests for the in-kernel tone_map_max_channel()."""

    @pytest.mark.parametrize(
        ("color", "expected"),
        [
            ((0.2, 0.5, 0.9), (0.2, 0.5, 0.9)),
            ((2.0, 1.0, 0.5), (1.0, 0.5, 0.25)),
            ((-1.0, 0.5, 0.2), (0.0, 0.5, 0.2)),
            ((-1.0, 3.0, 1.5), (0.0, 1.0, 0.5)),
        ],
    )
    def test_tone_map(self, color, expected):
        from tinyray.core.tracer import tone_map_max_channel, vec3

        r, g, b = color
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = tone_map_max_channel(vec3(r, g, b))

        test_kernel()
        assert tuple(float(x) for x in result[None].to_numpy()) == pytest.approx(expected)


class TestRenderTarget:
    """Tests for framebuffer setup."""

    @pytest.mark.parametrize(("width", "height"), [(0, 10), (10, -1), (4096, 10)])
    def test_invalid_dimensions(self, width, height):
        from tinyray.core.tracer import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_row_band_outside_image(self):
        from tinyray.core.tracer import render_rows, setup_render_target

        setup_render_target(8, 6)
        with pytest.raises(ValueError):
            render_rows(4, 7)
        with pytest.raises(ValueError):
            render_rows(3, 2)

    def test_not_set_up(self):
        from tinyray.core import tracer

        tracer._render_target_initialized[None] = 0
        with pytest.raises(RuntimeError):
            tracer.render_image()
        with pytest.raises(RuntimeError):
            tracer.get_framebuffer_numpy()

    def test_render_pixel_matches_trace(self):
        from tinyray.camera.pinhole import primary_ray_direction
        from tinyray.core.tracer import render_pixel, setup_render_target, trace

        _load([((0.0, 0.0, -10.0), 2.0, _red())], [((0.0, 10.0, 0.0), 1.5)])
        setup_render_target(21, 15)
        direction = primary_ray_direction(12, 6, 21, 15, 60.0)
        assert render_pixel(12, 6) == pytest.approx(trace((0.0, 0.0, 0.0), direction), abs=1e-5)
