"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Mirror reflection
- Snell refraction, including index 1.0 and total internal reflection
- Origin offsets for secondary rays
"""

import math

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from tinyray.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert r[0] == pytest.approx(1.0)
        assert r[1] == pytest.approx(2.0)
        assert r[2] == pytest.approx(3.0)

    def test_ray_at_positive_t(self):
        """Test ray_at computes correct point along ray."""
        from tinyray.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 5.0)

        test_kernel()
        r = result[None]
        assert r[0] == pytest.approx(0.0)
        assert r[1] == pytest.approx(0.0)
        assert r[2] == pytest.approx(-5.0)


class TestReflect:
    """Tests for mirror reflection."""

    def test_reflect_flips_normal_component(self):
        """A 45 degree ray bounces off a horizontal surface."""
        from tinyray.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(1.0, -1.0, 0.0))
            result[None] = reflect(incident, vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        s = 1.0 / math.sqrt(2.0)
        assert r[0] == pytest.approx(s, abs=1e-6)
        assert r[1] == pytest.approx(s, abs=1e-6)
        assert r[2] == pytest.approx(0.0, abs=1e-6)

    def test_reflect_head_on(self):
        """A ray hitting the surface head-on comes straight back."""
        from tinyray.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 1.0))

        test_kernel()
        r = result[None]
        assert r[2] == pytest.approx(1.0, abs=1e-6)

    def test_reflect_independent_of_normal_orientation(self):
        """Flipping the normal gives the same reflected direction."""
        from tinyray.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(0.3, -0.8, 0.2))
            n = ti.math.normalize(vec3(0.1, 1.0, 0.0))
            result[0] = reflect(incident, n)
            result[1] = reflect(incident, -n)

        test_kernel()
        for c in range(3):
            assert result[0][c] == pytest.approx(result[1][c], abs=1e-6)


class TestRefract:
    """Tests for Snell refraction."""

    def test_index_one_leaves_direction_unchanged(self):
        """A refractive index of 1.0 does not bend rays."""
        from tinyray.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(0.4, -0.7, -0.5))
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), 1.0)

        test_kernel()
        r = result[None]
        length = math.sqrt(0.4**2 + 0.7**2 + 0.5**2)
        assert r[0] == pytest.approx(0.4 / length, abs=1e-5)
        assert r[1] == pytest.approx(-0.7 / length, abs=1e-5)
        assert r[2] == pytest.approx(-0.5 / length, abs=1e-5)

    def test_normal_incidence_passes_straight(self):
        """Rays along the normal are not bent for any index."""
        from tinyray.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.5)

        test_kernel()
        r = result[None]
        assert r[1] == pytest.approx(-1.0, abs=1e-6)

    def test_entering_bends_toward_normal(self):
        """Snell's law: sin(theta_t) = sin(theta_i) / n when entering."""
        from tinyray.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(1.0, -1.0, 0.0))
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), 1.5)

        test_kernel()
        r = result[None]
        sin_i = 1.0 / math.sqrt(2.0)
        assert r[0] == pytest.approx(sin_i / 1.5, abs=1e-5)
        assert r[1] < 0.0
        assert math.sqrt(r[0] ** 2 + r[1] ** 2 + r[2] ** 2) == pytest.approx(1.0, abs=1e-5)

    def test_leaving_bends_away_from_normal(self):
        """A ray inside the material (d . n > 0) uses the inverted ratio."""
        from tinyray.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            # Travelling upward out of a surface whose outward normal is +y
            incident = ti.math.normalize(vec3(0.3, 1.0, 0.0))
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), 1.5)

        test_kernel()
        r = result[None]
        sin_i = 0.3 / math.sqrt(1.09)
        assert r[0] == pytest.approx(sin_i * 1.5, abs=1e-5)
        assert r[1] > 0.0

    def test_total_internal_reflection_returns_reflection(self):
        """Beyond the critical angle the mirror reflection is returned."""
        from tinyray.core.ray import reflect, refract, vec3

        refracted = ti.field(dtype=ti.math.vec3, shape=())
        reflected = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            n = vec3(0.0, 1.0, 0.0)
            # Grazing ray leaving glass: sin_i * 1.5 > 1
            incident = ti.math.normalize(vec3(1.0, 0.2, 0.0))
            refracted[None] = refract(incident, n, 1.5)
            reflected[None] = reflect(incident, n)

        test_kernel()
        for c in range(3):
            assert refracted[None][c] == pytest.approx(reflected[None][c], abs=1e-6)

    def test_grazing_entry_still_transmits(self):
        """Entering a denser medium never reflects totally."""
        from tinyray.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(1.0, -0.05, 0.0))
            result[None] = refract(incident, vec3(0.0, 1.0, 0.0), 1.5)

        test_kernel()
        # Transmitted rays keep heading into the surface; a reflection would not
        assert result[None][1] < 0.0
        # The ray bends toward the normal: sin_t = sin_i / 1.5
        assert result[None][0] == pytest.approx(1.0 / math.sqrt(1.0025) / 1.5, abs=1e-5)


class TestOffsetOrigin:
    """Tests for secondary ray origin offsets."""

    def test_offset_along_normal_for_outgoing_ray(self):
        from tinyray.core.ray import RAY_EPSILON, offset_origin, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = offset_origin(
                vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), vec3(0.5, 0.5, 0.0)
            )

        test_kernel()
        assert result[None][1] == pytest.approx(RAY_EPSILON, abs=1e-7)

    def test_offset_against_normal_for_transmitted_ray(self):
        from tinyray.core.ray import RAY_EPSILON, offset_origin, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = offset_origin(
                vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), vec3(0.5, -0.5, 0.0)
            )

        test_kernel()
        assert result[None][1] == pytest.approx(-RAY_EPSILON, abs=1e-7)
