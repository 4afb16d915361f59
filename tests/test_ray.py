"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and make_ray
- ray_at for zero, positive and negative t
"""

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from weekend_tracer.core.ray import Ray, ray_at
        from weekend_tracer.core.vector import vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((1.0, 2.0, 3.0))

    def test_ray_at_scales_unnormalized_direction(self):
        """The direction is used as given, without normalization."""
        from weekend_tracer.core.ray import make_ray, ray_at
        from weekend_tracer.core.vector import vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 1.0, 0.0), vec3(2.0, 0.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((5.0, 1.0, 0.0))

    def test_ray_at_negative_t(self):
        """Test ray_at handles negative t (behind origin)."""
        from weekend_tracer.core.ray import make_ray, ray_at
        from weekend_tracer.core.vector import vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, -3.0)

        test_kernel()
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((0.0, 0.0, 3.0))

    def test_make_ray_preserves_fields(self):
        """make_ray stores origin and direction unchanged."""
        from weekend_tracer.core.ray import make_ray
        from weekend_tracer.core.vector import vec3

        origin = ti.field(dtype=ti.math.vec3, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, -2.0, 0.5), vec3(0.0, 3.0, 4.0))
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel()
        o = origin[None]
        d = direction[None]
        assert (o[0], o[1], o[2]) == pytest.approx((1.0, -2.0, 0.5))
        assert (d[0], d[1], d[2]) == pytest.approx((0.0, 3.0, 4.0))
