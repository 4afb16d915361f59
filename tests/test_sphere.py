"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Negative radius (hollow shells)
- The (t_min, t_max] acceptance interval
- Unnormalized ray directions
"""

import pytest
import taichi as ti


def _run_hit(origin, direction, center, radius, t_min=0.001, t_max=1000.0):
    """Intersect one ray with one sphere and return the record as a dict."""
    from weekend_tracer.core.vector import vec3
    from weekend_tracer.geometry.sphere import Sphere, hit_sphere

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, c: vec3, r: ti.f32, lo: ti.f32, hi: ti.f32):
        record = hit_sphere(o, d, Sphere(center=c, radius=r), lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        front_face[None] = record.front_face

    test_kernel(vec3(*origin), vec3(*direction), vec3(*center), radius, t_min, t_max)
    p = point[None]
    n = normal[None]
    return {
        "hit": int(hit[None]),
        "t": float(t_val[None]),
        "point": (p[0], p[1], p[2]),
        "normal": (n[0], n[1], n[2]),
        "front_face": int(front_face[None]),
    }


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from weekend_tracer.core.vector import vec3
        from weekend_tracer.geometry.sphere import make_sphere

        center_result = ti.field(dtype=ti.math.vec3, shape=())
        radius_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), -0.5)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius

        test_kernel()
        c = center_result[None]
        assert (c[0], c[1], c[2]) == pytest.approx((1.0, 2.0, 3.0))
        assert radius_result[None] == pytest.approx(-0.5)

    def test_set_face_normal(self):
        """The returned normal always opposes the ray direction."""
        from weekend_tracer.core.vector import vec3
        from weekend_tracer.geometry.sphere import set_face_normal

        front = ti.field(dtype=ti.i32, shape=2)
        normals = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            outward = vec3(0.0, 0.0, 1.0)
            toward_front, toward_normal = set_face_normal(vec3(0.0, 0.0, -1.0), outward)
            away_front, away_normal = set_face_normal(vec3(0.0, 0.0, 1.0), outward)
            front[0] = toward_front
            normals[0] = toward_normal
            front[1] = away_front
            normals[1] = away_normal

        test_kernel()
        assert front[0] == 1
        assert normals[0][2] == pytest.approx(1.0)
        assert front[1] == 0
        assert normals[1][2] == pytest.approx(-1.0)


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(4.0, abs=1e-5)
        assert rec["point"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)
        assert rec["normal"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)
        assert rec["front_face"] == 1

    def test_miss(self):
        """Test ray missing sphere entirely."""
        rec = _run_hit((0.0, 5.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_sphere_behind_ray(self):
        """Both roots negative: no hit."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_hit_from_inside(self):
        """From inside, the far root is used and the normal is flipped."""
        rec = _run_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(1.0, abs=1e-5)
        assert rec["front_face"] == 0
        # Normal opposes the ray
        assert rec["normal"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)

    def test_negative_radius_flips_normal(self):
        """A negative radius points the geometric normal inward."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), -1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(4.0, abs=1e-5)
        # The outward normal (0,0,-1) agrees with the ray, so it is a back face
        assert rec["front_face"] == 0
        assert rec["normal"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)

    def test_t_max_is_inclusive(self):
        """A root exactly at t_max is accepted."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_max=4.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(4.0)

    def test_t_min_is_exclusive(self):
        """A root exactly at t_min is rejected and the far root is used."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_min=4.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(6.0, abs=1e-5)
        assert rec["front_face"] == 0

    def test_both_roots_outside_interval(self):
        """No hit when neither root lies in (t_min, t_max]."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_max=3.5)
        assert rec["hit"] == 0

    def test_unnormalized_direction(self):
        """t is measured in units of the given direction vector."""
        rec = _run_hit((0.0, 0.0, 5.0), (0.0, 0.0, -2.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(2.0, abs=1e-5)
        assert rec["point"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)

    def test_normal_is_unit_length(self):
        """An off-center hit still produces a unit normal."""
        rec = _run_hit((0.3, 0.4, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 2.0)
        assert rec["hit"] == 1
        nx, ny, nz = rec["normal"]
        assert (nx * nx + ny * ny + nz * nz) == pytest.approx(1.0, abs=1e-5)
