"""Unit tests for the Dielectric material module.

Tests cover:
- White attenuation and unconditional scattering
- Total internal reflection (TIR)
- Schlick reflection probability at normal incidence
- Index-matched boundaries pass rays straight through
- Material registry operations and IOR validation
"""

import numpy as np
import pytest
import taichi as ti

NUM_SAMPLES = 4096


def _scatter_many(ior, direction, front_face, normal=(0.0, 1.0, 0.0), n=NUM_SAMPLES):
    """Scatter n copies of one incoming ray through a dielectric boundary."""
    from weekend_tracer.core.ray import make_ray
    from weekend_tracer.core.vector import vec3
    from weekend_tracer.materials.dielectric import scatter_dielectric
    from weekend_tracer.scene.intersection import SceneHitRecord

    directions = ti.Vector.field(3, dtype=ti.f32, shape=n)
    attenuations = ti.Vector.field(3, dtype=ti.f32, shape=n)
    scattered_flags = ti.field(dtype=ti.i32, shape=n)

    @ti.kernel
    def test_kernel(eta: ti.f32, d: vec3, ff: ti.i32, nrm: vec3):
        for i in range(n):
            ray_in = make_ray(vec3(0.0, 1.0, 0.0), d)
            rec = SceneHitRecord(
                hit=1,
                t=1.0,
                point=vec3(0.0, 0.0, 0.0),
                normal=nrm,
                front_face=ff,
                material_id=0,
            )
            scattered, att, did = scatter_dielectric(eta, ray_in, rec)
            directions[i] = scattered.direction
            attenuations[i] = att
            scattered_flags[i] = did

    test_kernel(ior, vec3(*direction), front_face, vec3(*normal))
    return directions.to_numpy(), attenuations.to_numpy(), scattered_flags.to_numpy()


class TestDielectricScatter:
    """Tests for scatter_dielectric."""

    def test_attenuation_is_white_and_always_scatters(self):
        """Glass never absorbs and never tints."""
        _, attenuations, flags = _scatter_many(1.5, (0.3, -1.0, 0.2), 1)
        np.testing.assert_allclose(attenuations, 1.0)
        assert np.all(flags == 1)

    def test_total_internal_reflection(self):
        """Leaving glass at a steep angle always reflects."""
        # cos_theta = 0.6, sin_theta = 0.8; 1.5 * 0.8 > 1
        directions, _, _ = _scatter_many(1.5, (0.8, -0.6, 0.0), 0, n=256)
        np.testing.assert_allclose(directions, np.tile([0.8, 0.6, 0.0], (256, 1)), atol=1e-5)

    def test_normal_incidence_mostly_refracts(self):
        """Head-on, glass reflects with probability r0 = 0.04."""
        directions, _, _ = _scatter_many(1.5, (0.0, -1.0, 0.0), 1)
        reflected = directions[:, 1] > 0.0
        assert 0.02 < reflected.mean() < 0.07
        # Refracted rays continue straight through
        np.testing.assert_allclose(directions[~reflected], np.tile([0.0, -1.0, 0.0], ((~reflected).sum(), 1)), atol=1e-5)

    def test_refraction_bends_toward_normal(self):
        """Entering glass, the refracted ray bends toward the normal."""
        inv_sqrt2 = 1.0 / np.sqrt(2.0)
        directions, _, _ = _scatter_many(1.5, (inv_sqrt2, -inv_sqrt2, 0.0), 1)
        refracted = directions[directions[:, 1] < 0.0]
        assert len(refracted) > NUM_SAMPLES // 2
        sin_theta2 = inv_sqrt2 / 1.5
        np.testing.assert_allclose(refracted[:, 0], sin_theta2, atol=1e-5)

    @pytest.mark.parametrize("front_face", [0, 1])
    def test_index_matched_boundary_is_transparent(self, front_face):
        """With ior 1 every scattered ray is colinear with the incoming ray."""
        incoming = np.array([0.3, -0.8, 0.52])
        directions, _, _ = _scatter_many(1.0, tuple(incoming), front_face)
        unit_in = incoming / np.linalg.norm(incoming)
        unit_out = directions / np.linalg.norm(directions, axis=1, keepdims=True)
        np.testing.assert_allclose(unit_out, np.tile(unit_in, (NUM_SAMPLES, 1)), atol=1e-5)


class TestDielectricRegistry:
    """Tests for the dielectric material registry."""

    def test_add_and_lookup(self):
        """IOR round-trips through the registry."""
        from weekend_tracer.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_ior,
            get_dielectric_material_count,
        )

        add_dielectric_material(1.5)
        add_dielectric_material(2.4)
        assert get_dielectric_material_count() == 2

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_dielectric_ior(1)

        test_kernel()
        assert result[None] == pytest.approx(2.4)

    def test_default_ior(self):
        """The default is typical glass."""
        from weekend_tracer.materials.dielectric import add_dielectric_material, get_dielectric_ior

        idx = add_dielectric_material()
        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(i: ti.i32):
            result[None] = get_dielectric_ior(i)

        test_kernel(idx)
        assert result[None] == pytest.approx(1.5)

    @pytest.mark.parametrize("ior", [0.0, -1.5])
    def test_non_positive_ior_rejected(self, ior):
        """IOR must be positive."""
        from weekend_tracer.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_material_count,
        )

        with pytest.raises(ValueError):
            add_dielectric_material(ior)
        assert get_dielectric_material_count() == 0

    def test_ior_below_one_accepted(self):
        """Indices below 1 (e.g. an air bubble in water) are valid."""
        from weekend_tracer.materials.dielectric import add_dielectric_material

        assert add_dielectric_material(0.75) == 0


class TestDielectricMaterialDataclass:
    """Tests for the DielectricMaterial dataclass."""

    def test_dataclass_ior(self):
        """The refraction ratio follows the struct's ior and the face side."""
        from weekend_tracer.materials.dielectric import DielectricMaterial, refraction_ratio_for

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            mat = DielectricMaterial(ior=2.0)
            result[0] = refraction_ratio_for(mat.ior, 1)
            result[1] = refraction_ratio_for(mat.ior, 0)

        test_kernel()
        assert result[0] == pytest.approx(0.5)
        assert result[1] == pytest.approx(2.0)
