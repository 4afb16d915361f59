"""Tests for image encoding and export.

These tests need no Taichi fields, only numpy arrays.
"""

import numpy as np
import pytest
from PIL import Image as PILImage

from weekend_tracer.preview.export import compute_rmse, encode_colors, save_image, save_png, write_ppm


class TestEncodeColors:
    """Tests for encode_colors."""

    def test_gamma_and_scaling(self):
        """Averages are square-rooted and scaled by 256."""
        sums = np.array([[[0.0, 0.25, 1.0], [2.0, 0.5, 0.7]]])
        encoded = encode_colors(sums, 2)
        # 0 -> 0, sqrt(0.125) -> 90, sqrt(0.5) -> 181, 1 -> 255, sqrt(0.25) -> 128, sqrt(0.35) -> 151
        np.testing.assert_array_equal(encoded, [[[0, 90, 181], [255, 128, 151]]])
        assert encoded.dtype == np.uint8

    def test_saturation_clamps(self):
        """Values at or above 1 encode to 255."""
        encoded = encode_colors(np.array([[[1.0, 4.0, 100.0]]]), 1)
        np.testing.assert_array_equal(encoded, [[[255, 255, 255]]])

    def test_nan_and_negative_encode_to_zero(self):
        """Channels without a real square root encode to 0."""
        encoded = encode_colors(np.array([[[np.nan, -1.0, 0.0]]]), 1)
        np.testing.assert_array_equal(encoded, [[[0, 0, 0]]])

    def test_per_pixel_counts(self):
        """Counts may vary per pixel."""
        sums = np.array([[[1.0, 1.0, 1.0], [1.0, 1.0, 1.0]]])
        counts = np.array([[[1], [4]]])
        encoded = encode_colors(sums, counts)
        np.testing.assert_array_equal(encoded, [[[255, 255, 255], [128, 128, 128]]])

    @pytest.mark.parametrize("samples", [0, -3])
    def test_non_positive_samples_rejected(self, samples):
        """Sample counts must be positive."""
        with pytest.raises(ValueError):
            encode_colors(np.zeros((1, 1, 3)), samples)


class TestWriters:
    """Tests for write_ppm, save_png and save_image."""

    def _image(self):
        return np.array(
            [
                [[255, 0, 0], [0, 255, 0], [0, 0, 255]],
                [[10, 20, 30], [40, 50, 60], [70, 80, 90]],
            ],
            dtype=np.uint8,
        )

    def test_write_ppm(self, tmp_path):
        """P3 header followed by one triple per line, top row first."""
        path = tmp_path / "out.ppm"
        write_ppm(self._image(), path)

        assert path.read_text() == (
            "P3\n3 2\n255\n"
            "255 0 0\n0 255 0\n0 0 255\n"
            "10 20 30\n40 50 60\n70 80 90\n"
        )

    def test_write_ppm_rejects_non_rgb(self, tmp_path):
        """Only (H, W, 3) images are accepted."""
        with pytest.raises(ValueError):
            write_ppm(np.zeros((2, 2), dtype=np.uint8), tmp_path / "out.ppm")

    def test_save_png(self, tmp_path):
        """PNG files read back with the same pixels."""
        path = tmp_path / "out.png"
        save_png(self._image(), path)

        with PILImage.open(path) as img:
            assert img.size == (3, 2)
            np.testing.assert_array_equal(np.array(img.convert("RGB")), self._image())

    def test_save_image_dispatch(self, tmp_path):
        """The extension picks the writer."""
        ppm_path = tmp_path / "out.PPM"
        png_path = tmp_path / "out.png"
        save_image(self._image(), ppm_path)
        save_image(self._image(), png_path)

        assert ppm_path.read_text().startswith("P3\n")
        assert png_path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


class TestComputeRmse:
    """Tests for compute_rmse."""

    def test_identical_images(self):
        image = np.random.default_rng(0).random((4, 4, 3))
        assert compute_rmse(image, image) == 0.0

    def test_known_difference(self):
        a = np.zeros((2, 2, 3))
        b = np.full((2, 2, 3), 0.5)
        assert compute_rmse(a, b) == pytest.approx(0.5)

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))
