"""Tests for the per-pixel differencer."""

import numpy as np
import pytest
from PIL import Image

from screenshot_parity.compare.pixels import diff_images, tolerance_threshold
from screenshot_parity.errors import DimensionError


class TestToleranceThreshold:
    def test_default_tolerance(self):
        assert tolerance_threshold(30) == 76

    def test_bounds(self):
        assert tolerance_threshold(0) == 0
        assert tolerance_threshold(100) == 255

    def test_floors(self):
        assert tolerance_threshold(1) == 2
        assert tolerance_threshold(50) == 127


class TestDiffImages:
    """Tests for diff_images."""

    def test_identical_images_have_no_differences(self, solid):
        result = diff_images(solid((40, 30), (12, 200, 90)), solid((40, 30), (12, 200, 90)))
        assert result.metrics.diff_pixels == 0
        assert result.metrics.diff_percentage == 0
        assert result.metrics.similarity_percentage == 100
        assert result.metrics.total_pixels == 1200

    def test_near_identical_reds_are_within_tolerance(self, solid):
        result = diff_images(solid((100, 100), "#FF0000"), solid((100, 100), "#FE0101"), 30)
        assert result.metrics.diff_pixels == 0
        assert result.metrics.similarity_percentage == 100

    def test_black_against_white_differs_everywhere(self, solid):
        result = diff_images(solid((20, 20), "black"), solid((20, 20), "white"), 30)
        assert result.metrics.diff_pixels == 400
        assert result.metrics.diff_percentage == 100
        assert result.metrics.similarity_percentage == 0

    def test_threshold_is_exclusive(self, solid):
        base = solid((1, 2), (100, 100, 100))
        other = Image.new("RGB", (1, 2))
        other.putpixel((0, 0), (176, 100, 100))  # delta 76 == threshold
        other.putpixel((0, 1), (100, 177, 100))  # delta 77 > threshold
        result = diff_images(base, other, 30)
        assert result.metrics.diff_pixels == 1

    def test_largest_channel_delta_decides(self, solid):
        result = diff_images(solid((4, 4), (0, 0, 0)), solid((4, 4), (70, 70, 80)), 30)
        assert result.metrics.diff_pixels == 16

    def test_half_changed_image(self, solid, split_image):
        result = diff_images(
            solid((10, 10), (50, 50, 50)), split_image((10, 10), (50, 50, 50), (250, 50, 50))
        )
        assert result.metrics.diff_pixels == 50
        assert result.metrics.diff_percentage == pytest.approx(50.0)

    def test_similarity_is_exact_complement(self, solid, split_image):
        result = diff_images(
            solid((7, 3), (0, 0, 0)), split_image((7, 3), (0, 0, 0), (255, 255, 255))
        )
        metrics = result.metrics
        assert metrics.similarity_percentage == 100 - metrics.diff_percentage
        assert metrics.diff_pixels <= metrics.total_pixels

    def test_mask_marks_differences_red_and_matches_white(self, solid, split_image):
        result = diff_images(
            solid((10, 4), (0, 0, 0)), split_image((10, 4), (0, 0, 0), (255, 255, 255))
        )
        mask = np.asarray(result.mask)
        assert result.mask.size == (10, 4)
        assert result.mask.mode == "RGB"
        assert tuple(mask[0, 0]) == (255, 255, 255)
        assert tuple(mask[0, 9]) == (255, 0, 0)

    def test_threshold_setting_is_recorded(self, solid):
        result = diff_images(solid((2, 2), "red"), solid((2, 2), "red"), 30, 0.25)
        assert result.metrics.threshold == 0.25
        assert (result.metrics.width, result.metrics.height) == (2, 2)

    def test_mismatched_sizes_raise(self, solid):
        with pytest.raises(DimensionError):
            diff_images(solid((10, 10), "red"), solid((10, 11), "red"))
