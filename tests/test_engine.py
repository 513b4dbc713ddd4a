"""End-to-end tests for the in-memory comparison engine."""

import dataclasses
import re

import pytest
from PIL import Image

from screenshot_parity import engine
from screenshot_parity.config import ComparisonSettings
from screenshot_parity.engine import compare_images, failed_result, new_comparison_id
from screenshot_parity.errors import DecodeError, ProcessingError


@pytest.fixture
def run():
    outcomes = []

    def _run(*args, **kwargs):
        outcome = compare_images(*args, **kwargs)
        outcomes.append(outcome)
        return outcome

    yield _run
    for outcome in outcomes:
        outcome.close()


class TestCompareImages:
    """Scenarios from identical screenshots to wholly different ones."""

    def test_identical_images(self, run, solid):
        outcome = run(solid((64, 64), (60, 120, 200)), solid((64, 64), (60, 120, 200)))
        result = outcome.result
        assert result.status == "completed"
        assert result.pixel_metrics.diff_pixels == 0
        assert result.metrics.overall_similarity == 100
        assert result.discrepancies == []
        assert result.quality_score == 100
        assert result.metrics.quality_score == 100
        assert result.color_comparison.color_similarity_percent == 100
        assert set(result.perceptual["distances"].values()) == {0}

    def test_black_against_white(self, run, solid):
        result = run(solid((100, 100), "black"), solid((100, 100), "white")).result
        assert result.pixel_metrics.diff_percentage == 100
        assert [(d.type, d.severity) for d in result.discrepancies] == [
            ("color", "high"),
            ("layout", "high"),
        ]
        assert result.quality_score == 0
        assert result.palettes.figma == []
        assert result.palettes.developed == []
        assert result.color_comparison.color_similarity_percent == 0

    def test_colors_within_tolerance(self, run, solid):
        result = run(solid((100, 100), "#FF0000"), solid((100, 100), "#FE0101")).result
        assert result.pixel_metrics.diff_pixels == 0
        assert result.pixel_metrics.similarity_percentage == 100
        assert result.discrepancies == []
        assert len(result.color_comparison.matched_colors) == 1

    def test_mismatched_sizes_are_normalized(self, run, solid):
        outcome = run(solid((50, 50), "red"), solid((100, 80), "blue"))
        assert outcome.normalized.figma.size == (100, 80)
        assert outcome.diff_mask.size == (100, 80)
        assert outcome.side_by_side.size == (340, 140)
        assert outcome.result.pixel_metrics.total_pixels == 8000

    def test_side_by_side_layout(self, run, solid):
        outcome = run(solid((20, 10), (0, 200, 0)), solid((20, 10), (0, 0, 200)))
        composite = outcome.side_by_side
        assert composite.size == (100, 70)
        assert composite.getpixel((15, 35)) == (0, 200, 0)
        assert composite.getpixel((45, 35)) == (0, 0, 200)
        assert composite.getpixel((75, 35)) == (255, 0, 0)
        assert composite.getpixel((5, 65)) == (255, 255, 255)

    def test_settings_are_echoed(self, run, solid):
        settings = ComparisonSettings(pixel_threshold=0.2, color_tolerance_percent=10)
        result = run(solid((8, 8), "red"), solid((8, 8), "red"), settings).result
        assert result.settings["colorTolerancePercent"] == 10
        assert result.pixel_metrics.threshold == 0.2

    def test_color_analysis_disabled(self, run, solid):
        settings = ComparisonSettings(color_analysis=False)
        result = run(solid((10, 10), "black"), solid((10, 10), "white"), settings).result
        assert result.palettes is None
        assert result.color_comparison is None
        assert [d.type for d in result.discrepancies] == ["layout"]

    def test_explicit_id(self, run, solid):
        result = run(solid((4, 4), "red"), solid((4, 4), "red"), comparison_id="comp_fixed").result
        assert result.id == "comp_fixed"
        assert result.created_at.endswith("Z")

    def test_insights_are_attached(self, run, solid):
        result = run(solid((10, 10), "black"), solid((10, 10), "white")).result
        assert result.insights["overallScore"] == result.quality_score
        assert result.insights["issueBreakdown"]["total"] == 2

    def test_result_is_immutable(self, run, solid):
        result = run(solid((4, 4), "red"), solid((4, 4), "red")).result
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.quality_score = 1

    def test_undecodable_input(self, solid, png_bytes):
        with pytest.raises(DecodeError):
            compare_images(b"not a png", png_bytes(solid((4, 4), "red")))

    def test_stage_failure_becomes_processing_error(self, monkeypatch, solid):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine, "extract_dominant_colors", broken)
        with pytest.raises(ProcessingError) as excinfo:
            compare_images(solid((4, 4), "red"), solid((4, 4), "blue"))
        assert excinfo.value.stage == "color extraction"
        assert "boom" in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_premultiplied_input_is_compared(self, run, solid):
        design = Image.new("LA", (6, 6), color=(0, 0)).convert("La")
        result = run(design, solid((6, 6), "white")).result
        assert result.pixel_metrics.diff_pixels == 0

    def test_normalize_failure_becomes_processing_error(self, monkeypatch, solid):
        def broken(*args, **kwargs):
            raise RuntimeError("unsupported")

        monkeypatch.setattr(engine, "normalize_pair", broken)
        with pytest.raises(ProcessingError) as excinfo:
            compare_images(solid((4, 4), "red"), solid((4, 4), "red"))
        assert excinfo.value.stage == "normalize"


class TestIdentifiers:
    def test_comparison_id_format(self):
        assert re.fullmatch(r"comp_\d+_[0-9a-f]{9}", new_comparison_id())

    def test_ids_are_unique(self):
        assert len({new_comparison_id() for _ in range(50)}) == 50

    def test_failed_result(self):
        result = failed_result("comp_1", DecodeError("bad bytes"), 12.5)
        assert result.status == "failed"
        assert result.error == "bad bytes"
        assert result.metrics is None
        assert result.processing_time_ms == 12.5
