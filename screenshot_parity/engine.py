"""In-memory comparison of a design screenshot against its implementation."""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from PIL import Image

from .analyze.discrepancies import analyze_pixel_metrics
from .analyze.insights import build_insights
from .analyze.scoring import build_metrics
from .compare.pixels import diff_images
from .config import ComparisonSettings
from .errors import ComparisonError, ProcessingError
from .extract.normalize import ImageSource, NormalizedPair, normalize_pair
from .features.color import extract_dominant_colors
from .features.perceptual import fingerprint_pair
from .group.color_match import compare_palettes
from .io.models import ComparisonResult, Palettes
from .render.composite import side_by_side

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ComparisonOutcome:
    """A completed result together with the rasters it was derived from."""

    result: ComparisonResult
    normalized: NormalizedPair
    diff_mask: Image.Image
    side_by_side: Image.Image

    def close(self) -> None:
        self.normalized.close()
        self.diff_mask.close()
        self.side_by_side.close()


def new_comparison_id() -> str:
    return f"comp_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def compare_images(
    figma: ImageSource,
    developed: ImageSource,
    settings: ComparisonSettings | None = None,
    comparison_id: str | None = None,
) -> ComparisonOutcome:
    """Run the full comparison pipeline without touching the filesystem.

    Raises :class:`DecodeError` or :class:`DimensionError` for unusable
    inputs; any other failure inside a stage surfaces as
    :class:`ProcessingError`.
    """
    settings = settings or ComparisonSettings()
    comparison_id = comparison_id or new_comparison_id()
    started = time.perf_counter()

    try:
        normalized = normalize_pair(figma, developed)
    except ComparisonError:
        raise
    except Exception as exc:
        raise ProcessingError("normalize", str(exc)) from exc

    diff_mask: Image.Image | None = None
    try:
        stage = "pixel diff"
        pixel_diff = diff_images(
            normalized.figma,
            normalized.developed,
            color_tolerance_percent=settings.color_tolerance_percent,
            pixel_threshold=settings.pixel_threshold,
        )
        diff_mask = pixel_diff.mask

        palettes = None
        color_comparison = None
        if settings.color_analysis:
            stage = "color extraction"
            palettes = Palettes(
                figma=extract_dominant_colors(normalized.figma, "figma"),
                developed=extract_dominant_colors(normalized.developed, "developed"),
            )
            stage = "color matching"
            color_comparison = compare_palettes(palettes.figma, palettes.developed)

        stage = "discrepancy analysis"
        discrepancies = analyze_pixel_metrics(pixel_diff.metrics, settings)
        metrics = build_metrics(pixel_diff.metrics, discrepancies)

        stage = "perceptual hashing"
        perceptual = fingerprint_pair(normalized.figma, normalized.developed)

        stage = "side-by-side composite"
        composite = side_by_side(normalized.figma, normalized.developed, diff_mask)
    except ComparisonError:
        _release(normalized, diff_mask)
        raise
    except Exception as exc:
        _release(normalized, diff_mask)
        raise ProcessingError(stage, str(exc)) from exc

    created_at = utc_timestamp()
    result = ComparisonResult(
        id=comparison_id,
        status="completed",
        created_at=created_at,
        processing_time_ms=(time.perf_counter() - started) * 1000,
        settings=settings.as_options(),
        pixel_metrics=pixel_diff.metrics,
        metrics=metrics,
        palettes=palettes,
        color_comparison=color_comparison,
        discrepancies=discrepancies,
        quality_score=metrics.quality_score,
        insights=build_insights(metrics, discrepancies, created_at),
        perceptual=perceptual,
    )
    logger.info(
        "Comparison %s: similarity=%.2f%% discrepancies=%d quality=%.1f",
        comparison_id,
        metrics.overall_similarity,
        metrics.total_discrepancies,
        metrics.quality_score,
    )
    return ComparisonOutcome(
        result=result,
        normalized=normalized,
        diff_mask=diff_mask,
        side_by_side=composite,
    )


def failed_result(
    comparison_id: str, error: BaseException, processing_time_ms: float
) -> ComparisonResult:
    """Return the record kept for a comparison that did not complete."""
    return ComparisonResult(
        id=comparison_id,
        status="failed",
        created_at=utc_timestamp(),
        processing_time_ms=processing_time_ms,
        error=str(error),
    )


def _release(normalized: NormalizedPair, diff_mask: Image.Image | None) -> None:
    normalized.close()
    if diff_mask is not None:
        diff_mask.close()
