"""Persisted comparisons: artifacts, reports, batches and batch summaries."""

from __future__ import annotations

import dataclasses
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from tqdm import tqdm

from .config import ComparisonSettings
from .engine import compare_images, failed_result, new_comparison_id
from .extract.normalize import ImageSource
from .io.models import ArtifactPaths, ComparisonResult
from .io.outputs import save_png, write_error, write_report, write_result
from .io.store import ERROR_FILENAME, RESULT_FILENAME

logger = logging.getLogger(__name__)

FIGMA_PROCESSED = "figma-processed.png"
DEVELOPED_PROCESSED = "developed-processed.png"
DIFF_IMAGE = "pixel-diff.png"
SIDE_BY_SIDE = "side-by-side.png"
REPORT = "detailed-report.html"

ComparisonPair = Tuple[str, ImageSource, ImageSource]

AVG_SIMILARITY_LOW = 80.0
MIN_SIMILARITY_LOW = 60.0
AVG_SIMILARITY_EXCELLENT = 95.0


def run_comparison(
    figma: ImageSource,
    developed: ImageSource,
    output_root: str | Path,
    settings: ComparisonSettings | None = None,
    comparison_id: str | None = None,
) -> ComparisonResult:
    """Compare two screenshots and persist every artifact under ``output_root/<id>``.

    On failure the partially written artifacts are removed, an ``error.json``
    record is left in their place and the exception is re-raised.
    """
    comparison_id = comparison_id or new_comparison_id()
    result_dir = Path(output_root) / comparison_id
    result_dir.mkdir(parents=True, exist_ok=True)
    started = time.perf_counter()
    written: List[Path] = []

    try:
        outcome = compare_images(
            figma, developed, settings, comparison_id=comparison_id
        )
        try:
            rasters = (
                (outcome.normalized.figma, FIGMA_PROCESSED),
                (outcome.normalized.developed, DEVELOPED_PROCESSED),
                (outcome.diff_mask, DIFF_IMAGE),
                (outcome.side_by_side, SIDE_BY_SIDE),
            )
            for image, filename in rasters:
                written.append(save_png(image, result_dir / filename))
        finally:
            outcome.close()

        artifacts = ArtifactPaths(
            figma_processed=str(result_dir / FIGMA_PROCESSED),
            developed_processed=str(result_dir / DEVELOPED_PROCESSED),
            diff_image=str(result_dir / DIFF_IMAGE),
            side_by_side_image=str(result_dir / SIDE_BY_SIDE),
            report=str(result_dir / REPORT),
        )

        result = dataclasses.replace(
            outcome.result,
            artifact_paths=artifacts,
            processing_time_ms=(time.perf_counter() - started) * 1000,
        )
        written.append(write_report(result_dir / REPORT, result))
        written.append(write_result(result_dir / RESULT_FILENAME, result))
    except Exception as exc:
        for path in written:
            path.unlink(missing_ok=True)
        elapsed_ms = (time.perf_counter() - started) * 1000
        failure = failed_result(comparison_id, exc, elapsed_ms)
        write_error(result_dir / ERROR_FILENAME, failure)
        logger.error("Comparison %s failed: %s", comparison_id, exc)
        raise

    return result


def compare_many(
    pairs: Iterable[ComparisonPair],
    output_root: str | Path,
    settings: ComparisonSettings | None = None,
) -> List[Dict[str, Any]]:
    """Compare each ``(name, figma, developed)`` pair, recording failures per pair."""
    entries: List[Dict[str, Any]] = []
    for index, (name, figma, developed) in enumerate(
        tqdm(list(pairs), desc="Comparing screenshots", unit="pair", leave=False),
        start=1,
    ):
        label = name or f"Component {index}"
        try:
            result = run_comparison(figma, developed, output_root, settings)
        except Exception as exc:  # noqa: BLE001
            entries.append({"name": label, "status": "failed", "error": str(exc)})
            continue
        entries.append({"name": label, "status": result.status, "result": result})
    return entries


def summarize_batch(entries: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Aggregate similarity statistics and review advice for a batch."""
    similarities = [
        entry["result"].metrics.overall_similarity
        for entry in entries
        if entry.get("status") == "completed" and entry.get("result") is not None
    ]
    if not similarities:
        return {
            "totalComparisons": len(entries),
            "validComparisons": 0,
            "avgSimilarity": 0.0,
            "minSimilarity": 0.0,
            "maxSimilarity": 0.0,
            "recommendations": ["No valid comparisons completed"],
        }

    avg_similarity = sum(similarities) / len(similarities)
    min_similarity = min(similarities)
    recommendations: List[str] = []
    if avg_similarity < AVG_SIMILARITY_LOW:
        recommendations.append(
            "Significant visual differences detected - review implementation"
        )
    if min_similarity < MIN_SIMILARITY_LOW:
        recommendations.append("Some components have major visual discrepancies")
    if avg_similarity > AVG_SIMILARITY_EXCELLENT:
        recommendations.append("Excellent visual consistency maintained")

    return {
        "totalComparisons": len(entries),
        "validComparisons": len(similarities),
        "avgSimilarity": round(avg_similarity, 2),
        "minSimilarity": round(min_similarity, 2),
        "maxSimilarity": round(max(similarities), 2),
        "recommendations": recommendations,
    }
