"""Quality scoring and discrepancy tallies."""

from __future__ import annotations

from typing import Dict, Sequence

from ..config import DISCREPANCY_PENALTY, HIGH_SEVERITY_PENALTY
from ..io.models import (
    DISCREPANCY_TYPES,
    SEVERITIES,
    ComparisonMetrics,
    Discrepancy,
    PixelMetrics,
)


def quality_score(
    similarity: float, total_discrepancies: int, high_severity_count: int
) -> float:
    """Return the pixel similarity minus discrepancy penalties, clamped to 0..100."""
    score = float(similarity)
    score -= total_discrepancies * DISCREPANCY_PENALTY
    score -= high_severity_count * HIGH_SEVERITY_PENALTY
    return float(max(0.0, min(100.0, score)))


def severity_breakdown(discrepancies: Sequence[Discrepancy]) -> Dict[str, int]:
    counts = {severity: 0 for severity in SEVERITIES}
    for discrepancy in discrepancies:
        counts[discrepancy.severity] += 1
    return counts


def discrepancy_types(discrepancies: Sequence[Discrepancy]) -> Dict[str, int]:
    counts = {kind: 0 for kind in DISCREPANCY_TYPES}
    for discrepancy in discrepancies:
        counts[discrepancy.type] += 1
    return counts


def build_metrics(
    pixel_metrics: PixelMetrics, discrepancies: Sequence[Discrepancy]
) -> ComparisonMetrics:
    """Fold pixel metrics and discrepancies into the scored summary."""
    severities = severity_breakdown(discrepancies)
    return ComparisonMetrics(
        overall_similarity=pixel_metrics.similarity_percentage,
        pixel_differences=pixel_metrics.diff_pixels,
        total_pixels=pixel_metrics.total_pixels,
        total_discrepancies=len(discrepancies),
        severity_breakdown=severities,
        discrepancy_types=discrepancy_types(discrepancies),
        quality_score=quality_score(
            pixel_metrics.similarity_percentage,
            len(discrepancies),
            severities["high"],
        ),
    )
