"""Threshold policy turning pixel metrics into discrepancies."""

from __future__ import annotations

from ..config import (
    COLOR_DIFF_HIGH,
    COLOR_DIFF_LOW,
    COLOR_DIFF_MEDIUM,
    LAYOUT_DIFF,
    LAYOUT_DIFF_HIGH,
    ComparisonSettings,
)
from ..io.models import BoundingBox, Discrepancy, PixelMetrics, Severity

COLOR_RECOMMENDATION = (
    "Review color values and ensure design specifications match implementation"
)
LAYOUT_RECOMMENDATION = "Check element positioning, sizing, and alignment"


def color_severity(diff_percentage: float) -> Severity:
    if diff_percentage > COLOR_DIFF_HIGH:
        return "high"
    if diff_percentage > COLOR_DIFF_MEDIUM:
        return "medium"
    return "low"


def layout_severity(diff_percentage: float) -> Severity:
    return "high" if diff_percentage > LAYOUT_DIFF_HIGH else "medium"


def analyze_pixel_metrics(
    metrics: PixelMetrics, settings: ComparisonSettings | None = None
) -> list[Discrepancy]:
    """Return the discrepancies implied by *metrics*.

    Both discrepancy kinds span the whole canvas. Ids are assigned in
    emission order, so the same metrics always yield the same list.
    """
    settings = settings or ComparisonSettings()
    diff_percentage = metrics.diff_percentage
    whole_image = BoundingBox(x=0, y=0, width=metrics.width, height=metrics.height)
    discrepancies: list[Discrepancy] = []

    if settings.color_analysis and diff_percentage > COLOR_DIFF_LOW:
        discrepancies.append(
            Discrepancy(
                id=f"disc_{len(discrepancies) + 1}",
                type="color",
                severity=color_severity(diff_percentage),
                description=(
                    "Significant color differences detected "
                    f"({diff_percentage:.1f}% of pixels differ)"
                ),
                bounding_box=whole_image,
                recommendation=COLOR_RECOMMENDATION,
            )
        )

    if settings.layout_analysis and diff_percentage > LAYOUT_DIFF:
        discrepancies.append(
            Discrepancy(
                id=f"disc_{len(discrepancies) + 1}",
                type="layout",
                severity=layout_severity(diff_percentage),
                description=(
                    "Major layout differences detected "
                    f"({diff_percentage:.1f}% of pixels differ)"
                ),
                bounding_box=whole_image,
                recommendation=LAYOUT_RECOMMENDATION,
            )
        )

    return discrepancies
