"""Data models shared across the screenshot comparison pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping

Source = Literal["figma", "developed"]
Severity = Literal["low", "medium", "high"]
DiscrepancyType = Literal[
    "color", "layout", "text", "spacing", "missing-element", "extra-element"
]
Status = Literal["completed", "failed"]

SEVERITIES: tuple[Severity, ...] = ("high", "medium", "low")
DISCREPANCY_TYPES: tuple[DiscrepancyType, ...] = (
    "color",
    "layout",
    "text",
    "spacing",
    "missing-element",
    "extra-element",
)


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned pixel region."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class RGB:
    r: int
    g: int
    b: int

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)


@dataclass(frozen=True, slots=True)
class PixelMetrics:
    """Aggregate result of the per-pixel difference pass."""

    total_pixels: int
    diff_pixels: int
    diff_percentage: float
    similarity_percentage: float
    width: int
    height: int
    threshold: float = 0.1


@dataclass(frozen=True, slots=True)
class ColorSample:
    """One dominant color of a palette."""

    hex: str
    rgb: RGB
    count: int
    frequency_percent: float
    source: Source
    bounding_box: BoundingBox


@dataclass(frozen=True, slots=True)
class ColorMatch:
    figma_color: str
    developed_color: str
    distance: float
    similarity: float
    figma_frequency: float
    developed_frequency: float


@dataclass(frozen=True, slots=True)
class UnmatchedColor:
    """A palette entry without a counterpart within the match distance."""

    color: str
    frequency: float
    closest_match: str | None
    distance: float | None


@dataclass(frozen=True, slots=True)
class ColorComparison:
    matched_colors: List[ColorMatch] = field(default_factory=list)
    missing_colors: List[UnmatchedColor] = field(default_factory=list)
    extra_colors: List[UnmatchedColor] = field(default_factory=list)
    color_similarity_percent: float = 0.0
    total_figma_colors: int = 0
    total_developed_colors: int = 0


@dataclass(frozen=True, slots=True)
class Discrepancy:
    """A typed, severity-ranked difference between design and implementation."""

    id: str
    type: DiscrepancyType
    severity: Severity
    description: str
    bounding_box: BoundingBox
    recommendation: str


@dataclass(frozen=True, slots=True)
class ComparisonMetrics:
    """Scored summary folded from pixel metrics and discrepancies."""

    overall_similarity: float
    pixel_differences: int
    total_pixels: int
    total_discrepancies: int
    severity_breakdown: Dict[str, int]
    discrepancy_types: Dict[str, int]
    quality_score: float


@dataclass(frozen=True, slots=True)
class Palettes:
    figma: List[ColorSample] = field(default_factory=list)
    developed: List[ColorSample] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ArtifactPaths:
    """Locations of persisted raster and report artifacts."""

    figma_processed: str | None = None
    developed_processed: str | None = None
    diff_image: str | None = None
    side_by_side_image: str | None = None
    report: str | None = None


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """Outcome of one comparison invocation."""

    id: str
    status: Status
    created_at: str
    processing_time_ms: float
    settings: Mapping[str, Any] = field(default_factory=dict)
    pixel_metrics: PixelMetrics | None = None
    metrics: ComparisonMetrics | None = None
    palettes: Palettes | None = None
    color_comparison: ColorComparison | None = None
    discrepancies: List[Discrepancy] = field(default_factory=list)
    quality_score: float | None = None
    insights: Dict[str, Any] = field(default_factory=dict)
    perceptual: Dict[str, Any] = field(default_factory=dict)
    artifact_paths: ArtifactPaths = field(default_factory=ArtifactPaths)
    error: str | None = None
