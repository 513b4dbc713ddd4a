"""Thresholds and per-run settings for screenshot comparisons."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping

logger = logging.getLogger(__name__)

# Pixel differencing
PIXEL_THRESHOLD_DEFAULT: float = 0.1
COLOR_TOLERANCE_DEFAULT: int = 30

# Palette extraction
SAMPLE_SIZE: int = 200
NEAR_WHITE: int = 245
NEAR_BLACK: int = 10
CLUSTER_TOLERANCE: int = 20
PALETTE_SIZE: int = 15

# Palette matching
MATCH_TOP_K: int = 10
MATCH_DISTANCE: float = 30.0
LUMA_WEIGHTS: tuple[float, float, float] = (0.30, 0.59, 0.11)

# Discrepancy thresholds, in percent of differing pixels
COLOR_DIFF_LOW: float = 5.0
COLOR_DIFF_MEDIUM: float = 8.0
COLOR_DIFF_HIGH: float = 15.0
LAYOUT_DIFF: float = 10.0
LAYOUT_DIFF_HIGH: float = 20.0

# Quality score penalties
DISCREPANCY_PENALTY: float = 2.0
HIGH_SEVERITY_PENALTY: float = 5.0

# Raster colors
BACKGROUND_RGB: tuple[int, int, int] = (255, 255, 255)
DIFF_MARKER_RGB: tuple[int, int, int] = (255, 0, 0)
MATCH_MARKER_RGB: tuple[int, int, int] = (255, 255, 255)

# Side-by-side layout
COMPOSITE_MARGIN: int = 10
COMPOSITE_TOP: int = 30
COMPOSITE_LABEL_SPACE: int = 60

_OPTION_ALIASES: dict[str, str] = {
    "pixelThreshold": "pixel_threshold",
    "threshold": "pixel_threshold",
    "colorTolerancePercent": "color_tolerance_percent",
    "colorTolerance": "color_tolerance_percent",
    "ignoreAntiAliasing": "ignore_anti_aliasing",
    "includeTextAnalysis": "include_text_analysis",
    "layoutAnalysis": "layout_analysis",
    "colorAnalysis": "color_analysis",
    "spacingAnalysis": "spacing_analysis",
}


@dataclass(frozen=True, slots=True)
class ComparisonSettings:
    """Options recognised by a single comparison run."""

    pixel_threshold: float = PIXEL_THRESHOLD_DEFAULT
    color_tolerance_percent: int = COLOR_TOLERANCE_DEFAULT
    ignore_anti_aliasing: bool = False
    include_text_analysis: bool = True
    layout_analysis: bool = True
    color_analysis: bool = True
    spacing_analysis: bool = True

    def __post_init__(self) -> None:
        if not 0 <= self.color_tolerance_percent <= 100:
            raise ValueError(
                "color_tolerance_percent must be within 0..100, "
                f"got {self.color_tolerance_percent}"
            )
        if self.pixel_threshold < 0:
            raise ValueError(
                f"pixel_threshold must not be negative, got {self.pixel_threshold}"
            )

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "ComparisonSettings":
        """Build settings from camelCase or snake_case *options*.

        Unknown keys are ignored and omitted keys keep their defaults.
        """
        if not options:
            return cls()

        known = {field.name for field in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                logger.debug("Ignoring unrecognised comparison option %r", key)
                continue
            if value is None:
                continue
            values[name] = value

        if "pixel_threshold" in values:
            values["pixel_threshold"] = float(values["pixel_threshold"])
        if "color_tolerance_percent" in values:
            values["color_tolerance_percent"] = int(values["color_tolerance_percent"])
        for name in (
            "ignore_anti_aliasing",
            "include_text_analysis",
            "layout_analysis",
            "color_analysis",
            "spacing_analysis",
        ):
            if name in values:
                values[name] = _as_bool(name, values[name])
        return cls(**values)

    def as_options(self) -> dict[str, Any]:
        """Return the settings keyed by their external camelCase names."""
        return {
            "pixelThreshold": self.pixel_threshold,
            "colorTolerancePercent": self.color_tolerance_percent,
            "ignoreAntiAliasing": self.ignore_anti_aliasing,
            "includeTextAnalysis": self.include_text_analysis,
            "layoutAnalysis": self.layout_analysis,
            "colorAnalysis": self.color_analysis,
            "spacingAnalysis": self.spacing_analysis,
        }


_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off", ""})


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f"{name} must be a boolean, got {value!r}")
    return bool(value)
