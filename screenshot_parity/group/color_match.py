"""Cross-referencing of design and implementation palettes."""

from __future__ import annotations

import math
from typing import Sequence

from ..config import LUMA_WEIGHTS, MATCH_DISTANCE, MATCH_TOP_K
from ..io.models import (
    ColorComparison,
    ColorMatch,
    ColorSample,
    RGB,
    UnmatchedColor,
)


def color_distance(c1: ColorSample | RGB, c2: ColorSample | RGB) -> float:
    """Return the luma-weighted Euclidean distance between two colors."""
    rgb1 = c1.rgb if isinstance(c1, ColorSample) else c1
    rgb2 = c2.rgb if isinstance(c2, ColorSample) else c2
    w_r, w_g, w_b = LUMA_WEIGHTS
    d_r = rgb1.r - rgb2.r
    d_g = rgb1.g - rgb2.g
    d_b = rgb1.b - rgb2.b
    return math.sqrt(w_r * d_r * d_r + w_g * d_g * d_g + w_b * d_b * d_b)


def find_closest_color(
    target: ColorSample, palette: Sequence[ColorSample]
) -> tuple[ColorSample | None, float]:
    """Return the entry of *palette* nearest to *target* and its distance.

    Ties keep the earlier, higher-ranked entry. An empty palette yields
    ``(None, inf)``.
    """
    closest: ColorSample | None = None
    best = math.inf
    for candidate in palette:
        distance = color_distance(target, candidate)
        if distance < best:
            best = distance
            closest = candidate
    return closest, best


def compare_palettes(
    figma: Sequence[ColorSample],
    developed: Sequence[ColorSample],
    top_k: int = MATCH_TOP_K,
    max_distance: float = MATCH_DISTANCE,
) -> ColorComparison:
    """Classify the top colors of both palettes as matched, missing or extra."""
    matched: list[ColorMatch] = []
    missing: list[UnmatchedColor] = []
    extra: list[UnmatchedColor] = []

    for color in figma[:top_k]:
        closest, distance = find_closest_color(color, developed)
        if closest is not None and distance < max_distance:
            matched.append(
                ColorMatch(
                    figma_color=color.hex,
                    developed_color=closest.hex,
                    distance=distance,
                    similarity=max(0.0, 100 - distance),
                    figma_frequency=color.frequency_percent,
                    developed_frequency=closest.frequency_percent,
                )
            )
        else:
            missing.append(_unmatched(color, closest, distance))

    for color in developed[:top_k]:
        closest, distance = find_closest_color(color, figma)
        if closest is None or distance >= max_distance:
            extra.append(_unmatched(color, closest, distance))

    total = max(len(figma), len(developed))
    similarity = len(matched) / total * 100 if total else 0.0
    return ColorComparison(
        matched_colors=matched,
        missing_colors=missing,
        extra_colors=extra,
        color_similarity_percent=similarity,
        total_figma_colors=len(figma),
        total_developed_colors=len(developed),
    )


def _unmatched(
    color: ColorSample, closest: ColorSample | None, distance: float
) -> UnmatchedColor:
    return UnmatchedColor(
        color=color.hex,
        frequency=color.frequency_percent,
        closest_match=closest.hex if closest is not None else None,
        distance=distance if closest is not None else None,
    )
