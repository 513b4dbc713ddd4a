"""Per-pixel differencing between two normalized screenshots."""

from __future__ import annotations

import math
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image

from ..config import (
    COLOR_TOLERANCE_DEFAULT,
    DIFF_MARKER_RGB,
    MATCH_MARKER_RGB,
    PIXEL_THRESHOLD_DEFAULT,
)
from ..errors import DimensionError, ProcessingError
from ..io.models import PixelMetrics


@dataclass(frozen=True, slots=True)
class PixelDiff:
    mask: Image.Image
    metrics: PixelMetrics


def tolerance_threshold(color_tolerance_percent: float) -> int:
    """Return the absolute per-channel threshold for a tolerance percentage."""
    return int(math.floor(color_tolerance_percent * 255 / 100))


def difference_mask(a: np.ndarray, b: np.ndarray, threshold: int) -> np.ndarray:
    """Return a boolean array marking pixels whose largest RGB delta exceeds *threshold*."""
    delta = cv2.absdiff(
        np.ascontiguousarray(a[..., :3]), np.ascontiguousarray(b[..., :3])
    )
    return delta.max(axis=2) > threshold


def render_mask(differs: np.ndarray) -> Image.Image:
    """Paint differing pixels with the marker color and the rest white."""
    height, width = differs.shape
    canvas = np.empty((height, width, 3), dtype=np.uint8)
    canvas[...] = MATCH_MARKER_RGB
    canvas[differs] = DIFF_MARKER_RGB
    return Image.fromarray(canvas)


def diff_images(
    a: Image.Image,
    b: Image.Image,
    color_tolerance_percent: int = COLOR_TOLERANCE_DEFAULT,
    pixel_threshold: float = PIXEL_THRESHOLD_DEFAULT,
) -> PixelDiff:
    """Compare two equally sized images and return the diff mask plus metrics."""
    if a.size != b.size:
        raise DimensionError(
            f"Cannot diff images of different sizes {a.size} and {b.size}", a.size
        )
    width, height = a.size
    total_pixels = width * height
    if total_pixels == 0:
        raise DimensionError(f"Cannot diff empty images ({width}x{height})", a.size)

    try:
        pixels_a = np.asarray(a.convert("RGB") if a.mode != "RGB" else a)
        pixels_b = np.asarray(b.convert("RGB") if b.mode != "RGB" else b)
        differs = difference_mask(
            pixels_a, pixels_b, tolerance_threshold(color_tolerance_percent)
        )
        diff_pixels = int(np.count_nonzero(differs))
        mask = render_mask(differs)
    except cv2.error as exc:
        raise ProcessingError("pixel diff", str(exc)) from exc

    diff_percentage = diff_pixels / total_pixels * 100
    metrics = PixelMetrics(
        total_pixels=total_pixels,
        diff_pixels=diff_pixels,
        diff_percentage=diff_percentage,
        similarity_percentage=100 - diff_percentage,
        width=width,
        height=height,
        threshold=float(pixel_threshold),
    )
    return PixelDiff(mask=mask, metrics=metrics)
