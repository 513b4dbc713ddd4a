"""Dominant color extraction."""

from __future__ import annotations

import logging
import re

import numpy as np
from PIL import Image

from ..config import (
    CLUSTER_TOLERANCE,
    NEAR_BLACK,
    NEAR_WHITE,
    PALETTE_SIZE,
    SAMPLE_SIZE,
)
from ..extract.normalize import resample_filter
from ..io.models import RGB, BoundingBox, ColorSample, Source

logger = logging.getLogger(__name__)

_HEX_PATTERN = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgb(value: str) -> RGB:
    """Parse ``#rrggbb`` (hash optional) into an :class:`RGB`."""
    match = _HEX_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f"Not a hex color: {value!r}")
    r, g, b = (int(part, 16) for part in match.groups())
    return RGB(r, g, b)


def downsample(img: Image.Image, size: int = SAMPLE_SIZE) -> Image.Image:
    """Resize *img* to fit inside a size-by-size box, keeping its aspect ratio."""
    if size <= 0:
        raise ValueError("Size must be a positive integer")

    rgb_image = img.convert("RGB") if img.mode != "RGB" else img
    scale = min(size / img.width, size / img.height)
    target = (max(1, round(img.width * scale)), max(1, round(img.height * scale)))
    if target == rgb_image.size:
        return rgb_image.copy()
    return rgb_image.resize(target, resample_filter())


def background_mask(pixels: np.ndarray) -> np.ndarray:
    """Return True for near-white and near-black rows of an (N, 3) pixel array."""
    near_white = np.all(pixels > NEAR_WHITE, axis=1)
    near_black = np.all(pixels < NEAR_BLACK, axis=1)
    return near_white | near_black


def cluster_pixels(
    pixels: np.ndarray, tolerance: int = CLUSTER_TOLERANCE
) -> tuple[np.ndarray, np.ndarray]:
    """Incrementally cluster an (N, 3) pixel array in iteration order.

    Each pixel joins the first cluster, in creation order, whose running mean
    lies within *tolerance* of it on every channel; otherwise it seeds a new
    cluster. Returns the per-cluster channel sums and pixel counts.

    Consecutive identical pixels are folded into one update: joining a
    cluster only pulls its mean towards the pixel, so the rest of the run
    lands in the same cluster.
    """
    if len(pixels) == 0:
        return np.zeros((0, 3), dtype=np.float64), np.zeros(0, dtype=np.int64)

    changed = np.any(pixels[1:] != pixels[:-1], axis=1)
    starts = np.concatenate(([0], np.flatnonzero(changed) + 1))
    lengths = np.diff(np.append(starts, len(pixels)))
    values = pixels[starts].astype(np.float64)

    sums = np.zeros((len(values), 3), dtype=np.float64)
    means = np.zeros((len(values), 3), dtype=np.float64)
    counts = np.zeros(len(values), dtype=np.int64)
    used = 0
    for value, length in zip(values, lengths):
        index = used
        if used:
            close = np.all(np.abs(means[:used] - value) < tolerance, axis=1)
            if close.any():
                index = int(close.argmax())
        if index == used:
            used += 1
        sums[index] += value * length
        counts[index] += length
        means[index] = sums[index] / counts[index]

    return sums[:used], counts[:used]


def extract_dominant_colors(
    img: Image.Image, source: Source, limit: int = PALETTE_SIZE
) -> list[ColorSample]:
    """Return up to *limit* dominant colors of *img*, most frequent first."""
    if limit <= 0:
        return []

    sample = downsample(img)
    try:
        pixels = np.asarray(sample, dtype=np.int16).reshape(-1, 3)
        box = BoundingBox(x=0, y=0, width=sample.width, height=sample.height)
    finally:
        sample.close()

    total_sampled = len(pixels)
    if total_sampled == 0:
        return []

    candidates = pixels[~background_mask(pixels)]
    sums, counts = cluster_pixels(candidates)
    logger.debug(
        "%s palette: %d clusters from %d of %d sampled pixels",
        source,
        len(counts),
        len(candidates),
        total_sampled,
    )
    if len(counts) == 0:
        return []

    order = np.argsort(-counts, kind="stable")[:limit]
    palette: list[ColorSample] = []
    for index in order:
        count = int(counts[index])
        mean = np.floor(sums[index] / count + 0.5).astype(int)
        r, g, b = (int(channel) for channel in mean)
        palette.append(
            ColorSample(
                hex=rgb_to_hex(r, g, b),
                rgb=RGB(r, g, b),
                count=count,
                frequency_percent=count / total_sampled * 100,
                source=source,
                bounding_box=box,
            )
        )
    return palette
