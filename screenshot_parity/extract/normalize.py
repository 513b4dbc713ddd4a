"""Utilities for bringing two screenshots onto one comparable canvas."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from os import PathLike
from typing import Union

from PIL import Image, UnidentifiedImageError
from PIL.Image import DecompressionBombError

from ..config import BACKGROUND_RGB
from ..errors import DecodeError, DimensionError

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, str, PathLike, Image.Image]

_STRAIGHT_ALPHA = {"La": "LA", "RGBa": "RGBA"}


@dataclass(frozen=True, slots=True)
class NormalizedPair:
    """Two RGB images sharing identical dimensions."""

    figma: Image.Image
    developed: Image.Image
    width: int
    height: int

    def close(self) -> None:
        self.figma.close()
        self.developed.close()


def resample_filter() -> int:
    """Return the Lanczos resampling filter for the installed Pillow."""
    resample_attr = getattr(Image, "Resampling", None)
    resample = getattr(resample_attr, "LANCZOS", None) if resample_attr else None
    if resample is None:
        resample = getattr(Image, "LANCZOS", Image.BICUBIC)
    return resample


def load_image(source: ImageSource) -> Image.Image:
    """Decode *source* into a detached RGB image with alpha flattened onto white."""
    if isinstance(source, Image.Image):
        try:
            return _flatten(source)
        except ValueError as exc:
            raise DecodeError(f"Cannot convert {source.mode} image: {exc}") from exc

    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise DecodeError("Empty image payload cannot be decoded")
        stream: object = BytesIO(bytes(source))
        label = f"<{len(source)} bytes>"
    else:
        stream = source
        label = str(source)

    try:
        with Image.open(stream) as img:  # type: ignore[arg-type]
            img.load()
            return _flatten(img)
    except (UnidentifiedImageError, DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(f"Cannot decode image {label}: {exc}") from exc


def target_size(a: Image.Image, b: Image.Image) -> tuple[int, int]:
    """Return the smallest canvas that covers both images."""
    return (max(a.width, b.width), max(a.height, b.height))


def contain(
    img: Image.Image,
    size: tuple[int, int],
    background: tuple[int, int, int] = BACKGROUND_RGB,
) -> Image.Image:
    """Fit *img* inside *size* without cropping and center it on *background*."""
    width, height = size
    if width <= 0 or height <= 0:
        raise DimensionError(f"Target canvas must be non-empty, got {width}x{height}", size)
    _require_area(img)

    if img.size == size:
        return img.convert("RGB") if img.mode != "RGB" else img.copy()

    scale = min(width / img.width, height / img.height)
    fitted_w = max(1, min(width, round(img.width * scale)))
    fitted_h = max(1, min(height, round(img.height * scale)))
    source = img.convert("RGB") if img.mode != "RGB" else img
    fitted = source.resize((fitted_w, fitted_h), resample_filter())

    canvas = Image.new("RGB", size, color=background)
    offset_x = (width - fitted_w) // 2
    offset_y = (height - fitted_h) // 2
    canvas.paste(fitted, (offset_x, offset_y))
    fitted.close()
    return canvas


def normalize_pair(figma: ImageSource, developed: ImageSource) -> NormalizedPair:
    """Decode both inputs and contain-fit them onto a shared canvas."""
    figma_img = load_image(figma)
    try:
        developed_img = load_image(developed)
    except Exception:
        figma_img.close()
        raise

    try:
        size = target_size(figma_img, developed_img)
        logger.debug(
            "Normalizing %sx%s and %sx%s to %sx%s",
            figma_img.width,
            figma_img.height,
            developed_img.width,
            developed_img.height,
            *size,
        )
        figma_out = contain(figma_img, size)
        try:
            developed_out = contain(developed_img, size)
        except Exception:
            figma_out.close()
            raise
    finally:
        figma_img.close()
        developed_img.close()

    return NormalizedPair(
        figma=figma_out, developed=developed_out, width=size[0], height=size[1]
    )


def _flatten(img: Image.Image) -> Image.Image:
    _require_area(img)
    if img.has_transparency_data:
        # Premultiplied modes only convert to their straight-alpha twin.
        straight = img
        if img.mode in _STRAIGHT_ALPHA:
            straight = img.convert(_STRAIGHT_ALPHA[img.mode])
        rgba = straight.convert("RGBA")
        if straight is not img:
            straight.close()
        background = Image.new("RGBA", rgba.size, BACKGROUND_RGB + (255,))
        flattened = Image.alpha_composite(background, rgba).convert("RGB")
        background.close()
        rgba.close()
        return flattened
    if img.mode != "RGB":
        return img.convert("RGB")
    return img.copy()


def _require_area(img: Image.Image) -> None:
    if img.width <= 0 or img.height <= 0:
        raise DimensionError(
            f"Image has no pixels ({img.width}x{img.height})", (img.width, img.height)
        )
