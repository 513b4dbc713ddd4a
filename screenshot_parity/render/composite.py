"""Side-by-side composite of design, implementation and diff mask."""

from __future__ import annotations

from PIL import Image, ImageDraw

from ..config import (
    BACKGROUND_RGB,
    COMPOSITE_LABEL_SPACE,
    COMPOSITE_MARGIN,
    COMPOSITE_TOP,
)
from ..errors import DimensionError, ProcessingError

LABELS = ("Design", "Implementation", "Difference")
_LABEL_RGB = (55, 65, 81)


def composite_size(width: int, height: int) -> tuple[int, int]:
    """Return the canvas size for three panels of *width* x *height*."""
    return (width * 3 + COMPOSITE_MARGIN * 4, height + COMPOSITE_LABEL_SPACE)


def panel_offsets(width: int) -> list[tuple[int, int]]:
    return [
        (COMPOSITE_MARGIN + index * (width + COMPOSITE_MARGIN), COMPOSITE_TOP)
        for index in range(3)
    ]


def side_by_side(
    figma: Image.Image,
    developed: Image.Image,
    mask: Image.Image,
    labels: tuple[str, str, str] = LABELS,
) -> Image.Image:
    """Lay out the three images left to right on a white labelled canvas."""
    if not figma.size == developed.size == mask.size:
        raise DimensionError(
            "Composite panels must share one size, got "
            f"{figma.size}, {developed.size} and {mask.size}",
            figma.size,
        )

    width, height = figma.size
    try:
        canvas = Image.new("RGB", composite_size(width, height), color=BACKGROUND_RGB)
        draw = ImageDraw.Draw(canvas)
        panels = (figma, developed, mask)
        for panel, label, (left, top) in zip(panels, labels, panel_offsets(width)):
            rgb_panel = panel.convert("RGB") if panel.mode != "RGB" else panel
            canvas.paste(rgb_panel, (left, top))
            draw.text((left, COMPOSITE_MARGIN), label, fill=_LABEL_RGB)
    except (OSError, ValueError) as exc:
        raise ProcessingError("side-by-side composite", str(exc)) from exc
    return canvas
