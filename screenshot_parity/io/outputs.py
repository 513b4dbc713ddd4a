"""Output helpers for persisting comparison results and artifacts."""

from __future__ import annotations

import html
import json
import os
import tempfile
from dataclasses import asdict
from pathlib import Path
from typing import Any

from PIL import Image

from .models import ComparisonResult

_SEVERITY_COLORS = {"high": "#dc2626", "medium": "#f59e0b", "low": "#10b981"}


def result_payload(result: ComparisonResult) -> dict[str, Any]:
    """Return *result* as a JSON-ready mapping with camelCase keys."""
    return _camelize(asdict(result))


def write_result(path: Path, result: ComparisonResult) -> Path:
    """Write *result* to *path* as JSON and return the path."""
    _write_text_atomic(path, json.dumps(result_payload(result), indent=2))
    return path


def write_error(path: Path, result: ComparisonResult) -> Path:
    """Write the record of a failed comparison to *path*."""
    payload = {
        "id": result.id,
        "status": result.status,
        "error": result.error,
        "createdAt": result.created_at,
        "processingTimeMs": result.processing_time_ms,
    }
    _write_text_atomic(path, json.dumps(payload, indent=2))
    return path


def save_png(image: Image.Image, path: Path) -> Path:
    """Save *image* as PNG, never leaving a partially written file at *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.stem}-", suffix=".png"
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            image.save(handle, format="PNG")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def write_report(path: Path, result: ComparisonResult) -> Path:
    """Render a self-contained HTML report next to the persisted images."""
    _write_text_atomic(path, render_report(result, base_dir=path.parent))
    return path


def render_report(result: ComparisonResult, base_dir: Path | None = None) -> str:
    metrics = result.metrics
    if metrics is None:
        raise ValueError("Only completed comparisons can be rendered")

    esc = html.escape
    cards = [
        (f"{metrics.overall_similarity:.1f}%", "Overall Similarity"),
        (f"{metrics.quality_score:.0f}", "Quality Score"),
        (str(metrics.total_discrepancies), "Total Discrepancies"),
        (str(metrics.severity_breakdown.get("high", 0)), "High Severity Issues"),
    ]
    card_html = "".join(
        f'<div class="metric-card"><div class="metric-value">{esc(value)}</div>'
        f'<div class="metric-label">{esc(label)}</div></div>'
        for value, label in cards
    )

    paths = result.artifact_paths
    panels = [
        ("Design", paths.figma_processed),
        ("Implementation", paths.developed_processed),
        ("Pixel Differences", paths.diff_image),
    ]
    image_html = "".join(
        f'<div class="image-container"><div class="image-label">{esc(label)}</div>'
        f'<img src="{esc(_relative(src, base_dir))}" alt="{esc(label)}"></div>'
        for label, src in panels
        if src
    )

    discrepancy_html = "".join(
        f'<div class="discrepancy-item severity-{esc(d.severity)}">'
        f'<span class="discrepancy-type">{esc(d.type.upper())}</span> '
        f'<span style="color: {_SEVERITY_COLORS[d.severity]}">{esc(d.severity.upper())}</span>'
        f"<p><strong>{esc(d.description)}</strong></p>"
        f'<div class="recommendation"><strong>Recommendation:</strong> '
        f"{esc(d.recommendation)}</div></div>"
        for d in result.discrepancies
    )

    palette_html = ""
    if result.palettes is not None:
        rows = []
        for title, palette in (
            ("Design palette", result.palettes.figma),
            ("Implementation palette", result.palettes.developed),
        ):
            swatches = "".join(
                f'<span class="swatch" style="background: {esc(c.hex)}" '
                f'title="{esc(c.hex)} ({c.frequency_percent:.1f}%)"></span>'
                for c in palette
            )
            rows.append(f"<h3>{esc(title)}</h3><div>{swatches or 'No colors'}</div>")
        comparison = result.color_comparison
        if comparison is not None:
            rows.append(
                f"<p>Color similarity: {comparison.color_similarity_percent:.1f}% "
                f"({len(comparison.matched_colors)} matched, "
                f"{len(comparison.missing_colors)} missing, "
                f"{len(comparison.extra_colors)} extra)</p>"
            )
        palette_html = f'<div class="palettes"><h2>Colors</h2>{"".join(rows)}</div>'

    return _REPORT_TEMPLATE.format(
        comparison_id=esc(result.id),
        created_at=esc(result.created_at),
        processing_time=f"{result.processing_time_ms:.0f}",
        cards=card_html,
        images=image_html,
        palettes=palette_html,
        discrepancy_count=len(result.discrepancies),
        discrepancies=discrepancy_html,
    )


def _relative(src: str, base_dir: Path | None) -> str:
    if base_dir is None:
        return src
    try:
        return os.path.relpath(src, base_dir)
    except ValueError:
        return src


def _write_text_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            (_camel(k) if isinstance(k, str) else k): _camelize(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_camelize(item) for item in value]
    return value


_REPORT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Screenshot Comparison Report - {comparison_id}</title>
<style>
body {{ font-family: Inter, sans-serif; margin: 0; padding: 20px; background: #f9fafb; }}
.container {{ max-width: 1200px; margin: 0 auto; background: white; border-radius: 8px; padding: 24px; }}
.metrics-grid {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(250px, 1fr)); gap: 16px; }}
.metric-card {{ background: #f9fafb; border: 1px solid #e5e7eb; border-radius: 6px; padding: 16px; }}
.metric-value {{ font-size: 24px; font-weight: bold; color: #1f2937; }}
.metric-label {{ font-size: 14px; color: #6b7280; }}
.image-comparison {{ display: grid; grid-template-columns: 1fr 1fr 1fr; gap: 16px; }}
.image-container img {{ max-width: 100%; border: 1px solid #e5e7eb; }}
.swatch {{ display: inline-block; width: 24px; height: 24px; margin: 2px; border: 1px solid #e5e7eb; }}
.discrepancy-item {{ border: 1px solid #e5e7eb; border-radius: 6px; padding: 16px; margin: 8px 0; }}
.severity-high {{ border-left: 4px solid #dc2626; }}
.severity-medium {{ border-left: 4px solid #f59e0b; }}
.severity-low {{ border-left: 4px solid #10b981; }}
.recommendation {{ background: #f0f9ff; border: 1px solid #bae6fd; padding: 12px; }}
</style>
</head>
<body>
<div class="container">
<h1>Screenshot Comparison Report</h1>
<p>Comparison ID: <strong>{comparison_id}</strong></p>
<p>Generated: {created_at}</p>
<p>Processing Time: {processing_time}ms</p>
<div class="metrics-grid">{cards}</div>
<h2>Image Comparison</h2>
<div class="image-comparison">{images}</div>
{palettes}
<h2>Detailed Discrepancies ({discrepancy_count})</h2>
{discrepancies}
</div>
</body>
</html>
"""
