"""Command-line interface for the screenshot_parity project."""

from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from .config import COLOR_TOLERANCE_DEFAULT, PIXEL_THRESHOLD_DEFAULT, ComparisonSettings
from .errors import ComparisonError, ComparisonNotFoundError
from .io.models import ComparisonResult
from .io.store import ComparisonStore
from .pipeline import ComparisonPair, compare_many, run_comparison, summarize_batch

DEFAULT_OUTPUT_DIR = Path("output") / "comparisons"
BATCH_SUMMARY_FILENAME = "batch-summary.json"


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the comparison tool."""
    parser = argparse.ArgumentParser(
        description="Compare design screenshots against their implementation."
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compare = subparsers.add_parser("compare", help="Compare one pair of screenshots.")
    compare.add_argument("design", help="Path to the reference design screenshot.")
    compare.add_argument("implementation", help="Path to the implementation screenshot.")
    _add_output_argument(compare)
    _add_settings_arguments(compare)

    batch = subparsers.add_parser("batch", help="Compare every pair listed in a CSV.")
    batch.add_argument(
        "manifest",
        help="CSV file with name, figma and developed columns (paths relative to it).",
    )
    _add_output_argument(batch)
    _add_settings_arguments(batch)

    listing = subparsers.add_parser("list", help="List stored comparisons.")
    _add_output_argument(listing)
    listing.add_argument("--limit", type=int, default=50)
    listing.add_argument("--offset", type=int, default=0)
    listing.add_argument(
        "--sort-by",
        default="createdAt",
        choices=["createdAt", "qualityScore", "overallSimilarity", "totalDiscrepancies"],
    )
    listing.add_argument("--sort-order", default="desc", choices=["asc", "desc"])
    listing.add_argument(
        "--export",
        default=None,
        help="Also write the full listing to this parquet (or .csv) file.",
    )

    show = subparsers.add_parser("show", help="Print a stored comparison as JSON.")
    show.add_argument("comparison_id")
    _add_output_argument(show)

    delete = subparsers.add_parser("delete", help="Delete a stored comparison.")
    delete.add_argument("comparison_id")
    _add_output_argument(delete)

    return parser.parse_args(list(argv) if argv is not None else None)


def _add_output_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--out",
        default=str(DEFAULT_OUTPUT_DIR),
        help="Directory holding one sub-directory per comparison.",
    )


def _add_settings_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--tolerance",
        type=int,
        default=COLOR_TOLERANCE_DEFAULT,
        help="Per-channel color tolerance in percent (default 30).",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=PIXEL_THRESHOLD_DEFAULT,
        help="Pixel sensitivity threshold recorded with the result.",
    )
    parser.add_argument("--ignore-anti-aliasing", action="store_true")
    parser.add_argument(
        "--no-color-analysis",
        action="store_true",
        help="Skip palette extraction and color discrepancies.",
    )
    parser.add_argument(
        "--no-layout-analysis",
        action="store_true",
        help="Skip layout discrepancies.",
    )


def settings_from_args(args: argparse.Namespace) -> ComparisonSettings:
    return ComparisonSettings(
        pixel_threshold=args.threshold,
        color_tolerance_percent=args.tolerance,
        ignore_anti_aliasing=args.ignore_anti_aliasing,
        color_analysis=not args.no_color_analysis,
        layout_analysis=not args.no_layout_analysis,
    )


def read_manifest(path: Path) -> list[ComparisonPair]:
    """Read ``name,figma,developed`` rows from *path*, resolving relative paths."""
    if not path.exists():
        raise FileNotFoundError(f"Manifest does not exist: {path}")
    base = path.parent
    pairs: list[ComparisonPair] = []
    with path.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        missing = {"figma", "developed"} - set(reader.fieldnames or [])
        if missing:
            raise ValueError(f"Manifest is missing columns: {', '.join(sorted(missing))}")
        for row in reader:
            figma = (row.get("figma") or "").strip()
            developed = (row.get("developed") or "").strip()
            if not figma or not developed:
                continue
            pairs.append(
                ((row.get("name") or "").strip(), str(base / figma), str(base / developed))
            )
    return pairs


def _print_result(result: ComparisonResult) -> None:
    metrics = result.metrics
    if metrics is None:
        return
    print(
        f"[compare] {result.id}: similarity={metrics.overall_similarity:.1f}% "
        f"quality={metrics.quality_score:.0f} "
        f"discrepancies={metrics.total_discrepancies}"
    )
    for d in result.discrepancies:
        print(f"  - {d.severity.upper()} {d.type}: {d.description}")
    if result.color_comparison is not None:
        colors = result.color_comparison
        print(
            f"[colors] similarity={colors.color_similarity_percent:.1f}% "
            f"matched={len(colors.matched_colors)} missing={len(colors.missing_colors)} "
            f"extra={len(colors.extra_colors)}"
        )
    print(f"[saved] report: {result.artifact_paths.report}")


def _cmd_compare(args: argparse.Namespace) -> int:
    try:
        result = run_comparison(
            args.design, args.implementation, Path(args.out), settings_from_args(args)
        )
    except (ComparisonError, OSError) as exc:
        print(f"[error] comparison failed: {exc}")
        return 1
    _print_result(result)
    return 0


def _cmd_batch(args: argparse.Namespace) -> int:
    out_dir = Path(args.out)
    pairs = read_manifest(Path(args.manifest))
    print(f"[batch] {len(pairs)} pairs from {args.manifest}")
    entries = compare_many(pairs, out_dir, settings_from_args(args))
    for entry in entries:
        if entry["status"] == "completed":
            _print_result(entry["result"])
        else:
            print(f"[warn] {entry['name']}: {entry['error']}")

    summary = summarize_batch(entries)
    summary_path = out_dir / BATCH_SUMMARY_FILENAME
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    except OSError as exc:
        print(f"[batch] failed to write {summary_path}: {exc}")
    print(
        f"Valid comparisons: {summary['validComparisons']} of {summary['totalComparisons']}"
    )
    print(f"Average similarity: {summary['avgSimilarity']:.2f}%")
    for recommendation in summary["recommendations"]:
        print(f"  * {recommendation}")
    return 0 if summary["validComparisons"] == summary["totalComparisons"] else 1


def _cmd_list(args: argparse.Namespace) -> int:
    store = ComparisonStore(args.out)
    listing = store.list(
        limit=args.limit,
        offset=args.offset,
        sort_by=args.sort_by,
        sort_order=args.sort_order,
    )
    for entry in listing["comparisons"]:
        metrics: dict[str, Any] | None = entry["metrics"]
        summary = (
            f"quality={metrics['qualityScore']:.0f} "
            f"similarity={metrics['overallSimilarity']:.1f}%"
            if metrics
            else "no metrics"
        )
        print(f"{entry['id']}  {entry['status']:<9}  {entry['createdAt']}  {summary}")
    print(f"[list] showing {len(listing['comparisons'])} of {listing['total']}")
    if args.export:
        path = store.export(args.export)
        print(f"[list] exported listing to {path}")
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    try:
        payload = ComparisonStore(args.out).get(args.comparison_id)
    except ComparisonNotFoundError as exc:
        print(f"[error] {exc}")
        return 1
    print(json.dumps(payload, indent=2))
    return 0


def _cmd_delete(args: argparse.Namespace) -> int:
    try:
        ComparisonStore(args.out).delete(args.comparison_id)
    except ComparisonNotFoundError as exc:
        print(f"[error] {exc}")
        return 1
    print(f"[deleted] {args.comparison_id}")
    return 0


_COMMANDS = {
    "compare": _cmd_compare,
    "batch": _cmd_batch,
    "list": _cmd_list,
    "show": _cmd_show,
    "delete": _cmd_delete,
}


def main(argv: Iterable[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return _COMMANDS[args.command](args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[error] {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
