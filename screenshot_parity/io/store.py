"""Filesystem-backed index of persisted comparisons."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from ..errors import ComparisonNotFoundError

logger = logging.getLogger(__name__)

RESULT_FILENAME = "result.json"
ERROR_FILENAME = "error.json"

_SORTABLE = {"createdAt", "qualityScore", "overallSimilarity", "totalDiscrepancies"}
_LISTING_COLUMNS = [
    "id",
    "status",
    "createdAt",
    "overallSimilarity",
    "totalDiscrepancies",
    "qualityScore",
]


class ComparisonStore:
    """Read, list and delete comparisons written under one output root."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, comparison_id: str) -> Path:
        if not comparison_id or "/" in comparison_id or "\\" in comparison_id:
            raise ComparisonNotFoundError(comparison_id)
        if comparison_id in {".", ".."}:
            raise ComparisonNotFoundError(comparison_id)
        return self.root / comparison_id

    def get(self, comparison_id: str) -> Dict[str, Any]:
        """Return the stored payload for *comparison_id*.

        Failed comparisons return their error record.
        """
        directory = self.path_for(comparison_id)
        for name in (RESULT_FILENAME, ERROR_FILENAME):
            candidate = directory / name
            if candidate.is_file():
                return json.loads(candidate.read_text(encoding="utf-8"))
        raise ComparisonNotFoundError(comparison_id)

    def delete(self, comparison_id: str) -> None:
        directory = self.path_for(comparison_id)
        if not directory.is_dir():
            raise ComparisonNotFoundError(comparison_id)
        shutil.rmtree(directory)
        logger.info("Deleted comparison %s", comparison_id)

    def table(self) -> pd.DataFrame:
        """Return one row per readable stored comparison."""
        rows: List[Dict[str, Any]] = []
        if self.root.is_dir():
            for directory in sorted(p for p in self.root.iterdir() if p.is_dir()):
                row = self._summarise(directory)
                if row is not None:
                    rows.append(row)
        frame = pd.DataFrame(rows, columns=_LISTING_COLUMNS)
        if not frame.empty:
            frame["createdAt"] = pd.to_datetime(
                frame["createdAt"], utc=True, format="ISO8601", errors="coerce"
            )
        return frame

    def list(
        self,
        limit: int = 50,
        offset: int = 0,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Dict[str, Any]:
        """Return a sorted, paginated listing of stored comparisons."""
        if sort_by not in _SORTABLE:
            raise ValueError(f"Cannot sort comparisons by {sort_by!r}")
        if sort_order not in {"asc", "desc"}:
            raise ValueError("sort_order must be 'asc' or 'desc'")
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must not be negative")

        frame = self.table()
        total = len(frame)
        if total:
            frame = frame.sort_values(
                sort_by, ascending=sort_order == "asc", kind="stable", na_position="last"
            )
        page = frame.iloc[offset : offset + limit]
        comparisons = [_listing_entry(record) for record in page.to_dict("records")]
        return {
            "comparisons": comparisons,
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    def export(self, path: str | Path) -> Path:
        """Write the listing table to parquet, or CSV for a ``.csv`` suffix."""
        out_path = Path(path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        frame = self.table()
        if out_path.suffix.lower() == ".csv":
            frame.to_csv(out_path, index=False)
        else:
            frame.to_parquet(out_path, index=False, engine="pyarrow")
        return out_path

    def _summarise(self, directory: Path) -> Dict[str, Any] | None:
        for name in (RESULT_FILENAME, ERROR_FILENAME):
            path = directory / name
            if not path.is_file():
                continue
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable comparison %s: %s", directory.name, exc)
                return None
            metrics = payload.get("metrics") or {}
            return {
                "id": payload.get("id", directory.name),
                "status": payload.get("status"),
                "createdAt": payload.get("createdAt"),
                "overallSimilarity": metrics.get("overallSimilarity"),
                "totalDiscrepancies": metrics.get("totalDiscrepancies"),
                "qualityScore": metrics.get("qualityScore"),
            }
        return None


def _listing_entry(record: Dict[str, Any]) -> Dict[str, Any]:
    created = record.get("createdAt")
    has_metrics = not pd.isna(record.get("qualityScore"))
    return {
        "id": record["id"],
        "status": record["status"],
        "createdAt": created.isoformat() if not pd.isna(created) else None,
        "metrics": {
            "overallSimilarity": float(record["overallSimilarity"]),
            "totalDiscrepancies": int(record["totalDiscrepancies"]),
            "qualityScore": float(record["qualityScore"]),
        }
        if has_metrics
        else None,
    }
