"""Tests for persisted comparisons, the comparison store and batches."""

import json

import pandas as pd
import pytest

from screenshot_parity import pipeline
from screenshot_parity.errors import ComparisonNotFoundError, DecodeError
from screenshot_parity.io.store import ComparisonStore
from screenshot_parity.pipeline import (
    DIFF_IMAGE,
    REPORT,
    SIDE_BY_SIDE,
    compare_many,
    run_comparison,
    summarize_batch,
)


@pytest.fixture
def pair_files(tmp_path, solid):
    design = tmp_path / "design.png"
    implementation = tmp_path / "implementation.png"
    solid((30, 20), (200, 40, 40)).save(design)
    solid((30, 20), (40, 40, 200)).save(implementation)
    return design, implementation


class TestRunComparison:
    """Tests for run_comparison."""

    def test_writes_every_artifact(self, tmp_path, pair_files):
        out = tmp_path / "comparisons"
        result = run_comparison(*pair_files, out, comparison_id="comp_a")
        directory = out / "comp_a"
        for name in (
            "figma-processed.png",
            "developed-processed.png",
            DIFF_IMAGE,
            SIDE_BY_SIDE,
            REPORT,
            "result.json",
        ):
            assert (directory / name).is_file(), name
        assert result.artifact_paths.report == str(directory / REPORT)
        assert not list(directory.glob(".*"))

    def test_result_json_uses_camel_case(self, tmp_path, pair_files):
        out = tmp_path / "comparisons"
        run_comparison(*pair_files, out, comparison_id="comp_b")
        payload = json.loads((out / "comp_b" / "result.json").read_text(encoding="utf-8"))
        assert payload["id"] == "comp_b"
        assert payload["status"] == "completed"
        assert payload["metrics"]["qualityScore"] == payload["qualityScore"]
        assert "severityBreakdown" in payload["metrics"]
        assert payload["metrics"]["discrepancyTypes"]["missing-element"] == 0
        assert payload["pixelMetrics"]["diffPercentage"] == 100
        assert payload["artifactPaths"]["sideBySideImage"].endswith(SIDE_BY_SIDE)
        assert payload["palettes"]["figma"][0]["frequencyPercent"] == pytest.approx(100.0)

    def test_report_links_images(self, tmp_path, pair_files):
        out = tmp_path / "comparisons"
        run_comparison(*pair_files, out, comparison_id="comp_c")
        report = (out / "comp_c" / REPORT).read_text(encoding="utf-8")
        assert 'src="pixel-diff.png"' in report
        assert "comp_c" in report
        assert "Detailed Discrepancies (2)" in report

    def test_failure_leaves_error_record_only(self, tmp_path, pair_files):
        out = tmp_path / "comparisons"
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"nope")
        with pytest.raises(DecodeError):
            run_comparison(pair_files[0], broken, out, comparison_id="comp_bad")
        directory = out / "comp_bad"
        assert [p.name for p in directory.iterdir()] == ["error.json"]
        record = json.loads((directory / "error.json").read_text(encoding="utf-8"))
        assert record["status"] == "failed"
        assert record["error"]
        assert record["createdAt"].endswith("Z")

    def test_late_failure_removes_written_artifacts(self, tmp_path, pair_files, monkeypatch):
        def failing_report(path, result):
            raise OSError("disk full")

        monkeypatch.setattr(pipeline, "write_report", failing_report)
        out = tmp_path / "comparisons"
        with pytest.raises(OSError):
            run_comparison(*pair_files, out, comparison_id="comp_late")
        directory = out / "comp_late"
        assert [p.name for p in directory.iterdir()] == ["error.json"]
        record = json.loads((directory / "error.json").read_text(encoding="utf-8"))
        assert record["error"] == "disk full"


class TestComparisonStore:
    """Tests for ComparisonStore."""

    @pytest.fixture
    def store(self, tmp_path, pair_files, solid):
        out = tmp_path / "comparisons"
        run_comparison(*pair_files, out, comparison_id="comp_diff")
        run_comparison(
            solid((10, 10), (90, 90, 90)),
            solid((10, 10), (90, 90, 90)),
            out,
            comparison_id="comp_same",
        )
        return ComparisonStore(out)

    def test_get_returns_payload(self, store):
        assert store.get("comp_same")["qualityScore"] == 100

    def test_get_unknown_id(self, store):
        with pytest.raises(ComparisonNotFoundError):
            store.get("comp_missing")

    def test_rejects_path_traversal(self, store):
        with pytest.raises(ComparisonNotFoundError):
            store.get("../comp_same")

    def test_list_sorts_and_paginates(self, store):
        listing = store.list(sort_by="qualityScore", sort_order="desc")
        assert listing["total"] == 2
        assert [c["id"] for c in listing["comparisons"]] == ["comp_same", "comp_diff"]
        assert listing["comparisons"][0]["metrics"]["qualityScore"] == 100

        page = store.list(limit=1, offset=1, sort_by="qualityScore", sort_order="asc")
        assert [c["id"] for c in page["comparisons"]] == ["comp_same"]
        assert (page["limit"], page["offset"]) == (1, 1)

    def test_list_rejects_unknown_sort_key(self, store):
        with pytest.raises(ValueError):
            store.list(sort_by="id")

    def test_failed_comparison_is_listed_without_metrics(self, store, tmp_path):
        with pytest.raises(DecodeError):
            run_comparison(b"", b"", store.root, comparison_id="comp_failed")
        listing = store.list()
        entries = {c["id"]: c for c in listing["comparisons"]}
        assert entries["comp_failed"]["status"] == "failed"
        assert entries["comp_failed"]["metrics"] is None
        assert store.get("comp_failed")["status"] == "failed"

    def test_delete(self, store):
        store.delete("comp_diff")
        assert not (store.root / "comp_diff").exists()
        assert store.list()["total"] == 1
        with pytest.raises(ComparisonNotFoundError):
            store.delete("comp_diff")

    def test_export_csv(self, store, tmp_path):
        path = store.export(tmp_path / "exports" / "listing.csv")
        frame = pd.read_csv(path)
        assert sorted(frame["id"]) == ["comp_diff", "comp_same"]
        assert "qualityScore" in frame.columns

    def test_empty_root(self, tmp_path):
        listing = ComparisonStore(tmp_path / "nothing").list()
        assert listing["comparisons"] == []
        assert listing["total"] == 0


class TestBatch:
    def test_bad_pair_does_not_stop_batch(self, tmp_path, pair_files):
        out = tmp_path / "comparisons"
        entries = compare_many(
            [("good", *pair_files), ("", b"garbage", pair_files[1])], out
        )
        assert [e["status"] for e in entries] == ["completed", "failed"]
        assert entries[1]["name"] == "Component 2"
        assert entries[1]["error"]

    def test_summary(self, tmp_path, pair_files, solid):
        out = tmp_path / "comparisons"
        entries = compare_many(
            [
                ("different", *pair_files),
                ("same", solid((8, 8), "gray"), solid((8, 8), "gray")),
            ],
            out,
        )
        summary = summarize_batch(entries)
        assert summary["totalComparisons"] == 2
        assert summary["validComparisons"] == 2
        assert summary["avgSimilarity"] == 50
        assert summary["minSimilarity"] == 0
        assert summary["maxSimilarity"] == 100
        assert summary["recommendations"] == [
            "Significant visual differences detected - review implementation",
            "Some components have major visual discrepancies",
        ]

    def test_summary_without_valid_comparisons(self):
        summary = summarize_batch([{"name": "x", "status": "failed", "error": "bad"}])
        assert summary["validComparisons"] == 0
        assert summary["recommendations"] == ["No valid comparisons completed"]
