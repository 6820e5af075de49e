"""Tests for report persistence."""

import json

from image_integrity.io.models import ComponentScores, ReportMetadata, ScoreReport
from image_integrity.io.outputs import reports_frame, write_report


def _report(label: str = "G92/S100") -> ScoreReport:
    return ScoreReport(
        global_score=92,
        structural_score=100,
        composite_label=label,
        explanation="Light color/tone adjustments detected. Original content fully preserved.",
        metadata=ReportMetadata(
            source_name="a.jpg", derived_name="b.jpg", timestamp="2024-01-01T00:00:00.000Z"
        ),
        components=ComponentScores(
            histogram_distance=0.078,
            hash_similarity=100,
            edge_preservation=100,
            feature_preservation=100,
        ),
    )


def test_report_json_layout(tmp_path):
    path = write_report(tmp_path / "nested" / "report.json", _report())
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload["global"] == 92
    assert payload["structural"] == 100
    assert payload["score"] == "G92/S100"
    assert payload["metadata"] == {
        "sourceFile": "a.jpg",
        "finalFile": "b.jpg",
        "timestamp": "2024-01-01T00:00:00.000Z",
    }
    assert payload["components"]["histogram_distance"] == 0.078


def test_reports_frame_flattens_components():
    df = reports_frame([_report(), _report("G92/S99")])
    assert list(df["score"]) == ["G92/S100", "G92/S99"]
    assert {"source", "derived", "hash_similarity", "edge_preservation"} <= set(df.columns)
