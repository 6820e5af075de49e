"""End-to-end tests for compute_integrity_score."""

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from image_integrity import (
    LoadError,
    PixelBuffer,
    ScoringTimeoutError,
    compute_integrity_score,
    score_buffers,
)
from image_integrity.score import engine
from image_integrity.score.telemetry import ScoreEvent

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def test_identical_images_score_full(solid, encode_png):
    data = encode_png(solid(400, 300, 128))
    report = compute_integrity_score(data, data, "original.png", "copy.png")

    assert report.global_score == 100
    assert report.structural_score == 100
    assert report.composite_label == "G100/S100"
    assert report.explanation == (
        "Minimal color/tone adjustments detected. Original content fully preserved."
    )
    assert report.metadata.source_name == "original.png"
    assert report.metadata.derived_name == "copy.png"
    assert TIMESTAMP.match(report.metadata.timestamp)


def test_report_serialises_to_camel_case_metadata(solid, encode_png):
    data = encode_png(solid(40, 30, 200))
    payload = compute_integrity_score(data, data, "a.png", "b.png").to_dict()

    assert payload["global"] == 100
    assert payload["structural"] == 100
    assert payload["score"] == "G100/S100"
    assert payload["metadata"]["sourceFile"] == "a.png"
    assert payload["metadata"]["finalFile"] == "b.png"
    assert set(payload["components"]) == {
        "histogram_distance",
        "hash_similarity",
        "edge_preservation",
        "feature_preservation",
    }


def test_brightness_adjustment_keeps_structure(gradient, encode_png):
    source = encode_png(gradient())
    derived = encode_png(gradient(offset=10))
    report = compute_integrity_score(source, derived, "ramp.png", "ramp-bright.png")

    assert 85 <= report.global_score <= 99
    assert report.structural_score >= 90
    assert report.composite_label == f"G{report.global_score}/S{report.structural_score}"


def test_pasted_object_lowers_structural(patch_scene, with_circle, encode_png):
    source = encode_png(patch_scene)
    derived = encode_png(with_circle(patch_scene))
    report = compute_integrity_score(source, derived, "scene.png", "scene-edit.png")

    assert report.structural_score <= 80
    assert "manipulation" in report.explanation
    assert "fully preserved" not in report.explanation


def test_16_bit_png_matches_its_8_bit_rendering(encode_png, encode_png16):
    ramp16 = np.tile(np.arange(256, dtype=np.uint16) * 257, (64, 1))
    ramp8 = (ramp16 >> 8).astype(np.uint8)
    report = compute_integrity_score(
        encode_png16(ramp16), encode_png(np.stack([ramp8] * 3, axis=2)), "deep.png", "flat.png"
    )

    assert report.composite_label == "G100/S100"
    assert report.components.histogram_distance == 0.0


def test_derived_is_resampled_to_common_size(solid, encode_png):
    source = encode_png(solid(800, 600, 90))
    derived = encode_png(solid(400, 300, 90))
    report = compute_integrity_score(source, derived, "big.png", "small.png")
    assert report.composite_label == "G100/S100"


def test_parallel_and_sequential_agree(patch_scene, with_circle):
    source = PixelBuffer.from_array(patch_scene)
    derived = PixelBuffer.from_array(with_circle(patch_scene))

    parallel = score_buffers(source, derived, max_workers=4)
    sequential = score_buffers(source, derived, max_workers=1)
    assert parallel == sequential


def test_concurrent_calls_are_independent(gradient, solid, encode_png):
    pairs = [
        (encode_png(gradient()), encode_png(gradient(offset=offset)))
        for offset in (0, 5, 10, 20)
    ]
    expected = [
        compute_integrity_score(src, dst, "s.png", "d.png", max_workers=1).composite_label
        for src, dst in pairs
    ]

    with ThreadPoolExecutor(max_workers=4) as pool:
        labels = list(
            pool.map(
                lambda pair: compute_integrity_score(pair[0], pair[1], "s.png", "d.png").composite_label,
                pairs,
            )
        )
    assert labels == expected


def test_telemetry_receives_file_types(solid, encode_png):
    events = []
    data = encode_png(solid(20, 20))
    report = compute_integrity_score(data, data, "in.PNG", "out.png", telemetry=events.append)

    assert events == [
        ScoreEvent(
            global_score=report.global_score,
            structural_score=report.structural_score,
            composite_label="G100/S100",
            source_file_type="png",
            derived_file_type="png",
        )
    ]


def test_failing_telemetry_does_not_affect_result(solid, encode_png, caplog):
    def broken_sink(event):
        raise RuntimeError("collector offline")

    data = encode_png(solid(20, 20))
    with caplog.at_level(logging.WARNING, logger="image_integrity.score.telemetry"):
        report = compute_integrity_score(data, data, "a.png", "b.png", telemetry=broken_sink)

    assert report.composite_label == "G100/S100"
    assert "Telemetry delivery failed" in caplog.text


@pytest.mark.parametrize("workers", [1, 4])
def test_timeout_is_raised(monkeypatch, solid, encode_png, workers):
    def slow_analysis(source, derived):
        time.sleep(0.5)
        return 0.0

    monkeypatch.setitem(engine._ANALYSES, "histogram_distance", slow_analysis)
    data = encode_png(solid(20, 20))
    with pytest.raises(ScoringTimeoutError):
        compute_integrity_score(data, data, "a.png", "b.png", max_workers=workers, timeout=0.1)


def test_corrupt_derived_reports_its_name(solid, encode_png):
    source = encode_png(solid(20, 20))
    with pytest.raises(LoadError) as excinfo:
        compute_integrity_score(source, b"not an image", "a.png", "broken.png")
    assert excinfo.value.name == "broken.png"


def test_score_buffers_requires_equal_sizes():
    a = PixelBuffer.from_array(np.zeros((10, 10, 3), dtype=np.uint8))
    b = PixelBuffer.from_array(np.zeros((10, 12, 3), dtype=np.uint8))
    with pytest.raises(ValueError):
        score_buffers(a, b)
