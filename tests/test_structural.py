"""Tests for structural score fusion and the scoring helpers."""

import pytest

from image_integrity.io.models import PixelBuffer
from image_integrity.numeric import clamp_score, round_half_up
from image_integrity.score.structural import (
    STRUCTURAL_WEIGHTS,
    combine_components,
    structural_components,
    structural_score,
)


def test_weights_are_documented_values():
    assert STRUCTURAL_WEIGHTS == {
        "hash_similarity": 0.4,
        "edge_preservation": 0.3,
        "feature_preservation": 0.3,
    }
    assert sum(STRUCTURAL_WEIGHTS.values()) == pytest.approx(1.0)


def test_combine_weights_components():
    components = {"hash_similarity": 100, "edge_preservation": 0, "feature_preservation": 0}
    assert combine_components(components) == 40

    components = {"hash_similarity": 100, "edge_preservation": 100, "feature_preservation": 100}
    assert combine_components(components) == 100


def test_combine_clamps_each_component():
    components = {"hash_similarity": 150, "edge_preservation": -20, "feature_preservation": 100}
    assert combine_components(components) == 70


def test_combine_requires_all_components():
    with pytest.raises(KeyError):
        combine_components({"hash_similarity": 100})


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(87.5) == 88
    assert round_half_up(-0.5) == 0
    assert round_half_up(40.3) == 40


def test_clamp_score_bounds():
    assert clamp_score(-12.0) == 0
    assert clamp_score(140.2) == 100
    assert clamp_score(64.5) == 65


def test_identity_scores_full_structure(patch_scene):
    buffer = PixelBuffer.from_array(patch_scene)
    assert structural_components(buffer, buffer) == {
        "hash_similarity": 100,
        "edge_preservation": 100,
        "feature_preservation": 100,
    }
    assert structural_score(buffer, buffer) == 100


def test_small_brightness_offsets_keep_structure(gradient):
    source = PixelBuffer.from_array(gradient())
    for offset in (2, 5, 10):
        derived = PixelBuffer.from_array(gradient(offset=offset))
        components = structural_components(source, derived)
        assert all(value >= 90 for value in components.values())
        assert structural_score(source, derived) >= 90


def test_clone_out_patch_loses_edges_and_features(patch_scene, with_circle):
    source = PixelBuffer.from_array(patch_scene)
    cloned = PixelBuffer.from_array(with_circle(patch_scene, fill=(40, 40, 40)))

    baseline = structural_components(source, source)
    edited = structural_components(source, cloned)

    assert edited["edge_preservation"] <= baseline["edge_preservation"] - 10
    assert edited["feature_preservation"] <= baseline["feature_preservation"] - 10
    assert edited["edge_preservation"] == 0
    assert edited["feature_preservation"] == 0
    assert structural_score(source, cloned) <= 40
