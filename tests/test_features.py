from __future__ import annotations

import numpy as np
import pytest

from src.features import (
    PoseFeatures,
    audio_heuristic,
    brightness_probe,
    image_tensor,
    pose_heuristic,
    waveform_grid,
)


def test_audio_heuristic_bands():
    vector = list(range(30))
    result = audio_heuristic(vector)
    # bass = mean(0..9), treble = mean(20..29)
    np.testing.assert_allclose(result, [4.5, 14.5, 24.5, 20.0])


def test_audio_heuristic_short_vector_uses_what_it_has():
    result = audio_heuristic([1.0, 3.0], band=10)
    np.testing.assert_allclose(result, [2.0, 2.0, 2.0, 0.0])


def test_audio_heuristic_empty_has_no_signal():
    assert audio_heuristic([]) is None
    assert audio_heuristic(None) is None


def test_pose_heuristic_defaults():
    np.testing.assert_allclose(pose_heuristic(PoseFeatures()), [0.0, 0.0, 10.0, 5.0, 5.0, 3.0])


def test_pose_heuristic_bent_knee_favours_first_class():
    result = pose_heuristic(PoseFeatures(knee_angle=90.0))
    assert int(np.argmax(result)) == 0


def test_pose_heuristic_none():
    assert pose_heuristic(None) is None


def test_image_tensor_scales_and_batches():
    pixels = np.full((4, 4, 3), 255.0)
    x = image_tensor(pixels, size=4)
    assert x.shape == (1, 4, 4, 3)
    assert x.dtype == np.float32
    assert float(x.max()) == pytest.approx(1.0)


def test_image_tensor_resizes():
    pixels = np.zeros((10, 6, 3))
    assert image_tensor(pixels, size=8).shape == (1, 8, 8, 3)


def test_image_tensor_rejects_bad_shape():
    assert image_tensor(np.zeros((4, 4)), size=4) is None
    assert image_tensor(np.zeros((0, 4, 3)), size=4) is None


def test_ragged_frames_are_not_model_inputs():
    ragged = [[[1, 2, 3], [4, 5, 6]], [[1, 2, 3]]]
    assert image_tensor(ragged, size=4) is None
    assert brightness_probe(ragged) is None


def test_waveform_grid_shape_and_range():
    samples = np.linspace(-1.0, 1.0, 1000)
    grid = waveform_grid(samples)
    assert grid.shape == (1, 646, 64, 1)
    assert float(grid.min()) >= 0.0
    assert float(grid.max()) <= 1.0
    assert float(grid[0, 0, 0, 0]) == pytest.approx(0.0)


def test_waveform_grid_empty():
    assert waveform_grid([]) is None


def test_brightness_probe_shape_and_values():
    frame = np.full((20, 30, 3), 255.0)
    probe = brightness_probe(frame)
    assert probe.shape == (1, 51)
    np.testing.assert_allclose(probe, 1.0, rtol=1e-6)


def test_brightness_probe_rejects_gray_frame():
    assert brightness_probe(np.zeros((20, 30))) is None
