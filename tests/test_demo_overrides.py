from __future__ import annotations

import os

import numpy as np
import pytest

from src.demo_overrides import FilenameOverrideSource

LABELS = ["Curl bíceps barra", "Flexión (Push-up)", "Press de hombro", "Sentadilla"]
SHIPPED = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "configs", "demo_overrides.yaml")


def test_known_filename_forces_target():
    source = FilenameOverrideSource({"pose": {"Sentadilla1.jpg": "Sentadilla"}})
    np.testing.assert_allclose(source.scores("pose", "Sentadilla1.jpg", LABELS), [0.01, 0.01, 0.01, 0.98])


def test_path_is_reduced_to_basename():
    source = FilenameOverrideSource({"pose": {"Sentadilla1.jpg": "Sentadilla"}})
    assert source.scores("pose", "/tmp/uploads/Sentadilla1.jpg", LABELS) is not None


def test_misses_return_none():
    source = FilenameOverrideSource({"pose": {"Sentadilla1.jpg": "Sentadilla"}})
    assert source.scores("pose", None, LABELS) is None
    assert source.scores("pose", "cat.jpg", LABELS) is None
    assert source.scores("image", "Sentadilla1.jpg", LABELS) is None


def test_target_outside_label_set_is_ignored():
    source = FilenameOverrideSource({"pose": {"Sentadilla1.jpg": "Sentadilla"}})
    assert source.scores("pose", "Sentadilla1.jpg", ["sentadilla", "plancha"]) is None


def test_load_shipped_table():
    source = FilenameOverrideSource.load(SHIPPED)
    assert source.table["pose"]["PushUp1.jpg"] == "Flexión (Push-up)"


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        FilenameOverrideSource.load(str(tmp_path / "missing.yaml"))
