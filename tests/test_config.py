from __future__ import annotations

import pytest
import yaml

from src.config import load_config


def _write(tmp_path, payload) -> str:
    path = tmp_path / "modalities.yaml"
    path.write_text(yaml.safe_dump(payload, allow_unicode=True))
    return str(path)


def test_default_config_loads_all_modalities():
    config = load_config()
    assert set(config.modalities) == {"image", "audio", "pose"}
    assert config.top_k == 3
    image = config.modalities["image"]
    assert image.default_labels == ("Carton", "Vidrio", "Metal", "plastico", "Papel", "Basura")
    assert image.colors["Papel"] == "paper"
    assert image.tips["Vidrio"].startswith("Vidrio")
    assert config.modalities["audio"].default_labels == ("reggaetón", "rap", "salsa", "electrónica")
    assert len(config.modalities["pose"].default_labels) == 6
    assert config.modalities["pose"].rep_threshold == pytest.approx(0.7)


def test_minimal_modality_gets_defaults(tmp_path):
    config = load_config(_write(tmp_path, {"modalities": {"audio": {"default_labels": ["jazz", "rock"]}}}))
    audio = config.modalities["audio"]
    assert audio.model_dir == "audio"
    assert audio.outputs == "logits"
    assert audio.tips == {}
    assert config.top_k == 3


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_no_modalities_raises(tmp_path):
    with pytest.raises(ValueError, match="at least one modality"):
        load_config(_write(tmp_path, {"top_k": 2}))


def test_empty_labels_raise(tmp_path):
    with pytest.raises(ValueError, match="default_labels"):
        load_config(_write(tmp_path, {"modalities": {"image": {"default_labels": []}}}))


def test_bad_outputs_raise(tmp_path):
    payload = {"modalities": {"image": {"default_labels": ["a"], "outputs": "softmax"}}}
    with pytest.raises(ValueError, match="outputs"):
        load_config(_write(tmp_path, payload))


def test_unknown_keys_raise(tmp_path):
    payload = {"modalities": {"image": {"default_labels": ["a"], "colour": {}}}}
    with pytest.raises(ValueError, match="Unknown keys"):
        load_config(_write(tmp_path, payload))
