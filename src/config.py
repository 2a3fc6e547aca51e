from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "configs", "modalities.yaml")

OUTPUT_KINDS = ("logits", "probabilities")


@dataclass(frozen=True)
class ModalityConfig:
    name: str
    model_dir: str
    default_labels: tuple[str, ...]
    input_size: int = 224
    outputs: str = "logits"
    colors: dict[str, str] = field(default_factory=dict)
    tips: dict[str, str] = field(default_factory=dict)
    fallback_tip: str = ""
    rep_threshold: float = 0.7


@dataclass(frozen=True)
class AppConfig:
    modalities: dict[str, ModalityConfig]
    top_k: int = 3
    ready_message: str = "Model ready"
    demo_message: str = "Demo mode (random predictions)"


def _modality_from_dict(name: str, raw: dict[str, Any]) -> ModalityConfig:
    known = {f.name for f in fields(ModalityConfig)} - {"name"}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown keys for modality '{name}': {sorted(unknown)}")

    labels = raw.get("default_labels") or []
    if not isinstance(labels, list) or len(labels) == 0:
        raise ValueError(f"Modality '{name}' needs a non-empty default_labels list.")

    outputs = raw.get("outputs", "logits")
    if outputs not in OUTPUT_KINDS:
        raise ValueError(f"Modality '{name}' has outputs={outputs!r}; expected one of {OUTPUT_KINDS}.")

    return ModalityConfig(
        name=name,
        model_dir=str(raw.get("model_dir", name)),
        default_labels=tuple(str(label) for label in labels),
        input_size=int(raw.get("input_size", 224)),
        outputs=outputs,
        colors=dict(raw.get("colors") or {}),
        tips=dict(raw.get("tips") or {}),
        fallback_tip=str(raw.get("fallback_tip", "")),
        rep_threshold=float(raw.get("rep_threshold", 0.7)),
    )


def load_config(path: str | None = None) -> AppConfig:
    '''
    Load the modality configuration YAML.

    :param path: YAML file; defaults to configs/modalities.yaml in the repo
    :return: Parsed configuration
    :rtype: AppConfig
    '''
    path = path or DEFAULT_CONFIG_PATH
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file '{path}' does not exist.")

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    modalities_raw = raw.get("modalities") or {}
    if not modalities_raw:
        raise ValueError("Config must define at least one modality.")

    messages = raw.get("messages") or {}
    defaults = AppConfig(modalities={})
    return AppConfig(
        modalities={name: _modality_from_dict(name, spec or {}) for name, spec in modalities_raw.items()},
        top_k=int(raw.get("top_k", defaults.top_k)),
        ready_message=str(messages.get("ready", defaults.ready_message)),
        demo_message=str(messages.get("demo", defaults.demo_message)),
    )
