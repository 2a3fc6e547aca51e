from __future__ import annotations

import dataclasses
import logging
import threading
import time
from typing import Any

from src.config import AppConfig
from src.demo_overrides import FilenameOverrideSource
from src.ranking import SOURCE_MODEL, SOURCE_OVERRIDE, InferenceRanker, TopResult
from src.signals.audio import AudioClassifier
from src.signals.base import BaseSignal
from src.signals.image import ImageClassifier
from src.signals.pose import PoseClassifier

logger = logging.getLogger(__name__)

SIGNAL_REGISTRY: dict[str, type[BaseSignal]] = {
    "image": ImageClassifier,
    "audio": AudioClassifier,
    "pose": PoseClassifier,
}


class Predictor:
    def __init__(self, artifact_dir: str, config: AppConfig, overrides: FilenameOverrideSource | None = None):
        self.artifact_dir = artifact_dir
        self.config = config
        self.overrides = overrides
        self.ranker = InferenceRanker(k=config.top_k)

        self.models: list[BaseSignal] = []
        for name, modality in config.modalities.items():
            if name not in SIGNAL_REGISTRY:
                raise ValueError(f"Unknown modality '{name}'. Available: {sorted(SIGNAL_REGISTRY)}")
            self.models.append(SIGNAL_REGISTRY[name].load(modality, artifact_dir))

        # loaded models are not assumed reentrant
        self._locks = {model.name: threading.Lock() for model in self.models}

    def _get_signal(self, name: str) -> BaseSignal:
        return next(s for s in self.models if s.name == name)

    def get_signal(self, name: str) -> BaseSignal:
        try:
            return self._get_signal(name)
        except StopIteration:
            raise KeyError(f'Unknown modality: "{name}" Available: {[m.name for m in self.models]}')

    def predict(
        self, modality: str, inputs: dict[str, Any], top_k: int | None = None, filename: str | None = None
    ) -> TopResult:
        signal = self.get_signal(modality)
        labels = signal.labels

        t0 = time.perf_counter()
        override = self.overrides.scores(modality, filename, labels) if self.overrides else None
        if override is not None:
            result = self.ranker.from_scores(labels, override, k=top_k, outputs="probabilities", source=SOURCE_OVERRIDE)
        else:
            with self._locks[signal.name]:
                scores, source = signal.score(inputs)
            outputs = signal.outputs if source == SOURCE_MODEL else "logits"
            result = self.ranker.from_scores(labels, scores, k=top_k, outputs=outputs, source=source)
            if result.demo_mode:
                logger.debug("%s: no score source, using random fallback", modality)

        latency_ms = (time.perf_counter() - t0) * 1000.0
        return dataclasses.replace(result, latency_ms=latency_ms)

    def info(self) -> dict[str, Any]:
        return {
            "artifact_dir": self.artifact_dir,
            "top_k": self.config.top_k,
            "modalities": [
                {
                    "name": m.name,
                    "labels": m.labels,
                    "image_size": m.metadata.image_size,
                    "backend": m.backend.backend if m.backend is not None else None,
                    "model_version": m.metadata.model_version,
                    "demo_mode": m.demo_mode,
                }
                for m in self.models
            ],
        }
