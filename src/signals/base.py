from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from src.config import ModalityConfig
from src.ranking import SOURCE_DEMO, SOURCE_HEURISTIC, SOURCE_MODEL
from src.signals.backends import LoadedModel, LoadFailure, ModelMetadata, load_backend, load_metadata

logger = logging.getLogger(__name__)


class BaseSignal(ABC):
    """
    This is an interface every modality classifier needs to implement.

    A signal owns a label set, an optional loaded model and a heuristic
    reducer. ``score`` picks the best source available for the inputs.
    """

    name: str
    input_type: str  # so far, "pixels" | "samples"

    def __init__(self, config: ModalityConfig, metadata: ModelMetadata = None, backend: LoadedModel = None):
        self.config = config
        self.metadata = metadata if metadata is not None else ModelMetadata(
            labels=config.default_labels, image_size=config.input_size, outputs=config.outputs
        )
        self.backend = backend

    @property
    def labels(self) -> list[str]:
        return list(self.metadata.labels)

    @property
    def demo_mode(self) -> bool:
        return self.backend is None

    @property
    def outputs(self) -> str:
        if self.backend is not None and self.backend.outputs:
            return self.backend.outputs
        return self.metadata.outputs

    @abstractmethod
    def model_input(self, inputs: dict[str, Any]) -> np.ndarray | None: ...

    def heuristic(self, inputs: dict[str, Any]) -> np.ndarray | None:
        return None

    def score(self, inputs: dict[str, Any]) -> tuple[np.ndarray | None, str]:
        # scores computed by a client-side model are passed through as-is
        if inputs.get("scores") is not None:
            return np.asarray(inputs["scores"], dtype=float), SOURCE_MODEL

        if self.backend is not None:
            x = self.model_input(inputs)
            if x is not None:
                try:
                    return self.backend.predict(x), SOURCE_MODEL
                except Exception as e:
                    logger.warning("%s model failed on input, degrading: %s", self.name, e)

        h = self.heuristic(inputs)
        if h is not None:
            return h, SOURCE_HEURISTIC
        return None, SOURCE_DEMO

    def warm_up(self) -> None:
        pass

    @classmethod
    def load(cls, config: ModalityConfig, artifact_root: str) -> "BaseSignal":
        '''
        Load metadata and model for one modality; a failed load leaves the
        signal in demo mode.
        '''
        model_dir = os.path.join(artifact_root, config.model_dir)
        metadata = load_metadata(model_dir, config.default_labels, config.input_size, config.outputs)
        backend = load_backend(model_dir)

        if isinstance(backend, LoadFailure):
            logger.warning("%s: %s Running in demo mode.", config.name, backend.reason)
            return cls(config=config, metadata=metadata)

        signal = cls(config=config, metadata=metadata, backend=backend)
        try:
            signal.warm_up()
        except Exception as e:
            logger.warning("%s: warm-up failed, running in demo mode: %s", config.name, e)
            signal.backend = None
            return signal

        logger.info("%s: loaded %s model from %s (%d labels)", config.name, backend.backend, model_dir, len(signal.labels))
        return signal
