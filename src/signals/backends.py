from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

import joblib
import numpy as np

logger = logging.getLogger(__name__)

ONNX_FILENAME = "model.onnx"
JOBLIB_FILENAME = "model.joblib"
METADATA_FILENAME = "metadata.json"


@dataclass(frozen=True)
class ModelMetadata:
    labels: tuple[str, ...]
    image_size: int = 224
    outputs: str = "logits"
    model_version: str = "unknown"


@dataclass(frozen=True)
class LoadFailure:
    reason: str


class LoadedModel(ABC):
    """
    An opaque pretrained model. predict() returns one flat score row.
    """

    backend: str
    # "probabilities" | "logits" when the backend knows, else None
    outputs: str | None = None

    @abstractmethod
    def predict(self, x) -> np.ndarray: ...


class JoblibModel(LoadedModel):
    backend = "joblib"

    def __init__(self, estimator):
        self.estimator = estimator
        self.outputs = "probabilities" if hasattr(estimator, "predict_proba") else "logits"

    def predict(self, x) -> np.ndarray:
        X = np.asarray(x, dtype=float).reshape(1, -1)
        if hasattr(self.estimator, "predict_proba"):
            return np.asarray(self.estimator.predict_proba(X))[0]
        return np.asarray(self.estimator.decision_function(X)).reshape(-1)

    @classmethod
    def load(cls, path: str) -> "JoblibModel":
        return cls(joblib.load(path))


class OnnxModel(LoadedModel):
    backend = "onnx"

    def __init__(self, session):
        self.session = session
        self.input_name = session.get_inputs()[0].name

    def predict(self, x) -> np.ndarray:
        outputs = self.session.run(None, {self.input_name: np.asarray(x, dtype=np.float32)})
        return np.asarray(outputs[0])[0].reshape(-1)

    @classmethod
    def load(cls, path: str) -> "OnnxModel":
        import onnxruntime as ort

        return cls(ort.InferenceSession(path, providers=["CPUExecutionProvider"]))


def load_backend(model_dir: str) -> LoadedModel | LoadFailure:
    '''
    Load whichever model file the directory holds, ONNX first.

    Never raises: a missing directory, a missing file or a load error is
    returned as a LoadFailure so the caller can run in demo mode.
    '''
    if not os.path.isdir(model_dir):
        return LoadFailure(f"Model directory '{model_dir}' does not exist.")

    onnx_path = os.path.join(model_dir, ONNX_FILENAME)
    joblib_path = os.path.join(model_dir, JOBLIB_FILENAME)
    try:
        if os.path.exists(onnx_path):
            return OnnxModel.load(onnx_path)
        if os.path.exists(joblib_path):
            return JoblibModel.load(joblib_path)
    except Exception as e:
        return LoadFailure(f"Failed to load model from '{model_dir}': {e}")

    return LoadFailure(f"No {ONNX_FILENAME} or {JOBLIB_FILENAME} in '{model_dir}'.")


def load_metadata(
    model_dir: str,
    default_labels: Sequence[str],
    default_size: int = 224,
    default_outputs: str = "logits",
) -> ModelMetadata:
    '''
    Read labels and input size from metadata.json, falling back to defaults.

    Both ``imageSize`` and ``image_size`` keys are accepted.
    '''
    defaults = ModelMetadata(labels=tuple(default_labels), image_size=default_size, outputs=default_outputs)
    metadata_path = os.path.join(model_dir, METADATA_FILENAME)
    if not os.path.exists(metadata_path):
        logger.warning("No metadata at %s, using default labels", metadata_path)
        return defaults

    try:
        with open(metadata_path, encoding="utf-8") as f:
            meta = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not read metadata %s, using default labels: %s", metadata_path, e)
        return defaults
    if not isinstance(meta, dict):
        logger.warning("Metadata %s is not a JSON object, using default labels", metadata_path)
        return defaults

    labels = meta.get("labels")
    if not isinstance(labels, list) or len(labels) == 0:
        labels = defaults.labels
    size = meta.get("imageSize", meta.get("image_size"))
    outputs = meta.get("outputs")

    return ModelMetadata(
        labels=tuple(str(label) for label in labels),
        image_size=size if isinstance(size, int) and not isinstance(size, bool) and size > 0 else defaults.image_size,
        outputs=outputs if outputs in ("logits", "probabilities") else defaults.outputs,
        model_version=str(meta.get("model_version", defaults.model_version)),
    )
