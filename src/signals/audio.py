from __future__ import annotations

from typing import Any

import numpy as np

from src.features import audio_heuristic, waveform_grid
from src.signals.base import BaseSignal


class AudioClassifier(BaseSignal):
    """
    Genre classifier over short clips. The model sees the raw clip folded
    onto a grid; without a model the feature vector is reduced heuristically.
    """

    name = "audio"
    input_type = "samples"

    def model_input(self, inputs: dict[str, Any]) -> np.ndarray | None:
        return waveform_grid(inputs.get("samples"))

    def heuristic(self, inputs: dict[str, Any]) -> np.ndarray | None:
        return audio_heuristic(inputs.get("features"))
