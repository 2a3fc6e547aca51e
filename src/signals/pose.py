from __future__ import annotations

from typing import Any

import numpy as np

from src.features import PoseFeatures, brightness_probe, pose_heuristic
from src.ranking import TopResult
from src.signals.base import BaseSignal


class PoseClassifier(BaseSignal):
    name = "pose"
    input_type = "pixels"

    def model_input(self, inputs: dict[str, Any]) -> np.ndarray | None:
        pixels = inputs.get("pixels")
        if pixels is None:
            return None
        return brightness_probe(pixels)

    def heuristic(self, inputs: dict[str, Any]) -> np.ndarray | None:
        pose = inputs.get("pose")
        if isinstance(pose, dict):
            pose = PoseFeatures(**pose)
        return pose_heuristic(pose)


class RepCounter:
    '''
    Counts repetitions from confident top-1 transitions.

    A result counts only when its top-1 probability is above the threshold;
    each change between consecutive confident labels adds one repetition.
    '''

    def __init__(self, threshold: float = 0.7):
        self.threshold = threshold
        self.reps = 0
        self.last_label: str | None = None

    def update(self, result: TopResult) -> int:
        top1 = result.top1
        if top1 is not None and top1.prob > self.threshold:
            if self.last_label is not None and self.last_label != top1.label:
                self.reps += 1
            self.last_label = top1.label
        return self.reps

    def reset(self) -> None:
        self.reps = 0
        self.last_label = None
