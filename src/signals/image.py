from __future__ import annotations

from typing import Any

import numpy as np

from src.features import image_tensor
from src.signals.base import BaseSignal


class ImageClassifier(BaseSignal):
    name = "image"
    input_type = "pixels"

    def model_input(self, inputs: dict[str, Any]) -> np.ndarray | None:
        pixels = inputs.get("pixels")
        if pixels is None:
            return None
        return image_tensor(pixels, size=self.metadata.image_size)

    def warm_up(self) -> None:
        # first real frame should not pay for graph initialisation
        size = self.metadata.image_size
        self.backend.predict(np.zeros((1, size, size, 3), dtype=np.float32))
