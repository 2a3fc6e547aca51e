"""
Demo fixture: force a known answer for specific sample filenames.

This exists so a live demo can show curated sample images with a fixed
prediction. It is opt-in (DEMO_OVERRIDES_PATH) and is consulted by the
Predictor before any model; the ranking code knows nothing about it.

YAML layout::

    pose:
      Sentadilla1.jpg: Sentadilla
      PushUp1.jpg: "Flexión (Push-up)"
"""

from __future__ import annotations

import logging
import os
from typing import Sequence

import numpy as np
import yaml

logger = logging.getLogger(__name__)

TARGET_SCORE = 0.98
OTHER_SCORE = 0.01


class FilenameOverrideSource:
    def __init__(self, table: dict[str, dict[str, str]] = None):
        self.table = table or {}

    def scores(self, modality: str, filename: str | None, labels: Sequence[str]) -> np.ndarray | None:
        if not filename:
            return None
        target = self.table.get(modality, {}).get(os.path.basename(filename))
        if target is None:
            return None
        if target not in labels:
            logger.debug("Override target %r for %s is not a %s label", target, filename, modality)
            return None
        return np.array([TARGET_SCORE if label == target else OTHER_SCORE for label in labels])

    @classmethod
    def load(cls, path: str) -> "FilenameOverrideSource":
        if not os.path.exists(path):
            raise FileNotFoundError(f"Demo overrides file '{path}' does not exist.")
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        table = {str(modality): {str(k): str(v) for k, v in (entries or {}).items()} for modality, entries in raw.items()}
        logger.info("Loaded demo overrides for %s", sorted(table))
        return cls(table)
