from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from src.utils import as_float_array

AUDIO_GRID_HEIGHT = 646
AUDIO_GRID_WIDTH = 64
POSE_PROBE_SIZE = 51


@dataclass(frozen=True)
class PoseFeatures:
    knee_angle: float = 180.0
    elbow_angle: float = 180.0
    hip_y: float = 0.5


'''
Heuristic reducers
'''


def audio_heuristic(feature_vector: Sequence[float] | None, band: int = 10) -> np.ndarray | None:
    '''
    Reduce an audio feature vector to [bass, mean, treble, |treble - bass|].

    Bass and treble are the means of the first and last ``band`` values.
    An empty or missing vector has no signal and returns None.

    :param feature_vector: Spectrum-like feature vector
    :type feature_vector: Sequence[float] | None
    :param band: Number of values averaged at each end
    :type band: int
    :return: 4-value score vector or None
    :rtype: np.ndarray | None
    '''
    x = as_float_array(feature_vector)
    if x.size == 0:
        return None

    mean = float(np.mean(x))
    bass = float(np.mean(x[:band]))
    treble = float(np.mean(x[-band:]))
    return np.array([bass, mean, treble, abs(treble - bass)])


def pose_heuristic(features: PoseFeatures | None) -> np.ndarray | None:
    '''
    Reduce joint angles to a 6-value score vector, one per default exercise.
    '''
    if features is None:
        return None
    return np.array(
        [
            180.0 - features.knee_angle,
            180.0 - features.elbow_angle,
            10.0,
            5.0,
            10.0 * (1.0 - features.hip_y),
            3.0,
        ]
    )


'''
Model input preparation
'''


def _nearest_resize(image: np.ndarray, size: int) -> np.ndarray:
    rows = (np.arange(size) * image.shape[0] / size).astype(int)
    cols = (np.arange(size) * image.shape[1] / size).astype(int)
    return image[rows][:, cols]


def _as_frame(pixels) -> np.ndarray | None:
    # ragged rows or non-numeric values
    try:
        return np.asarray(pixels, dtype=np.float32)
    except (TypeError, ValueError):
        return None


def image_tensor(pixels, size: int = 224) -> np.ndarray | None:
    '''
    HxWx3 pixels in 0..255 -> [1, size, size, 3] float32 in 0..1.
    '''
    image = _as_frame(pixels)
    if image is None or image.ndim != 3 or image.shape[-1] != 3 or image.shape[0] == 0 or image.shape[1] == 0:
        return None
    if image.shape[0] != size or image.shape[1] != size:
        image = _nearest_resize(image, size)
    return (image / 255.0)[np.newaxis, ...]


def waveform_grid(
    samples: Sequence[float] | None,
    height: int = AUDIO_GRID_HEIGHT,
    width: int = AUDIO_GRID_WIDTH,
) -> np.ndarray | None:
    '''
    Nearest-sample resample of a mono clip onto a [1, height, width, 1] grid.

    Samples in -1..1 are mapped to 0..1. This is the demo's stand-in for a
    spectrogram, not a real one.
    '''
    x = as_float_array(samples)
    if x.size == 0:
        return None
    target = height * width
    idx = np.floor(np.arange(target) * (x.size / target)).astype(int)
    grid = (x[np.minimum(idx, x.size - 1)] + 1.0) / 2.0
    return grid.astype(np.float32).reshape(1, height, width, 1)


def brightness_probe(pixels, n: int = POSE_PROBE_SIZE) -> np.ndarray | None:
    '''
    Sample ``n`` gray values from a frame as a [1, n] pose model input.

    Rows are spread evenly down the frame and columns are scattered with a
    stride of 7. No keypoints are computed.
    '''
    image = _as_frame(pixels)
    if image is None or image.ndim != 3 or image.shape[-1] < 3 or image.shape[0] == 0 or image.shape[1] == 0:
        return None
    height, width = image.shape[:2]
    rows = np.floor(np.arange(n) / n * height).astype(int)
    cols = (np.arange(n) * 7) % width
    gray = image[rows, cols, :3].sum(axis=-1) / (3 * 255.0)
    return gray.astype(np.float32).reshape(1, n)
