from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd


def load_feature_csv(path: str, label_col: str, num_rows: int = None) -> tuple[pd.DataFrame, list[str]]:
    '''
    Load an evaluation CSV with one label column and numeric feature columns.

    Returns the cleaned frame and the feature column names, in file order.
    '''

    df = pd.read_csv(path, nrows=num_rows)
    if label_col not in df.columns:
        raise ValueError(f"Column {label_col} not found in the dataset.")
    feature_cols = [c for c in df.columns if c != label_col]
    if not feature_cols:
        raise ValueError("Dataset has no feature columns.")

    df = df.dropna(subset=[label_col]).copy()
    df[label_col] = df[label_col].astype(str)
    df[feature_cols] = df[feature_cols].apply(pd.to_numeric, errors="coerce").fillna(0.0)

    return df, feature_cols


def as_float_array(values: Sequence[float] | None) -> np.ndarray:
    """
    Flatten any numeric sequence into a 1-D float array; None becomes empty.
    """
    if values is None:
        return np.zeros(0, dtype=float)
    return np.asarray(values, dtype=float).ravel()
