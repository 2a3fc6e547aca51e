from __future__ import annotations

import argparse
import dataclasses
import json
import os

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, confusion_matrix

from src.config import AppConfig, load_config
from src.predict import SIGNAL_REGISTRY, Predictor
from src.ranking import TopResult
from src.utils import load_feature_csv

INPUT_KEYS = ("scores", "features", "samples", "pixels")


def compute_ranking_metrics(y_true: list[str], results: list[TopResult], labels: list[str], k: int = 3) -> dict:
    """
    Compute top-1 / top-k accuracy and a confusion matrix over ranked results.

    :param y_true: True labels, one per result
    :type y_true: list[str]
    :param results: Ranked results in the same order
    :type results: list[TopResult]
    :param labels: Label set, in model order; sets the confusion matrix axes
    :type labels: list[str]
    :param k: Cut-off for top-k accuracy
    :type k: int
    :return: Dictionary of metrics
    :rtype: dict
    """
    if len(y_true) != len(results):
        raise ValueError(f"Got {len(y_true)} labels for {len(results)} results.")
    if len(results) == 0:
        raise ValueError("Nothing to evaluate.")
    if not set(y_true) & set(labels):
        raise ValueError(
            f"None of the true labels {sorted(set(y_true))} are in the model's label set {list(labels)}."
        )

    y_pred = [r.top1.label if r.top1 is not None else "" for r in results]
    hits_k = [truth in {item.label for item in r.all[:k]} for truth, r in zip(y_true, results)]

    return {
        "top1_accuracy": float(accuracy_score(y_true, y_pred)),
        "topk_accuracy": float(np.mean(hits_k)),
        "k": int(k),
        "demo_rate": float(np.mean([r.demo_mode for r in results])),
        "mean_top1_prob": float(np.mean([r.top1.prob if r.top1 is not None else 0.0 for r in results])),
        "labels": list(labels),
        "confusion_matrix": confusion_matrix(y_true, y_pred, labels=labels).tolist(),
    }


def evaluate(
    artifact_dir: str,
    config: AppConfig,
    modality: str,
    eval_df: pd.DataFrame,
    feature_cols: list[str],
    label_col: str,
    input_key: str = "features",
    k: int | None = None,
) -> dict:

    if modality not in config.modalities:
        raise ValueError(f"Modality '{modality}' is not configured.")
    single = dataclasses.replace(config, modalities={modality: config.modalities[modality]})
    predictor = Predictor(artifact_dir=artifact_dir, config=single)
    signal = predictor.get_signal(modality)
    k = k if k is not None else config.top_k

    rows = eval_df[feature_cols].to_numpy(dtype=float)
    results = [predictor.predict(modality, {input_key: row}, top_k=k) for row in rows]
    y_true = eval_df[label_col].tolist()

    return {
        "modality": modality,
        "model_version": signal.metadata.model_version,
        "artifact_dir": artifact_dir,
        "input_key": input_key,
        "n_eval": int(len(eval_df)),
        "metrics": compute_ranking_metrics(y_true, results, signal.labels, k=k),
    }


def write_metrics(metrics: dict, out_path: str) -> None:
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w") as f:
        json.dump(metrics, f, indent=2, sort_keys=True, ensure_ascii=False)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate a modality classifier")
    parser.add_argument(
        "--modality", type=str, choices=list(SIGNAL_REGISTRY.keys()), required=True,
        help="Modality to evaluate.",
    )
    parser.add_argument("--artifact-dir", type=str, required=True, help="Root directory holding the model bundles")
    parser.add_argument("--eval-data-path", type=str, required=True, help="Path to the evaluation dataset CSV file")
    parser.add_argument("--label-col", type=str, default="label", help="Name of the label column in the dataset")
    parser.add_argument(
        "--input-key", type=str, choices=list(INPUT_KEYS), default="features",
        help="How each feature row is fed to the classifier",
    )
    parser.add_argument("--config", type=str, default=None, help="Modality config YAML")
    parser.add_argument("--k", type=int, default=None, help="Cut-off for top-k accuracy")
    parser.add_argument(
        "--out-filename", type=str, default="metrics.json", help="Output path for the evaluation metrics JSON file"
    )
    return parser


def main():

    args = build_arg_parser().parse_args()

    df, feature_cols = load_feature_csv(path=args.eval_data_path, label_col=args.label_col)
    config = load_config(args.config)

    metrics = evaluate(
        artifact_dir=args.artifact_dir,
        config=config,
        modality=args.modality,
        eval_df=df,
        feature_cols=feature_cols,
        label_col=args.label_col,
        input_key=args.input_key,
        k=args.k,
    )

    write_metrics(metrics, args.out_filename)
    print(f"[evaluate] Metrics written to {args.out_filename}")
    print(f"[evaluate] Metrics: {json.dumps(metrics, indent=2, sort_keys=True, ensure_ascii=False)}")


if __name__ == "__main__":
    main()
