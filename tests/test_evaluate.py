from __future__ import annotations

import json

import numpy as np
import pandas as pd
import pytest

from src.config import load_config
from src.evaluate import compute_ranking_metrics, evaluate, write_metrics
from src.ranking import SOURCE_DEMO, RankedItem, TopResult
from src.utils import load_feature_csv


def _result(labels_in_order, source="model") -> TopResult:
    n = len(labels_in_order)
    ranking = [RankedItem(label, (n - i) / (n * (n + 1) / 2)) for i, label in enumerate(labels_in_order)]
    return TopResult(top1=ranking[0], top_k=ranking[:2], all=ranking, source=source)


class TestComputeRankingMetrics:
    def test_perfect_predictions(self):
        results = [_result(["a", "b", "c"]), _result(["b", "a", "c"])]
        metrics = compute_ranking_metrics(["a", "b"], results, ["a", "b", "c"], k=2)
        assert metrics["top1_accuracy"] == 1.0
        assert metrics["topk_accuracy"] == 1.0
        assert metrics["demo_rate"] == 0.0

    def test_topk_counts_near_misses(self):
        results = [_result(["a", "b", "c"]), _result(["a", "c", "b"])]
        metrics = compute_ranking_metrics(["b", "b"], results, ["a", "b", "c"], k=2)
        assert metrics["top1_accuracy"] == 0.0
        assert metrics["topk_accuracy"] == pytest.approx(0.5)

    def test_confusion_matrix_uses_label_order(self):
        results = [_result(["a", "b"]), _result(["a", "b"])]
        metrics = compute_ranking_metrics(["a", "b"], results, ["a", "b"], k=1)
        assert metrics["confusion_matrix"] == [[1, 0], [1, 0]]

    def test_demo_rate(self):
        results = [_result(["a", "b"], source=SOURCE_DEMO), _result(["a", "b"])]
        assert compute_ranking_metrics(["a", "a"], results, ["a", "b"])["demo_rate"] == 0.5

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            compute_ranking_metrics(["a"], [], ["a"])

    def test_true_labels_outside_label_set_raise(self):
        results = [_result(["a", "b"])]
        with pytest.raises(ValueError, match="label set"):
            compute_ranking_metrics(["A"], results, ["a", "b"])


class TestEvaluate:
    def test_audio_heuristic_over_csv(self, tmp_path):
        rows = []
        for label, level in (("reggaetón", 5.0), ("salsa", -5.0)):
            for _ in range(3):
                rows.append({"label": label, **{f"f{i}": level if i < 10 else 0.0 for i in range(30)}})
        csv_path = tmp_path / "eval.csv"
        pd.DataFrame(rows).to_csv(csv_path, index=False)

        df, feature_cols = load_feature_csv(str(csv_path), label_col="label")
        assert len(feature_cols) == 30

        result = evaluate(
            artifact_dir=str(tmp_path / "artifacts"),
            config=load_config(),
            modality="audio",
            eval_df=df,
            feature_cols=feature_cols,
            label_col="label",
            input_key="features",
        )
        assert result["n_eval"] == 6
        assert result["metrics"]["demo_rate"] == 0.0
        assert result["metrics"]["labels"] == ["reggaetón", "rap", "salsa", "electrónica"]
        # loud bass -> first label wins
        assert result["metrics"]["confusion_matrix"][0][0] == 3

    def test_unconfigured_modality_raises(self, tmp_path):
        with pytest.raises(ValueError, match="not configured"):
            evaluate(str(tmp_path), load_config(), "smell", pd.DataFrame(), [], "label")


class TestLoadFeatureCsv:
    def test_missing_label_column_raises(self, tmp_path):
        path = tmp_path / "x.csv"
        pd.DataFrame({"f0": [1.0]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="not found"):
            load_feature_csv(str(path), label_col="label")

    def test_non_numeric_features_zeroed(self, tmp_path):
        path = tmp_path / "x.csv"
        pd.DataFrame({"label": ["a"], "f0": ["oops"], "f1": [2.5]}).to_csv(path, index=False)
        df, cols = load_feature_csv(str(path), label_col="label")
        np.testing.assert_allclose(df[cols].to_numpy(dtype=float), [[0.0, 2.5]])


class TestWriteMetrics:
    def test_writes_json_file(self, tmp_path):
        metrics = {"top1_accuracy": 0.95, "labels": ["reggaetón"]}
        out_path = str(tmp_path / "subdir" / "metrics.json")
        write_metrics(metrics, out_path)
        with open(out_path) as f:
            loaded = json.load(f)
        assert loaded == metrics
