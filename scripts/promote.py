from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

import yaml

RULE_TO_METRIC = {
    "min_top1_accuracy": ("metrics", "top1_accuracy"),
    "min_topk_accuracy": ("metrics", "topk_accuracy"),
    "min_mean_top1_prob": ("metrics", "mean_top1_prob"),
    "min_eval_samples": ("n_eval",),  # top-level key
    "max_demo_rate": ("metrics", "demo_rate"),
}


def load_json(path: str) -> dict[str, Any]:
    with open(path) as f:
        return json.load(f)


def get_metric_value(eval_results: dict[str, Any], rule: str) -> float | int:
    metric_path = RULE_TO_METRIC.get(rule)
    if not metric_path:
        raise ValueError(f"No metric mapping found for rule '{rule}'")
    value = eval_results
    for key in metric_path:
        value = value.get(key)
        if value is None:
            raise ValueError(f"Metric path '{'.'.join(metric_path)}' not found in evaluation results.")
    return value


def check_rules(eval_results: dict[str, Any], rules: dict[str, float]) -> list[tuple[str, float, float]]:
    """Return (rule, threshold, value) for every rule the evaluation fails."""
    failed_rules = []
    for rule_name, threshold_value in rules.items():
        metric_value = get_metric_value(eval_results, rule_name)
        if rule_name.startswith("max_") and metric_value > threshold_value:
            failed_rules.append((rule_name, threshold_value, metric_value))
        if rule_name.startswith("min_") and metric_value < threshold_value:
            failed_rules.append((rule_name, threshold_value, metric_value))
    return failed_rules


def arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Promote a modality model bundle")

    parser.add_argument("--artifact-dir", type=str, required=True, help="Path to the bundle to promote.")
    parser.add_argument("--config", type=str, required=True, help="Config Yaml file.")
    parser.add_argument(
        "--evaluation-results", type=str, required=True, help="Path to the evaluation results JSON file."
    )

    return parser


def main():

    args = arg_parser().parse_args()
    with open(args.config) as f:
        config = yaml.safe_load(f)
        rules = config.get("rules", {})

    eval_results = load_json(args.evaluation_results)

    failed_rules = check_rules(eval_results, rules)
    if failed_rules:
        for rule_name, threshold_value, metric_value in failed_rules:
            print(f"[PROMOTION FAILED] Rule '{rule_name}' not met: {metric_value} fails against {threshold_value}")
        raise RuntimeError("Model promotion failed due to unmet rules.")
    print("[PROMOTION SUCCESS] All promotion rules met.")

    target = os.path.abspath(args.artifact_dir)
    link_dir = os.path.dirname(target)
    link_path = os.path.join(link_dir, "latest")

    tmp_link_path = link_path + "_tmp"
    if os.path.lexists(tmp_link_path):
        os.remove(tmp_link_path)
    os.symlink(target, tmp_link_path)
    os.replace(tmp_link_path, link_path)
    print(f"Promoted bundle at '{target}' to '{link_path}'")

    sys.exit(0)


if __name__ == "__main__":
    main()
