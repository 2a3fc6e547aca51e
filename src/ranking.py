from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

# Added to every random draw so no demo probability is exactly zero
FALLBACK_FLOOR = 0.01

SOURCE_MODEL = "model"
SOURCE_HEURISTIC = "heuristic"
SOURCE_OVERRIDE = "override"
SOURCE_DEMO = "demo"


@dataclass(frozen=True)
class RankedItem:
    label: str
    prob: float


@dataclass(frozen=True)
class TopResult:
    top1: RankedItem | None
    top_k: list[RankedItem]
    all: list[RankedItem]
    latency_ms: float = 0.0
    source: str = SOURCE_MODEL

    @property
    def demo_mode(self) -> bool:
        return self.source == SOURCE_DEMO


'''
Normalization
'''


def normalize(scores: Sequence[float]) -> np.ndarray:
    '''
    Numerically stable softmax.

    The max is subtracted before exponentiating so large logits do not
    overflow. NaN entries are read as 0. When every entry is -inf the sum of
    the exponentials is zero; the divisor is then 1 and the result is the raw
    exponentials (all zeros). A +inf entry takes all of the mass.

    :param scores: Raw scores (logits) or any real-valued vector
    :return: Vector of the same length
    :rtype: np.ndarray
    '''
    x = np.nan_to_num(np.asarray(scores, dtype=float), nan=0.0, posinf=np.inf, neginf=-np.inf)
    if x.size == 0:
        return x

    top = np.max(x)
    if np.isposinf(top):
        exps = (x == top).astype(float)
    elif np.isneginf(top):
        exps = np.exp(x)
    else:
        exps = np.exp(x - top)

    total = exps.sum()
    if total == 0:
        total = 1.0
    return exps / total


def normalize_probabilities(values: Sequence[float]) -> np.ndarray:
    '''
    Divide-by-sum normalization for vectors that are already probabilities.

    Negative, NaN and infinite entries are clipped to 0. A zero sum yields the
    equal distribution.
    '''
    x = np.nan_to_num(np.asarray(values, dtype=float), nan=0.0, posinf=0.0, neginf=0.0)
    if x.size == 0:
        return x
    x = np.clip(x, 0.0, None)
    total = x.sum()
    if total <= 0:
        return np.full(x.size, 1.0 / x.size)
    return x / total


def align_scores(scores: Sequence[float] | None, n_labels: int) -> np.ndarray:
    '''
    Zero-fill policy: missing scores become 0, extra scores are dropped and
    NaN is read as 0.
    '''
    x = np.asarray(scores if scores is not None else [], dtype=float).ravel()
    if x.size != n_labels:
        logger.debug("Aligning %d scores to %d labels", x.size, n_labels)
    aligned = np.zeros(n_labels, dtype=float)
    n = min(x.size, n_labels)
    aligned[:n] = x[:n]
    return np.nan_to_num(aligned, nan=0.0, posinf=np.inf, neginf=-np.inf)


'''
Ranking
'''


def rank(labels: Sequence[str], scores: Sequence[float] | None) -> list[RankedItem]:
    '''
    Pair each label with its score and sort descending.

    The sort is stable, so labels with equal scores keep their original
    order. Scores are aligned to the labels with the zero-fill policy.
    '''
    aligned = align_scores(scores, len(labels))
    pairs = [RankedItem(label=str(label), prob=float(p)) for label, p in zip(labels, aligned)]
    return sorted(pairs, key=lambda item: item.prob, reverse=True)


def top_k(ranking: Sequence[RankedItem], k: int) -> list[RankedItem]:
    return list(ranking[: max(int(k), 0)])


def random_fallback(labels: Sequence[str], rng: np.random.Generator | None = None) -> list[RankedItem]:
    '''
    Demo mode: one uniform draw per label, normalized by the sum and ranked.

    Used when no model or feature vector is available so callers still get a
    well-formed ranking. Every probability lands in (0, 1].
    '''
    if len(labels) == 0:
        return []
    rng = rng if rng is not None else np.random.default_rng()
    draws = rng.random(len(labels)) + FALLBACK_FLOOR
    return rank(labels, draws / draws.sum())


class InferenceRanker:
    '''
    Turns a score source into a TopResult the same way for every modality.
    '''

    def __init__(self, k: int = 3, rng: np.random.Generator | None = None):
        self.k = k
        self.rng = rng if rng is not None else np.random.default_rng()

    def probabilities(self, labels: Sequence[str], scores: Sequence[float], outputs: str = "logits") -> np.ndarray:
        aligned = align_scores(scores, len(labels))
        if outputs == "probabilities":
            return normalize_probabilities(aligned)

        probs = normalize(aligned)
        if probs.size and probs.sum() == 0:
            # every score was -inf
            return np.full(probs.size, 1.0 / probs.size)
        return probs

    def from_scores(
        self,
        labels: Sequence[str],
        scores: Sequence[float] | None,
        k: int | None = None,
        outputs: str = "logits",
        source: str = SOURCE_MODEL,
    ) -> TopResult:
        if scores is None or len(scores) == 0:
            return self.fallback(labels, k=k)
        probs = self.probabilities(labels, scores, outputs=outputs)
        return self._result(rank(labels, probs), k, source)

    def fallback(self, labels: Sequence[str], k: int | None = None) -> TopResult:
        return self._result(random_fallback(labels, rng=self.rng), k, SOURCE_DEMO)

    def _result(self, ranking: list[RankedItem], k: int | None, source: str) -> TopResult:
        k = self.k if k is None else k
        return TopResult(
            top1=ranking[0] if ranking else None,
            top_k=top_k(ranking, k),
            all=ranking,
            source=source,
        )
