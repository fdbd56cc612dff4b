"""Metric helpers for the training loop and held-out evaluation."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from ..core.matrix import Matrix
from ..core.types import Array, TrainReport

logger = logging.getLogger(__name__)


def cross_entropy(probabilities: Matrix, targets: Matrix) -> float:
    """Mean categorical cross-entropy of a batch (one sample per column)."""

    eps = 1e-12
    probs = probabilities.to_numpy()
    target = targets.to_numpy()
    if probs.shape[1] == 0:
        return 0.0
    return float(-np.mean(np.sum(target * np.log(probs + eps), axis=0)))


def squared_error(prediction: Array, target: Array) -> float:
    """Squared error summed over output dimensions, divided by their count."""

    diff = np.asarray(target, dtype=np.float64) - np.asarray(prediction, dtype=np.float64)
    return float(np.sum(diff * diff) / diff.size)


def predicted_class(prediction: Array) -> int:
    return int(np.argmax(prediction))


@dataclass
class EvaluationAccumulator:
    """Running cost and hit counters for a sample-at-a-time evaluation.

    ``min_cost``/``max_cost`` track the per-sample averaged cost, so they are
    directly comparable with ``average_cost``.
    """

    total_cost: float = 0.0
    min_cost: float = math.inf
    max_cost: float = -math.inf
    hits: int = 0
    samples: int = 0

    def add(self, prediction: Array, target: Array) -> float:
        prediction = np.asarray(prediction, dtype=np.float64).reshape(-1)
        target = np.asarray(target, dtype=np.float64).reshape(-1)
        cost = squared_error(prediction, target)
        self.total_cost += cost
        if math.isnan(cost) or math.isnan(self.min_cost):
            # NaN sticks, matching the total.
            self.min_cost = self.max_cost = math.nan
        else:
            self.min_cost = min(self.min_cost, cost)
            self.max_cost = max(self.max_cost, cost)
        if predicted_class(prediction) == int(np.argmax(target)):
            self.hits += 1
        self.samples += 1
        return cost

    def report(self) -> TrainReport:
        if self.samples == 0:
            logger.warning("No held-out samples to evaluate; report values are NaN")
            nan = float("nan")
            return TrainReport(nan, nan, nan, nan, 0)
        return TrainReport(
            average_cost=self.total_cost / self.samples,
            min_cost=self.min_cost,
            max_cost=self.max_cost,
            hit_percentage=self.hits / self.samples * 100.0,
            samples=self.samples,
        )


__all__ = [
    "EvaluationAccumulator",
    "cross_entropy",
    "predicted_class",
    "squared_error",
]
