"""Core typing contracts for densestack."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .matrix import Matrix

Array = np.ndarray


@dataclass(frozen=True)
class Sample:
    """One (input column, target column) pair used by the training loop."""

    inputs: Array
    targets: Array


@dataclass(frozen=True)
class ForwardPass:
    """Values a layer saw and produced during one forward call."""

    inputs: Matrix
    pre_activation: Matrix
    activation: Matrix

    @property
    def batch_size(self) -> int:
        return self.inputs.width


@dataclass(frozen=True)
class BackwardPass:
    """Error signal and batch-averaged gradients for one layer."""

    delta: Matrix
    grad_weights: Matrix
    grad_bias: Matrix


@dataclass(frozen=True)
class TrainReport:
    """Summary returned by :meth:`densestack.training.network.Network.train`."""

    average_cost: float
    min_cost: float
    max_cost: float
    hit_percentage: float
    samples: int

    def as_dict(self) -> dict[str, float]:
        return {
            "average_cost": float(self.average_cost),
            "min_cost": float(self.min_cost),
            "max_cost": float(self.max_cost),
            "hit_percentage": float(self.hit_percentage),
            "samples": int(self.samples),
        }


__all__ = ["Array", "Sample", "ForwardPass", "BackwardPass", "TrainReport"]
