"""Activation functions and their per-kind dispatch table."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Callable, Mapping

import numpy as np

from .matrix import Matrix
from .types import Array


def sigmoid(x: Array) -> Array:
    """Return the logistic activation ``1 / (1 + e^-x)``."""

    # Split on sign so large |x| never overflows exp().
    out = np.empty_like(x, dtype=np.float64)
    positive = x >= 0
    out[positive] = 1.0 / (1.0 + np.exp(-x[positive]))
    exp_x = np.exp(x[~positive])
    out[~positive] = exp_x / (1.0 + exp_x)
    return out


def sigmoid_deriv(x: Array) -> Array:
    s = sigmoid(x)
    return s * (1.0 - s)


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def relu_deriv(x: Array) -> Array:
    return (x > 0).astype(np.float64)


def softmax_column(z: Array) -> Array:
    """Normalise one column into a probability distribution."""

    shifted = z - np.max(z)
    e = np.exp(shifted)
    return e / np.sum(e)


class ActivationKind(enum.Enum):
    """Closed set of nonlinearities a layer may use."""

    SIGMOID = "sigmoid"
    RELU = "relu"
    SOFTMAX = "softmax"

    @classmethod
    def parse(cls, value: "ActivationKind | str") -> "ActivationKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as exc:
            available = ", ".join(kind.value for kind in cls)
            raise ValueError(f"Unknown activation {value!r}. Available: {available}") from exc

    @property
    def spec(self) -> "ActivationSpec":
        return ACTIVATIONS[self]

    def forward(self, z: Matrix) -> Matrix:
        return self.spec.forward(z)

    def derivative(self, z: Matrix) -> Matrix:
        derivative = self.spec.derivative
        if derivative is None:
            raise ValueError(
                f"{self.value} has no pointwise derivative; seed its delta directly"
            )
        return derivative(z)

    def init_limit(self, input_nodes: int, output_nodes: int) -> float:
        return self.spec.init_limit(input_nodes, output_nodes)


@dataclass(frozen=True)
class ActivationSpec:
    """Forward map, pointwise derivative and weight-init range for one kind."""

    forward: Callable[[Matrix], Matrix]
    derivative: Callable[[Matrix], Matrix] | None
    init_limit: Callable[[int, int], float]


def _xavier_limit(input_nodes: int, output_nodes: int) -> float:
    return math.sqrt(6.0 / (input_nodes + output_nodes))


def _he_limit(input_nodes: int, output_nodes: int) -> float:
    return math.sqrt(6.0 / input_nodes)


def _default_limit(input_nodes: int, output_nodes: int) -> float:
    return 0.5


ACTIVATIONS: Mapping[ActivationKind, ActivationSpec] = {
    ActivationKind.SIGMOID: ActivationSpec(
        forward=lambda z: z.apply(sigmoid),
        derivative=lambda z: z.apply(sigmoid_deriv),
        init_limit=_xavier_limit,
    ),
    ActivationKind.RELU: ActivationSpec(
        forward=lambda z: z.apply(relu),
        derivative=lambda z: z.apply(relu_deriv),
        init_limit=_he_limit,
    ),
    # Softmax is only ever differentiated jointly with cross-entropy.
    ActivationKind.SOFTMAX: ActivationSpec(
        forward=lambda z: z.apply_columns(softmax_column),
        derivative=None,
        init_limit=_default_limit,
    ),
}


__all__ = [
    "ACTIVATIONS",
    "ActivationKind",
    "ActivationSpec",
    "relu",
    "relu_deriv",
    "sigmoid",
    "sigmoid_deriv",
    "softmax_column",
]
