"""A single dense layer: weights, biases and its forward/backward maths."""

from __future__ import annotations

import numpy as np

from .activations import ActivationKind
from .errors import DimensionMismatch, ShapeMismatch
from .matrix import Matrix
from .types import BackwardPass, ForwardPass


class Layer:
    """Dense layer mapping ``input_nodes`` values to ``output_nodes`` values.

    ``weights`` is ``input_nodes`` wide and ``output_nodes`` high, ``biases`` is
    a ``1 x output_nodes`` column. Both start at zero until :meth:`init_random`
    runs. The layer keeps no per-batch state: :meth:`forward` returns a
    :class:`ForwardPass` and the gradient methods return a
    :class:`BackwardPass`, which the caller hands back to :meth:`update`.
    """

    def __init__(
        self,
        output_nodes: int,
        input_nodes: int,
        activation: ActivationKind | str = ActivationKind.SIGMOID,
    ) -> None:
        if output_nodes < 1 or input_nodes < 1:
            raise ValueError(
                f"Layer sizes must be positive, got {output_nodes} outputs and {input_nodes} inputs"
            )
        self.output_nodes = int(output_nodes)
        self.input_nodes = int(input_nodes)
        self.activation = ActivationKind.parse(activation)
        self._weights = Matrix(self.input_nodes, self.output_nodes)
        self._biases = Matrix(1, self.output_nodes)

    def __repr__(self) -> str:
        return (
            f"Layer(output_nodes={self.output_nodes}, input_nodes={self.input_nodes}, "
            f"activation={self.activation.value})"
        )

    # ------------------------------------------------------------------
    # Parameters

    @property
    def weights(self) -> Matrix:
        return self._weights.copy()

    @property
    def biases(self) -> Matrix:
        return self._biases.copy()

    def set_weights(self, weights: Matrix) -> None:
        if weights.shape != self._weights.shape:
            raise ShapeMismatch(
                f"Expected weights of {self.input_nodes}x{self.output_nodes}, "
                f"got {weights.width}x{weights.height}"
            )
        self._weights = weights.copy()

    def set_biases(self, biases: Matrix) -> None:
        if biases.shape != self._biases.shape:
            raise ShapeMismatch(
                f"Expected biases of 1x{self.output_nodes}, got {biases.width}x{biases.height}"
            )
        self._biases = biases.copy()

    def parameter_count(self) -> int:
        return self.output_nodes * self.input_nodes + self.output_nodes

    def init_random(self, rng: np.random.Generator) -> None:
        """Draw fresh uniform weights sized for the activation and zero the biases."""

        limit = self.activation.init_limit(self.input_nodes, self.output_nodes)
        values = rng.uniform(-limit, limit, size=self.output_nodes * self.input_nodes)
        self._weights = Matrix.from_flat(self.input_nodes, self.output_nodes, values)
        self._biases = Matrix(1, self.output_nodes)

    # ------------------------------------------------------------------
    # Propagation

    def forward(self, inputs: Matrix) -> ForwardPass:
        """Propagate an ``input_nodes``-high batch (one sample per column)."""

        if inputs.height != self.input_nodes:
            raise DimensionMismatch(
                f"Layer expects {self.input_nodes} input rows, got {inputs.height}"
            )
        pre_activation = (self._weights * inputs).add_column(self._biases)
        activation = self.activation.forward(pre_activation)
        return ForwardPass(inputs=inputs, pre_activation=pre_activation, activation=activation)

    def backward(
        self,
        forward_pass: ForwardPass,
        next_weights: Matrix,
        next_deltas: Matrix,
    ) -> BackwardPass:
        """Pull the error of the following layer back through ``next_weights``."""

        if self.activation is ActivationKind.SOFTMAX:
            delta = next_deltas
        else:
            raw_delta = next_weights.transpose() * next_deltas
            delta = raw_delta.hadamard(self.activation.derivative(forward_pass.pre_activation))
        return self._gradients(forward_pass, delta)

    def set_deltas(self, forward_pass: ForwardPass, delta: Matrix) -> BackwardPass:
        """Seed the output layer with ``output - target``."""

        if delta.shape != forward_pass.activation.shape:
            raise ShapeMismatch(
                f"Delta of {delta.width}x{delta.height} does not match the "
                f"{forward_pass.activation.width}x{forward_pass.activation.height} activation"
            )
        return self._gradients(forward_pass, delta)

    def _gradients(self, forward_pass: ForwardPass, delta: Matrix) -> BackwardPass:
        batch_size = forward_pass.batch_size
        grad_bias = delta.row_mean()
        grad_weights = (delta * forward_pass.inputs.transpose()) / batch_size
        return BackwardPass(delta=delta, grad_weights=grad_weights, grad_bias=grad_bias)

    def update(self, backward_pass: BackwardPass, learning_rate: float) -> None:
        """Plain gradient-descent step."""

        self._weights = self._weights - backward_pass.grad_weights * learning_rate
        self._biases = self._biases - backward_pass.grad_bias * learning_rate


__all__ = ["Layer"]
