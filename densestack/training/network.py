"""Feed-forward network: layer stack, mini-batch training loop and weight files."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence

import numpy as np

from ..core.activations import ActivationKind
from ..core.errors import ShapeMismatch
from ..core.layer import Layer
from ..core.matrix import Matrix
from ..core.types import Array, BackwardPass, ForwardPass, Sample, TrainReport
from ..persistence import WeightFile, read_weights, write_weights
from .metrics import EvaluationAccumulator, cross_entropy

logger = logging.getLogger(__name__)

DECAY_EVERY = 10


def _build_layers(widths: Sequence[int]) -> List[Layer]:
    layers: List[Layer] = []
    last = len(widths) - 2
    for idx, (in_dim, out_dim) in enumerate(zip(widths[:-1], widths[1:])):
        kind = ActivationKind.SOFTMAX if idx == last else ActivationKind.RELU
        layers.append(Layer(out_dim, in_dim, kind))
    return layers


def _validate_widths(widths: Sequence[int]) -> List[int]:
    widths = [int(w) for w in widths]
    if len(widths) < 2:
        raise ValueError(f"A network needs at least an input and an output width, got {widths}")
    if any(w < 1 for w in widths):
        raise ValueError(f"Layer widths must be positive, got {widths}")
    return widths


def _as_batch(data: Matrix | Array | Sequence[float]) -> Matrix:
    if isinstance(data, Matrix):
        return data
    array = np.asarray(data, dtype=np.float64)
    if array.ndim == 1:
        return Matrix.column(array)
    return Matrix.from_array(array)


def _emit_epoch(callbacks: Sequence[object], epoch: int, metrics: Mapping[str, float]) -> None:
    for callback in callbacks:
        if hasattr(callback, "on_epoch"):
            callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
        elif callable(callback):
            callback(epoch, metrics)


class Network:
    """Linear stack of dense layers with ReLU hidden layers and a softmax output.

    ``widths`` lists the input width followed by every layer's width, so
    ``Network([784, 512, 10])`` holds two layers. Layer ``i`` reads
    ``widths[i]`` values and produces ``widths[i + 1]``.

    Forward, backward and update calls share per-batch state and must not be
    interleaved across threads on one instance. Separate instances share
    nothing, including their random generators.
    """

    def __init__(
        self,
        widths: Sequence[int],
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._widths = _validate_widths(widths)
        self._layers = _build_layers(self._widths)
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._passes: List[ForwardPass] = []
        self._gradients: List[BackwardPass] = []
        self._output: Matrix | None = None

    def __repr__(self) -> str:
        return f"Network(widths={self._widths})"

    @property
    def widths(self) -> List[int]:
        return list(self._widths)

    @property
    def layers(self) -> tuple[Layer, ...]:
        return tuple(self._layers)

    @property
    def input_width(self) -> int:
        return self._widths[0]

    @property
    def output_width(self) -> int:
        return self._widths[-1]

    @property
    def output(self) -> Matrix | None:
        """Output batch of the most recent :meth:`forward` call."""

        return self._output

    def parameter_count(self) -> int:
        return sum(layer.parameter_count() for layer in self._layers)

    def randomize(self, rng: np.random.Generator | None = None) -> None:
        """Re-initialise every layer; discards anything learned so far."""

        rng = rng if rng is not None else self._rng
        for layer in self._layers:
            layer.init_random(rng)
        self._reset_state()

    def _reset_state(self) -> None:
        self._passes = []
        self._gradients = []
        self._output = None

    # ------------------------------------------------------------------
    # Propagation

    def forward(self, inputs: Matrix | Array | Sequence[float]) -> Matrix:
        """Run a batch (one sample per column) through every layer."""

        batch = _as_batch(inputs)
        passes: List[ForwardPass] = []
        for layer in self._layers:
            forward_pass = layer.forward(batch)
            passes.append(forward_pass)
            batch = forward_pass.activation
        self._passes = passes
        self._gradients = []
        self._output = batch
        return batch

    def backward(self, targets: Matrix | Array) -> List[BackwardPass]:
        """Backpropagate ``output - targets`` through the stack."""

        if self._output is None or not self._passes:
            raise RuntimeError("backward() called before forward()")
        targets = _as_batch(targets)
        delta = self._output - targets

        gradients: List[BackwardPass] = [None] * len(self._layers)  # type: ignore[list-item]
        last = len(self._layers) - 1
        gradients[last] = self._layers[last].set_deltas(self._passes[last], delta)
        carried = gradients[last].delta
        for idx in range(last - 1, -1, -1):
            gradients[idx] = self._layers[idx].backward(
                self._passes[idx], self._layers[idx + 1].weights, carried
            )
            carried = gradients[idx].delta
        self._gradients = gradients
        return list(gradients)

    def update(self, learning_rate: float) -> None:
        if not self._gradients:
            raise RuntimeError("update() called before backward()")
        for layer, gradient in zip(self._layers, self._gradients):
            layer.update(gradient, learning_rate)

    def predict(self, sample: Array | Sequence[float]) -> Array:
        """Class probabilities for a single input vector."""

        vector = np.asarray(sample, dtype=np.float64).reshape(-1)
        if vector.size != self.input_width:
            raise ShapeMismatch(
                f"Expected an input of {self.input_width} values, got {vector.size}"
            )
        return self.forward(Matrix.column(vector)).flat()

    # ------------------------------------------------------------------
    # Training

    def _validate_samples(
        self, inputs: Sequence[Sequence[float]], targets: Sequence[Sequence[float]]
    ) -> List[Sample]:
        if len(inputs) == 0:
            raise ShapeMismatch("No training samples were provided")
        if len(inputs) != len(targets):
            raise ShapeMismatch(
                f"Got {len(inputs)} inputs but {len(targets)} targets"
            )
        samples: List[Sample] = []
        for idx, (x, t) in enumerate(zip(inputs, targets)):
            x = np.asarray(x, dtype=np.float64).reshape(-1)
            t = np.asarray(t, dtype=np.float64).reshape(-1)
            if x.size != self.input_width:
                raise ShapeMismatch(
                    f"Input sample {idx} has {x.size} values; the input layer expects "
                    f"{self.input_width}"
                )
            if t.size != self.output_width:
                raise ShapeMismatch(
                    f"Target sample {idx} has {t.size} values; the output layer has "
                    f"{self.output_width}"
                )
            samples.append(Sample(inputs=x, targets=t))
        return samples

    def train(
        self,
        inputs: Sequence[Sequence[float]],
        targets: Sequence[Sequence[float]],
        train_ratio: float = 0.8,
        epochs: int = 50,
        batch_size: int = 50,
        learning_rate: float = 0.09,
        learning_rate_decay: float = 1.0,
        *,
        rng: np.random.Generator | None = None,
        callbacks: Iterable[object] = (),
    ) -> TrainReport:
        """Train from a fresh random initialisation and evaluate on held-out data.

        Samples are shuffled and split at ``floor(N * train_ratio)``. Every
        epoch reshuffles the training part and walks it in contiguous batches
        of ``batch_size``; a trailing partial batch is skipped. The learning
        rate is multiplied by ``learning_rate_decay`` at the start of every
        epoch whose index is a positive multiple of ten.
        """

        if not 0.0 < train_ratio <= 1.0:
            raise ValueError(f"train_ratio must be in (0, 1], got {train_ratio}")
        if epochs < 0:
            raise ValueError(f"epochs must be non-negative, got {epochs}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        samples = self._validate_samples(inputs, targets)
        rng = rng if rng is not None else self._rng
        callbacks = list(callbacks)

        order = rng.permutation(len(samples))
        samples = [samples[i] for i in order]
        split = math.floor(len(samples) * train_ratio)
        training, held_out = samples[:split], samples[split:]
        logger.info(
            "Training %s on %d samples, holding out %d", self, len(training), len(held_out)
        )

        self.randomize(rng)

        if len(training) < batch_size:
            logger.warning(
                "Training set (%d) is smaller than one batch (%d); no updates will run",
                len(training),
                batch_size,
            )

        lr = float(learning_rate)
        for epoch in range(epochs):
            if epoch > 0 and epoch % DECAY_EVERY == 0:
                lr *= learning_rate_decay
                logger.debug("Learning rate decayed to %g", lr)
            order = rng.permutation(len(training))
            training = [training[i] for i in order]

            losses: List[float] = []
            for start in range(0, len(training) - batch_size + 1, batch_size):
                chunk = training[start : start + batch_size]
                batch_inputs = Matrix.from_array(np.stack([s.inputs for s in chunk], axis=1))
                batch_targets = Matrix.from_array(np.stack([s.targets for s in chunk], axis=1))
                output = self.forward(batch_inputs)
                losses.append(cross_entropy(output, batch_targets))
                self.backward(batch_targets)
                self.update(lr)

            dropped = len(training) % batch_size
            if dropped:
                logger.debug("Skipped %d trailing sample(s) in epoch %d", dropped, epoch + 1)
            mean_loss = float(np.mean(losses)) if losses else float("nan")
            logger.info("Epoch %d/%d loss=%.6f lr=%g", epoch + 1, epochs, mean_loss, lr)
            _emit_epoch(
                callbacks,
                epoch + 1,
                {"loss": mean_loss, "learning_rate": lr, "batches": float(len(losses))},
            )

        report = self._evaluate_samples(held_out)
        logger.info(
            "Held-out cost avg=%.6f min=%.6f max=%.6f hits=%.2f%%",
            report.average_cost,
            report.min_cost,
            report.max_cost,
            report.hit_percentage,
        )
        return report

    def _evaluate_samples(self, samples: Sequence[Sample]) -> TrainReport:
        accumulator = EvaluationAccumulator()
        for sample in samples:
            output = self.forward(Matrix.column(sample.inputs))
            accumulator.add(output.flat(), sample.targets)
        return accumulator.report()

    def evaluate(
        self, inputs: Sequence[Sequence[float]], targets: Sequence[Sequence[float]]
    ) -> TrainReport:
        """Score the current weights one sample at a time without training."""

        return self._evaluate_samples(self._validate_samples(inputs, targets))

    # ------------------------------------------------------------------
    # Persistence

    def save_weights(self, path: str | Path) -> Path:
        parameters = [(layer.weights, layer.biases) for layer in self._layers]
        return write_weights(path, self._widths, parameters)

    def load_weights(self, path: str | Path) -> None:
        """Replace topology and parameters with the contents of ``path``.

        The file is decoded completely before anything is replaced, so a
        failed load leaves this network as it was.
        """

        self._install(read_weights(path))

    def _install(self, decoded: WeightFile) -> None:
        layers = _build_layers(decoded.widths)
        for layer, (weights, biases) in zip(layers, decoded.parameters):
            layer.set_weights(weights)
            layer.set_biases(biases)
        self._widths = list(decoded.widths)
        self._layers = layers
        self._reset_state()

    @classmethod
    def from_weights(
        cls, path: str | Path, *, seed: int | None = None
    ) -> "Network":
        decoded = read_weights(path)
        network = cls(decoded.widths, seed=seed)
        network._install(decoded)
        return network


__all__ = ["Network"]
