import math

import numpy as np
import pytest

from densestack.core.activations import ActivationKind
from densestack.core.errors import DimensionMismatch, ShapeMismatch
from densestack.core.layer import Layer
from densestack.core.matrix import Matrix


def _layer(out_dim, in_dim, kind, seed=0):
    layer = Layer(out_dim, in_dim, kind)
    layer.init_random(np.random.default_rng(seed))
    return layer


def test_construction_is_zero_until_initialised():
    layer = Layer(4, 9, ActivationKind.SIGMOID)
    assert layer.weights.width == 9 and layer.weights.height == 4
    assert layer.biases.width == 1 and layer.biases.height == 4
    assert layer.weights == Matrix(9, 4)
    assert layer.biases == Matrix(1, 4)


def test_xavier_range_for_sigmoid():
    layer = _layer(4, 9, ActivationKind.SIGMOID)
    limit = math.sqrt(6 / 13)
    weights = layer.weights.to_numpy()
    assert np.all(weights >= -limit) and np.all(weights <= limit)
    assert np.any(weights != 0.0)
    assert layer.biases == Matrix(1, 4)


@pytest.mark.parametrize(
    "kind, limit",
    [(ActivationKind.RELU, math.sqrt(6 / 9)), (ActivationKind.SOFTMAX, 0.5)],
)
def test_init_ranges_by_activation(kind, limit):
    weights = _layer(4, 9, kind).weights.to_numpy()
    assert np.all(np.abs(weights) <= limit)


def test_init_is_reproducible_with_a_seeded_generator():
    assert _layer(3, 5, ActivationKind.RELU, seed=3).weights == _layer(
        3, 5, ActivationKind.RELU, seed=3
    ).weights


def test_forward_computes_affine_map_then_activation():
    layer = Layer(2, 3, ActivationKind.RELU)
    layer.set_weights(Matrix.from_rows([[1, 0, -1], [0.5, 0.5, 0.5]]))
    layer.set_biases(Matrix.column([0.0, -1.0]))
    batch = Matrix.from_rows([[1, 0], [2, 0], [3, 1]])  # two samples as columns
    result = layer.forward(batch)
    assert result.pre_activation == Matrix.from_rows([[-2, -1], [2, -0.5]])
    assert result.activation == Matrix.from_rows([[0, 0], [2, 0]])
    assert result.inputs == batch
    assert result.batch_size == 2


def test_forward_rejects_wrong_input_height():
    with pytest.raises(DimensionMismatch):
        Layer(2, 3).forward(Matrix(1, 4))


def test_set_weights_validates_shape():
    with pytest.raises(ShapeMismatch):
        Layer(2, 3).set_weights(Matrix(2, 3))
    with pytest.raises(ShapeMismatch):
        Layer(2, 3).set_biases(Matrix(2, 1))


def test_backward_matches_manual_computation():
    rng = np.random.default_rng(1)
    layer = _layer(3, 4, ActivationKind.RELU, seed=2)
    batch = Matrix.from_array(rng.standard_normal((4, 5)))
    next_weights = Matrix.from_array(rng.standard_normal((2, 3)))
    next_deltas = Matrix.from_array(rng.standard_normal((2, 5)))

    forward_pass = layer.forward(batch)
    result = layer.backward(forward_pass, next_weights, next_deltas)

    z = forward_pass.pre_activation.to_numpy()
    delta = (next_weights.to_numpy().T @ next_deltas.to_numpy()) * (z > 0)
    np.testing.assert_allclose(result.delta.to_numpy(), delta)
    np.testing.assert_allclose(
        result.grad_weights.to_numpy(), delta @ batch.to_numpy().T / 5
    )
    np.testing.assert_allclose(result.grad_bias.flat(), delta.mean(axis=1))


def test_softmax_layer_passes_deltas_through():
    layer = _layer(2, 3, ActivationKind.SOFTMAX)
    forward_pass = layer.forward(Matrix.from_rows([[1], [2], [3]]))
    deltas = Matrix.column([0.25, -0.25])
    result = layer.backward(forward_pass, Matrix(2, 2, fill=9.0), deltas)
    assert result.delta == deltas


def test_set_deltas_checks_shape():
    layer = _layer(2, 3, ActivationKind.SOFTMAX)
    forward_pass = layer.forward(Matrix.from_rows([[1], [2], [3]]))
    with pytest.raises(ShapeMismatch):
        layer.set_deltas(forward_pass, Matrix.column([1.0, 2.0, 3.0]))


def test_batch_average_degenerates_for_identical_samples():
    layer = _layer(3, 4, ActivationKind.SOFTMAX, seed=5)
    sample = np.array([0.1, -0.4, 0.9, 0.3])
    delta = np.array([0.2, -0.5, 0.3])

    single = layer.set_deltas(layer.forward(Matrix.column(sample)), Matrix.column(delta))
    k = 6
    batch_pass = layer.forward(Matrix.from_array(np.tile(sample[:, None], (1, k))))
    batched = layer.set_deltas(batch_pass, Matrix.from_array(np.tile(delta[:, None], (1, k))))

    assert batched.grad_weights.allclose(single.grad_weights, tol=1e-12)
    assert batched.grad_bias.allclose(single.grad_bias, tol=1e-12)


def test_update_is_plain_gradient_descent():
    layer = _layer(2, 2, ActivationKind.SIGMOID, seed=4)
    before_w, before_b = layer.weights, layer.biases
    forward_pass = layer.forward(Matrix.column([1.0, -1.0]))
    gradients = layer.set_deltas(forward_pass, Matrix.column([0.5, -0.5]))
    layer.update(gradients, 0.1)
    assert layer.weights.allclose(before_w - gradients.grad_weights * 0.1, tol=1e-15)
    assert layer.biases.allclose(before_b - gradients.grad_bias * 0.1, tol=1e-15)


def test_parameter_accessors_return_copies():
    layer = _layer(2, 2, ActivationKind.RELU)
    weights = layer.weights
    weights.set(0, 0, 123.0)
    assert layer.weights.get(0, 0) != 123.0
