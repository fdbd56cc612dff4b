import math

import numpy as np
import pytest

from densestack.core.errors import ShapeMismatch
from densestack.core.matrix import Matrix
from densestack.training.metrics import EvaluationAccumulator
from densestack.training.network import Network

XOR_INPUTS = [[0, 0], [0, 1], [1, 0], [1, 1]]
XOR_TARGETS = [[1, 0], [0, 1], [0, 1], [1, 0]]


def _snapshot(net):
    return [(layer.weights, layer.biases) for layer in net.layers]


def test_mismatched_input_width_leaves_parameters_untouched():
    net = Network([2, 3, 2], seed=0)
    net.randomize()
    before = _snapshot(net)
    with pytest.raises(ShapeMismatch):
        net.train([[0, 0, 0]] * 4, XOR_TARGETS, train_ratio=0.5, epochs=1, batch_size=1)
    assert _snapshot(net) == before


def test_mismatched_target_width():
    net = Network([2, 3, 2], seed=0)
    with pytest.raises(ShapeMismatch):
        net.train(XOR_INPUTS, [[1, 0, 0]] * 4, epochs=1, batch_size=1)


def test_mismatched_sample_counts_and_empty_input():
    net = Network([2, 3, 2], seed=0)
    with pytest.raises(ShapeMismatch):
        net.train(XOR_INPUTS, XOR_TARGETS[:3], epochs=1, batch_size=1)
    with pytest.raises(ShapeMismatch):
        net.train([], [], epochs=1, batch_size=1)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"train_ratio": 0.0},
        {"train_ratio": 1.5},
        {"epochs": -1},
        {"batch_size": 0},
    ],
)
def test_invalid_hyperparameters(kwargs):
    net = Network([2, 3, 2], seed=0)
    params = {"train_ratio": 0.5, "epochs": 1, "batch_size": 1, **kwargs}
    with pytest.raises(ValueError):
        net.train(XOR_INPUTS, XOR_TARGETS, **params)


def test_trailing_partial_batch_is_dropped():
    inputs = XOR_INPUTS * 3
    targets = XOR_TARGETS * 3
    seen = []
    net = Network([2, 3, 2], seed=0)
    net.train(
        inputs,
        targets,
        train_ratio=0.75,
        epochs=2,
        batch_size=4,
        callbacks=[lambda epoch, metrics: seen.append(metrics["batches"])],
    )
    assert seen == [2.0, 2.0]


def test_learning_rate_decays_every_ten_epochs():
    history = []

    class Capture:
        def on_epoch(self, epoch, metrics):
            history.append((epoch, metrics["learning_rate"]))

    net = Network([2, 3, 2], seed=0)
    net.train(
        XOR_INPUTS,
        XOR_TARGETS,
        train_ratio=0.5,
        epochs=25,
        batch_size=2,
        learning_rate=0.8,
        learning_rate_decay=0.5,
        callbacks=[Capture()],
    )
    rates = dict(history)
    assert rates[1] == pytest.approx(0.8)
    assert rates[10] == pytest.approx(0.8)
    assert rates[11] == pytest.approx(0.4)
    assert rates[20] == pytest.approx(0.4)
    assert rates[21] == pytest.approx(0.2)
    assert rates[25] == pytest.approx(0.2)


def test_train_restarts_from_fresh_initialisation():
    first = Network([2, 3, 2])
    first.train(XOR_INPUTS * 5, XOR_TARGETS * 5, epochs=5, batch_size=2,
                rng=np.random.default_rng(42))
    trained_once = [layer.weights for layer in first.layers]

    first.train(XOR_INPUTS * 5, XOR_TARGETS * 5, epochs=5, batch_size=2,
                rng=np.random.default_rng(42))
    assert [layer.weights for layer in first.layers] == trained_once


def test_empty_held_out_set_reports_nan():
    net = Network([2, 3, 2], seed=0)
    report = net.train(XOR_INPUTS, XOR_TARGETS, train_ratio=1.0, epochs=1, batch_size=2)
    assert report.samples == 0
    assert math.isnan(report.average_cost)
    assert math.isnan(report.hit_percentage)


def test_report_min_max_bracket_average():
    net = Network([2, 4, 2], seed=1)
    report = net.train(XOR_INPUTS * 5, XOR_TARGETS * 5, train_ratio=0.6, epochs=3,
                       batch_size=2)
    assert report.samples == 8
    assert report.min_cost <= report.average_cost <= report.max_cost
    assert 0.0 <= report.hit_percentage <= 100.0


def test_evaluate_counts_hits_by_argmax():
    net = Network([2, 2], seed=0)
    layer = net.layers[0]
    # Output class equals the larger input coordinate.
    layer.set_weights(Matrix.from_rows([[10.0, 0.0], [0.0, 10.0]]))
    report = net.evaluate([[1, 0], [0, 1], [1, 0]], [[1, 0], [0, 1], [0, 1]])
    assert report.samples == 3
    assert report.hit_percentage == pytest.approx(200 / 3)


def test_nan_prediction_propagates_to_cost_extremes():
    accumulator = EvaluationAccumulator()
    accumulator.add([0.9, 0.1], [1.0, 0.0])
    accumulator.add([np.nan, np.nan], [0.0, 1.0])
    accumulator.add([0.2, 0.8], [0.0, 1.0])
    report = accumulator.report()
    assert report.samples == 3
    assert math.isnan(report.average_cost)
    assert math.isnan(report.min_cost)
    assert math.isnan(report.max_cost)
