import numpy as np
import pytest

from densestack.core.errors import IOFailure
from densestack.core.matrix import Matrix
from densestack.persistence import FLOAT_DTYPE, INT_DTYPE, SIZE_DTYPE, read_weights
from densestack.training.network import Network


@pytest.fixture
def trained_network():
    net = Network([3, 4, 2], seed=5)
    net.randomize()
    # Non-zero biases so the round trip exercises them too.
    for idx, layer in enumerate(net.layers):
        layer.set_biases(Matrix.column(np.linspace(-1, 1, layer.output_nodes) * (idx + 1)))
    return net


def test_round_trip_reproduces_forward_output(tmp_path, trained_network):
    path = tmp_path / "weights.bin"
    trained_network.save_weights(path)
    sample = Matrix.column([0.2, -0.7, 1.3])
    expected = trained_network.forward(sample)

    fresh = Network([5, 5], seed=99)
    fresh.load_weights(path)
    assert fresh.widths == [3, 4, 2]
    assert fresh.forward(sample) == expected
    for left, right in zip(fresh.layers, trained_network.layers):
        assert left.weights == right.weights
        assert left.biases == right.biases

    rebuilt = Network.from_weights(path)
    assert rebuilt.forward(sample) == expected


def test_byte_layout(tmp_path, trained_network):
    path = tmp_path / "weights.bin"
    trained_network.save_weights(path)
    raw = path.read_bytes()

    offset = 0
    (count,) = np.frombuffer(raw, dtype=SIZE_DTYPE, count=1)
    offset += SIZE_DTYPE.itemsize
    widths = np.frombuffer(raw, dtype=INT_DTYPE, count=int(count), offset=offset)
    offset += INT_DTYPE.itemsize * int(count)
    assert int(count) == 3
    assert widths.tolist() == [3, 4, 2]

    first = trained_network.layers[0]
    weights = np.frombuffer(raw, dtype=FLOAT_DTYPE, count=12, offset=offset)
    np.testing.assert_array_equal(weights, first.weights.flat())
    # Row-major per (out, in): the second value is output node 0, input 1.
    assert weights[1] == first.weights.get(1, 0)
    offset += 12 * FLOAT_DTYPE.itemsize
    biases = np.frombuffer(raw, dtype=FLOAT_DTYPE, count=4, offset=offset)
    np.testing.assert_array_equal(biases, first.biases.flat())

    expected_size = (
        SIZE_DTYPE.itemsize
        + 3 * INT_DTYPE.itemsize
        + (3 * 4 + 4 + 4 * 2 + 2) * FLOAT_DTYPE.itemsize
    )
    assert len(raw) == expected_size


def test_missing_file_raises(tmp_path):
    with pytest.raises(IOFailure):
        read_weights(tmp_path / "absent.bin")


def test_truncated_file_leaves_network_unchanged(tmp_path, trained_network):
    path = tmp_path / "weights.bin"
    trained_network.save_weights(path)
    path.write_bytes(path.read_bytes()[:-8])

    target = Network([2, 2], seed=1)
    target.randomize()
    before = [layer.weights for layer in target.layers]
    with pytest.raises(IOFailure):
        target.load_weights(path)
    assert target.widths == [2, 2]
    assert [layer.weights for layer in target.layers] == before


@pytest.mark.parametrize(
    "count, widths",
    [(0, []), (1, [4]), (2, [3, 0]), (2, [-1, 2])],
)
def test_malformed_config_raises(tmp_path, count, widths):
    path = tmp_path / "bad.bin"
    payload = np.asarray([count], dtype=SIZE_DTYPE).tobytes()
    payload += np.asarray(widths, dtype=INT_DTYPE).tobytes()
    payload += np.zeros(64, dtype=FLOAT_DTYPE).tobytes()
    path.write_bytes(payload)
    with pytest.raises(IOFailure):
        read_weights(path)


def test_absurd_width_count_is_reported_as_truncation(tmp_path):
    path = tmp_path / "huge.bin"
    path.write_bytes(np.asarray([2**40], dtype=SIZE_DTYPE).tobytes())
    with pytest.raises(IOFailure):
        read_weights(path)


def test_unwritable_destination_raises(tmp_path, trained_network):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(IOFailure):
        trained_network.save_weights(blocker / "weights.bin")
