"""
persistence.py
~~~~~~~~~~~~~~

Binary weight files for :class:`densestack.training.network.Network`.

Layout, all values in host byte order and native width::

    size_t   L                      number of entries in the widths list
    int      widths[L]              input width first
    for each of the L - 1 layers:
        double weights[out * in]    row-major, one row per output node
        double biases[out]

There is no magic number or version field; the layout itself is the contract.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Sequence, Tuple

import numpy as np

from .core.errors import IOFailure
from .core.matrix import Matrix

logger = logging.getLogger(__name__)

SIZE_DTYPE = np.dtype(np.uintp)
INT_DTYPE = np.dtype(np.intc)
FLOAT_DTYPE = np.dtype(np.float64)


@dataclass(frozen=True)
class WeightFile:
    """Decoded contents of a weight file."""

    widths: List[int]
    parameters: List[Tuple[Matrix, Matrix]]


def write_weights(
    path: str | Path,
    widths: Sequence[int],
    parameters: Sequence[Tuple[Matrix, Matrix]],
) -> Path:
    """
    Write ``widths`` followed by every layer's weights and biases.

    Args:
        path: Destination file; parent directories are created
        widths: Layer-width configuration, input width first
        parameters: ``(weights, biases)`` per layer, in layer order

    Returns:
        Path: The file that was written

    Raises:
        IOFailure: If the file cannot be written
    """
    path = Path(path)
    if len(parameters) != len(widths) - 1:
        raise ValueError(
            f"{len(widths)} widths describe {len(widths) - 1} layers, got {len(parameters)}"
        )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as handle:
            handle.write(np.asarray([len(widths)], dtype=SIZE_DTYPE).tobytes())
            handle.write(np.asarray(widths, dtype=INT_DTYPE).tobytes())
            for weights, biases in parameters:
                handle.write(weights.flat().astype(FLOAT_DTYPE).tobytes())
                handle.write(biases.flat().astype(FLOAT_DTYPE).tobytes())
    except OSError as exc:
        logger.error("Could not write weights to %s: %s", path, exc)
        raise IOFailure(f"Could not write weights to {path}: {exc}") from exc

    logger.info("Saved %d layer(s) to %s", len(parameters), path)
    return path


def _read_exact(handle: BinaryIO, dtype: np.dtype, count: int, what: str, path: Path) -> np.ndarray:
    nbytes = dtype.itemsize * count
    remaining = os.fstat(handle.fileno()).st_size - handle.tell()
    payload = handle.read(nbytes) if nbytes <= remaining else b""
    if len(payload) != nbytes:
        raise IOFailure(
            f"Truncated weight file {path}: expected {nbytes} bytes of {what}, got {len(payload)}"
        )
    return np.frombuffer(payload, dtype=dtype, count=count)


def read_weights(path: str | Path) -> WeightFile:
    """
    Decode a weight file without touching any network.

    Raises:
        IOFailure: If the file is missing, unreadable, truncated or carries an
            invalid widths list
    """
    path = Path(path)
    try:
        with path.open("rb") as handle:
            (count,) = _read_exact(handle, SIZE_DTYPE, 1, "header", path)
            count = int(count)
            if count < 2:
                raise IOFailure(
                    f"Invalid network config in {path}: need at least 2 widths, got {count}"
                )
            widths = [int(w) for w in _read_exact(handle, INT_DTYPE, count, "widths", path)]
            if any(w <= 0 for w in widths):
                raise IOFailure(f"Invalid network config in {path}: widths {widths}")

            parameters: List[Tuple[Matrix, Matrix]] = []
            for in_width, out_width in zip(widths[:-1], widths[1:]):
                weights = _read_exact(
                    handle, FLOAT_DTYPE, in_width * out_width, "weights", path
                )
                biases = _read_exact(handle, FLOAT_DTYPE, out_width, "biases", path)
                parameters.append(
                    (
                        Matrix.from_flat(in_width, out_width, weights),
                        Matrix.from_flat(1, out_width, biases),
                    )
                )
    except IOFailure as exc:
        logger.error("%s", exc)
        raise
    except OSError as exc:
        logger.error("Could not read weights from %s: %s", path, exc)
        raise IOFailure(f"Could not read weights from {path}: {exc}") from exc

    logger.info("Loaded widths %s from %s", widths, path)
    return WeightFile(widths=widths, parameters=parameters)


__all__ = ["WeightFile", "read_weights", "write_weights"]
