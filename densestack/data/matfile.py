"""MATLAB ``.mat`` datasets laid out as ``data`` (features x samples) and ``label``."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from scipy.io import loadmat

from .registry import DatasetSpec, register_dataset
from .utils import normalise_pixels, one_hot

logger = logging.getLogger(__name__)

_SUPPORTED_KINDS = {"f", "u", "i"}


def load_matfile(
    path: str | Path,
    *,
    data_key: str = "data",
    label_key: str = "label",
    num_classes: int = 10,
) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(inputs, targets)`` with one sample per row.

    The ``data`` variable holds one sample per column. Pixel values above 1
    are rescaled from 0-255 into ``[0, 1]``.
    """

    path = Path(path)
    contents = loadmat(str(path))
    for key in (data_key, label_key):
        if key not in contents:
            raise KeyError(f"Cannot find variable {key!r} in {path}")

    data = np.asarray(contents[data_key])
    if data.ndim != 2:
        raise ValueError(f"Variable {data_key!r} in {path} must be 2-D, got {data.shape}")
    if data.dtype.kind not in _SUPPORTED_KINDS:
        raise TypeError(f"Unsupported data type {data.dtype} for {data_key!r} in {path}")
    logger.info("Data dimensions: %d x %d (%s)", data.shape[0], data.shape[1], data.dtype)

    inputs = normalise_pixels(data.T)
    labels = np.asarray(contents[label_key]).reshape(-1)
    if labels.size != inputs.shape[0]:
        raise ValueError(
            f"{path} has {inputs.shape[0]} samples but {labels.size} labels"
        )
    targets = one_hot(labels, num_classes)
    return np.ascontiguousarray(inputs), targets


@register_dataset("matfile")
def build_matfile(
    path: str | Path,
    num_classes: int = 10,
    data_key: str = "data",
    label_key: str = "label",
    max_items: int | None = None,
    **_: object,
) -> DatasetSpec:
    inputs, targets = load_matfile(
        path, data_key=data_key, label_key=label_key, num_classes=num_classes
    )
    if max_items is not None:
        inputs, targets = inputs[:max_items], targets[:max_items]
    return DatasetSpec(
        name="matfile",
        inputs=inputs,
        targets=targets,
        provenance={
            "type": "matfile",
            "path": str(path),
            "num_classes": num_classes,
            "max_items": max_items,
        },
    )


__all__ = ["build_matfile", "load_matfile"]
